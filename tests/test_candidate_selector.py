from database.models import BodyPartEnum
from pulse.services.candidate_selector import select_candidate_names
from tests.fakes import make_exercise


def chest_catalog(prioritized: int, others: int = 3):
    exercises = [
        make_exercise(f"Prioritized Press {i}", "chest", video_user="favourite")
        for i in range(prioritized)
    ]
    exercises += [
        make_exercise(f"Other Press {i}", "chest", video_user="someone-else")
        for i in range(others)
    ]
    return exercises


class TestSelectCandidateNames:
    def test_filters_by_primary_body_part(self):
        exercises = [
            make_exercise("Bench Press", "chest"),
            make_exercise("Squat", "quadriceps"),
            make_exercise("Dips", "triceps"),
        ]

        names = select_candidate_names(exercises, [BodyPartEnum.chest, BodyPartEnum.triceps])

        assert names == ["Bench Press", "Dips"]

    def test_secondary_body_parts_do_not_match(self):
        exercise = make_exercise("Bench Press", "chest")
        exercise.secondary_body_parts = [BodyPartEnum.triceps]

        assert select_candidate_names([exercise], [BodyPartEnum.triceps]) == []

    def test_exercises_without_playable_video_are_excluded(self):
        exercises = [
            make_exercise("Bench Press", "chest"),
            make_exercise("Cable Fly", "chest", video_user=None),
        ]

        assert select_candidate_names(exercises, [BodyPartEnum.chest]) == ["Bench Press"]

    def test_video_requirement_can_be_disabled(self):
        exercises = [
            make_exercise("Bench Press", "chest"),
            make_exercise("Cable Fly", "chest", video_user=None),
        ]

        names = select_candidate_names(exercises, [BodyPartEnum.chest], require_video=False)

        assert names == ["Bench Press", "Cable Fly"]

    def test_video_without_url_is_not_playable(self):
        exercise = make_exercise("Bench Press", "chest")
        exercise.videos[0].video_url = None

        assert select_candidate_names([exercise], [BodyPartEnum.chest]) == []

    def test_duplicate_names_are_listed_once(self):
        exercises = [
            make_exercise("Bench Press", "chest"),
            make_exercise("Bench Press", "chest", video_user="other"),
        ]

        assert select_candidate_names(exercises, [BodyPartEnum.chest]) == ["Bench Press"]

    def test_six_prioritized_exercises_are_used_exclusively(self):
        names = select_candidate_names(
            chest_catalog(prioritized=6), [BodyPartEnum.chest], ["favourite"]
        )

        assert len(names) == 6
        assert all(name.startswith("Prioritized") for name in names)

    def test_five_prioritized_exercises_fall_back_to_all_candidates(self):
        names = select_candidate_names(
            chest_catalog(prioritized=5), [BodyPartEnum.chest], ["favourite"]
        )

        assert len(names) == 8
        assert "Other Press 0" in names

    def test_minimum_is_configurable(self):
        names = select_candidate_names(
            chest_catalog(prioritized=2), [BodyPartEnum.chest], ["favourite"], min_count=2
        )

        assert names == ["Prioritized Press 0", "Prioritized Press 1"]

    def test_no_prioritized_authors_returns_all_candidates(self):
        names = select_candidate_names(chest_catalog(prioritized=2), [BodyPartEnum.chest])
        assert len(names) == 5

    def test_empty_targets_select_nothing(self):
        assert select_candidate_names(chest_catalog(prioritized=6), []) == []
