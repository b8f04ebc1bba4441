import pytest

from database.models import BodyPartEnum, Follow
from pulse.requests.config_requests import (
    WORKOUT_PROMPT_KEY,
    PromptTemplateStore,
    set_config_value,
)
from pulse.requests.exercise_requests import (
    ExerciseCatalog,
    add_exercises_bulk,
    clear_exercises,
    get_exercises_by_names,
)
from pulse.requests.user_requests import get_prioritized_author_ids
from pulse.requests.workout_requests import WorkoutRepository
from pulse.schemas.generation import GenerationConfig, GenerationRequest
from pulse.schemas.workout import RepsAndWeightLog, WorkoutSummary
from pulse.services.prompt_builder import DEFAULT_WORKOUT_PROMPT
from pulse.services.reconciler import assemble_workout, build_exercise_details
from pulse.services.workout_service import WorkoutService
from tests.fakes import FakeLLM, FakeTemplateSource, default_catalog


@pytest.fixture
async def seeded_pool(session_pool):
    async with session_pool() as session:
        await add_exercises_bulk(session, default_catalog())
    return session_pool


class TestExerciseCatalog:
    async def test_get_exercises_returns_schemas_with_videos(self, seeded_pool):
        exercises = await ExerciseCatalog(seeded_pool).get_exercises()

        by_name = {exercise.name: exercise for exercise in exercises}
        assert set(by_name) == {exercise.name for exercise in default_catalog()}
        squat = by_name["Squat"]
        assert squat.primary_body_parts == [BodyPartEnum.quadriceps, BodyPartEnum.glutes]
        assert squat.has_playable_video
        assert squat.videos[0].user_id == "coach1"
        assert not by_name["Cable Fly"].has_playable_video
        assert by_name["Plank"].is_body_weight

    async def test_fetch_by_names_is_exact(self, seeded_pool):
        exercises = await ExerciseCatalog(seeded_pool).fetch_exercises_by_names(
            ["Squat", "squat", "Plank", "Moon Walk"]
        )
        assert sorted(exercise.name for exercise in exercises) == ["Plank", "Squat"]

    async def test_empty_name_list(self, seeded_pool):
        async with seeded_pool() as session:
            assert await get_exercises_by_names(session, []) == []

    async def test_clear_exercises(self, seeded_pool):
        async with seeded_pool() as session:
            await clear_exercises(session)
        assert await ExerciseCatalog(seeded_pool).get_exercises() == []


class TestWorkoutRepository:
    async def make_workout(self, pool):
        exercises = await ExerciseCatalog(pool).get_exercises()
        return assemble_workout(
            build_exercise_details([["Squat", "Lunge"], ["Plank"]], exercises), "user-1"
        )

    async def test_save_and_fetch(self, seeded_pool):
        repository = WorkoutRepository(seeded_pool, "user-1")
        workout, logs = await self.make_workout(seeded_pool)

        await repository.update_workout_session(workout, logs, workout.id)
        await repository.save_workout(workout)
        loaded = await repository.fetch_workout(workout.id)

        assert loaded.id == workout.id
        assert [ref.exercise.name for ref in loaded.exercises] == ["Squat", "Lunge", "Plank"]
        assert [ref.group_id for ref in loaded.exercises] == [0, 0, 1]
        assert {log.id for log in loaded.logs} == {log.id for log in logs}
        assert loaded.is_ready

    async def test_update_existing_logs(self, seeded_pool):
        repository = WorkoutRepository(seeded_pool, "user-1")
        workout, logs = await self.make_workout(seeded_pool)
        await repository.update_workout_session(workout, logs, workout.id)

        logs[0].append_set(RepsAndWeightLog(reps=5, weight=100.0))
        logs[0].set_is_submitted(True)
        await repository.update_workout_session(workout, logs, workout.id)

        loaded = await repository.fetch_workout(workout.id)
        updated = next(log for log in loaded.logs if log.id == logs[0].id)
        assert updated.is_submitted
        assert updated.logs[-1].weight == 100.0
        assert len(loaded.logs) == 3
        assert len(loaded.exercises) == 3

    async def test_missing_workout(self, seeded_pool):
        assert await WorkoutRepository(seeded_pool, "user-1").fetch_workout("nope") is None


class TestWorkoutServiceWithDatabase:
    def make_service(self, pool):
        return WorkoutService(
            user_id="user-1",
            catalog=ExerciseCatalog(pool),
            llm=FakeLLM("[[Squat, Lunge], [Plank]]"),
            persistence=WorkoutRepository(pool, "user-1"),
            templates=FakeTemplateSource(),
            config=GenerationConfig(settle_delay_seconds=0),
        )

    async def test_regenerate_from_summary_stores_fresh_logs(self, seeded_pool):
        repository = WorkoutRepository(seeded_pool, "user-1")
        exercises = await ExerciseCatalog(seeded_pool).get_exercises()
        workout, logs = assemble_workout(
            build_exercise_details([["Squat", "Lunge"], ["Plank"]], exercises), "user-1"
        )
        for log in logs:
            log.append_set(RepsAndWeightLog(reps=8, weight=60.0))
            log.set_is_submitted(True)
        await repository.update_workout_session(workout, logs, workout.id)
        await repository.save_workout(workout)
        summary = WorkoutSummary(workout_id=workout.id, user_id="user-1", exercises_completed=logs)

        new_workout = await self.make_service(seeded_pool).regenerate_from_summary(summary)

        stored = await repository.fetch_workout(new_workout.id)
        assert len(stored.logs) == 3
        assert {log.id for log in stored.logs}.isdisjoint({log.id for log in logs})
        assert all(log.workout_id == new_workout.id for log in stored.logs)
        assert not any(log.is_submitted for log in stored.logs)
        assert all(log.logs[-1].weight == 60.0 for log in stored.logs)

        original = await repository.fetch_workout(workout.id)
        assert {log.id for log in original.logs} == {log.id for log in logs}
        assert all(log.is_submitted for log in original.logs)

    async def test_generated_workout_is_stored(self, seeded_pool):
        repository = WorkoutRepository(seeded_pool, "user-1")
        service = self.make_service(seeded_pool)

        result = await service.generate_workout(GenerationRequest(body_parts=["quadriceps", "abs"]))

        assert result.ok
        stored = await repository.fetch_workout(result.workout.id)
        assert [ref.exercise.name for ref in stored.exercises] == ["Squat", "Lunge", "Plank"]
        assert {log.id for log in stored.logs} == {log.id for log in result.logs}


class TestConfigAndFollows:
    async def test_default_prompt_when_not_configured(self, session_pool):
        store = PromptTemplateStore(session_pool)
        assert await store.get_workout_prompt() == DEFAULT_WORKOUT_PROMPT

    async def test_stored_prompt(self, session_pool):
        async with session_pool() as session:
            await set_config_value(session, WORKOUT_PROMPT_KEY, "old")
            await set_config_value(session, WORKOUT_PROMPT_KEY, "Train {{bodyParts}}")

        store = PromptTemplateStore(session_pool)
        assert await store.get_workout_prompt() == "Train {{bodyParts}}"

    async def test_prioritized_authors(self, session_pool):
        async with session_pool() as session:
            session.add_all(
                [
                    Follow(user_id="u1", to_user_id="coach1", is_user_content_prioritized=True),
                    Follow(user_id="u1", to_user_id="coach2", is_user_content_prioritized=False),
                    Follow(user_id="u2", to_user_id="coach3", is_user_content_prioritized=True),
                ]
            )
            await session.commit()

            assert await get_prioritized_author_ids(session, "u1") == ["coach1"]
