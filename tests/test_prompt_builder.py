import pytest

from database.models import BodyPartEnum
from pulse.services.errors import PromptRenderError
from pulse.services.prompt_builder import (
    DEFAULT_WORKOUT_PROMPT,
    PLACEHOLDER_PATTERN,
    PromptVariables,
    expand_body_part_keys,
    expand_body_part_names,
    render_prompt,
)


@pytest.fixture
def variables():
    return PromptVariables(
        body_parts="chest, triceps",
        goal="strength and more energy",
        exercise_list="Bench Press, Push Up",
        all_exercises="Bench Press, Push Up, Squat",
        with_predefined_exercises="Push Up",
    )


class TestRenderPrompt:
    def test_all_placeholders_are_substituted(self, variables):
        template = (
            "Parts: {{bodyParts}} | Goal: {{goal}} | List: {{exerciseList}} | "
            "All: {{allExercises}} | Must: {{withPreDefinedExercises}}"
        )

        prompt = render_prompt(template, variables)

        assert prompt == (
            "Parts: chest, triceps | Goal: strength and more energy | "
            "List: Bench Press, Push Up | All: Bench Press, Push Up, Squat | Must: Push Up"
        )

    def test_whitespace_inside_braces_is_allowed(self, variables):
        assert render_prompt("{{ goal }}", variables) == "strength and more energy"

    def test_repeated_placeholder(self, variables):
        assert render_prompt("{{goal}}/{{goal}}", variables) == (
            "strength and more energy/strength and more energy"
        )

    def test_unknown_placeholder_raises(self, variables):
        with pytest.raises(PromptRenderError) as exc_info:
            render_prompt("Mood: {{mood}}, goal: {{goal}}", variables)
        assert exc_info.value.unresolved == ["mood"]

    def test_substituted_values_are_not_rendered_again(self):
        variables = PromptVariables(goal="{{bodyParts}}", body_parts="chest")
        assert render_prompt("{{goal}}", variables) == "{{bodyParts}}"

    def test_empty_values_are_allowed(self):
        assert render_prompt("[{{withPreDefinedExercises}}]", PromptVariables()) == "[]"

    def test_default_template_renders_completely(self, variables):
        prompt = render_prompt(DEFAULT_WORKOUT_PROMPT, variables)
        assert not PLACEHOLDER_PATTERN.search(prompt)
        assert "Bench Press, Push Up" in prompt


class TestBodyParts:
    def test_back_expands_to_three_keys(self):
        assert expand_body_part_keys(["back"]) == [
            BodyPartEnum.lats,
            BodyPartEnum.traps,
            BodyPartEnum.rhomboids,
        ]

    def test_keys_are_normalized(self):
        assert expand_body_part_keys([" Chest ", "ABS"]) == [BodyPartEnum.chest, BodyPartEnum.abs]

    def test_unknown_parts_are_skipped(self):
        assert expand_body_part_keys(["chest", "wings"]) == [BodyPartEnum.chest]

    def test_back_expands_to_anatomical_names(self):
        assert expand_body_part_names(["chest", "back"]) == [
            "chest",
            "latissimus dorsi",
            "trapezius",
            "rhomboids",
        ]
