"""Tests for the recipe brainstorm agent."""

import json
from datetime import date
from unittest.mock import patch

import pytest

from variant_studio.core.agents.recipe_brainstormer import (
    COMMON_INGREDIENTS,
    RecipeBrainstormAgent,
    clean_ingredients,
    get_season,
    parse_recipe_idea,
)
from variant_studio.core.errors import BrainstormError, ConfigurationError

VALID_IDEA = {
    "idea": {
        "name": "Pear & Cardamom Galette",
        "description": "A rustic free-form tart with roasted pears.",
        "whySeasonable": "Pears peak in October.",
        "marketDifferentiator": "Cardamom sets it apart from apple pie.",
        "recipe": {
            "ingredients": ["250g flour", "125g butter", "4 pears"],
            "instructions": ["Make the dough", "Fill and bake"],
            "tips": ["Chill the dough well"],
        },
    }
}


class FakeAgent:
    """Stands in for a strands Agent; replays canned responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)
        return self.responses.pop(0)


@pytest.mark.parametrize(
    "month_index, season",
    [
        (0, "Winter"),
        (1, "Winter"),
        (2, "Spring"),
        (4, "Spring"),
        (5, "Summer"),
        (7, "Summer"),
        (8, "Fall"),
        (10, "Fall"),
        (11, "Winter"),
    ],
)
def test_get_season(month_index, season):
    assert get_season(month_index) == season


def test_clean_ingredients():
    assert clean_ingredients([" butter", "", "flour ", "butter", "  "]) == [
        "butter",
        "flour",
    ]


def test_common_ingredients_are_unique():
    assert len(COMMON_INGREDIENTS) == len(set(COMMON_INGREDIENTS))


class TestParseRecipeIdea:
    def test_plain_json(self):
        idea = parse_recipe_idea(json.dumps(VALID_IDEA))

        assert idea.name == "Pear & Cardamom Galette"
        assert idea.why_seasonable == "Pears peak in October."
        assert idea.recipe.tips == ["Chill the dough well"]

    def test_fenced_json_with_chatter(self):
        response = f"Here you go!\n```json\n{json.dumps(VALID_IDEA)}\n```\nEnjoy."

        idea = parse_recipe_idea(response)

        assert idea.market_differentiator.startswith("Cardamom")

    def test_serializes_with_camel_case_aliases(self):
        idea = parse_recipe_idea(json.dumps(VALID_IDEA))

        dumped = idea.model_dump(by_alias=True)

        assert dumped["whySeasonable"] == "Pears peak in October."
        assert dumped["marketDifferentiator"]

    def test_no_json_raises_value_error(self):
        with pytest.raises(ValueError, match="No JSON object"):
            parse_recipe_idea("I could not think of anything.")

    def test_missing_fields_raise_value_error(self):
        with pytest.raises(ValueError, match="Failed to validate"):
            parse_recipe_idea('{"idea": {"name": "Bread"}}')

    def test_broken_json_raises_value_error(self):
        with pytest.raises(ValueError, match="Failed to parse JSON"):
            parse_recipe_idea('{"idea": {"name": }')


class TestBuildPrompts:
    def test_prompts_include_month_and_season(self, settings):
        agent = RecipeBrainstormAgent(settings)

        system, user = agent.build_prompts([], today=date(2026, 10, 19))

        assert "Current season: Fall (October)" in system
        assert "Available ingredients" not in system
        assert "6. Incorporates" not in system
        assert "for October that would be perfect" in user
        assert "using these ingredients" not in user
        assert '"whySeasonable"' in user

    def test_prompts_include_ingredients(self, settings):
        agent = RecipeBrainstormAgent(settings)

        system, user = agent.build_prompts(["pears", "honey"], today=date(2026, 1, 5))

        assert "Current season: Winter (January)" in system
        assert "Available ingredients: pears, honey" in system
        assert "6. Incorporates as many of the available ingredients" in system
        assert "using these ingredients: pears, honey" in user


class TestBrainstorm:
    def test_valid_first_response(self, settings):
        agent = RecipeBrainstormAgent(settings)
        fake = FakeAgent([json.dumps(VALID_IDEA)])

        with patch.object(agent, "_create_agent", return_value=fake) as create:
            idea = agent.brainstorm(["pears", " pears "], today=date(2026, 10, 1))

        assert idea.name == "Pear & Cardamom Galette"
        assert len(fake.messages) == 1
        system_prompt = create.call_args.args[0]
        assert "Available ingredients: pears\n" in system_prompt

    def test_retries_with_validation_error(self, settings):
        agent = RecipeBrainstormAgent(settings, max_retries=3)
        fake = FakeAgent(["not json at all", json.dumps(VALID_IDEA)])

        with patch.object(agent, "_create_agent", return_value=fake):
            idea = agent.brainstorm()

        assert idea.name == "Pear & Cardamom Galette"
        assert len(fake.messages) == 2
        assert "validation error" in fake.messages[1]
        assert "No JSON object" in fake.messages[1]

    def test_gives_up_after_max_retries(self, settings):
        agent = RecipeBrainstormAgent(settings, max_retries=2)
        fake = FakeAgent(["nope", "still nope", json.dumps(VALID_IDEA)])

        with patch.object(agent, "_create_agent", return_value=fake):
            with pytest.raises(BrainstormError, match="after 2 attempts"):
                agent.brainstorm()

        assert len(fake.messages) == 2

    def test_default_max_retries(self, settings):
        assert RecipeBrainstormAgent(settings).max_retries == 3

    def test_missing_api_key_is_configuration_error(self, settings):
        settings.api_key = ""
        agent = RecipeBrainstormAgent(settings)

        with pytest.raises(ConfigurationError):
            agent.brainstorm(["pears"])
