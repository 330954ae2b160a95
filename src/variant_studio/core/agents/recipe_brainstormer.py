"""Recipe brainstorm agent using Strands SDK."""

from __future__ import annotations

import json
import logging
from datetime import date

from pydantic import ValidationError
from strands import Agent

from variant_studio.core.config import ServiceSettings
from variant_studio.core.errors import BrainstormError
from variant_studio.core.model_provider import get_model
from variant_studio.core.prompts.prompt_templates import (
    RECIPE_AVAILABLE_INGREDIENTS,
    RECIPE_INGREDIENT_RULE,
    RECIPE_RETRY_MESSAGE,
    RECIPE_SYSTEM_PROMPT,
    RECIPE_USER_MESSAGE,
)
from variant_studio.core.schemas import RecipeIdea, RecipeIdeaResponse

logger = logging.getLogger(__name__)

COMMON_INGREDIENTS = [
    "flour", "butter", "sugar", "eggs", "milk", "vanilla", "chocolate", "cream",
    "salt", "baking powder", "baking soda", "yeast", "honey", "cinnamon",
    "nuts", "berries", "lemon", "orange", "cocoa powder", "brown sugar",
    "almond flour", "cream cheese", "yogurt", "maple syrup", "oats",
]  # fmt: skip


def get_season(month_index: int) -> str:
    """Map a 0-based month index (January = 0) to a season name."""
    if 2 <= month_index <= 4:
        return "Spring"
    if 5 <= month_index <= 7:
        return "Summer"
    if 8 <= month_index <= 10:
        return "Fall"
    return "Winter"


def clean_ingredients(ingredients: list[str]) -> list[str]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    cleaned: list[str] = []
    for ingredient in ingredients:
        item = ingredient.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


def parse_recipe_idea(response: str) -> RecipeIdea:
    """Parse the recipe idea JSON from the agent response."""
    response = response.strip()

    # Handle markdown code blocks
    if "```json" in response:
        start = response.find("```json") + 7
        end = response.find("```", start)
        response = response[start:end].strip()
    elif "```" in response:
        start = response.find("```") + 3
        end = response.find("```", start)
        response = response[start:end].strip()

    start_idx = response.find("{")
    end_idx = response.rfind("}") + 1

    if start_idx == -1 or end_idx == 0:
        raise ValueError("No JSON object found in response")

    try:
        data = json.loads(response[start_idx:end_idx])
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse JSON: {e}") from e

    try:
        return RecipeIdeaResponse.model_validate(data).idea
    except ValidationError as e:
        raise ValueError(f"Failed to validate recipe idea: {e}") from e


class RecipeBrainstormAgent:
    """Agent that proposes one seasonal recipe for the bakery."""

    DEFAULT_MAX_RETRIES = 3

    def __init__(
        self,
        settings: ServiceSettings,
        model_id: str | None = None,
        max_retries: int | None = None,
    ):
        """Initialize the brainstorm agent.

        Args:
            settings: Credentials and endpoint shared with the variant pipeline
            model_id: Model ID to use (defaults to gpt-4o-mini via OpenAI)
            max_retries: Maximum attempts for invalid responses (default: 3)
        """
        self.settings = settings
        self.model_id = model_id
        self.max_retries = max_retries or self.DEFAULT_MAX_RETRIES

    def _create_agent(self, system_prompt: str) -> Agent:
        """Create a Strands agent for one brainstorm conversation.

        Raises:
            ConfigurationError: If the settings carry no API key
        """
        return Agent(
            system_prompt=system_prompt,
            model=get_model(self.settings, self.model_id),
        )

    def build_prompts(
        self, ingredients: list[str], today: date | None = None
    ) -> tuple[str, str]:
        """Return the (system, user) prompts for the given ingredients and date."""
        today = today or date.today()
        month = today.strftime("%B")
        season = get_season(today.month - 1)
        joined = ", ".join(ingredients)

        system_prompt = RECIPE_SYSTEM_PROMPT.format(
            season=season,
            month=month,
            available_ingredients=(
                RECIPE_AVAILABLE_INGREDIENTS.format(ingredients=joined)
                if ingredients
                else ""
            ),
            ingredient_rule=RECIPE_INGREDIENT_RULE if ingredients else "",
        )
        user_message = RECIPE_USER_MESSAGE.format(
            month=month,
            using_clause=f" using these ingredients: {joined}" if ingredients else "",
        )
        return system_prompt, user_message

    def brainstorm(
        self, ingredients: list[str] | None = None, today: date | None = None
    ) -> RecipeIdea:
        """Generate one validated recipe idea.

        Args:
            ingredients: Ingredients the baker has on hand
            today: Date used to pick the month and season (defaults to today)

        Returns:
            A validated RecipeIdea

        Raises:
            BrainstormError: If no valid idea is produced within max_retries
        """
        cleaned = clean_ingredients(ingredients or [])
        system_prompt, user_message = self.build_prompts(cleaned, today)
        logger.info("Brainstorming recipe idea with %d ingredients", len(cleaned))

        agent = self._create_agent(system_prompt)
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            if attempt == 1:
                message = user_message
            else:
                message = RECIPE_RETRY_MESSAGE.format(error=last_error)

            try:
                result = agent(message)
                idea = parse_recipe_idea(str(result))
            except Exception as e:
                last_error = e
                logger.warning(
                    "Recipe attempt %d/%d failed: %s", attempt, self.max_retries, e
                )
                continue

            if attempt > 1:
                logger.info("Recipe idea validated on attempt %d", attempt)
            return idea

        raise BrainstormError(
            f"Failed to generate a valid recipe idea after {self.max_retries} attempts. "
            f"Last error: {last_error}"
        )
