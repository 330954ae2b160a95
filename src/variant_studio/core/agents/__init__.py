"""Core agents for variant generation and recipe brainstorming."""

from variant_studio.core.agents.orchestrator import (
    VariantOrchestrator,
    compose_generation_prompt,
)
from variant_studio.core.agents.recipe_brainstormer import (
    COMMON_INGREDIENTS,
    RecipeBrainstormAgent,
    get_season,
)

__all__ = [
    "COMMON_INGREDIENTS",
    "RecipeBrainstormAgent",
    "VariantOrchestrator",
    "compose_generation_prompt",
    "get_season",
]
