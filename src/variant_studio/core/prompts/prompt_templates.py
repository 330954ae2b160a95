"""Prompt templates for the AI services and the recipe agent.

These templates use {placeholder} syntax for string formatting.
"""

# =============================================================================
# Variant Pipeline Templates
# =============================================================================

ANALYSIS_INSTRUCTION = (
    "Briefly describe this food: type, colors, and plating (max 50 words)."
)

DEFAULT_SETTING = "professional food photography background, clean and appetizing"

GENERATION_PROMPT = (
    "Professional food photography: {product_description}. "
    "Setting: {setting}. "
    "High-quality, appetizing presentation, marketing-ready image."
)

# =============================================================================
# Recipe Brainstorm Templates
# =============================================================================

RECIPE_SYSTEM_PROMPT = """\
You are a culinary innovation expert for MY Baked Goods, a small-batch artisan bakery known for:
- Slow fermentation and traditional techniques
- Seasonal, locally-sourced ingredients
- Handmade breads and pastries
- Comfort-focused, rustic aesthetics
- Recipes inspired by family traditions and travels
- Weekend specials and rotating seasonal menu

Current season: {season} ({month})
{available_ingredients}
Generate 1 unique recipe idea that is:
1. Perfectly seasonal for {month}
2. On-brand with MY Baked Goods' artisan, comfort-focused style
3. Marketable and different from typical bakery offerings
4. Practical for small-batch production
5. Featuring ingredients at their peak right now
{ingredient_rule}
Provide a detailed recipe with exact measurements and clear instructions.\
"""

RECIPE_AVAILABLE_INGREDIENTS = "Available ingredients: {ingredients}\n"

RECIPE_INGREDIENT_RULE = (
    "6. Incorporates as many of the available ingredients as possible\n"
)

RECIPE_USER_MESSAGE = """\
Give me 1 seasonal baking idea for {month} that would be perfect for MY Baked Goods{using_clause}. \
The idea should be unique, marketable, and include a complete recipe.

Return ONLY valid JSON in this exact format:
{{
  "idea": {{
    "name": "Recipe name",
    "description": "One-sentence description",
    "whySeasonable": "Why this is perfect for {month} and what ingredients are at their peak",
    "marketDifferentiator": "What makes this unique and marketable compared to competitors",
    "recipe": {{
      "ingredients": ["ingredient with measurement", "ingredient with measurement"],
      "instructions": ["Detailed step 1", "Detailed step 2"],
      "tips": ["Pro tip 1", "Pro tip 2"]
    }}
  }}
}}\
"""

RECIPE_RETRY_MESSAGE = """\
The previous response had a validation error:
{error}

Please fix the issue and output a valid JSON recipe idea. Output ONLY the JSON, no explanations.\
"""
