"""
Prompt templates for allergen and nutrition extraction.

The JSON schema block is generated from the Allergen and Nutrient
enumerations so the prompt and the result validation share one vocabulary.
Bump PROMPT_VERSION whenever the wording or the schema changes.
"""

import json

# Handle both package imports and standalone imports
try:
    from ...models import Allergen, Nutrient
except ImportError:
    from models import Allergen, Nutrient

PROMPT_VERSION = "2024-06-01"

NUTRIENT_EXAMPLES: dict[Nutrient, str] = {
    Nutrient.ENERGY: "value with unit (e.g., 250 kcal or 1046 kJ)",
    Nutrient.FAT: "value with unit (e.g., 10g)",
    Nutrient.CARBOHYDRATE: "value with unit (e.g., 30g)",
    Nutrient.SUGAR: "value with unit (e.g., 5g)",
    Nutrient.PROTEIN: "value with unit (e.g., 8g)",
    Nutrient.SODIUM: "value with unit (e.g., 0.5g or 500mg)",
}


# =============================================================================
# System Prompts
# =============================================================================

TEXT_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts allergen and nutritional information "
    "from food product descriptions. Always respond with valid JSON."
)

VISION_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts allergen and nutritional information "
    "from food product images. Always respond with valid JSON."
)


# =============================================================================
# Shared Prompt Blocks
# =============================================================================

HUNGARIAN_TERMS = """Look for these Hungarian terms:
- Allergének/Allergén anyagok (Allergens)
- Tápértékek/Tápérték (Nutritional values)
- Energia (Energy) - may show as kcal or kJ
- Zsír/Zsírtartalom (Fat)
- Szénhidrát (Carbohydrate)
- Cukor (Sugar)
- Fehérje (Protein)
- Só/Nátrium (Salt/Sodium)
- Glutén (Gluten), Tojás (Egg), Tej (Milk), Szója (Soy), Hal (Fish), Földimogyoró (Peanut), Zeller (Celery), Mustár (Mustard)"""

EXTRACTION_RULES = """Rules:
- For allergens, set to true if present/detected, false if explicitly stated as absent, null if not mentioned
- For nutritional values, include the value with its unit. Use null if not found
- Look for variations like "contains", "may contain", "traces of" for allergens
- Be thorough in checking tables, lists, and paragraphs
- Do not add any keys that are not in the format above
- If the information is not clearly stated, use null"""


def build_schema_block() -> str:
    """Render the expected response shape as an indented JSON example."""
    schema = {
        "allergens": {allergen.value: "boolean" for allergen in Allergen},
        "nutritional_values": {
            nutrient.value: NUTRIENT_EXAMPLES[nutrient] for nutrient in Nutrient
        },
    }
    # Placeholder types are written unquoted, as in a type sketch
    return json.dumps(schema, indent=2, ensure_ascii=False).replace(
        '"boolean"', "boolean"
    )


def build_text_prompt(text: str) -> str:
    """Build the user prompt for extraction from plain label text."""
    return f"""You are an expert at extracting allergen and nutritional information from food product descriptions. The text may be in Hungarian or other languages.

{HUNGARIAN_TERMS}

Extract the following information from the text and return it in valid JSON format:

{build_schema_block()}

{EXTRACTION_RULES}

Text to analyze:
{text}"""


def build_vision_prompt() -> str:
    """Build the instruction block that precedes the page images."""
    return f"""Extract allergen and nutritional information from this food product label. The text may be in Hungarian or other languages.

{HUNGARIAN_TERMS}

Return data in this JSON format:

{build_schema_block()}

{EXTRACTION_RULES}

IMPORTANT: Look through ALL pages/images provided below. Look very carefully at nutritional tables, even if text is small. Use null only if truly not visible in any of the images."""
