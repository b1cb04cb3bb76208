"""
Validation and normalization of model output.

Handles:
- JSON parsing of the raw completion text
- Restricting keys to the allergen/nutrient vocabularies
- Boolean coercion for allergen flags
- String coercion for nutrient values
"""

import json
import logging
from typing import Any

# Handle both package imports and standalone imports
try:
    from ...models import Allergen, AllergenNutritionResult, Nutrient
except ImportError:
    from models import Allergen, AllergenNutritionResult, Nutrient

from .exceptions import ProviderError

logger = logging.getLogger(__name__)

TRUE_STRINGS = ("true", "yes", "y", "1", "present", "contains")
FALSE_STRINGS = ("false", "no", "n", "0", "absent", "free")
NULL_STRINGS = ("", "null", "none", "unknown", "n/a")


def parse_model_output(content: str | None) -> dict[str, Any]:
    """
    Parse a completion into a JSON object.

    Raises:
        ProviderError: If the content is empty, not JSON, or not a JSON object.
    """
    if not content:
        raise ProviderError("Empty response from OpenAI")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction response: %s", content[:500])
        raise ProviderError(f"Invalid JSON in extraction response: {e}") from e

    if not isinstance(data, dict):
        raise ProviderError(
            f"Expected a JSON object in extraction response, got {type(data).__name__}"
        )
    return data


def _coerce_allergen(name: str, value: Any, warnings: list[str]) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        lower = value.lower().strip()
        if lower in TRUE_STRINGS:
            return True
        if lower in FALSE_STRINGS:
            return False
        if lower in NULL_STRINGS:
            return None
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    warnings.append(f"Allergen '{name}' has ambiguous value: '{value}'")
    return None


def _coerce_nutrient(name: str, value: Any, warnings: list[str]) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        warnings.append(f"Nutrient '{name}' expected value with unit, got: '{value}'")
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        cleaned = value.strip()
        return None if cleaned.lower() in NULL_STRINGS else cleaned
    warnings.append(f"Nutrient '{name}' expected value with unit, got: '{value}'")
    return None


def _section(payload: dict[str, Any], key: str, warnings: list[str]) -> dict[str, Any]:
    section = payload.get(key)
    if section is None:
        warnings.append(f"Response is missing '{key}'")
        return {}
    if not isinstance(section, dict):
        warnings.append(f"Response field '{key}' is not an object")
        return {}
    return section


def normalize_result(payload: dict[str, Any]) -> AllergenNutritionResult:
    """
    Normalize a parsed model response into an AllergenNutritionResult.

    Every vocabulary key is present in the output (null when the model did
    not report it). Keys outside the vocabularies are dropped with a warning.

    Args:
        payload: Parsed JSON object from the model.

    Returns:
        AllergenNutritionResult with normalized values and warnings.
    """
    warnings: list[str] = []

    raw_allergens = _section(payload, "allergens", warnings)
    raw_nutrients = _section(payload, "nutritional_values", warnings)

    allergen_names = {a.value for a in Allergen}
    nutrient_names = {n.value for n in Nutrient}

    for key in raw_allergens:
        if key not in allergen_names:
            warnings.append(f"Dropped unknown allergen '{key}'")
    for key in raw_nutrients:
        if key not in nutrient_names:
            warnings.append(f"Dropped unknown nutrient '{key}'")

    allergens = {
        allergen: _coerce_allergen(
            allergen.value, raw_allergens.get(allergen.value), warnings
        )
        for allergen in Allergen
    }
    nutritional_values = {
        nutrient: _coerce_nutrient(
            nutrient.value, raw_nutrients.get(nutrient.value), warnings
        )
        for nutrient in Nutrient
    }

    if warnings:
        logger.warning("Normalized model output with %d warning(s): %s", len(warnings), warnings)

    return AllergenNutritionResult(
        allergens=allergens,
        nutritional_values=nutritional_values,
        warnings=warnings,
    )
