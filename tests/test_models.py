"""Tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from app.backend.models import (
    QUOTA_EXCEEDED_MESSAGE,
    Allergen,
    AllergenNutritionResult,
    ExtractErrorResponse,
    ExtractResponse,
    Nutrient,
)


class TestVocabularies:
    """Tests for the closed allergen and nutrient sets."""

    def test_allergen_values(self):
        """The allergen vocabulary is fixed."""
        assert [a.value for a in Allergen] == [
            "gluten",
            "egg",
            "crustaceans",
            "fish",
            "peanut",
            "soy",
            "milk",
            "tree_nuts",
            "celery",
            "mustard",
        ]

    def test_nutrient_values(self):
        """The nutrient vocabulary is fixed."""
        assert [n.value for n in Nutrient] == [
            "energy",
            "fat",
            "carbohydrate",
            "sugar",
            "protein",
            "sodium",
        ]


class TestAllergenNutritionResult:
    """Tests for AllergenNutritionResult model."""

    def test_accepts_vocabulary_keys(self):
        """String keys from the vocabulary are parsed into enum members."""
        result = AllergenNutritionResult(
            allergens={"gluten": True, "milk": None},
            nutritional_values={"energy": "250 kcal"},
        )
        assert result.allergens[Allergen.GLUTEN] is True
        assert result.allergens[Allergen.MILK] is None
        assert result.nutritional_values[Nutrient.ENERGY] == "250 kcal"
        assert result.fallback is False

    def test_rejects_unknown_allergen(self):
        """Keys outside the vocabulary cannot be represented."""
        with pytest.raises(ValidationError):
            AllergenNutritionResult(allergens={"sesame": True})

    def test_rejects_unknown_nutrient(self):
        """Nutrient keys outside the vocabulary cannot be represented."""
        with pytest.raises(ValidationError):
            AllergenNutritionResult(nutritional_values={"fibre": "3g"})

    def test_json_keys_are_plain_names(self):
        """Serialized keys are the vocabulary strings."""
        result = AllergenNutritionResult(allergens={Allergen.TREE_NUTS: False})
        assert result.model_dump(mode="json")["allergens"] == {"tree_nuts": False}

    def test_quota_fallback(self):
        """The degraded result has the marker, a message and empty mappings."""
        result = AllergenNutritionResult.quota_fallback()
        assert result.fallback is True
        assert result.error == QUOTA_EXCEEDED_MESSAGE
        assert result.allergens == {}
        assert result.nutritional_values == {}


class TestResponses:
    """Tests for HTTP response envelopes."""

    def test_extract_response_defaults(self):
        """Successful responses are flagged as such."""
        response = ExtractResponse(data=AllergenNutritionResult(), filename="label.pdf")
        dumped = response.model_dump(mode="json")
        assert dumped["success"] is True
        assert dumped["filename"] == "label.pdf"

    def test_error_response_defaults(self):
        """Failure responses carry the generic message and the detail."""
        dumped = ExtractErrorResponse(details="boom").model_dump()
        assert dumped == {
            "success": False,
            "error": "Failed to process PDF",
            "details": "boom",
        }
