"""
Pydantic models for the allergen and nutrition extraction pipeline.

Defines the closed allergen/nutrient vocabularies, the structured
extraction result and the HTTP response envelopes.
"""

from enum import Enum

from pydantic import BaseModel, Field


class Allergen(str, Enum):
    """Allergens tracked on a food label."""

    GLUTEN = "gluten"
    EGG = "egg"
    CRUSTACEANS = "crustaceans"
    FISH = "fish"
    PEANUT = "peanut"
    SOY = "soy"
    MILK = "milk"
    TREE_NUTS = "tree_nuts"
    CELERY = "celery"
    MUSTARD = "mustard"


class Nutrient(str, Enum):
    """Nutritional values read from a food label."""

    ENERGY = "energy"
    FAT = "fat"
    CARBOHYDRATE = "carbohydrate"
    SUGAR = "sugar"
    PROTEIN = "protein"
    SODIUM = "sodium"


QUOTA_EXCEEDED_MESSAGE = (
    "OpenAI quota exceeded. Please check your billing or try again later."
)


class AllergenNutritionResult(BaseModel):
    """
    Structured allergen and nutrition data extracted from one label.

    Attributes:
        allergens: Tri-state presence per allergen (true, false or null when unknown).
        nutritional_values: Value with unit per nutrient, null when unknown.
        fallback: True when extraction was skipped because of provider quota limits.
        error: Explanatory message accompanying a fallback result.
        warnings: Normalization notes about the model output.
    """

    allergens: dict[Allergen, bool | None] = Field(
        default_factory=dict,
        description="Allergen presence keyed by allergen name",
    )
    nutritional_values: dict[Nutrient, str | None] = Field(
        default_factory=dict,
        description="Nutrient value with unit keyed by nutrient name",
    )
    fallback: bool = Field(
        default=False,
        description="Whether this is a degraded quota-exceeded result",
    )
    error: str | None = Field(
        default=None,
        description="Reason the result is degraded",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Warnings raised while normalizing the model output",
    )

    @classmethod
    def quota_fallback(
        cls, message: str = QUOTA_EXCEEDED_MESSAGE
    ) -> "AllergenNutritionResult":
        """Build the degraded result returned when the provider is out of quota."""
        return cls(allergens={}, nutritional_values={}, fallback=True, error=message)


# =============================================================================
# API Response Models
# =============================================================================


class ExtractResponse(BaseModel):
    """Successful response from POST /api/extract."""

    success: bool = Field(default=True)
    data: AllergenNutritionResult = Field(..., description="Extracted label data")
    filename: str = Field(..., description="Original name of the uploaded file")


class ExtractErrorResponse(BaseModel):
    """Failure response from POST /api/extract."""

    success: bool = Field(default=False)
    error: str = Field(default="Failed to process PDF")
    details: str = Field(..., description="Error detail")


class UploadErrorResponse(BaseModel):
    """Response for rejected uploads."""

    error: str = Field(..., examples=["No PDF file uploaded"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok")
    message: str = Field(default="Server is running")
