"""Models for ingredients extracted from recipe text."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

IngredientCategory = Literal[
    "proteins",
    "vegetables",
    "fruits",
    "dairy",
    "grains",
    "oils",
    "spices",
    "condiments",
    "other",
]

INGREDIENT_CATEGORIES: tuple[str, ...] = (
    "proteins",
    "vegetables",
    "fruits",
    "dairy",
    "grains",
    "oils",
    "spices",
    "condiments",
    "other",
)

_CATEGORY_ALIASES = {
    "meat": "proteins",
    "seafood": "proteins",
    "fish": "proteins",
    "protein": "proteins",
    "vegetable": "vegetables",
    "fruit": "fruits",
    "grain": "grains",
    "oil": "oils",
    "spice": "spices",
    "condiment": "condiments",
}


class ExtractedIngredient(BaseModel):
    """A single shopping-list ingredient."""

    name: str = Field(min_length=1)
    quantity: float | None = None
    unit: str | None = None
    category: IngredientCategory = "other"
    is_optional: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: object) -> str:
        if not isinstance(value, str):
            return "other"
        cleaned = value.strip().lower()
        cleaned = _CATEGORY_ALIASES.get(cleaned, cleaned)
        return cleaned if cleaned in INGREDIENT_CATEGORIES else "other"

    @field_validator("unit", mode="before")
    @classmethod
    def _blank_unit_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class IngredientList(BaseModel):
    """Structured output for ingredient extraction."""

    ingredients: list[ExtractedIngredient]


class OwnedIngredient(BaseModel):
    """An extracted ingredient annotated with pantry ownership."""

    ingredient: ExtractedIngredient
    user_has_it: bool
