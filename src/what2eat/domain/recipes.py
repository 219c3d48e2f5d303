"""Domain models for generated and persisted recipes."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

from what2eat.domain.ingredients import ExtractedIngredient
from what2eat.domain.suggestions import Difficulty

SkillLevel = Literal["beginner", "intermediate", "advanced"]

DIFFICULTY_TO_SKILL: dict[str, SkillLevel] = {
    "easy": "beginner",
    "medium": "intermediate",
    "hard": "advanced",
}


@dataclass(frozen=True)
class ParsedNutrition:
    """Per-serving nutrition values read from recipe markdown."""

    calories: int | None = None
    protein: int | None = None
    carbs: int | None = None
    fat: int | None = None

    def is_empty(self) -> bool:
        """Return True when no value was found."""
        return all(
            value is None
            for value in (self.calories, self.protein, self.carbs, self.fat)
        )


@dataclass(frozen=True)
class RecipeDraft:
    """Recipe row values ready to be inserted."""

    title: str
    description: str
    cook_time_minutes: int | None
    difficulty: SkillLevel | None
    nutrition: ParsedNutrition
    source: str = "ai_generated"
    is_public: bool = False


@dataclass(frozen=True)
class RecipeScheduled:
    """Recipe saved and linked to the user's meal plan."""

    recipe_id: int
    meal_plan_id: int
    meal_plan_item_id: int


@dataclass(frozen=True)
class RecipeSavedUnscheduled:
    """Recipe saved, but scheduling it on the meal plan failed."""

    recipe_id: int
    reason: str


@dataclass(frozen=True)
class RecipeSaveFailed:
    """Nothing was saved."""

    reason: str


SaveOutcome = RecipeScheduled | RecipeSavedUnscheduled | RecipeSaveFailed


class StructuredNutrition(BaseModel):
    """Estimated nutrition per serving."""

    calories_kcal: float | None = None
    protein_grams: float | None = None
    carbs_grams: float | None = None
    fat_grams: float | None = None


class StructuredRecipe(BaseModel):
    """Complete recipe produced in constrained-object mode."""

    name: str = Field(min_length=1)
    description: str = ""
    cooking_time_minutes: int | None = Field(default=None, ge=0)
    difficulty: Difficulty = "Easy"
    servings: int = Field(default=1, ge=1)
    ingredients: list[ExtractedIngredient]
    instructions: str = ""
    nutrition: StructuredNutrition = Field(default_factory=StructuredNutrition)
