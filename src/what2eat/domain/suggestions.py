"""Domain models for meal suggestion requests and results."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Literal

from pydantic import BaseModel, Field

FlowType = Literal["what-to-cook", "ingredients-needed"]
IngredientSource = Literal["use-my-ingredients", "go-shopping"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
Difficulty = Literal["Easy", "Medium", "Hard"]

MEAL_TYPES: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")


@dataclass(frozen=True)
class SuggestionRequest:
    """Everything the wizard has collected for one suggestion cycle."""

    flow_type: FlowType
    ingredient_source: IngredientSource | None = None
    ingredients: str = ""
    selected_cuisines: tuple[str, ...] = ()
    selected_restrictions: tuple[str, ...] = ()
    selected_equipment: tuple[str, ...] = ()
    spicy_level: str = "none"
    mood_tags: tuple[str, ...] = ()
    additional_preferences: str = ""
    cooking_time_minutes: int | None = None
    meal_type: MealType | None = None
    extra_info: str = ""
    portions: int = 1
    meal_name: str = ""
    exclude_names: frozenset[str] = field(default_factory=frozenset)

    def with_excluded(self, names: Iterable[str]) -> "SuggestionRequest":
        """Return a copy whose exclude set also contains ``names``."""
        return replace(self, exclude_names=self.exclude_names | frozenset(names))


class MealSuggestion(BaseModel):
    """A single suggested meal from a suggestion batch."""

    name: str = Field(min_length=1)
    description: str = ""
    estimated_time: str = ""
    difficulty: Difficulty | None = None
    emoji: str = ""
    calories: int | None = Field(default=None, ge=0)
    protein: int | None = Field(default=None, ge=0)


class MealSuggestionBatch(BaseModel):
    """Structured output for a batch of suggestions."""

    suggestions: list[MealSuggestion]
