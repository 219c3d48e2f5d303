"""Domain models for meal plans."""

from dataclasses import dataclass, field
from datetime import date

from pydantic import BaseModel, Field

from what2eat.domain.recipes import SaveOutcome
from what2eat.domain.suggestions import Difficulty, MealType


@dataclass(frozen=True)
class MealPlanRecord:
    """A per-user, per-date meal plan row."""

    id: int
    user_id: str
    plan_date: date


@dataclass(frozen=True)
class MealPlanItemRecord:
    """A recipe scheduled on a meal plan."""

    id: int
    meal_plan_id: int
    recipe_id: int | None
    meal_type: MealType
    servings: int
    position: int | None


@dataclass(frozen=True)
class MealPlanRequest:
    """Inputs for generating a multi-day meal plan."""

    days: int
    include_breakfast: bool = True
    include_lunch: bool = True
    include_dinner: bool = True
    include_snacks: bool = False
    cuisines: tuple[str, ...] = ()
    restrictions: tuple[str, ...] = ()

    @property
    def meal_types(self) -> list[str]:
        """Return requested meal types in display order."""
        types: list[str] = []
        if self.include_breakfast:
            types.append("breakfast")
        if self.include_lunch:
            types.append("lunch")
        if self.include_dinner:
            types.append("dinner")
        if self.include_snacks:
            types.append("1-2 snacks")
        return types

    @property
    def meals_per_day(self) -> int:
        """Return the number of meal slots per day."""
        return len(self.meal_types)


class PlannedMeal(BaseModel):
    """A meal placed on a day of a proposed plan."""

    name: str = Field(min_length=1)
    description: str = ""
    type: MealType
    estimated_time: str = ""
    difficulty: Difficulty = "Easy"
    emoji: str = ""
    estimated_calories: int | None = Field(default=None, ge=0)
    estimated_protein: int | None = Field(default=None, ge=0)


class PlannedDay(BaseModel):
    """One day of a proposed plan."""

    day_index: int = Field(ge=0)
    meals: list[PlannedMeal]


class MealPlanProposal(BaseModel):
    """Structured output for a multi-day plan."""

    days: list[PlannedDay]

    @property
    def total_meals(self) -> int:
        """Return the total number of meals across all days."""
        return sum(len(day.meals) for day in self.days)


@dataclass(frozen=True)
class PlanProgress:
    """Monotonic progress counter for batch plan saving."""

    current: int
    total: int


@dataclass(frozen=True)
class NutritionTotals:
    """Summed nutrition for a day's plan."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


@dataclass(frozen=True)
class PlanSaveResult:
    """Outcome of generating and saving every meal in a proposal."""

    total: int
    completed: int
    outcomes: list[SaveOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
