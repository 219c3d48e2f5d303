"""User preference profile models."""

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class UserPreferenceProfile:
    """Flattened, label-resolved preferences for prompt personalization."""

    cuisines: list[str] = field(default_factory=list)
    dietary_restrictions: list[str] = field(default_factory=list)
    kitchen_equipment: list[str] = field(default_factory=list)
    flavor_preferences: list[str] = field(default_factory=list)
    food_dislikes: list[str] = field(default_factory=list)
    cooking_skill: str | None = None
    budget_level: str | None = None
    primary_goal: str | None = None
    calorie_target: int | None = None
    protein_target_g: int | None = None
    carbs_target_g: int | None = None
    fat_target_g: int | None = None
    ai_tone: str | None = None
    max_cooking_time_minutes: int | None = None


PreferenceLink = Literal[
    "cuisines", "dietary_restrictions", "kitchen_equipment", "flavors"
]


@dataclass(frozen=True)
class NutritionProfileRow:
    """Columns read from ``nutrition_profiles``."""

    cooking_skill: str | None = None
    calorie_target: int | None = None
    protein_target_g: int | None = None
    carbs_target_g: int | None = None
    fat_target_g: int | None = None
    budget_level: str | None = None
    primary_goal: str | None = None


@dataclass(frozen=True)
class UserPreferenceRow:
    """Columns read from ``user_preferences``."""

    max_cooking_time_minutes: int | None = None
    ai_tone: str | None = None
