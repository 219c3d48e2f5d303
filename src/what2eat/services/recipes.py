"""Recipe persistence and meal plan scheduling."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from what2eat.domain.meal_plans import MealPlanItemRecord, MealPlanRecord
from what2eat.domain.recipes import (
    DIFFICULTY_TO_SKILL,
    ParsedNutrition,
    RecipeDraft,
    RecipeSavedUnscheduled,
    RecipeSaveFailed,
    RecipeScheduled,
    SaveOutcome,
    SkillLevel,
)
from what2eat.domain.suggestions import MEAL_TYPES, MealSuggestion
from what2eat.errors import AuthenticationError, ValidationError
from what2eat.services.nutrition import parse_nutrition

_logger = logging.getLogger(__name__)

_FIRST_NUMBER = re.compile(r"(\d+)")


class RecipeRepository(Protocol):
    """Persistence interface for recipes."""

    def create_recipe(self, user_id: str, draft: RecipeDraft) -> int:
        """Insert a recipe row and return its id."""

    def get_recipe_nutrition(self, recipe_ids: list[int]) -> dict[int, ParsedNutrition]:
        """Return stored nutrition keyed by recipe id."""


class MealPlanRepository(Protocol):
    """Persistence interface for meal plans and their items."""

    def find_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord | None:
        """Return the user's plan for a date."""

    def get_meal_plan(self, meal_plan_id: int) -> MealPlanRecord | None:
        """Return a plan by id."""

    def create_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord:
        """Insert a plan row."""

    def list_item_positions(self, meal_plan_id: int, meal_type: str) -> list[int]:
        """Return existing positions within a plan's meal type group."""

    def create_meal_plan_item(  # noqa: PLR0913
        self,
        meal_plan_id: int,
        recipe_id: int,
        meal_type: str,
        servings: int,
        position: int,
    ) -> MealPlanItemRecord:
        """Insert a plan item row."""

    def list_meal_plan_items(self, meal_plan_id: int) -> list[MealPlanItemRecord]:
        """Return all items on a plan."""

    def get_meal_plan_item(self, item_id: int) -> MealPlanItemRecord | None:
        """Return a plan item by id."""

    def delete_meal_plan_item(self, item_id: int) -> None:
        """Delete a plan item."""


@dataclass
class RecipeSaveService:
    """Saves a generated recipe and schedules it on the user's meal plan.

    Only the recipe insert is required. Once it succeeds, failures while
    getting the plan or inserting the plan item degrade to
    ``RecipeSavedUnscheduled`` so the generated recipe is never lost. The plan
    item is inserted last, so it can never point at a missing plan or recipe.
    """

    recipes: RecipeRepository
    meal_plans: MealPlanRepository

    def save_recipe(  # noqa: PLR0913
        self,
        user_id: str | None,
        meal: MealSuggestion,
        full_recipe_text: str,
        meal_type: str,
        plan_date: date | None = None,
        servings: int = 1,
    ) -> SaveOutcome:
        """Persist the recipe, then get-or-create the plan and add the item."""
        if not user_id:
            raise AuthenticationError("Not authenticated")
        if not meal.name.strip():
            raise ValidationError("Meal name is required")
        if meal_type not in MEAL_TYPES:
            raise ValidationError(f"Unknown meal type: {meal_type}")
        target_date = plan_date or date.today()
        draft = build_recipe_draft(meal, full_recipe_text)

        try:
            recipe_id = self.recipes.create_recipe(user_id, draft)
        except Exception as exc:
            _logger.exception("Failed to save recipe %s", draft.title)
            return RecipeSaveFailed(reason=f"Failed to save recipe: {exc}")

        try:
            plan = self.get_or_create_plan(user_id, target_date)
        except Exception:
            _logger.warning(
                "Recipe %s saved but meal plan for %s failed",
                recipe_id,
                target_date,
                exc_info=True,
            )
            return RecipeSavedUnscheduled(
                recipe_id=recipe_id,
                reason="Recipe saved, but the meal plan could not be created",
            )

        try:
            positions = self.meal_plans.list_item_positions(plan.id, meal_type)
            item = self.meal_plans.create_meal_plan_item(
                meal_plan_id=plan.id,
                recipe_id=recipe_id,
                meal_type=meal_type,
                servings=servings,
                position=next_position(positions),
            )
        except Exception:
            _logger.warning(
                "Recipe %s saved but could not be added to meal plan %s",
                recipe_id,
                plan.id,
                exc_info=True,
            )
            return RecipeSavedUnscheduled(
                recipe_id=recipe_id,
                reason="Recipe saved, but it could not be added to the meal plan",
            )

        _logger.info(
            "Saved recipe %s to meal plan %s as %s", recipe_id, plan.id, meal_type
        )
        return RecipeScheduled(
            recipe_id=recipe_id, meal_plan_id=plan.id, meal_plan_item_id=item.id
        )

    def get_or_create_plan(self, user_id: str, plan_date: date) -> MealPlanRecord:
        """Return the user's plan for ``plan_date``, inserting it when absent."""
        existing = self.meal_plans.find_meal_plan(user_id, plan_date)
        if existing is not None:
            return existing
        return self.meal_plans.create_meal_plan(user_id, plan_date)


def build_recipe_draft(meal: MealSuggestion, full_recipe_text: str) -> RecipeDraft:
    """Map a suggestion and its recipe text onto recipe row values."""
    parsed = parse_nutrition(full_recipe_text)
    if parsed.is_empty():
        _logger.debug("No nutrition facts in recipe text for %s", meal.name)
    nutrition = ParsedNutrition(
        calories=parsed.calories if parsed.calories is not None else meal.calories,
        protein=parsed.protein if parsed.protein is not None else meal.protein,
        carbs=parsed.carbs,
        fat=parsed.fat,
    )
    description = meal.description.strip()
    body = full_recipe_text or ""
    return RecipeDraft(
        title=meal.name.strip(),
        description=f"{description}\n\n{body}" if description else body,
        cook_time_minutes=parse_cook_time(meal.estimated_time),
        difficulty=map_difficulty(meal.difficulty),
        nutrition=nutrition,
    )


def parse_cook_time(estimated_time: str | None) -> int | None:
    """Return the first integer in a free-text time such as "25 minutes"."""
    if not estimated_time:
        return None
    match = _FIRST_NUMBER.search(estimated_time)
    if not match:
        return None
    return int(match.group(1)) or None


def map_difficulty(difficulty: str | None) -> SkillLevel | None:
    """Map Easy/Medium/Hard onto the stored skill level."""
    if not difficulty:
        return None
    return DIFFICULTY_TO_SKILL.get(difficulty.strip().lower())


def next_position(positions: Iterable[int | None]) -> int:
    """Return one past the highest existing position, starting at 1."""
    existing = [position for position in positions if position is not None]
    return max(existing, default=0) + 1
