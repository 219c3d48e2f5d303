"""Multi-day meal plan generation, batch saving and daily totals."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta

from what2eat.domain.meal_plans import (
    MealPlanProposal,
    MealPlanRequest,
    NutritionTotals,
    PlannedMeal,
    PlanProgress,
    PlanSaveResult,
)
from what2eat.domain.preferences import UserPreferenceProfile
from what2eat.domain.recipes import SaveOutcome
from what2eat.domain.suggestions import MealSuggestion
from what2eat.errors import (
    AuthenticationError,
    GenerationError,
    NotFoundError,
    ValidationError,
)
from what2eat.services.generation import MEAL_PLAN_SCHEMA, GenerationService, TextStream
from what2eat.services.prompts import (
    MEAL_PLAN_SYSTEM_PROMPT,
    build_meal_plan_prompt,
    build_planned_recipe_prompt,
    build_planned_recipe_system_prompt,
)
from what2eat.services.recipes import (
    MealPlanRepository,
    RecipeRepository,
    RecipeSaveService,
)

_logger = logging.getLogger(__name__)

MAX_PLAN_DAYS = 14

ProgressCallback = Callable[[PlanProgress], None]


@dataclass
class MealPlanService:
    """Plans several days of meals and saves them one at a time."""

    generation: GenerationService
    recipe_saver: RecipeSaveService
    recipes: RecipeRepository
    meal_plans: MealPlanRepository
    recipe_temperature: float | None = 0.7

    async def propose_plan(
        self,
        request: MealPlanRequest,
        profile: UserPreferenceProfile | None = None,
    ) -> MealPlanProposal:
        """Generate a day-by-day plan of meal ideas."""
        if not 1 <= request.days <= MAX_PLAN_DAYS:
            raise ValidationError(f"Days must be between 1 and {MAX_PLAN_DAYS}")
        if request.meals_per_day == 0:
            raise ValidationError("Select at least one meal type")
        proposal = await self.generation.generate(
            prompt=build_meal_plan_prompt(request, profile),
            model_type=MealPlanProposal,
            schema=MEAL_PLAN_SCHEMA,
            schema_name="meal_plan",
            system_prompt=MEAL_PLAN_SYSTEM_PROMPT,
        )
        _logger.info(
            "Proposed meal plan: days=%s meals=%s",
            len(proposal.days),
            proposal.total_meals,
        )
        return proposal

    def stream_planned_recipe(
        self, meal: PlannedMeal, meal_type: str | None = None
    ) -> TextStream:
        """Start streaming the full recipe for one planned meal."""
        return self.generation.stream(
            prompt=build_planned_recipe_prompt(meal, meal_type or meal.type),
            system_prompt=build_planned_recipe_system_prompt(meal),
            temperature=self.recipe_temperature,
        )

    async def generate_and_save_plan(
        self,
        user_id: str | None,
        proposal: MealPlanProposal,
        start_date: date,
        on_progress: ProgressCallback | None = None,
    ) -> PlanSaveResult:
        """Generate and save every planned meal, strictly one after another.

        A meal whose recipe cannot be generated is logged and skipped without
        advancing the progress counter.
        """
        if not user_id:
            raise AuthenticationError("Not authenticated")
        total = proposal.total_meals
        completed = 0
        outcomes: list[SaveOutcome] = []
        skipped: list[str] = []
        for day in proposal.days:
            target_date = start_date + timedelta(days=day.day_index)
            for meal in day.meals:
                try:
                    text = await self.stream_planned_recipe(meal).collect()
                except GenerationError:
                    _logger.warning(
                        "Failed to generate recipe for %s", meal.name, exc_info=True
                    )
                    skipped.append(meal.name)
                    continue
                outcome = self.recipe_saver.save_recipe(
                    user_id,
                    _as_suggestion(meal),
                    text,
                    meal.type,
                    target_date,
                )
                outcomes.append(outcome)
                completed += 1
                if on_progress is not None:
                    on_progress(PlanProgress(current=completed, total=total))
        return PlanSaveResult(
            total=total, completed=completed, outcomes=outcomes, skipped=skipped
        )

    def today_nutrition(
        self, user_id: str | None, today: date | None = None
    ) -> NutritionTotals:
        """Return recipe macros times servings for the day's plan."""
        if not user_id:
            raise AuthenticationError("Not authenticated")
        plan = self.meal_plans.find_meal_plan(user_id, today or date.today())
        if plan is None:
            return NutritionTotals()
        items = self.meal_plans.list_meal_plan_items(plan.id)
        recipe_ids = [item.recipe_id for item in items if item.recipe_id is not None]
        if not recipe_ids:
            return NutritionTotals()
        nutrition = self.recipes.get_recipe_nutrition(recipe_ids)
        calories = protein = carbs = fat = 0.0
        for item in items:
            values = nutrition.get(item.recipe_id) if item.recipe_id else None
            if values is None:
                continue
            servings = item.servings or 1
            calories += (values.calories or 0) * servings
            protein += (values.protein or 0) * servings
            carbs += (values.carbs or 0) * servings
            fat += (values.fat or 0) * servings
        return NutritionTotals(calories=calories, protein=protein, carbs=carbs, fat=fat)

    def delete_item(self, user_id: str | None, item_id: int) -> None:
        """Delete a plan item after checking the plan belongs to the user."""
        if not user_id:
            raise AuthenticationError("Not authenticated")
        item = self.meal_plans.get_meal_plan_item(item_id)
        if item is None:
            raise NotFoundError("Meal not found")
        plan = self.meal_plans.get_meal_plan(item.meal_plan_id)
        if plan is None or plan.user_id != user_id:
            raise NotFoundError("Meal not found")
        self.meal_plans.delete_meal_plan_item(item_id)
        _logger.info("Deleted meal plan item %s", item_id)


def _as_suggestion(meal: PlannedMeal) -> MealSuggestion:
    return MealSuggestion(
        name=meal.name,
        description=meal.description,
        estimated_time=meal.estimated_time,
        difficulty=meal.difficulty,
        emoji=meal.emoji,
        calories=meal.estimated_calories,
        protein=meal.estimated_protein,
    )
