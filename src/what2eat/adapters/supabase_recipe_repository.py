"""Supabase repositories for recipes and meal plans."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from what2eat.domain.meal_plans import MealPlanItemRecord, MealPlanRecord
from what2eat.domain.recipes import ParsedNutrition, RecipeDraft
from what2eat.services.recipes import MealPlanRepository, RecipeRepository

_ITEM_COLUMNS = "id, meal_plan_id, recipe_id, meal_type, servings, position"


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase implementation for recipe persistence."""

    client: Client

    def create_recipe(self, user_id: str, draft: RecipeDraft) -> int:
        """Insert a recipe row and return its id."""
        payload = {
            "user_id": user_id,
            "title": draft.title,
            "description": draft.description,
            "source": draft.source,
            "cook_time_minutes": draft.cook_time_minutes,
            "difficulty": draft.difficulty,
            "total_calories": draft.nutrition.calories,
            "protein_g": draft.nutrition.protein,
            "carbs_g": draft.nutrition.carbs,
            "fat_g": draft.nutrition.fat,
            "is_public": draft.is_public,
        }
        response = self.client.table("recipes").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create recipe")
        return int(response.data[0]["id"])

    def get_recipe_nutrition(self, recipe_ids: list[int]) -> dict[int, ParsedNutrition]:
        """Return stored nutrition keyed by recipe id."""
        if not recipe_ids:
            return {}
        response = (
            self.client.table("recipes")
            .select("id, total_calories, protein_g, carbs_g, fat_g")
            .in_("id", list(recipe_ids))
            .execute()
        )
        return {
            int(row["id"]): ParsedNutrition(
                calories=_optional_int(row.get("total_calories")),
                protein=_optional_int(row.get("protein_g")),
                carbs=_optional_int(row.get("carbs_g")),
                fat=_optional_int(row.get("fat_g")),
            )
            for row in response.data or []
        }


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase implementation for meal plans and plan items."""

    client: Client

    def find_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord | None:
        """Return the user's plan for a date."""
        response = (
            self.client.table("meal_plans")
            .select("id, user_id, plan_date")
            .eq("user_id", user_id)
            .eq("plan_date", plan_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_plan(response.data[0])

    def get_meal_plan(self, meal_plan_id: int) -> MealPlanRecord | None:
        """Return a plan by id."""
        response = (
            self.client.table("meal_plans")
            .select("id, user_id, plan_date")
            .eq("id", meal_plan_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_plan(response.data[0])

    def create_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord:
        """Insert a plan row."""
        payload = {"user_id": user_id, "plan_date": plan_date.isoformat()}
        response = self.client.table("meal_plans").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal plan")
        row = response.data[0]
        return MealPlanRecord(
            id=int(row["id"]),
            user_id=str(row.get("user_id") or user_id),
            plan_date=_parse_date(row.get("plan_date")) or plan_date,
        )

    def list_item_positions(self, meal_plan_id: int, meal_type: str) -> list[int]:
        """Return existing positions within a plan's meal type group."""
        response = (
            self.client.table("meal_plan_items")
            .select("position")
            .eq("meal_plan_id", meal_plan_id)
            .eq("meal_type", meal_type)
            .execute()
        )
        return [
            int(row["position"])
            for row in response.data or []
            if row.get("position") is not None
        ]

    def create_meal_plan_item(  # noqa: PLR0913
        self,
        meal_plan_id: int,
        recipe_id: int,
        meal_type: str,
        servings: int,
        position: int,
    ) -> MealPlanItemRecord:
        """Insert a plan item row."""
        payload = {
            "meal_plan_id": meal_plan_id,
            "recipe_id": recipe_id,
            "meal_type": meal_type,
            "servings": servings,
            "position": position,
        }
        response = self.client.table("meal_plan_items").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal plan item")
        return _to_item({**payload, **response.data[0]})

    def list_meal_plan_items(self, meal_plan_id: int) -> list[MealPlanItemRecord]:
        """Return all items on a plan."""
        response = (
            self.client.table("meal_plan_items")
            .select(_ITEM_COLUMNS)
            .eq("meal_plan_id", meal_plan_id)
            .execute()
        )
        return [_to_item(row) for row in response.data or []]

    def get_meal_plan_item(self, item_id: int) -> MealPlanItemRecord | None:
        """Return a plan item by id."""
        response = (
            self.client.table("meal_plan_items")
            .select(_ITEM_COLUMNS)
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_item(response.data[0])

    def delete_meal_plan_item(self, item_id: int) -> None:
        """Delete a plan item."""
        self.client.table("meal_plan_items").delete().eq("id", item_id).execute()


def _to_plan(row: dict[str, object]) -> MealPlanRecord:
    return MealPlanRecord(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        plan_date=_parse_date(row.get("plan_date")) or date.today(),
    )


def _to_item(row: dict[str, object]) -> MealPlanItemRecord:
    recipe_id = row.get("recipe_id")
    servings = row.get("servings")
    position = row.get("position")
    return MealPlanItemRecord(
        id=int(row["id"]),
        meal_plan_id=int(row["meal_plan_id"]),
        recipe_id=int(recipe_id) if recipe_id is not None else None,
        meal_type=row["meal_type"],
        servings=int(servings) if servings is not None else 1,
        position=int(position) if position is not None else None,
    )


def _parse_date(value: object) -> date | None:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(round(float(value)))
