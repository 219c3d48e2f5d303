"""Supabase repository for user preference profiles."""

from dataclasses import dataclass

from supabase import Client

from what2eat.domain.preferences import (
    NutritionProfileRow,
    PreferenceLink,
    UserPreferenceRow,
)
from what2eat.services.preferences import PreferenceRepository

# link -> (link table, id column, lookup table, label column)
_LINKS: dict[str, tuple[str, str, str, str]] = {
    "cuisines": ("user_favorite_cuisines", "cuisine_id", "cuisines", "name"),
    "dietary_restrictions": (
        "user_dietary_restrictions",
        "restriction_id",
        "dietary_restrictions",
        "label",
    ),
    "kitchen_equipment": (
        "user_kitchen_equipment",
        "equipment_id",
        "kitchen_equipment",
        "label",
    ),
    "flavors": ("user_flavor_preferences", "flavor_id", "flavor_profiles", "label"),
}


@dataclass
class SupabasePreferenceRepository(PreferenceRepository):
    """Supabase implementation for preference lookups."""

    client: Client

    def get_nutrition_profile(self, user_id: str) -> NutritionProfileRow | None:
        """Return the user's nutrition profile row."""
        response = (
            self.client.table("nutrition_profiles")
            .select(
                "cooking_skill, calorie_target, protein_target_g, carbs_target_g, "
                "fat_target_g, budget_level, primary_goal"
            )
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return NutritionProfileRow(
            cooking_skill=row.get("cooking_skill"),
            calorie_target=_optional_int(row.get("calorie_target")),
            protein_target_g=_optional_int(row.get("protein_target_g")),
            carbs_target_g=_optional_int(row.get("carbs_target_g")),
            fat_target_g=_optional_int(row.get("fat_target_g")),
            budget_level=row.get("budget_level"),
            primary_goal=row.get("primary_goal"),
        )

    def get_user_preferences(self, user_id: str) -> UserPreferenceRow | None:
        """Return the user's general preference row."""
        response = (
            self.client.table("user_preferences")
            .select("max_cooking_time_minutes, ai_tone")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserPreferenceRow(
            max_cooking_time_minutes=_optional_int(row.get("max_cooking_time_minutes")),
            ai_tone=row.get("ai_tone"),
        )

    def list_linked_ids(self, user_id: str, link: PreferenceLink) -> list[int]:
        """Return lookup ids the user has selected for ``link``."""
        table, column, _, _ = _LINKS[link]
        response = (
            self.client.table(table).select(column).eq("user_id", user_id).execute()
        )
        return [
            int(row[column])
            for row in response.data or []
            if row.get(column) is not None
        ]

    def get_labels(self, link: PreferenceLink) -> dict[int, str]:
        """Return the id-to-label lookup for ``link``."""
        _, _, lookup_table, label_column = _LINKS[link]
        response = (
            self.client.table(lookup_table).select(f"id, {label_column}").execute()
        )
        return {
            int(row["id"]): row[label_column]
            for row in response.data or []
            if row.get(label_column)
        }

    def list_food_dislikes(self, user_id: str) -> list[str]:
        """Return free-text food dislikes."""
        response = (
            self.client.table("user_food_dislikes")
            .select("food_name")
            .eq("user_id", user_id)
            .execute()
        )
        return [
            row["food_name"] for row in response.data or [] if row.get("food_name")
        ]


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)
