"""Preference profile resolution."""

import logging
from dataclasses import dataclass
from typing import Protocol

from what2eat.domain.preferences import (
    NutritionProfileRow,
    PreferenceLink,
    UserPreferenceProfile,
    UserPreferenceRow,
)

_logger = logging.getLogger(__name__)


class PreferenceRepository(Protocol):
    """Persistence interface for user preferences and lookup tables."""

    def get_nutrition_profile(self, user_id: str) -> NutritionProfileRow | None:
        """Return the user's nutrition profile row."""

    def get_user_preferences(self, user_id: str) -> UserPreferenceRow | None:
        """Return the user's general preference row."""

    def list_linked_ids(self, user_id: str, link: PreferenceLink) -> list[int]:
        """Return lookup ids the user has selected for ``link``."""

    def get_labels(self, link: PreferenceLink) -> dict[int, str]:
        """Return the id-to-label lookup for ``link``."""

    def list_food_dislikes(self, user_id: str) -> list[str]:
        """Return free-text food dislikes."""


@dataclass
class PreferenceResolver:
    """Builds a flattened preference profile; failures degrade to None."""

    repository: PreferenceRepository

    def resolve(self, user_id: str | None) -> UserPreferenceProfile | None:
        """Return the user's profile, or None when it cannot be loaded."""
        if not user_id:
            return None
        try:
            return self._load(user_id)
        except Exception:
            _logger.exception("Failed to load preferences for user %s", user_id)
            return None

    def _load(self, user_id: str) -> UserPreferenceProfile:
        nutrition = self.repository.get_nutrition_profile(user_id)
        preferences = self.repository.get_user_preferences(user_id)
        if nutrition is None:
            nutrition = NutritionProfileRow()
        if preferences is None:
            preferences = UserPreferenceRow()
        return UserPreferenceProfile(
            cuisines=self._labels(user_id, "cuisines"),
            dietary_restrictions=self._labels(user_id, "dietary_restrictions"),
            kitchen_equipment=self._labels(user_id, "kitchen_equipment"),
            flavor_preferences=self._labels(user_id, "flavors"),
            food_dislikes=[
                name.strip()
                for name in self.repository.list_food_dislikes(user_id)
                if name and name.strip()
            ],
            cooking_skill=nutrition.cooking_skill,
            budget_level=nutrition.budget_level,
            primary_goal=nutrition.primary_goal,
            calorie_target=nutrition.calorie_target,
            protein_target_g=nutrition.protein_target_g,
            carbs_target_g=nutrition.carbs_target_g,
            fat_target_g=nutrition.fat_target_g,
            ai_tone=preferences.ai_tone,
            max_cooking_time_minutes=preferences.max_cooking_time_minutes,
        )

    def _labels(self, user_id: str, link: PreferenceLink) -> list[str]:
        ids = self.repository.list_linked_ids(user_id, link)
        if not ids:
            return []
        lookup = self.repository.get_labels(link)
        return [lookup[item_id] for item_id in ids if item_id in lookup]
