"""Meal suggestion and recipe generation."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from what2eat.domain.preferences import UserPreferenceProfile
from what2eat.domain.recipes import StructuredRecipe
from what2eat.domain.suggestions import (
    MealSuggestion,
    MealSuggestionBatch,
    SuggestionRequest,
)
from what2eat.errors import GenerationError, ValidationError
from what2eat.services.generation import (
    STRUCTURED_RECIPE_SCHEMA,
    GenerationService,
    TextStream,
    suggestions_schema,
)
from what2eat.services.prompts import (
    STRUCTURED_RECIPE_SYSTEM_PROMPT,
    build_full_recipe_prompt,
    build_quick_recipe_prompt,
    build_quick_search_prompt,
    build_structured_recipe_prompt,
    build_suggestions_prompt,
    build_system_prompt,
)

_logger = logging.getLogger(__name__)

WIZARD_BATCH_SIZE = (2, 3)
QUICK_SEARCH_BATCH_SIZE = (3, 5)


@dataclass
class SuggestionService:
    """Turns requests into suggestion batches and recipe streams."""

    generation: GenerationService
    suggestion_temperature: float | None = 0.9
    quick_search_temperature: float | None = 0.8
    recipe_temperature: float | None = 0.7
    max_excluded_names: int | None = None

    async def get_suggestions(
        self,
        request: SuggestionRequest,
        exclude_names: Iterable[str] | None = None,
        profile: UserPreferenceProfile | None = None,
    ) -> list[MealSuggestion]:
        """Return a batch of suggestions that avoids every excluded name."""
        if request.flow_type != "what-to-cook":
            raise ValidationError("Suggestions are only available for what-to-cook")
        excluded = request.exclude_names | frozenset(exclude_names or ())
        low, high = WIZARD_BATCH_SIZE
        prompt = build_suggestions_prompt(
            request,
            profile,
            excluded,
            count=f"{low}-{high}",
            max_excluded=self.max_excluded_names,
        )
        batch = await self.generation.generate(
            prompt=prompt,
            model_type=MealSuggestionBatch,
            schema=suggestions_schema(low, high),
            schema_name="meal_suggestions",
            system_prompt=build_system_prompt(_tone(profile)),
            temperature=self.suggestion_temperature,
        )
        return _accept_batch(batch.suggestions, excluded, low, high)

    def get_full_recipe(
        self,
        request: SuggestionRequest,
        selected_meal: MealSuggestion | None = None,
        profile: UserPreferenceProfile | None = None,
    ) -> TextStream:
        """Start streaming the full markdown recipe."""
        if selected_meal is None and not request.meal_name.strip():
            raise ValidationError("Meal name is required")
        prompt = build_full_recipe_prompt(request, profile, selected_meal)
        return self.generation.stream(
            prompt=prompt,
            system_prompt=build_system_prompt(_tone(profile)),
            temperature=self.recipe_temperature,
        )

    async def quick_search(
        self,
        query: str,
        profile: UserPreferenceProfile | None = None,
        exclude_names: Iterable[str] = (),
    ) -> list[MealSuggestion]:
        """Return suggestions for a free-text food request."""
        cleaned = _require_query(query)
        excluded = frozenset(exclude_names)
        low, high = QUICK_SEARCH_BATCH_SIZE
        _logger.info("Quick search: query=%s profile=%s", cleaned, profile is not None)
        batch = await self.generation.generate(
            prompt=build_quick_search_prompt(
                cleaned, profile, excluded, max_excluded=self.max_excluded_names
            ),
            model_type=MealSuggestionBatch,
            schema=suggestions_schema(low, high),
            schema_name="quick_search_suggestions",
            temperature=self.quick_search_temperature,
        )
        return _accept_batch(batch.suggestions, excluded, low, high)

    def quick_recipe(
        self,
        query: str,
        selected_meal: MealSuggestion | None = None,
        profile: UserPreferenceProfile | None = None,
    ) -> TextStream:
        """Start streaming a recipe for a quick-search result."""
        cleaned = _require_query(query)
        return self.generation.stream(
            prompt=build_quick_recipe_prompt(cleaned, selected_meal),
            system_prompt=build_system_prompt(_tone(profile), profile),
            temperature=self.recipe_temperature,
        )

    async def structured_recipe(  # noqa: PLR0913
        self,
        meal_name: str,
        portions: int = 1,
        *,
        restrictions: Iterable[str] = (),
        cuisines: Iterable[str] = (),
        equipment: Iterable[str] = (),
        spicy_level: str | None = None,
        profile: UserPreferenceProfile | None = None,
    ) -> StructuredRecipe:
        """Generate a complete recipe with a structured ingredient list."""
        if not meal_name or not meal_name.strip():
            raise ValidationError("Meal name is required")
        if portions < 1:
            raise ValidationError("Portions must be at least 1")
        merged = list(restrictions)
        if profile is not None:
            merged.extend(profile.dietary_restrictions)
        prompt = build_structured_recipe_prompt(
            meal_name.strip(),
            portions,
            restrictions=merged,
            cuisines=cuisines,
            equipment=equipment,
            spicy_level=spicy_level,
        )
        recipe = await self.generation.generate(
            prompt=prompt,
            model_type=StructuredRecipe,
            schema=STRUCTURED_RECIPE_SCHEMA,
            schema_name="structured_recipe",
            system_prompt=STRUCTURED_RECIPE_SYSTEM_PROMPT,
            temperature=self.recipe_temperature,
        )
        _logger.info(
            "Generated structured recipe: meal=%s ingredients=%s",
            recipe.name,
            len(recipe.ingredients),
        )
        return recipe


def _accept_batch(
    suggestions: list[MealSuggestion],
    excluded: frozenset[str],
    low: int,
    high: int,
) -> list[MealSuggestion]:
    if not low <= len(suggestions) <= high:
        raise GenerationError(
            f"Expected {low}-{high} suggestions, got {len(suggestions)}"
        )
    seen = {name.strip().lower() for name in excluded}
    fresh: list[MealSuggestion] = []
    for suggestion in suggestions:
        key = suggestion.name.strip().lower()
        if key in seen:
            _logger.warning("Dropping repeated suggestion: %s", suggestion.name)
            continue
        seen.add(key)
        fresh.append(suggestion)
    if not fresh:
        raise GenerationError("Model only returned meals that were already shown")
    return fresh


def _require_query(query: str) -> str:
    cleaned = query.strip() if query else ""
    if not cleaned:
        raise ValidationError("Query is required")
    return cleaned


def _tone(profile: UserPreferenceProfile | None) -> str | None:
    return profile.ai_tone if profile else None
