"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from what2eat.adapters.openai_generation_client import OpenAIGenerationClient
from what2eat.adapters.supabase_grocery_repository import SupabaseGroceryRepository
from what2eat.adapters.supabase_preference_repository import (
    SupabasePreferenceRepository,
)
from what2eat.adapters.supabase_recipe_repository import (
    SupabaseMealPlanRepository,
    SupabaseRecipeRepository,
)
from what2eat.adapters.supabase_snapshot_repository import SupabaseSnapshotRepository
from what2eat.config import Settings
from what2eat.services.generation import GenerationService
from what2eat.services.grocery import GroceryListService
from what2eat.services.ingredients import IngredientExtractor
from what2eat.services.meal_plans import MealPlanService
from what2eat.services.preferences import PreferenceResolver
from what2eat.services.recipes import RecipeSaveService
from what2eat.services.suggestions import SuggestionService
from what2eat.services.vision import ImageIngredientService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    preference_resolver: PreferenceResolver
    generation_service: GenerationService
    suggestion_service: SuggestionService
    ingredient_extractor: IngredientExtractor
    recipe_save_service: RecipeSaveService
    meal_plan_service: MealPlanService
    grocery_service: GroceryListService
    image_ingredient_service: ImageIngredientService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    preference_repository = SupabasePreferenceRepository(supabase_client)
    recipe_repository = SupabaseRecipeRepository(supabase_client)
    meal_plan_repository = SupabaseMealPlanRepository(supabase_client)
    grocery_repository = SupabaseGroceryRepository(supabase_client)

    openai_client = OpenAIGenerationClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
    )
    generation_service = GenerationService(
        client=openai_client,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
    )
    suggestion_service = SuggestionService(
        generation=generation_service,
        suggestion_temperature=resolved_settings.suggestion_temperature,
        quick_search_temperature=resolved_settings.quick_search_temperature,
        recipe_temperature=resolved_settings.recipe_temperature,
        max_excluded_names=resolved_settings.max_excluded_names,
    )
    recipe_save_service = RecipeSaveService(
        recipes=recipe_repository, meal_plans=meal_plan_repository
    )
    meal_plan_service = MealPlanService(
        generation=generation_service,
        recipe_saver=recipe_save_service,
        recipes=recipe_repository,
        meal_plans=meal_plan_repository,
        recipe_temperature=resolved_settings.recipe_temperature,
    )

    image_ingredient_service = ImageIngredientService(
        client=openai_client,
        model=resolved_settings.vision_model,
        snapshots=SupabaseSnapshotRepository(
            supabase_client, bucket=resolved_settings.snapshot_bucket
        ),
        temperature=resolved_settings.vision_temperature,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        preference_resolver=PreferenceResolver(preference_repository),
        generation_service=generation_service,
        suggestion_service=suggestion_service,
        ingredient_extractor=IngredientExtractor(generation_service),
        recipe_save_service=recipe_save_service,
        meal_plan_service=meal_plan_service,
        grocery_service=GroceryListService(grocery_repository),
        image_ingredient_service=image_ingredient_service,
        close_resources=close_resources,
    )
