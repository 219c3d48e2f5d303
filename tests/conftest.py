"""Shared test fixtures."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from datetime import date

import pytest

from what2eat.config import Settings
from what2eat.containers import AppContainer
from what2eat.domain.grocery import (
    GroceryItemInput,
    GroceryItemRecord,
    GroceryListRecord,
    GroceryListStatus,
)
from what2eat.domain.meal_plans import MealPlanItemRecord, MealPlanRecord
from what2eat.domain.preferences import (
    NutritionProfileRow,
    PreferenceLink,
    UserPreferenceRow,
)
from what2eat.domain.recipes import ParsedNutrition, RecipeDraft
from what2eat.domain.vision import DetectedIngredient
from what2eat.services.generation import GenerationService, GenerativeModelClient
from what2eat.services.grocery import GroceryListService, GroceryRepository
from what2eat.services.ingredients import IngredientExtractor
from what2eat.services.meal_plans import MealPlanService
from what2eat.services.preferences import PreferenceRepository, PreferenceResolver
from what2eat.services.recipes import (
    MealPlanRepository,
    RecipeRepository,
    RecipeSaveService,
)
from what2eat.services.suggestions import SuggestionService
from what2eat.services.vision import (
    ImageIngredientService,
    SnapshotRepository,
    VisionClient,
)

USER_ID = "user-1"

RECIPE_TEXT = """## Veggie Stir Fry

### Ingredients
- 200g tofu
- 1 bell pepper

### Nutrition Facts (per serving)
- **Calories**: 450
- **Protein**: 22g
- **Carbohydrates**: 40g
- **Fat**: 18g
"""


def suggestion(name: str, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": name,
        "description": f"A tasty {name.lower()}",
        "estimated_time": "25 minutes",
        "difficulty": "Easy",
        "emoji": "🍲",
        "calories": 500,
        "protein": 20,
    }
    payload.update(overrides)
    return payload


def suggestion_batch(*names: str) -> dict[str, object]:
    return {"suggestions": [suggestion(name) for name in names]}


@dataclass
class FakeGenerativeModelClient(GenerativeModelClient):
    """Returns queued objects and streams; records every call."""

    objects: list[object] = field(default_factory=list)
    streams: list[object] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)
    closed_streams: int = 0

    async def generate_object(  # noqa: PLR0913
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "schema": schema,
                "schema_name": schema_name,
                "temperature": temperature,
            }
        )
        result = self.objects.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def stream_text(
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        temperature: float | None,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
            }
        )
        chunks = self.streams.pop(0)
        try:
            if isinstance(chunks, Exception):
                raise chunks
            for chunk in chunks:
                if isinstance(chunk, Exception):
                    raise chunk
                yield chunk
        finally:
            self.closed_streams += 1


@dataclass
class FakeVisionClient(VisionClient):
    """Returns queued vision results; records every call."""

    results: list[object] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        image_data_url: str,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "model": model,
                "image_data_url": image_data_url,
                "prompt": prompt,
                "schema_name": schema_name,
                "temperature": temperature,
            }
        )
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@dataclass
class InMemorySnapshotRepository(SnapshotRepository):
    photos: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    snapshots: dict[int, tuple[str, str, dict[str, object]]] = field(
        default_factory=dict
    )
    items: list[tuple[int, str, float]] = field(default_factory=list)
    fail_upload: bool = False
    fail_items: bool = False
    next_id: int = 1

    def upload_photo(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise RuntimeError("Bucket not found")
        self.photos[path] = (data, content_type)

    def create_snapshot(
        self, user_id: str, object_path: str, detected_raw: dict[str, object]
    ) -> int:
        snapshot_id = self.next_id
        self.next_id += 1
        self.snapshots[snapshot_id] = (user_id, object_path, detected_raw)
        return snapshot_id

    def add_snapshot_items(
        self, snapshot_id: int, ingredients: list[DetectedIngredient]
    ) -> None:
        if self.fail_items:
            raise RuntimeError("Failed to save fridge snapshot items")
        self.items.extend(
            (snapshot_id, item.name, item.confidence) for item in ingredients
        )


@dataclass
class InMemoryPreferenceRepository(PreferenceRepository):
    nutrition: dict[str, NutritionProfileRow] = field(default_factory=dict)
    preferences: dict[str, UserPreferenceRow] = field(default_factory=dict)
    links: dict[tuple[str, str], list[int]] = field(default_factory=dict)
    labels: dict[str, dict[int, str]] = field(default_factory=dict)
    dislikes: dict[str, list[str]] = field(default_factory=dict)
    fail: bool = False

    def get_nutrition_profile(self, user_id: str) -> NutritionProfileRow | None:
        if self.fail:
            raise RuntimeError("database unavailable")
        return self.nutrition.get(user_id)

    def get_user_preferences(self, user_id: str) -> UserPreferenceRow | None:
        return self.preferences.get(user_id)

    def list_linked_ids(self, user_id: str, link: PreferenceLink) -> list[int]:
        return list(self.links.get((user_id, link), []))

    def get_labels(self, link: PreferenceLink) -> dict[int, str]:
        return dict(self.labels.get(link, {}))

    def list_food_dislikes(self, user_id: str) -> list[str]:
        return list(self.dislikes.get(user_id, []))


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    recipes: dict[int, tuple[str, RecipeDraft]] = field(default_factory=dict)
    nutrition: dict[int, ParsedNutrition] = field(default_factory=dict)
    fail_create: bool = False
    next_id: int = 1

    def create_recipe(self, user_id: str, draft: RecipeDraft) -> int:
        if self.fail_create:
            raise RuntimeError("Failed to create recipe")
        recipe_id = self.next_id
        self.next_id += 1
        self.recipes[recipe_id] = (user_id, draft)
        self.nutrition[recipe_id] = draft.nutrition
        return recipe_id

    def get_recipe_nutrition(self, recipe_ids: list[int]) -> dict[int, ParsedNutrition]:
        return {
            recipe_id: self.nutrition[recipe_id]
            for recipe_id in recipe_ids
            if recipe_id in self.nutrition
        }


@dataclass
class InMemoryMealPlanRepository(MealPlanRepository):
    plans: dict[int, MealPlanRecord] = field(default_factory=dict)
    items: dict[int, MealPlanItemRecord] = field(default_factory=dict)
    fail_create_plan: bool = False
    fail_create_item: bool = False
    next_plan_id: int = 1
    next_item_id: int = 1

    def find_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord | None:
        for plan in self.plans.values():
            if plan.user_id == user_id and plan.plan_date == plan_date:
                return plan
        return None

    def get_meal_plan(self, meal_plan_id: int) -> MealPlanRecord | None:
        return self.plans.get(meal_plan_id)

    def create_meal_plan(self, user_id: str, plan_date: date) -> MealPlanRecord:
        if self.fail_create_plan:
            raise RuntimeError("Failed to create meal plan")
        plan = MealPlanRecord(
            id=self.next_plan_id, user_id=user_id, plan_date=plan_date
        )
        self.next_plan_id += 1
        self.plans[plan.id] = plan
        return plan

    def list_item_positions(self, meal_plan_id: int, meal_type: str) -> list[int]:
        return [
            item.position
            for item in self.items.values()
            if item.meal_plan_id == meal_plan_id
            and item.meal_type == meal_type
            and item.position is not None
        ]

    def create_meal_plan_item(  # noqa: PLR0913
        self,
        meal_plan_id: int,
        recipe_id: int,
        meal_type: str,
        servings: int,
        position: int,
    ) -> MealPlanItemRecord:
        if self.fail_create_item:
            raise RuntimeError("Failed to create meal plan item")
        item = MealPlanItemRecord(
            id=self.next_item_id,
            meal_plan_id=meal_plan_id,
            recipe_id=recipe_id,
            meal_type=meal_type,
            servings=servings,
            position=position,
        )
        self.next_item_id += 1
        self.items[item.id] = item
        return item

    def list_meal_plan_items(self, meal_plan_id: int) -> list[MealPlanItemRecord]:
        return [
            item for item in self.items.values() if item.meal_plan_id == meal_plan_id
        ]

    def get_meal_plan_item(self, item_id: int) -> MealPlanItemRecord | None:
        return self.items.get(item_id)

    def delete_meal_plan_item(self, item_id: int) -> None:
        self.items.pop(item_id, None)


@dataclass
class InMemoryGroceryRepository(GroceryRepository):
    lists: dict[int, GroceryListRecord] = field(default_factory=dict)
    items: dict[int, GroceryItemRecord] = field(default_factory=dict)
    meal_plan_links: dict[int, int | None] = field(default_factory=dict)
    fail_create_list: bool = False
    fail_add_items: bool = False
    next_list_id: int = 1
    next_item_id: int = 1

    def find_active_list(
        self, user_id: str, for_date: date | None
    ) -> GroceryListRecord | None:
        for grocery_list in self.lists.values():
            if (
                grocery_list.user_id == user_id
                and grocery_list.status == "active"
                and grocery_list.for_date == for_date
            ):
                return grocery_list
        return None

    def create_list(
        self,
        user_id: str,
        title: str,
        for_date: date | None,
        meal_plan_id: int | None,
    ) -> int:
        if self.fail_create_list:
            raise RuntimeError("Failed to create grocery list")
        list_id = self.next_list_id
        self.next_list_id += 1
        self.lists[list_id] = GroceryListRecord(
            id=list_id,
            user_id=user_id,
            title=title,
            status="active",
            for_date=for_date,
        )
        self.meal_plan_links[list_id] = meal_plan_id
        return list_id

    def add_items(self, grocery_list_id: int, items: list[GroceryItemInput]) -> None:
        if self.fail_add_items:
            raise RuntimeError("Failed to add grocery items")
        for item in items:
            record = GroceryItemRecord(
                id=self.next_item_id,
                grocery_list_id=grocery_list_id,
                item_name=item.name.strip(),
                quantity=item.quantity,
                unit=item.unit,
                is_checked=False,
            )
            self.next_item_id += 1
            self.items[record.id] = record

    def list_lists(
        self, user_id: str, statuses: tuple[str, ...], limit: int
    ) -> list[GroceryListRecord]:
        matching = [
            replace(
                grocery_list,
                items=[
                    item
                    for item in self.items.values()
                    if item.grocery_list_id == grocery_list.id
                ],
            )
            for grocery_list in self.lists.values()
            if grocery_list.user_id == user_id and grocery_list.status in statuses
        ]
        matching.sort(key=lambda grocery_list: grocery_list.id, reverse=True)
        return matching[:limit]

    def get_list(self, grocery_list_id: int) -> GroceryListRecord | None:
        return self.lists.get(grocery_list_id)

    def get_item(self, item_id: int) -> GroceryItemRecord | None:
        return self.items.get(item_id)

    def set_item_checked(self, item_id: int, is_checked: bool) -> None:
        self.items[item_id] = replace(self.items[item_id], is_checked=is_checked)

    def set_list_status(self, grocery_list_id: int, status: GroceryListStatus) -> None:
        self.lists[grocery_list_id] = replace(
            self.lists[grocery_list_id], status=status
        )

    def delete_list(self, grocery_list_id: int) -> None:
        self.lists.pop(grocery_list_id, None)
        for item_id in [
            item.id
            for item in self.items.values()
            if item.grocery_list_id == grocery_list_id
        ]:
            del self.items[item_id]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def model_client() -> FakeGenerativeModelClient:
    return FakeGenerativeModelClient()


@pytest.fixture
def generation(model_client: FakeGenerativeModelClient) -> GenerationService:
    return GenerationService(client=model_client, timeout_seconds=5.0)


@pytest.fixture
def preference_repository() -> InMemoryPreferenceRepository:
    return InMemoryPreferenceRepository()


@pytest.fixture
def recipe_repository() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def meal_plan_repository() -> InMemoryMealPlanRepository:
    return InMemoryMealPlanRepository()


@pytest.fixture
def grocery_repository() -> InMemoryGroceryRepository:
    return InMemoryGroceryRepository()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def snapshot_repository() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository()


@pytest.fixture
def image_service(
    vision_client: FakeVisionClient, snapshot_repository: InMemorySnapshotRepository
) -> ImageIngredientService:
    return ImageIngredientService(
        client=vision_client, model="gpt-4o", snapshots=snapshot_repository
    )


@pytest.fixture
def save_service(
    recipe_repository: InMemoryRecipeRepository,
    meal_plan_repository: InMemoryMealPlanRepository,
) -> RecipeSaveService:
    return RecipeSaveService(
        recipes=recipe_repository, meal_plans=meal_plan_repository
    )


@pytest.fixture
def suggestion_service(generation: GenerationService) -> SuggestionService:
    return SuggestionService(generation=generation)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    generation: GenerationService,
    suggestion_service: SuggestionService,
    save_service: RecipeSaveService,
    preference_repository: InMemoryPreferenceRepository,
    recipe_repository: InMemoryRecipeRepository,
    meal_plan_repository: InMemoryMealPlanRepository,
    grocery_repository: InMemoryGroceryRepository,
    image_service: ImageIngredientService,
) -> AppContainer:
    meal_plan_service = MealPlanService(
        generation=generation,
        recipe_saver=save_service,
        recipes=recipe_repository,
        meal_plans=meal_plan_repository,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        preference_resolver=PreferenceResolver(preference_repository),
        generation_service=generation,
        suggestion_service=suggestion_service,
        ingredient_extractor=IngredientExtractor(generation),
        recipe_save_service=save_service,
        meal_plan_service=meal_plan_service,
        grocery_service=GroceryListService(grocery_repository),
        image_ingredient_service=image_service,
        close_resources=close_resources,
    )
