"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, StreamingResponse

from what2eat.api.models import (
    AnalyzeImageBody,
    GroceryListBody,
    GroceryListPatchBody,
    MealIngredientsBody,
    MealPlanGenerateBody,
    MealPlanRecipeBody,
    MealPlanSaveBody,
    MealSuggestionsBody,
    QuickSearchBody,
    RecipeIngredientsBody,
    SaveRecipeBody,
)
from what2eat.app_logging import configure_logging
from what2eat.config import parse_user_id_header
from what2eat.containers import AppContainer
from what2eat.domain.recipes import (
    RecipeSavedUnscheduled,
    RecipeSaveFailed,
    RecipeScheduled,
    SaveOutcome,
)
from what2eat.errors import (
    AuthenticationError,
    GenerationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    What2EatError,
)
from what2eat.services.generation import TextStream
from what2eat.services.ingredients import default_shopping_selection, mark_owned

_ERROR_STATUS: list[tuple[type[What2EatError], int]] = [
    (AuthenticationError, 401),
    (ValidationError, 400),
    (NotFoundError, 404),
    (GenerationError, 502),
    (PersistenceError, 500),
]


def current_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """Return the caller id forwarded by the auth layer, if any."""
    return parse_user_id_header(x_user_id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(What2EatError)
    async def handle_app_error(request: Request, exc: What2EatError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=status_code)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/meal-suggestions", response_model=None)
    async def meal_suggestions(
        body: MealSuggestionsBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object] | StreamingResponse:
        """Return suggestions, or stream the full recipe."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.preference_resolver.resolve(user_id)
        suggestion_request = body.to_request()
        service = state_container.suggestion_service
        if body.flow_type == "what-to-cook" and body.mode == "suggestions":
            suggestions = await service.get_suggestions(
                suggestion_request, profile=profile
            )
            return {"suggestions": [item.model_dump() for item in suggestions]}
        stream = service.get_full_recipe(
            suggestion_request, body.selected_meal, profile
        )
        return await _stream_response(stream)

    @app.post("/quick-search", response_model=None)
    async def quick_search(
        body: QuickSearchBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object] | StreamingResponse:
        """Search meals by free text, or stream the chosen recipe."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.preference_resolver.resolve(user_id)
        service = state_container.suggestion_service
        if body.mode == "full-recipe":
            stream = service.quick_recipe(body.query, body.selected_meal, profile)
            return await _stream_response(stream)
        suggestions = await service.quick_search(
            body.query, profile, exclude_names=body.exclude_meals
        )
        return {"suggestions": [item.model_dump() for item in suggestions]}

    @app.post("/recipe-ingredients")
    async def recipe_ingredients(
        body: RecipeIngredientsBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Generate a structured recipe with its ingredient list."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.preference_resolver.resolve(user_id)
        recipe = await state_container.suggestion_service.structured_recipe(
            body.meal_name,
            body.portions,
            restrictions=body.selected_restrictions,
            cuisines=body.selected_cuisines,
            equipment=body.selected_equipment,
            spicy_level=body.spicy_level,
            profile=profile,
        )
        return {"recipe": recipe.model_dump()}

    @app.post("/analyze-image")
    async def analyze_image(
        body: AnalyzeImageBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Detect ingredients in a fridge or pantry photo."""
        state_container: AppContainer = request.app.state.container
        analysis = await state_container.image_ingredient_service.analyze(
            body.image, user_id=user_id, save_to_storage=body.save_to_storage
        )
        return {
            "ingredients": analysis.names,
            "detailed_ingredients": [
                item.model_dump() for item in analysis.ingredients
            ],
            "snapshot_id": analysis.snapshot_id,
        }

    @app.post("/meal-ingredients")
    async def meal_ingredients(
        body: MealIngredientsBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Extract a shopping list from recipe text and mark owned items."""
        state_container: AppContainer = request.app.state.container
        owned = state_container.grocery_service.owned_ingredients(user_id)
        ingredients = await state_container.ingredient_extractor.extract(
            body.name, body.description
        )
        marked = mark_owned(ingredients, owned)
        return {
            "ingredients": [item.model_dump() for item in marked],
            "to_buy": [item.name for item in default_shopping_selection(marked)],
        }

    @app.post("/recipes", response_model=None)
    async def save_recipe(
        body: SaveRecipeBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> JSONResponse:
        """Save a generated recipe and schedule it on the meal plan."""
        state_container: AppContainer = request.app.state.container
        outcome = state_container.recipe_save_service.save_recipe(
            user_id, body.meal, body.full_recipe, body.meal_type, body.plan_date
        )
        status_code = 500 if isinstance(outcome, RecipeSaveFailed) else 200
        return JSONResponse(_outcome_payload(outcome), status_code=status_code)

    @app.post("/meal-plan/generate")
    async def generate_meal_plan(
        body: MealPlanGenerateBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Propose a multi-day meal plan."""
        state_container: AppContainer = request.app.state.container
        if not user_id:
            raise AuthenticationError("Not authenticated")
        profile = state_container.preference_resolver.resolve(user_id)
        proposal = await state_container.meal_plan_service.propose_plan(
            body.to_request(), profile
        )
        return {"plan": proposal.model_dump()}

    @app.post("/meal-plan/recipe", response_model=None)
    async def meal_plan_recipe(
        body: MealPlanRecipeBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> StreamingResponse:
        """Stream the full recipe for one planned meal."""
        state_container: AppContainer = request.app.state.container
        if not user_id:
            raise AuthenticationError("Not authenticated")
        stream = state_container.meal_plan_service.stream_planned_recipe(
            body.meal, body.meal_type
        )
        return await _stream_response(stream)

    @app.post("/meal-plan/save")
    async def save_meal_plan(
        body: MealPlanSaveBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Generate and save every meal of an accepted plan."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.meal_plan_service.generate_and_save_plan(
            user_id, body.plan, body.start_date
        )
        return {
            "total": result.total,
            "completed": result.completed,
            "skipped": result.skipped,
            "outcomes": [_outcome_payload(outcome) for outcome in result.outcomes],
        }

    @app.delete("/meal-plan-items/{item_id}")
    async def delete_meal_plan_item(
        item_id: int,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, str]:
        """Remove a meal from the user's plan."""
        state_container: AppContainer = request.app.state.container
        state_container.meal_plan_service.delete_item(user_id, item_id)
        return {"status": "ok"}

    @app.get("/today-nutrition")
    async def today_nutrition(
        request: Request,
        day: date | None = None,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, int]:
        """Return planned nutrition totals for a day."""
        state_container: AppContainer = request.app.state.container
        totals = state_container.meal_plan_service.today_nutrition(user_id, day)
        return {
            "calories": round(totals.calories),
            "protein": round(totals.protein),
            "carbs": round(totals.carbs),
            "fat": round(totals.fat),
        }

    @app.post("/grocery-lists")
    async def add_grocery_items(
        body: GroceryListBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Add items to the active grocery list for a date."""
        state_container: AppContainer = request.app.state.container
        result = state_container.grocery_service.add_items(
            user_id,
            body.title,
            [item.to_input() for item in body.items],
            for_date=body.for_date,
            meal_plan_id=body.meal_plan_id,
        )
        return {
            "list_id": result.grocery_list_id,
            "item_count": result.item_count,
            "items_saved": result.items_saved,
            "created_list": result.created_list,
        }

    @app.get("/grocery-lists")
    async def list_grocery_lists(
        request: Request,
        limit: int = 10,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Return the user's open grocery lists with items."""
        state_container: AppContainer = request.app.state.container
        return {"lists": state_container.grocery_service.list_open(user_id, limit)}

    @app.patch("/grocery-lists")
    async def update_grocery_list(
        body: GroceryListPatchBody,
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, object]:
        """Toggle an item, complete a list or delete a list."""
        service = request.app.state.container.grocery_service
        if body.action == "toggle-item":
            if body.item_id is None:
                raise ValidationError("item_id is required")
            return {"is_checked": service.toggle_item(user_id, body.item_id)}
        if body.list_id is None:
            raise ValidationError("list_id is required")
        if body.action == "complete-list":
            service.complete_list(user_id, body.list_id)
        else:
            service.delete_list(user_id, body.list_id)
        return {"status": "ok"}

    @app.get("/owned-ingredients")
    async def owned_ingredients(
        request: Request,
        user_id: str | None = Depends(current_user_id),
    ) -> dict[str, list[str]]:
        """Return names of checked items on open grocery lists."""
        state_container: AppContainer = request.app.state.container
        return {
            "ingredients": state_container.grocery_service.owned_ingredients(user_id)
        }

    return app


def _status_for(exc: What2EatError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def _stream_response(stream: TextStream) -> StreamingResponse:
    # The first chunk is awaited here so early failures map to an error status.
    first = await anext(stream, None)

    async def body() -> AsyncIterator[str]:
        try:
            if first is not None:
                yield first
            async for chunk in stream:
                yield chunk
        finally:
            await stream.aclose()

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")


def _outcome_payload(outcome: SaveOutcome) -> dict[str, object]:
    if isinstance(outcome, RecipeScheduled):
        return {
            "status": "scheduled",
            "recipe_id": outcome.recipe_id,
            "meal_plan_id": outcome.meal_plan_id,
            "meal_plan_item_id": outcome.meal_plan_item_id,
        }
    if isinstance(outcome, RecipeSavedUnscheduled):
        return {
            "status": "saved_unscheduled",
            "recipe_id": outcome.recipe_id,
            "reason": outcome.reason,
        }
    return {"status": "failed", "error": outcome.reason}
