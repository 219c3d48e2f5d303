"""Pydantic models for HTTP request bodies."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from what2eat.domain.grocery import GroceryItemInput
from what2eat.domain.meal_plans import MealPlanProposal, MealPlanRequest, PlannedMeal
from what2eat.domain.suggestions import (
    FlowType,
    IngredientSource,
    MealSuggestion,
    MealType,
    SuggestionRequest,
)


class MealSuggestionsBody(BaseModel):
    """Wizard payload for suggestions or a full recipe."""

    flow_type: FlowType
    ingredient_source: IngredientSource | None = None
    ingredients: str = ""
    selected_cuisines: list[str] = Field(default_factory=list)
    selected_restrictions: list[str] = Field(default_factory=list)
    selected_equipment: list[str] = Field(default_factory=list)
    spicy_level: str = "none"
    quick_preferences: list[str] = Field(default_factory=list)
    additional_preferences: str = ""
    cooking_time: int | None = Field(default=None, ge=0)
    meal_type: MealType | None = None
    extra_info: str = ""
    portions: int = Field(default=1, ge=1)
    meal_name: str = ""
    mode: Literal["suggestions", "full-recipe"] = "suggestions"
    selected_meal: MealSuggestion | None = None
    exclude_meals: list[str] = Field(default_factory=list)

    def to_request(self) -> SuggestionRequest:
        """Convert the payload into a suggestion request."""
        return SuggestionRequest(
            flow_type=self.flow_type,
            ingredient_source=self.ingredient_source,
            ingredients=self.ingredients,
            selected_cuisines=tuple(self.selected_cuisines),
            selected_restrictions=tuple(self.selected_restrictions),
            selected_equipment=tuple(self.selected_equipment),
            spicy_level=self.spicy_level,
            mood_tags=tuple(self.quick_preferences),
            additional_preferences=self.additional_preferences,
            cooking_time_minutes=self.cooking_time,
            meal_type=self.meal_type,
            extra_info=self.extra_info,
            portions=self.portions,
            meal_name=self.meal_name,
            exclude_names=frozenset(self.exclude_meals),
        )


class QuickSearchBody(BaseModel):
    """Free-text search payload."""

    query: str
    mode: Literal["suggestions", "full-recipe"] = "suggestions"
    selected_meal: MealSuggestion | None = None
    exclude_meals: list[str] = Field(default_factory=list)


class RecipeIngredientsBody(BaseModel):
    """Payload for a structured recipe."""

    meal_name: str
    portions: int = Field(default=1, ge=1)
    selected_restrictions: list[str] = Field(default_factory=list)
    selected_cuisines: list[str] = Field(default_factory=list)
    selected_equipment: list[str] = Field(default_factory=list)
    spicy_level: str | None = None


class MealIngredientsBody(BaseModel):
    """Payload for ingredient extraction."""

    name: str = ""
    description: str = ""


class SaveRecipeBody(BaseModel):
    """Payload for saving a generated recipe."""

    meal: MealSuggestion
    full_recipe: str
    meal_type: MealType
    plan_date: date | None = None


class MealPlanGenerateBody(BaseModel):
    """Payload for proposing a multi-day plan."""

    days: int
    include_breakfast: bool = True
    include_lunch: bool = True
    include_dinner: bool = True
    include_snacks: bool = False
    cuisines: list[str] = Field(default_factory=list)
    restrictions: list[str] = Field(default_factory=list)

    def to_request(self) -> MealPlanRequest:
        """Convert the payload into a plan request."""
        return MealPlanRequest(
            days=self.days,
            include_breakfast=self.include_breakfast,
            include_lunch=self.include_lunch,
            include_dinner=self.include_dinner,
            include_snacks=self.include_snacks,
            cuisines=tuple(self.cuisines),
            restrictions=tuple(self.restrictions),
        )


class MealPlanRecipeBody(BaseModel):
    """Payload for streaming one planned meal's recipe."""

    meal: PlannedMeal
    meal_type: MealType | None = None


class MealPlanSaveBody(BaseModel):
    """Payload for generating and saving an accepted plan."""

    plan: MealPlanProposal
    start_date: date


class GroceryItemBody(BaseModel):
    """A grocery item in a request."""

    name: str
    quantity: float | None = None
    unit: str | None = None

    def to_input(self) -> GroceryItemInput:
        """Convert to the service input type."""
        return GroceryItemInput(name=self.name, quantity=self.quantity, unit=self.unit)


class GroceryListBody(BaseModel):
    """Payload for adding items to a grocery list."""

    title: str = "Shopping List"
    items: list[GroceryItemBody] = Field(default_factory=list)
    for_date: date | None = None
    meal_plan_id: int | None = None


class GroceryListPatchBody(BaseModel):
    """Payload for grocery list actions."""

    action: Literal["toggle-item", "complete-list", "delete-list"]
    item_id: int | None = None
    list_id: int | None = None


class AnalyzeImageBody(BaseModel):
    """Photo to scan for ingredients, as a base64 data URL."""

    image: str = ""
    save_to_storage: bool = False
