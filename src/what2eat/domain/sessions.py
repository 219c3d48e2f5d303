"""Suggestion wizard states, events and the pure transition function.

Every state is an immutable value. ``transition`` never performs I/O; the
driver in ``what2eat.services.sessions`` runs the generating states and feeds
their results back in as events.
"""

from dataclasses import dataclass, field, replace
from datetime import date

from what2eat.domain.recipes import (
    RecipeSavedUnscheduled,
    RecipeSaveFailed,
    RecipeScheduled,
    SaveOutcome,
)
from what2eat.domain.suggestions import (
    FlowType,
    IngredientSource,
    MealSuggestion,
    MealType,
    SuggestionRequest,
)
from what2eat.errors import InvalidTransitionError, ValidationError

# States


@dataclass(frozen=True)
class Initial:
    """Nothing chosen yet."""

    exclude_names: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ChoosingIngredientSource:
    """What-to-cook flow: use what I have or go shopping."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class EnteringIngredients:
    """Free-text ingredient entry."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class ChoosingPreferences:
    """Cuisines, restrictions, equipment, spice and mood."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class EnteringDetails:
    """Cooking time, meal type and extra notes."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class EnteringPortions:
    """Short flow: the user already knows what to cook."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class GeneratingSuggestions:
    """A suggestion batch is being generated."""

    draft: SuggestionRequest


@dataclass(frozen=True)
class Picking:
    """Suggestions are shown; the user picks one or asks for more."""

    draft: SuggestionRequest
    suggestions: tuple[MealSuggestion, ...]


@dataclass(frozen=True)
class GeneratingRecipe:
    """A full recipe is streaming in.

    ``meal`` is None on the short flow, where the recipe is generated straight
    from the draft's meal name.
    """

    draft: SuggestionRequest
    meal: MealSuggestion | None = None
    suggestions: tuple[MealSuggestion, ...] = ()


@dataclass(frozen=True)
class RecipeReady:
    """The recipe text is complete and can be saved."""

    draft: SuggestionRequest
    meal: MealSuggestion
    recipe_text: str
    suggestions: tuple[MealSuggestion, ...] = ()
    from_suggestions: bool = True
    save_error: str | None = None


@dataclass(frozen=True)
class Saving:
    """The recipe is being persisted."""

    draft: SuggestionRequest
    meal: MealSuggestion
    recipe_text: str
    meal_type: MealType
    plan_date: date | None
    suggestions: tuple[MealSuggestion, ...] = ()
    from_suggestions: bool = True


@dataclass(frozen=True)
class Failed:
    """A generation call failed; the user may retry or go back."""

    draft: SuggestionRequest
    stage: str
    message: str
    meal: MealSuggestion | None = None
    suggestions: tuple[MealSuggestion, ...] = ()


@dataclass(frozen=True)
class Closed:
    """Terminal state. ``outcome`` is None when the user closed without saving."""

    outcome: SaveOutcome | None = None


SessionState = (
    Initial
    | ChoosingIngredientSource
    | EnteringIngredients
    | ChoosingPreferences
    | EnteringDetails
    | EnteringPortions
    | GeneratingSuggestions
    | Picking
    | GeneratingRecipe
    | RecipeReady
    | Saving
    | Failed
    | Closed
)

# Events


@dataclass(frozen=True)
class ChooseFlow:
    flow_type: FlowType


@dataclass(frozen=True)
class ChooseIngredientSource:
    source: IngredientSource


@dataclass(frozen=True)
class SubmitIngredients:
    ingredients: str


@dataclass(frozen=True)
class SubmitPreferences:
    cuisines: tuple[str, ...] = ()
    restrictions: tuple[str, ...] = ()
    equipment: tuple[str, ...] = ()
    spicy_level: str = "none"
    mood_tags: tuple[str, ...] = ()
    additional_preferences: str = ""


@dataclass(frozen=True)
class SubmitDetails:
    cooking_time_minutes: int | None = None
    meal_type: MealType | None = None
    extra_info: str = ""


@dataclass(frozen=True)
class SubmitPortions:
    meal_name: str
    portions: int = 1


@dataclass(frozen=True)
class SuggestionsReady:
    suggestions: tuple[MealSuggestion, ...]


@dataclass(frozen=True)
class RequestMoreSuggestions:
    pass


@dataclass(frozen=True)
class PickSuggestion:
    index: int


@dataclass(frozen=True)
class RecipeCompleted:
    text: str


@dataclass(frozen=True)
class GenerationFailed:
    message: str


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Save:
    meal_type: MealType
    plan_date: date | None = None


@dataclass(frozen=True)
class SaveFinished:
    outcome: SaveOutcome


@dataclass(frozen=True)
class Close:
    pass


SessionEvent = (
    ChooseFlow
    | ChooseIngredientSource
    | SubmitIngredients
    | SubmitPreferences
    | SubmitDetails
    | SubmitPortions
    | SuggestionsReady
    | RequestMoreSuggestions
    | PickSuggestion
    | RecipeCompleted
    | GenerationFailed
    | Retry
    | Back
    | Save
    | SaveFinished
    | Close
)

GENERATING_STATES = (GeneratingSuggestions, GeneratingRecipe)


def is_generating(state: SessionState) -> bool:
    """Return True for states that own in-flight model work."""
    return isinstance(state, GENERATING_STATES)


def exclude_names_of(state: SessionState) -> frozenset[str]:
    """Return the names already shown in this session."""
    if isinstance(state, Initial):
        return state.exclude_names
    if isinstance(state, Closed):
        return frozenset()
    return state.draft.exclude_names


def transition(  # noqa: PLR0911, PLR0912
    state: SessionState, event: SessionEvent
) -> SessionState:
    """Return the state that follows ``event``; raise if the event is invalid."""
    if isinstance(state, Closed):
        raise _invalid(state, event)
    if isinstance(event, Close):
        return Closed()
    if isinstance(event, Back):
        return _back(state)

    if isinstance(state, Initial) and isinstance(event, ChooseFlow):
        draft = SuggestionRequest(
            flow_type=event.flow_type, exclude_names=state.exclude_names
        )
        if event.flow_type == "what-to-cook":
            return ChoosingIngredientSource(draft)
        return EnteringPortions(draft)

    if isinstance(state, ChoosingIngredientSource) and isinstance(
        event, ChooseIngredientSource
    ):
        return EnteringIngredients(
            replace(state.draft, ingredient_source=event.source)
        )

    if isinstance(state, EnteringIngredients) and isinstance(
        event, SubmitIngredients
    ):
        return ChoosingPreferences(
            replace(state.draft, ingredients=event.ingredients.strip())
        )

    if isinstance(state, ChoosingPreferences) and isinstance(
        event, SubmitPreferences
    ):
        return EnteringDetails(
            replace(
                state.draft,
                selected_cuisines=tuple(event.cuisines),
                selected_restrictions=tuple(event.restrictions),
                selected_equipment=tuple(event.equipment),
                spicy_level=event.spicy_level,
                mood_tags=tuple(event.mood_tags),
                additional_preferences=event.additional_preferences.strip(),
            )
        )

    if isinstance(state, EnteringDetails) and isinstance(event, SubmitDetails):
        return GeneratingSuggestions(
            replace(
                state.draft,
                cooking_time_minutes=event.cooking_time_minutes,
                meal_type=event.meal_type,
                extra_info=event.extra_info.strip(),
            )
        )

    if isinstance(state, EnteringPortions) and isinstance(event, SubmitPortions):
        meal_name = event.meal_name.strip()
        if not meal_name:
            raise ValidationError("Meal name is required")
        if event.portions < 1:
            raise ValidationError("Portions must be at least 1")
        return GeneratingRecipe(
            replace(state.draft, meal_name=meal_name, portions=event.portions)
        )

    if isinstance(state, GeneratingSuggestions):
        if isinstance(event, SuggestionsReady):
            shown = [suggestion.name for suggestion in event.suggestions]
            return Picking(
                draft=state.draft.with_excluded(shown),
                suggestions=tuple(event.suggestions),
            )
        if isinstance(event, GenerationFailed):
            return Failed(state.draft, stage="suggestions", message=event.message)

    if isinstance(state, Picking):
        if isinstance(event, RequestMoreSuggestions):
            return GeneratingSuggestions(state.draft)
        if isinstance(event, PickSuggestion):
            if not 0 <= event.index < len(state.suggestions):
                raise ValidationError(f"No suggestion at index {event.index}")
            return GeneratingRecipe(
                draft=state.draft,
                meal=state.suggestions[event.index],
                suggestions=state.suggestions,
            )

    if isinstance(state, GeneratingRecipe):
        if isinstance(event, RecipeCompleted):
            return RecipeReady(
                draft=state.draft,
                meal=state.meal or MealSuggestion(name=state.draft.meal_name),
                recipe_text=event.text,
                suggestions=state.suggestions,
                from_suggestions=state.meal is not None,
            )
        if isinstance(event, GenerationFailed):
            return Failed(
                state.draft,
                stage="recipe",
                message=event.message,
                meal=state.meal,
                suggestions=state.suggestions,
            )

    if isinstance(state, Failed) and isinstance(event, Retry):
        if state.stage == "suggestions":
            return GeneratingSuggestions(state.draft)
        return GeneratingRecipe(state.draft, state.meal, state.suggestions)

    if isinstance(state, RecipeReady) and isinstance(event, Save):
        return Saving(
            draft=state.draft,
            meal=state.meal,
            recipe_text=state.recipe_text,
            meal_type=event.meal_type,
            plan_date=event.plan_date,
            suggestions=state.suggestions,
            from_suggestions=state.from_suggestions,
        )

    if isinstance(state, Saving) and isinstance(event, SaveFinished):
        if isinstance(event.outcome, RecipeScheduled | RecipeSavedUnscheduled):
            return Closed(outcome=event.outcome)
        if isinstance(event.outcome, RecipeSaveFailed):
            return RecipeReady(
                draft=state.draft,
                meal=state.meal,
                recipe_text=state.recipe_text,
                suggestions=state.suggestions,
                from_suggestions=state.from_suggestions,
                save_error=event.outcome.reason,
            )

    raise _invalid(state, event)


def _back(state: SessionState) -> SessionState:  # noqa: PLR0911
    if isinstance(state, ChoosingIngredientSource):
        return Initial(exclude_names=state.draft.exclude_names)
    if isinstance(state, EnteringIngredients):
        return ChoosingIngredientSource(replace(state.draft, ingredient_source=None))
    if isinstance(state, ChoosingPreferences):
        return EnteringIngredients(state.draft)
    if isinstance(state, EnteringDetails):
        return ChoosingPreferences(state.draft)
    if isinstance(state, EnteringPortions):
        return Initial(exclude_names=state.draft.exclude_names)
    if isinstance(state, GeneratingSuggestions | Picking):
        return EnteringDetails(state.draft)
    if isinstance(state, GeneratingRecipe | RecipeReady):
        return _back_from_recipe(state.draft, state.suggestions)
    if isinstance(state, Failed):
        if state.stage == "suggestions":
            return EnteringDetails(state.draft)
        return _back_from_recipe(state.draft, state.suggestions)
    raise InvalidTransitionError(f"Cannot go back from {type(state).__name__}")


def _back_from_recipe(
    draft: SuggestionRequest, suggestions: tuple[MealSuggestion, ...]
) -> SessionState:
    if draft.flow_type == "what-to-cook" and suggestions:
        return Picking(draft=draft, suggestions=suggestions)
    if draft.flow_type == "what-to-cook":
        return EnteringDetails(draft)
    return EnteringPortions(draft)


def _invalid(state: SessionState, event: SessionEvent) -> InvalidTransitionError:
    return InvalidTransitionError(
        f"{type(event).__name__} is not valid in {type(state).__name__}"
    )
