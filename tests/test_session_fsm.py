"""Tests for the suggestion wizard state machine."""

from datetime import date

import pytest

from what2eat.domain.recipes import (
    RecipeSavedUnscheduled,
    RecipeSaveFailed,
    RecipeScheduled,
)
from what2eat.domain.sessions import (
    Back,
    ChooseFlow,
    ChooseIngredientSource,
    ChoosingIngredientSource,
    ChoosingPreferences,
    Close,
    Closed,
    EnteringDetails,
    EnteringIngredients,
    EnteringPortions,
    Failed,
    GeneratingRecipe,
    GeneratingSuggestions,
    GenerationFailed,
    Initial,
    Picking,
    PickSuggestion,
    RecipeCompleted,
    RecipeReady,
    RequestMoreSuggestions,
    Retry,
    Save,
    SaveFinished,
    Saving,
    SubmitDetails,
    SubmitIngredients,
    SubmitPortions,
    SubmitPreferences,
    SuggestionsReady,
    exclude_names_of,
    is_generating,
    transition,
)
from what2eat.domain.suggestions import MealSuggestion
from what2eat.errors import InvalidTransitionError, ValidationError


def _batch(*names: str) -> tuple[MealSuggestion, ...]:
    return tuple(MealSuggestion(name=name) for name in names)


def _run(state, *events):  # type: ignore[no-untyped-def]
    for event in events:
        state = transition(state, event)
    return state


def _picking() -> Picking:
    state = _run(
        Initial(),
        ChooseFlow("what-to-cook"),
        ChooseIngredientSource("use-my-ingredients"),
        SubmitIngredients(" chicken, rice, broccoli "),
        SubmitPreferences(restrictions=("vegetarian",), spicy_level="mild"),
        SubmitDetails(cooking_time_minutes=30, meal_type="dinner"),
        SuggestionsReady(_batch("Veggie Fried Rice", "Broccoli Soup")),
    )
    assert isinstance(state, Picking)
    return state


def test_long_flow_reaches_closed_after_save() -> None:
    state = _run(
        Initial(),
        ChooseFlow("what-to-cook"),
        ChooseIngredientSource("use-my-ingredients"),
    )
    assert isinstance(state, EnteringIngredients)

    state = _run(
        state,
        SubmitIngredients(" chicken, rice "),
        SubmitPreferences(cuisines=("Thai",), restrictions=("vegetarian",)),
    )
    assert isinstance(state, EnteringDetails)
    assert state.draft.ingredients == "chicken, rice"
    assert state.draft.selected_restrictions == ("vegetarian",)

    state = transition(state, SubmitDetails(meal_type="lunch"))
    assert isinstance(state, GeneratingSuggestions)
    assert is_generating(state)

    state = _run(
        state,
        SuggestionsReady(_batch("Pad Thai", "Green Curry")),
        PickSuggestion(1),
    )
    assert isinstance(state, GeneratingRecipe)
    assert state.meal is not None and state.meal.name == "Green Curry"

    state = _run(
        state, RecipeCompleted("## Green Curry"), Save("lunch", date(2024, 5, 1))
    )
    assert isinstance(state, Saving)
    assert state.meal_type == "lunch"

    outcome = RecipeScheduled(recipe_id=1, meal_plan_id=2, meal_plan_item_id=3)
    state = transition(state, SaveFinished(outcome))
    assert state == Closed(outcome=outcome)


def test_short_flow_builds_meal_from_name() -> None:
    state = _run(Initial(), ChooseFlow("ingredients-needed"))
    assert isinstance(state, EnteringPortions)

    state = _run(
        state, SubmitPortions("  Lasagna ", portions=4), RecipeCompleted("## Lasagna")
    )

    assert isinstance(state, RecipeReady)
    assert state.meal.name == "Lasagna"
    assert state.draft.portions == 4
    assert not state.from_suggestions


@pytest.mark.parametrize(
    "event",
    [SubmitPortions("", portions=2), SubmitPortions("Soup", portions=0)],
)
def test_short_flow_validates_portions(event: SubmitPortions) -> None:
    state = transition(Initial(), ChooseFlow("ingredients-needed"))

    with pytest.raises(ValidationError):
        transition(state, event)


def test_shown_names_grow_monotonically() -> None:
    state = _picking()
    first = exclude_names_of(state)
    assert first == {"Veggie Fried Rice", "Broccoli Soup"}

    state = _run(
        state, RequestMoreSuggestions(), SuggestionsReady(_batch("Tofu Tacos"))
    )
    second = exclude_names_of(state)

    assert second == first | {"Tofu Tacos"}


def test_shown_names_survive_back_navigation() -> None:
    state = _picking()
    shown = exclude_names_of(state)

    for _ in range(5):
        state = transition(state, Back())
    assert isinstance(state, Initial)
    assert state.exclude_names == shown

    state = transition(state, ChooseFlow("what-to-cook"))
    assert state.draft.exclude_names == shown


def test_close_resets_shown_names() -> None:
    state = transition(_picking(), Close())

    assert state == Closed()
    assert exclude_names_of(state) == frozenset()


def test_back_from_picking_returns_to_details() -> None:
    assert isinstance(transition(_picking(), Back()), EnteringDetails)


def test_back_while_generating_suggestions_returns_to_details() -> None:
    state = transition(_picking(), RequestMoreSuggestions())

    back = transition(state, Back())

    assert isinstance(back, EnteringDetails)
    assert back.draft.exclude_names == exclude_names_of(state)


def test_back_from_recipe_returns_to_picking() -> None:
    state = _run(_picking(), PickSuggestion(0))

    back = transition(state, Back())

    assert isinstance(back, Picking)
    assert back.suggestions == _batch("Veggie Fried Rice", "Broccoli Soup")


def test_back_from_short_flow_recipe_returns_to_portions() -> None:
    state = _run(Initial(), ChooseFlow("ingredients-needed"), SubmitPortions("Soup"))

    assert isinstance(transition(state, Back()), EnteringPortions)


def test_back_through_early_steps() -> None:
    state = _run(
        Initial(),
        ChooseFlow("what-to-cook"),
        ChooseIngredientSource("go-shopping"),
        SubmitIngredients("salmon"),
    )
    assert isinstance(state, ChoosingPreferences)

    state = transition(state, Back())
    assert isinstance(state, EnteringIngredients)
    state = transition(state, Back())
    assert isinstance(state, ChoosingIngredientSource)
    assert state.draft.ingredient_source is None


def test_generation_failure_and_retry() -> None:
    state = transition(_picking(), RequestMoreSuggestions())
    failed = transition(state, GenerationFailed("timeout"))

    assert isinstance(failed, Failed)
    assert failed.stage == "suggestions"
    assert isinstance(transition(failed, Retry()), GeneratingSuggestions)
    assert isinstance(transition(failed, Back()), EnteringDetails)


def test_recipe_failure_retry_keeps_meal() -> None:
    state = _run(_picking(), PickSuggestion(1), GenerationFailed("stream reset"))
    assert isinstance(state, Failed)

    retried = transition(state, Retry())

    assert isinstance(retried, GeneratingRecipe)
    assert retried.meal is not None and retried.meal.name == "Broccoli Soup"


def test_pick_rejects_unknown_index() -> None:
    with pytest.raises(ValidationError):
        transition(_picking(), PickSuggestion(5))


def test_failed_save_returns_to_ready_with_error() -> None:
    state = _run(
        _picking(), PickSuggestion(0), RecipeCompleted("## Rice"), Save("dinner")
    )

    state = transition(state, SaveFinished(RecipeSaveFailed(reason="db down")))

    assert isinstance(state, RecipeReady)
    assert state.save_error == "db down"


def test_unscheduled_save_still_closes() -> None:
    state = _run(
        _picking(), PickSuggestion(0), RecipeCompleted("## Rice"), Save("dinner")
    )
    outcome = RecipeSavedUnscheduled(recipe_id=7, reason="plan failed")

    assert transition(state, SaveFinished(outcome)) == Closed(outcome=outcome)


def test_invalid_events_raise() -> None:
    with pytest.raises(InvalidTransitionError):
        transition(Initial(), PickSuggestion(0))
    with pytest.raises(InvalidTransitionError):
        transition(Initial(), Back())
    with pytest.raises(InvalidTransitionError):
        transition(Closed(), Close())
    with pytest.raises(InvalidTransitionError):
        transition(_picking(), Save("dinner"))
