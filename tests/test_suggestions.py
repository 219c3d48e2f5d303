"""Tests for the suggestion service."""

import asyncio

import pytest

from what2eat.domain.preferences import UserPreferenceProfile
from what2eat.domain.suggestions import MealSuggestion, SuggestionRequest
from what2eat.errors import GenerationError, ValidationError
from what2eat.services.generation import GenerationService
from what2eat.services.prompts import EXCLUDE_MARKER, RESTRICTION_MARKER
from what2eat.services.suggestions import SuggestionService
from tests.conftest import FakeGenerativeModelClient, suggestion, suggestion_batch


def _wizard_request(**overrides: object) -> SuggestionRequest:
    values: dict[str, object] = {
        "flow_type": "what-to-cook",
        "ingredient_source": "use-my-ingredients",
        "ingredients": "chicken, rice, broccoli",
        "selected_restrictions": ("vegetarian",),
        "meal_type": "dinner",
    }
    values.update(overrides)
    return SuggestionRequest(**values)  # type: ignore[arg-type]


def test_suggestions_prompt_carries_restriction_and_flow(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(suggestion_batch("Veggie Fried Rice", "Broccoli Soup"))

    batch = asyncio.run(suggestion_service.get_suggestions(_wizard_request()))

    prompt = model_client.calls[0]["prompt"]
    assert [item.name for item in batch] == ["Veggie Fried Rice", "Broccoli Soup"]
    assert f"{RESTRICTION_MARKER}: vegetarian." in prompt
    assert "Ingredients I have available: chicken, rice, broccoli" in prompt
    assert "suggest 2-3 DIVERSE" in prompt
    assert EXCLUDE_MARKER not in prompt
    assert model_client.calls[0]["schema_name"] == "meal_suggestions"
    assert model_client.calls[0]["temperature"] == 0.9


def test_suggestions_merge_profile_restrictions_and_tone(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(suggestion_batch("Lentil Dal", "Chickpea Salad"))
    profile = UserPreferenceProfile(
        dietary_restrictions=["vegetarian", "gluten-free"], ai_tone="minimal"
    )

    asyncio.run(
        suggestion_service.get_suggestions(_wizard_request(), profile=profile)
    )

    call = model_client.calls[0]
    assert f"{RESTRICTION_MARKER}: vegetarian, gluten-free." in call["prompt"]
    assert "Be concise and to the point." in call["system_prompt"]


def test_suggestions_drop_already_shown_names(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(
        suggestion_batch("Pad Thai", "green curry", "Tofu Tacos")
    )
    request = _wizard_request(exclude_names=frozenset({"Pad Thai"}))

    batch = asyncio.run(
        suggestion_service.get_suggestions(request, exclude_names=["Green Curry"])
    )

    assert [item.name for item in batch] == ["Tofu Tacos"]
    assert f"{EXCLUDE_MARKER}: Green Curry, Pad Thai." in model_client.calls[0][
        "prompt"
    ]


def test_suggestions_drop_duplicates_within_batch(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(suggestion_batch("Ramen", "ramen ", "Pho"))

    batch = asyncio.run(suggestion_service.get_suggestions(_wizard_request()))

    assert [item.name for item in batch] == ["Ramen", "Pho"]


def test_suggestions_fail_when_everything_was_shown(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(suggestion_batch("Ramen", "Pho"))

    with pytest.raises(GenerationError):
        asyncio.run(
            suggestion_service.get_suggestions(
                _wizard_request(), exclude_names=["ramen", "PHO"]
            )
        )


@pytest.mark.parametrize("count", [1, 4])
def test_suggestions_enforce_batch_size(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
    count: int,
) -> None:
    model_client.objects.append(
        suggestion_batch(*[f"Dish {index}" for index in range(count)])
    )

    with pytest.raises(GenerationError, match="Expected 2-3"):
        asyncio.run(suggestion_service.get_suggestions(_wizard_request()))


def test_suggestions_require_what_to_cook_flow(
    suggestion_service: SuggestionService,
) -> None:
    request = SuggestionRequest(flow_type="ingredients-needed", meal_name="Soup")

    with pytest.raises(ValidationError):
        asyncio.run(suggestion_service.get_suggestions(request))


def test_excluded_names_capped_in_prompt(
    model_client: FakeGenerativeModelClient,
) -> None:
    model_client.objects.append(suggestion_batch("Dish X", "Dish Y"))
    service = SuggestionService(
        generation=GenerationService(client=model_client), max_excluded_names=2
    )

    batch = asyncio.run(
        service.get_suggestions(
            _wizard_request(), exclude_names=["Dish C", "Dish A", "Dish B"]
        )
    )

    assert len(batch) == 2
    assert f"{EXCLUDE_MARKER}: Dish A, Dish B." in model_client.calls[0]["prompt"]


def test_full_recipe_streams_selected_meal(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.streams.append(["## Pad Thai\n", "Cook noodles."])
    meal = MealSuggestion(name="Pad Thai", description="Sweet and sour noodles")

    text = asyncio.run(
        suggestion_service.get_full_recipe(
            _wizard_request(portions=3), meal
        ).collect()
    )

    prompt = model_client.calls[0]["prompt"]
    assert text == "## Pad Thai\nCook noodles."
    assert 'complete recipe for "Pad Thai"' in prompt
    assert "scale the recipe for 3 portions" in prompt
    assert f"{RESTRICTION_MARKER}: vegetarian." in prompt
    assert model_client.calls[0]["temperature"] == 0.7


def test_full_recipe_requires_meal_name(suggestion_service: SuggestionService) -> None:
    request = SuggestionRequest(flow_type="ingredients-needed", meal_name="  ")

    with pytest.raises(ValidationError):
        suggestion_service.get_full_recipe(request)


def test_quick_search_uses_wider_batch(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(
        suggestion_batch("Margherita Pizza", "Calzone", "Focaccia", "Stromboli")
    )

    batch = asyncio.run(
        suggestion_service.quick_search(
            "  something cheesy ", exclude_names=["Calzone"]
        )
    )

    call = model_client.calls[0]
    assert [item.name for item in batch] == [
        "Margherita Pizza",
        "Focaccia",
        "Stromboli",
    ]
    assert "something cheesy" in call["prompt"]
    assert call["schema"]["properties"]["suggestions"]["minItems"] == 3
    assert call["temperature"] == 0.8


def test_quick_search_requires_query(suggestion_service: SuggestionService) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(suggestion_service.quick_search("   "))


def test_quick_recipe_streams(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.streams.append(["## Calzone"])
    meal = MealSuggestion.model_validate(suggestion("Calzone"))

    text = asyncio.run(
        suggestion_service.quick_recipe("pizza night", meal).collect()
    )

    assert text == "## Calzone"
    assert "Calzone" in model_client.calls[0]["prompt"]


def test_structured_recipe_merges_profile_restrictions(
    model_client: FakeGenerativeModelClient,
    suggestion_service: SuggestionService,
) -> None:
    model_client.objects.append(
        {
            "name": "Mushroom Risotto",
            "description": "Creamy rice",
            "cooking_time_minutes": 40,
            "difficulty": "Medium",
            "servings": 2,
            "ingredients": [
                {
                    "name": "arborio rice",
                    "quantity": 200,
                    "unit": "g",
                    "category": "grains",
                    "is_optional": False,
                }
            ],
            "instructions": "Stir patiently.",
            "nutrition": {
                "calories_kcal": 520,
                "protein_grams": 12,
                "carbs_grams": 80,
                "fat_grams": 14,
            },
        }
    )
    profile = UserPreferenceProfile(dietary_restrictions=["vegetarian"])

    recipe = asyncio.run(
        suggestion_service.structured_recipe(
            "Mushroom Risotto", 2, restrictions=["nut-free"], profile=profile
        )
    )

    assert recipe.servings == 2
    assert recipe.ingredients[0].name == "arborio rice"
    assert recipe.nutrition.calories_kcal == 520
    prompt = model_client.calls[0]["prompt"]
    assert f"{RESTRICTION_MARKER}: nut-free, vegetarian." in prompt
    assert model_client.calls[0]["schema_name"] == "structured_recipe"


@pytest.mark.parametrize(("name", "portions"), [("", 1), ("Risotto", 0)])
def test_structured_recipe_validates_input(
    suggestion_service: SuggestionService, name: str, portions: int
) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(suggestion_service.structured_recipe(name, portions))
