"""Ingredient extraction from recipe text, with pantry matching."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from what2eat.domain.ingredients import (
    ExtractedIngredient,
    IngredientList,
    OwnedIngredient,
)
from what2eat.errors import GenerationError
from what2eat.services.generation import INGREDIENTS_SCHEMA, GenerationService
from what2eat.services.prompts import build_ingredient_extraction_prompt

_logger = logging.getLogger(__name__)


@dataclass
class IngredientExtractor:
    """Best-effort structured ingredient list for a recipe.

    A blank description short-circuits to an empty list and generation
    failures are logged and converted to an empty list; callers treat the
    result as an annotation, never as a blocker.
    """

    generation: GenerationService
    temperature: float | None = None

    async def extract(self, name: str, description: str) -> list[ExtractedIngredient]:
        """Return the ingredients found in ``description``."""
        if not description or not description.strip():
            return []
        prompt = build_ingredient_extraction_prompt(
            name.strip() or "Meal", description.strip()
        )
        try:
            result = await self.generation.generate(
                prompt=prompt,
                model_type=IngredientList,
                schema=INGREDIENTS_SCHEMA,
                schema_name="ingredient_list",
                temperature=self.temperature,
            )
        except GenerationError:
            _logger.warning("Ingredient extraction failed for %s", name, exc_info=True)
            return []
        _logger.info(
            "Extracted ingredients: meal=%s count=%s", name, len(result.ingredients)
        )
        return result.ingredients


def mark_owned(
    ingredients: Iterable[ExtractedIngredient], owned_names: Iterable[str]
) -> list[OwnedIngredient]:
    """Flag ingredients the user already has.

    Names match case-insensitively when either one contains the other, so
    "chicken" in the pantry covers "chicken breast" and vice versa.
    """
    owned = [name.strip().lower() for name in owned_names if name and name.strip()]
    marked: list[OwnedIngredient] = []
    for ingredient in ingredients:
        name = ingredient.name.strip().lower()
        has_it = any(name in item or item in name for item in owned)
        marked.append(OwnedIngredient(ingredient=ingredient, user_has_it=has_it))
    return marked


def default_shopping_selection(
    ingredients: Iterable[OwnedIngredient],
) -> list[ExtractedIngredient]:
    """Return the ingredients to pre-select for shopping."""
    return [item.ingredient for item in ingredients if not item.user_has_it]
