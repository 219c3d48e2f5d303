"""Generative model access in constrained-object and streaming-text modes."""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol, TypeVar

import pydantic

from what2eat.errors import GenerationError

_logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

_DIFFICULTY_ENUM = ["Easy", "Medium", "Hard"]
_MEAL_TYPE_ENUM = ["breakfast", "lunch", "dinner", "snack"]
_CATEGORY_ENUM = [
    "proteins",
    "vegetables",
    "fruits",
    "dairy",
    "grains",
    "oils",
    "spices",
    "condiments",
    "other",
]
_NULLABLE_INT: dict[str, object] = {
    "anyOf": [{"type": "integer", "minimum": 0}, {"type": "null"}]
}
_NULLABLE_NUMBER: dict[str, object] = {
    "anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]
}


def suggestions_schema(min_items: int, max_items: int) -> dict[str, object]:
    """Return the strict JSON schema for a batch of meal suggestions."""
    return {
        "type": "object",
        "properties": {
            "suggestions": {
                "type": "array",
                "minItems": min_items,
                "maxItems": max_items,
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "description": {"type": "string"},
                        "estimated_time": {"type": "string"},
                        "difficulty": {"type": "string", "enum": _DIFFICULTY_ENUM},
                        "emoji": {"type": "string"},
                        "calories": _NULLABLE_INT,
                        "protein": _NULLABLE_INT,
                    },
                    "required": [
                        "name",
                        "description",
                        "estimated_time",
                        "difficulty",
                        "emoji",
                        "calories",
                        "protein",
                    ],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["suggestions"],
        "additionalProperties": False,
    }


_INGREDIENT_ITEM: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "quantity": _NULLABLE_NUMBER,
        "unit": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "category": {"type": "string", "enum": _CATEGORY_ENUM},
        "is_optional": {"type": "boolean"},
    },
    "required": ["name", "quantity", "unit", "category", "is_optional"],
    "additionalProperties": False,
}

INGREDIENTS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"ingredients": {"type": "array", "items": _INGREDIENT_ITEM}},
    "required": ["ingredients"],
    "additionalProperties": False,
}

STRUCTURED_RECIPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "cooking_time_minutes": {"type": "integer", "minimum": 0},
        "difficulty": {"type": "string", "enum": _DIFFICULTY_ENUM},
        "servings": {"type": "integer", "minimum": 1},
        "ingredients": {"type": "array", "items": _INGREDIENT_ITEM},
        "instructions": {"type": "string"},
        "nutrition": {
            "type": "object",
            "properties": {
                "calories_kcal": _NULLABLE_NUMBER,
                "protein_grams": _NULLABLE_NUMBER,
                "carbs_grams": _NULLABLE_NUMBER,
                "fat_grams": _NULLABLE_NUMBER,
            },
            "required": [
                "calories_kcal",
                "protein_grams",
                "carbs_grams",
                "fat_grams",
            ],
            "additionalProperties": False,
        },
    },
    "required": [
        "name",
        "description",
        "cooking_time_minutes",
        "difficulty",
        "servings",
        "ingredients",
        "instructions",
        "nutrition",
    ],
    "additionalProperties": False,
}

MEAL_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "days": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "day_index": {"type": "integer", "minimum": 0},
                    "meals": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "description": {"type": "string"},
                                "type": {"type": "string", "enum": _MEAL_TYPE_ENUM},
                                "estimated_time": {"type": "string"},
                                "difficulty": {
                                    "type": "string",
                                    "enum": _DIFFICULTY_ENUM,
                                },
                                "emoji": {"type": "string"},
                                "estimated_calories": _NULLABLE_INT,
                                "estimated_protein": _NULLABLE_INT,
                            },
                            "required": [
                                "name",
                                "description",
                                "type",
                                "estimated_time",
                                "difficulty",
                                "emoji",
                                "estimated_calories",
                                "estimated_protein",
                            ],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["day_index", "meals"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["days"],
    "additionalProperties": False,
}


class GenerativeModelClient(Protocol):
    """Interface for the text model behind suggestions and recipes."""

    async def generate_object(  # noqa: PLR0913
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None,
    ) -> dict[str, object]:
        """Return one object that conforms to ``schema``."""

    def stream_text(
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        temperature: float | None,
    ) -> AsyncIterator[str]:
        """Return the response text as it is produced."""


class TextStream:
    """Cancellable, single-use async sequence of generated text chunks.

    ``cancel()`` stops delivery at the next chunk boundary; ``aclose()`` also
    closes the underlying transport. Errors from the transport, including a
    chunk wait that exceeds ``timeout``, surface as ``GenerationError``.
    """

    def __init__(
        self, chunks: AsyncIterator[str], *, timeout: float | None = None
    ) -> None:
        self._chunks = chunks
        self._timeout = timeout
        self._cancelled = False
        self._closed = False

    @property
    def cancelled(self) -> bool:
        """Return True once the consumer has cancelled or closed the stream."""
        return self._cancelled

    def __aiter__(self) -> "TextStream":
        return self

    async def __anext__(self) -> str:
        if self._cancelled or self._closed:
            raise StopAsyncIteration
        try:
            async with asyncio.timeout(self._timeout):
                chunk = await anext(self._chunks)
        except StopAsyncIteration:
            self._closed = True
            raise
        except TimeoutError as exc:
            await self.aclose()
            raise GenerationError("Timed out waiting for model output") from exc
        except GenerationError:
            await self.aclose()
            raise
        except Exception as exc:
            await self.aclose()
            raise GenerationError(f"Model stream failed: {exc}") from exc
        if self._cancelled:
            raise StopAsyncIteration
        return chunk

    def cancel(self) -> None:
        """Stop delivering chunks."""
        self._cancelled = True

    async def aclose(self) -> None:
        """Cancel and release the underlying transport."""
        self._cancelled = True
        if self._closed:
            return
        self._closed = True
        close = getattr(self._chunks, "aclose", None)
        if close is not None:
            await close()

    async def collect(self) -> str:
        """Return the concatenation of all remaining chunks."""
        return "".join([chunk async for chunk in self])


@dataclass
class GenerationService:
    """Runs model calls with a time bound and validates structured output."""

    client: GenerativeModelClient
    timeout_seconds: float | None = 60.0

    async def generate(  # noqa: PLR0913
        self,
        *,
        prompt: str,
        model_type: type[ModelT],
        schema: dict[str, object],
        schema_name: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> ModelT:
        """Generate one object and validate it as ``model_type``."""
        _logger.debug("Generating %s: prompt=%s", schema_name, prompt)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                raw = await self.client.generate_object(
                    prompt=prompt,
                    system_prompt=system_prompt,
                    schema=schema,
                    schema_name=schema_name,
                    temperature=temperature,
                )
        except TimeoutError as exc:
            raise GenerationError(f"{schema_name} generation timed out") from exc
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"{schema_name} generation failed: {exc}") from exc
        try:
            return model_type.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise GenerationError(
                f"{schema_name} generation returned an invalid object"
            ) from exc

    def stream(
        self,
        *,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> TextStream:
        """Start a streamed text generation."""
        _logger.debug("Streaming text: prompt=%s", prompt)
        chunks = self.client.stream_text(
            prompt=prompt, system_prompt=system_prompt, temperature=temperature
        )
        return TextStream(chunks, timeout=self.timeout_seconds)
