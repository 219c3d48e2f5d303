"""Tests for the generation service and text streams."""

import asyncio
from collections.abc import AsyncIterator

import pytest

from what2eat.domain.suggestions import MealSuggestionBatch
from what2eat.errors import GenerationError
from what2eat.services.generation import (
    GenerationService,
    TextStream,
    suggestions_schema,
)
from tests.conftest import FakeGenerativeModelClient, suggestion_batch


async def _chunks(*parts: str) -> AsyncIterator[str]:
    for part in parts:
        yield part


def test_generate_validates_structured_output() -> None:
    client = FakeGenerativeModelClient(objects=[suggestion_batch("Curry", "Tacos")])
    service = GenerationService(client=client)

    batch = asyncio.run(
        service.generate(
            prompt="Suggest dinner",
            model_type=MealSuggestionBatch,
            schema=suggestions_schema(2, 3),
            schema_name="meal_suggestions",
            temperature=0.9,
        )
    )

    assert [item.name for item in batch.suggestions] == ["Curry", "Tacos"]
    assert client.calls[0]["schema_name"] == "meal_suggestions"
    assert client.calls[0]["temperature"] == 0.9


def test_generate_rejects_invalid_object() -> None:
    client = FakeGenerativeModelClient(objects=[{"suggestions": [{"name": ""}]}])
    service = GenerationService(client=client)

    with pytest.raises(GenerationError):
        asyncio.run(
            service.generate(
                prompt="Suggest dinner",
                model_type=MealSuggestionBatch,
                schema=suggestions_schema(2, 3),
                schema_name="meal_suggestions",
            )
        )


def test_generate_wraps_client_errors() -> None:
    client = FakeGenerativeModelClient(objects=[RuntimeError("rate limited")])
    service = GenerationService(client=client)

    with pytest.raises(GenerationError, match="rate limited"):
        asyncio.run(
            service.generate(
                prompt="Suggest dinner",
                model_type=MealSuggestionBatch,
                schema=suggestions_schema(2, 3),
                schema_name="meal_suggestions",
            )
        )


def test_generate_times_out() -> None:
    class SlowClient(FakeGenerativeModelClient):
        async def generate_object(self, **_kwargs):  # type: ignore[no-untyped-def]
            await asyncio.sleep(1)
            return {}

    service = GenerationService(client=SlowClient(), timeout_seconds=0.01)

    with pytest.raises(GenerationError, match="timed out"):
        asyncio.run(
            service.generate(
                prompt="Suggest dinner",
                model_type=MealSuggestionBatch,
                schema=suggestions_schema(2, 3),
                schema_name="meal_suggestions",
            )
        )


def test_suggestions_schema_bounds() -> None:
    schema = suggestions_schema(3, 5)
    items = schema["properties"]["suggestions"]

    assert items["minItems"] == 3
    assert items["maxItems"] == 5


def test_text_stream_collects_chunks() -> None:
    stream = TextStream(_chunks("## Soup", "\n", "Simmer."))

    assert asyncio.run(stream.collect()) == "## Soup\nSimmer."


def test_text_stream_cancel_stops_delivery() -> None:
    async def scenario() -> list[str]:
        stream = TextStream(_chunks("a", "b", "c"))
        received = []
        async for chunk in stream:
            received.append(chunk)
            stream.cancel()
        return received

    assert asyncio.run(scenario()) == ["a"]


def test_text_stream_aclose_closes_transport(
    model_client: FakeGenerativeModelClient,
) -> None:
    model_client.streams.append(["one", "two", "three"])
    service = GenerationService(client=model_client)

    async def scenario() -> str:
        stream = service.stream(prompt="recipe")
        first = await anext(stream)
        await stream.aclose()
        assert stream.cancelled
        return first

    assert asyncio.run(scenario()) == "one"
    assert model_client.closed_streams == 1


def test_text_stream_surfaces_transport_errors() -> None:
    client = FakeGenerativeModelClient(
        streams=[["partial", RuntimeError("connection reset")]]
    )
    service = GenerationService(client=client)

    with pytest.raises(GenerationError, match="connection reset"):
        asyncio.run(service.stream(prompt="recipe").collect())
    assert client.closed_streams == 1


def test_text_stream_chunk_timeout() -> None:
    async def stalled() -> AsyncIterator[str]:
        yield "start"
        await asyncio.sleep(1)
        yield "never"

    stream = TextStream(stalled(), timeout=0.01)

    with pytest.raises(GenerationError, match="Timed out"):
        asyncio.run(stream.collect())
