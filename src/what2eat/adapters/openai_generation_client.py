"""OpenAI Responses API client for structured and streamed generation."""

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from what2eat.services.generation import GenerativeModelClient
from what2eat.services.vision import VisionClient


@dataclass
class OpenAIGenerationClient(GenerativeModelClient, VisionClient):
    """Generation and vision client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        store: bool = False,
        timeout_seconds: float = 60.0,
    ) -> "OpenAIGenerationClient":
        """Create an OpenAI generation client."""
        client = AsyncOpenAI(
            api_key=api_key,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            max_retries=0,
        )
        return cls(client=client, model=model, store=store)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()

    async def generate_object(  # noqa: PLR0913
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload = self._payload(prompt, system_prompt, temperature)
        request_payload["text"] = {
            "format": {
                "type": "json_schema",
                "name": schema_name,
                "strict": True,
                "schema": schema,
            }
        }
        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def stream_text(
        self,
        *,
        prompt: str,
        system_prompt: str | None,
        temperature: float | None,
    ) -> AsyncIterator[str]:
        """Yield output text deltas; closing the generator closes the stream."""
        request_payload = self._payload(prompt, system_prompt, temperature)
        stream = await self.client.responses.create(**request_payload, stream=True)
        try:
            async for event in stream:
                if event.type == "response.output_text.delta":
                    yield event.delta
                elif event.type in ("error", "response.failed"):
                    raise RuntimeError(f"OpenAI stream failed: {_event_error(event)}")
        finally:
            await stream.close()

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
        """Call OpenAI Responses API with an image and structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": image_data_url},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if temperature is not None:
            request_payload["temperature"] = temperature
        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    def _payload(
        self, prompt: str, system_prompt: str | None, temperature: float | None
    ) -> dict[str, object]:
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "store": self.store,
        }
        if system_prompt:
            request_payload["instructions"] = system_prompt
        if temperature is not None:
            request_payload["temperature"] = temperature
        return request_payload


def _event_error(event: object) -> str:
    message = getattr(event, "message", None)
    if message:
        return str(message)
    response = getattr(event, "response", None)
    error = getattr(response, "error", None)
    return str(getattr(error, "message", None) or "unknown error")
