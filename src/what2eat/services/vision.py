"""Ingredient detection from fridge and pantry photos."""

import asyncio
import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Protocol

import pydantic

from what2eat.domain.vision import (
    DetectedIngredient,
    DetectedIngredients,
    ImageAnalysis,
)
from what2eat.errors import GenerationError, ValidationError
from what2eat.services.prompts import IMAGE_INGREDIENTS_PROMPT

_logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/"

DETECTED_INGREDIENTS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "ingredients": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    "category": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                },
                "required": ["name", "confidence", "category"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["ingredients"],
    "additionalProperties": False,
}

_EXTENSIONS = {"image/png": "png", "image/webp": "webp", "image/gif": "gif"}


class VisionClient(Protocol):
    """Interface for LLM vision extraction."""

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
        """Return structured vision extraction data."""


class SnapshotRepository(Protocol):
    """Storage for analysed photos and what was found in them."""

    def upload_photo(self, path: str, data: bytes, content_type: str) -> None:
        """Store the raw photo under ``path``."""

    def create_snapshot(
        self, user_id: str, object_path: str, detected_raw: dict[str, object]
    ) -> int:
        """Insert a snapshot row and return its id."""

    def add_snapshot_items(
        self, snapshot_id: int, ingredients: list[DetectedIngredient]
    ) -> None:
        """Insert one row per detected ingredient."""


@dataclass
class ImageIngredientService:
    """Detects cooking ingredients in a photo and optionally keeps a snapshot.

    Storing the snapshot is best effort: the detected ingredients are returned
    even when the upload or the snapshot rows fail.
    """

    client: VisionClient
    model: str
    snapshots: SnapshotRepository | None = None
    temperature: float | None = 0.3
    timeout_seconds: float | None = 60.0

    async def analyze(
        self,
        image_data_url: str,
        *,
        user_id: str | None = None,
        save_to_storage: bool = False,
    ) -> ImageAnalysis:
        """Detect ingredients in a base64 image data URL."""
        if not image_data_url:
            raise ValidationError("Image data is required.")
        if not image_data_url.startswith(DATA_URL_PREFIX):
            raise ValidationError("Invalid image format. Expected a data URL.")

        detected = await self._detect(image_data_url)
        ingredients = [
            item.model_copy(update={"name": item.name.strip()})
            for item in detected.ingredients
            if item.name.strip()
        ]
        _logger.info("Detected %d ingredients in image", len(ingredients))

        snapshot_id = None
        if save_to_storage and user_id and self.snapshots is not None:
            snapshot_id = self._save_snapshot(
                self.snapshots, user_id, image_data_url, ingredients
            )
        return ImageAnalysis(ingredients=ingredients, snapshot_id=snapshot_id)

    async def _detect(self, image_data_url: str) -> DetectedIngredients:
        try:
            async with asyncio.timeout(self.timeout_seconds):
                raw = await self.client.extract(
                    model=self.model,
                    image_data_url=image_data_url,
                    prompt=IMAGE_INGREDIENTS_PROMPT,
                    schema=DETECTED_INGREDIENTS_SCHEMA,
                    schema_name="detected_ingredients",
                    temperature=self.temperature,
                )
        except TimeoutError as exc:
            raise GenerationError("Image analysis timed out") from exc
        except Exception as exc:
            raise GenerationError(f"Image analysis failed: {exc}") from exc
        try:
            return DetectedIngredients.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise GenerationError("Image analysis returned an invalid object") from exc

    def _save_snapshot(
        self,
        snapshots: SnapshotRepository,
        user_id: str,
        image_data_url: str,
        ingredients: list[DetectedIngredient],
    ) -> int | None:
        try:
            content_type, data = decode_data_url(image_data_url)
            extension = _EXTENSIONS.get(content_type, "jpg")
            path = f"{user_id}/{int(time.time() * 1000)}.{extension}"
            snapshots.upload_photo(path, data, content_type)
            snapshot_id = snapshots.create_snapshot(
                user_id,
                path,
                {"ingredients": [item.model_dump() for item in ingredients]},
            )
        except Exception:
            _logger.warning("Failed to store photo for %s", user_id, exc_info=True)
            return None
        if ingredients:
            try:
                snapshots.add_snapshot_items(snapshot_id, ingredients)
            except Exception:
                _logger.warning(
                    "Snapshot %s saved without its items", snapshot_id, exc_info=True
                )
        return snapshot_id


def decode_data_url(image_data_url: str) -> tuple[str, bytes]:
    """Split a base64 image data URL into its MIME type and raw bytes."""
    header, separator, payload = image_data_url.partition(",")
    if not separator or ";base64" not in header:
        raise ValidationError("Image data URL must be base64 encoded")
    content_type = header.removeprefix("data:").split(";")[0]
    try:
        return content_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image data URL is not valid base64") from exc
