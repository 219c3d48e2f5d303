"""Domain models for ingredients detected in photos."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


class DetectedIngredient(BaseModel):
    """One ingredient the vision model saw in a photo."""

    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    category: str | None = None


class DetectedIngredients(BaseModel):
    """Structured output for a photo analysis."""

    ingredients: list[DetectedIngredient]


@dataclass(frozen=True)
class ImageAnalysis:
    """Detected ingredients plus the stored snapshot, when one was saved."""

    ingredients: list[DetectedIngredient] = field(default_factory=list)
    snapshot_id: int | None = None

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.ingredients]
