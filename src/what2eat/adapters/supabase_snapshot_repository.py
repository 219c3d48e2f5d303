"""Supabase storage and tables for analysed fridge photos."""

from dataclasses import dataclass

from supabase import Client

from what2eat.domain.vision import DetectedIngredient
from what2eat.services.vision import SnapshotRepository


@dataclass
class SupabaseSnapshotRepository(SnapshotRepository):
    """Supabase implementation for photo snapshots."""

    client: Client
    bucket: str = "fridge-photos"

    def upload_photo(self, path: str, data: bytes, content_type: str) -> None:
        """Upload the photo to the storage bucket without overwriting."""
        self.client.storage.from_(self.bucket).upload(
            path, data, {"content-type": content_type, "upsert": "false"}
        )

    def create_snapshot(
        self, user_id: str, object_path: str, detected_raw: dict[str, object]
    ) -> int:
        """Insert a snapshot row and return its id."""
        payload = {
            "user_id": user_id,
            "bucket_id": self.bucket,
            "object_path": object_path,
            "detected_raw": detected_raw,
        }
        response = self.client.table("fridge_snapshots").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create fridge snapshot")
        return int(response.data[0]["id"])

    def add_snapshot_items(
        self, snapshot_id: int, ingredients: list[DetectedIngredient]
    ) -> None:
        """Insert the detected names with their confidence scores."""
        if not ingredients:
            return
        payload = [
            {
                "snapshot_id": snapshot_id,
                "detected_name": item.name,
                "confidence": item.confidence,
            }
            for item in ingredients
        ]
        response = self.client.table("fridge_snapshot_items").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to save fridge snapshot items")
