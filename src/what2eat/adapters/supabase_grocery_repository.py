"""Supabase repository for grocery lists."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from what2eat.domain.grocery import (
    GroceryItemInput,
    GroceryItemRecord,
    GroceryListRecord,
    GroceryListStatus,
)
from what2eat.services.grocery import GroceryRepository

_LIST_COLUMNS = "id, user_id, title, status, for_date_range"
_ITEM_COLUMNS = "id, grocery_list_id, item_name, quantity, unit, is_checked"


@dataclass
class SupabaseGroceryRepository(GroceryRepository):
    """Supabase implementation for grocery lists and items."""

    client: Client

    def find_active_list(
        self, user_id: str, for_date: date | None
    ) -> GroceryListRecord | None:
        """Return the user's active list for a date."""
        query = (
            self.client.table("grocery_lists")
            .select(_LIST_COLUMNS)
            .eq("user_id", user_id)
            .eq("status", "active")
        )
        if for_date is None:
            query = query.is_("for_date_range", "null")
        else:
            query = query.eq("for_date_range", _date_range(for_date))
        response = query.order("created_at", desc=True).limit(1).execute()
        if not response.data:
            return None
        return _to_list(response.data[0])

    def create_list(
        self,
        user_id: str,
        title: str,
        for_date: date | None,
        meal_plan_id: int | None,
    ) -> int:
        """Insert an active list and return its id."""
        payload = {
            "user_id": user_id,
            "title": title,
            "status": "active",
            "for_date_range": _date_range(for_date) if for_date else None,
            "created_from_meal_plan_id": meal_plan_id,
        }
        response = self.client.table("grocery_lists").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create grocery list")
        return int(response.data[0]["id"])

    def add_items(self, grocery_list_id: int, items: list[GroceryItemInput]) -> None:
        """Insert unchecked items on a list."""
        if not items:
            return
        payload = [
            {
                "grocery_list_id": grocery_list_id,
                "item_name": item.name.strip(),
                "quantity": item.quantity,
                "unit": item.unit,
                "is_checked": False,
            }
            for item in items
        ]
        response = self.client.table("grocery_list_items").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to add grocery items")

    def list_lists(
        self, user_id: str, statuses: tuple[str, ...], limit: int
    ) -> list[GroceryListRecord]:
        """Return lists with their items, newest first."""
        response = (
            self.client.table("grocery_lists")
            .select(
                f"{_LIST_COLUMNS}, "
                "grocery_list_items(id, item_name, quantity, unit, is_checked)"
            )
            .eq("user_id", user_id)
            .in_("status", list(statuses))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        records: list[GroceryListRecord] = []
        for row in response.data or []:
            list_id = int(row["id"])
            items = [
                _to_item({"grocery_list_id": list_id, **item})
                for item in row.get("grocery_list_items") or []
            ]
            records.append(_to_list(row, items))
        return records

    def get_list(self, grocery_list_id: int) -> GroceryListRecord | None:
        """Return a list without its items."""
        response = (
            self.client.table("grocery_lists")
            .select(_LIST_COLUMNS)
            .eq("id", grocery_list_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_list(response.data[0])

    def get_item(self, item_id: int) -> GroceryItemRecord | None:
        """Return a single item."""
        response = (
            self.client.table("grocery_list_items")
            .select(_ITEM_COLUMNS)
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_item(response.data[0])

    def set_item_checked(self, item_id: int, is_checked: bool) -> None:
        """Update an item's checked flag."""
        self.client.table("grocery_list_items").update(
            {"is_checked": is_checked}
        ).eq("id", item_id).execute()

    def set_list_status(self, grocery_list_id: int, status: GroceryListStatus) -> None:
        """Update a list's status."""
        self.client.table("grocery_lists").update({"status": status}).eq(
            "id", grocery_list_id
        ).execute()

    def delete_list(self, grocery_list_id: int) -> None:
        """Delete a list."""
        self.client.table("grocery_lists").delete().eq("id", grocery_list_id).execute()


def _date_range(for_date: date) -> str:
    day = for_date.isoformat()
    return f"[{day},{day}]"


def _range_start(value: object) -> date | None:
    # Postgres returns ranges canonicalised, e.g. "[2024-05-01,2024-05-02)".
    if not isinstance(value, str):
        return None
    start = value.strip("[]()").split(",", 1)[0].strip()
    if not start:
        return None
    return date.fromisoformat(start)


def _to_list(
    row: dict[str, object], items: list[GroceryItemRecord] | None = None
) -> GroceryListRecord:
    return GroceryListRecord(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        title=row.get("title"),
        status=row.get("status") or "active",
        for_date=_range_start(row.get("for_date_range")),
        items=items or [],
    )


def _to_item(row: dict[str, object]) -> GroceryItemRecord:
    quantity = row.get("quantity")
    return GroceryItemRecord(
        id=int(row["id"]),
        grocery_list_id=int(row["grocery_list_id"]),
        item_name=str(row.get("item_name") or ""),
        quantity=float(quantity) if quantity is not None else None,
        unit=row.get("unit"),
        is_checked=bool(row.get("is_checked")),
    )
