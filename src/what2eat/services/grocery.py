"""Grocery list management."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from what2eat.domain.grocery import (
    OPEN_LIST_STATUSES,
    GroceryAddResult,
    GroceryItemInput,
    GroceryItemRecord,
    GroceryListRecord,
    GroceryListStatus,
)
from what2eat.errors import AuthenticationError, NotFoundError, PersistenceError

_logger = logging.getLogger(__name__)


class GroceryRepository(Protocol):
    """Persistence interface for grocery lists."""

    def find_active_list(
        self, user_id: str, for_date: date | None
    ) -> GroceryListRecord | None:
        """Return the user's active list for a date."""

    def create_list(
        self,
        user_id: str,
        title: str,
        for_date: date | None,
        meal_plan_id: int | None,
    ) -> int:
        """Insert an active list and return its id."""

    def add_items(self, grocery_list_id: int, items: list[GroceryItemInput]) -> None:
        """Insert unchecked items on a list."""

    def list_lists(
        self, user_id: str, statuses: tuple[str, ...], limit: int
    ) -> list[GroceryListRecord]:
        """Return lists with their items, newest first."""

    def get_list(self, grocery_list_id: int) -> GroceryListRecord | None:
        """Return a list without its items."""

    def get_item(self, item_id: int) -> GroceryItemRecord | None:
        """Return a single item."""

    def set_item_checked(self, item_id: int, is_checked: bool) -> None:
        """Update an item's checked flag."""

    def set_list_status(self, grocery_list_id: int, status: GroceryListStatus) -> None:
        """Update a list's status."""

    def delete_list(self, grocery_list_id: int) -> None:
        """Delete a list."""


@dataclass
class GroceryListService:
    """Adds ingredients to shopping lists and tracks what the user owns."""

    repository: GroceryRepository

    def add_items(  # noqa: PLR0913
        self,
        user_id: str | None,
        title: str,
        items: list[GroceryItemInput],
        for_date: date | None = None,
        meal_plan_id: int | None = None,
    ) -> GroceryAddResult:
        """Add items to the user's active list for a date, creating it if absent."""
        user_id = _require_user(user_id)
        cleaned = [item for item in items if item.name and item.name.strip()]
        existing = self.repository.find_active_list(user_id, for_date)
        created = existing is None
        if existing is not None:
            list_id = existing.id
        else:
            try:
                list_id = self.repository.create_list(
                    user_id, title.strip() or "Shopping List", for_date, meal_plan_id
                )
            except Exception as exc:
                _logger.exception("Failed to create grocery list for %s", user_id)
                raise PersistenceError("Failed to create grocery list") from exc

        items_saved = True
        if cleaned:
            try:
                self.repository.add_items(list_id, cleaned)
            except Exception:
                _logger.warning(
                    "Failed to insert %s items on grocery list %s",
                    len(cleaned),
                    list_id,
                    exc_info=True,
                )
                items_saved = False
        return GroceryAddResult(
            grocery_list_id=list_id,
            item_count=len(cleaned),
            items_saved=items_saved,
            created_list=created,
        )

    def list_open(
        self, user_id: str | None, limit: int = 10
    ) -> list[GroceryListRecord]:
        """Return active and draft lists with their items, newest first."""
        user_id = _require_user(user_id)
        return self.repository.list_lists(user_id, OPEN_LIST_STATUSES, limit)

    def toggle_item(self, user_id: str | None, item_id: int) -> bool:
        """Flip an item's checked flag and return the new value."""
        user_id = _require_user(user_id)
        item = self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        self._owned_list(user_id, item.grocery_list_id)
        checked = not item.is_checked
        self.repository.set_item_checked(item_id, checked)
        return checked

    def complete_list(self, user_id: str | None, grocery_list_id: int) -> None:
        """Mark a list completed."""
        user_id = _require_user(user_id)
        self._owned_list(user_id, grocery_list_id)
        self.repository.set_list_status(grocery_list_id, "completed")

    def delete_list(self, user_id: str | None, grocery_list_id: int) -> None:
        """Delete a list."""
        user_id = _require_user(user_id)
        self._owned_list(user_id, grocery_list_id)
        self.repository.delete_list(grocery_list_id)

    def owned_ingredients(self, user_id: str | None) -> list[str]:
        """Return checked item names on open lists, lower-cased and unique."""
        user_id = _require_user(user_id)
        lists = self.repository.list_lists(user_id, OPEN_LIST_STATUSES, limit=100)
        names = {
            item.item_name.strip().lower()
            for grocery_list in lists
            for item in grocery_list.items
            if item.is_checked and item.item_name.strip()
        }
        return sorted(names)

    def _owned_list(self, user_id: str, grocery_list_id: int) -> GroceryListRecord:
        grocery_list = self.repository.get_list(grocery_list_id)
        if grocery_list is None or grocery_list.user_id != user_id:
            raise NotFoundError("Grocery list not found")
        return grocery_list


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise AuthenticationError("Not authenticated")
    return user_id
