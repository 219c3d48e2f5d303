"""Domain models for grocery lists."""

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

GroceryListStatus = Literal["draft", "active", "completed", "archived"]

OPEN_LIST_STATUSES: tuple[str, ...] = ("active", "draft")


@dataclass(frozen=True)
class GroceryItemInput:
    """Item to add to a grocery list."""

    name: str
    quantity: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class GroceryItemRecord:
    """A persisted grocery list item."""

    id: int
    grocery_list_id: int
    item_name: str
    quantity: float | None
    unit: str | None
    is_checked: bool


@dataclass(frozen=True)
class GroceryListRecord:
    """A persisted grocery list with its items."""

    id: int
    user_id: str
    title: str | None
    status: GroceryListStatus
    for_date: date | None
    items: list[GroceryItemRecord] = field(default_factory=list)


@dataclass(frozen=True)
class GroceryAddResult:
    """Outcome of adding items to a grocery list."""

    grocery_list_id: int
    item_count: int
    items_saved: bool
    created_list: bool
