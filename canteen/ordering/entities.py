"""
Ordering Domain Entities

Plain value objects shared by the ordering core and the menu stores.
The store owns dishes and the opening window; the core only reads them.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Optional


class MenuCategory(str, Enum):
    """The three fixed sections of the weekly menu."""
    MAIN = "main"
    SALAD = "salad"
    OPTIONAL = "optional"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """User-facing message produced by a cart or submission operation."""
    level: NoticeLevel
    message: str

    @classmethod
    def success(cls, message: str) -> "Notice":
        return cls(NoticeLevel.SUCCESS, message)

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls(NoticeLevel.ERROR, message)

    @property
    def ok(self) -> bool:
        return self.level == NoticeLevel.SUCCESS


@dataclass(frozen=True)
class MenuItem:
    """
    A dish on the weekly menu.

    Attributes:
        id: Opaque identifier assigned by the store
        name: Display name
        description: Short description shown under the name
        image_url: Picture of the dish (may be empty)
        day_of_week: 1=Monday ... 6=Saturday
        category: Menu section the dish belongs to
    """
    id: str
    name: str
    description: str = ""
    image_url: Optional[str] = None
    day_of_week: int = 1
    category: MenuCategory = MenuCategory.OPTIONAL

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "day_of_week": self.day_of_week,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class OpeningWindow:
    """
    Daily interval during which ordering is permitted.

    Both bounds are wall-clock times with minute precision; seconds are
    dropped on parsing.
    """
    opening: time
    closing: time

    @classmethod
    def from_strings(cls, opening: str, closing: str) -> "OpeningWindow":
        """
        Build a window from "HH:MM" or "HH:MM:SS" strings.

        Raises:
            ValueError: If either value is not a valid time of day
        """
        return cls(
            opening=_parse_clock(opening),
            closing=_parse_clock(closing),
        )

    @property
    def opening_minute(self) -> int:
        return self.opening.hour * 60 + self.opening.minute

    @property
    def closing_minute(self) -> int:
        return self.closing.hour * 60 + self.closing.minute

    def to_dict(self) -> dict:
        return {
            "opening_time": self.opening.strftime("%H:%M"),
            "closing_time": self.closing.strftime("%H:%M"),
        }


def _parse_clock(value: str) -> time:
    parsed = time.fromisoformat(value.strip())
    return parsed.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class CartEntry:
    """Minimal (id, name) projection of a menu item held in a cart."""
    item_id: str
    name: str

    @classmethod
    def from_item(cls, item: MenuItem) -> "CartEntry":
        return cls(item_id=item.id, name=item.name)


@dataclass
class Submitter:
    """Identity fields typed by the customer."""
    name: str = ""
    registration: str = ""
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "registration": self.registration,
            "notes": self.notes,
        }


@dataclass
class StoredOrder:
    """An order header as kept by a store, with the item ids attached to it."""
    id: int
    submitter: Submitter
    item_ids: list[str] = field(default_factory=list)

    @property
    def is_orphan(self) -> bool:
        return not self.item_ids
