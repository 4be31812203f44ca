"""Shared fixtures and stubs for the ordering tests."""

import os

# Settings are cached on first use; pin test-friendly values before any import.
os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("EXCEL_EXPORT_ENABLED", "false")
os.environ.setdefault("MOCK_MIN_LATENCY", "0")
os.environ.setdefault("MOCK_MAX_LATENCY", "0")

import asyncio
from datetime import datetime
from typing import Optional, Sequence

import pytest

from canteen.ordering.entities import MenuCategory, MenuItem, OpeningWindow, Submitter
from canteen.ordering.errors import StoreError
from canteen.ordering.session import OrderSession
from canteen.services.store.base import BaseMenuStore
from canteen.services.store.mock import MockMenuStore

# 2024-01-15 was a Monday, 2024-01-21 a Sunday
MONDAY = datetime(2024, 1, 15, 12, 0)
SUNDAY = datetime(2024, 1, 21, 12, 0)


def at(day: datetime, hh: int, mm: int) -> datetime:
    return day.replace(hour=hh, minute=mm)


def dish(item_id: str, name: str = "Feijoada", day: int = 1) -> MenuItem:
    return MenuItem(id=item_id, name=name, day_of_week=day, category=MenuCategory.OPTIONAL)


class RecordingStore(BaseMenuStore):
    """Store stub returning a fixed order id and recording every write."""

    def __init__(
        self,
        order_id: int = 77,
        fail_header: bool = False,
        fail_items: bool = False,
        window: Optional[OpeningWindow] = None,
    ):
        self.order_id = order_id
        self.fail_header = fail_header
        self.fail_items = fail_items
        self.window = window
        self.headers: list[Submitter] = []
        self.items: list[tuple[int, list[str]]] = []
        self.atomic_calls = 0
        self.release: Optional[asyncio.Event] = None

    @property
    def provider_name(self) -> str:
        return "recording"

    async def list_items_by_category(self, category):
        return []

    async def get_opening_window(self):
        return self.window

    async def create_order(self, submitter: Submitter) -> int:
        if self.release is not None:
            await self.release.wait()
        if self.fail_header:
            raise StoreError("header rejected", operation="create_order")
        self.headers.append(submitter)
        return self.order_id

    async def create_order_items(self, order_id: int, item_ids: Sequence[str]) -> None:
        if self.fail_items:
            raise StoreError("items rejected", operation="create_order_items")
        self.items.append((order_id, list(item_ids)))

    async def create_order_with_items(self, submitter: Submitter, item_ids: Sequence[str]) -> int:
        self.atomic_calls += 1
        if self.fail_header or self.fail_items:
            raise StoreError("transaction rolled back", operation="create_order_with_items")
        self.headers.append(submitter)
        self.items.append((self.order_id, list(item_ids)))
        return self.order_id

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def window() -> OpeningWindow:
    return OpeningWindow.from_strings("09:00", "14:00")


@pytest.fixture
def mock_store(window) -> MockMenuStore:
    return MockMenuStore(opening_window=window)


@pytest.fixture
def open_session() -> OrderSession:
    return OrderSession(lambda: True)


@pytest.fixture
def filled_session(open_session) -> OrderSession:
    """Session with valid fields and one dish in the cart."""
    open_session.add_to_cart(dish("o1"))
    open_session.name = "João Silva"
    open_session.registration = "1234"
    open_session.notes = ""
    return open_session
