"""
Mock Menu Store Implementation

In-memory stand-in for the restaurant database. Used in development mode
(ENV_MODE=development) to:
    - Run the full ordering flow locally without PostgreSQL
    - Reproduce partial failures (header written, items rejected)
    - Drive the simulation script against a throwaway backend

Behavior:
    - Simulates store latency (configurable, zero in tests)
    - Randomly fails writes at ``failure_rate``
    - Specific write steps can be forced to fail via ``failing_steps``
    - Keeps every written header, so orphans stay observable

Version: 1.0.0
"""

import asyncio
import itertools
import logging
import random
from typing import Iterable, Optional, Sequence

from canteen.ordering.entities import (
    MenuCategory,
    MenuItem,
    OpeningWindow,
    StoredOrder,
    Submitter,
)
from canteen.ordering.errors import StoreError
from canteen.services.store.base import BaseMenuStore

logger = logging.getLogger(__name__)

HEADER_STEP = "header"
ITEMS_STEP = "items"


def _week(category: MenuCategory, names: list[tuple[str, str]]) -> list[MenuItem]:
    return [
        MenuItem(
            id=f"{category.value}-{day}",
            name=name,
            description=description,
            image_url=None,
            day_of_week=day,
            category=category,
        )
        for day, (name, description) in enumerate(names, start=1)
    ]


DEFAULT_MENU: dict[MenuCategory, list[MenuItem]] = {
    MenuCategory.MAIN: _week(MenuCategory.MAIN, [
        ("Frango Grelhado", "Peito de frango grelhado com ervas"),
        ("Carne de Panela", "Carne cozida lentamente com legumes"),
        ("Feijoada", "Feijoada completa com couve e farofa"),
        ("Peixe Assado", "Filé de tilápia assado com limão"),
        ("Strogonoff de Frango", "Com arroz branco e batata palha"),
        ("Lasanha à Bolonhesa", "Massa fresca com molho de carne"),
    ]),
    MenuCategory.SALAD: _week(MenuCategory.SALAD, [
        ("Salada Verde", "Alface, rúcula e agrião"),
        ("Salada de Tomate", "Tomate, cebola roxa e manjericão"),
        ("Vinagrete", "Tomate, cebola e pimentão"),
        ("Salada de Grão de Bico", "Grão de bico, pepino e salsinha"),
        ("Salada Caprese", "Tomate, muçarela e manjericão"),
        ("Salada de Batata", "Batata, maionese e cheiro verde"),
    ]),
    MenuCategory.OPTIONAL: _week(MenuCategory.OPTIONAL, [
        ("Omelete", "Omelete de queijo e presunto"),
        ("Bife Acebolado", "Bife de alcatra com cebola"),
        ("Frango à Milanesa", "Filé empanado e frito"),
        ("Ovo Frito", "Dois ovos fritos"),
        ("Linguiça Acebolada", "Linguiça toscana com cebola"),
        ("Omelete de Legumes", "Omelete com abobrinha e cenoura"),
    ]),
}


class MockMenuStore(BaseMenuStore):
    """
    Mock implementation of the menu store.

    Attributes:
        failure_rate: Probability of a simulated write failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        failing_steps: Write steps ("header", "items") that always fail
        orders: Every header written, keyed by id
        order_items: (order_id, item_id) rows written

    Example:
        >>> store = MockMenuStore(failing_steps={"items"})
        >>> order_id = await store.create_order(submitter)
        >>> await store.create_order_items(order_id, ["optional-1"])  # raises StoreError
        >>> store.orders[order_id].is_orphan
        True
    """

    def __init__(
        self,
        opening_window: Optional[OpeningWindow] = None,
        menu: Optional[dict[MenuCategory, list[MenuItem]]] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        failing_steps: Iterable[str] = (),
    ):
        self.opening_window = opening_window
        self.menu = {category: list(items) for category, items in (menu or DEFAULT_MENU).items()}
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.failing_steps = set(failing_steps)
        self.orders: dict[int, StoredOrder] = {}
        self.order_items: list[tuple[int, str]] = []
        self._ids = itertools.count(1)

        logger.info(
            f"MockMenuStore initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def _simulate_latency(self) -> None:
        await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _check_write(self, step: str) -> None:
        if step in self.failing_steps:
            raise StoreError(f"Simulated {step} write failure", operation=step)
        if self.failure_rate and random.random() < self.failure_rate:
            raise StoreError(f"Random {step} write failure", operation=step)

    def _insert_header(self, submitter: Submitter) -> int:
        order_id = next(self._ids)
        self.orders[order_id] = StoredOrder(
            id=order_id,
            submitter=Submitter(**submitter.to_dict()),
        )
        return order_id

    def _insert_items(self, order_id: int, item_ids: Sequence[str]) -> None:
        order = self.orders.get(order_id)
        if order is None:
            raise StoreError(f"Order #{order_id} does not exist", operation=ITEMS_STEP)
        order.item_ids.extend(item_ids)
        self.order_items.extend((order_id, item_id) for item_id in item_ids)

    async def list_items_by_category(self, category: MenuCategory) -> list[MenuItem]:
        await self._simulate_latency()
        return sorted(self.menu.get(category, []), key=lambda item: item.day_of_week)

    async def get_opening_window(self) -> Optional[OpeningWindow]:
        await self._simulate_latency()
        return self.opening_window

    async def create_order(self, submitter: Submitter) -> int:
        await self._simulate_latency()
        self._check_write(HEADER_STEP)
        order_id = self._insert_header(submitter)
        logger.info(f"Mock: Order #{order_id} header stored")
        return order_id

    async def create_order_items(self, order_id: int, item_ids: Sequence[str]) -> None:
        await self._simulate_latency()
        self._check_write(ITEMS_STEP)
        self._insert_items(order_id, item_ids)
        logger.info(f"Mock: {len(item_ids)} item(s) stored for Order #{order_id}")

    async def create_order_with_items(self, submitter: Submitter, item_ids: Sequence[str]) -> int:
        await self._simulate_latency()
        # Both checks happen before anything is written
        self._check_write(HEADER_STEP)
        self._check_write(ITEMS_STEP)
        order_id = self._insert_header(submitter)
        self._insert_items(order_id, item_ids)
        logger.info(f"Mock: Order #{order_id} stored with {len(item_ids)} item(s)")
        return order_id

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Health check passed")
        return True

    @property
    def orphaned_orders(self) -> list[StoredOrder]:
        """Headers that never received line items."""
        return [order for order in self.orders.values() if order.is_orphan]
