"""
Menu Store Abstract Base Class

Defines the interface contract for the data store the ordering core talks
to. Both MockMenuStore and SqlMenuStore implement these methods, so the
ordering flow behaves identically regardless of which one is active.

Every failing call raises ``StoreError``; implementations translate their
own driver errors into it.

Design Pattern: Strategy Pattern
    - Development runs against an in-memory store
    - Staging/production run against PostgreSQL

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from canteen.ordering.entities import MenuCategory, MenuItem, OpeningWindow, Submitter


class BaseMenuStore(ABC):
    """
    Abstract base class for menu stores.

    Example:
        >>> store = get_menu_store()
        >>> order_id = await store.create_order(submitter)
        >>> await store.create_order_items(order_id, ["dish-1"])
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the store backend.

        Returns:
            str: Provider name (e.g., "mock", "sql")
        """
        pass

    @abstractmethod
    async def list_items_by_category(self, category: MenuCategory) -> list[MenuItem]:
        """
        List the dishes of one menu section.

        Returns:
            list[MenuItem]: Dishes ordered ascending by day of week
        """
        pass

    @abstractmethod
    async def get_opening_window(self) -> Optional[OpeningWindow]:
        """
        Read the configured opening window.

        Returns:
            OpeningWindow, or None when none is configured
        """
        pass

    @abstractmethod
    async def create_order(self, submitter: Submitter) -> int:
        """
        Write one order header.

        Returns:
            int: Id generated by the store
        """
        pass

    @abstractmethod
    async def create_order_items(self, order_id: int, item_ids: Sequence[str]) -> None:
        """Write one line item per id, all referencing ``order_id``, in a single call."""
        pass

    @abstractmethod
    async def create_order_with_items(self, submitter: Submitter, item_ids: Sequence[str]) -> int:
        """
        Write header and line items in one transaction.

        Either both are stored or neither is.

        Returns:
            int: Id generated for the order
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the store.

        Returns:
            bool: True if the store is reachable
        """
        pass

    async def find_item(self, category: MenuCategory, item_id: str) -> Optional[MenuItem]:
        """Look up a dish of ``category`` by id."""
        for item in await self.list_items_by_category(category):
            if item.id == item_id:
                return item
        return None
