"""
Cart Store

The working set of dishes selected in one ordering session. Entries are
kept in an insertion-ordered mapping keyed by item id, which gives O(1)
duplicate checks and a stable display order.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterator

from canteen.ordering.entities import CartEntry, MenuItem, Notice

logger = logging.getLogger(__name__)

CLOSED_MESSAGE = "The restaurant is closed right now"
DUPLICATE_MESSAGE = "This item is already in your cart"
ADDED_MESSAGE = "Item added to cart"
REMOVED_MESSAGE = "Item removed from cart"


@dataclass(frozen=True)
class CartChange:
    """
    Outcome of a cart mutation.

    Attributes:
        changed: Whether the cart contents were modified
        notice: Message to show the customer
        open_panel: Whether the cart panel should be opened
    """
    changed: bool
    notice: Notice
    open_panel: bool = False


class CartStore:
    """
    At-most-one-of-each-item cart.

    Args:
        is_open: Callable reporting whether ordering is currently allowed
    """

    def __init__(self, is_open: Callable[[], bool]):
        self._is_open = is_open
        self._entries: "OrderedDict[str, CartEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CartEntry]:
        return iter(self._entries.values())

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._entries

    @property
    def entries(self) -> list[CartEntry]:
        return list(self._entries.values())

    @property
    def item_ids(self) -> list[str]:
        return list(self._entries.keys())

    def add(self, item: MenuItem) -> CartChange:
        """Append ``item`` unless ordering is closed or it is already present."""
        if not self._is_open():
            return CartChange(changed=False, notice=Notice.error(CLOSED_MESSAGE))

        if item.id in self._entries:
            return CartChange(changed=False, notice=Notice.error(DUPLICATE_MESSAGE))

        self._entries[item.id] = CartEntry.from_item(item)
        logger.debug(f"Cart: added {item.id} ({len(self._entries)} entries)")
        return CartChange(changed=True, notice=Notice.success(ADDED_MESSAGE), open_panel=True)

    def remove(self, item_id: str) -> CartChange:
        """Drop the entry with ``item_id``; absent ids are ignored."""
        removed = self._entries.pop(item_id, None) is not None
        return CartChange(changed=removed, notice=Notice.success(REMOVED_MESSAGE))

    def clear(self) -> None:
        self._entries.clear()
