"""
Ordering Sessions

An ``OrderSession`` is the context of one customer's page: cart, typed
fields, the cart panel flag and the state of the current submit attempt.
Sessions live in process memory only and are kept by a ``SessionRegistry``
until the customer navigates away or they sit idle too long.
"""

import logging
import time
import uuid
from typing import Callable, Optional

from canteen.ordering import validators
from canteen.ordering.cart import CartChange, CartStore
from canteen.ordering.entities import MenuItem, Submitter
from canteen.ordering.workflow import IN_FLIGHT_STATES, SubmissionState

logger = logging.getLogger(__name__)


class OrderSession:
    """
    Session-scoped ordering state.

    Args:
        is_open: Callable reporting whether ordering is currently allowed
        session_id: Identifier (generated when omitted)
    """

    def __init__(self, is_open: Callable[[], bool], session_id: Optional[str] = None):
        self.id = session_id or uuid.uuid4().hex
        self._is_open = is_open
        self.cart = CartStore(is_open)
        self.name = ""
        self.registration = ""
        self.notes = ""
        self.cart_open = False
        self.state = SubmissionState.IDLE
        self.last_seen = 0.0

    @property
    def is_open(self) -> bool:
        return self._is_open()

    @property
    def submitting(self) -> bool:
        return self.state != SubmissionState.IDLE

    @property
    def can_submit(self) -> bool:
        """Whether the submit action should be enabled."""
        return self.is_open and len(self.cart) > 0 and not self.submitting

    def add_to_cart(self, item: MenuItem) -> CartChange:
        change = self.cart.add(item)
        if change.open_panel:
            self.cart_open = True
        return change

    def remove_from_cart(self, item_id: str) -> CartChange:
        return self.cart.remove(item_id)

    def update_field(self, field: str, value: str) -> bool:
        """
        Apply a keystroke to a submitter field.

        A rejected draft leaves the previous value in place.

        Returns:
            bool: True if the new value was accepted

        Raises:
            KeyError: If ``field`` is not a submitter field
        """
        if not validators.accepts_draft(field, value):
            return False
        setattr(self, field, value)
        return True

    def submitter_snapshot(self) -> Submitter:
        return Submitter(name=self.name, registration=self.registration, notes=self.notes)

    def reset(self) -> None:
        """Back to an empty cart and empty fields, panel closed."""
        self.cart.clear()
        self.name = ""
        self.registration = ""
        self.notes = ""
        self.cart_open = False

    def to_dict(self) -> dict:
        return {
            "session_id": self.id,
            "is_open": self.is_open,
            "cart": [{"id": entry.item_id, "name": entry.name} for entry in self.cart],
            "name": self.name,
            "registration": self.registration,
            "notes": self.notes,
            "cart_open": self.cart_open,
            "state": self.state.value,
            "can_submit": self.can_submit,
        }


class SessionRegistry:
    """
    In-memory map of active ordering sessions.

    Sessions not touched for ``idle_timeout`` seconds are dropped by
    ``evict_idle()``. Sessions with a submission in flight are kept until it
    finishes.
    """

    def __init__(
        self,
        is_open: Callable[[], bool],
        idle_timeout: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._is_open = is_open
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, OrderSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> OrderSession:
        session = OrderSession(self._is_open)
        session.last_seen = self._clock()
        self._sessions[session.id] = session
        logger.debug(f"Session {session.id} created ({len(self._sessions)} active)")
        return session

    def get(self, session_id: str) -> Optional[OrderSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = self._clock()
        return session

    def discard(self, session_id: str) -> bool:
        """
        Forget a session. An in-flight submission is not cancelled; the
        store completes or fails it on its own.
        """
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.debug(f"Session {session_id} discarded")
        return removed

    def evict_idle(self) -> int:
        """
        Drop sessions idle for longer than ``idle_timeout``.

        Returns:
            int: Number of sessions evicted
        """
        cutoff = self._clock() - self.idle_timeout
        expired = [
            session.id
            for session in self._sessions.values()
            if session.last_seen < cutoff and session.state not in IN_FLIGHT_STATES
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s), {len(self._sessions)} active")
        return len(expired)
