"""
Order Submission Workflow

Turns an ordering session into a stored order:

    idle → validating → persisting_header → persisting_items → committed
                 ↓               ↓                  ↓
         validation_failed   persist_failed    persist_failed

Every attempt ends back in ``idle``. Validation reports only the first
failing check. Store failures leave the cart and the typed fields untouched
so the customer can resubmit; no automatic retry is made.

In ``two_step`` write mode a failure of the items write leaves the header
behind without items (an orphan). It is logged with its id and left in the
store. ``atomic`` mode writes both in one store transaction instead.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from canteen.core.config import OrderWriteMode
from canteen.ordering import validators
from canteen.ordering.entities import CartEntry, Notice, Submitter
from canteen.ordering.errors import (
    PersistenceError,
    StoreError,
    SubmissionInProgress,
    ValidationError,
)
from canteen.services.store.base import BaseMenuStore

if TYPE_CHECKING:
    from canteen.ordering.session import OrderSession

logger = logging.getLogger(__name__)

INVALID_NAME = "Please enter a valid name (letters only)"
INVALID_REGISTRATION = "Please enter a valid registration (4 digits)"
INVALID_NOTES = "Please enter valid notes (text and basic punctuation only)"
EMPTY_CART = "Add items to your cart"
ORDER_PLACED = "Order placed successfully!"

CART = "cart"
HEADER_STEP = "header"
ITEMS_STEP = "items"


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PERSISTING_HEADER = "persisting_header"
    PERSISTING_ITEMS = "persisting_items"
    COMMITTED = "committed"
    VALIDATION_FAILED = "validation_failed"
    PERSIST_FAILED = "persist_failed"


IN_FLIGHT_STATES = frozenset({
    SubmissionState.VALIDATING,
    SubmissionState.PERSISTING_HEADER,
    SubmissionState.PERSISTING_ITEMS,
})


@dataclass(frozen=True)
class SubmissionResult:
    """
    Outcome of one submit attempt.

    Attributes:
        state: Terminal state reached (committed, validation_failed,
            persist_failed), or the in-flight state when the attempt was
            refused because another one is running
        notice: Message to show the customer
        accepted: False when the attempt was refused by the re-entrancy guard
        order_id: Id of the stored order (committed only)
        field: Field that failed validation
        failed_step: "header" or "items" on a persistence failure
        orphaned_order_id: Header left without items, if any
        submitter: Snapshot of the submitted fields (committed only)
        entries: Snapshot of the submitted cart (committed only)
    """
    state: SubmissionState
    notice: Notice
    accepted: bool = True
    order_id: Optional[int] = None
    field: Optional[str] = None
    failed_step: Optional[str] = None
    orphaned_order_id: Optional[int] = None
    submitter: Optional[Submitter] = None
    entries: tuple[CartEntry, ...] = ()

    @property
    def committed(self) -> bool:
        return self.state == SubmissionState.COMMITTED


def validate_submission(submitter: Submitter, entries: list[CartEntry]) -> None:
    """
    Run the submission checks in order; the first failure wins.

    Raises:
        ValidationError: For the first failing check
    """
    if not submitter.name or not validators.is_valid_name(submitter.name):
        raise ValidationError(validators.NAME, INVALID_NAME)
    if not submitter.registration or not validators.is_valid_registration(submitter.registration):
        raise ValidationError(validators.REGISTRATION, INVALID_REGISTRATION)
    if submitter.notes and not validators.is_valid_notes(submitter.notes):
        raise ValidationError(validators.NOTES, INVALID_NOTES)
    if not entries:
        raise ValidationError(CART, EMPTY_CART)


class OrderSubmissionWorkflow:
    """
    Validates a session and persists its order through the menu store.

    Opening hours are not re-checked here: a submission that started
    while open runs to completion even if the window closes meanwhile.

    Example:
        >>> workflow = OrderSubmissionWorkflow(get_menu_store())
        >>> result = await workflow.submit(session)
        >>> result.committed
        True
    """

    def __init__(self, store: BaseMenuStore, write_mode: OrderWriteMode = OrderWriteMode.TWO_STEP):
        self.store = store
        self.write_mode = write_mode

    async def submit(self, session: "OrderSession") -> SubmissionResult:
        if session.state in IN_FLIGHT_STATES:
            logger.info(f"Session {session.id}: submit refused, {session.state.value} in progress")
            return SubmissionResult(
                state=session.state,
                notice=Notice.error(SubmissionInProgress.user_message),
                accepted=False,
            )

        try:
            return await self._attempt(session)
        finally:
            session.state = SubmissionState.IDLE

    async def _attempt(self, session: "OrderSession") -> SubmissionResult:
        session.state = SubmissionState.VALIDATING
        submitter = session.submitter_snapshot()
        entries = session.cart.entries

        try:
            validate_submission(submitter, entries)
        except ValidationError as e:
            logger.info(f"Session {session.id}: validation failed on {e.field}")
            return SubmissionResult(
                state=SubmissionState.VALIDATION_FAILED,
                notice=Notice.error(e.user_message),
                field=e.field,
            )

        item_ids = [entry.item_id for entry in entries]
        try:
            order_id = await self._persist(session, submitter, item_ids)
        except PersistenceError as e:
            return SubmissionResult(
                state=SubmissionState.PERSIST_FAILED,
                notice=Notice.error(e.user_message),
                failed_step=e.step,
                orphaned_order_id=e.orphaned_order_id,
            )

        session.state = SubmissionState.COMMITTED
        session.reset()
        logger.info(f"Session {session.id}: Order #{order_id} committed with {len(item_ids)} item(s)")
        return SubmissionResult(
            state=SubmissionState.COMMITTED,
            notice=Notice.success(ORDER_PLACED),
            order_id=order_id,
            submitter=submitter,
            entries=tuple(entries),
        )

    async def _persist(self, session: "OrderSession", submitter: Submitter, item_ids: list[str]) -> int:
        """
        Write the order using the configured write mode.

        Raises:
            PersistenceError: If the store rejects a write
        """
        if self.write_mode == OrderWriteMode.ATOMIC:
            session.state = SubmissionState.PERSISTING_HEADER
            try:
                return await self.store.create_order_with_items(submitter, item_ids)
            except StoreError as e:
                logger.error(f"Session {session.id}: atomic order write failed, nothing stored: {e}")
                raise PersistenceError(HEADER_STEP, cause=e) from e

        session.state = SubmissionState.PERSISTING_HEADER
        try:
            order_id = await self.store.create_order(submitter)
        except StoreError as e:
            logger.error(f"Session {session.id}: order header write failed: {e}")
            raise PersistenceError(HEADER_STEP, cause=e) from e

        session.state = SubmissionState.PERSISTING_ITEMS
        try:
            await self.store.create_order_items(order_id, item_ids)
        except StoreError as e:
            logger.error(
                f"Session {session.id}: order items write failed, "
                f"Order #{order_id} header left without items: {e}"
            )
            raise PersistenceError(ITEMS_STEP, order_id=order_id, cause=e) from e

        return order_id
