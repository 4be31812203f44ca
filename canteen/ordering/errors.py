"""
Ordering Exceptions

Every error here is terminal to the current attempt only. The session
layer turns them into user-facing notices; none of them is fatal to the
ordering session.
"""

from typing import Optional


class OrderingError(Exception):
    """Base class for all ordering-core errors."""

    #: Message shown to the customer
    user_message = "Something went wrong with your order"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class ValidationError(OrderingError):
    """A submitter field or the cart failed a submission check."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class PersistenceError(OrderingError):
    """
    The store rejected one of the order writes.

    Attributes:
        step: "header" or "items"
        order_id: Id of the header already written, when step == "items"
    """

    user_message = "Could not place your order. Please try again."

    def __init__(self, step: str, order_id: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__()
        self.step = step
        self.order_id = order_id
        self.cause = cause

    @property
    def orphaned_order_id(self) -> Optional[int]:
        """The header left without items, if any."""
        return self.order_id if self.step == "items" else None


class AvailabilityError(OrderingError):
    """Attempted cart mutation or submission while the restaurant is closed."""

    user_message = "The restaurant is closed right now"


class SubmissionInProgress(OrderingError):
    """A second submit arrived while one is still being persisted."""

    user_message = "Your order is already being sent"


class StoreError(Exception):
    """
    Raised by menu store implementations on any failed read or write.

    Covers constraint violations as well as connectivity problems.
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
