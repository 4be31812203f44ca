"""
Ordering Core

Opening-hours gate, field validation, cart and the order submission
workflow for one customer session.
"""

from canteen.ordering.availability import AvailabilityClock, is_open, is_open_at
from canteen.ordering.cart import CartStore
from canteen.ordering.entities import (
    CartEntry,
    MenuCategory,
    MenuItem,
    Notice,
    OpeningWindow,
    Submitter,
)
from canteen.ordering.session import OrderSession, SessionRegistry
from canteen.ordering.workflow import (
    OrderSubmissionWorkflow,
    SubmissionResult,
    SubmissionState,
)

__all__ = [
    "AvailabilityClock",
    "is_open",
    "is_open_at",
    "CartStore",
    "CartEntry",
    "MenuCategory",
    "MenuItem",
    "Notice",
    "OpeningWindow",
    "Submitter",
    "OrderSession",
    "SessionRegistry",
    "OrderSubmissionWorkflow",
    "SubmissionResult",
    "SubmissionState",
]
