"""
Pydantic Schemas for Request/Response Validation

Field formats are deliberately not enforced here: submitter fields are
checked keystroke by keystroke by the ordering session and again, in
order, by the submission workflow, which owns the user-facing messages.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CartAddRequest(BaseModel):
    """Dish to add to the cart."""
    item_id: str = Field(..., min_length=1, examples=["optional-3"])


class CartPanelRequest(BaseModel):
    """Open or close the cart panel."""
    open: bool


class SubmitterUpdate(BaseModel):
    """Draft values typed by the customer. Omitted fields are left as they are."""
    name: Optional[str] = Field(None, examples=["João Silva"])
    registration: Optional[str] = Field(None, examples=["1234"])
    notes: Optional[str] = Field(None, examples=["Sem cebola, por favor."])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItemResponse(BaseModel):
    id: str
    name: str
    description: str
    image_url: Optional[str]
    day_of_week: int
    category: str


class MenuDayResponse(BaseModel):
    day: int
    name: str
    is_current: bool
    main: List[MenuItemResponse]
    salad: List[MenuItemResponse]
    optional: List[MenuItemResponse]


class MenuResponse(BaseModel):
    """Weekly menu, Monday to Saturday."""
    restaurant_name: str
    days: List[MenuDayResponse]


class StatusResponse(BaseModel):
    """Whether ordering is currently allowed."""
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    checked_at: datetime


class CartEntryResponse(BaseModel):
    id: str
    name: str


class SessionResponse(BaseModel):
    """Current state of an ordering session."""
    session_id: str
    is_open: bool
    cart: List[CartEntryResponse]
    name: str
    registration: str
    notes: str
    cart_open: bool
    state: str
    can_submit: bool


class NoticeResponse(BaseModel):
    level: str
    message: str


class CartChangeResponse(BaseModel):
    """Result of a cart mutation."""
    changed: bool
    notice: NoticeResponse
    session: SessionResponse


class SubmitterUpdateResponse(BaseModel):
    """Fields whose draft was rejected keep their previous value."""
    rejected: List[str]
    session: SessionResponse


class SubmissionResponse(BaseModel):
    """Outcome of a submit attempt."""
    success: bool
    state: str
    notice: NoticeResponse
    order_id: Optional[int] = None
    field: Optional[str] = None
    session: SessionResponse


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    store: str
    redis: str
    availability_clock: str
    active_sessions: int
    timestamp: datetime
