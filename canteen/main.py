"""
FastAPI Application Entry Point

Canteen Weekly Menu - login-less same-day ordering.
Supports both the in-memory mock store (development) and PostgreSQL
(staging/production).

Endpoints:
    - GET /api/menu: Weekly menu grouped by day
    - GET /api/status: Whether ordering is open right now
    - POST /api/sessions: Start an ordering session
    - POST /api/sessions/{id}/cart: Add an optional dish
    - PATCH /api/sessions/{id}/submitter: Type name, registration, notes
    - POST /api/sessions/{id}/orders: Submit the order
    - GET /health: System health check

Version: 1.0.0
"""

import asyncio
import logging
import sys
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import redis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from canteen.core.config import Settings, get_settings, setup_logging
from canteen.ordering.availability import AvailabilityClock
from canteen.ordering.entities import MenuCategory, Notice, NoticeLevel
from canteen.ordering.errors import AvailabilityError, StoreError
from canteen.ordering.menu import build_weekly_menu, highlighted_day
from canteen.ordering.session import OrderSession, SessionRegistry
from canteen.ordering.workflow import OrderSubmissionWorkflow, SubmissionResult, SubmissionState
from canteen.schemas import (
    CartAddRequest,
    CartChangeResponse,
    CartPanelRequest,
    ErrorResponse,
    HealthResponse,
    MenuResponse,
    SessionResponse,
    StatusResponse,
    SubmissionResponse,
    SubmitterUpdate,
    SubmitterUpdateResponse,
)
from canteen.services.store import BaseMenuStore, get_menu_store
from canteen.tasks import export_order_to_excel, order_export_payload

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    store: BaseMenuStore = app.state.store
    clock: AvailabilityClock = app.state.clock

    logger.info("=" * 60)
    logger.info(f"Starting {app.state.settings.app_name}")
    logger.info(f"   Version: {app.state.settings.app_version}")
    logger.info(f"   Environment: {app.state.settings.env_mode.value}")
    logger.info(f"   Order write mode: {app.state.settings.order_write_mode.value}")
    logger.info(f"   Menu store: {store.provider_name}")
    logger.info("=" * 60)

    if store.provider_name == "sql":
        from canteen.database import init_db
        await init_db()
        logger.info("Database initialized")

    if app.state.settings.use_sql_store:
        missing = app.state.settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    await clock.start()
    logger.info(f"Ordering is {'open' if clock.is_open else 'closed'}")
    sweeper = asyncio.create_task(
        _sweep_idle_sessions(app.state.sessions, app.state.settings.session_sweep_seconds),
        name="session-sweeper",
    )
    logger.info("Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    await clock.stop()
    if store.provider_name == "sql":
        from canteen.database import engine
        await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def _sweep_idle_sessions(sessions: SessionRegistry, interval: float) -> None:
    """Periodically forget sessions whose page is gone."""
    while True:
        await asyncio.sleep(interval)
        sessions.evict_idle()


def _require_session(request: Request, session_id: str) -> OrderSession:
    session = request.app.state.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


def _session_response(session: OrderSession) -> SessionResponse:
    return SessionResponse(**session.to_dict())


def _notice(notice: Notice) -> dict[str, str]:
    return {"level": notice.level.value, "message": notice.message}


def _queue_export(app_settings: Settings, result: SubmissionResult) -> None:
    """Hand a committed order to the kitchen export worker."""
    if not app_settings.excel_export_enabled:
        return
    try:
        export_order_to_excel.delay(order_export_payload(result))
    except Exception:
        # The order is already stored; a broker outage must not undo that.
        logger.exception(f"Could not queue Excel export for Order #{result.order_id}")


SUBMISSION_STATUS = {
    SubmissionState.COMMITTED: 201,
    SubmissionState.VALIDATION_FAILED: 422,
    SubmissionState.PERSIST_FAILED: 502,
}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@router.get("/", tags=["Root"])
async def root(request: Request) -> dict[str, str]:
    """API root with navigation links."""
    app_settings = request.app.state.settings
    return {
        "message": f"Welcome to {app_settings.restaurant_name}",
        "version": app_settings.app_version,
        "environment": app_settings.env_mode.value,
        "documentation": "/docs",
        "menu": "/api/menu",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(request: Request) -> HealthResponse:
    """Verify all system components are operational."""
    app_settings = request.app.state.settings
    store: BaseMenuStore = request.app.state.store
    clock: AvailabilityClock = request.app.state.clock

    store_status = "healthy" if await store.health_check() else "unhealthy"

    redis_status = "healthy"
    if app_settings.excel_export_enabled:
        try:
            r = redis.Redis.from_url(app_settings.redis_url, socket_timeout=2)
            r.ping()
            r.close()
        except redis.RedisError as e:
            redis_status = f"unhealthy: {str(e)}"
            logger.error(f"Redis health check failed: {e}")
    else:
        redis_status = "disabled"

    clock_status = "running" if clock.running else "stopped"

    overall = "operational" if (
        store_status == "healthy"
        and redis_status in ("healthy", "disabled")
        and clock.running
    ) else "degraded"

    return HealthResponse(
        status=overall,
        store=store_status,
        redis=redis_status,
        availability_clock=clock_status,
        active_sessions=len(request.app.state.sessions),
        timestamp=datetime.now(),
    )


# =============================================================================
# MENU & STATUS ENDPOINTS
# =============================================================================

@router.get(
    "/api/menu",
    response_model=MenuResponse,
    responses={503: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def weekly_menu(request: Request) -> MenuResponse:
    """Weekly menu, Monday to Saturday, with the three menu sections."""
    store: BaseMenuStore = request.app.state.store
    clock: AvailabilityClock = request.app.state.clock

    categories = list(MenuCategory)
    try:
        results = await asyncio.gather(
            *(store.list_items_by_category(category) for category in categories)
        )
    except StoreError as e:
        logger.error(f"Could not load the menu: {e}")
        raise HTTPException(status_code=503, detail="Menu temporarily unavailable")

    menu = dict(zip(categories, results))
    return MenuResponse(
        restaurant_name=request.app.state.settings.restaurant_name,
        days=build_weekly_menu(menu, highlighted_day(clock.now())),
    )


@router.get("/api/status", response_model=StatusResponse, tags=["Menu"])
async def ordering_status(request: Request) -> StatusResponse:
    """Whether ordering is allowed right now, with the configured hours."""
    clock: AvailabilityClock = request.app.state.clock
    window = clock.window.to_dict() if clock.window else {}
    return StatusResponse(
        is_open=clock.is_open,
        checked_at=datetime.now(),
        **window,
    )


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================

@router.post("/api/sessions", response_model=SessionResponse, status_code=201, tags=["Sessions"])
async def create_session(request: Request) -> SessionResponse:
    """Start an ordering session (one per open page)."""
    session = request.app.state.sessions.create()
    return _session_response(session)


@router.get("/api/sessions/{session_id}", response_model=SessionResponse, tags=["Sessions"])
async def get_session(session_id: str, request: Request) -> SessionResponse:
    return _session_response(_require_session(request, session_id))


@router.delete("/api/sessions/{session_id}", status_code=204, tags=["Sessions"])
async def end_session(session_id: str, request: Request) -> Response:
    """Forget a session when the customer leaves the page."""
    if not request.app.state.sessions.discard(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return Response(status_code=204)


@router.post(
    "/api/sessions/{session_id}/cart",
    response_model=CartChangeResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def add_to_cart(session_id: str, payload: CartAddRequest, request: Request) -> CartChangeResponse:
    """
    Add an optional dish to the cart.

    A closed restaurant or a dish already in the cart leaves the cart
    unchanged and returns an error notice.
    """
    session = _require_session(request, session_id)
    store: BaseMenuStore = request.app.state.store

    try:
        item = await store.find_item(MenuCategory.OPTIONAL, payload.item_id)
    except StoreError as e:
        logger.error(f"Could not look up dish {payload.item_id}: {e}")
        raise HTTPException(status_code=503, detail="Menu temporarily unavailable")

    if item is None:
        raise HTTPException(status_code=404, detail=f"Dish {payload.item_id} is not orderable")

    change = session.add_to_cart(item)
    return CartChangeResponse(
        changed=change.changed,
        notice=_notice(change.notice),
        session=_session_response(session),
    )


@router.delete(
    "/api/sessions/{session_id}/cart/{item_id}",
    response_model=CartChangeResponse,
    tags=["Cart"],
)
async def remove_from_cart(session_id: str, item_id: str, request: Request) -> CartChangeResponse:
    session = _require_session(request, session_id)
    change = session.remove_from_cart(item_id)
    return CartChangeResponse(
        changed=change.changed,
        notice=_notice(change.notice),
        session=_session_response(session),
    )


@router.put("/api/sessions/{session_id}/cart-panel", response_model=SessionResponse, tags=["Cart"])
async def toggle_cart_panel(session_id: str, payload: CartPanelRequest, request: Request) -> SessionResponse:
    session = _require_session(request, session_id)
    session.cart_open = payload.open
    return _session_response(session)


@router.patch(
    "/api/sessions/{session_id}/submitter",
    response_model=SubmitterUpdateResponse,
    tags=["Sessions"],
)
async def update_submitter(session_id: str, payload: SubmitterUpdate, request: Request) -> SubmitterUpdateResponse:
    """Apply typed drafts; rejected drafts keep the previous value."""
    session = _require_session(request, session_id)
    rejected = [
        field
        for field, value in payload.model_dump(exclude_none=True).items()
        if not session.update_field(field, value)
    ]
    return SubmitterUpdateResponse(rejected=rejected, session=_session_response(session))


@router.post(
    "/api/sessions/{session_id}/orders",
    response_model=SubmissionResponse,
    responses={
        201: {"model": SubmissionResponse},
        409: {"model": SubmissionResponse},
        422: {"model": SubmissionResponse},
        502: {"model": SubmissionResponse},
    },
    tags=["Orders"],
    summary="Submit Order",
)
async def submit_order(session_id: str, request: Request, response: Response) -> SubmissionResponse:
    """
    Validate the session and store its order.

    Returns 201 when committed, 422 on a validation failure, 502 when the
    store rejected a write and 409 when ordering is closed or a submission
    is already running for this session.
    """
    session = _require_session(request, session_id)
    clock: AvailabilityClock = request.app.state.clock
    workflow: OrderSubmissionWorkflow = request.app.state.workflow

    if not session.submitting and not clock.is_open:
        response.status_code = 409
        return SubmissionResponse(
            success=False,
            state=session.state.value,
            notice=_notice(Notice(NoticeLevel.ERROR, AvailabilityError.user_message)),
            session=_session_response(session),
        )

    result = await workflow.submit(session)

    if result.committed:
        _queue_export(request.app.state.settings, result)

    response.status_code = SUBMISSION_STATUS.get(result.state, 409) if result.accepted else 409
    return SubmissionResponse(
        success=result.committed,
        state=result.state.value,
        notice=_notice(result.notice),
        order_id=result.order_id,
        field=result.field,
        session=_session_response(session),
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if request.app.state.settings.debug else "An unexpected error occurred",
        },
    )


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[BaseMenuStore] = None,
    clock: Optional[AvailabilityClock] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        app_settings: Settings to use (defaults to the environment)
        store: Menu store (defaults to the ENV_MODE store)
        clock: Availability clock (defaults to one polling ``store``)
    """
    app_settings = app_settings or settings
    store = store or get_menu_store()
    clock = clock or AvailabilityClock(
        store.get_opening_window,
        interval=app_settings.availability_poll_seconds,
        timezone=app_settings.restaurant_timezone,
    )

    app = FastAPI(
        title=app_settings.app_name,
        description=(
            "Weekly menu and same-day ordering during opening hours. "
            "Runs against an in-memory store in development and PostgreSQL in production."
        ),
        version=app_settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = app_settings
    app.state.store = store
    app.state.clock = clock
    app.state.sessions = SessionRegistry(
        lambda: clock.is_open,
        idle_timeout=app_settings.session_idle_timeout_seconds,
    )
    app.state.workflow = OrderSubmissionWorkflow(store, app_settings.order_write_mode)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
