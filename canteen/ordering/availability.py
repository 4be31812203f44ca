"""
Availability Clock

Answers "is ordering allowed right now?" from the configured opening
window and the current day. The answer is re-evaluated by a background
asyncio task so that crossing a window boundary while a session is open
is picked up within one polling interval.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from canteen.ordering.entities import OpeningWindow
from canteen.ordering.errors import StoreError

logger = logging.getLogger(__name__)

SUNDAY = 0

WindowLoader = Callable[[], Awaitable[Optional[OpeningWindow]]]


def day_of_week(moment: datetime) -> int:
    """0=Sunday, 1=Monday ... 6=Saturday."""
    return moment.isoweekday() % 7


def is_open_at(minute_of_day: int, day: int, window: Optional[OpeningWindow]) -> bool:
    """
    Open iff a window is configured, the day is not Sunday and
    ``opening <= minute_of_day <= closing`` (both bounds inclusive).
    """
    if window is None or day == SUNDAY:
        return False
    return window.opening_minute <= minute_of_day <= window.closing_minute


def is_open(moment: datetime, window: Optional[OpeningWindow]) -> bool:
    minute_of_day = moment.hour * 60 + moment.minute
    return is_open_at(minute_of_day, day_of_week(moment), window)


class AvailabilityClock:
    """
    Periodically recomputed "open now" flag.

    The window is reloaded from the store on every tick so changes made by
    the restaurant are picked up without a restart. When a reload fails the
    last known window is kept.

    Example:
        >>> clock = AvailabilityClock(store.get_opening_window, timezone="America/Sao_Paulo")
        >>> await clock.start()
        >>> clock.is_open
        True
    """

    def __init__(
        self,
        load_window: WindowLoader,
        interval: float = 60.0,
        timezone: Optional[str] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            load_window: Coroutine function returning the current window
            interval: Seconds between re-evaluations
            timezone: IANA zone used for the default ``now``
            now: Clock override, mainly for tests
        """
        self._load_window = load_window
        self.interval = interval
        self._tz = ZoneInfo(timezone) if timezone else None
        self._now = now or self._default_now
        self._window: Optional[OpeningWindow] = None
        self._is_open = False
        self._task: Optional[asyncio.Task] = None

    def _default_now(self) -> datetime:
        return datetime.now(self._tz)

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def window(self) -> Optional[OpeningWindow]:
        return self._window

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def now(self) -> datetime:
        return self._now()

    def evaluate(self) -> bool:
        """Recompute the flag against the cached window without I/O."""
        was_open = self._is_open
        self._is_open = is_open(self._now(), self._window)
        if was_open != self._is_open:
            logger.info(f"Ordering is now {'open' if self._is_open else 'closed'}")
        return self._is_open

    async def refresh(self) -> bool:
        """Reload the window from the store, then recompute."""
        try:
            self._window = await self._load_window()
        except (StoreError, ValueError) as e:
            logger.warning(f"Could not reload opening window, keeping last known: {e}")
        return self.evaluate()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh()
            except Exception:
                logger.exception("Availability refresh failed, retrying on next tick")

    async def start(self) -> None:
        """Evaluate once, then keep re-evaluating in the background."""
        await self.refresh()
        if not self.running:
            self._task = asyncio.create_task(self._run(), name="availability-clock")
            logger.info(f"Availability clock started (every {self.interval:g}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Availability clock stopped")
