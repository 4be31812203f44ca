"""
Menu Store Factory

Provides a single entry point for obtaining a menu store instance.
The rest of the application stays agnostic about which backend is used.

Usage:
    from canteen.services.store import get_menu_store

    # Returns MockMenuStore or SqlMenuStore based on ENV_MODE
    store = get_menu_store()

    window = await store.get_opening_window()

Environment Switching:
    - ENV_MODE=development → MockMenuStore (in memory)
    - ENV_MODE=staging → SqlMenuStore
    - ENV_MODE=production → SqlMenuStore

Version: 1.0.0
"""

import logging
from functools import lru_cache

from canteen.core.config import get_settings
from canteen.ordering.entities import OpeningWindow
from canteen.services.store.base import BaseMenuStore
from canteen.services.store.mock import MockMenuStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_menu_store() -> BaseMenuStore:
    """
    Get the configured menu store instance.

    The instance is cached so every request and the availability clock
    share one store.

    Returns:
        BaseMenuStore: Configured menu store instance
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Menu Store: Using MockMenuStore (development mode)")
        window = None
        if settings.mock_opening_time and settings.mock_closing_time:
            window = OpeningWindow.from_strings(
                settings.mock_opening_time, settings.mock_closing_time
            )
        return MockMenuStore(
            opening_window=window,
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    # Imported here so development mode never needs a database driver
    from canteen.services.store.sql import SqlMenuStore

    logger.info(f"Menu Store: Using SqlMenuStore ({settings.env_mode.value} mode)")
    return SqlMenuStore()


def reset_menu_store() -> None:
    """
    Clear the cached store instance.

    The next call to get_menu_store() will create a new instance.
    """
    get_menu_store.cache_clear()
    logger.debug("Menu store cache cleared")


__all__ = [
    "get_menu_store",
    "reset_menu_store",
    "BaseMenuStore",
    "MockMenuStore",
]
