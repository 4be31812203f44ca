"""
SQL Menu Store Implementation

PostgreSQL-backed store used in staging and production. Reads the weekly
menu and opening window maintained by the restaurant staff and writes
orders submitted by customers.

Header and items are written in separate transactions by
``create_order``/``create_order_items``; ``create_order_with_items`` wraps
both in one transaction.

Version: 1.0.0
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from canteen.database import async_session_maker
from canteen.models import AdminSettings, Dish, Order, OrderItem
from canteen.ordering.entities import MenuCategory, MenuItem, OpeningWindow, Submitter
from canteen.ordering.errors import StoreError
from canteen.services.store.base import BaseMenuStore

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Re-raise driver errors as StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"SQL store: {operation} failed: {e}")
        raise StoreError(str(e), operation=operation) from e
    except OSError as e:
        logger.error(f"SQL store: {operation} failed, database unreachable: {e}")
        raise StoreError(str(e), operation=operation) from e


def _to_menu_item(dish: Dish) -> MenuItem:
    return MenuItem(
        id=dish.id,
        name=dish.name,
        description=dish.description or "",
        image_url=dish.image_url,
        day_of_week=dish.day_of_week,
        category=dish.category,
    )


def _new_order(submitter: Submitter) -> Order:
    return Order(
        user_name=submitter.name,
        registration=submitter.registration,
        observations=submitter.notes,
    )


class SqlMenuStore(BaseMenuStore):
    """
    SQLAlchemy async implementation of the menu store.

    Args:
        session_factory: Session factory to use (defaults to the
            application's PostgreSQL engine)
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory or async_session_maker

    @property
    def provider_name(self) -> str:
        return "sql"

    async def list_items_by_category(self, category: MenuCategory) -> list[MenuItem]:
        with _store_errors("list_items_by_category"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Dish)
                    .where(Dish.category == category)
                    .order_by(Dish.day_of_week.asc(), Dish.name.asc())
                )
                return [_to_menu_item(dish) for dish in result.scalars().all()]

    async def get_opening_window(self) -> Optional[OpeningWindow]:
        with _store_errors("get_opening_window"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AdminSettings).order_by(AdminSettings.id).limit(1)
                )
                row = result.scalar_one_or_none()

        if row is None:
            return None
        try:
            return OpeningWindow.from_strings(row.opening_time, row.closing_time)
        except ValueError as e:
            raise StoreError(f"Malformed opening window: {e}", operation="get_opening_window") from e

    async def create_order(self, submitter: Submitter) -> int:
        with _store_errors("create_order"):
            async with self._session_factory() as session:
                order = _new_order(submitter)
                session.add(order)
                await session.commit()
                logger.info(f"Order #{order.id} header stored")
                return order.id

    async def create_order_items(self, order_id: int, item_ids: Sequence[str]) -> None:
        with _store_errors("create_order_items"):
            async with self._session_factory() as session:
                session.add_all(
                    [OrderItem(order_id=order_id, dish_id=item_id) for item_id in item_ids]
                )
                await session.commit()
                logger.info(f"{len(item_ids)} item(s) stored for Order #{order_id}")

    async def create_order_with_items(self, submitter: Submitter, item_ids: Sequence[str]) -> int:
        with _store_errors("create_order_with_items"):
            async with self._session_factory() as session:
                async with session.begin():
                    order = _new_order(submitter)
                    session.add(order)
                    await session.flush()
                    session.add_all(
                        [OrderItem(order_id=order.id, dish_id=item_id) for item_id in item_ids]
                    )
                logger.info(f"Order #{order.id} stored with {len(item_ids)} item(s)")
                return order.id

    async def health_check(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"SQL store health check failed: {e}")
            return False
