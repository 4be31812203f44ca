"""
SQLAlchemy Database Models

Tables behind the SQL menu store:
- dishes: weekly menu, one row per dish and day
- admin_settings: single row holding the opening window
- orders / order_items: order headers and their line items

Orders carry no status column: a header is either complete (has items)
or an orphan left by a failed items write.
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from canteen.database import Base
from canteen.ordering.entities import MenuCategory


class Dish(Base):
    """A dish served on one day of the week (1=Monday ... 6=Saturday)."""
    __tablename__ = "dishes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category = Column(Enum(MenuCategory), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(500), nullable=True)
    day_of_week = Column(Integer, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Dish {self.id} - {self.category.value} - day {self.day_of_week} - {self.name}>"


class AdminSettings(Base):
    """Restaurant-wide settings edited by the staff."""
    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    opening_time = Column(String(8), nullable=False)  # HH:MM or HH:MM:SS
    closing_time = Column(String(8), nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Order(Base):
    """Order header written before its line items."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_name = Column(String(100), nullable=False)
    registration = Column(String(4), nullable=False, index=True)
    observations = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("OrderItem", back_populates="order", lazy="selectin")

    def __repr__(self):
        return f"<Order #{self.id} - {self.user_name} ({self.registration})>"


class OrderItem(Base):
    """One selected dish of an order."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    dish_id = Column(String(36), ForeignKey("dishes.id"), nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem order={self.order_id} dish={self.dish_id}>"
