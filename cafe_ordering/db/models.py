"""Database models."""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class OrderStatus:
    """Kitchen/bar lifecycle of a finalized order."""

    RECEIVED = "received"
    IN_PREPARATION = "in_preparation"
    READY_TO_SERVE = "ready_to_serve"
    COMPLETED = "completed"

    ALL = [RECEIVED, IN_PREPARATION, READY_TO_SERVE, COMPLETED]
    NEXT = {
        RECEIVED: IN_PREPARATION,
        IN_PREPARATION: READY_TO_SERVE,
        READY_TO_SERVE: COMPLETED,
        COMPLETED: COMPLETED,
    }


class Order(Base):
    """Order model."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, index=True, nullable=True)
    customer_phone = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    summary = Column(Text, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String, default=OrderStatus.RECEIVED, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """Order item model."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    item_name = Column(String, nullable=False)
    preparation_area = Column(String, nullable=False)  # bar, kitchen
    unit_price = Column(Numeric(10, 2), nullable=False)
    customizations = Column(JSON, nullable=True)  # [{"name": ..., "price": ...}]

    # Relationships
    order = relationship("Order", back_populates="items")
