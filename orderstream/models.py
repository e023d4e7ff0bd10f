"""
SQLAlchemy Database Models

Order documents as stored in staging/production. Development mode keeps
the same records in memory (see services.orders.memory).
"""

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, JSON, String, Text

from orderstream.database import Base
from orderstream.services.orders.base import OrderStatus, OrderType


class Order(Base):
    """
    Main Order table.

    Tracks an order from checkout to delivery. `daily_order_id` is the
    number shown on receipts and the kitchen display; it restarts every day.
    """
    __tablename__ = "orders"

    # Primary Key
    id = Column(String(32), primary_key=True)

    # =========================================================================
    # DAILY NUMBERING
    # =========================================================================
    daily_order_id = Column(Integer, nullable=False)
    order_date = Column(String(10), nullable=False, index=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    contact_number = Column(String(20), nullable=False, index=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    order_type = Column(
        Enum(OrderType),
        default=OrderType.TAKEAWAY,
        nullable=False,
        index=True
    )
    delivery_address = Column(Text, nullable=True)
    items = Column(JSON, nullable=False)  # [{name, quantity, price}]

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Float, nullable=False)
    delivery_charge = Column(Float, nullable=False, default=0.0)
    packing_charge = Column(Float, nullable=False, default=0.0)
    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Float, nullable=True)
    discount_amount = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False)

    # =========================================================================
    # PAYMENT INFO
    # =========================================================================
    payment_status = Column(String(20), default="success")
    payment_method = Column(String(20), default="cash")
    is_admin_order = Column(Boolean, default=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Order #{self.daily_order_id} ({self.id}) - {self.order_type.value} - {self.status.value}>"
