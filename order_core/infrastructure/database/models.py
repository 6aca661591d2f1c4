"""
SQLAlchemy ORM Models.

Maps the Order aggregate to database tables. Money is stored as integer
minor units (cents) so no precision is lost on any backend.
"""
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


# =============================================================================
# ORDER MODEL
# =============================================================================

class OrderModel(Base):
    """
    Order database model.

    Enumerated values are stored verbatim ("pending", "cash_on_delivery", ...).
    """

    __tablename__ = "orders"

    # Primary key
    id = Column(String(36), primary_key=True)

    # Order identifiers
    order_number = Column(String(32), nullable=False)
    user_id = Column(String(64), nullable=True, index=True)
    user_email = Column(String(255), nullable=False)

    # Restaurant
    restaurant_id = Column(String(64), nullable=False, index=True)
    restaurant_name = Column(String(255), nullable=False)
    restaurant_image = Column(String(500), nullable=False, default="")

    # Delivery and contact
    delivery_type = Column(String(20), nullable=False)
    delivery_address = Column(JSON, nullable=True)
    contact_info = Column(JSON, nullable=False)
    notification_email_source = Column(String(20), nullable=False)
    special_instructions = Column(Text, nullable=False, default="")
    coupon_code = Column(String(64), nullable=True)

    # Money (minor units)
    currency = Column(String(3), nullable=False)
    subtotal_minor = Column(BigInteger, nullable=False)
    delivery_fee_minor = Column(BigInteger, nullable=False)
    tax_minor = Column(BigInteger, nullable=False)
    service_fee_minor = Column(BigInteger, nullable=False)
    tip_minor = Column(BigInteger, nullable=False)
    discount_minor = Column(BigInteger, nullable=False)
    total_minor = Column(BigInteger, nullable=False)

    # Status
    status = Column(String(30), nullable=False, index=True)
    payment_method = Column(String(30), nullable=False)
    payment_status = Column(String(30), nullable=False)

    # Timestamps (set by the domain, never by the database)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Feedback
    rated = Column(Boolean, nullable=False, default=False)
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_orders_order_number"),
        Index("ix_orders_user_created", "user_id", "created_at"),
        Index("ix_orders_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<OrderModel(id={self.id}, order_number={self.order_number}, status={self.status})>"


# =============================================================================
# ORDER ITEM MODEL
# =============================================================================

class OrderItemModel(Base):
    """Order line, kept in submission order via ``position``."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    name = Column(String(255), nullable=False)
    unit_price_minor = Column(BigInteger, nullable=False)
    quantity = Column(Integer, nullable=False)
    image_ref = Column(String(500), nullable=False, default="")
    special_instructions = Column(Text, nullable=False, default="")
    menu_item_id = Column(String(64), nullable=True)

    order = relationship("OrderModel", back_populates="items")

    def __repr__(self):
        return f"<OrderItemModel(id={self.id}, name={self.name}, quantity={self.quantity})>"
