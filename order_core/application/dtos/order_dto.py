"""Application DTOs for Order operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderItemInput(BaseModel):
    """Cart line as submitted by the client. Checked by the domain, not here."""

    name: str = Field(default="", description="Menu item name")
    unit_price: Decimal = Field(default=Decimal("0"), description="Unit price (client view)")
    quantity: int = Field(default=1, description="Quantity ordered")
    image_ref: str = Field(default="", description="Image reference")
    special_instructions: str = Field(default="", description="Per-item instructions")
    menu_item_id: Optional[str] = Field(None, description="Catalog menu item id")

    model_config = {"frozen": True}


class AddressDTO(BaseModel):
    """Delivery address."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    area: str = ""
    instructions: str = ""

    model_config = {"frozen": True}


class ContactInfoDTO(BaseModel):
    """Contact details of the person receiving the order."""

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: Optional[str] = None

    model_config = {"frozen": True}


class ClientTotalsInput(BaseModel):
    """Totals as displayed to the customer. Advisory only."""

    subtotal: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None

    model_config = {"frozen": True}


class CreateOrderRequest(BaseModel):
    """Request DTO for creating an order."""

    restaurant_id: Optional[str] = Field(None, description="Restaurant id")
    restaurant_name: Optional[str] = Field(None, description="Restaurant display name")
    restaurant_image: str = Field(default="", description="Restaurant image reference")
    items: List[OrderItemInput] = Field(default_factory=list, description="Cart lines")
    delivery_type: str = Field(default="delivery", description="delivery | pickup")
    delivery_address: Optional[AddressDTO] = Field(None, description="Required for delivery")
    contact_info: Optional[ContactInfoDTO] = Field(None, description="Contact details")
    payment_method: Optional[str] = Field(None, description="Payment method")
    tip: Decimal = Field(default=Decimal("0"), description="Tip amount")
    special_instructions: str = Field(default="", description="Order-level note")
    coupon_code: Optional[str] = Field(None, description="Coupon code")
    client_totals: Optional[ClientTotalsInput] = Field(None, description="Client-side totals")

    model_config = {"frozen": True}


class OrderItemDTO(BaseModel):
    """DTO for order item."""

    name: str
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    item_total: Decimal = Field(..., ge=0)
    image_ref: str = ""
    special_instructions: str = ""
    menu_item_id: Optional[str] = None

    model_config = {"frozen": True}


class OrderDTO(BaseModel):
    """Response DTO for order details."""

    id: str
    order_number: str
    user_id: Optional[str] = None
    user_email: str
    restaurant_id: str
    restaurant_name: str
    restaurant_image: str = ""
    items: List[OrderItemDTO] = Field(default_factory=list)
    delivery_type: str
    delivery_address: Optional[AddressDTO] = None
    contact_info: ContactInfoDTO
    special_instructions: str = ""
    coupon_code: Optional[str] = None

    currency: str = "USD"
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    service_fee: Decimal
    tip: Decimal
    discount_amount: Decimal
    total_amount: Decimal = Field(..., ge=0)

    status: str
    payment_method: str
    payment_status: str

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    rated: bool = False
    rating: Optional[int] = None
    review: Optional[str] = None
    version: int = 0

    model_config = {"frozen": True}


class OrderListDTO(BaseModel):
    """DTO for listing orders."""

    orders: List[OrderDTO] = Field(default_factory=list, description="One page of orders")
    total: int = Field(..., ge=0, description="Total count")
    pages: int = Field(..., ge=0, description="Number of pages")
    current_page: int = Field(..., ge=1, description="1-based page number")

    model_config = {"frozen": True}


class CreateOrderResult(BaseModel):
    """Outcome of checkout."""

    order: OrderDTO
    notifications_scheduled: bool = False
    client_totals_mismatch: bool = False

    model_config = {"frozen": True}
