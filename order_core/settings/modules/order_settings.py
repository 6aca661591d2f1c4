from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from order_core.settings.base import OrderCoreBaseSettings


class OrderSettings(OrderCoreBaseSettings):
    """
    Pricing and order-lifecycle settings.
    Loaded from the environment with exact variable name matching.
    """

    currency: str = Field("USD", alias="ORDER_CURRENCY", min_length=3, max_length=3)
    tax_rate: Decimal = Field(Decimal("0.08"), alias="ORDER_TAX_RATE", ge=0)
    service_fee_rate: Decimal = Field(Decimal("0"), alias="ORDER_SERVICE_FEE_RATE", ge=0)
    default_delivery_fee: Decimal = Field(Decimal("2.99"), alias="ORDER_DEFAULT_DELIVERY_FEE", ge=0)
    default_delivery_minutes: int = Field(45, alias="ORDER_DEFAULT_DELIVERY_MINUTES", gt=0)
    totals_tolerance: Decimal = Field(Decimal("0.01"), alias="ORDER_TOTALS_TOLERANCE", ge=0)

    order_number_max_attempts: int = Field(3, alias="ORDER_NUMBER_MAX_ATTEMPTS", ge=1)
    status_update_max_attempts: int = Field(3, alias="ORDER_STATUS_UPDATE_MAX_ATTEMPTS", ge=1)

    allow_cancel_while_preparing: bool = Field(False, alias="ORDER_ALLOW_CANCEL_WHILE_PREPARING")
    notification_timeout_seconds: float = Field(10.0, alias="ORDER_NOTIFICATION_TIMEOUT_SECONDS", gt=0)
