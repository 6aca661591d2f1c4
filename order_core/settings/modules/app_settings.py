from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from order_core.settings.modules.integrations_settings import NotificationSettings
from order_core.settings.modules.order_settings import OrderSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    orders: OrderSettings
    notifications: NotificationSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        orders=OrderSettings(),
        notifications=NotificationSettings(),
    )
