from __future__ import annotations

from typing import Optional

from pydantic import Field

from order_core.settings.base import OrderCoreBaseSettings


class NotificationSettings(OrderCoreBaseSettings):
    """
    Outbound notification settings.
    Loaded from the environment with exact variable name matching.

    The customer webhook is a relay that turns the JSON payload into the
    confirmation email; the Slack webhook receives the admin alert.
    """

    enabled: bool = Field(True, alias="NOTIFY_ENABLED")
    customer_webhook_url: Optional[str] = Field(None, alias="NOTIFY_CUSTOMER_WEBHOOK_URL")
    slack_webhook_url: Optional[str] = Field(None, alias="SLACK_WEBHOOK_URL")
    slack_prefix: str = Field("[orders]", alias="NOTIFY_SLACK_PREFIX")
