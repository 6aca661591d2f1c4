# Settings modules
from .app_settings import AppSettings, get_app_settings
from .integrations_settings import NotificationSettings
from .order_settings import OrderSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "NotificationSettings",
    "OrderSettings",
]
