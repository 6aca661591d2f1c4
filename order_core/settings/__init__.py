# Settings package
from order_core.settings.modules import AppSettings, NotificationSettings, OrderSettings, get_app_settings

__all__ = ["get_app_settings", "AppSettings", "NotificationSettings", "OrderSettings"]
