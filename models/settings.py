# models/settings.py

from typing import List, Optional

from models.base import DocumentModel
from models.enums import ThemeColor, WidgetSize


class WidgetConfig(DocumentModel):
    id: str
    enabled: bool = True
    order: int = 999
    size: WidgetSize = WidgetSize.md


class UserSettings(DocumentModel):
    """Per-user preferences, stored at users/{uid}/settings/app."""
    user_name: str
    theme_color: ThemeColor = ThemeColor.indigo
    dark_mode: bool = False
    auto_dark_mode: bool = False
    google_sync: bool = False
    whatsapp_sync: bool = False
    weather_city: Optional[str] = None
    dashboard_widgets: List[WidgetConfig]


class SettingsPatch(DocumentModel):
    """
    Partial settings update. Fields left as None are not written.
    theme_color and dashboard_widgets are raw on purpose: they go through
    the same coercion as the read path.
    """
    user_name: Optional[str] = None
    theme_color: Optional[str] = None
    dark_mode: Optional[bool] = None
    auto_dark_mode: Optional[bool] = None
    google_sync: Optional[bool] = None
    whatsapp_sync: Optional[bool] = None
    weather_city: Optional[str] = None
    dashboard_widgets: Optional[list] = None
