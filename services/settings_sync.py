# services/settings_sync.py

import math
from typing import Any, List, Optional, Union

from core.logging_config import logger
from core.store import SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore, doc_path
from core.utils import drop_undefined
from models.enums import ThemeColor, WidgetSize
from models.settings import SettingsPatch, UserSettings, WidgetConfig
from services.projector import LiveProjection


DEFAULT_USER_NAME = "Utilisateur"
DEFAULT_THEME_COLOR = ThemeColor.indigo
MISSING_WIDGET_ORDER = 999


def default_dashboard_widgets() -> List[WidgetConfig]:
    return [
        WidgetConfig(id="quick_actions", enabled=True, order=10, size=WidgetSize.md),
        WidgetConfig(id="agenda_today", enabled=True, order=20, size=WidgetSize.lg),
        WidgetConfig(id="sales_pulse", enabled=True, order=30, size=WidgetSize.md),
        WidgetConfig(id="active_groups", enabled=True, order=40, size=WidgetSize.md),
        WidgetConfig(id="tasks_focus", enabled=True, order=50, size=WidgetSize.md),
    ]


def settings_path(uid: str) -> str:
    return doc_path("users", uid, "settings", "app")


# ============================================================
# Sanitizers (total: any input → valid value)
# ============================================================

def sanitize_theme_color(value: Any) -> ThemeColor:
    try:
        return ThemeColor(str(value or DEFAULT_THEME_COLOR.value))
    except ValueError:
        return DEFAULT_THEME_COLOR


def _widget_order(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MISSING_WIDGET_ORDER
    return int(number) if math.isfinite(number) else MISSING_WIDGET_ORDER


def sanitize_widgets(value: Any) -> List[WidgetConfig]:
    if not isinstance(value, list):
        return default_dashboard_widgets()

    widgets = []
    for raw in value:
        raw = raw if isinstance(raw, dict) else {}
        widget_id = str(raw.get("id") or "")
        if not widget_id:
            continue

        size = raw.get("size")
        widgets.append(
            WidgetConfig(
                id=widget_id,
                enabled=bool(raw.get("enabled")),
                order=_widget_order(raw.get("order")),
                size=WidgetSize(size) if size in WidgetSize.list() else WidgetSize.md,
            )
        )

    return widgets or default_dashboard_widgets()


def sanitize_settings(data: Optional[dict], display_name_fallback: Optional[str] = None) -> UserSettings:
    data = data if isinstance(data, dict) else {}
    weather_city = data.get("weatherCity")

    return UserSettings(
        user_name=str(data.get("userName") or display_name_fallback or DEFAULT_USER_NAME),
        theme_color=sanitize_theme_color(data.get("themeColor")),
        dark_mode=bool(data.get("darkMode")),
        auto_dark_mode=bool(data.get("autoDarkMode")),
        google_sync=bool(data.get("googleSync")),
        whatsapp_sync=bool(data.get("whatsappSync")),
        weather_city=weather_city if isinstance(weather_city, str) else None,
        dashboard_widgets=sanitize_widgets(data.get("dashboardWidgets")),
    )


# ============================================================
# Synchronizer
# ============================================================

class SettingsSynchronizer(LiveProjection[UserSettings]):
    """
    Live view of users/{uid}/settings/app.
    The first snapshot of a missing document bootstraps defaults once per
    instance; a second callback arriving before the write lands does not
    issue another create.
    """

    def __init__(self, store: DocumentStore, uid: str, display_name: Optional[str] = None):
        super().__init__(initial=sanitize_settings({}, display_name))
        self.store = store
        self.uid = uid
        self.display_name = display_name
        self.path = settings_path(uid)
        self._bootstrapped = False
        self._start(
            lambda on_change, on_error: store.subscribe_snapshot(self.path, on_change, on_error),
            self._sanitize_snapshot,
        )

    def _sanitize_snapshot(self, snapshot: DocumentSnapshot) -> UserSettings:
        return sanitize_settings(snapshot.data, self.display_name)

    def handle_snapshot(self, snapshot: DocumentSnapshot) -> UserSettings:
        if snapshot.exists:
            return self._sanitize_snapshot(snapshot)

        # Deleted after bootstrap: keep the last settings
        if self._bootstrapped:
            return self.value

        initial = sanitize_settings({}, self.display_name)
        defaults = {
            **initial.to_document(),
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        self._bootstrapped = True
        logger.info(f"Bootstrapping settings for {self.uid}")
        # Another device may have created the document since this snapshot
        self.store.update(self.path, lambda current: defaults if current is None else None)
        return initial

    def save_settings(self, patch: Union[SettingsPatch, dict]) -> None:
        """
        Merge the defined fields of `patch`; theme color and widgets are
        coerced with the read-path rules.
        """
        if isinstance(patch, dict):
            patch = SettingsPatch.model_validate(patch)

        fields = patch.model_dump(by_alias=True)
        if patch.theme_color is not None:
            fields["themeColor"] = sanitize_theme_color(patch.theme_color).value
        if patch.dashboard_widgets is not None:
            fields["dashboardWidgets"] = [
                w.to_document() for w in sanitize_widgets(patch.dashboard_widgets)
            ]

        self.store.merge_write(
            self.path,
            {**drop_undefined(fields), "updatedAt": SERVER_TIMESTAMP},
        )
