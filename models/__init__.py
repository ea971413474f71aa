# -------------------------
# Base
# -------------------------
from .base import DocumentModel

# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    SessionState,
    ThemeColor,
    WidgetSize,
    LogPriority,
    LogTarget,
    LogStatus,
    QuickFilter,
    TaxiStatus,
    LostItemStatus,
)

# -------------------------
# Auth Models
# -------------------------
from .auth import LoginRequest, TokenResponse

# -------------------------
# Settings Models
# -------------------------
from .settings import (
    WidgetConfig,
    UserSettings,
    SettingsPatch,
)

# -------------------------
# Logbook Models
# -------------------------
from .logbook import (
    LogEntry,
    LogEntryCreate,
    LogFilter,
)

# -------------------------
# Concierge Models
# -------------------------
from .concierge import (
    WakeUpCall,
    WakeUpCallCreate,
    TaxiBooking,
    TaxiBookingCreate,
    LostItem,
    LostItemCreate,
    LostItemStatusUpdate,
)

# -------------------------
# User Models - import from models.user directly
# (models.user depends on core.permissions, which depends on models.base)
# -------------------------

__all__ = [
    # base
    "DocumentModel",

    # enums
    "Role",
    "SessionState",
    "ThemeColor",
    "WidgetSize",
    "LogPriority",
    "LogTarget",
    "LogStatus",
    "QuickFilter",
    "TaxiStatus",
    "LostItemStatus",

    # auth
    "LoginRequest",
    "TokenResponse",

    # settings
    "WidgetConfig",
    "UserSettings",
    "SettingsPatch",

    # logbook
    "LogEntry",
    "LogEntryCreate",
    "LogFilter",

    # concierge
    "WakeUpCall",
    "WakeUpCallCreate",
    "TaxiBooking",
    "TaxiBookingCreate",
    "LostItem",
    "LostItemCreate",
    "LostItemStatusUpdate",
]
