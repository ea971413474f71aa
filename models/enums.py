from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Back-office role. Drives the default capability set."""

    admin = "admin"
    manager = "manager"
    staff = "staff"


# -----------------------------------------------------
# SESSION STATE
# -----------------------------------------------------
class SessionState(BaseStrEnum):
    anonymous = "anonymous"
    loading = "loading"
    authenticated = "authenticated"


# -----------------------------------------------------
# SETTINGS
# -----------------------------------------------------
class ThemeColor(BaseStrEnum):
    indigo = "indigo"
    blue = "blue"
    emerald = "emerald"
    amber = "amber"
    violet = "violet"
    rose = "rose"
    slate = "slate"
    cyan = "cyan"
    teal = "teal"


class WidgetSize(BaseStrEnum):
    sm = "sm"
    md = "md"
    lg = "lg"


# -----------------------------------------------------
# LOGBOOK (main courante)
# -----------------------------------------------------
class LogPriority(BaseStrEnum):
    info = "info"
    important = "important"
    urgent = "urgent"


class LogTarget(BaseStrEnum):
    """Which team an entry is addressed to."""

    all = "all"
    management = "management"
    housekeeping = "housekeeping"
    maintenance = "maintenance"


class LogStatus(BaseStrEnum):
    active = "active"
    archived = "archived"


class QuickFilter(BaseStrEnum):
    ALL = "ALL"
    URGENT = "URGENT"
    IMPORTANT = "IMPORTANT"
    MINE = "MINE"


# -----------------------------------------------------
# CONCIERGE
# -----------------------------------------------------
class TaxiStatus(BaseStrEnum):
    confirmed = "confirmed"
    cancelled = "cancelled"


class LostItemStatus(BaseStrEnum):
    stored = "stored"
    returned = "returned"
