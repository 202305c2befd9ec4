"""Terminal dashboard and its periodic refresh driver."""

from .dashboard import DashboardRenderer
from .driver import DisplayDriver

__all__ = ["DashboardRenderer", "DisplayDriver"]
