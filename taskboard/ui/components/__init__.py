"""taskboard UI components - Reusable widgets."""

from taskboard.ui.components.status_column import StatusColumn

__all__ = ["StatusColumn"]
