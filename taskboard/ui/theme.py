"""One Monokai colors for the taskboard UI.

Components import these constants and interpolate them into their CSS, so
this module is the single place to change the palette.
"""

# Base colors
BACKGROUND = "#272822"  # Main application background (dark charcoal)
FOREGROUND = "#F8F8F2"  # Primary text color (off-white)
SELECTION = "#49483E"   # Selected item background (medium gray)
COMMENT = "#75715E"     # Secondary/dimmed text (muted brown-gray)
BORDER = "#3E3D32"      # Borders and dividers (dark gray-green)

# Accents
CYAN = "#66D9EF"
GREEN = "#A6E22E"
YELLOW = "#E6DB74"
ORANGE = "#FD971F"
RED = "#F92672"
PURPLE = "#AE81FF"

FOCUS_COLOR = CYAN
COMPLETE_COLOR = COMMENT  # Dimmed gray for completed tasks
ERROR_COLOR = RED

# One accent per board column
STATUS_COLORS = {
    "todo": CYAN,
    "in-progress": YELLOW,
    "review": PURPLE,
    "completed": GREEN,
}

PRIORITY_COLORS = {
    "high": RED,
    "medium": ORANGE,
    "low": COMMENT,
}


def get_status_color(status: str) -> str:
    """Get the accent color of a board column, falling back to the foreground."""
    return STATUS_COLORS.get(status, FOREGROUND)
