"""Keybindings for the taskboard UI.

- Cursor movement (arrows)
- Dropping the selected task into a neighboring column (Shift+arrows, < >)
- Task actions (Space)
- Application controls (R, Q)
"""

from textual.binding import Binding


# Cursor keybindings
NAVIGATION_BINDINGS = [
    Binding("up", "navigate_up", "Navigate Up", show=False),
    Binding("down", "navigate_down", "Navigate Down", show=False),
    Binding("left", "navigate_left", "Previous Column", show=False),
    Binding("right", "navigate_right", "Next Column", show=False),
]

# Drag and drop keybindings
MOVE_BINDINGS = [
    Binding("shift+left,less_than_sign", "move_task_left", "Move Left", show=True),
    Binding("shift+right,greater_than_sign", "move_task_right", "Move Right", show=True),
]

# Task action keybindings
TASK_ACTION_BINDINGS = [
    Binding("space", "toggle_completion", "Toggle Complete", show=True),
]

# Application control keybindings
APP_CONTROL_BINDINGS = [
    Binding("r,R", "reload", "Reload", show=True),
    Binding("q,Q", "quit", "Quit", priority=True, show=True),
]


def get_all_bindings() -> list[Binding]:
    """Get all application keybindings.

    Returns:
        List of all Binding objects
    """
    return (
        NAVIGATION_BINDINGS +
        MOVE_BINDINGS +
        TASK_ACTION_BINDINGS +
        APP_CONTROL_BINDINGS
    )
