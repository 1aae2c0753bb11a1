"""Status column widget for the kanban board.

Renders one board column (a task status) as a header plus one line per task
card, with selection and completion markers.
"""

from typing import Optional, Sequence

from rich.text import Text
from textual.reactive import reactive
from textual.widgets import Static

from taskboard.models import Task, TaskStatus
from taskboard.ui.constants import MAX_TITLE_LENGTH_IN_CARD
from taskboard.ui.theme import (
    BORDER,
    COMMENT,
    COMPLETE_COLOR,
    FOCUS_COLOR,
    FOREGROUND,
    PRIORITY_COLORS,
    SELECTION,
    get_status_color,
)


class StatusColumn(Static):
    """A board column listing the tasks in one status."""

    DEFAULT_CSS = f"""
    StatusColumn {{
        width: 1fr;
        height: 100%;
        border: solid {BORDER};
        padding: 0 1;
        margin: 0 1;
    }}

    StatusColumn.focused {{
        border: thick {FOCUS_COLOR};
    }}

    StatusColumn.drop-target {{
        border: dashed {FOCUS_COLOR};
    }}
    """

    focused: reactive[bool] = reactive(False)

    def __init__(self, status: TaskStatus, **kwargs) -> None:
        """
        Args:
            status: Status this column shows
            **kwargs: Additional keyword arguments for Static
        """
        super().__init__(**kwargs)
        self.status = status
        self._tasks: tuple = ()
        self._selected_index: Optional[int] = None

    @property
    def tasks(self) -> tuple:
        return self._tasks

    def set_tasks(
        self,
        tasks: Sequence[Task],
        selected_index: Optional[int] = None,
        focused: bool = False,
    ) -> None:
        """
        Re-render the column.

        Args:
            tasks: Tasks in this status, in board order
            selected_index: Row to highlight, if this column holds the cursor
            focused: Whether the cursor is in this column
        """
        self._tasks = tuple(tasks)
        self._selected_index = selected_index
        self.focused = focused
        self.set_class(focused, "focused")
        self.update(self._render_column())

    def _render_column(self) -> Text:
        accent = get_status_color(self.status.value)
        text = Text()
        text.append(f"{self.status.label} ", style=f"bold {accent}")
        text.append(f"({len(self._tasks)})\n\n", style=COMMENT)

        if not self._tasks:
            text.append("No tasks", style=f"italic {COMMENT}")
            return text

        for index, task in enumerate(self._tasks):
            text.append_text(self._render_card(task, index == self._selected_index))
            text.append("\n")
        return text

    @staticmethod
    def _render_card(task: Task, selected: bool) -> Text:
        title = task.title
        if len(title) > MAX_TITLE_LENGTH_IN_CARD:
            title = title[:MAX_TITLE_LENGTH_IN_CARD - 1] + "…"

        card = Text()
        background = f" on {SELECTION}" if selected else ""
        card.append("▶ " if selected else "  ", style=f"{FOCUS_COLOR}{background}")
        card.append("✓ " if task.completed else "○ ", style=f"{COMPLETE_COLOR if task.completed else FOREGROUND}{background}")
        title_style = f"strike {COMPLETE_COLOR}" if task.completed else FOREGROUND
        card.append(title, style=f"{title_style}{background}")
        priority_color = PRIORITY_COLORS.get(task.priority, COMMENT)
        card.append(f" [{task.priority}]", style=f"{priority_color}{background}")
        return card
