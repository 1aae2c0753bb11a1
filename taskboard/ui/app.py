"""Main Textual application for taskboard.

One project shown as a kanban board with a column per task status:
- Arrow keys move the cursor between cards and columns
- Shift+arrows (or < and >) drop the selected card into the neighboring column
- Space completes or reopens the selected card
"""

from typing import Optional, Tuple

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Static

from taskboard.logging_config import get_logger
from taskboard.models import Task, TaskStatus
from taskboard.services.project_detail import ProjectDetailStore
from taskboard.ui.components import StatusColumn
from taskboard.ui.constants import (
    MAX_TITLE_LENGTH_IN_NOTIFICATION,
    NOTIFICATION_TIMEOUT_LONG,
    NOTIFICATION_TIMEOUT_MEDIUM,
    NOTIFICATION_TIMEOUT_SHORT,
)
from taskboard.ui.keybindings import get_all_bindings
from taskboard.ui.theme import (
    BACKGROUND,
    BORDER,
    COMMENT,
    COMPLETE_COLOR,
    ERROR_COLOR,
    FOREGROUND,
    GREEN,
    SELECTION,
)

# Initialize logger for this module
logger = get_logger(__name__)

COLUMN_ORDER: Tuple[TaskStatus, ...] = tuple(TaskStatus.ordered())


class BoardApp(App):
    """Kanban board for a single project."""

    CSS = f"""
    Screen {{
        background: {BACKGROUND};
        layout: vertical;
    }}

    #project-header {{
        height: 3;
        padding: 1 2 0 2;
        color: {FOREGROUND};
    }}

    #board {{
        width: 100%;
        height: 1fr;
        layout: horizontal;
    }}

    #status-line {{
        height: 1;
        padding: 0 2;
        border-top: solid {BORDER};
    }}

    Footer {{
        background: {SELECTION};
    }}
    """

    BINDINGS = get_all_bindings()

    # ==============================================================================
    # LIFECYCLE METHODS
    # ==============================================================================

    def __init__(self, store: ProjectDetailStore, **kwargs) -> None:
        """
        Args:
            store: Project store backing the board
            **kwargs: Additional keyword arguments for App
        """
        super().__init__(**kwargs)
        self.store = store
        self.title = "taskboard"
        self._column_index: int = 0
        self._row_index: int = 0
        self._board_ready: bool = False

    def compose(self) -> ComposeResult:
        """Compose the application layout.

        Yields:
            Widgets that make up the application
        """
        yield Static(id="project-header")
        with Horizontal(id="board"):
            for status in COLUMN_ORDER:
                yield StatusColumn(status, id=f"column-{status.value}")
        yield Static(id="status-line")
        yield Footer()

    async def on_mount(self) -> None:
        """Load the project once the widgets exist."""
        logger.info(f"Board mounted for project {self.store.project_id}")
        self._board_ready = True
        self.store.on_change = self.refresh_board
        self.store.animation.subscribe(self._on_animation)

        if not await self.store.load():
            self.notify(
                self.store.error or "Project not found",
                severity="error",
                timeout=NOTIFICATION_TIMEOUT_LONG,
            )
        self.refresh_board()

    async def on_unmount(self) -> None:
        """Wait for background confirmations before the loop goes away."""
        logger.info("Board shutting down")
        self._board_ready = False
        self.store.animation.finish()
        await self.store.drain()
        if self.store.unconfirmed:
            logger.warning(f"Unconfirmed completions at exit: {self.store.unconfirmed}")

    # ==============================================================================
    # RENDERING
    # ==============================================================================

    def refresh_board(self) -> None:
        """Re-render header, columns and status line from the store."""
        if not self._board_ready:
            return
        columns = self.store.board.columns()
        self._clamp_cursor(columns)

        for index, status in enumerate(COLUMN_ORDER):
            column = self.query_one(f"#column-{status.value}", StatusColumn)
            has_cursor = index == self._column_index
            column.set_tasks(
                columns.get(status.value, ()),
                selected_index=self._row_index if has_cursor else None,
                focused=has_cursor,
            )
            column.set_class(self.store.board.hovered_column == status.value, "drop-target")

        self.query_one("#project-header", Static).update(self._render_header())
        self.query_one("#status-line", Static).update(self._render_status_line())

    def _render_header(self) -> Text:
        project = self.store.project
        text = Text()
        if project is None:
            text.append("Loading project…", style=COMMENT)
            return text

        text.append(project.name, style=f"bold {FOREGROUND}")
        if self.store.client is not None:
            text.append(f"  {self.store.client.name}", style=COMMENT)
        status_style = GREEN if project.is_completed else COMMENT
        text.append(f"  {project.status}", style=status_style)
        text.append(f"  {self.store.progress}% complete", style=COMMENT)
        return text

    def _render_status_line(self) -> Text:
        text = Text()
        if self.store.error:
            text.append(self.store.error, style=ERROR_COLOR)
        elif self.store.animation.visible:
            text.append("✓ All done!", style=f"bold {COMPLETE_COLOR}")
        else:
            text.append(f"{len(self.store.tasks)} tasks", style=COMMENT)
        return text

    def _on_animation(self, visible: bool) -> None:
        if visible and self._board_ready:
            project = self.store.project
            if project is not None and project.is_completed:
                message = f"✓ Project completed: {self._short(project.name)}"
            else:
                message = "✓ Task completed"
            self.notify(message, severity="information", timeout=NOTIFICATION_TIMEOUT_MEDIUM)
        self.refresh_board()

    @staticmethod
    def _short(title: str) -> str:
        if len(title) > MAX_TITLE_LENGTH_IN_NOTIFICATION:
            return title[:MAX_TITLE_LENGTH_IN_NOTIFICATION] + "..."
        return title

    # ==============================================================================
    # CURSOR
    # ==============================================================================

    def _clamp_cursor(self, columns) -> None:
        self._column_index = max(0, min(self._column_index, len(COLUMN_ORDER) - 1))
        count = len(columns.get(COLUMN_ORDER[self._column_index].value, ()))
        self._row_index = max(0, min(self._row_index, count - 1))

    def get_selected_task(self) -> Optional[Task]:
        """Return the card under the cursor, if any."""
        tasks = self.store.board.columns().get(COLUMN_ORDER[self._column_index].value, ())
        if 0 <= self._row_index < len(tasks):
            return tasks[self._row_index]
        return None

    def _follow_task(self, task_id: str) -> None:
        """Put the cursor on a task wherever it now lives."""
        for column_index, status in enumerate(COLUMN_ORDER):
            tasks = self.store.board.columns().get(status.value, ())
            for row_index, task in enumerate(tasks):
                if task.id == task_id:
                    self._column_index = column_index
                    self._row_index = row_index
                    return

    # ==============================================================================
    # ACTION HANDLERS - NAVIGATION
    # ==============================================================================

    def action_navigate_up(self) -> None:
        """Move the cursor up within the current column."""
        self._row_index -= 1
        self.refresh_board()

    def action_navigate_down(self) -> None:
        """Move the cursor down within the current column."""
        self._row_index += 1
        self.refresh_board()

    def action_navigate_left(self) -> None:
        """Move the cursor to the previous column."""
        self._column_index -= 1
        self.refresh_board()

    def action_navigate_right(self) -> None:
        """Move the cursor to the next column."""
        self._column_index += 1
        self.refresh_board()

    # ==============================================================================
    # ACTION HANDLERS - TASK OPERATIONS
    # ==============================================================================

    async def action_move_task_left(self) -> None:
        await self._move_selected(-1)

    async def action_move_task_right(self) -> None:
        await self._move_selected(1)

    async def _move_selected(self, offset: int) -> None:
        """Drop the selected card into the column ``offset`` steps away."""
        task = self.get_selected_task()
        target_index = self._column_index + offset
        if task is None or not 0 <= target_index < len(COLUMN_ORDER):
            return

        target = COLUMN_ORDER[target_index]
        board = self.store.board
        board.drag_start(task.id)
        board.drag_over(target.value)
        try:
            moved = await self.store.move_task(task.id, target)
        finally:
            board.drag_end()

        if moved:
            self._follow_task(task.id)
            self.refresh_board()
        elif self.store.error:
            self.notify(self.store.error, severity="error", timeout=NOTIFICATION_TIMEOUT_MEDIUM)

    async def action_toggle_completion(self) -> None:
        """Complete or reopen the selected card (Space key)."""
        task = self.get_selected_task()
        if task is None:
            logger.debug("No task selected for completion toggle")
            return

        status = TaskStatus.TODO if task.completed else TaskStatus.COMPLETED
        if await self.store.update_task_status(task.id, status):
            self._follow_task(task.id)
            self.refresh_board()
            if status is TaskStatus.TODO:
                self.notify("○ Task reopened", severity="information", timeout=NOTIFICATION_TIMEOUT_SHORT)
        else:
            self.notify(self.store.error or "Failed to update task", severity="error", timeout=NOTIFICATION_TIMEOUT_MEDIUM)

    async def action_reload(self) -> None:
        """Refetch the project and its tasks."""
        if await self.store.load():
            self.notify("Reloaded", timeout=NOTIFICATION_TIMEOUT_SHORT)
        self.refresh_board()
