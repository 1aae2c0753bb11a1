"""
Kanban board store.

Holds one task collection grouped into columns and implements drag and drop
between status columns: the move is shown immediately, the server is asked to
persist it, and the whole pre-drop collection comes back if the server
refuses.
"""

from collections import OrderedDict
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from taskboard.logging_config import get_logger
from taskboard.models import Task, TaskStatus
from taskboard.services.backend import Backend
from taskboard.services.optimistic import OptimisticUpdate
from taskboard.services.store import BaseStore

logger = get_logger(__name__)

GROUPINGS = ("status", "project", "client")


class KanbanBoard(BaseStore):
    """
    Task collection with column grouping and optimistic drag and drop.

    Drops are accepted only while the board is grouped by status; the project
    and client groupings are read-only views.
    """

    def __init__(
        self,
        backend: Backend,
        tasks: Iterable[Task] = (),
        group_by: str = "status",
        on_change: Optional[Callable[[], None]] = None,
        on_commit: Optional[Callable[[Task], None]] = None,
    ) -> None:
        """
        Args:
            backend: Backend used for task updates
            tasks: Initial collection
            group_by: One of "status", "project", "client"
            on_change: Optional callback invoked after each state change
            on_commit: Optional callback receiving a moved task once the
                       server accepted the move
        """
        super().__init__(backend, on_change)
        self.tasks: Tuple[Task, ...] = tuple(tasks)
        self.group_by = self._validate_grouping(group_by)
        self.on_commit = on_commit

        # Transient drag state
        self.dragged_task_id: Optional[str] = None
        self.hovered_column: Optional[str] = None

    @staticmethod
    def _validate_grouping(group_by: str) -> str:
        if group_by not in GROUPINGS:
            raise ValueError(f"group_by must be one of {GROUPINGS}, got {group_by!r}")
        return group_by

    # ==============================================================================
    # STATE
    # ==============================================================================

    def set_tasks(self, tasks: Iterable[Task]) -> None:
        """Replace the whole collection."""
        self.tasks = tuple(tasks)
        self._notify()

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def set_group_by(self, group_by: str) -> None:
        self.group_by = self._validate_grouping(group_by)
        self._notify()

    def columns(self) -> Dict[Optional[str], Tuple[Task, ...]]:
        """
        Group the collection into board columns.

        Status columns are always present, in board order. Project and client
        columns appear in first-seen order; tasks without a project or client
        land under the ``None`` key.

        Returns:
            Ordered mapping of column key to tasks
        """
        columns: Dict[Optional[str], list] = OrderedDict()

        if self.group_by == "status":
            for status in TaskStatus.ordered():
                columns[status.value] = []
            for task in self.tasks:
                columns[task.status.value].append(task)
        else:
            attribute = "project_id" if self.group_by == "project" else "client_id"
            for task in self.tasks:
                columns.setdefault(getattr(task, attribute), []).append(task)

        return OrderedDict((key, tuple(tasks)) for key, tasks in columns.items())

    async def load(
        self,
        provider_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> bool:
        """
        Replace the collection with the server's tasks.

        Returns:
            True if the tasks were fetched
        """
        result = await self.backend.get_tasks(provider_id=provider_id, project_id=project_id)
        if not result.success:
            self._fail(result, "Failed to fetch tasks")
            return False

        self.error = None
        self.set_tasks(result.data or ())
        logger.info(f"Board loaded {len(self.tasks)} tasks")
        return True

    # ==============================================================================
    # DRAG AND DROP
    # ==============================================================================

    def drag_start(self, task_id: str) -> None:
        self.dragged_task_id = task_id
        logger.debug(f"Drag started: task_id={task_id}")

    def drag_over(self, column: Optional[str]) -> None:
        self.hovered_column = column

    def drag_end(self) -> None:
        """Reset transient drag state, whatever the drop did."""
        self.dragged_task_id = None
        self.hovered_column = None
        self._notify()

    async def drop_dragged(self, column: Optional[str] = None) -> bool:
        """
        Drop the dragged task into ``column`` (or the hovered column).

        Returns:
            True if the move was persisted
        """
        target = column if column is not None else self.hovered_column
        try:
            task = self.get_task(self.dragged_task_id)
            if target is None:
                return False
            return await self.drop(task, target)
        finally:
            self.drag_end()

    async def drop(self, task: Optional[Task], new_status: Union[TaskStatus, str]) -> bool:
        """
        Move a task to another status column.

        The collection is updated before the server answers. On failure the
        full pre-drop collection is restored and the server's message is
        surfaced; on success the optimistic state is kept as is.

        Args:
            task: Dragged task (None is a no-op)
            new_status: Target column

        Returns:
            True if the server accepted the move
        """
        if task is None:
            return False
        if self.group_by != "status":
            logger.debug(f"Ignoring drop while grouped by {self.group_by}")
            return False

        status = TaskStatus(new_status)
        if task.status == status:
            return False

        logger.info(f"Moving task {task.id}: {task.status.value} -> {status.value}")
        update = OptimisticUpdate(
            lambda: self.tasks,
            self.set_tasks,
            f"move task {task.id} to {status.value}",
        )
        result = await update.run(
            lambda tasks: tuple(t.with_status(status) if t.id == task.id else t for t in tasks),
            lambda: self.backend.update_task(task.id, {"status": status.value}),
        )

        if not result.success:
            self._fail(result, "Failed to update task status")
            return False

        moved = self.get_task(task.id)
        if self.on_commit and moved is not None:
            self.on_commit(moved)
        return True
