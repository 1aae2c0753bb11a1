"""
Task detail store.

State behind the task detail view: one task, its subtasks, and the
completion animation. Subtask and task toggles go to the server first and
patch local state only after it accepted the change, so a failure needs no
rollback. After every subtask mutation the task cascade is re-evaluated
against the latest collection.
"""

from typing import Callable, Optional, Tuple, Union

from taskboard.logging_config import get_logger
from taskboard.models import Subtask, Task, TaskStatus
from taskboard.services.animation import CompletionAnimation
from taskboard.services.backend import Backend
from taskboard.services.cascade import completion_percentage, task_cascade
from taskboard.services.store import BaseStore, EntityNotLoadedError

logger = get_logger(__name__)


class TaskDetailStore(BaseStore):
    """In-memory task and subtask collection for one task view."""

    def __init__(
        self,
        backend: Backend,
        task_id: str,
        animation: Optional[CompletionAnimation] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Args:
            backend: Backend used for every server call
            task_id: Task shown by this view
            animation: Completion signal (a task-kind one is created if omitted)
            on_change: Optional callback invoked after each state change
        """
        super().__init__(backend, on_change)
        self.task_id = task_id
        self.task: Optional[Task] = None
        self.subtasks: Tuple[Subtask, ...] = ()
        self.deleted = False
        self.animation = animation or CompletionAnimation("task")

        # Transient subtask drag state
        self.dragged_subtask_id: Optional[str] = None
        self.drag_over_subtask_id: Optional[str] = None

    def _require_task(self) -> Task:
        if self.task is None:
            raise EntityNotLoadedError(f"Task {self.task_id} is not loaded")
        return self.task

    @property
    def progress(self) -> int:
        """Percentage shown in the progress bar."""
        if self.subtasks:
            return completion_percentage(self.subtasks)
        return 100 if self.task is not None and self.task.completed else 0

    # ==============================================================================
    # LOADING
    # ==============================================================================

    async def load(self) -> bool:
        """
        Fetch the task and its subtasks, replacing local state.

        This is where any local state the server never confirmed gets
        reconciled.

        Returns:
            True if the task was found
        """
        result = await self.backend.get_task(self.task_id)
        if not result.success or result.data is None:
            self._fail(result, "Task not found")
            return False

        self.error = None
        self.unconfirmed.clear()
        self.task = result.data
        self.deleted = False

        subtasks_result = await self.backend.get_subtasks(self.task_id)
        if subtasks_result.success:
            self.subtasks = tuple(subtasks_result.data or ())
        else:
            self.error = subtasks_result.error or "Failed to load subtasks"
            self.subtasks = ()
            logger.warning(f"Failed to load subtasks for task {self.task_id}: {self.error}")

        logger.info(f"Loaded task {self.task_id} with {len(self.subtasks)} subtasks")
        self.recompute_cascades()
        self._notify()
        return True

    # ==============================================================================
    # CASCADE
    # ==============================================================================

    def recompute_cascades(self) -> bool:
        """
        Complete the task if every subtask is complete.

        Fires only forward: an incomplete subtask never reverts the task. The
        server confirmation is not awaited and its failure does not undo the
        local change.

        Returns:
            True if the cascade fired
        """
        completed = task_cascade(self.task, self.subtasks)
        if completed is None:
            return False

        self.task = completed
        self.animation.trigger()
        logger.info(f"All subtasks complete, task {completed.id} marked completed")
        self._confirm_in_background(
            completed.id,
            f"complete task {completed.id}",
            lambda: self.backend.toggle_task_completion(completed.id, True),
        )
        self._notify()
        return True

    # ==============================================================================
    # SUBTASKS
    # ==============================================================================

    async def toggle_subtask(self, subtask_id: str, current_completed: bool) -> bool:
        """
        Flip a subtask's completed flag.

        Args:
            subtask_id: Subtask to toggle
            current_completed: Last-known flag; the new value is its negation

        Returns:
            True if the server accepted the change
        """
        self._require_task()
        completed = not current_completed
        self.error = None

        result = await self.backend.toggle_subtask_completion(subtask_id, completed)
        if not result.success:
            self._fail(result, "Failed to update subtask")
            return False

        # Patch whatever the collection holds now, not what it held before the call
        self.subtasks = tuple(
            subtask.toggled(completed) if subtask.id == subtask_id else subtask
            for subtask in self.subtasks
        )
        if completed:
            self.animation.trigger()

        logger.debug(f"Subtask {subtask_id} completed={completed}")
        self.recompute_cascades()
        self._notify()
        return True

    async def add_subtask(self, title: str) -> bool:
        """Create a subtask, then refetch the collection from the server."""
        task = self._require_task()
        if not title.strip():
            return False
        self.error = None

        result = await self.backend.create_subtask(task.id, title.strip(), provider_id=task.provider_id)
        if not result.success:
            self._fail(result, "Failed to add subtask")
            return False

        subtasks_result = await self.backend.get_subtasks(task.id)
        if subtasks_result.success:
            self.subtasks = tuple(subtasks_result.data or ())
        elif result.data is not None:
            self.subtasks = self.subtasks + (result.data,)

        self.recompute_cascades()
        self._notify()
        return True

    async def delete_subtask(self, subtask_id: str) -> bool:
        self._require_task()
        self.error = None
        result = await self.backend.delete_subtask(subtask_id)
        if not result.success:
            self._fail(result, "Failed to delete subtask")
            return False

        self.subtasks = tuple(s for s in self.subtasks if s.id != subtask_id)
        self.recompute_cascades()
        self._notify()
        return True

    async def rename_subtask(self, subtask_id: str, title: str) -> bool:
        task = self._require_task()
        if not title.strip():
            return False
        self.error = None

        result = await self.backend.update_subtask(subtask_id, {"title": title.strip(), "task_id": task.id})
        if not result.success:
            self._fail(result, "Failed to update subtask")
            return False

        self.subtasks = tuple(
            s.model_copy(update={"title": title.strip()}) if s.id == subtask_id else s
            for s in self.subtasks
        )
        self._notify()
        return True

    # Subtask reordering is local to the view; the order is not persisted.

    def drag_start(self, subtask_id: str) -> None:
        self.dragged_subtask_id = subtask_id

    def drag_over(self, subtask_id: str) -> None:
        if self.dragged_subtask_id is not None and self.dragged_subtask_id != subtask_id:
            self.drag_over_subtask_id = subtask_id

    def drag_end(self) -> bool:
        """
        Move the dragged subtask to the hovered subtask's position.

        Returns:
            True if the order changed
        """
        dragged_id, target_id = self.dragged_subtask_id, self.drag_over_subtask_id
        self.dragged_subtask_id = None
        self.drag_over_subtask_id = None

        ids = [s.id for s in self.subtasks]
        if dragged_id not in ids or target_id not in ids:
            self._notify()
            return False

        dragged_index = ids.index(dragged_id)
        drop_index = ids.index(target_id)
        if dragged_index == drop_index:
            self._notify()
            return False

        reordered = list(self.subtasks)
        moved = reordered.pop(dragged_index)
        reordered.insert(drop_index, moved)
        self.subtasks = tuple(reordered)
        self._notify()
        return True

    # ==============================================================================
    # TASK
    # ==============================================================================

    async def toggle_task_completion(self) -> bool:
        """
        Manual mark complete / mark incomplete.

        Marking incomplete moves the task back to todo. It does not re-run the
        subtask cascade, so the manual choice sticks until a subtask changes.

        Returns:
            True if the server accepted the change
        """
        task = self._require_task()
        completed = not task.completed
        self.error = None

        result = await self.backend.toggle_task_completion(task.id, completed)
        if not result.success:
            self._fail(result, "Failed to update task")
            return False

        was_completed = self.task.completed
        self.task = self.task.with_completion(completed)
        if completed and not was_completed:
            self.animation.trigger()

        logger.info(f"Task {task.id} completed={completed}")
        self._notify()
        return True

    async def update_status(self, status: Union[TaskStatus, str]) -> bool:
        """Set the task's status from the status picker."""
        task = self._require_task()
        status = TaskStatus(status)
        self.error = None

        result = await self.backend.update_task(task.id, {"status": status.value})
        if not result.success:
            self._fail(result, "Failed to update task")
            return False

        was_completed = self.task.completed
        self.task = self.task.with_status(status)
        if self.task.completed and not was_completed:
            self.animation.trigger()
        self._notify()
        return True

    async def update_priority(self, priority: str) -> bool:
        task = self._require_task()
        self.error = None
        result = await self.backend.update_task(task.id, {"priority": priority})
        if not result.success:
            self._fail(result, "Failed to update task priority")
            return False

        self.task = self.task.model_copy(update={"priority": priority})
        self._notify()
        return True

    async def update_details(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> bool:
        """
        Edit the task's title and/or description once the server accepted them.

        Args:
            title: New title (blank titles are rejected)
            description: New description (an empty string clears it)

        Returns:
            True if the server accepted the change
        """
        task = self._require_task()
        fields = {}
        if title is not None:
            if not title.strip():
                return False
            fields["title"] = title.strip()
        if description is not None:
            fields["description"] = description.strip() or None
        if not fields:
            return False
        self.error = None

        result = await self.backend.update_task(task.id, fields)
        if not result.success:
            self._fail(result, "Failed to update task")
            return False

        self.task = self.task.model_copy(update=fields)
        logger.info(f"Updated task {task.id}: {', '.join(fields)}")
        self._notify()
        return True

    async def delete_task(self) -> bool:
        """
        Delete the task and its subtasks on the server.

        On success the view's state is emptied and ``deleted`` is set so the
        caller can navigate away.

        Returns:
            True if the server deleted the task
        """
        task = self._require_task()
        self.error = None

        result = await self.backend.delete_task(task.id)
        if not result.success:
            self._fail(result, "Failed to delete task")
            return False

        self.task = None
        self.subtasks = ()
        self.deleted = True
        self.animation.finish()
        logger.info(f"Deleted task {task.id}")
        self._notify()
        return True
