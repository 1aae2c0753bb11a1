"""
Project detail store.

State behind the project view: the project, its tasks (owned by an embedded
KanbanBoard so there is exactly one task collection), the subtasks of tasks
the user expanded, and the completion animation. After every change to
tasks or subtasks, cascades are re-derived from the latest collections:
subtasks complete their task, tasks complete their project.
"""

from typing import Any, Callable, Dict, Optional, Set, Tuple, Union

from taskboard.logging_config import get_logger
from taskboard.models import PROJECT_COMPLETED, Client, Project, Subtask, Task, TaskStatus, replace_by_id
from taskboard.services.animation import CompletionAnimation
from taskboard.services.backend import Backend
from taskboard.services.cascade import completion_percentage, project_cascade, task_cascade
from taskboard.services.kanban import KanbanBoard
from taskboard.services.store import BaseStore, EntityNotLoadedError

logger = get_logger(__name__)


class ProjectDetailStore(BaseStore):
    """In-memory project, task and subtask state for one project view."""

    def __init__(
        self,
        backend: Backend,
        project_id: str,
        animation: Optional[CompletionAnimation] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Args:
            backend: Backend used for every server call
            project_id: Project shown by this view
            animation: Completion signal (a project-kind one is created if omitted)
            on_change: Optional callback invoked after each state change
        """
        super().__init__(backend, on_change)
        self.project_id = project_id
        self.project: Optional[Project] = None
        self.client: Optional[Client] = None
        self.board = KanbanBoard(backend, on_change=self._notify, on_commit=self._on_task_moved)
        self.subtasks: Dict[str, Tuple[Subtask, ...]] = {}
        # Tasks the user moved out of completed; their subtask cascade waits for a subtask change
        self.reopened: Set[str] = set()
        self.animation = animation or CompletionAnimation("project")

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return self.board.tasks

    @property
    def progress(self) -> int:
        return completion_percentage(self.tasks)

    def _require_project(self) -> Project:
        if self.project is None:
            raise EntityNotLoadedError(f"Project {self.project_id} is not loaded")
        return self.project

    # ==============================================================================
    # LOADING
    # ==============================================================================

    async def load(self) -> bool:
        """
        Fetch the project and its tasks, replacing local state.

        Returns:
            True if the project was found
        """
        result = await self.backend.get_project(self.project_id)
        if not result.success or result.data is None:
            self._fail(result, "Project not found")
            return False

        self.error = None
        self.unconfirmed.clear()
        self.reopened.clear()
        self.project = result.data
        self.subtasks = {}
        self.client = await self._fetch_client(self.project)

        tasks_result = await self.backend.get_tasks(project_id=self.project_id)
        if tasks_result.success:
            self.board.set_tasks(tasks_result.data or ())
        else:
            self.error = tasks_result.error or "Failed to fetch tasks"
            self.board.set_tasks(())
            logger.warning(f"Failed to fetch tasks for project {self.project_id}: {self.error}")

        logger.info(f"Loaded project {self.project_id} with {len(self.tasks)} tasks")
        self.recompute_cascades()
        self._notify()
        return True

    async def _fetch_client(self, project: Project) -> Optional[Client]:
        """Look up the project's client; a failed lookup only hides the name."""
        if project.client_id is None:
            return None

        result = await self.backend.get_clients(provider_id=project.provider_id)
        if not result.success:
            logger.warning(f"Failed to fetch clients for project {project.id}: {result.error}")
            return None

        for client in result.data or ():
            if client.id == project.client_id:
                return client
        logger.debug(f"Client {project.client_id} not found for project {project.id}")
        return None

    async def load_subtasks(self, task_id: str) -> bool:
        """Fetch the subtasks of one task so its cascade can be evaluated."""
        self.error = None
        result = await self.backend.get_subtasks(task_id)
        if not result.success:
            self._fail(result, "Failed to load subtasks")
            return False

        self.subtasks[task_id] = tuple(result.data or ())
        self.recompute_cascades()
        self._notify()
        return True

    # ==============================================================================
    # CASCADE
    # ==============================================================================

    def recompute_cascades(self) -> bool:
        """
        Re-derive task and project completion from the latest collections.

        Task cascades run first so that a subtask completing the last open
        task also completes the project in the same pass. Server
        confirmations are sent in the background and never undo local state.

        Returns:
            True if any cascade fired
        """
        fired = False

        for task_id, subtasks in self.subtasks.items():
            if task_id in self.reopened:
                continue
            completed = task_cascade(self.board.get_task(task_id), subtasks)
            if completed is None:
                continue
            self.board.set_tasks(replace_by_id(self.tasks, completed))
            self.animation.trigger()
            logger.info(f"All subtasks complete, task {task_id} marked completed")
            self._confirm_in_background(
                task_id,
                f"complete task {task_id}",
                lambda task_id=task_id: self.backend.toggle_task_completion(task_id, True),
            )
            fired = True

        project = project_cascade(self.project, self.tasks)
        if project is not None:
            self.project = project
            self.animation.trigger()
            logger.info(f"All tasks complete, project {project.id} marked {PROJECT_COMPLETED}")
            self._confirm_in_background(
                project.id,
                f"complete project {project.id}",
                lambda: self.backend.update_project(project.id, {"status": PROJECT_COMPLETED}),
            )
            fired = True

        if fired:
            self._notify()
        return fired

    def _track_reopen(self, task: Task) -> None:
        if task.completed:
            self.reopened.discard(task.id)
        else:
            self.reopened.add(task.id)

    def _on_task_moved(self, task: Task) -> None:
        self._track_reopen(task)
        self.recompute_cascades()

    # ==============================================================================
    # TASKS
    # ==============================================================================

    async def add_task(self, title: str, **fields: Any) -> Optional[Task]:
        """
        Create a task under this project and append it to the collection.

        Args:
            title: Task title
            **fields: Extra task fields (description, due_date, priority, status)

        Returns:
            The created task, or None on failure
        """
        project = self._require_project()
        if not title.strip():
            return None
        self.error = None

        data = {
            "title": title.strip(),
            "status": TaskStatus.TODO.value,
            "priority": "medium",
            "project_id": project.id,
            "client_id": project.client_id,
            "provider_id": project.provider_id,
        }
        data.update(fields)

        result = await self.backend.create_task(data)
        if not result.success or result.data is None:
            self._fail(result, "Failed to add task")
            return None

        self.board.set_tasks(self.tasks + (result.data,))
        logger.info(f"Added task {result.data.id} to project {project.id}")
        self.recompute_cascades()
        self._notify()
        return result.data

    async def update_task_status(self, task_id: str, status: Union[TaskStatus, str]) -> bool:
        """
        Change a task's status once the server accepted it.

        Returns:
            True if the server accepted the change
        """
        self._require_project()
        status = TaskStatus(status)
        self.error = None

        result = await self.backend.update_task(task_id, {"status": status.value})
        if not result.success:
            self._fail(result, "Failed to update task")
            return False

        current = self.board.get_task(task_id)
        if current is not None:
            updated = current.with_status(status)
            self.board.set_tasks(replace_by_id(self.tasks, updated))
            self._track_reopen(updated)
        self.recompute_cascades()
        self._notify()
        return True

    async def move_task(self, task_id: str, status: Union[TaskStatus, str]) -> bool:
        """
        Kanban drop inside the project view.

        The move shows immediately and is rolled back if the server refuses.
        Cascades are evaluated only once the server accepted the move.

        Returns:
            True if the server accepted the move
        """
        self._require_project()
        self.error = None
        self.board.error = None
        moved = await self.board.drop(self.board.get_task(task_id), status)
        if self.board.error:
            self.error = self.board.error
            self._notify()
        return moved

    # ==============================================================================
    # SUBTASKS
    # ==============================================================================

    async def toggle_subtask(self, task_id: str, subtask_id: str, current_completed: bool) -> bool:
        """
        Flip a subtask of one of the project's tasks.

        When the task's subtasks were never loaded, they are fetched after
        the server accepted the toggle, so the fetched list already carries
        the new flag. A failed fetch leaves them unloaded.

        Args:
            task_id: Owning task
            subtask_id: Subtask to toggle
            current_completed: Last-known flag; the new value is its negation

        Returns:
            True if the server accepted the change
        """
        if self.board.get_task(task_id) is None:
            return False
        completed = not current_completed
        self.error = None

        result = await self.backend.toggle_subtask_completion(subtask_id, completed)
        if not result.success:
            self._fail(result, "Failed to update subtask")
            return False

        self.reopened.discard(task_id)
        if task_id in self.subtasks:
            self.subtasks[task_id] = tuple(
                subtask.toggled(completed) if subtask.id == subtask_id else subtask
                for subtask in self.subtasks[task_id]
            )
        else:
            fetched = await self.backend.get_subtasks(task_id)
            if fetched.success:
                self.subtasks[task_id] = tuple(fetched.data or ())
            else:
                logger.warning(f"Subtasks of task {task_id} not loaded after toggle: {fetched.error}")
        if completed:
            self.animation.trigger()

        self.recompute_cascades()
        self._notify()
        return True

    # ==============================================================================
    # PROJECT
    # ==============================================================================

    async def update_project(self, **fields: Any) -> bool:
        """Edit project fields once the server accepted them."""
        project = self._require_project()
        if not fields:
            return False
        self.error = None

        result = await self.backend.update_project(project.id, fields)
        if not result.success:
            self._fail(result, "Failed to update project")
            return False

        self.project = self.project.model_copy(update=fields)
        self._notify()
        return True
