"""
Backend interface for taskboard.

The stores never talk to storage or the network directly. They call a
Backend, and every Backend operation answers with an ActionResult instead of
raising, mirroring the ``{success, data?, error?}`` contract of the dashboard
API.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from taskboard.models import ActionResult


class Backend(ABC):
    """Operations the completion and sync logic depends on."""

    # ==============================================================================
    # SUBTASKS
    # ==============================================================================

    @abstractmethod
    async def get_subtasks(self, task_id: str) -> ActionResult:
        """Fetch subtasks of a task. ``data`` is a list of Subtask."""

    @abstractmethod
    async def toggle_subtask_completion(self, subtask_id: str, completed: bool) -> ActionResult:
        """Set a subtask's completed flag."""

    @abstractmethod
    async def create_subtask(
        self,
        task_id: str,
        title: str,
        provider_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ActionResult:
        """Create a subtask. ``data`` is the new Subtask."""

    @abstractmethod
    async def update_subtask(self, subtask_id: str, fields: Dict[str, Any]) -> ActionResult:
        """Patch subtask fields."""

    @abstractmethod
    async def delete_subtask(self, subtask_id: str) -> ActionResult:
        """Delete a subtask."""

    # ==============================================================================
    # TASKS
    # ==============================================================================

    @abstractmethod
    async def get_tasks(
        self,
        provider_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ActionResult:
        """Fetch tasks, optionally filtered. ``data`` is a list of Task."""

    @abstractmethod
    async def get_task(self, task_id: str) -> ActionResult:
        """Fetch one task. ``data`` is a Task."""

    @abstractmethod
    async def create_task(self, fields: Dict[str, Any]) -> ActionResult:
        """Create a task. ``data`` is the new Task."""

    @abstractmethod
    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> ActionResult:
        """Patch task fields."""

    @abstractmethod
    async def toggle_task_completion(self, task_id: str, completed: bool) -> ActionResult:
        """Set a task's completed flag."""

    @abstractmethod
    async def delete_task(self, task_id: str) -> ActionResult:
        """Delete a task."""

    # ==============================================================================
    # PROJECTS AND CLIENTS
    # ==============================================================================

    @abstractmethod
    async def get_project(self, project_id: str) -> ActionResult:
        """Fetch one project. ``data`` is a Project."""

    @abstractmethod
    async def update_project(self, project_id: str, fields: Dict[str, Any]) -> ActionResult:
        """Patch project fields."""

    @abstractmethod
    async def get_clients(self, provider_id: Optional[str] = None) -> ActionResult:
        """Fetch clients. ``data`` is a list of Client."""

    async def close(self) -> None:
        """Release connections. Default is a no-op."""
