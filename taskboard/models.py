"""
Pydantic models for the taskboard application.

Defines the client-side view of clients, projects, tasks and subtasks, plus
the result envelope returned by every backend operation. Domain models are
frozen: every change produces a new instance, so a snapshot captured before
an optimistic update stays intact until it is restored or discarded.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, Field, model_validator


PROJECT_COMPLETED = "Completed"
PROJECT_IN_PROGRESS = "In Progress"


class TaskStatus(str, Enum):
    """Kanban status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETED = "completed"

    @classmethod
    def ordered(cls) -> list["TaskStatus"]:
        """Statuses in board column order."""
        return [cls.TODO, cls.IN_PROGRESS, cls.REVIEW, cls.COMPLETED]

    @property
    def label(self) -> str:
        return {
            TaskStatus.TODO: "To Do",
            TaskStatus.IN_PROGRESS: "In Progress",
            TaskStatus.REVIEW: "Review",
            TaskStatus.COMPLETED: "Completed",
        }[self]


class CompletionState(BaseModel):
    """
    Single source of truth for a task's completion.

    The status drives everything; the boolean ``completed`` flag is a cached
    projection of it and is never set on its own.
    """

    status: TaskStatus = TaskStatus.TODO

    class Config:
        frozen = True

    @property
    def is_complete(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def completed(self) -> bool:
        return self.is_complete

    @classmethod
    def from_flag(cls, completed: bool) -> "CompletionState":
        """Build the state the manual complete/incomplete toggle moves to."""
        return cls(status=TaskStatus.COMPLETED if completed else TaskStatus.TODO)


class Client(BaseModel):
    """A client of the service provider. Owns zero or more projects."""

    id: str = Field(..., description="Unique identifier for the client")
    name: str = Field(..., min_length=1, description="Client name")
    provider_id: Optional[str] = Field(default=None, description="Owning provider")
    email: Optional[str] = Field(default=None, description="Contact email")
    company: Optional[str] = Field(default=None, description="Company name")

    class Config:
        frozen = True


class Project(BaseModel):
    """
    A project, optionally owned by a client.

    Status is free text; only ``"Completed"`` carries meaning for completion
    propagation.
    """

    id: str = Field(..., description="Unique identifier for the project")
    name: str = Field(..., min_length=1, description="Project name")
    description: Optional[str] = Field(default=None, description="Project description")
    status: str = Field(default=PROJECT_IN_PROGRESS, description="Free-text project status")
    client_id: Optional[str] = Field(default=None, description="Owning client, None for personal projects")
    provider_id: Optional[str] = Field(default=None, description="Owning provider")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "project-1",
                "name": "Website Redesign",
                "status": "In Progress",
                "client_id": "client-1",
                "provider_id": "provider-1",
            }
        }

    @property
    def is_completed(self) -> bool:
        return self.status == PROJECT_COMPLETED

    def with_status(self, status: str) -> "Project":
        return self.model_copy(update={"status": status})


class Task(BaseModel):
    """
    A unit of work, optionally owned by a project.

    ``status`` and ``completed`` are two views of the same fact. Validation
    projects ``completed`` from ``status`` (or derives ``status`` when only the
    flag is supplied), and :meth:`with_status` is the only transition that
    changes either of them afterwards.
    """

    id: str = Field(..., description="Unique identifier for the task")
    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(default=None, description="Optional task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Kanban status")
    completed: bool = Field(default=False, description="Projection of status == completed")
    priority: str = Field(default="medium", description="Priority label")
    category: Optional[str] = Field(default=None, description="Category label")
    due_date: Optional[date] = Field(default=None, description="Due date")
    project_id: Optional[str] = Field(default=None, description="Owning project, None for personal tasks")
    client_id: Optional[str] = Field(default=None, description="Client of the owning project")
    provider_id: Optional[str] = Field(default=None, description="Owning provider")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "task-1",
                "title": "Design Homepage Mockup",
                "status": "todo",
                "completed": False,
                "priority": "high",
                "due_date": "2023-02-15",
                "project_id": "project-1",
                "provider_id": "provider-1",
            }
        }

    @model_validator(mode="before")
    @classmethod
    def project_completed_flag(cls, data: Any) -> Any:
        """
        Keep the two completion signals consistent on the way in.

        Args:
            data: Raw input (dict from a backend or keyword arguments)

        Returns:
            Input with ``status`` and ``completed`` agreeing
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        status = data.get("status")
        if status is None:
            data["status"] = CompletionState.from_flag(bool(data.get("completed"))).status
        else:
            data["status"] = TaskStatus(status)
        data["completed"] = CompletionState(status=data["status"]).completed
        return data

    @property
    def completion(self) -> CompletionState:
        return CompletionState(status=self.status)

    def with_status(self, status: Union[TaskStatus, str]) -> "Task":
        """
        Transition the task to a new status.

        Args:
            status: Target status

        Returns:
            New Task with ``status`` and ``completed`` updated together
        """
        state = CompletionState(status=TaskStatus(status))
        return self.model_copy(update={"status": state.status, "completed": state.completed})

    def with_completion(self, completed: bool) -> "Task":
        """Manual mark complete / incomplete. Incomplete moves back to todo."""
        return self.with_status(CompletionState.from_flag(completed).status)


class Subtask(BaseModel):
    """A checklist item owned by exactly one task."""

    id: str = Field(..., description="Unique identifier for the subtask")
    title: str = Field(..., min_length=1, max_length=500, description="Subtask title")
    description: Optional[str] = Field(default=None, description="Optional description")
    completed: bool = Field(default=False, description="Whether the subtask is done")
    task_id: str = Field(..., description="Owning task")
    provider_id: Optional[str] = Field(default=None, description="Owning provider")
    position: int = Field(default=0, ge=0, description="Order within the task")

    class Config:
        frozen = True

    def toggled(self, completed: bool) -> "Subtask":
        return self.model_copy(update={"completed": completed})


class ActionResult(BaseModel):
    """
    Envelope returned by backend operations: ``{success, data?, error?}``.

    Failures are values, not exceptions, so the stores can surface them as
    UI-visible strings.
    """

    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)


def replace_by_id(items: Iterable[BaseModel], replacement: BaseModel) -> tuple:
    """
    Return a new tuple with the item sharing ``replacement.id`` swapped out.

    Args:
        items: Current collection
        replacement: Patched item

    Returns:
        New collection; untouched if no item matches
    """
    return tuple(replacement if item.id == replacement.id else item for item in items)
