"""
Local backend for taskboard.

Implements the Backend operations on top of the SQLAlchemy database layer so
the board can run without the dashboard API (demo mode, offline use, tests).
It keeps the server-side behavior of the dashboard: toggling a subtask
re-evaluates the parent task on the server, in both directions.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.database import ClientORM, DatabaseManager, ProjectORM, SubtaskORM, TaskORM
from taskboard.logging_config import get_logger
from taskboard.models import ActionResult, Client, Project, Subtask, Task, TaskStatus
from taskboard.services.backend import Backend

logger = get_logger(__name__)

TASK_FIELDS = {"title", "description", "priority", "category", "due_date", "project_id"}
SUBTASK_FIELDS = {"title", "description", "completed", "position"}
PROJECT_FIELDS = {"name", "description", "status", "client_id"}


class LocalBackendError(Exception):
    """Raised internally when a requested row does not exist."""
    pass


class LocalBackend(Backend):
    """Backend storing clients, projects, tasks and subtasks in SQLite."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        """
        Args:
            db_manager: Initialized database manager
        """
        self.db = db_manager

    # ==============================================================================
    # CONVERSION HELPERS
    # ==============================================================================

    @staticmethod
    def _task_to_model(task_orm: TaskORM, client_id: Optional[str] = None) -> Task:
        return Task.model_validate({
            "id": task_orm.id,
            "title": task_orm.title,
            "description": task_orm.description,
            "status": task_orm.status,
            "priority": task_orm.priority,
            "category": task_orm.category,
            "due_date": task_orm.due_date,
            "project_id": task_orm.project_id,
            "client_id": client_id,
            "provider_id": task_orm.provider_id,
            "created_at": task_orm.created_at,
        })

    @staticmethod
    def _subtask_to_model(subtask_orm: SubtaskORM) -> Subtask:
        return Subtask(
            id=subtask_orm.id,
            title=subtask_orm.title,
            description=subtask_orm.description,
            completed=subtask_orm.completed,
            task_id=subtask_orm.task_id,
            provider_id=subtask_orm.provider_id,
            position=subtask_orm.position,
        )

    @staticmethod
    def _project_to_model(project_orm: ProjectORM) -> Project:
        return Project(
            id=project_orm.id,
            name=project_orm.name,
            description=project_orm.description,
            status=project_orm.status,
            client_id=project_orm.client_id,
            provider_id=project_orm.provider_id,
        )

    @staticmethod
    def _client_to_model(client_orm: ClientORM) -> Client:
        return Client(
            id=client_orm.id,
            name=client_orm.name,
            provider_id=client_orm.provider_id,
            email=client_orm.email,
            company=client_orm.company,
        )

    @staticmethod
    def _set_task_status(task_orm: TaskORM, status: TaskStatus) -> None:
        """Write both completion columns from one status."""
        task_orm.status = status.value
        task_orm.completed = status == TaskStatus.COMPLETED

    # ==============================================================================
    # QUERY HELPERS
    # ==============================================================================

    @staticmethod
    def _query_tasks_with_client():
        return (
            select(TaskORM, ProjectORM.client_id)
            .outerjoin(ProjectORM, TaskORM.project_id == ProjectORM.id)
            .order_by(TaskORM.created_at)
        )

    async def _get_or_raise(self, session: AsyncSession, orm_class, entity_id: str, label: str):
        result = await session.execute(select(orm_class).where(orm_class.id == entity_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise LocalBackendError(f"{label} not found")
        return row

    async def _run(self, label: str, operation) -> ActionResult:
        """
        Run ``operation(session)`` in one transaction and wrap the outcome.

        Args:
            label: Description used in log messages
            operation: Coroutine function taking a session and returning data

        Returns:
            ActionResult with the returned data, or the failure message
        """
        try:
            async with self.db.get_session() as session:
                data = await operation(session)
            return ActionResult.ok(data)
        except LocalBackendError as e:
            logger.warning(f"{label}: {e}")
            return ActionResult.fail(str(e))
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Error {label}: {e}", exc_info=True)
            return ActionResult.fail(str(e))

    # ==============================================================================
    # SUBTASKS
    # ==============================================================================

    async def get_subtasks(self, task_id: str) -> ActionResult:
        async def operation(session: AsyncSession):
            result = await session.execute(
                select(SubtaskORM)
                .where(SubtaskORM.task_id == task_id)
                .order_by(SubtaskORM.position, SubtaskORM.created_at)
            )
            subtasks = [self._subtask_to_model(s) for s in result.scalars().all()]
            logger.debug(f"Found {len(subtasks)} subtasks for task {task_id}")
            return subtasks

        return await self._run("getting subtasks", operation)

    async def toggle_subtask_completion(self, subtask_id: str, completed: bool) -> ActionResult:
        async def operation(session: AsyncSession):
            subtask_orm = await self._get_or_raise(session, SubtaskORM, subtask_id, "Subtask")
            subtask_orm.completed = completed
            subtask_orm.updated_at = datetime.utcnow()
            await session.flush()

            result = await session.execute(
                select(SubtaskORM.completed).where(SubtaskORM.task_id == subtask_orm.task_id)
            )
            flags = list(result.scalars().all())
            if flags:
                task_orm = await self._get_or_raise(session, TaskORM, subtask_orm.task_id, "Task")
                all_completed = all(flags)
                self._set_task_status(
                    task_orm,
                    TaskStatus.COMPLETED if all_completed else TaskStatus.IN_PROGRESS,
                )
                task_orm.updated_at = datetime.utcnow()
                logger.debug(f"Parent task {task_orm.id} status set to {task_orm.status}")
            return None

        return await self._run("toggling subtask completion", operation)

    async def create_subtask(
        self,
        task_id: str,
        title: str,
        provider_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ActionResult:
        async def operation(session: AsyncSession):
            await self._get_or_raise(session, TaskORM, task_id, "Task")
            count = await session.execute(
                select(func.count()).select_from(SubtaskORM).where(SubtaskORM.task_id == task_id)
            )
            subtask_orm = SubtaskORM(
                id=str(uuid4()),
                title=title,
                description=description,
                completed=False,
                task_id=task_id,
                provider_id=provider_id,
                position=count.scalar() or 0,
                created_at=datetime.utcnow(),
            )
            session.add(subtask_orm)
            await session.flush()
            logger.info(f"Created subtask {subtask_orm.id} under task {task_id}")
            return self._subtask_to_model(subtask_orm)

        return await self._run("creating subtask", operation)

    async def update_subtask(self, subtask_id: str, fields: Dict[str, Any]) -> ActionResult:
        async def operation(session: AsyncSession):
            subtask_orm = await self._get_or_raise(session, SubtaskORM, subtask_id, "Subtask")
            for key, value in fields.items():
                if key in SUBTASK_FIELDS:
                    setattr(subtask_orm, key, value)
            subtask_orm.updated_at = datetime.utcnow()
            return None

        return await self._run("updating subtask", operation)

    async def delete_subtask(self, subtask_id: str) -> ActionResult:
        async def operation(session: AsyncSession):
            await self._get_or_raise(session, SubtaskORM, subtask_id, "Subtask")
            await session.execute(delete(SubtaskORM).where(SubtaskORM.id == subtask_id))
            return None

        return await self._run("deleting subtask", operation)

    # ==============================================================================
    # TASKS
    # ==============================================================================

    async def get_tasks(
        self,
        provider_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ActionResult:
        async def operation(session: AsyncSession):
            query = self._query_tasks_with_client()
            if provider_id is not None:
                query = query.where(TaskORM.provider_id == provider_id)
            if project_id is not None:
                query = query.where(TaskORM.project_id == project_id)
            result = await session.execute(query)
            return [self._task_to_model(task_orm, client_id) for task_orm, client_id in result.all()]

        return await self._run("getting tasks", operation)

    async def get_task(self, task_id: str) -> ActionResult:
        async def operation(session: AsyncSession):
            result = await session.execute(self._query_tasks_with_client().where(TaskORM.id == task_id))
            row = result.first()
            if row is None:
                raise LocalBackendError("Task not found")
            task_orm, client_id = row
            return self._task_to_model(task_orm, client_id)

        return await self._run("getting task", operation)

    async def create_task(self, fields: Dict[str, Any]) -> ActionResult:
        async def operation(session: AsyncSession):
            data = {key: value for key, value in fields.items() if value is not None}
            data["id"] = str(uuid4())
            data.setdefault("created_at", datetime.utcnow())
            task = Task.model_validate(data)

            client_id = None
            if task.project_id is not None:
                project_orm = await self._get_or_raise(session, ProjectORM, task.project_id, "Project")
                client_id = project_orm.client_id

            session.add(TaskORM(
                id=task.id,
                title=task.title,
                description=task.description,
                status=task.status.value,
                completed=task.completed,
                priority=task.priority,
                category=task.category,
                due_date=task.due_date,
                project_id=task.project_id,
                provider_id=task.provider_id,
                created_at=task.created_at,
            ))
            await session.flush()
            logger.info(f"Created task {task.id}: '{task.title}'")
            return task.model_copy(update={"client_id": client_id})

        return await self._run("creating task", operation)

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> ActionResult:
        async def operation(session: AsyncSession):
            task_orm = await self._get_or_raise(session, TaskORM, task_id, "Task")
            for key, value in fields.items():
                if key == "due_date" and isinstance(value, str):
                    value = date.fromisoformat(value)
                if key in TASK_FIELDS:
                    setattr(task_orm, key, value)
            if fields.get("status") is not None:
                self._set_task_status(task_orm, TaskStatus(fields["status"]))
            elif fields.get("completed") is not None:
                self._set_task_status(
                    task_orm,
                    TaskStatus.COMPLETED if fields["completed"] else TaskStatus.TODO,
                )
            task_orm.updated_at = datetime.utcnow()
            return None

        return await self._run("updating task", operation)

    async def toggle_task_completion(self, task_id: str, completed: bool) -> ActionResult:
        async def operation(session: AsyncSession):
            task_orm = await self._get_or_raise(session, TaskORM, task_id, "Task")
            self._set_task_status(task_orm, TaskStatus.COMPLETED if completed else TaskStatus.TODO)
            task_orm.updated_at = datetime.utcnow()
            logger.info(f"Task {task_id} completed={completed}")
            return None

        return await self._run("toggling task completion", operation)

    async def delete_task(self, task_id: str) -> ActionResult:
        async def operation(session: AsyncSession):
            await self._get_or_raise(session, TaskORM, task_id, "Task")
            await session.execute(delete(SubtaskORM).where(SubtaskORM.task_id == task_id))
            await session.execute(delete(TaskORM).where(TaskORM.id == task_id))
            return None

        return await self._run("deleting task", operation)

    # ==============================================================================
    # PROJECTS AND CLIENTS
    # ==============================================================================

    async def get_project(self, project_id: str) -> ActionResult:
        async def operation(session: AsyncSession):
            project_orm = await self._get_or_raise(session, ProjectORM, project_id, "Project")
            return self._project_to_model(project_orm)

        return await self._run("getting project", operation)

    async def update_project(self, project_id: str, fields: Dict[str, Any]) -> ActionResult:
        async def operation(session: AsyncSession):
            project_orm = await self._get_or_raise(session, ProjectORM, project_id, "Project")
            for key, value in fields.items():
                if key in PROJECT_FIELDS:
                    setattr(project_orm, key, value)
            logger.info(f"Updated project {project_id}: {sorted(fields)}")
            return None

        return await self._run("updating project", operation)

    async def get_clients(self, provider_id: Optional[str] = None) -> ActionResult:
        async def operation(session: AsyncSession):
            query = select(ClientORM).order_by(ClientORM.name)
            if provider_id is not None:
                query = query.where(ClientORM.provider_id == provider_id)
            result = await session.execute(query)
            return [self._client_to_model(c) for c in result.scalars().all()]

        return await self._run("getting clients", operation)

    async def close(self) -> None:
        await self.db.close()
