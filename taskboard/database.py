"""
Database layer for the taskboard local backend.

Provides SQLAlchemy ORM models, async engine/session management, and database
initialization for SQLite persistence. Only the local (demo/offline) backend
uses it; the REST backend leaves storage to the dashboard API.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from taskboard.logging_config import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_URL = "sqlite+aiosqlite:///:memory:"


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class ClientORM(Base):
    """SQLAlchemy ORM model for clients."""
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    provider_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    projects: Mapped[list["ProjectORM"]] = relationship("ProjectORM", back_populates="client")

    def __repr__(self) -> str:
        return f"<ClientORM(id={self.id}, name={self.name})>"


class ProjectORM(Base):
    """
    SQLAlchemy ORM model for projects.

    Deleting a project does not delete its tasks; that is left to whoever
    owns the data.
    """
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="In Progress")
    client_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("clients.id"), nullable=True, index=True
    )
    provider_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    client: Mapped[Optional["ClientORM"]] = relationship("ClientORM", back_populates="projects")
    tasks: Mapped[list["TaskORM"]] = relationship("TaskORM", back_populates="project")

    def __repr__(self) -> str:
        return f"<ProjectORM(id={self.id}, name={self.name}, status={self.status})>"


class TaskORM(Base):
    """SQLAlchemy ORM model for tasks. Personal tasks have no project."""
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Completion signals
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="todo")
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Relationships
    project_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=True, index=True
    )
    provider_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    project: Mapped[Optional["ProjectORM"]] = relationship("ProjectORM", back_populates="tasks")
    subtasks: Mapped[list["SubtaskORM"]] = relationship(
        "SubtaskORM",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="SubtaskORM.created_at",
    )

    def __repr__(self) -> str:
        return f"<TaskORM(id={self.id}, title={self.title}, status={self.status})>"


class SubtaskORM(Base):
    """SQLAlchemy ORM model for subtasks, deleted together with their task."""
    __tablename__ = "subtasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    task_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    provider_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    task: Mapped["TaskORM"] = relationship("TaskORM", back_populates="subtasks")

    def __repr__(self) -> str:
        return f"<SubtaskORM(id={self.id}, task_id={self.task_id}, completed={self.completed})>"


class DatabaseManager:
    """
    Manages database connections and session lifecycle.

    Handles async engine creation, session management, and database
    initialization for both the demo backend and tests.
    """

    def __init__(self, database_url: str = _DEFAULT_DB_URL):
        """
        Initialize database manager with connection URL.

        Args:
            database_url: SQLAlchemy database URL (default: in-memory SQLite)
        """
        self.database_url = database_url
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    async def initialize(self) -> None:
        """
        Initialize the database engine and create tables.

        Creates the async engine, session maker, and all tables defined
        in the Base metadata.
        """
        try:
            logger.info(f"Initializing database: {self.database_url}")
            self.engine = create_async_engine(
                self.database_url,
                echo=False,  # Set to True for SQL query logging
            )

            self.session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

    async def close(self) -> None:
        """
        Close the database engine and cleanup resources.
        """
        if self.engine:
            logger.info("Closing database connection")
            try:
                await self.engine.dispose()
                self.engine = None
                self.session_maker = None
                logger.info("Database connection closed successfully")
            except Exception as e:
                logger.error(f"Error closing database connection: {e}", exc_info=True)
                raise

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with automatic transaction management.

        Yields:
            AsyncSession for database operations

        Example:
            async with db_manager.get_session() as session:
                result = await session.execute(select(TaskORM))
                tasks = result.scalars().all()
        """
        if not self.session_maker:
            raise RuntimeError("DatabaseManager not initialized. Call initialize() first.")

        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                logger.error(f"Database session error, rolling back: {e}", exc_info=True)
                await session.rollback()
                raise


async def init_database(database_url: str = _DEFAULT_DB_URL) -> DatabaseManager:
    """
    Initialize the database and return the manager instance.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        Initialized DatabaseManager instance
    """
    db_manager = DatabaseManager(database_url)
    await db_manager.initialize()
    return db_manager
