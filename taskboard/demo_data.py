"""
Demo data for the local backend.

Seeds a provider's clients, projects, tasks and subtasks so the board can be
tried without the dashboard API: ``python -m taskboard project-1 --demo``.
"""

from datetime import date, datetime, timedelta

from taskboard.database import ClientORM, DatabaseManager, ProjectORM, SubtaskORM, TaskORM
from taskboard.logging_config import get_logger

logger = get_logger(__name__)

DEMO_PROVIDER_ID = "provider-1"

CLIENTS = [
    {"id": "client-1", "name": "Acme Inc", "email": "hello@acme.example"},
    {"id": "client-2", "name": "TechStart", "email": "team@techstart.example"},
    {"id": "client-3", "name": "Global Solutions", "email": "ops@globalsolutions.example"},
]

PROJECTS = [
    {
        "id": "project-1",
        "name": "Website Redesign",
        "description": "Complete overhaul of company website with new branding",
        "status": "In Progress",
        "client_id": "client-1",
    },
    {
        "id": "project-2",
        "name": "Mobile App Development",
        "description": "iOS and Android app for customer engagement",
        "status": "Review",
        "client_id": "client-2",
    },
    {
        "id": "project-3",
        "name": "E-commerce Integration",
        "description": "Integrate payment gateway and inventory management",
        "status": "Completed",
        "client_id": "client-1",
    },
    {
        "id": "project-4",
        "name": "CRM Implementation",
        "description": "Custom CRM solution for sales team",
        "status": "In Progress",
        "client_id": "client-3",
    },
]

TASKS = [
    {
        "id": "task-1",
        "title": "Design Homepage Mockup",
        "description": "Create wireframes and visual design for the homepage",
        "status": "todo",
        "priority": "high",
        "category": "design",
        "due_date": date(2023, 2, 15),
        "project_id": "project-1",
    },
    {
        "id": "task-2",
        "title": "Implement User Authentication",
        "description": "Set up secure login and registration system",
        "status": "in-progress",
        "priority": "medium",
        "category": "development",
        "due_date": date(2023, 2, 28),
        "project_id": "project-1",
    },
    {
        "id": "task-3",
        "title": "API Integration",
        "description": "Connect mobile app to backend services",
        "status": "completed",
        "priority": "high",
        "category": "development",
        "due_date": date(2023, 3, 10),
        "project_id": "project-2",
    },
    {
        "id": "task-4",
        "title": "Database Schema Design",
        "description": "Design efficient database structure for CRM",
        "status": "todo",
        "priority": "high",
        "category": "planning",
        "due_date": date(2023, 3, 20),
        "project_id": "project-4",
    },
    {
        "id": "task-5",
        "title": "Payment Gateway Integration",
        "description": "Implement Stripe and PayPal payment options",
        "status": "completed",
        "priority": "high",
        "category": "development",
        "due_date": date(2023, 1, 5),
        "project_id": "project-3",
    },
]

SUBTASKS = {
    "task-1": [
        ("Collect brand assets", True),
        ("Sketch wireframes", True),
        ("Produce high-fidelity mockup", False),
    ],
    "task-2": [
        ("Registration form", True),
        ("Password reset flow", False),
    ],
}


async def seed_demo_data(db_manager: DatabaseManager, provider_id: str = DEMO_PROVIDER_ID) -> None:
    """
    Insert the demo dataset.

    Args:
        db_manager: Initialized database manager
        provider_id: Provider owning every seeded row
    """
    now = datetime.utcnow()

    async with db_manager.get_session() as session:
        for client in CLIENTS:
            session.add(ClientORM(provider_id=provider_id, created_at=now, **client))
        for project in PROJECTS:
            session.add(ProjectORM(provider_id=provider_id, created_at=now, **project))
        await session.flush()

        for offset, task in enumerate(TASKS):
            session.add(TaskORM(
                provider_id=provider_id,
                completed=task["status"] == "completed",
                created_at=now + timedelta(seconds=offset),
                **task,
            ))
        await session.flush()

        for task_id, items in SUBTASKS.items():
            for position, (title, completed) in enumerate(items):
                session.add(SubtaskORM(
                    id=f"{task_id}-subtask-{position + 1}",
                    title=title,
                    completed=completed,
                    task_id=task_id,
                    provider_id=provider_id,
                    position=position,
                    created_at=now + timedelta(seconds=position),
                ))

    logger.info(
        f"Seeded demo data: {len(CLIENTS)} clients, {len(PROJECTS)} projects, "
        f"{len(TASKS)} tasks"
    )
