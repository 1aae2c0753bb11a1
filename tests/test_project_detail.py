"""
Tests for ProjectDetailStore.

Tests cover the task -> project cascade, the chained subtask -> task ->
project cascade, kanban moves inside the project view and project edits.
"""

import asyncio

import pytest
import pytest_asyncio

from taskboard.models import PROJECT_COMPLETED, Client, Project, Subtask, Task, TaskStatus
from taskboard.services.project_detail import ProjectDetailStore
from tests.helpers import FakeBackend


@pytest.fixture
def backend():
    """Website Redesign with one completed and one in-progress task."""
    project = Project(id="project-1", name="Website Redesign", client_id="client-1", provider_id="provider-1")
    tasks = [
        Task(id="task-1", title="Design Homepage", status="completed", project_id="project-1"),
        Task(id="task-2", title="Authentication", status="in-progress", project_id="project-1"),
        Task(id="task-9", title="Other project", status="todo", project_id="project-2"),
    ]
    subtasks = [
        Subtask(id="s1", title="Registration form", completed=True, task_id="task-2", position=0),
        Subtask(id="s2", title="Password reset", completed=False, task_id="task-2", position=1),
    ]
    clients = [
        Client(id="client-1", name="Acme Corp", provider_id="provider-1"),
        Client(id="client-2", name="Globex", provider_id="provider-1"),
    ]
    return FakeBackend(projects=[project], tasks=tasks, subtasks=subtasks, clients=clients)


@pytest_asyncio.fixture
async def store(backend):
    store = ProjectDetailStore(backend, "project-1")
    assert await store.load()
    return store


class TestLoad:
    """Tests for loading project state."""

    @pytest.mark.asyncio
    async def test_load(self, store):
        assert store.project.name == "Website Redesign"
        assert [t.id for t in store.tasks] == ["task-1", "task-2"]
        assert store.progress == 50
        assert not store.project.is_completed

    @pytest.mark.asyncio
    async def test_missing_project(self, backend):
        store = ProjectDetailStore(backend, "project-404")
        assert not await store.load()
        assert store.error == "Project not found"

    @pytest.mark.asyncio
    async def test_task_fetch_failure(self, backend):
        backend.fail_next("get_tasks", "")
        store = ProjectDetailStore(backend, "project-1")

        assert await store.load()
        assert store.tasks == ()
        assert store.error == "Failed to fetch tasks"

    @pytest.mark.asyncio
    async def test_load_resolves_client(self, store, backend):
        assert store.client.name == "Acme Corp"
        assert backend.calls_to("get_clients") == [("provider-1",)]

    @pytest.mark.asyncio
    async def test_client_fetch_failure_is_not_fatal(self, backend):
        backend.fail_next("get_clients", "Forbidden")
        store = ProjectDetailStore(backend, "project-1")

        assert await store.load()
        assert store.client is None
        assert store.error is None
        assert len(store.tasks) == 2

    @pytest.mark.asyncio
    async def test_failed_reload_drops_stale_tasks(self, store, backend):
        store.board.set_tasks(tuple(t.with_status("completed") for t in store.tasks))
        backend.fail_next("get_tasks", "Server error")

        assert await store.load()
        await store.drain()

        assert store.tasks == ()
        assert store.error == "Server error"
        assert not store.project.is_completed
        assert backend.calls_to("update_project") == []

    @pytest.mark.asyncio
    async def test_load_with_all_tasks_completed_completes_project(self, backend):
        backend.tasks["task-2"] = backend.tasks["task-2"].with_status("completed")
        store = ProjectDetailStore(backend, "project-1")

        await store.load()
        await store.drain()

        assert store.project.status == PROJECT_COMPLETED
        assert backend.calls_to("update_project") == [("project-1", {"status": "Completed"})]


class TestProjectCascade:
    """Tasks completing their project."""

    @pytest.mark.asyncio
    async def test_last_task_completes_project(self, store, backend):
        assert await store.update_task_status("task-2", "completed")

        assert store.project.status == PROJECT_COMPLETED
        assert store.animation.kind == "project"
        assert store.animation.fire_count == 1

        await store.drain()
        assert backend.projects["project-1"].status == PROJECT_COMPLETED
        assert store.unconfirmed == []

    @pytest.mark.asyncio
    async def test_review_does_not_complete_project(self, store):
        await store.update_task_status("task-2", TaskStatus.REVIEW)
        assert store.project.status == "In Progress"

    @pytest.mark.asyncio
    async def test_reopening_task_keeps_project_completed(self, store):
        await store.update_task_status("task-2", "completed")
        await store.update_task_status("task-2", "todo")
        await store.drain()

        assert store.project.status == PROJECT_COMPLETED

    @pytest.mark.asyncio
    async def test_rejected_project_confirmation(self, store, backend):
        backend.fail_next("update_project", "Forbidden")

        await store.update_task_status("task-2", "completed")
        await store.drain()

        assert store.project.is_completed
        assert store.unconfirmed == ["project-1"]

    @pytest.mark.asyncio
    async def test_adding_task_to_empty_project(self, backend):
        backend.projects["empty"] = Project(id="empty", name="Empty")
        store = ProjectDetailStore(backend, "empty")
        await store.load()
        assert not store.project.is_completed

        task = await store.add_task("Kickoff", status="completed")
        await store.drain()

        assert task.project_id == "empty"
        assert store.project.is_completed

    @pytest.mark.asyncio
    async def test_status_failure_leaves_tasks(self, store, backend):
        backend.fail_next("update_task", "")
        before = store.tasks

        assert not await store.update_task_status("task-2", "completed")

        assert store.tasks == before
        assert store.error == "Failed to update task"
        assert not store.project.is_completed


class TestChainedCascade:
    """The last subtask completes its task, which completes the project."""

    @pytest.mark.asyncio
    async def test_subtask_completes_task_and_project(self, store, backend):
        assert await store.load_subtasks("task-2")

        assert await store.toggle_subtask("task-2", "s2", False)

        assert store.board.get_task("task-2").status == TaskStatus.COMPLETED
        assert store.project.status == PROJECT_COMPLETED
        assert store.animation.fire_count == 1

        await store.drain()
        assert backend.calls_to("toggle_task_completion") == [("task-2", True)]
        assert backend.calls_to("update_project") == [("project-1", {"status": "Completed"})]

    @pytest.mark.asyncio
    async def test_toggle_loads_subtasks_of_unexpanded_task(self, store, backend):
        assert "task-2" not in store.subtasks

        assert await store.toggle_subtask("task-2", "s2", False)

        assert [s.completed for s in store.subtasks["task-2"]] == [True, True]
        assert store.board.get_task("task-2").status == TaskStatus.COMPLETED
        assert store.project.status == PROJECT_COMPLETED

        await store.drain()
        assert backend.calls_to("toggle_task_completion") == [("task-2", True)]

    @pytest.mark.asyncio
    async def test_toggle_with_failed_subtask_fetch_skips_local_patch(self, store, backend):
        backend.fail_next("get_subtasks", "Server error")

        assert await store.toggle_subtask("task-2", "s2", False)

        assert "task-2" not in store.subtasks
        assert store.board.get_task("task-2").status == TaskStatus.IN_PROGRESS
        assert store.error is None

    @pytest.mark.asyncio
    async def test_reopened_task_stays_open_with_all_subtasks_done(self, store, backend):
        await store.load_subtasks("task-2")
        await store.toggle_subtask("task-2", "s2", False)
        await store.drain()

        assert await store.update_task_status("task-2", TaskStatus.TODO)
        await store.drain()

        assert store.board.get_task("task-2").status == TaskStatus.TODO
        assert backend.tasks["task-2"].status == TaskStatus.TODO
        assert backend.calls_to("toggle_task_completion") == [("task-2", True)]

    @pytest.mark.asyncio
    async def test_reopened_task_stays_open_after_drop(self, store, backend):
        await store.load_subtasks("task-2")
        await store.toggle_subtask("task-2", "s2", False)

        assert await store.move_task("task-2", "review")
        await store.load_subtasks("task-2")
        await store.drain()

        assert store.board.get_task("task-2").status == TaskStatus.REVIEW
        assert backend.calls_to("toggle_task_completion") == [("task-2", True)]

    @pytest.mark.asyncio
    async def test_subtask_change_re_arms_cascade_after_reopen(self, store, backend):
        await store.load_subtasks("task-2")
        await store.toggle_subtask("task-2", "s2", False)
        await store.update_task_status("task-2", TaskStatus.TODO)

        await store.toggle_subtask("task-2", "s2", True)
        assert store.board.get_task("task-2").status == TaskStatus.TODO

        await store.toggle_subtask("task-2", "s2", False)
        await store.drain()

        assert store.board.get_task("task-2").status == TaskStatus.COMPLETED
        assert backend.calls_to("toggle_task_completion") == [("task-2", True), ("task-2", True)]

    @pytest.mark.asyncio
    async def test_toggle_unknown_task(self, store, backend):
        assert not await store.toggle_subtask("task-404", "s2", False)
        assert backend.calls_to("toggle_subtask_completion") == []


class TestMoveTask:
    """Kanban drops inside the project view."""

    @pytest.mark.asyncio
    async def test_move_to_completed_completes_project_after_server_accepts(self, store, backend):
        gate = backend.hold("update_task")

        pending = asyncio.ensure_future(store.move_task("task-2", "completed"))
        await asyncio.sleep(0)

        assert store.board.get_task("task-2").status == TaskStatus.COMPLETED
        assert not store.project.is_completed

        gate.set()
        assert await pending
        assert store.project.is_completed

    @pytest.mark.asyncio
    async def test_failed_move_restores_board(self, store, backend):
        before = store.tasks
        backend.fail_next("update_task", "Server error")

        assert not await store.move_task("task-2", "completed")

        assert store.tasks == before
        assert store.error == "Server error"
        assert not store.project.is_completed
        assert backend.calls_to("update_project") == []

    @pytest.mark.asyncio
    async def test_successful_move_clears_previous_board_error(self, store, backend):
        backend.fail_next("update_task", "Server error")
        await store.move_task("task-2", "review")

        assert await store.move_task("task-2", "review")
        assert store.board.error is None
        assert store.error is None


class TestEditing:
    """Tests for task creation and project edits."""

    @pytest.mark.asyncio
    async def test_add_task_defaults(self, store, backend):
        task = await store.add_task(" Launch ")

        assert task.title == "Launch"
        assert task.status == TaskStatus.TODO
        assert task.client_id == "client-1"
        assert store.tasks[-1].id == task.id
        assert store.progress == 33

    @pytest.mark.asyncio
    async def test_add_task_failure(self, store, backend):
        backend.fail_next("create_task", "")
        assert await store.add_task("Launch") is None
        assert store.error == "Failed to add task"

    @pytest.mark.asyncio
    async def test_update_project(self, store, backend):
        assert await store.update_project(name="Website Refresh")
        assert store.project.name == "Website Refresh"
        assert backend.projects["project-1"].name == "Website Refresh"

    @pytest.mark.asyncio
    async def test_update_project_failure(self, store, backend):
        backend.fail_next("update_project", "")
        assert not await store.update_project(name="Website Refresh")
        assert store.error == "Failed to update project"
        assert store.project.name == "Website Redesign"


class TestErrorSurface:
    """A successful operation replaces the previous failure message."""

    @pytest.mark.asyncio
    async def test_status_update_clears_previous_error(self, store, backend):
        backend.fail_next("update_task", "Server error")
        assert not await store.update_task_status("task-2", "review")
        assert store.error == "Server error"

        assert await store.update_task_status("task-2", "review")
        assert store.error is None

    @pytest.mark.asyncio
    async def test_subtask_toggle_clears_previous_error(self, store, backend):
        await store.load_subtasks("task-2")
        backend.fail_next("toggle_subtask_completion", "Server error")
        assert not await store.toggle_subtask("task-2", "s1", True)

        assert await store.toggle_subtask("task-2", "s1", True)
        assert store.error is None

    @pytest.mark.asyncio
    async def test_add_task_clears_previous_error(self, store, backend):
        backend.fail_next("create_task", "")
        await store.add_task("Launch")

        assert await store.add_task("Launch") is not None
        assert store.error is None


class TestWithoutEventLoop:
    """Cascades evaluated by synchronous callers."""

    def test_cascade_without_running_loop_records_unconfirmed(self, backend):
        store = ProjectDetailStore(backend, "project-1")
        store.project = backend.projects["project-1"]
        store.board.tasks = (backend.tasks["task-2"],)
        store.subtasks["task-2"] = tuple(s.toggled(True) for s in backend.subtasks.values())

        assert store.recompute_cascades()

        assert store.board.get_task("task-2").completed
        assert store.project.is_completed
        assert store.unconfirmed == ["task-2", "project-1"]
        assert store.pending_confirmations == 0
        assert backend.calls == []
