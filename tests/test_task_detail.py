"""
Tests for TaskDetailStore.

Tests cover subtask toggling, the subtask -> task cascade, the animation
signal, background confirmations and manual task completion.
"""

import asyncio

import pytest
import pytest_asyncio

from taskboard.models import Subtask, Task, TaskStatus
from taskboard.services.store import EntityNotLoadedError
from taskboard.services.task_detail import TaskDetailStore
from tests.helpers import FakeBackend


@pytest.fixture
def homepage_backend():
    """Design Homepage with three subtasks, two of them complete."""
    task = Task(id="task-1", title="Design Homepage", status="in-progress", project_id="project-1")
    subtasks = [
        Subtask(id="s1", title="Collect brand assets", completed=True, task_id="task-1", position=0),
        Subtask(id="s2", title="Sketch wireframes", completed=True, task_id="task-1", position=1),
        Subtask(id="s3", title="Produce mockup", completed=False, task_id="task-1", position=2),
    ]
    return FakeBackend(tasks=[task], subtasks=subtasks)


@pytest_asyncio.fixture
async def store(homepage_backend):
    store = TaskDetailStore(homepage_backend, "task-1")
    assert await store.load()
    return store


class TestLoad:
    """Tests for loading task state."""

    @pytest.mark.asyncio
    async def test_load(self, store):
        assert store.task.title == "Design Homepage"
        assert [s.id for s in store.subtasks] == ["s1", "s2", "s3"]
        assert store.progress == 67
        assert store.error is None

    @pytest.mark.asyncio
    async def test_missing_task(self, homepage_backend):
        store = TaskDetailStore(homepage_backend, "nope")
        assert not await store.load()
        assert store.error == "Task not found"

    @pytest.mark.asyncio
    async def test_subtask_fetch_failure_keeps_task(self, homepage_backend):
        homepage_backend.fail_next("get_subtasks", "Database unavailable")
        store = TaskDetailStore(homepage_backend, "task-1")

        assert await store.load()
        assert store.task is not None
        assert store.subtasks == ()
        assert store.error == "Database unavailable"

    @pytest.mark.asyncio
    async def test_failed_reload_drops_stale_subtasks(self, store, homepage_backend):
        store.subtasks = tuple(s.toggled(True) for s in store.subtasks)
        homepage_backend.fail_next("get_subtasks", "Database unavailable")

        assert await store.load()
        await store.drain()

        assert store.subtasks == ()
        assert store.task.status == TaskStatus.IN_PROGRESS
        assert homepage_backend.calls_to("toggle_task_completion") == []

    @pytest.mark.asyncio
    async def test_load_with_all_subtasks_done_completes_task(self, homepage_backend):
        homepage_backend.subtasks["s3"] = homepage_backend.subtasks["s3"].toggled(True)
        store = TaskDetailStore(homepage_backend, "task-1")

        await store.load()
        await store.drain()

        assert store.task.status == TaskStatus.COMPLETED
        assert homepage_backend.calls_to("toggle_task_completion") == [("task-1", True)]

    @pytest.mark.asyncio
    async def test_operations_before_load_raise(self, homepage_backend):
        store = TaskDetailStore(homepage_backend, "task-1")
        with pytest.raises(EntityNotLoadedError):
            await store.toggle_subtask("s3", False)


class TestSubtaskCascade:
    """Completing the last subtask completes the task."""

    @pytest.mark.asyncio
    async def test_last_subtask_completes_task(self, store, homepage_backend):
        assert await store.toggle_subtask("s3", False)

        assert store.task.status == TaskStatus.COMPLETED
        assert store.task.completed is True
        assert store.progress == 100
        assert store.animation.visible
        assert store.animation.fire_count == 1

        await store.drain()
        assert homepage_backend.calls_to("toggle_task_completion") == [("task-1", True)]
        assert store.unconfirmed == []

    @pytest.mark.asyncio
    async def test_partial_completion_does_not_complete_task(self, store):
        await store.toggle_subtask("s1", True)
        await store.toggle_subtask("s3", False)

        assert store.task.status == TaskStatus.IN_PROGRESS
        assert store.animation.fire_count == 1

    @pytest.mark.asyncio
    async def test_unchecking_subtask_never_reopens_task(self, store, homepage_backend):
        await store.toggle_subtask("s3", False)
        await store.toggle_subtask("s1", True)
        await store.drain()

        assert store.task.status == TaskStatus.COMPLETED
        assert len(homepage_backend.calls_to("toggle_task_completion")) == 1

    @pytest.mark.asyncio
    async def test_deleting_last_open_subtask_completes_task(self, store):
        assert await store.delete_subtask("s3")
        assert store.task.completed

    @pytest.mark.asyncio
    async def test_rejected_confirmation_keeps_local_completion(self, store, homepage_backend):
        homepage_backend.fail_next("toggle_task_completion", "Permission denied")

        await store.toggle_subtask("s3", False)
        await store.drain()

        assert store.task.completed is True
        assert store.error is None
        assert store.unconfirmed == ["task-1"]

    @pytest.mark.asyncio
    async def test_crashed_confirmation_is_recorded(self, store, homepage_backend):
        homepage_backend.raise_next("toggle_task_completion", ConnectionError("reset"))

        await store.toggle_subtask("s3", False)
        await store.drain()

        assert store.task.completed is True
        assert store.unconfirmed == ["task-1"]

    @pytest.mark.asyncio
    async def test_reload_clears_unconfirmed(self, store, homepage_backend):
        homepage_backend.fail_next("toggle_task_completion")
        await store.toggle_subtask("s3", False)
        await store.drain()

        await store.load()
        await store.drain()

        assert store.unconfirmed == []


class TestServerFirstToggle:
    """Subtask toggles patch local state only after the server accepted them."""

    @pytest.mark.asyncio
    async def test_failure_leaves_state_untouched(self, store, homepage_backend):
        homepage_backend.fail_next("toggle_subtask_completion", "Subtask not found")
        before = store.subtasks

        assert not await store.toggle_subtask("s3", False)

        assert store.subtasks == before
        assert store.task.status == TaskStatus.IN_PROGRESS
        assert store.error == "Subtask not found"
        assert store.animation.fire_count == 0

    @pytest.mark.asyncio
    async def test_state_unchanged_while_in_flight(self, store, homepage_backend):
        gate = homepage_backend.hold("toggle_subtask_completion")

        pending = asyncio.ensure_future(store.toggle_subtask("s3", False))
        await asyncio.sleep(0)
        assert not store.subtasks[2].completed

        gate.set()
        assert await pending
        assert store.subtasks[2].completed

    @pytest.mark.asyncio
    async def test_patch_applies_to_latest_collection(self, store, homepage_backend):
        gate = homepage_backend.hold("toggle_subtask_completion")

        pending = asyncio.ensure_future(store.toggle_subtask("s3", False))
        await asyncio.sleep(0)
        # Another subtask arrives while the toggle is in flight
        store.subtasks = store.subtasks + (
            Subtask(id="s4", title="Review with client", task_id="task-1", position=3),
        )

        gate.set()
        await pending

        assert [s.id for s in store.subtasks] == ["s1", "s2", "s3", "s4"]
        assert store.subtasks[2].completed
        assert store.task.status == TaskStatus.IN_PROGRESS


class TestSubtaskEditing:
    """Tests for adding, renaming and reordering subtasks."""

    @pytest.mark.asyncio
    async def test_add_subtask_refetches(self, store, homepage_backend):
        assert await store.add_subtask("  Export assets ")

        assert store.subtasks[-1].title == "Export assets"
        assert len(homepage_backend.calls_to("get_subtasks")) == 2

    @pytest.mark.asyncio
    async def test_add_subtask_falls_back_to_append(self, store, homepage_backend):
        homepage_backend.fail_next("get_subtasks")

        assert await store.add_subtask("Export assets")
        assert len(store.subtasks) == 4

    @pytest.mark.asyncio
    async def test_blank_title_ignored(self, store, homepage_backend):
        assert not await store.add_subtask("   ")
        assert homepage_backend.calls_to("create_subtask") == []

    @pytest.mark.asyncio
    async def test_add_failure(self, store, homepage_backend):
        homepage_backend.fail_next("create_subtask", "")
        assert not await store.add_subtask("Export assets")
        assert store.error == "Failed to add subtask"

    @pytest.mark.asyncio
    async def test_rename(self, store, homepage_backend):
        assert await store.rename_subtask("s1", "Collect logos")

        assert store.subtasks[0].title == "Collect logos"
        assert homepage_backend.calls_to("update_subtask") == [("s1", {"title": "Collect logos", "task_id": "task-1"})]

    @pytest.mark.asyncio
    async def test_drag_reorders_locally(self, store, homepage_backend):
        store.drag_start("s3")
        store.drag_over("s1")

        assert store.drag_end()
        assert [s.id for s in store.subtasks] == ["s3", "s1", "s2"]
        assert store.dragged_subtask_id is None
        assert store.drag_over_subtask_id is None
        assert homepage_backend.calls_to("update_subtask") == []

    @pytest.mark.asyncio
    async def test_drag_onto_itself_is_noop(self, store):
        store.drag_start("s2")
        store.drag_over("s2")
        assert not store.drag_end()


class TestManualCompletion:
    """Tests for marking the task complete or incomplete by hand."""

    @pytest.mark.asyncio
    async def test_mark_complete_triggers_animation(self, store):
        assert await store.toggle_task_completion()

        assert store.task.status == TaskStatus.COMPLETED
        assert store.animation.fire_count == 1

    @pytest.mark.asyncio
    async def test_mark_incomplete_sticks(self, store):
        await store.toggle_subtask("s3", False)
        await store.drain()
        store.animation.finish()

        assert await store.toggle_task_completion()

        assert store.task.status == TaskStatus.TODO
        assert store.task.completed is False
        assert store.animation.fire_count == 1

    @pytest.mark.asyncio
    async def test_failure(self, store, homepage_backend):
        homepage_backend.fail_next("toggle_task_completion", "")
        assert not await store.toggle_task_completion()
        assert store.error == "Failed to update task"
        assert not store.task.completed

    @pytest.mark.asyncio
    async def test_update_status(self, store):
        assert await store.update_status("review")
        assert store.task.status == TaskStatus.REVIEW
        assert store.animation.fire_count == 0

        assert await store.update_status(TaskStatus.COMPLETED)
        assert store.task.completed
        assert store.animation.fire_count == 1

    @pytest.mark.asyncio
    async def test_update_priority_failure(self, store, homepage_backend):
        homepage_backend.fail_next("update_task", "")
        assert not await store.update_priority("high")
        assert store.error == "Failed to update task priority"
        assert store.task.priority == "medium"

    @pytest.mark.asyncio
    async def test_change_callback(self, homepage_backend):
        changes = []
        store = TaskDetailStore(homepage_backend, "task-1", on_change=lambda: changes.append(1))

        await store.load()
        await store.update_priority("high")

        assert len(changes) >= 2


class TestTaskEditing:
    """Tests for editing and deleting the task itself."""

    @pytest.mark.asyncio
    async def test_update_details(self, store, homepage_backend):
        assert await store.update_details(title=" Homepage v2 ", description="Dark theme")

        assert store.task.title == "Homepage v2"
        assert store.task.description == "Dark theme"
        assert homepage_backend.calls_to("update_task") == [
            ("task-1", {"title": "Homepage v2", "description": "Dark theme"})
        ]
        assert homepage_backend.tasks["task-1"].title == "Homepage v2"

    @pytest.mark.asyncio
    async def test_empty_description_clears_it(self, store, homepage_backend):
        await store.update_details(description="Dark theme")
        assert await store.update_details(description="  ")
        assert store.task.description is None

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, store, homepage_backend):
        assert not await store.update_details(title="   ")
        assert not await store.update_details()
        assert homepage_backend.calls_to("update_task") == []
        assert store.task.title == "Design Homepage"

    @pytest.mark.asyncio
    async def test_update_details_failure(self, store, homepage_backend):
        homepage_backend.fail_next("update_task", "")

        assert not await store.update_details(title="Homepage v2")

        assert store.error == "Failed to update task"
        assert store.task.title == "Design Homepage"

    @pytest.mark.asyncio
    async def test_delete_task(self, store, homepage_backend):
        assert await store.delete_task()

        assert store.deleted
        assert store.task is None
        assert store.subtasks == ()
        assert "task-1" not in homepage_backend.tasks
        with pytest.raises(EntityNotLoadedError):
            await store.toggle_subtask("s3", False)

    @pytest.mark.asyncio
    async def test_delete_failure_keeps_task(self, store, homepage_backend):
        homepage_backend.fail_next("delete_task", "")

        assert not await store.delete_task()

        assert not store.deleted
        assert store.task.id == "task-1"
        assert len(store.subtasks) == 3
        assert store.error == "Failed to delete task"

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self, store, homepage_backend):
        homepage_backend.fail_next("update_task", "Server error")
        await store.update_priority("high")
        assert store.error == "Server error"

        assert await store.update_details(title="Homepage v2")
        assert store.error is None

        homepage_backend.fail_next("toggle_subtask_completion", "Server error")
        await store.toggle_subtask("s3", False)
        assert await store.toggle_subtask("s3", False)
        assert store.error is None
