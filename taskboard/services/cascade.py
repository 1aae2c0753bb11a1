"""
Completion cascade rules.

Pure functions that decide whether a parent entity must move to its completed
state because all of its children did. They never reverse a completion: a
child going back to incomplete leaves the parent as it is.
"""

from typing import Optional, Sequence, Union

from taskboard.models import PROJECT_COMPLETED, Project, Subtask, Task, TaskStatus


def task_cascade(task: Optional[Task], subtasks: Sequence[Subtask]) -> Optional[Task]:
    """
    Complete a task whose subtasks are all done.

    Args:
        task: Parent task (may not be loaded yet)
        subtasks: Current subtasks of that task

    Returns:
        The completed task, or None when the rule does not fire
    """
    if task is None or task.completed or not subtasks:
        return None
    if all(subtask.completed for subtask in subtasks):
        return task.with_status(TaskStatus.COMPLETED)
    return None


def project_cascade(project: Optional[Project], tasks: Sequence[Task]) -> Optional[Project]:
    """
    Complete a project whose tasks are all in the completed column.

    An empty task list never counts as complete.

    Args:
        project: Parent project (may not be loaded yet)
        tasks: Current tasks of that project

    Returns:
        The completed project, or None when the rule does not fire
    """
    if project is None or project.is_completed or not tasks:
        return None
    if all(task.status == TaskStatus.COMPLETED for task in tasks):
        return project.with_status(PROJECT_COMPLETED)
    return None


def completion_percentage(items: Sequence[Union[Task, Subtask]]) -> int:
    """
    Rounded share of completed items, 0 for an empty list.

    Tasks count by status, subtasks by their flag.
    """
    if not items:
        return 0
    done = sum(
        1 for item in items
        if (item.status == TaskStatus.COMPLETED if isinstance(item, Task) else item.completed)
    )
    # Half rounds up, matching the dashboard progress bar
    return int(done * 100 / len(items) + 0.5)
