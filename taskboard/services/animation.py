"""
Completion animation signal.

A presentation flag raised when a subtask, task or project moves from
incomplete to complete. It decides nothing; views watch ``visible`` and the
flag resets itself after a fixed duration or when the view reports the
animation finished.
"""

import asyncio
from typing import Callable, List, Optional

from taskboard.logging_config import get_logger

logger = get_logger(__name__)

# Display durations from the dashboard: short for tasks, longer for projects
DEFAULT_DURATIONS = {"task": 2.0, "project": 4.0}


class CompletionAnimation:
    """Rising-edge flag with an automatic reset timer."""

    def __init__(self, kind: str = "task", duration: Optional[float] = None) -> None:
        """
        Args:
            kind: "task" or "project"
            duration: Seconds before the flag resets on its own
        """
        if kind not in DEFAULT_DURATIONS:
            raise ValueError(f"Unknown animation kind: {kind}")
        self.kind = kind
        self.duration = DEFAULT_DURATIONS[kind] if duration is None else duration
        self.visible = False
        self.fire_count = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[bool], None]] = []

    def subscribe(self, listener: Callable[[bool], None]) -> None:
        """Register a callback receiving the new visibility on every change."""
        self._listeners.append(listener)

    def trigger(self) -> None:
        """
        Show the animation for an incomplete->complete transition.

        A trigger while the animation is already showing is folded into the
        current one.
        """
        if self.visible:
            return
        self.visible = True
        self.fire_count += 1
        logger.debug(f"{self.kind} completion animation shown (#{self.fire_count})")
        self._schedule_reset()
        self._notify()

    def finish(self) -> None:
        """Animation finished callback; hides the flag."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self.visible:
            return
        self.visible = False
        self._notify()

    def _schedule_reset(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (synchronous caller): the view must call finish()
            return
        self._timer = loop.call_later(self.duration, self.finish)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.visible)
