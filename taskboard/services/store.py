"""
Shared plumbing for the view stores.

A store holds the in-memory state behind one view (task detail, project
detail, kanban board), surfaces failures as an ``error`` string, notifies a
change callback after every mutation, and tracks the fire-and-forget server
confirmations issued by completion cascades.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Set

from taskboard.logging_config import get_logger
from taskboard.models import ActionResult
from taskboard.services.backend import Backend

logger = get_logger(__name__)


class StoreError(Exception):
    """Base exception for store misuse."""
    pass


class EntityNotLoadedError(StoreError):
    """Raised when an operation needs state that load() has not fetched yet."""
    pass


class BaseStore:
    """Common state and helpers for the view stores."""

    def __init__(
        self,
        backend: Backend,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Args:
            backend: Backend used for every server call
            on_change: Optional callback invoked after each state change
        """
        self.backend = backend
        self.on_change = on_change
        self.error: Optional[str] = None
        self.unconfirmed: List[str] = []
        self._confirmations: Set[asyncio.Task] = set()

    def _notify(self) -> None:
        if self.on_change:
            self.on_change()

    def _fail(self, result: ActionResult, default: str) -> None:
        """Surface a failed result to the view."""
        self.error = result.error or default
        logger.warning(f"{default}: {self.error}")
        self._notify()

    def clear_error(self) -> None:
        self.error = None
        self._notify()

    def _confirm_in_background(
        self,
        entity_id: str,
        label: str,
        call: Callable[[], Awaitable[ActionResult]],
    ) -> Optional[asyncio.Task]:
        """
        Send a cascade's server update without waiting for it.

        The local state already shows the entity completed and stays that way
        whatever the server answers. A rejected or crashed confirmation is
        logged and the id is recorded in ``unconfirmed`` until the next load.
        Without a running event loop nothing can be sent, so the id goes
        straight to ``unconfirmed``.

        Args:
            entity_id: Id of the entity being confirmed
            label: Description used in log messages
            call: Zero-argument coroutine factory for the server call

        Returns:
            The scheduled asyncio task, or None when no loop is running
        """
        async def confirm() -> None:
            try:
                result = await call()
            except Exception:
                logger.error(f"Cascade confirmation crashed: {label}", exc_info=True)
                self.unconfirmed.append(entity_id)
                return
            if not result.success:
                logger.warning(f"Cascade confirmation rejected: {label}: {result.error}")
                self.unconfirmed.append(entity_id)
            else:
                logger.debug(f"Cascade confirmed: {label}")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, cascade confirmation not sent: {label}")
            self.unconfirmed.append(entity_id)
            return None

        task = loop.create_task(confirm())
        self._confirmations.add(task)
        task.add_done_callback(self._confirmations.discard)
        return task

    @property
    def pending_confirmations(self) -> int:
        return len(self._confirmations)

    async def drain(self) -> None:
        """Wait for every outstanding cascade confirmation."""
        while self._confirmations:
            await asyncio.gather(*list(self._confirmations))
