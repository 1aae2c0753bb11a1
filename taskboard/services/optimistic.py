"""
Optimistic update command.

Captures a snapshot of a piece of state, applies a local mutation before the
server answers, and then either discards the snapshot (commit) or writes it
back (rollback). The state is expected to be immutable values (tuples of
frozen models), so the snapshot cannot drift while the call is in flight.
"""

from typing import Awaitable, Callable, Generic, Optional, TypeVar

from taskboard.logging_config import get_logger
from taskboard.models import ActionResult

logger = get_logger(__name__)

T = TypeVar("T")

_NO_SNAPSHOT = object()


class OptimisticUpdateError(Exception):
    """Raised when the command is applied twice or settled without a snapshot."""
    pass


class OptimisticUpdate(Generic[T]):
    """
    One optimistic interaction: snapshot, apply, then commit or rollback.

    Example:
        update = OptimisticUpdate(lambda: board.tasks, board.set_tasks, "drop task-1")
        result = await update.run(
            lambda tasks: replace_by_id(tasks, moved),
            lambda: backend.update_task("task-1", {"status": "review"}),
        )
    """

    def __init__(
        self,
        read: Callable[[], T],
        write: Callable[[T], None],
        label: str = "optimistic update",
    ) -> None:
        """
        Args:
            read: Returns the current value of the state
            write: Replaces the state
            label: Description used in log messages
        """
        self._read = read
        self._write = write
        self.label = label
        self._snapshot = _NO_SNAPSHOT

    @property
    def pending(self) -> bool:
        """True between apply() and commit()/rollback()."""
        return self._snapshot is not _NO_SNAPSHOT

    @property
    def snapshot(self) -> Optional[T]:
        return None if self._snapshot is _NO_SNAPSHOT else self._snapshot

    def apply(self, mutate: Callable[[T], T]) -> T:
        """
        Snapshot the current state and write the mutated state.

        Args:
            mutate: Pure function from the current state to the new state

        Returns:
            The state that was written

        Raises:
            OptimisticUpdateError: If an update is already pending
        """
        if self.pending:
            raise OptimisticUpdateError(f"{self.label}: already applied")
        self._snapshot = self._read()
        new_state = mutate(self._snapshot)
        self._write(new_state)
        logger.debug(f"Applied {self.label}")
        return new_state

    def commit(self) -> None:
        """Keep the optimistic state and drop the snapshot."""
        if not self.pending:
            raise OptimisticUpdateError(f"{self.label}: nothing to commit")
        self._snapshot = _NO_SNAPSHOT
        logger.debug(f"Committed {self.label}")

    def rollback(self) -> None:
        """Restore the state captured by apply()."""
        if not self.pending:
            raise OptimisticUpdateError(f"{self.label}: nothing to roll back")
        snapshot = self._snapshot
        self._snapshot = _NO_SNAPSHOT
        self._write(snapshot)
        logger.info(f"Rolled back {self.label}")

    async def run(
        self,
        mutate: Callable[[T], T],
        call: Callable[[], Awaitable[ActionResult]],
    ) -> ActionResult:
        """
        Apply, await the server call, then settle on its result.

        Args:
            mutate: Pure function producing the optimistic state
            call: Zero-argument coroutine factory for the server call

        Returns:
            The server's ActionResult

        Raises:
            Exception: Whatever the call raised, after rolling back
        """
        self.apply(mutate)
        try:
            result = await call()
        except Exception:
            self.rollback()
            raise

        if result.success:
            self.commit()
        else:
            logger.warning(f"{self.label} rejected by server: {result.error}")
            self.rollback()
        return result
