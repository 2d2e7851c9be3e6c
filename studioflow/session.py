"""Two-phase application of transitions: tentative change, then save or roll back."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from .config import StudioflowConfig
from .constants import DEFAULT_SAVE_TIMEOUT
from .errors import PersistenceError, StepError
from .persistence import ProgressionStore
from .progression import ProgressionEngine, ProgressionState
from .steps import StepContext

logger = logging.getLogger(__name__)


class ProgressionSession:
    """Editing session for one persisted progression.

    Each operation takes the session lock, applies the transition to the
    in-memory state and saves it. Requests queue on the lock in the order
    they are made, so two saves for the same item never interleave. When
    the save fails or times out the state is restored to its pre-transition
    snapshot and ``PersistenceError`` is raised. A save that outlives its
    timeout keeps running; once it lands the snapshot is written back, so
    storage never keeps a rolled-back transition.
    """

    def __init__(
        self,
        store: ProgressionStore,
        item_id: str,
        state: ProgressionState,
        context: Optional[StepContext] = None,
        engine: Optional[ProgressionEngine] = None,
        save_timeout: float = DEFAULT_SAVE_TIMEOUT,
    ) -> None:
        self.store = store
        self.item_id = item_id
        self.state = state
        self.context = dict(context or {})
        self.engine = engine or ProgressionEngine(store.table)
        self.save_timeout = save_timeout
        self._lock = asyncio.Lock()

    @classmethod
    async def open(
        cls,
        store: ProgressionStore,
        item_id: str,
        context: Optional[StepContext] = None,
        config: Optional[StudioflowConfig] = None,
    ) -> "ProgressionSession":
        """Load ``item_id`` from ``store`` and wrap it in a session."""
        state = await store.load(item_id)
        timeout = config.persistence.save_timeout if config else DEFAULT_SAVE_TIMEOUT
        return cls(store, item_id, state, context=context, save_timeout=timeout)

    @property
    def busy(self) -> bool:
        """``True`` while a transition is waiting for its save."""
        return self._lock.locked()

    def update_context(self, **values: Any) -> None:
        self.context.update(values)

    # ------------------------------------------------------------------
    # Transitions
    async def next(self) -> ProgressionState:
        return await self._apply("next", lambda s: self.engine.request_next(s, self.context))

    async def back(self) -> ProgressionState:
        return await self._apply("back", lambda s: self.engine.request_back(s, self.context))

    async def jump(self, step_id: str) -> ProgressionState:
        return await self._apply(
            f"jump to {step_id}",
            lambda s: self.engine.request_jump(s, step_id, self.context),
        )

    async def complete_current(self) -> ProgressionState:
        return await self._apply("complete", self.engine.mark_current_complete)

    async def complete_and_advance(self, payload: Any = None) -> ProgressionState:
        """Store the step's payload, mark it complete and move on in one save."""

        def operation(state: ProgressionState) -> None:
            if payload is not None:
                self.engine.set_payload(state, state.current_step, payload)
            self.engine.mark_current_complete(state)
            self.engine.request_next(state, self.context)

        return await self._apply("complete and advance", operation)

    async def set_payload(self, step_id: str, payload: Any) -> ProgressionState:
        return await self._apply(
            f"set payload of {step_id}",
            lambda s: self.engine.set_payload(s, step_id, payload),
        )

    async def mark_dirty(self, step_id: str) -> ProgressionState:
        return await self._apply(
            f"mark {step_id} dirty", lambda s: self.engine.mark_dirty(s, step_id)
        )

    async def clear_dirty(self, step_id: str) -> ProgressionState:
        return await self._apply(
            f"clear {step_id} dirty", lambda s: self.engine.clear_dirty(s, step_id)
        )

    # ------------------------------------------------------------------
    async def _apply(
        self, action: str, operation: Callable[[ProgressionState], Any]
    ) -> ProgressionState:
        async with self._lock:
            snapshot = self.state.snapshot()
            try:
                operation(self.state)
            except StepError:
                self.state.restore(snapshot)
                raise

            if self.state == snapshot:
                return self.state

            saved = asyncio.ensure_future(self.store.save(self.item_id, self.state.snapshot()))
            try:
                await asyncio.wait_for(asyncio.shield(saved), timeout=self.save_timeout)
            except asyncio.TimeoutError as e:
                self._rollback(snapshot, action, "save timed out")
                await self._revert_stored(saved, snapshot)
                raise PersistenceError(
                    f"Saving '{action}' timed out after {self.save_timeout}s",
                    item_id=self.item_id,
                ) from e
            except PersistenceError as e:
                self._rollback(snapshot, action, str(e))
                raise
            except asyncio.CancelledError:
                self._rollback(snapshot, action, "save cancelled")
                await self._revert_stored(saved, snapshot)
                raise
            return self.state

    async def _revert_stored(
        self, saved: "asyncio.Future[None]", snapshot: ProgressionState
    ) -> None:
        """Wait for an abandoned save to finish, then write ``snapshot`` over it."""
        try:
            await saved
        except PersistenceError:
            # nothing was written, storage still matches the snapshot
            return
        await self.store.save(self.item_id, snapshot)
        logger.info(f"Restored stored state of {self.item_id} after an abandoned save")

    def _rollback(self, snapshot: ProgressionState, action: str, reason: str) -> None:
        self.state.restore(snapshot)
        logger.error(
            f"Rolled back '{action}' on {self.item_id} to step {snapshot.current_step}: {reason}"
        )
