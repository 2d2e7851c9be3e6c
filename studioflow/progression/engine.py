"""Transition validator for wizard progressions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..errors import StepError, StepNotReachableError, TerminalStepLockedError
from ..steps import STEP_TABLE, Mode, StepContext, StepTable, mode_key
from .state import ProgressionState, StepStatus

logger = logging.getLogger(__name__)


class ProgressionEngine:
    """Gates and applies step transitions on a ``ProgressionState``.

    Every operation validates first and mutates afterwards: a rejected
    transition raises a ``StepError`` and leaves the state untouched.
    Nothing here performs I/O.
    """

    def __init__(self, table: Optional[StepTable] = None) -> None:
        self.table = table or STEP_TABLE

    def start(self, mode: Mode | str, context: Optional[StepContext] = None) -> ProgressionState:
        """Create a fresh progression at the first visible step."""
        context = context or {}
        first = self.table.first_step(mode, context)
        state = ProgressionState(mode=mode_key(mode), current_step=first)
        state.locked = self.table.is_terminal(mode, first, context)
        return state

    # ------------------------------------------------------------------
    # Queries
    def is_locked(self, state: ProgressionState, context: Optional[StepContext] = None) -> bool:
        """``True`` once the terminal step has been entered."""
        if state.locked:
            return True
        return self.table.is_terminal(state.mode, state.current_step, context or {})

    def step_status(
        self, state: ProgressionState, step_id: str, context: Optional[StepContext] = None
    ) -> StepStatus:
        self.table.index_of(state.mode, step_id, context or {})
        if state.is_completed(step_id):
            return StepStatus.COMPLETED
        if step_id == state.current_step:
            return StepStatus.ACTIVE
        return StepStatus.UPCOMING

    def can_navigate_to(
        self, state: ProgressionState, step_id: str, context: Optional[StepContext] = None
    ) -> bool:
        """Whether ``request_jump`` to ``step_id`` would currently succeed."""
        try:
            self._check_jump(state, step_id, context or {})
        except StepError:
            return False
        return True

    # ------------------------------------------------------------------
    # Transitions
    def request_next(
        self, state: ProgressionState, context: Optional[StepContext] = None
    ) -> ProgressionState:
        """Advance to the next visible step once the current one is complete.

        At the terminal step this is an idempotent no-op.
        """
        context = context or {}
        if self.is_locked(state, context):
            logger.debug(f"request_next on terminal step {state.current_step}; nothing to do")
            return state

        next_step = self.table.next_visible(state.mode, state.current_step, context)
        if next_step is None:
            return state

        target = self.table.get_step(state.mode, next_step)
        if target.requires_completion_of_previous and not state.is_completed(state.current_step):
            logger.debug(
                f"Rejected next from {state.current_step}: step not marked complete"
            )
            raise StepNotReachableError(state.mode, next_step, state.current_step)

        self._move(state, next_step, context)
        return state

    def request_back(
        self, state: ProgressionState, context: Optional[StepContext] = None
    ) -> ProgressionState:
        """Move to the previous visible step; ``completed_steps`` is kept."""
        context = context or {}
        self._ensure_unlocked(state, state.current_step, context)
        previous = self.table.previous_visible(state.mode, state.current_step, context)
        if previous is None:
            logger.debug(f"request_back on first step {state.current_step}; nothing to do")
            return state
        self._move(state, previous, context)
        return state

    def request_jump(
        self, state: ProgressionState, target_step: str, context: Optional[StepContext] = None
    ) -> ProgressionState:
        """Jump to an earlier, completed or current step."""
        context = context or {}
        self._check_jump(state, target_step, context)
        if target_step != state.current_step:
            self._move(state, target_step, context)
        return state

    def mark_current_complete(self, state: ProgressionState) -> ProgressionState:
        if not state.is_completed(state.current_step):
            state.completed_steps.append(state.current_step)
            logger.debug(f"Marked step {state.current_step} complete")
        return state

    # ------------------------------------------------------------------
    # Dirty tracking and payloads
    def mark_dirty(self, state: ProgressionState, step_id: str) -> ProgressionState:
        """Flag ``step_id`` as changed since the last successful save.

        Which downstream steps become stale is decided by the caller.
        """
        self.table.get_step(state.mode, step_id)
        if not state.is_dirty(step_id):
            state.dirty_steps.append(step_id)
        return state

    def clear_dirty(self, state: ProgressionState, step_id: str) -> ProgressionState:
        self.table.get_step(state.mode, step_id)
        if state.is_dirty(step_id):
            state.dirty_steps.remove(step_id)
        return state

    def set_payload(self, state: ProgressionState, step_id: str, payload: Any) -> ProgressionState:
        """Store the opaque form state owned by ``step_id``."""
        self.table.get_step(state.mode, step_id)
        state.step_payload[step_id] = payload
        return state

    # ------------------------------------------------------------------
    # Helpers
    def _check_jump(self, state: ProgressionState, target_step: str, context: StepContext) -> None:
        self._ensure_unlocked(state, target_step, context)
        self.table.index_of(state.mode, target_step, context)
        if target_step == state.current_step or state.is_completed(target_step):
            return
        # static positions, so a current step hidden by the context still orders
        if self.table.position_of(state.mode, target_step) < self.table.position_of(
            state.mode, state.current_step
        ):
            return
        raise StepNotReachableError(
            state.mode,
            target_step,
            state.current_step,
            reason=(
                f"Cannot jump to '{target_step}': it comes after '{state.current_step}' "
                "and has not been completed yet"
            ),
        )

    def _ensure_unlocked(self, state: ProgressionState, target: str, context: StepContext) -> None:
        if self.is_locked(state, context):
            logger.warning(
                f"Rejected navigation to {target}: {state.current_step} is terminal"
            )
            raise TerminalStepLockedError(state.mode, target, state.current_step)

    def _move(self, state: ProgressionState, step_id: str, context: StepContext) -> None:
        previous = state.current_step
        state.current_step = step_id
        if self.table.is_terminal(state.mode, step_id, context):
            state.locked = True
        logger.info(f"Moved {state.mode} progression from {previous} to {step_id}")


_default_engine = ProgressionEngine()


def request_next(state: ProgressionState, context: Optional[StepContext] = None) -> ProgressionState:
    return _default_engine.request_next(state, context)


def request_back(state: ProgressionState, context: Optional[StepContext] = None) -> ProgressionState:
    return _default_engine.request_back(state, context)


def request_jump(
    state: ProgressionState, target_step: str, context: Optional[StepContext] = None
) -> ProgressionState:
    return _default_engine.request_jump(state, target_step, context)


def mark_current_complete(state: ProgressionState) -> ProgressionState:
    return _default_engine.mark_current_complete(state)


def mark_dirty(state: ProgressionState, step_id: str) -> ProgressionState:
    return _default_engine.mark_dirty(state, step_id)


def clear_dirty(state: ProgressionState, step_id: str) -> ProgressionState:
    return _default_engine.clear_dirty(state, step_id)


def start_progression(
    mode: Mode | str, context: Optional[StepContext] = None
) -> ProgressionState:
    return _default_engine.start(mode, context)
