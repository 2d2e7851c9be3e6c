"""Ordered, context-filtered step sequences per mode."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import StepError, StepHiddenError, StepNotFoundError, UnknownModeError
from .models import Mode, StepContext, StepDefinition, mode_key

logger = logging.getLogger(__name__)


class StepTable:
    """Registry of static step sequences keyed by mode.

    Every lookup is a pure function of the registered definitions and the
    context passed in by the caller.
    """

    def __init__(self) -> None:
        self._modes: Dict[str, Tuple[StepDefinition, ...]] = {}

    def register(
        self, mode: Mode | str, steps: Iterable[StepDefinition], replace: bool = False
    ) -> None:
        """Register the ordered steps for ``mode``."""
        key = mode_key(mode)
        sequence = tuple(steps)
        if not sequence:
            raise ValueError(f"Mode '{key}' needs at least one step")
        seen = set()
        for step in sequence:
            if step.id in seen:
                raise ValueError(f"Duplicate step id '{step.id}' in mode '{key}'")
            seen.add(step.id)
        if key in self._modes and not replace:
            raise ValueError(f"Mode '{key}' is already registered")
        self._modes[key] = sequence
        logger.debug(f"Registered mode {key} with steps {[s.id for s in sequence]}")

    def modes(self) -> List[str]:
        return list(self._modes)

    def definition(self, mode: Mode | str) -> Tuple[StepDefinition, ...]:
        """Return the full static sequence for ``mode``."""
        key = mode_key(mode)
        try:
            return self._modes[key]
        except KeyError:
            raise UnknownModeError(key) from None

    def get_step(self, mode: Mode | str, step_id: str) -> StepDefinition:
        for step in self.definition(mode):
            if step.id == step_id:
                return step
        raise StepNotFoundError(mode_key(mode), step_id)

    def get_visible_steps(
        self, mode: Mode | str, context: Optional[StepContext] = None
    ) -> List[StepDefinition]:
        """Steps whose visibility predicate holds, in static order."""
        context = context or {}
        return [step for step in self.definition(mode) if step.is_visible(context)]

    def visible_ids(self, mode: Mode | str, context: Optional[StepContext] = None) -> List[str]:
        return [step.id for step in self.get_visible_steps(mode, context)]

    def index_of(
        self, mode: Mode | str, step_id: str, context: Optional[StepContext] = None
    ) -> int:
        """Position of ``step_id`` within the visible sequence.

        Raises:
            StepNotFoundError: ``step_id`` is not part of the mode.
            StepHiddenError: the step exists but is filtered out by ``context``.
        """
        self.get_step(mode, step_id)
        visible = self.visible_ids(mode, context)
        if step_id not in visible:
            raise StepHiddenError(mode_key(mode), step_id)
        return visible.index(step_id)

    def position_of(self, mode: Mode | str, step_id: str) -> int:
        """1-based position of ``step_id`` in the static definition."""
        for position, step in enumerate(self.definition(mode), start=1):
            if step.id == step_id:
                return position
        raise StepNotFoundError(mode_key(mode), step_id)

    def step_at_position(self, mode: Mode | str, position: int) -> StepDefinition:
        sequence = self.definition(mode)
        if not 1 <= position <= len(sequence):
            raise StepNotFoundError(mode_key(mode), str(position))
        return sequence[position - 1]

    def first_step(self, mode: Mode | str, context: Optional[StepContext] = None) -> str:
        return self._visible_or_fail(mode, context)[0]

    def terminal_step(self, mode: Mode | str, context: Optional[StepContext] = None) -> str:
        return self._visible_or_fail(mode, context)[-1]

    def is_terminal(
        self, mode: Mode | str, step_id: str, context: Optional[StepContext] = None
    ) -> bool:
        return step_id == self.terminal_step(mode, context)

    def next_visible(
        self, mode: Mode | str, step_id: str, context: Optional[StepContext] = None
    ) -> Optional[str]:
        """Visible step following ``step_id``, or ``None`` at the end.

        ``step_id`` may itself be hidden; the search starts from its static
        position.
        """
        position = self.position_of(mode, step_id)
        context = context or {}
        for step in self.definition(mode)[position:]:
            if step.is_visible(context):
                return step.id
        return None

    def previous_visible(
        self, mode: Mode | str, step_id: str, context: Optional[StepContext] = None
    ) -> Optional[str]:
        """Visible step preceding ``step_id``, or ``None`` at the start."""
        position = self.position_of(mode, step_id)
        context = context or {}
        for step in reversed(self.definition(mode)[: position - 1]):
            if step.is_visible(context):
                return step.id
        return None

    def _visible_or_fail(self, mode: Mode | str, context: Optional[StepContext]) -> List[str]:
        visible = self.visible_ids(mode, context)
        if not visible:
            raise StepError(
                f"Mode '{mode_key(mode)}' has no visible steps with the current settings",
                mode=mode_key(mode),
            )
        return visible
