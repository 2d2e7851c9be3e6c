"""Progression state and transition validation for wizard modes."""

from .engine import (
    ProgressionEngine,
    clear_dirty,
    mark_current_complete,
    mark_dirty,
    request_back,
    request_jump,
    request_next,
    start_progression,
)
from .state import ProgressionState, StepStatus

__all__ = [
    "ProgressionEngine",
    "ProgressionState",
    "StepStatus",
    "clear_dirty",
    "mark_current_complete",
    "mark_dirty",
    "request_back",
    "request_jump",
    "request_next",
    "start_progression",
]
