"""Exception hierarchy for studioflow."""

from __future__ import annotations

from typing import Any, Optional


class StudioflowError(Exception):
    """Base exception for all studioflow errors."""


# ----------------------------------------------------------------------
# Step navigation


class StepError(StudioflowError):
    """Base class for errors raised while resolving or navigating steps."""

    def __init__(self, message: str, mode: Optional[str] = None, step_id: Optional[str] = None):
        self.mode = mode
        self.step_id = step_id
        super().__init__(message)


class UnknownModeError(StepError):
    """Raised when no step definition is registered for a mode."""

    def __init__(self, mode: str):
        super().__init__(f"No steps registered for mode '{mode}'", mode=mode)


class StepNotFoundError(StepError):
    """Raised when a step id is not part of the mode's definition."""

    def __init__(self, mode: str, step_id: str):
        super().__init__(f"Step '{step_id}' does not exist in mode '{mode}'", mode, step_id)


class StepHiddenError(StepError):
    """Raised when a step exists but is filtered out by the current context."""

    def __init__(self, mode: str, step_id: str):
        super().__init__(
            f"Step '{step_id}' is not available in mode '{mode}' with the current settings",
            mode,
            step_id,
        )


class StepNotReachableError(StepError):
    """Raised when navigation targets a step that has not been unlocked yet."""

    def __init__(self, mode: str, step_id: str, current_step: str, reason: Optional[str] = None):
        self.current_step = current_step
        message = reason or (
            f"Cannot move to step '{step_id}' from '{current_step}': "
            "complete the current step first"
        )
        super().__init__(message, mode, step_id)


class TerminalStepLockedError(StepError):
    """Raised for any navigation after the terminal step was entered."""

    def __init__(self, mode: str, step_id: str, terminal_step: str):
        self.terminal_step = terminal_step
        super().__init__(
            f"Navigation is locked: '{terminal_step}' has been reached in mode '{mode}'",
            mode,
            step_id,
        )


# ----------------------------------------------------------------------
# Scheduling


class ScheduleInputError(StudioflowError, ValueError):
    """Raised when scheduling parameters are malformed."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class FeasibilityError(StudioflowError):
    """Raised when a batch does not fit into its schedule window."""

    def __init__(self, n: int, days: int, max_per_day: int):
        self.n = n
        self.days = days
        self.max_per_day = max_per_day
        self.capacity = days * max_per_day
        self.shortfall = n - self.capacity
        super().__init__(
            f"Cannot fit {n} items in {days} days with max {max_per_day}/day; "
            f"maximum capacity is {self.capacity}"
        )


class ItemNotFoundError(StudioflowError, IndexError):
    """Raised when a campaign item index is out of range."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Campaign item {index} does not exist (batch has {size} items)")


class ItemTransitionError(StudioflowError):
    """Raised when a campaign item status change is not allowed."""

    def __init__(self, index: int, current: str, target: str):
        self.index = index
        self.current = current
        self.target = target
        super().__init__(f"Item {index} cannot move from '{current}' to '{target}'")


class CampaignStateError(StudioflowError):
    """Raised when a campaign cannot start generating in its current state."""

    def __init__(self, batch_id: str, reason: str):
        self.batch_id = batch_id
        super().__init__(f"Campaign {batch_id}: {reason}")


# ----------------------------------------------------------------------
# Persistence


class PersistenceError(StudioflowError):
    """Raised when loading from or saving to storage fails."""

    def __init__(self, message: str, item_id: Optional[str] = None):
        self.item_id = item_id
        super().__init__(message)


class NotFoundError(PersistenceError):
    """Raised when no stored record exists for an id."""

    def __init__(self, item_id: str):
        super().__init__(f"No record found for '{item_id}'", item_id=item_id)


__all__ = [
    "StudioflowError",
    "StepError",
    "UnknownModeError",
    "StepNotFoundError",
    "StepHiddenError",
    "StepNotReachableError",
    "TerminalStepLockedError",
    "ScheduleInputError",
    "FeasibilityError",
    "ItemNotFoundError",
    "ItemTransitionError",
    "CampaignStateError",
    "PersistenceError",
    "NotFoundError",
]
