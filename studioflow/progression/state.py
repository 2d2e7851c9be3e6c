"""Progression state of a single content item."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..steps.models import mode_key


class StepStatus(str, Enum):
    COMPLETED = "completed"
    ACTIVE = "active"
    UPCOMING = "upcoming"


class ProgressionState(BaseModel):
    """Cursor, completed steps, per-step payloads and dirty flags.

    ``completed_steps`` and ``dirty_steps`` are kept as ordered lists without
    duplicates so they serialise deterministically; membership is what
    matters.
    """

    mode: str
    current_step: str
    completed_steps: List[str] = Field(default_factory=list)
    step_payload: Dict[str, Any] = Field(default_factory=dict)
    dirty_steps: List[str] = Field(default_factory=list)
    locked: bool = False

    @field_validator("mode", mode="before")
    @classmethod
    def _normalise_mode(cls, value: Any) -> str:
        return mode_key(value)

    @field_validator("completed_steps", "dirty_steps")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    def is_completed(self, step_id: str) -> bool:
        return step_id in self.completed_steps

    def is_dirty(self, step_id: str) -> bool:
        return step_id in self.dirty_steps

    def payload_for(self, step_id: str) -> Optional[Any]:
        return self.step_payload.get(step_id)

    def snapshot(self) -> "ProgressionState":
        """Deep copy used to roll back a tentative transition."""
        return self.model_copy(deep=True)

    def restore(self, snapshot: "ProgressionState") -> None:
        """Overwrite every field in place with the values of ``snapshot``."""
        for name in type(self).model_fields:
            setattr(self, name, copy.deepcopy(getattr(snapshot, name)))
