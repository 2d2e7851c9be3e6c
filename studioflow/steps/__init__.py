"""Step definition table for wizard modes."""

from __future__ import annotations

from typing import List, Optional

from .models import (
    Mode,
    StepContext,
    StepDefinition,
    flag_enabled,
    mode_key,
    value_not_in,
)
from .modes import BUILTIN_MODES, VOICEOVER_FLAG, build_default_table
from .table import StepTable

# Shared table with the built-in modes. Callers that need custom modes can
# register them here or build their own ``StepTable``.
STEP_TABLE = build_default_table()


def get_visible_steps(
    mode: Mode | str,
    context: Optional[StepContext] = None,
    table: Optional[StepTable] = None,
) -> List[StepDefinition]:
    """Visible steps of ``mode`` under ``context`` using ``STEP_TABLE`` by default."""
    return (table or STEP_TABLE).get_visible_steps(mode, context)


def index_of(
    mode: Mode | str,
    step_id: str,
    context: Optional[StepContext] = None,
    table: Optional[StepTable] = None,
) -> int:
    """Index of ``step_id`` within the visible sequence of ``mode``."""
    return (table or STEP_TABLE).index_of(mode, step_id, context)


__all__ = [
    "BUILTIN_MODES",
    "Mode",
    "STEP_TABLE",
    "StepContext",
    "StepDefinition",
    "StepTable",
    "VOICEOVER_FLAG",
    "build_default_table",
    "flag_enabled",
    "get_visible_steps",
    "index_of",
    "mode_key",
    "value_not_in",
]
