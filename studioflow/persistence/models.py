"""Mapping between engine state and storage record fields."""

from __future__ import annotations

import re
from typing import Any, Dict

from ..constants import CAMPAIGN_KIND, PROGRESSION_KIND
from ..progression import ProgressionState
from ..scheduling import CampaignBatch
from ..steps import StepTable

STEP_DATA_KEY = re.compile(r"^step(\d+)Data$")


def step_data_key(position: int) -> str:
    return f"step{position}Data"


def progression_to_fields(state: ProgressionState, table: StepTable) -> Dict[str, Any]:
    """Flatten a ``ProgressionState`` into the storage field layout.

    ``currentStep`` and ``completedSteps`` always travel in the same dict so
    one ``update`` call writes them together. Steps without a payload are
    stored as ``None``.
    """
    fields: Dict[str, Any] = {
        "kind": PROGRESSION_KIND,
        "mode": state.mode,
        "currentStep": table.position_of(state.mode, state.current_step),
        "currentStepId": state.current_step,
        "completedSteps": list(state.completed_steps),
        "dirtySteps": list(state.dirty_steps),
        "locked": state.locked,
    }
    # every step slot is written, so an update also clears payloads that were removed
    for position, step in enumerate(table.definition(state.mode), start=1):
        fields[step_data_key(position)] = state.step_payload.get(step.id)
    return fields


def progression_from_fields(fields: Dict[str, Any], table: StepTable) -> ProgressionState:
    """Rebuild a ``ProgressionState`` from stored fields."""
    mode = fields["mode"]
    current = fields.get("currentStepId")
    if current is None:
        current = table.step_at_position(mode, int(fields["currentStep"])).id

    payload: Dict[str, Any] = {}
    for key, value in fields.items():
        match = STEP_DATA_KEY.match(key)
        if match and value is not None:
            payload[table.step_at_position(mode, int(match.group(1))).id] = value

    return ProgressionState(
        mode=mode,
        current_step=current,
        completed_steps=fields.get("completedSteps") or [],
        dirty_steps=fields.get("dirtySteps") or [],
        step_payload=payload,
        locked=bool(fields.get("locked", False)),
    )


def campaign_to_fields(batch: CampaignBatch) -> Dict[str, Any]:
    data = batch.model_dump(mode="json")
    return {
        "kind": CAMPAIGN_KIND,
        "name": data["name"],
        "mode": data["mode"],
        "status": data["status"],
        "items": data["items"],
        "itemSchedules": data["schedule"],
        "scheduleStartDate": data["date_range"]["start"],
        "scheduleEndDate": data["date_range"]["end"],
        "maxItemsPerDay": data["max_per_day"],
    }


def campaign_from_fields(fields: Dict[str, Any]) -> CampaignBatch:
    return CampaignBatch.model_validate(
        {
            "name": fields.get("name", ""),
            "mode": fields.get("mode"),
            "status": fields.get("status", "draft"),
            "items": fields.get("items") or [],
            "schedule": fields.get("itemSchedules") or {},
            "date_range": {
                "start": fields["scheduleStartDate"],
                "end": fields["scheduleEndDate"],
            },
            "max_per_day": fields["maxItemsPerDay"],
        }
    )
