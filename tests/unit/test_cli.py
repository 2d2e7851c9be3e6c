import asyncio
from datetime import date

from typer.testing import CliRunner

import studioflow.persistence as persistence
from studioflow.cli import app
from studioflow.persistence import CampaignStore, InMemoryStorage, ProgressionStore
from studioflow.scheduling import create_batch

runner = CliRunner()


def _setup_storage() -> InMemoryStorage:
    storage = InMemoryStorage()
    persistence._storage_instance = storage
    return storage


def test_steps_list_respects_flags():
    result = runner.invoke(app, ["steps", "list", "ambient", "--flag", "voiceover_enabled=true"])
    assert result.exit_code == 0
    assert "4. voiceover" in result.stdout

    result = runner.invoke(app, ["steps", "list", "ambient"])
    assert result.exit_code == 0
    assert "voiceover" not in result.stdout
    assert "5. export" in result.stdout


def test_steps_list_unknown_mode():
    result = runner.invoke(app, ["steps", "list", "documentary"])
    assert result.exit_code == 1
    assert "documentary" in result.stdout


def test_schedule_check_reports_shortfall():
    result = runner.invoke(app, ["schedule", "check", "12", "2024-01-01", "2024-01-05", "2"])
    assert result.exit_code == 1
    assert "maximum capacity is 10" in result.stdout
    assert "short by 2" in result.stdout

    result = runner.invoke(app, ["schedule", "check", "10", "2024-01-01", "2024-01-05", "2"])
    assert result.exit_code == 0
    assert "Feasible: 10 items in 5 days" in result.stdout


def test_schedule_plan_prints_dates():
    result = runner.invoke(
        app, ["schedule", "plan", "2024-01-01", "2024-01-02", "2", "rain", "forest", "ocean"]
    )
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines == [
        "0\t2024-01-01\train",
        "1\t2024-01-01\tforest",
        "2\t2024-01-02\tocean",
    ]


def test_schedule_plan_rejects_reversed_window():
    result = runner.invoke(app, ["schedule", "plan", "2024-01-05", "2024-01-01", "1", "rain"])
    assert result.exit_code == 1


def test_progress_show():
    storage = _setup_storage()
    item_id, _ = asyncio.run(ProgressionStore(storage).create("story"))

    result = runner.invoke(app, ["progress", "show", item_id])
    assert result.exit_code == 0
    assert "Current step: concept" in result.stdout

    result = runner.invoke(app, ["progress", "show", "missing"])
    assert result.exit_code == 1
    assert "Progression not found" in result.stdout


def test_campaign_commands():
    storage = _setup_storage()
    result = runner.invoke(app, ["campaign", "list"])
    assert result.exit_code == 0
    assert "No campaigns found" in result.stdout

    batch = create_batch(["rain", "forest"], date(2024, 1, 1), date(2024, 1, 2), 1, name="Calm")
    batch_id = asyncio.run(CampaignStore(storage).create(batch))

    result = runner.invoke(app, ["campaign", "list"])
    assert result.exit_code == 0
    assert f"{batch_id}\tdraft\t0/2\tCalm" in result.stdout

    result = runner.invoke(app, ["campaign", "show", batch_id])
    assert result.exit_code == 0
    assert "- 1: pending 2024-01-02 forest" in result.stdout

    result = runner.invoke(app, ["campaign", "show", "missing"])
    assert result.exit_code == 1
    assert "Campaign not found" in result.stdout
