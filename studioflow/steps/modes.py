"""Built-in step sequences for every content-creation mode."""

from __future__ import annotations

from typing import Dict, List

from .models import Mode, StepDefinition, flag_enabled, value_not_in
from .table import StepTable

VOICEOVER_FLAG = "voiceover_enabled"
TEMPLATE_KEY = "template"

# Story templates that produce their own soundtrack and skip the audio step.
TEMPLATES_WITHOUT_AUDIO = ("auto-asmr",)


def _voiceover() -> StepDefinition:
    return StepDefinition(
        id="voiceover", label="Voiceover", visible_when=flag_enabled(VOICEOVER_FLAG)
    )


BUILTIN_MODES: Dict[Mode, List[StepDefinition]] = {
    Mode.AMBIENT: [
        StepDefinition(id="script", label="Atmosphere"),
        StepDefinition(id="world", label="Visual World"),
        StepDefinition(id="storyboard", label="Composition"),
        _voiceover(),
        StepDefinition(id="animatic", label="Preview"),
        StepDefinition(id="export", label="Export"),
    ],
    Mode.NARRATIVE: [
        StepDefinition(id="script", label="Script"),
        StepDefinition(id="breakdown", label="Breakdown"),
        StepDefinition(id="world", label="World & Cast"),
        StepDefinition(id="storyboard", label="Storyboard"),
        _voiceover(),
        StepDefinition(id="animatic", label="Animatic"),
        StepDefinition(id="export", label="Export"),
    ],
    Mode.CHARACTER_VLOG: [
        StepDefinition(id="script", label="Script"),
        StepDefinition(id="world", label="Character & World"),
        StepDefinition(id="breakdown", label="Breakdown"),
        StepDefinition(id="storyboard", label="Storyboard"),
        StepDefinition(id="animatic", label="Animatic"),
        StepDefinition(id="export", label="Export"),
    ],
    Mode.SOCIAL_COMMERCE: [
        StepDefinition(id="setup", label="Product Setup"),
        StepDefinition(id="script", label="Script"),
        StepDefinition(id="environment", label="Environment"),
        StepDefinition(id="world", label="World & Cast"),
        StepDefinition(id="storyboard", label="Storyboard"),
        _voiceover(),
        StepDefinition(id="animatic", label="Animatic"),
        StepDefinition(id="export", label="Export"),
    ],
    Mode.LOGO_ANIMATION: [
        StepDefinition(id="script", label="Logo Script"),
        StepDefinition(id="world", label="World Settings"),
        StepDefinition(id="breakdown", label="Breakdown"),
        StepDefinition(id="storyboard", label="Storyboard"),
        StepDefinition(id="animatic", label="Animatic"),
        StepDefinition(id="export", label="Export"),
    ],
    Mode.STORY: [
        StepDefinition(id="concept", label="Concept & Script"),
        StepDefinition(id="script", label="Script Review"),
        StepDefinition(id="storyboard", label="Storyboard"),
        StepDefinition(
            id="audio",
            label="Audio",
            visible_when=value_not_in(TEMPLATE_KEY, TEMPLATES_WITHOUT_AUDIO),
        ),
        StepDefinition(id="export", label="Preview & Export"),
    ],
    Mode.AUTO_VIDEO: [
        StepDefinition(id="mode", label="Mode"),
        StepDefinition(id="content", label="Content Setup"),
        StepDefinition(id="style", label="Style"),
        StepDefinition(id="soundscape", label="Soundscape"),
        StepDefinition(id="schedule", label="Schedule & Publish"),
    ],
    Mode.AUTO_STORY: [
        StepDefinition(id="template", label="Template"),
        StepDefinition(id="content", label="Content Setup"),
        StepDefinition(id="style", label="Style"),
        StepDefinition(id="scheduling", label="Scheduling"),
        StepDefinition(id="publishing", label="Publishing"),
    ],
}


def build_default_table() -> StepTable:
    """Return a fresh table populated with every built-in mode."""
    table = StepTable()
    for mode, steps in BUILTIN_MODES.items():
        table.register(mode, steps)
    return table
