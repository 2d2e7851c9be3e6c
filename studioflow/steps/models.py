"""Pydantic models describing wizard steps."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict

StepContext = Mapping[str, Any]
VisibilityPredicate = Callable[[StepContext], bool]


class Mode(str, Enum):
    """Content-creation pipelines that ship with a step definition."""

    AMBIENT = "ambient"
    NARRATIVE = "narrative"
    CHARACTER_VLOG = "character_vlog"
    SOCIAL_COMMERCE = "social_commerce"
    LOGO_ANIMATION = "logo_animation"
    STORY = "story"
    # campaign creation wizards
    AUTO_VIDEO = "auto_video"
    AUTO_STORY = "auto_story"


class StepDefinition(BaseModel):
    """Defines one step of a mode's wizard."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str = ""
    visible_when: Optional[VisibilityPredicate] = None
    requires_completion_of_previous: bool = True

    def is_visible(self, context: StepContext) -> bool:
        if self.visible_when is None:
            return True
        return bool(self.visible_when(context))


def mode_key(mode: Mode | str) -> str:
    """Normalise a mode enum or plain string to its registry key."""
    return mode.value if isinstance(mode, Enum) else str(mode)


def flag_enabled(name: str) -> VisibilityPredicate:
    """Predicate that is true when ``context[name]`` is truthy.

    A missing flag counts as disabled.
    """

    def predicate(context: StepContext) -> bool:
        return bool(context.get(name, False))

    predicate.__name__ = f"flag_enabled_{name}"
    return predicate


def value_not_in(name: str, values: Iterable[Any]) -> VisibilityPredicate:
    """Predicate that hides a step when ``context[name]`` is one of ``values``."""

    excluded = frozenset(values)

    def predicate(context: StepContext) -> bool:
        return context.get(name) not in excluded

    predicate.__name__ = f"value_not_in_{name}"
    return predicate
