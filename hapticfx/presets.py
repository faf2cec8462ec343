"""Preset effect kinds and their default haptic profiles.

Each preset carries a documented default waveform (milliseconds, intensity):

* ``UIHover`` - subtle 40 ms bump peaking at 0.25.
* ``UIClick`` - crisp 45 ms plateau at 0.8, cut to 0.
* ``UINotification`` - attention double pulse at 0.6 over 240 ms.
* ``GameplayExplosion`` - large rumble decaying from 1.0 to 0 over 1 s.
* ``GameplayCollision`` - sharp hit at 1.0 on t=0, gone after 150 ms.

Adding a preset means adding one ``EffectKind`` member and one entry in
``_PRESET_PROFILES``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from hapticfx.exceptions import InvalidArgumentError
from hapticfx.waveform import Keys, WaveformKey

Position = Tuple[float, float, float]

ORIGIN: Position = (0.0, 0.0, 0.0)


class EffectKind(Enum):
    CUSTOM = "Custom"
    UI_HOVER = "UIHover"
    UI_CLICK = "UIClick"
    UI_NOTIFICATION = "UINotification"
    GAMEPLAY_EXPLOSION = "GameplayExplosion"
    GAMEPLAY_COLLISION = "GameplayCollision"

    @classmethod
    def parse(cls, value: Any) -> "EffectKind":
        """Resolve *value* by member, value (any case), or snake_case name."""

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for kind in cls:
                if lowered in (kind.value.lower(), kind.name.lower()):
                    return kind
        raise InvalidArgumentError(
            f"unknown effect type {value!r}; expected one of {', '.join(kind.value for kind in cls)}"
        )


@dataclass(frozen=True)
class PresetProfile:
    """Default waveform, position, and radius for one preset kind."""

    keys: Keys
    position: Position
    radius: float
    description: str


def _keys(*points: Tuple[float, float]) -> Keys:
    return tuple(WaveformKey(float(time), float(intensity)) for time, intensity in points)


_CENTER: Position = (0.5, 0.5, 0.5)

_PRESET_PROFILES: Dict[EffectKind, PresetProfile] = {
    EffectKind.UI_HOVER: PresetProfile(
        keys=_keys((0, 0.0), (10, 0.25), (40, 0.0)),
        position=_CENTER,
        radius=0.2,
        description="Brief, subtle bump for pointer hover.",
    ),
    EffectKind.UI_CLICK: PresetProfile(
        keys=_keys((0, 0.8), (25, 0.8), (45, 0.0)),
        position=_CENTER,
        radius=0.3,
        description="Crisp, short tick for button presses.",
    ),
    EffectKind.UI_NOTIFICATION: PresetProfile(
        keys=_keys((0, 0.0), (40, 0.6), (100, 0.0), (140, 0.6), (240, 0.0)),
        position=_CENTER,
        radius=0.5,
        description="Two-beat attention pattern for notifications.",
    ),
    EffectKind.GAMEPLAY_EXPLOSION: PresetProfile(
        keys=_keys((0, 1.0), (150, 0.7), (500, 0.3), (1000, 0.0)),
        position=_CENTER,
        radius=1.0,
        description="Large rumble that decays to nothing over one second.",
    ),
    EffectKind.GAMEPLAY_COLLISION: PresetProfile(
        keys=_keys((0, 1.0), (60, 0.4), (150, 0.0)),
        position=_CENTER,
        radius=0.6,
        description="Sharp, immediate rumble for impacts.",
    ),
}


def preset_profile(kind: EffectKind) -> PresetProfile:
    """Return the default profile for preset *kind*."""

    if kind is EffectKind.CUSTOM:
        raise InvalidArgumentError("Custom effects have no preset profile; keys are required")
    return _PRESET_PROFILES[kind]


def preset_kinds() -> List[EffectKind]:
    return [kind for kind in EffectKind if kind is not EffectKind.CUSTOM]


__all__ = ["ORIGIN", "EffectKind", "Position", "PresetProfile", "preset_kinds", "preset_profile"]
