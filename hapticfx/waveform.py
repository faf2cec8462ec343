"""Waveform keyframe construction and normalisation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from hapticfx.exceptions import InvalidArgumentError

PATTERNS: Tuple[str, ...] = ("rampUp", "rampDown", "pulse", "constant")

_PATTERN_ALIASES: Dict[str, str] = {name.lower(): name for name in PATTERNS}
_PATTERN_ALIASES.update({"ramp_up": "rampUp", "ramp_down": "rampDown"})


@dataclass(frozen=True)
class WaveformKey:
    """A single (time, intensity) control point; time in milliseconds."""

    time: float
    intensity: float

    def to_dict(self) -> Dict[str, float]:
        return {"time": self.time, "intensity": self.intensity}


Keys = Tuple[WaveformKey, ...]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_pattern(pattern: str) -> str:
    """Return the canonical pattern name for *pattern*."""

    if not isinstance(pattern, str):
        raise InvalidArgumentError("pattern must be a string")
    canonical = _PATTERN_ALIASES.get(pattern.strip().lower())
    if canonical is None:
        raise InvalidArgumentError(
            f"unknown waveform pattern {pattern!r}; expected one of {', '.join(PATTERNS)}"
        )
    return canonical


def build_pattern(pattern: str, duration_ms: float, peak_intensity: float) -> Keys:
    """Return the keyframes of a named *pattern*.

    ``rampUp`` rises from 0 to the peak, ``rampDown`` falls from the peak to 0,
    ``pulse`` is a symmetric attack-release-attack with its trough at the
    midpoint, and ``constant`` holds the peak for the whole duration.
    """

    name = resolve_pattern(pattern)
    if not _is_number(duration_ms) or not math.isfinite(duration_ms) or duration_ms <= 0:
        raise InvalidArgumentError(f"duration_ms must be a positive number, got {duration_ms!r}")
    if not _is_number(peak_intensity) or not 0.0 <= peak_intensity <= 1.0:
        raise InvalidArgumentError(f"peak_intensity must be within [0, 1], got {peak_intensity!r}")

    duration = float(duration_ms)
    peak = float(peak_intensity)
    if name == "rampUp":
        points = [(0.0, 0.0), (duration, peak)]
    elif name == "rampDown":
        points = [(0.0, peak), (duration, 0.0)]
    elif name == "pulse":
        points = [(0.0, peak), (duration / 2.0, 0.0), (duration, peak)]
    else:
        points = [(0.0, peak), (duration, peak)]
    return tuple(WaveformKey(time, intensity) for time, intensity in points)


def coerce_key(value: Any, *, index: int = 0) -> WaveformKey:
    """Convert a mapping, pair, or :class:`WaveformKey` into a key."""

    if isinstance(value, WaveformKey):
        time, intensity = value.time, value.intensity
    elif isinstance(value, Mapping):
        if "time" not in value or "intensity" not in value:
            raise InvalidArgumentError(f"key {index} must define 'time' and 'intensity'")
        time, intensity = value["time"], value["intensity"]
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
        time, intensity = value[0], value[1]
    else:
        raise InvalidArgumentError(f"key {index} must be a WaveformKey, mapping, or (time, intensity) pair")

    if not _is_number(time) or not math.isfinite(time):
        raise InvalidArgumentError(f"key {index} time must be a finite number, got {time!r}")
    if time < 0:
        raise InvalidArgumentError(f"key {index} time must be non-negative, got {time!r}")
    if not _is_number(intensity) or not 0.0 <= intensity <= 1.0:
        raise InvalidArgumentError(f"key {index} intensity must be within [0, 1], got {intensity!r}")
    return WaveformKey(float(time), float(intensity))


def validate_keys(keys: Iterable[Any], *, minimum: int = 2) -> Keys:
    """Normalise *keys* into a sorted, de-duplicated tuple.

    Keys sharing an exact timestamp collapse to the last one supplied.

    Raises:
        InvalidArgumentError: If fewer than *minimum* distinct keys remain, or
            any key has a negative time or an intensity outside ``[0, 1]``.
    """

    if keys is None or isinstance(keys, (str, bytes, Mapping)):
        raise InvalidArgumentError("keys must be a sequence of waveform keys")

    by_time: Dict[float, WaveformKey] = {}
    for index, raw in enumerate(keys):
        key = coerce_key(raw, index=index)
        by_time.pop(key.time, None)
        by_time[key.time] = key

    ordered = tuple(sorted(by_time.values(), key=lambda key: key.time))
    if len(ordered) < minimum:
        raise InvalidArgumentError(
            f"waveform requires at least {minimum} keys with distinct times, got {len(ordered)}"
        )
    return ordered


def scale_keys(keys: Iterable[WaveformKey], factor: float) -> Keys:
    """Return *keys* with every intensity multiplied by *factor*."""

    if not _is_number(factor) or not 0.0 <= factor <= 1.0:
        raise InvalidArgumentError(f"scale factor must be within [0, 1], got {factor!r}")
    return tuple(WaveformKey(key.time, key.intensity * factor) for key in keys)


def keys_to_dicts(keys: Iterable[WaveformKey]) -> List[Dict[str, float]]:
    return [key.to_dict() for key in keys]


__all__ = [
    "Keys",
    "PATTERNS",
    "WaveformKey",
    "build_pattern",
    "coerce_key",
    "keys_to_dicts",
    "resolve_pattern",
    "scale_keys",
    "validate_keys",
]
