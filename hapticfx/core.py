"""Environment driven configuration for hapticfx."""

from __future__ import annotations

import os
from typing import Optional, Tuple

_STRICT_ENV = "HAPTICS_STRICT"
_EVENT_LOG_ENV = "HAPTICS_EVENT_LOG"
_PLANE_ENV = "HAPTICS_PLANE"
_LOG_LEVEL_ENV = "HAPTICS_LOG_LEVEL"

_FALSE_VALUES = {"0", "false", "no", "off"}
_AXES = ("x", "y", "z")
DEFAULT_PLANE: Tuple[str, str] = ("x", "z")


def is_strict_mode_enabled() -> bool:
    """Return True unless HAPTICS_STRICT explicitly disables strict mode."""

    raw = os.getenv(_STRICT_ENV)
    if raw is None:
        return True
    return raw.strip().lower() not in _FALSE_VALUES


def resolve_event_log_path(path: Optional[str] = None) -> Optional[str]:
    """Return the JSONL event stream path, or ``None`` when disabled."""

    if path:
        return path
    raw = os.getenv(_EVENT_LOG_ENV, "").strip()
    return raw or None


def resolve_log_level(default: str = "INFO") -> str:
    return os.getenv(_LOG_LEVEL_ENV, default).strip().upper() or default


def parse_plane(value: Optional[str]) -> Tuple[str, str] | str:
    """Parse a plane setting such as ``"xz"`` or ``"auto"``.

    Raises:
        ValueError: If *value* does not name two distinct axes.
    """

    if value is None:
        return DEFAULT_PLANE
    lowered = value.strip().lower().replace(",", "").replace(" ", "")
    if not lowered:
        return DEFAULT_PLANE
    if lowered == "auto":
        return "auto"
    if len(lowered) != 2 or any(axis not in _AXES for axis in lowered) or lowered[0] == lowered[1]:
        raise ValueError(f"plane must name two distinct axes of x/y/z or 'auto', got {value!r}")
    return lowered[0], lowered[1]


def resolve_plane() -> Tuple[str, str] | str:
    """Return the default directional plane from HAPTICS_PLANE."""

    return parse_plane(os.getenv(_PLANE_ENV))


__all__ = [
    "DEFAULT_PLANE",
    "is_strict_mode_enabled",
    "parse_plane",
    "resolve_event_log_path",
    "resolve_log_level",
    "resolve_plane",
]
