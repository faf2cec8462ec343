"""Error taxonomy shared by the haptic effect layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class HapticError(RuntimeError):
    """Base error raised by hapticfx."""


class InvalidArgumentError(HapticError, ValueError):
    """Raised when a config, key list, or numeric range is malformed."""

    def __init__(self, message: str, *, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class AlreadyPlayingError(HapticError):
    """Raised when ``play`` is called on a handle that is already playing."""


class HandleDestroyedError(HapticError):
    """Raised when a destroyed playback handle is used again."""


class UnsupportedDeviceError(HapticError):
    """Raised by a host primitive that cannot honour a request.

    The playback layer never propagates this error; it logs it and continues
    with degraded fidelity.
    """


__all__ = [
    "AlreadyPlayingError",
    "HandleDestroyedError",
    "HapticError",
    "InvalidArgumentError",
    "UnsupportedDeviceError",
]
