"""Host haptic primitive interface and an in-process simulation."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from hapticfx.presets import EffectKind, Position
from hapticfx.waveform import WaveformKey

EndedCallback = Callable[[], None]


@runtime_checkable
class HapticPrimitive(Protocol):
    """Narrow view of the host engine's native haptic effect object.

    Implementations may raise :class:`hapticfx.exceptions.UnsupportedDeviceError`
    from any method; the playback layer treats it as degraded fidelity.
    """

    def play(self) -> None: ...

    def stop(self) -> None: ...

    def set_waveform_keys(self, keys: Sequence[WaveformKey]) -> None: ...

    def on_ended(self, callback: EndedCallback) -> None:
        """Register *callback* for natural completion (never for looped effects)."""

    def destroy(self) -> None: ...


class PrimitiveConstructor(Protocol):
    def __call__(
        self,
        kind: EffectKind,
        looped: bool,
        position: Position,
        radius: float,
        *,
        parent: Any = None,
    ) -> HapticPrimitive: ...


class SimulatedPrimitive:
    """Primitive that plays keys on the running event loop.

    A non-looped effect signals completion once its last key time has elapsed
    (scaled by ``time_scale``). With ``auto_complete=False`` completion only
    happens through :meth:`finish`, which lets tests drive the timeline.
    """

    def __init__(
        self,
        kind: EffectKind,
        looped: bool,
        position: Position,
        radius: float,
        *,
        parent: Any = None,
        time_scale: float = 1.0,
        auto_complete: bool = True,
    ) -> None:
        self.kind = kind
        self.looped = looped
        self.position = position
        self.radius = radius
        self.parent = parent
        self.time_scale = time_scale
        self.auto_complete = auto_complete
        self.keys: Tuple[WaveformKey, ...] = ()
        self.history: List[str] = []
        self.playing = False
        self.destroyed = False
        self._callbacks: List[EndedCallback] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    def set_waveform_keys(self, keys: Sequence[WaveformKey]) -> None:
        self.keys = tuple(keys)
        self.history.append("set_waveform_keys")

    def on_ended(self, callback: EndedCallback) -> None:
        self._callbacks.append(callback)

    def play(self) -> None:
        self.history.append("play")
        self.playing = True
        self._cancel_timer()
        if self.looped or not self.auto_complete:
            return
        duration_s = (self.keys[-1].time if self.keys else 0.0) / 1000.0 * self.time_scale
        self._timer = asyncio.get_running_loop().call_later(duration_s, self.finish)

    def stop(self) -> None:
        self.history.append("stop")
        self.playing = False
        self._cancel_timer()

    def finish(self) -> None:
        """Complete playback and notify listeners, as the host would."""

        self._timer = None
        if not self.playing or self.looped:
            return
        self.playing = False
        self.history.append("ended")
        for callback in list(self._callbacks):
            callback()

    def destroy(self) -> None:
        self.history.append("destroy")
        self._cancel_timer()
        self.playing = False
        self.destroyed = True
        self._callbacks.clear()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def simulated_constructor(*, time_scale: float = 1.0, auto_complete: bool = True) -> PrimitiveConstructor:
    """Return a constructor producing :class:`SimulatedPrimitive` objects."""

    def _construct(
        kind: EffectKind,
        looped: bool,
        position: Position,
        radius: float,
        *,
        parent: Any = None,
    ) -> SimulatedPrimitive:
        return SimulatedPrimitive(
            kind,
            looped,
            position,
            radius,
            parent=parent,
            time_scale=time_scale,
            auto_complete=auto_complete,
        )

    return _construct


__all__ = [
    "EndedCallback",
    "HapticPrimitive",
    "PrimitiveConstructor",
    "SimulatedPrimitive",
    "simulated_constructor",
]
