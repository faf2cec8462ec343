"""Playback lifecycle for haptic effect descriptors.

A :class:`PlaybackHandle` pairs one descriptor with the host primitive created
for it. Handles move through ``Idle -> Playing -> {Ended, Stopped}``; a fresh
``play`` re-arms a stopped or ended handle, while ``Destroyed`` is final.

Contract notes:

* ``play`` on a handle that is already playing raises
  :class:`AlreadyPlayingError`.
* ``stop`` is a no-op unless the handle is playing.
* ``destroy`` is idempotent. Any other operation on a destroyed handle raises
  :class:`HandleDestroyedError`.
* ``await_end`` resolves on natural completion, ``stop`` or ``destroy``. A
  looped effect never completes on its own, so awaiting one without an
  explicit stop leaves the wait pending forever.
* One-shot handles are destroyed automatically when they end or are stopped.
* :class:`UnsupportedDeviceError` from the primitive is logged, never raised.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from hapticfx.core import is_strict_mode_enabled
from hapticfx.exceptions import (
    AlreadyPlayingError,
    HandleDestroyedError,
    InvalidArgumentError,
    UnsupportedDeviceError,
)
from hapticfx.factory import EffectDescriptor
from hapticfx.logging import log_event
from hapticfx.presets import EffectKind
from hapticfx.primitive import HapticPrimitive, PrimitiveConstructor
from hapticfx.waveform import validate_keys


class PlaybackState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"
    ENDED = "ended"
    DESTROYED = "destroyed"


class PlaybackHandle:
    """Live pairing of a descriptor and the primitive playing it."""

    def __init__(self, descriptor: EffectDescriptor, *, parent: Any = None, one_shot: bool = False) -> None:
        self.handle_id = uuid.uuid4().hex
        self.descriptor = descriptor
        self.parent = parent
        self.one_shot = one_shot
        self.play_count = 0
        self._state = PlaybackState.IDLE
        self._primitive: Optional[HapticPrimitive] = None
        self._waiters: List[asyncio.Future] = []

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def degraded(self) -> bool:
        """True when no host primitive backs this handle."""
        return self._primitive is None

    def __repr__(self) -> str:
        return f"PlaybackHandle({self.descriptor.kind.value}, state={self._state.value}, id={self.handle_id[:8]})"


class PlaybackController:
    """Own host primitives and drive their playback lifecycle."""

    def __init__(self, constructor: PrimitiveConstructor, *, event_log: Optional[str] = None) -> None:
        self._constructor = constructor
        self.event_log = event_log
        self._live: Dict[str, PlaybackHandle] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def live_handles(self) -> Tuple[PlaybackHandle, ...]:
        """Handles created by this controller and not yet destroyed."""
        return tuple(self._live.values())

    def create(self, descriptor: EffectDescriptor, parent: Any = None) -> PlaybackHandle:
        """Construct the host primitive for *descriptor* and return an idle handle."""

        return self._create(descriptor, parent=parent, one_shot=False)

    def play(self, handle: PlaybackHandle) -> None:
        self._ensure_alive(handle)
        if handle.state is PlaybackState.PLAYING:
            raise AlreadyPlayingError(f"{handle!r} is already playing")

        handle._state = PlaybackState.PLAYING
        handle.play_count += 1
        self._event("play", handle)

        primitive = handle._primitive
        if primitive is None:
            self._finish(handle, PlaybackState.ENDED)
            return
        try:
            primitive.play()
        except UnsupportedDeviceError as exc:
            self._unsupported(handle, "play", exc)
            if handle.state is PlaybackState.PLAYING:
                self._finish(handle, PlaybackState.ENDED)

    def stop(self, handle: PlaybackHandle) -> None:
        self._ensure_alive(handle)
        if handle.state is not PlaybackState.PLAYING:
            return
        primitive = handle._primitive
        if primitive is not None:
            try:
                primitive.stop()
            except UnsupportedDeviceError as exc:
                self._unsupported(handle, "stop", exc)
        self._event("stop", handle)
        self._finish(handle, PlaybackState.STOPPED)

    def destroy(self, handle: PlaybackHandle) -> None:
        """Release the primitive of *handle*; calling it again does nothing."""

        if handle.state is PlaybackState.DESTROYED:
            return
        primitive = handle._primitive
        handle._primitive = None
        handle._state = PlaybackState.DESTROYED
        self._live.pop(handle.handle_id, None)
        if primitive is not None:
            try:
                primitive.destroy()
            except UnsupportedDeviceError as exc:
                self._unsupported(handle, "destroy", exc)
        self._resolve_waiters(handle, PlaybackState.DESTROYED)
        self._event("destroy", handle)

    async def await_end(self, handle: PlaybackHandle, timeout: Optional[float] = None) -> PlaybackState:
        """Wait until *handle* ends, is stopped, or is destroyed.

        Returns the state that released the wait. Already stopped or ended
        handles return immediately. Never resolves for a looped effect that
        is left playing; pass *timeout* (seconds) or cancel the awaiting task
        to bound it.
        """

        self._ensure_alive(handle)
        if handle.state in (PlaybackState.STOPPED, PlaybackState.ENDED):
            return handle.state

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        handle._waiters.append(future)
        try:
            if timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout)
        finally:
            if future in handle._waiters:
                handle._waiters.remove(future)

    def play_one_shot(self, descriptor: EffectDescriptor, parent: Any = None) -> PlaybackHandle:
        """Create and play *descriptor*, destroying the handle once it ends.

        Raises:
            InvalidArgumentError: If *descriptor* is looped.
        """

        if isinstance(descriptor, EffectDescriptor) and descriptor.looped:
            raise InvalidArgumentError("looped effects cannot be played as one-shots")
        handle = self._create(descriptor, parent=parent, one_shot=True)
        try:
            self.play(handle)
        except Exception:
            self.destroy(handle)
            raise
        return handle

    def _create(self, descriptor: EffectDescriptor, *, parent: Any, one_shot: bool) -> PlaybackHandle:
        if not isinstance(descriptor, EffectDescriptor):
            raise InvalidArgumentError("playback requires an EffectDescriptor")
        if descriptor.kind is EffectKind.CUSTOM:
            validate_keys(descriptor.keys)

        handle = PlaybackHandle(descriptor, parent=parent, one_shot=one_shot)
        try:
            primitive = self._constructor(
                descriptor.kind,
                descriptor.looped,
                descriptor.position,
                descriptor.radius,
                parent=parent,
            )
        except UnsupportedDeviceError as exc:
            self._unsupported(handle, "construct", exc)
            primitive = None

        if primitive is not None:
            handle._primitive = primitive
            try:
                primitive.set_waveform_keys(descriptor.keys)
            except UnsupportedDeviceError as exc:
                self._unsupported(handle, "set_waveform_keys", exc)
            try:
                primitive.on_ended(lambda: self._on_primitive_ended(handle))
            except UnsupportedDeviceError as exc:
                self._unsupported(handle, "on_ended", exc)

        self._live[handle.handle_id] = handle
        self._event("create", handle)
        return handle

    def _on_primitive_ended(self, handle: PlaybackHandle) -> None:
        if handle.state is not PlaybackState.PLAYING or handle.descriptor.looped:
            return
        self._event("ended", handle)
        self._finish(handle, PlaybackState.ENDED)

    def _finish(self, handle: PlaybackHandle, state: PlaybackState) -> None:
        handle._state = state
        self._resolve_waiters(handle, state)
        if handle.one_shot:
            self.destroy(handle)

    @staticmethod
    def _resolve_waiters(handle: PlaybackHandle, state: PlaybackState) -> None:
        waiters, handle._waiters = handle._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(state)

    @staticmethod
    def _ensure_alive(handle: PlaybackHandle) -> None:
        if handle.state is PlaybackState.DESTROYED:
            raise HandleDestroyedError(f"{handle!r} has been destroyed")

    def _unsupported(self, handle: PlaybackHandle, operation: str, exc: UnsupportedDeviceError) -> None:
        level = logging.WARNING if is_strict_mode_enabled() else logging.DEBUG
        self._logger.log(
            level,
            "Host primitive cannot %s %s effect; continuing degraded: %s",
            operation,
            handle.descriptor.kind.value,
            exc,
        )
        self._event("unsupported_device", handle, operation=operation, detail=str(exc))

    def _event(self, action: str, handle: PlaybackHandle, **extra: Any) -> None:
        self._logger.debug("%s %r", action, handle)
        record = {
            "event": f"playback.{action}",
            "handle_id": handle.handle_id,
            "type": handle.descriptor.kind.value,
            "looped": handle.descriptor.looped,
            "one_shot": handle.one_shot,
            "state": handle.state.value,
        }
        record.update(extra)
        log_event(record, path=self.event_log)


__all__ = ["PlaybackController", "PlaybackHandle", "PlaybackState"]
