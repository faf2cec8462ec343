"""Shared fixtures: recording host primitives and a virtual clock."""

from __future__ import annotations

import asyncio
import pathlib
import sys
from typing import Any, Callable, List, Optional, Set

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from hapticfx.exceptions import UnsupportedDeviceError
from hapticfx.service import HapticService


class FakePrimitive:
    """Host primitive double that records calls and fires ``ended`` on demand."""

    def __init__(self, kind, looped, position, radius, *, parent=None, fail_on: Optional[Set[str]] = None) -> None:
        self.kind = kind
        self.looped = looped
        self.position = position
        self.radius = radius
        self.parent = parent
        self.keys: tuple = ()
        self.calls: List[str] = []
        self.destroyed = False
        self._fail_on = fail_on or set()
        self._callbacks: List[Callable[[], None]] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self._fail_on:
            raise UnsupportedDeviceError(f"{name} not supported")

    def set_waveform_keys(self, keys) -> None:
        self._record("set_waveform_keys")
        self.keys = tuple(keys)

    def on_ended(self, callback) -> None:
        self._callbacks.append(callback)

    def play(self) -> None:
        self._record("play")

    def stop(self) -> None:
        self._record("stop")

    def destroy(self) -> None:
        self.destroyed = True
        self._record("destroy")

    def fire_ended(self) -> None:
        for callback in list(self._callbacks):
            callback()


class PrimitiveRecorder:
    """Primitive constructor that keeps every primitive it builds."""

    def __init__(self, *, clock: Optional["VirtualClock"] = None) -> None:
        self.instances: List[FakePrimitive] = []
        self.created_at: List[float] = []
        self.fail_on: Set[str] = set()
        self.unsupported = False
        self._clock = clock

    def __call__(self, kind, looped, position, radius, *, parent: Any = None) -> FakePrimitive:
        if self.unsupported:
            raise UnsupportedDeviceError("no haptic motor")
        primitive = FakePrimitive(kind, looped, position, radius, parent=parent, fail_on=set(self.fail_on))
        self.instances.append(primitive)
        if self._clock is not None:
            self.created_at.append(self._clock.now)
        return primitive

    @property
    def last(self) -> FakePrimitive:
        return self.instances[-1]


class VirtualClock:
    """Sleep replacement that advances virtual time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture()
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture()
def recorder(clock: VirtualClock) -> PrimitiveRecorder:
    return PrimitiveRecorder(clock=clock)


@pytest.fixture()
def service(recorder: PrimitiveRecorder, clock: VirtualClock) -> HapticService:
    return HapticService(recorder, sleep=clock.sleep, plane="xz")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch) -> None:
    """Keep host HAPTICS_* settings out of the suite."""

    for name in ("HAPTICS_EVENT_LOG", "HAPTICS_PLANE", "HAPTICS_STRICT", "HAPTICS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
