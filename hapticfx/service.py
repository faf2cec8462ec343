"""Caller-facing service bundling the factory, controller, and sequencer."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from hapticfx.exceptions import InvalidArgumentError
from hapticfx.factory import EffectConfig, EffectDescriptor, EffectFactory
from hapticfx.interpolation import evaluate
from hapticfx.playback import PlaybackController, PlaybackHandle, PlaybackState
from hapticfx.presets import EffectKind
from hapticfx.primitive import PrimitiveConstructor
from hapticfx.sequencer import SequenceRun, Sequencer, SleepFn
from hapticfx.waveform import Keys, WaveformKey, build_pattern


class HapticService:
    """Single entry point for building and playing haptic effects.

    Build one instance per host engine and pass it to whatever needs haptics.

    Parameters
    ----------
    constructor:
        Callable building the host primitive from ``(kind, looped, position,
        radius, parent=...)``.
    plane:
        Directional plane such as ``"xz"`` or ``"auto"``; defaults to
        ``HAPTICS_PLANE``.
    sleep:
        Coroutine used for sequence delays, in seconds.
    event_log:
        JSONL event stream path; defaults to ``HAPTICS_EVENT_LOG``.
    """

    def __init__(
        self,
        constructor: PrimitiveConstructor,
        *,
        plane: Optional[Any] = None,
        sleep: Optional[SleepFn] = None,
        event_log: Optional[str] = None,
    ) -> None:
        self.factory = EffectFactory(plane=plane)
        self.controller = PlaybackController(constructor, event_log=event_log)
        self.sequencer = Sequencer(self.controller, self.factory, sleep=sleep, event_log=event_log)

    def create_effect(self, config: EffectConfig) -> PlaybackHandle:
        """Return an idle handle for *config*."""
        fields, parent = self.factory.split_parent(config)
        return self.controller.create(self.factory.create(fields), parent)

    def play_one_shot(self, config: EffectConfig) -> PlaybackHandle:
        """Play *config* once; the handle is destroyed when the effect ends."""
        fields, parent = self.factory.split_parent(config)
        return self.controller.play_one_shot(self.factory.create(fields), parent)

    def create_custom_effect(
        self,
        keys: Iterable[WaveformKey | Mapping[str, float] | Sequence[float]],
        config: Optional[EffectConfig] = None,
    ) -> PlaybackHandle:
        fields, parent = self.factory.split_parent(config)
        fields["type"] = EffectKind.CUSTOM
        fields["keys"] = list(keys)
        return self.controller.create(self.factory.create(fields), parent)

    def create_ui_hover(self, config: Optional[EffectConfig] = None) -> PlaybackHandle:
        return self._create_preset(EffectKind.UI_HOVER, config)

    def create_ui_click(self, config: Optional[EffectConfig] = None) -> PlaybackHandle:
        return self._create_preset(EffectKind.UI_CLICK, config)

    def create_ui_notification(self, config: Optional[EffectConfig] = None) -> PlaybackHandle:
        return self._create_preset(EffectKind.UI_NOTIFICATION, config)

    def create_gameplay_explosion(self, config: Optional[EffectConfig] = None) -> PlaybackHandle:
        return self._create_preset(EffectKind.GAMEPLAY_EXPLOSION, config)

    def create_gameplay_collision(self, config: Optional[EffectConfig] = None) -> PlaybackHandle:
        return self._create_preset(EffectKind.GAMEPLAY_COLLISION, config)

    def create_looping_effect(self, config: EffectConfig) -> PlaybackHandle:
        """Return an idle looped handle; release it with :meth:`stop_and_destroy`."""
        fields, parent = self.factory.split_parent(config)
        fields["looped"] = True
        return self.controller.create(self.factory.create(fields), parent)

    def stop_and_destroy(self, handle: PlaybackHandle) -> None:
        """Stop *handle* if it is playing and release its primitive."""
        if handle.state is PlaybackState.DESTROYED:
            return
        self.controller.stop(handle)
        self.controller.destroy(handle)

    async def await_end(self, handle: PlaybackHandle, timeout: Optional[float] = None) -> PlaybackState:
        """Wait for *handle* to end.

        Looped effects never end by themselves; pair this with
        :meth:`stop_and_destroy` or a *timeout*, otherwise the wait leaks.
        """
        return await self.controller.await_end(handle, timeout)

    def play_sequence(self, steps: Iterable[Any]) -> SequenceRun:
        """Schedule *steps*; call ``run.cancel()`` (or ``run()``) to cancel."""
        return self.sequencer.play_sequence(steps)

    def create_waveform_pattern(self, pattern: str, duration_ms: float, intensity: float) -> Keys:
        return build_pattern(pattern, duration_ms, intensity)

    def create_directional_effect(
        self,
        target_pos: Sequence[float],
        reference_pos: Sequence[float],
        max_distance: float,
        config: Optional[EffectConfig] = None,
    ) -> PlaybackHandle:
        """Return an idle handle positioned and attenuated by world positions."""
        fields, parent = self.factory.split_parent(config)
        descriptor = self.factory.directional(target_pos, reference_pos, max_distance, fields or None)
        return self.controller.create(descriptor, parent)

    def describe(self, config: EffectConfig) -> Dict[str, Any]:
        """Return the descriptor for *config* as plain JSON types."""
        fields, _ = self.factory.split_parent(config)
        return self.factory.create(fields).to_dict()

    @staticmethod
    def evaluate(keys: Sequence[WaveformKey], t: float) -> float:
        return evaluate(keys, t)

    def _create_preset(self, kind: EffectKind, config: Optional[EffectConfig]) -> PlaybackHandle:
        fields, parent = self.factory.split_parent(config)
        requested = fields.get("type")
        if requested is not None and EffectKind.parse(requested) is not kind:
            raise InvalidArgumentError(f"config type {requested!r} conflicts with preset {kind.value}")
        fields["type"] = kind
        descriptor: EffectDescriptor = self.factory.create(fields)
        return self.controller.create(descriptor, parent)


__all__ = ["HapticService"]
