"""hapticfx: haptic effect descriptors, waveforms, and timed playback."""

from .exceptions import (
    AlreadyPlayingError,
    HandleDestroyedError,
    HapticError,
    InvalidArgumentError,
    UnsupportedDeviceError,
)
from .factory import EffectDescriptor, EffectFactory
from .interpolation import evaluate
from .playback import PlaybackController, PlaybackHandle, PlaybackState
from .presets import EffectKind
from .sequencer import SequenceRun, SequenceStep, Sequencer
from .service import HapticService
from .spatial import DirectionalMapping, map_directional
from .waveform import WaveformKey, build_pattern, validate_keys

__all__ = [
    "AlreadyPlayingError",
    "DirectionalMapping",
    "EffectDescriptor",
    "EffectFactory",
    "EffectKind",
    "HandleDestroyedError",
    "HapticError",
    "HapticService",
    "InvalidArgumentError",
    "PlaybackController",
    "PlaybackHandle",
    "PlaybackState",
    "SequenceRun",
    "SequenceStep",
    "Sequencer",
    "UnsupportedDeviceError",
    "WaveformKey",
    "build_pattern",
    "evaluate",
    "map_directional",
    "validate_keys",
]
