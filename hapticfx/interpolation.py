"""Reference linear interpolation over waveform keys."""

from __future__ import annotations

import math
from bisect import bisect_right
from typing import List, Sequence, Tuple

from hapticfx.exceptions import InvalidArgumentError
from hapticfx.waveform import WaveformKey


def evaluate(keys: Sequence[WaveformKey], t: float) -> float:
    """Return the intensity of *keys* at time *t* (milliseconds).

    Times before the first key clamp to its intensity and times after the last
    key clamp to the last intensity. *keys* must already be sorted by time.
    """

    if not keys:
        raise InvalidArgumentError("cannot evaluate an empty waveform")
    first, last = keys[0], keys[-1]
    if t <= first.time:
        return first.intensity
    if t >= last.time:
        return last.intensity

    times = [key.time for key in keys]
    index = bisect_right(times, t)
    a, b = keys[index - 1], keys[index]
    if t == a.time:
        return a.intensity
    return a.intensity + (b.intensity - a.intensity) * (t - a.time) / (b.time - a.time)


def sample(keys: Sequence[WaveformKey], step_ms: float) -> List[Tuple[float, float]]:
    """Evaluate *keys* every *step_ms* from the first to the last key time."""

    if not keys:
        raise InvalidArgumentError("cannot sample an empty waveform")
    if not isinstance(step_ms, (int, float)) or not math.isfinite(step_ms) or step_ms <= 0:
        raise InvalidArgumentError(f"step_ms must be a positive number, got {step_ms!r}")

    start, end = keys[0].time, keys[-1].time
    count = int(math.floor((end - start) / step_ms))
    points = [(start + i * step_ms, evaluate(keys, start + i * step_ms)) for i in range(count + 1)]
    if points[-1][0] < end:
        points.append((end, keys[-1].intensity))
    return points


__all__ = ["evaluate", "sample"]
