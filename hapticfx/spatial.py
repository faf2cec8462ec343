"""Map world-space positions onto the device feedback space."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from hapticfx.core import parse_plane, resolve_plane
from hapticfx.exceptions import InvalidArgumentError

Vector3 = Tuple[float, float, float]

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}
CENTER: Vector3 = (0.5, 0.5, 0.5)


@dataclass(frozen=True)
class DirectionalMapping:
    """Device-space position plus the distance falloff scale."""

    position: Vector3
    radius_scale: float


def _as_vector(value: Any, name: str) -> Vector3:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 3:
        raise InvalidArgumentError(f"{name} must be a sequence of three numbers")
    components = []
    for component in value:
        if isinstance(component, bool) or not isinstance(component, (int, float)) or not math.isfinite(component):
            raise InvalidArgumentError(f"{name} components must be finite numbers")
        components.append(float(component))
    return components[0], components[1], components[2]


def _to_device(component: float) -> float:
    return min(1.0, max(0.0, (component + 1.0) / 2.0))


def _resolve_axes(plane: Any, displacement: Vector3) -> Tuple[int, int, int]:
    if plane is None or isinstance(plane, str):
        try:
            plane = resolve_plane() if plane is None else parse_plane(plane)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    if plane == "auto":
        # Largest magnitudes first; ties keep x/y/z order.
        ranked = sorted(range(3), key=lambda axis: -abs(displacement[axis]))
        first, second = sorted(ranked[:2])
    else:
        try:
            first, second = (_AXIS_INDEX[axis] for axis in plane)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"invalid plane {plane!r}") from exc
        if first == second:
            raise InvalidArgumentError(f"plane axes must differ, got {plane!r}")
    remaining = 3 - first - second
    return first, second, remaining


def map_directional(
    target_pos: Sequence[float],
    reference_pos: Sequence[float],
    max_distance: float,
    *,
    plane: Optional[Any] = None,
) -> DirectionalMapping:
    """Project the direction from *reference_pos* to *target_pos* onto the device.

    The two plane axes (horizontal X/Z by default, or ``HAPTICS_PLANE``) of the
    normalised direction become device x/y and the remaining axis device z,
    each rescaled from ``[-1, 1]`` to ``[0, 1]``. ``radius_scale`` falls off
    linearly with distance and reaches 0 at *max_distance*; farther targets are
    not an error. Coincident positions map to the device centre at full scale.
    """

    if isinstance(max_distance, bool) or not isinstance(max_distance, (int, float)) or not math.isfinite(max_distance):
        raise InvalidArgumentError("max_distance must be a finite number")
    if max_distance <= 0:
        raise InvalidArgumentError(f"max_distance must be positive, got {max_distance!r}")

    target = _as_vector(target_pos, "target_pos")
    reference = _as_vector(reference_pos, "reference_pos")
    displacement = (target[0] - reference[0], target[1] - reference[1], target[2] - reference[2])
    distance = math.sqrt(sum(component * component for component in displacement))

    radius_scale = min(1.0, max(0.0, 1.0 - distance / max_distance))
    if distance == 0.0:
        return DirectionalMapping(CENTER, 1.0)

    first, second, remaining = _resolve_axes(plane, displacement)
    direction = tuple(component / distance for component in displacement)
    position = (
        _to_device(direction[first]),
        _to_device(direction[second]),
        _to_device(direction[remaining]),
    )
    return DirectionalMapping(position, radius_scale)


__all__ = ["CENTER", "DirectionalMapping", "Vector3", "map_directional"]
