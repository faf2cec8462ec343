"""Effect descriptor assembly from caller configs."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from hapticfx.core import parse_plane
from hapticfx.exceptions import InvalidArgumentError
from hapticfx.presets import ORIGIN, EffectKind, Position, preset_profile
from hapticfx.schema import EFFECT_CONFIG_SCHEMA, to_json_compatible, validate_payload
from hapticfx.spatial import map_directional
from hapticfx.waveform import Keys, keys_to_dicts, scale_keys, validate_keys

_FIELD_ALIASES = {"kind": "type", "loop": "looped", "waveformkeys": "keys"}

EffectConfig = Mapping[str, Any]


@dataclass(frozen=True)
class EffectDescriptor:
    """Validated, immutable description of one haptic effect."""

    kind: EffectKind
    looped: bool = False
    position: Position = ORIGIN
    radius: float = 0.0
    keys: Keys = field(default_factory=tuple)

    @property
    def duration_ms(self) -> float:
        return self.keys[-1].time if self.keys else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "looped": self.looped,
            "position": list(self.position),
            "radius": self.radius,
            "keys": keys_to_dicts(self.keys),
        }


def _normalise_fields(config: Mapping[str, Any]) -> Dict[str, Any]:
    normalised: Dict[str, Any] = {}
    for raw_name, value in config.items():
        if not isinstance(raw_name, str):
            raise InvalidArgumentError(f"config field names must be strings, got {raw_name!r}")
        name = raw_name.strip().lower()
        normalised[_FIELD_ALIASES.get(name, name)] = value
    return normalised


def _require_finite(fields: Mapping[str, Any]) -> None:
    # NaN slips through the schema range checks since every comparison is false.
    errors = []
    radius = fields.get("radius")
    if isinstance(radius, float) and not math.isfinite(radius):
        errors.append({"message": f"{radius!r} is not a finite number", "path": ["radius"]})
    for index, component in enumerate(fields.get("position") or ()):
        if isinstance(component, float) and not math.isfinite(component):
            errors.append({"message": f"{component!r} is not a finite number", "path": ["position", index]})
    if errors:
        raise InvalidArgumentError("effect config contains non-finite numbers", errors=errors)


def _pad_position(values: Sequence[float]) -> Position:
    padded = [float(value) for value in values] + [0.0] * (3 - len(values))
    return padded[0], padded[1], padded[2]


class EffectFactory:
    """Build :class:`EffectDescriptor` objects from config mappings.

    A config carries ``type`` plus optional ``looped``, ``position``,
    ``radius``, ``keys`` and ``parent`` fields. Field names are matched
    case-insensitively so ``{"Type": "UIClick"}`` works as well. Presets fall
    back to their documented defaults for every omitted field.
    """

    def __init__(self, *, plane: Optional[Any] = None) -> None:
        if isinstance(plane, str):
            try:
                plane = parse_plane(plane)
            except ValueError as exc:
                raise InvalidArgumentError(str(exc)) from exc
        self.plane = plane
        self._logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def split_parent(config: Optional[EffectConfig]) -> Tuple[Dict[str, Any], Any]:
        """Return ``(config_without_parent, parent)``."""

        if config is None:
            return {}, None
        if not isinstance(config, Mapping):
            raise InvalidArgumentError("effect config must be a mapping")
        fields = _normalise_fields(config)
        parent = fields.pop("parent", None)
        return fields, parent

    def create(self, config: EffectConfig | EffectDescriptor) -> EffectDescriptor:
        """Validate *config* and return the resulting descriptor.

        Raises:
            InvalidArgumentError: For schema violations, unknown types, or a
                ``Custom`` config without at least two valid keys.
        """

        if isinstance(config, EffectDescriptor):
            return config
        fields, _ = self.split_parent(config)
        validate_payload(EFFECT_CONFIG_SCHEMA, to_json_compatible(fields))
        _require_finite(fields)

        kind = EffectKind.parse(fields["type"])
        raw_keys = fields.get("keys")

        if kind is EffectKind.CUSTOM:
            if not raw_keys:
                raise InvalidArgumentError("Custom effects require at least two waveform keys")
            keys = validate_keys(raw_keys)
            default_position, default_radius = ORIGIN, 0.0
        else:
            profile = preset_profile(kind)
            keys = validate_keys(raw_keys) if raw_keys is not None else profile.keys
            default_position, default_radius = profile.position, profile.radius

        position = fields.get("position")
        radius = fields.get("radius")
        descriptor = EffectDescriptor(
            kind=kind,
            looped=bool(fields.get("looped", False)),
            position=_pad_position(position) if position is not None else default_position,
            radius=float(radius) if radius is not None else default_radius,
            keys=keys,
        )
        self._logger.debug("Created %s descriptor (%d keys)", kind.value, len(keys))
        return descriptor

    def directional(
        self,
        target_pos: Sequence[float],
        reference_pos: Sequence[float],
        max_distance: float,
        config: Optional[EffectConfig] = None,
    ) -> EffectDescriptor:
        """Return a descriptor placed and attenuated by world positions.

        The mapped position replaces the config position. The radius becomes
        the config radius (1.0 when omitted) times the distance falloff, and
        every key intensity is scaled by the same falloff. Without a config the
        effect is a ``GameplayExplosion``.
        """

        mapping = map_directional(target_pos, reference_pos, max_distance, plane=self.plane)
        fields, _ = self.split_parent(config)
        fields.setdefault("type", EffectKind.GAMEPLAY_EXPLOSION.value)
        descriptor = self.create(fields)
        base_radius = descriptor.radius if "radius" in fields else 1.0
        radius = base_radius * mapping.radius_scale
        return replace(
            descriptor,
            position=mapping.position,
            radius=radius,
            keys=scale_keys(descriptor.keys, mapping.radius_scale),
        )


__all__ = ["EffectConfig", "EffectDescriptor", "EffectFactory"]
