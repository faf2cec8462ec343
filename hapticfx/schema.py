"""Local JSON Schema validation for effect and sequence configs."""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
from urllib.parse import urlparse

from jsonschema import Draft202012Validator, ValidationError
from referencing import Registry, Resource, exceptions

from hapticfx.exceptions import InvalidArgumentError

_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
_SCHEMA_SUFFIX = ".schema.json"

EFFECT_CONFIG_SCHEMA = "effect-config"
WAVEFORM_KEYS_SCHEMA = "waveform-keys"
SEQUENCE_SCHEMA = "sequence"


def load_schema(name: str) -> Dict[str, Any]:
    """Return the bundled schema called *name* (without suffix)."""

    path = _SCHEMA_DIR / f"{name}{_SCHEMA_SUFFIX}"
    if not path.is_file():
        raise FileNotFoundError(f"schema {name!r} not found under {_SCHEMA_DIR}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _build_registry() -> Registry:
    """Create a referencing registry resolving sibling schema URIs locally."""

    def _retrieve(uri: str):
        path = urlparse(uri).path or ""
        if not path.endswith(_SCHEMA_SUFFIX):
            raise exceptions.NoSuchResource(uri=uri)
        name = Path(path).name[: -len(_SCHEMA_SUFFIX)]
        try:
            return Resource.from_contents(load_schema(name))
        except FileNotFoundError as exc:
            raise exceptions.NoSuchResource(uri=uri) from exc

    return Registry(retrieve=_retrieve)


@lru_cache(maxsize=None)
def _validator(name: str) -> Draft202012Validator:
    schema = load_schema(name)
    return Draft202012Validator(schema, registry=_build_registry())


def to_json_compatible(value: Any) -> Any:
    """Convert tuples, enums, and ``to_dict`` objects into JSON types."""

    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return to_json_compatible(value.to_dict())
    if isinstance(value, Mapping):
        return {str(key): to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(item) for item in value]
    return value


def _collect_errors(raw_errors: Iterable[ValidationError]):
    for error in sorted(raw_errors, key=lambda err: [str(part) for part in err.absolute_path]):
        yield {
            "message": error.message,
            "path": list(error.absolute_path),
        }


def collect_errors(name: str, payload: Any) -> List[Dict[str, Any]]:
    """Return every validation error of *payload* against schema *name*."""

    return list(_collect_errors(_validator(name).iter_errors(to_json_compatible(payload))))


def validate_payload(name: str, payload: Any) -> None:
    """Raise :class:`InvalidArgumentError` listing all schema violations."""

    errors = collect_errors(name, payload)
    if errors:
        summary = "; ".join(
            f"{'/'.join(str(part) for part in error['path']) or '<root>'}: {error['message']}"
            for error in errors
        )
        raise InvalidArgumentError(f"invalid {name}: {summary}", errors=errors)


__all__ = [
    "EFFECT_CONFIG_SCHEMA",
    "SEQUENCE_SCHEMA",
    "WAVEFORM_KEYS_SCHEMA",
    "collect_errors",
    "load_schema",
    "to_json_compatible",
    "validate_payload",
]
