"""JSONL event stream for playback and sequence activity."""

from __future__ import annotations

import datetime as _dt
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from hapticfx.core import resolve_event_log_path

PathLike = Union[str, "os.PathLike[str]"]


def log_jsonl(path: PathLike, record: Dict[str, Any]) -> None:
    """Append *record* to the event stream at *path*, one object per line.

    Missing parent directories are created. Values JSON cannot encode, such
    as enum members or exceptions, are written as their ``str()`` form so a
    stray field never drops an event.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(record, sort_keys=True, default=str)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(line + "\n")


def log_event(record: Dict[str, Any], *, path: Optional[PathLike] = None) -> Optional[Dict[str, Any]]:
    """Append *record* to the playback event stream.

    The stream is written to *path* or ``HAPTICS_EVENT_LOG``. When neither is
    set the event is dropped and ``None`` is returned.
    """

    target = resolve_event_log_path(os.fspath(path) if path is not None else None)
    if target is None:
        return None
    payload = dict(record)
    payload.setdefault("timestamp", _dt.datetime.now(tz=_dt.timezone.utc).isoformat())
    log_jsonl(target, payload)
    return payload


__all__ = ["log_event", "log_jsonl"]
