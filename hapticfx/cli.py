"""Command line entry point for hapticfx."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from hapticfx.core import resolve_log_level
from hapticfx.exceptions import HapticError, InvalidArgumentError
from hapticfx.interpolation import evaluate, sample
from hapticfx.playback import PlaybackState
from hapticfx.presets import preset_kinds, preset_profile
from hapticfx.primitive import simulated_constructor
from hapticfx.schema import SEQUENCE_SCHEMA, validate_payload
from hapticfx.service import HapticService
from hapticfx.waveform import build_pattern, keys_to_dicts, validate_keys

_LOGGER = logging.getLogger("hapticfx.cli")


def _load_env_file(path: str | None = None) -> None:
    """Load HAPTICS_* settings from a ``.env`` file when one exists."""

    env_path = path or os.path.join(os.getcwd(), ".env")
    load_dotenv(dotenv_path=env_path)


def _configure_logging() -> None:
    level = getattr(logging, resolve_log_level(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load_json(value: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        try:
            with open(value, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidArgumentError(f"expected JSON text or a JSON file path, got {value!r}") from exc


def _parse_vector(value: str) -> List[float]:
    parsed = _load_json(value) if value.strip().startswith("[") else value.split(",")
    try:
        return [float(component) for component in parsed]
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"expected a vector like '1,0,2', got {value!r}") from exc


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def _simulate(steps: List[Dict[str, Any]], *, time_scale: float) -> Dict[str, Any]:
    loop = asyncio.get_running_loop()
    started = loop.time()
    timeline: List[Dict[str, Any]] = []
    base_constructor = simulated_constructor(time_scale=time_scale)

    def _constructor(kind, looped, position, radius, *, parent=None):
        timeline.append({"type": kind.value, "at_ms": round((loop.time() - started) * 1000.0, 1)})
        return base_constructor(kind, looped, position, radius, parent=parent)

    service = HapticService(_constructor)
    run = service.play_sequence(steps)
    state = await run.wait()
    pending = [handle for handle in run.handles if handle.state is not PlaybackState.DESTROYED]
    await asyncio.gather(*(service.await_end(handle) for handle in pending))

    dispatched = []
    for (index, _), entry in zip(run.dispatched, timeline):
        dispatched.append(dict(entry, step=index))
    return {
        "trace_id": run.trace_id,
        "state": state.value,
        "dispatched": dispatched,
        "failures": [{"step": index, "error": str(exc)} for index, exc in run.failures],
    }


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the hapticfx CLI."""

    _load_env_file()
    _configure_logging()

    parser = argparse.ArgumentParser(description="Haptic effect toolkit")
    subparsers = parser.add_subparsers(dest="command", required=True)

    pattern_parser = subparsers.add_parser("pattern", help="Build keyframes for a named pattern")
    pattern_parser.add_argument("pattern", help="rampUp, rampDown, pulse, or constant")
    pattern_parser.add_argument("duration_ms", type=float, help="Pattern duration in milliseconds")
    pattern_parser.add_argument("peak", type=float, help="Peak intensity in [0, 1]")
    pattern_parser.add_argument("--sample", type=float, dest="sample_ms", help="Also sample the curve every N ms")

    evaluate_parser = subparsers.add_parser("evaluate", help="Interpolate keyframes at a time")
    evaluate_parser.add_argument("keys", help="JSON string or file path with keyframes")
    evaluate_parser.add_argument("time_ms", type=float, help="Query time in milliseconds")

    describe_parser = subparsers.add_parser("describe", help="Print the descriptor built from a config")
    describe_parser.add_argument("config", help="JSON string or file path with the effect config")

    directional_parser = subparsers.add_parser("directional", help="Describe a directional effect")
    directional_parser.add_argument("target", help="Target world position, e.g. '3,0,4'")
    directional_parser.add_argument("reference", help="Reference world position, e.g. '0,0,0'")
    directional_parser.add_argument("max_distance", type=float, help="Distance at which feedback fades out")
    directional_parser.add_argument("--config", help="JSON string or file path with the effect config")
    directional_parser.add_argument("--plane", help="Device plane axes such as 'xz' or 'auto'")

    subparsers.add_parser("presets", help="List preset effects and their defaults")

    simulate_parser = subparsers.add_parser("simulate", help="Run a sequence against simulated primitives")
    simulate_parser.add_argument("sequence", help="JSON string or file path with the sequence steps")
    simulate_parser.add_argument(
        "--time-scale",
        type=float,
        default=1.0,
        help="Multiplier applied to simulated effect durations",
    )

    args = parser.parse_args(argv)

    try:
        if args.command == "pattern":
            keys = build_pattern(args.pattern, args.duration_ms, args.peak)
            payload: Dict[str, Any] = {"pattern": args.pattern, "keys": keys_to_dicts(keys)}
            if args.sample_ms is not None:
                payload["samples"] = [{"time": t, "intensity": value} for t, value in sample(keys, args.sample_ms)]
            _print(payload)
            return 0

        if args.command == "evaluate":
            keys = validate_keys(_load_json(args.keys), minimum=1)
            _print({"time": args.time_ms, "intensity": evaluate(keys, args.time_ms)})
            return 0

        if args.command == "describe":
            service = HapticService(simulated_constructor())
            _print(service.describe(_load_json(args.config)))
            return 0

        if args.command == "directional":
            service = HapticService(simulated_constructor(), plane=args.plane)
            config = _load_json(args.config) if args.config else None
            descriptor = service.factory.directional(
                _parse_vector(args.target),
                _parse_vector(args.reference),
                args.max_distance,
                config,
            )
            _print(descriptor.to_dict())
            return 0

        if args.command == "presets":
            _print(
                [
                    {
                        "type": kind.value,
                        "description": preset_profile(kind).description,
                        "position": list(preset_profile(kind).position),
                        "radius": preset_profile(kind).radius,
                        "keys": keys_to_dicts(preset_profile(kind).keys),
                    }
                    for kind in preset_kinds()
                ]
            )
            return 0

        if args.command == "simulate":
            steps = _load_json(args.sequence)
            validate_payload(SEQUENCE_SCHEMA, steps)
            _print(asyncio.run(_simulate(steps, time_scale=args.time_scale)))
            return 0
    except HapticError as exc:
        _LOGGER.error("%s failed: %s", args.command, exc)
        print(str(exc), file=sys.stderr)
        return 1

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
