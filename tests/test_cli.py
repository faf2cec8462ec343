"""CLI tests."""

from __future__ import annotations

import json

import pytest

from hapticfx import cli


def test_pattern_command(capsys) -> None:
    assert cli.main(["pattern", "rampUp", "500", "1.0", "--sample", "250"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["keys"] == [{"time": 0.0, "intensity": 0.0}, {"time": 500.0, "intensity": 1.0}]
    assert payload["samples"][1] == {"time": 250.0, "intensity": 0.5}


def test_evaluate_command(capsys) -> None:
    assert cli.main(["evaluate", '[{"time": 0, "intensity": 0}, {"time": 100, "intensity": 1}]', "25"]) == 0

    assert json.loads(capsys.readouterr().out)["intensity"] == 0.25


def test_describe_reads_files(tmp_path, capsys) -> None:
    config_path = tmp_path / "effect.json"
    config_path.write_text(json.dumps({"type": "GameplayCollision", "radius": 0.1}), encoding="utf-8")

    assert cli.main(["describe", str(config_path)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["type"] == "GameplayCollision"
    assert payload["radius"] == 0.1


def test_describe_invalid_config_exits_nonzero(capsys) -> None:
    assert cli.main(["describe", '{"type": "Custom", "keys": []}']) == 1

    assert "Custom" in capsys.readouterr().err


def test_directional_command(capsys) -> None:
    assert cli.main(["directional", "3,0,4", "0,0,0", "10", "--plane", "xz"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["type"] == "GameplayExplosion"
    assert payload["position"] == pytest.approx([0.8, 0.9, 0.5])
    assert payload["radius"] == 0.5


def test_presets_command(capsys) -> None:
    assert cli.main(["presets"]) == 0

    kinds = [entry["type"] for entry in json.loads(capsys.readouterr().out)]
    assert kinds == ["UIHover", "UIClick", "UINotification", "GameplayExplosion", "GameplayCollision"]


def test_simulate_command(capsys) -> None:
    steps = [
        {"delay_ms": 0, "effect": {"type": "UIClick"}},
        {"delay_ms": 5, "effect": {"type": "Bogus"}},
        {"delay_ms": 5, "effect": {"type": "UIHover"}},
    ]

    assert cli.main(["simulate", json.dumps(steps), "--time-scale", "0.01"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["state"] == "completed"
    assert [entry["step"] for entry in payload["dispatched"]] == [0, 2]
    assert payload["dispatched"][1]["type"] == "UIHover"
    assert payload["failures"][0]["step"] == 1


def test_simulate_rejects_malformed_sequence(capsys) -> None:
    assert cli.main(["simulate", '[{"delay_ms": -5, "effect": {"type": "UIClick"}}]']) == 1
