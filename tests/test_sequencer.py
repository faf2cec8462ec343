"""Tests for delay-gated sequence dispatch and cancellation."""

from __future__ import annotations

import asyncio
import logging

import pytest

from hapticfx.exceptions import InvalidArgumentError
from hapticfx.factory import EffectFactory
from hapticfx.playback import PlaybackController, PlaybackState
from hapticfx.presets import EffectKind
from hapticfx.sequencer import RunState, SequenceStep, Sequencer


@pytest.fixture()
def controller(recorder) -> PlaybackController:
    return PlaybackController(recorder)


@pytest.fixture()
def sequencer(controller, clock) -> Sequencer:
    return Sequencer(controller, EffectFactory(), sleep=clock.sleep)


@pytest.mark.asyncio
async def test_delays_are_cumulative_from_previous_dispatch(sequencer, recorder) -> None:
    run = sequencer.play_sequence(
        [
            SequenceStep(0, {"type": "GameplayExplosion"}),
            (200, {"type": "UIClick"}),
            {"delay_ms": 200, "effect": {"type": "UIHover"}},
        ]
    )

    assert await run.wait() is RunState.COMPLETED
    assert recorder.created_at == pytest.approx([0.0, 0.2, 0.4])
    assert [primitive.kind for primitive in recorder.instances] == [
        EffectKind.GAMEPLAY_EXPLOSION,
        EffectKind.UI_CLICK,
        EffectKind.UI_HOVER,
    ]
    # Dispatch does not wait for the long explosion to finish.
    assert run.handles[0].state is PlaybackState.PLAYING
    assert [index for index, _ in run.dispatched] == [0, 1, 2]


@pytest.mark.asyncio
async def test_each_step_is_an_independent_one_shot(sequencer, recorder, controller) -> None:
    run = sequencer.play_sequence([(0, {"type": "UIClick"}), (10, {"type": "UIClick"})])
    await run.wait()

    assert len(controller.live_handles) == 2
    for primitive in recorder.instances:
        primitive.fire_ended()

    assert controller.live_handles == ()
    assert all(handle.state is PlaybackState.DESTROYED for handle in run.handles)


@pytest.mark.asyncio
async def test_cancel_between_steps_prevents_later_dispatches(recorder) -> None:
    controller = PlaybackController(recorder)
    sequencer = Sequencer(controller, EffectFactory())
    run = sequencer.play_sequence(
        [(0, {"type": "UIClick"}), (200, {"type": "UIHover"}), (200, {"type": "UINotification"})]
    )

    await asyncio.sleep(0.05)
    assert len(recorder.instances) == 1
    run.cancel()

    assert await run.wait() is RunState.CANCELLED
    await asyncio.sleep(0.05)
    assert len(recorder.instances) == 1
    assert run.cancelled
    # The dispatched effect keeps playing.
    assert "stop" not in recorder.last.calls
    assert run.handles[0].state is PlaybackState.PLAYING


@pytest.mark.asyncio
async def test_cancel_before_first_dispatch(sequencer, recorder) -> None:
    run = sequencer.play_sequence([(0, {"type": "UIClick"})])
    run()

    assert await run.wait() is RunState.CANCELLED
    assert recorder.instances == []


@pytest.mark.asyncio
async def test_invalid_step_is_skipped_and_logged(sequencer, recorder, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        run = sequencer.play_sequence(
            [
                (0, {"type": "UIClick"}),
                (100, {"type": "Custom", "keys": []}),
                (100, {"type": "Earthquake"}),
                (100, {"type": "UIHover"}),
            ]
        )
        assert await run.wait() is RunState.COMPLETED

    assert [index for index, _ in run.dispatched] == [0, 3]
    assert [index for index, _ in run.failures] == [1, 2]
    assert all(isinstance(exc, InvalidArgumentError) for _, exc in run.failures)
    assert recorder.created_at == pytest.approx([0.0, 0.3])
    assert sum("skipped" in message for message in caplog.messages) == 2


@pytest.mark.asyncio
async def test_looped_step_is_rejected_without_halting(sequencer, recorder) -> None:
    run = sequencer.play_sequence(
        [(0, {"type": "UIClick", "looped": True}), (0, {"type": "UIClick"})]
    )
    await run.wait()

    assert [index for index, _ in run.failures] == [0]
    assert len(run.dispatched) == 1


@pytest.mark.asyncio
async def test_descriptor_steps_and_parent(sequencer, recorder) -> None:
    parent = object()
    descriptor = EffectFactory().create({"type": "GameplayCollision"})
    run = sequencer.play_sequence([(0, descriptor), (0, {"type": "UIClick", "parent": parent})])
    await run.wait()

    assert recorder.instances[0].kind is EffectKind.GAMEPLAY_COLLISION
    assert recorder.instances[1].parent is parent


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "steps",
    [
        [(-1, {"type": "UIClick"})],
        [("soon", {"type": "UIClick"})],
        [{"effect": {"type": "UIClick"}}],
        [(0,)],
        {"delay_ms": 0, "effect": {}},
    ],
)
async def test_malformed_steps_raise_immediately(sequencer, recorder, steps) -> None:
    with pytest.raises(InvalidArgumentError):
        sequencer.play_sequence(steps)
    await asyncio.sleep(0)
    assert recorder.instances == []


@pytest.mark.asyncio
async def test_empty_sequence_completes(sequencer) -> None:
    run = sequencer.play_sequence([])

    assert await run.wait() is RunState.COMPLETED
    assert run.done


@pytest.mark.asyncio
async def test_host_error_skips_only_its_step(recorder, clock, caplog) -> None:
    calls = []

    def flaky(kind, looped, position, radius, *, parent=None):
        calls.append(kind)
        if len(calls) == 1:
            raise RuntimeError("host glitch")
        return recorder(kind, looped, position, radius, parent=parent)

    controller = PlaybackController(flaky)
    sequencer = Sequencer(controller, EffectFactory(), sleep=clock.sleep)

    with caplog.at_level(logging.WARNING):
        run = sequencer.play_sequence([(0, {"type": "UIClick"}), (50, {"type": "UIHover"})])
        assert await run.wait() is RunState.COMPLETED

    assert [index for index, _ in run.failures] == [0]
    assert isinstance(run.failures[0][1], RuntimeError)
    assert [index for index, _ in run.dispatched] == [1]
    assert recorder.last.kind is EffectKind.UI_HOVER
    assert any("skipped" in message for message in caplog.messages)


@pytest.mark.asyncio
async def test_failing_sleep_fails_the_run(recorder) -> None:
    async def broken_sleep(seconds: float) -> None:
        raise OSError("timer unavailable")

    controller = PlaybackController(recorder)
    sequencer = Sequencer(controller, EffectFactory(), sleep=broken_sleep)
    run = sequencer.play_sequence([(10, {"type": "UIClick"}), (10, {"type": "UIHover"})])

    with pytest.raises(OSError, match="timer unavailable"):
        await run.wait()

    assert run.state is RunState.FAILED
    assert run.done
    assert recorder.instances == []
