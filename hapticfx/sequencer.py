"""Delay-gated fan-out of one-shot effects.

Each step waits its ``delay_ms`` measured from the dispatch of the previous
step, then starts as an independent one-shot. Steps do not wait for earlier
effects to finish playing.

Cancellation contract: :meth:`SequenceRun.cancel` prevents every step that
has not been dispatched yet from ever starting and interrupts the pending
delay. Effects that were already dispatched keep playing until they end on
their own; cancellation never stops them.

Failure policy: a step whose effect config is invalid, or whose dispatch
raises any exception from the factory or the host primitive, is skipped and
recorded in :attr:`SequenceRun.failures`. Later steps still run on schedule.
A failing delay (the injected ``sleep`` raising) ends the run as
:attr:`RunState.FAILED` and :meth:`SequenceRun.wait` re-raises the error.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from hapticfx.exceptions import HapticError, InvalidArgumentError
from hapticfx.factory import EffectDescriptor, EffectFactory
from hapticfx.logging import log_event
from hapticfx.playback import PlaybackController, PlaybackHandle

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class SequenceStep:
    """One scheduled dispatch; *effect* is a descriptor or an effect config."""

    delay_ms: float
    effect: Any


class RunState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


def _coerce_step(value: Any, index: int) -> SequenceStep:
    if isinstance(value, SequenceStep):
        step = value
    elif isinstance(value, Mapping):
        if "delay_ms" not in value or "effect" not in value:
            raise InvalidArgumentError(f"step {index} must define 'delay_ms' and 'effect'")
        step = SequenceStep(value["delay_ms"], value["effect"])
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
        step = SequenceStep(value[0], value[1])
    else:
        raise InvalidArgumentError(f"step {index} must be a SequenceStep, mapping, or (delay_ms, effect) pair")

    delay = step.delay_ms
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or not math.isfinite(delay) or delay < 0:
        raise InvalidArgumentError(f"step {index} delay_ms must be a non-negative number, got {delay!r}")
    return step


class SequenceRun:
    """A running sequence; calling the run (or :meth:`cancel`) cancels it."""

    def __init__(self, steps: Tuple[SequenceStep, ...]) -> None:
        self.trace_id = str(uuid.uuid4())
        self.steps = steps
        self.state = RunState.PENDING
        self.dispatched: List[Tuple[int, PlaybackHandle]] = []
        self.failures: List[Tuple[int, Exception]] = []
        self._cancelled = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def handles(self) -> List[PlaybackHandle]:
        return [handle for _, handle in self.dispatched]

    @property
    def done(self) -> bool:
        return self.state in (RunState.COMPLETED, RunState.CANCELLED, RunState.FAILED)

    def cancel(self) -> None:
        """Stop dispatching further steps; dispatched effects keep playing."""
        self._cancelled.set()

    __call__ = cancel

    async def wait(self) -> RunState:
        """Wait for the dispatch loop to finish and return the final state."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.state


class Sequencer:
    """Schedule :class:`SequenceStep` lists on the running event loop."""

    def __init__(
        self,
        controller: PlaybackController,
        factory: Optional[EffectFactory] = None,
        *,
        sleep: Optional[SleepFn] = None,
        event_log: Optional[str] = None,
    ) -> None:
        self._controller = controller
        self._factory = factory or EffectFactory()
        self._sleep = sleep or asyncio.sleep
        self.event_log = event_log
        self._logger = logging.getLogger(self.__class__.__name__)

    def play_sequence(self, steps: Iterable[Any]) -> SequenceRun:
        """Start dispatching *steps* and return the run.

        Must be called with a running event loop. Malformed steps or delays
        raise :class:`InvalidArgumentError` before anything is scheduled;
        invalid effect configs only fail their own step at dispatch time.
        """

        if steps is None or isinstance(steps, (str, bytes, Mapping)):
            raise InvalidArgumentError("steps must be a sequence of sequence steps")
        run = SequenceRun(tuple(_coerce_step(step, index) for index, step in enumerate(steps)))
        run._task = asyncio.get_running_loop().create_task(self._run(run))
        return run

    async def _run(self, run: SequenceRun) -> None:
        run.state = RunState.RUNNING
        self._event("sequence.start", run, steps=len(run.steps))
        try:
            for index, step in enumerate(run.steps):
                if not await self._delay(run, step.delay_ms):
                    break
                self._dispatch(run, index, step)
        except Exception as exc:
            run.state = RunState.FAILED
            self._logger.error("Sequence %s failed after %d dispatches: %s", run.trace_id, len(run.dispatched), exc)
            self._event("sequence.failed", run, dispatched=len(run.dispatched), detail=str(exc))
            raise

        if run.cancelled:
            run.state = RunState.CANCELLED
            self._logger.info("Sequence %s cancelled after %d dispatches", run.trace_id, len(run.dispatched))
            self._event("sequence.cancel", run, dispatched=len(run.dispatched))
        else:
            run.state = RunState.COMPLETED
            self._event(
                "sequence.complete",
                run,
                dispatched=len(run.dispatched),
                failed=len(run.failures),
            )

    async def _delay(self, run: SequenceRun, delay_ms: float) -> bool:
        """Wait *delay_ms*; return False if the run was cancelled meanwhile.

        An exception raised by the sleep is re-raised here.
        """

        if run.cancelled:
            return False
        sleeper = asyncio.ensure_future(self._sleep(delay_ms / 1000.0))
        canceller = asyncio.ensure_future(run._cancelled.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
        if sleeper.done() and not sleeper.cancelled() and sleeper.exception() is not None:
            raise sleeper.exception()
        return not run.cancelled

    def _dispatch(self, run: SequenceRun, index: int, step: SequenceStep) -> None:
        try:
            if isinstance(step.effect, EffectDescriptor):
                descriptor, parent = step.effect, None
            else:
                fields, parent = self._factory.split_parent(step.effect)
                descriptor = self._factory.create(fields)
            handle = self._controller.play_one_shot(descriptor, parent)
        except HapticError as exc:
            self._record_failure(run, index, exc)
            return
        except Exception as exc:  # host primitives may raise anything
            self._record_failure(run, index, exc, exc_info=True)
            return

        run.dispatched.append((index, handle))
        self._event(
            "sequence.dispatch",
            run,
            step=index,
            handle_id=handle.handle_id,
            type=handle.descriptor.kind.value,
        )

    def _record_failure(self, run: SequenceRun, index: int, exc: Exception, *, exc_info: bool = False) -> None:
        run.failures.append((index, exc))
        self._logger.warning("Sequence %s step %d skipped: %s", run.trace_id, index, exc, exc_info=exc_info)
        self._event("sequence.step_failed", run, step=index, detail=str(exc))

    def _event(self, name: str, run: SequenceRun, **extra: Any) -> None:
        record: Dict[str, Any] = {"event": name, "trace_id": run.trace_id}
        record.update(extra)
        log_event(record, path=self.event_log)


__all__ = ["RunState", "SequenceRun", "SequenceStep", "Sequencer", "SleepFn"]
