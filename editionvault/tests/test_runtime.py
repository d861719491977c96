"""Atomicity, event buffering and clock handling of the runtime."""

from __future__ import annotations

import logging
from typing import Any, List

import pytest

from editionvault.hooks import LoggingHooks, RecordingHooks, StakedEvent
from editionvault.identity import Address
from editionvault.runtime import REFERENCE_TIMESTAMP, ManualClock, Runtime, deep_snapshot

ALICE = Address.from_int(0xA11CE)


class Counter:
    def __init__(self) -> None:
        self.values: List[int] = []

    def snapshot(self) -> Any:
        return deep_snapshot(self.values)

    def restore(self, snapshot: Any) -> None:
        self.values = snapshot


class ExplodingHooks:
    def on_event(self, event) -> None:
        raise RuntimeError("subscriber failure")


class Boom(Exception):
    pass


def test_manual_clock_only_moves_forward():
    clock = ManualClock()
    assert clock.now() == REFERENCE_TIMESTAMP
    assert clock.advance(10) == REFERENCE_TIMESTAMP + 10
    with pytest.raises(ValueError):
        clock.advance(-1)
    with pytest.raises(ValueError):
        clock.set(REFERENCE_TIMESTAMP)


def test_commit_keeps_changes(runtime: Runtime):
    counter = runtime.register(Counter())
    with runtime.transaction():
        counter.values.append(1)
    assert counter.values == [1]


def test_failure_restores_every_participant(runtime: Runtime):
    first = runtime.register(Counter())
    second = runtime.register(Counter())
    first.values.append(0)

    with pytest.raises(Boom):
        with runtime.transaction():
            first.values.append(1)
            second.values.append(1)
            raise Boom()

    assert first.values == [0]
    assert second.values == []
    assert not runtime.in_transaction


def test_nested_transaction_joins_outer(runtime: Runtime, clock: ManualClock):
    counter = runtime.register(Counter())
    with pytest.raises(Boom):
        with runtime.transaction() as outer_now:
            with runtime.transaction() as inner_now:
                assert inner_now == outer_now
                counter.values.append(1)
            # Inner completion is not a commit
            raise Boom()
    assert counter.values == []


def test_time_is_fixed_for_the_operation(runtime: Runtime, clock: ManualClock):
    with runtime.transaction() as now:
        clock.advance(100)
        assert runtime.now == now
    assert runtime.now == now + 100


def test_events_published_only_on_commit(runtime: Runtime):
    hooks = RecordingHooks()
    runtime.subscribe(hooks)

    with pytest.raises(Boom):
        with runtime.transaction():
            runtime.emit(StakedEvent(ALICE, 1))
            raise Boom()
    assert hooks.events == []
    assert list(runtime.events) == []

    with runtime.transaction():
        runtime.emit(StakedEvent(ALICE, 2))
        assert hooks.events == []
    assert hooks.events == [StakedEvent(ALICE, 2)]
    assert list(runtime.events) == [StakedEvent(ALICE, 2)]


def test_event_history_is_bounded(clock: ManualClock):
    runtime = Runtime(clock=clock, event_history=2)
    recorder = RecordingHooks()
    runtime.subscribe(recorder)

    for unit_id in range(1, 6):
        with runtime.transaction():
            runtime.emit(StakedEvent(ALICE, unit_id))

    assert list(runtime.events) == [StakedEvent(ALICE, 4), StakedEvent(ALICE, 5)]
    assert len(recorder.events) == 5

    with pytest.raises(ValueError):
        Runtime(clock=clock, event_history=-1)


def test_hook_failure_does_not_reach_caller(runtime: Runtime):
    recorder = RecordingHooks()
    runtime.subscribe(ExplodingHooks())
    runtime.subscribe(recorder)

    with runtime.transaction():
        runtime.emit(StakedEvent(ALICE, 1))
    assert recorder.events == [StakedEvent(ALICE, 1)]


def test_logging_hooks_log_committed_events(runtime: Runtime, caplog):
    runtime.subscribe(LoggingHooks())
    with caplog.at_level(logging.INFO, logger="editionvault.hooks"):
        with runtime.transaction():
            runtime.emit(StakedEvent(ALICE, 3))
    assert "[HOOK] StakedEvent" in caplog.text


def test_emit_outside_transaction_rejected(runtime: Runtime):
    with pytest.raises(RuntimeError):
        runtime.emit(StakedEvent(ALICE, 1))


def test_register_inside_transaction_rejected(runtime: Runtime):
    with runtime.transaction():
        with pytest.raises(RuntimeError):
            runtime.register(Counter())


def test_view_reads_clock_once(runtime: Runtime, clock: ManualClock):
    with runtime.view() as now:
        clock.advance(5)
        assert runtime.now == now
