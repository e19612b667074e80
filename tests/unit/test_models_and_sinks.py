# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from datetime import datetime

import pytest

from dpichecker.errors import ErrorCategory
from dpichecker.models import LogEvent, LogLevel, NetworkStatus, ProbeSpec, ProbeState, ProbeStatus, RunOutcome
from dpichecker.models.events import format_elapsed
from dpichecker.models.probe import STATUS_TEXT_CHECKING, STATUS_TEXT_FAILED, STATUS_TEXT_OK
from dpichecker.scan import RunSession
from dpichecker.sink import LoggingSink, MemorySink, MultiSink


def _state(probe_id="A") -> ProbeState:
    return ProbeState.for_spec(ProbeSpec(id=probe_id, provider="Prov", url="https://a.test/"))


def test_new_state_is_checking():
    state = _state()
    assert state.status is ProbeStatus.CHECKING
    assert state.status_text == STATUS_TEXT_CHECKING
    assert state.is_terminal is False
    assert state.http_status is None


def test_transition_is_one_way():
    state = _state()
    applied = state.transition(ProbeStatus.OK, STATUS_TEXT_OK, received_bytes=70000)

    assert applied == {"status": ProbeStatus.OK, "status_text": STATUS_TEXT_OK, "received_bytes": 70000}
    assert state.is_terminal
    with pytest.raises(ValueError):
        state.transition(ProbeStatus.FAILED, STATUS_TEXT_FAILED)


def test_transition_rejects_non_terminal_target():
    with pytest.raises(ValueError):
        _state().transition(ProbeStatus.CHECKING, STATUS_TEXT_CHECKING)


def test_first_http_status_wins():
    state = _state()
    assert state.record_http_status(200) is True
    assert state.record_http_status(500) is False
    assert state.http_status == 200


def test_state_to_dict_uses_plain_values():
    state = _state()
    state.transition(ProbeStatus.BAD, "Detected❗️", http_status=200, category=ErrorCategory.READ_TIMEOUT)
    data = state.to_dict()
    assert data["status"] == "bad"
    assert data["category"] == "READ_TIMEOUT"
    assert data["http_status"] == 200


def test_log_event_format():
    event = LogEvent(LogLevel.ERR, "READ timeout reached (12.3 ms)", prefix="DPI checking(#A)", timestamp=datetime(2024, 1, 2, 3, 4, 5, 678900))
    assert event.clock == "03:04:05.678"
    assert event.format() == "03:04:05.678 DPI checking(#A) ERR: READ timeout reached (12.3 ms)"
    assert event.to_dict()["level"] == "ERR"

    bare = LogEvent(LogLevel.INFO, "Done.", timestamp=datetime(2024, 1, 2, 3, 4, 5))
    assert bare.format() == "03:04:05.000 INFO: Done."
    assert format_elapsed(1234.56) == "1234.6 ms"


def test_memory_sink_ignores_updates_after_terminal():
    sink = MemorySink()
    sink.on_probe_created(_state())
    sink.on_probe_updated("A", {"http_status": 200})
    sink.on_probe_updated("A", {"status": ProbeStatus.OK, "status_text": STATUS_TEXT_OK})
    sink.on_probe_updated("A", {"status": ProbeStatus.FAILED, "status_text": STATUS_TEXT_FAILED})
    sink.on_probe_updated("missing", {"status": ProbeStatus.OK})

    assert sink.states["A"].status is ProbeStatus.OK
    assert sink.states["A"].http_status == 200
    assert list(sink.states) == ["A"]


def test_memory_sink_stores_snapshots():
    sink = MemorySink()
    state = _state()
    sink.on_probe_created(state)
    state.received_bytes = 99
    assert sink.states["A"].received_bytes == 0


def test_logging_sink_maps_levels(caplog):
    sink = LoggingSink(logging.getLogger("dpichecker.test"))
    with caplog.at_level(logging.DEBUG, logger="dpichecker.test"):
        sink.on_log(LogEvent(LogLevel.WARN, "Stream ended but data is too small", prefix="DPI checking(#A)"))
        sink.on_log(LogEvent(LogLevel.ERR, "FAILED (1.0 ms)", prefix="Network checking"))
        sink.on_probe_updated("A", {"status": ProbeStatus.OK, "status_text": STATUS_TEXT_OK})
        sink.on_overall_status_changed(NetworkStatus.READY, "Ready ⚡")

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.WARNING, logging.ERROR, logging.INFO, logging.INFO]
    assert caplog.records[0].getMessage() == "DPI checking(#A): Stream ended but data is too small"


def test_multi_sink_fans_out():
    first, second = MemorySink(), MemorySink()
    sink = MultiSink([first, second])
    sink.on_probe_created(_state())
    sink.on_log(LogEvent(LogLevel.INFO, "HTTP 200"))
    sink.on_overall_status_changed(NetworkStatus.CHECKING, "Checking ⏰")

    for target in (first, second):
        assert list(target.states) == ["A"]
        assert len(target.logs) == 1
        assert target.status_history == [(NetworkStatus.CHECKING, "Checking ⏰")]
    assert first.states["A"] is not second.states["A"]


def test_run_session_forwards_and_keeps_order():
    downstream = MemorySink()
    session = RunSession(downstream)
    session.on_probe_created(_state("B/1"))
    session.on_probe_created(_state("A"))
    session.on_probe_updated("A", {"status": ProbeStatus.OK, "status_text": STATUS_TEXT_OK})
    session.on_log(LogEvent(LogLevel.INFO, "Done."))

    outcome = session.outcome(NetworkStatus.READY, "Ready ⚡")
    assert [state.id for state in outcome.results] == ["B/1", "A"]
    assert downstream.states["A"].status is ProbeStatus.OK
    assert len(downstream.logs) == 1
    assert outcome.stopped is False


def test_run_outcome_summary():
    ok = _state("A")
    ok.transition(ProbeStatus.OK, STATUS_TEXT_OK)
    outcome = RunOutcome(NetworkStatus.READY, "Ready ⚡", results=[ok, _state("B")])

    assert outcome.counts() == {"checking": 1, "ok": 1, "bad": 0, "warning": 0, "failed": 0}
    assert outcome.result("B").status is ProbeStatus.CHECKING
    assert outcome.result("Z") is None
    data = outcome.to_dict()
    assert data["status"] == "ready"
    assert [item["id"] for item in data["results"]] == ["A", "B"]
    assert RunOutcome(NetworkStatus.UNREACHABLE, "No internet access ⚠️").reachable is False


def test_setup_logging_uses_event_clock_format(monkeypatch):
    from dpichecker import log

    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    log.setup_logging("debug")

    assert captured["level"] == logging.DEBUG
    assert captured["datefmt"] == "%H:%M:%S"
    record = logging.LogRecord("dpichecker.events", logging.WARNING, __file__, 1, "%s: %s", ("DPI checking(#A)", "slow"), None)
    record.created = datetime(2024, 1, 2, 3, 4, 5, 678900).timestamp()
    record.msecs = 678
    formatted = logging.Formatter(captured["format"], captured["datefmt"]).format(record)
    assert formatted == "03:04:05.678 WARNING dpichecker.events: DPI checking(#A): slow"
