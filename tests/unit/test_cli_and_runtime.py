# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json
import threading
import time

import httpx
import pytest

from dpichecker import runtime
from dpichecker.catalogue import CatalogueEntry
from dpichecker.cli.main import _pretty_print, apply_overrides, build_parser
from dpichecker.config import ProbeSettings
from dpichecker.errors import ErrorCategory
from dpichecker.http.httpx_client import HttpxFetcher
from dpichecker.models import LogEvent, LogLevel, NetworkStatus, ProbeSpec, ProbeState, ProbeStatus, RunOutcome
from dpichecker.models.probe import STATUS_TEXT_OK
from dpichecker.runtime import DPIChecker

CATALOGUE = [CatalogueEntry("A", "Alpha", 1, "https://a.test/blob")]


def _settings() -> ProbeSettings:
    return ProbeSettings(timeout_ms=500, ok_threshold_bytes=1024, reachability_url="https://reach.test/")


def _handler(request):
    return httpx.Response(200, content=b"a" * 2048)


def _outcome(status=NetworkStatus.READY) -> RunOutcome:
    state = ProbeState.for_spec(ProbeSpec(id="HE-02", provider="Hetzner", url="https://x/"))
    state.transition(ProbeStatus.OK, STATUS_TEXT_OK, http_status=200)
    results = [state] if status is NetworkStatus.READY else []
    return RunOutcome(status, "Ready ⚡", results=results, logs=[LogEvent(LogLevel.INFO, "Done.")])


def test_build_parser_and_overrides():
    parser = build_parser()
    args = parser.parse_args(["--json", "--timeout-ms", "2500", "--threshold", "1000", "--max-concurrency", "2", "--ignore-ssl-errors"])
    assert args.json is True

    settings = apply_overrides(ProbeSettings(), args)
    assert settings.timeout_ms == 2500
    assert settings.ok_threshold_bytes == 1000
    assert settings.max_concurrency == 2
    assert settings.verify_ssl is False

    untouched = apply_overrides(ProbeSettings(), parser.parse_args(["--timeout-ms", "0"]))
    assert untouched.timeout_ms == 5000


def test_pretty_print(capsys):
    _pretty_print(_outcome())
    output = capsys.readouterr().out
    assert "Status: Ready ⚡" in output
    assert "HE-02" in output
    assert STATUS_TEXT_OK in output
    assert "ok=1" in output
    assert "INFO: Done." in output

    _pretty_print(_outcome(), show_logs=False)
    assert "Done." not in capsys.readouterr().out

    stalled = ProbeState.for_spec(ProbeSpec(id="OR-01", provider="Oracle", url="https://y/"))
    stalled.transition(ProbeStatus.BAD, "Detected❗️", http_status=200, category=ErrorCategory.READ_TIMEOUT)
    _pretty_print(RunOutcome(NetworkStatus.READY, "Ready ⚡", results=[stalled]))
    assert "Detected❗️ (Response stalled before the deadline)" in capsys.readouterr().out


def test_checker_reuses_injected_fetcher():
    fetcher = HttpxFetcher(_settings(), transport=httpx.MockTransport(_handler))
    checker = DPIChecker(fetcher, settings=_settings(), catalogue=CATALOGUE)

    first = checker.run()
    second = checker.run()

    assert first.result("A").status is ProbeStatus.OK
    assert second.result("A").status is ProbeStatus.OK
    assert fetcher._client.is_closed is False


def test_checker_closes_its_own_fetcher(monkeypatch):
    created = []

    def fake_factory(settings):
        fetcher = HttpxFetcher(settings, transport=httpx.MockTransport(_handler))
        created.append(fetcher)
        return fetcher

    monkeypatch.setattr(runtime, "create_default_fetcher", fake_factory)
    outcome = DPIChecker(settings=_settings(), catalogue=CATALOGUE).run()

    assert outcome.status is NetworkStatus.READY
    assert len(created) == 1
    assert created[0]._client.is_closed is True


def test_checker_stop_without_run_is_noop():
    DPIChecker(settings=_settings(), catalogue=CATALOGUE).stop()


def test_checker_stop_from_another_thread():
    async def stalled(request):
        if request.url.host == "reach.test":
            return httpx.Response(200, content=b"icon")
        await asyncio.sleep(5)
        return httpx.Response(200, content=b"a" * 2048)

    settings = ProbeSettings(timeout_ms=3000, ok_threshold_bytes=1024, reachability_url="https://reach.test/")
    fetcher = HttpxFetcher(settings, transport=httpx.MockTransport(stalled))
    checker = DPIChecker(fetcher, settings=settings, catalogue=CATALOGUE)

    def stop_when_probing():
        deadline = time.monotonic() + 2
        while time.monotonic() < deadline:
            orchestrator = checker.orchestrator
            if orchestrator is not None and orchestrator.engines:
                break
            time.sleep(0.01)
        time.sleep(0.05)
        checker.stop()

    stopper = threading.Thread(target=stop_when_probing)
    stopper.start()
    started = time.monotonic()
    outcome = checker.run()
    stopper.join()

    assert outcome.stopped is True
    assert outcome.status is NetworkStatus.READY
    assert outcome.result("A").status is ProbeStatus.CHECKING
    assert time.monotonic() - started < 2.5


class FakeChecker:
    outcome = None
    interrupt = False

    def __init__(self, fetcher=None, *, settings=None, catalogue=None, sink=None):  # noqa: ARG002
        self.settings = settings
        self.catalogue = catalogue

    def run(self):
        if FakeChecker.interrupt:
            raise KeyboardInterrupt
        return FakeChecker.outcome


@pytest.fixture
def fake_checker(monkeypatch):
    from dpichecker.cli import main as cli_main

    FakeChecker.outcome = _outcome()
    FakeChecker.interrupt = False
    monkeypatch.setattr(cli_main, "DPIChecker", FakeChecker)
    return cli_main


def test_cli_main_json(fake_checker, capsys):
    exit_code = fake_checker.main(["--json"])
    assert exit_code == fake_checker.EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "ready"
    assert payload["results"][0]["id"] == "HE-02"


def test_cli_main_unreachable_exit_code(fake_checker, capsys):
    FakeChecker.outcome = _outcome(NetworkStatus.UNREACHABLE)
    assert fake_checker.main(["--quiet"]) == fake_checker.EXIT_UNREACHABLE
    assert "Status:" in capsys.readouterr().out


def test_cli_main_interrupted(fake_checker, capsys):
    FakeChecker.interrupt = True
    assert fake_checker.main([]) == fake_checker.EXIT_INTERRUPTED
    assert "Interrupted." in capsys.readouterr().err


def test_cli_main_loads_catalogue(fake_checker, tmp_path):
    path = tmp_path / "catalogue.json"
    path.write_text(json.dumps([{"id": "Z", "provider": "Zed", "times": 2, "url": "https://z/"}]), encoding="utf-8")
    seen = []

    class RecordingChecker(FakeChecker):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            seen.append(self.catalogue)

    fake_checker.DPIChecker = RecordingChecker
    assert fake_checker.main(["--quiet", "--catalogue", str(path)]) == fake_checker.EXIT_OK
    assert seen == [[CatalogueEntry("Z", "Zed", 2, "https://z/")]]


def test_cli_main_rejects_missing_catalogue(fake_checker, tmp_path):
    with pytest.raises(SystemExit):
        fake_checker.main(["--catalogue", str(tmp_path / "absent.json")])
