"""Tests for out-of-process execution."""

import asyncio
import io
import json
import sys

import pytest

from chapterwise import remote_worker
from chapterwise.errors import RemoteExecutionError
from chapterwise.remote import SubprocessRemoteExecutor


def test_resolve_handler():
    assert remote_worker.resolve_handler("json:dumps") is json.dumps
    with pytest.raises(ValueError):
        remote_worker.resolve_handler("json.dumps")


def test_run_calls_handler_with_keyword_args():
    assert remote_worker.run({"handler": "json:dumps", "args": {"obj": [1, 2]}}) == "[1, 2]"


def test_run_awaits_coroutine_handlers():
    request = {"handler": "asyncio:sleep", "args": {"delay": 0, "result": 5}}
    assert remote_worker.run(request) == 5


def test_main_writes_envelopes(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(
        {"handler": "json:dumps", "args": {"obj": "x"}}
    )))
    assert remote_worker.main() == 0
    assert json.loads(capsys.readouterr().out) == {"ok": True, "data": '"x"'}

    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps({"handler": "nope"})))
    assert remote_worker.main() == 1
    envelope = json.loads(capsys.readouterr().out)
    assert envelope["ok"] is False
    assert "ValueError" in envelope["error"]


class ScriptExecutor(SubprocessRemoteExecutor):
    """Runs an inline script instead of the worker module."""

    def __init__(self, script):
        super().__init__(timeout=30)
        self.script = script

    def _command(self):
        return [self.python_executable, "-c", self.script]


ECHO = "import json, sys; r = json.load(sys.stdin); json.dump({'ok': True, 'data': r}, sys.stdout)"
FAIL = "import json, sys; json.dump({'ok': False, 'error': 'boom'}, sys.stdout); sys.exit(1)"
GARBAGE = "print('not json')"


def test_call_remote_round_trips_json():
    result = asyncio.run(ScriptExecutor(ECHO).call_remote("pkg.mod:fn", {"video_id": "vid"}))

    assert result.data == {"handler": "pkg.mod:fn", "args": {"video_id": "vid"}}
    assert result.duration_ms >= 0


def test_call_remote_failures_raise():
    with pytest.raises(RemoteExecutionError, match="boom"):
        asyncio.run(ScriptExecutor(FAIL).call_remote("pkg.mod:fn", {}))
    with pytest.raises(RemoteExecutionError, match="unreadable"):
        asyncio.run(ScriptExecutor(GARBAGE).call_remote("pkg.mod:fn", {}))
