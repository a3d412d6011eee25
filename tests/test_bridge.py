import subprocess

from browser_tabs import bridge as bridge_module
from browser_tabs.bridge import BridgeInvoker
from browser_tabs.errors import ErrorType


class _Completed:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_run_returns_stdout(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        seen.update(kwargs)
        return _Completed(stdout="10|||1|||555|||1|||true|||Home|||https://example.com\n")

    monkeypatch.setattr(bridge_module.subprocess, "run", fake_run)
    result = BridgeInvoker().run("return 1")

    assert result.is_ok()
    assert result.value.startswith("10|||1")
    assert seen["cmd"] == ["osascript", "-e", "return 1"]
    assert seen["timeout"] is None
    assert seen["check"] is False


def test_non_zero_exit_is_a_bridge_error_with_stderr(monkeypatch):
    monkeypatch.setattr(
        bridge_module.subprocess, "run",
        lambda cmd, **kw: _Completed(returncode=1, stderr="execution error: Google Chrome is not running (-600)\n"),
    )
    result = BridgeInvoker().run("x")
    assert result.is_err()
    assert result.error.error_type is ErrorType.BRIDGE_ERROR
    assert result.error.message == "execution error: Google Chrome is not running (-600)"
    assert result.error.context["returncode"] == 1


def test_non_zero_exit_without_stderr(monkeypatch):
    monkeypatch.setattr(bridge_module.subprocess, "run", lambda cmd, **kw: _Completed(returncode=2))
    result = BridgeInvoker(command="/usr/bin/osascript").run("x")
    assert result.error.message == "/usr/bin/osascript exited with status 2"


def test_timeout_is_a_bridge_error(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(bridge_module.subprocess, "run", fake_run)
    result = BridgeInvoker(timeout=5).run("x")
    assert result.error.error_type is ErrorType.BRIDGE_ERROR
    assert "timed out after 5 seconds" in result.error.message


def test_missing_binary_is_a_bridge_error(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(bridge_module.subprocess, "run", fake_run)
    result = BridgeInvoker(command="osascript").run("x")
    assert result.error.error_type is ErrorType.BRIDGE_ERROR
    assert result.error.message.startswith("Could not run osascript")


def test_zero_timeout_means_no_timeout():
    assert BridgeInvoker(timeout=0).timeout is None
    assert BridgeInvoker(timeout=2.5).timeout == 2.5


def test_calls_are_serialised(monkeypatch):
    observed = []

    def fake_run(cmd, **kwargs):
        observed.append(bridge_module._BRIDGE_LOCK.locked())
        return _Completed(stdout="ok")

    monkeypatch.setattr(bridge_module.subprocess, "run", fake_run)
    BridgeInvoker().run("x")
    assert observed == [True]
    assert not bridge_module._BRIDGE_LOCK.locked()
