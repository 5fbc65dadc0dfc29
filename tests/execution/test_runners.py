# tests/execution/test_runners.py
"""
Testes dos colaboradores concretos de execução (subprocess e paramiko).

`subprocess.run` e `paramiko.SSHClient` são substituídos via monkeypatch:
nenhum processo ou conexão real é criado.
"""

import subprocess

import pytest

from planguard.core.exceptions import CommandExecutionError, ExecutorConfigurationError
from planguard.core.plan.types import SessionTarget, WaitFor
from planguard.execution import runners
from planguard.execution.runners import (
    CommandRunner,
    ConditionChecker,
    ParamikoSessionRunner,
    RunnerConditionChecker,
    SessionRunner,
    SubprocessCommandRunner,
)


class _Recorder:
    def __init__(self, returncode=0, stdout="", stderr="", exc=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.exc = exc
        self.calls = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(argv, self.returncode, self.stdout, self.stderr)


def test_concrete_backends_satisfy_protocols(fake_runner_cls):
    assert isinstance(SubprocessCommandRunner(), CommandRunner)
    assert isinstance(ParamikoSessionRunner(), SessionRunner)
    assert isinstance(RunnerConditionChecker(fake_runner_cls()), ConditionChecker)


def test_command_runner_returns_stdout(monkeypatch, dummy_ctx):
    rec = _Recorder(stdout='{"Id": "x"}')
    monkeypatch.setattr(runners.subprocess, "run", rec)

    out = SubprocessCommandRunner(binary="aws").run(dummy_ctx, ["s3", "ls"])

    assert out == '{"Id": "x"}'
    argv, kwargs = rec.calls[0]
    assert argv == ["aws", "s3", "ls"]
    assert kwargs["capture_output"] is True
    assert kwargs["check"] is False


def test_command_runner_nonzero_exit_raises(monkeypatch, dummy_ctx):
    monkeypatch.setattr(runners.subprocess, "run", _Recorder(returncode=255, stderr="AccessDenied"))

    with pytest.raises(CommandExecutionError) as excinfo:
        SubprocessCommandRunner().run(dummy_ctx, ["ec2", "run-instances"])

    assert excinfo.value.details["returncode"] == 255
    assert excinfo.value.details["stderr"] == "AccessDenied"


def test_command_runner_missing_binary_raises(monkeypatch, dummy_ctx):
    monkeypatch.setattr(runners.subprocess, "run", _Recorder(exc=FileNotFoundError("aws")))
    with pytest.raises(CommandExecutionError):
        SubprocessCommandRunner().run(dummy_ctx, ["s3", "ls"])


def test_command_runner_timeout_raises(monkeypatch, dummy_ctx):
    monkeypatch.setattr(runners.subprocess, "run", _Recorder(exc=subprocess.TimeoutExpired("aws", 1)))
    with pytest.raises(CommandExecutionError):
        SubprocessCommandRunner(timeout_seconds=1).run(dummy_ctx, ["s3", "ls"])


class _FakeChannel:
    def __init__(self, status):
        self.status = status

    def recv_exit_status(self):
        return self.status


class _FakeStream:
    def __init__(self, data, status=0):
        self.data = data
        self.channel = _FakeChannel(status)

    def read(self):
        return self.data.encode("utf-8")


class _FakeSSHClient:
    """SSHClient falso: registra chamadas em `log` (compartilhado entre instâncias)."""

    log = []
    stdout = "done"
    stderr = ""
    status = 0
    connect_error = None

    def set_missing_host_key_policy(self, policy):
        self.log.append(("policy", type(policy).__name__))

    def connect(self, **kwargs):
        self.log.append(("connect", kwargs))
        if self.connect_error is not None:
            raise self.connect_error

    def exec_command(self, command, timeout=None):
        self.log.append(("exec", command))
        return None, _FakeStream(self.stdout, self.status), _FakeStream(self.stderr)

    def close(self):
        self.log.append(("close",))


@pytest.fixture
def ssh_client(monkeypatch):
    class Client(_FakeSSHClient):
        log = []

    monkeypatch.setattr(runners.paramiko, "SSHClient", Client)
    monkeypatch.setattr(runners.paramiko.RSAKey, "from_private_key_file", classmethod(lambda cls, path: f"key:{path}"))
    return Client


def test_session_runner_connect_run_close(ssh_client, dummy_ctx):
    sr = ParamikoSessionRunner(timeout_seconds=5)
    sr.connect(dummy_ctx, SessionTarget(host="1.2.3.4", user="ec2-user", key_path="/keys/k.pem"))
    out = sr.run(dummy_ctx, "echo hi")
    sr.close()

    assert out == "done"
    assert ssh_client.log[0] == ("policy", "AutoAddPolicy")
    assert ssh_client.log[1] == (
        "connect",
        {"hostname": "1.2.3.4", "port": 22, "username": "ec2-user", "pkey": "key:/keys/k.pem", "timeout": 5},
    )
    assert ssh_client.log[2:] == [("exec", "echo hi"), ("close",)]
    assert dummy_ctx.events[-1]["step_id"] == "exec.session"


def test_session_runner_connect_failure_raises(ssh_client, dummy_ctx):
    ssh_client.connect_error = OSError("no route to host")
    sr = ParamikoSessionRunner()

    with pytest.raises(CommandExecutionError) as excinfo:
        sr.connect(dummy_ctx, SessionTarget(host="unreachable.invalid"))

    assert excinfo.value.details["host"] == "unreachable.invalid"
    assert ssh_client.log[-1] == ("close",)
    with pytest.raises(ExecutorConfigurationError):
        sr.run(dummy_ctx, "echo hi")


def test_session_runner_requires_connect(dummy_ctx):
    sr = ParamikoSessionRunner()
    with pytest.raises(ExecutorConfigurationError):
        sr.run(dummy_ctx, "echo hi")
    with pytest.raises(ExecutorConfigurationError):
        sr.connect(dummy_ctx, SessionTarget(host=""))


def test_session_runner_nonzero_exit_raises(ssh_client, dummy_ctx):
    ssh_client.status = 1
    ssh_client.stderr = "boom"
    sr = ParamikoSessionRunner()
    sr.connect(dummy_ctx, SessionTarget(host="h", script_name="bootstrap"))

    with pytest.raises(CommandExecutionError) as excinfo:
        sr.run(dummy_ctx, "false")

    assert excinfo.value.details["script_name"] == "bootstrap"
    assert excinfo.value.details["returncode"] == 1
    assert excinfo.value.details["stderr"] == "boom"


def test_condition_checker_formats_template(fake_runner_cls, dummy_ctx):
    runner = fake_runner_cls()
    checker = RunnerConditionChecker(runner, ("wait", "--for=condition={condition}", "{resource}"))

    assert checker.check(dummy_ctx, WaitFor(resource="deploy/app", condition="available")) is True
    assert runner.calls == [["wait", "--for=condition=available", "deploy/app"]]


def test_condition_checker_failure_is_not_observed(fake_runner_cls, dummy_ctx):
    runner = fake_runner_cls(fail_on={"wait --for=condition=ready"})
    checker = RunnerConditionChecker(runner)

    assert checker.check(dummy_ctx, WaitFor(resource="pod/x", condition="ready")) is False
    assert dummy_ctx.events[-1]["step_id"] == "exec.wait"
    assert dummy_ctx.events[-1]["error_type"] == "RuntimeError"
