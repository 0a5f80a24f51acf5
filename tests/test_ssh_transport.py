"""Tests for guestcmd.transport: ssh argv building and remote execution."""

import asyncio
import logging
from unittest.mock import AsyncMock, patch

from guestcmd.machines import Machine
from guestcmd.transport import run_remote, ssh_base_args, wait_for_ssh


MACHINE = Machine(name="default", host="127.0.0.1", username="vagrant", ssh_port=2222, ssh_key="/keys/default")


class _FakeProc:
    def __init__(self, returncode):
        self.returncode = returncode

    async def wait(self):
        return self.returncode

    async def communicate(self):
        return b"", b""


class _HangingProc:
    returncode = None

    def __init__(self):
        self.killed = False

    async def wait(self):
        if not self.killed:
            await asyncio.sleep(10)
        self.returncode = -9
        return self.returncode

    def kill(self):
        self.killed = True


# ── ssh_base_args ─────────────────────────────────────────────────


def test_ssh_base_args_batch_mode():
    args = ssh_base_args("vagrant@127.0.0.1", "/keys/default", 2222)
    assert args[0] == "ssh"
    assert "BatchMode=yes" in args
    assert "-t" not in args
    assert args[args.index("-i") + 1] == "/keys/default"
    assert args[args.index("-p") + 1] == "2222"
    assert args[-1] == "vagrant@127.0.0.1"


def test_ssh_base_args_tty():
    args = ssh_base_args("vagrant@127.0.0.1", None, 22, tty=True)
    assert "-t" in args
    assert "BatchMode=yes" not in args


def test_ssh_base_args_default_port_and_no_key():
    args = ssh_base_args("host", None, 22)
    assert "-p" not in args
    assert "-i" not in args


# ── run_remote ───────────────────────────────────────────────────


def test_run_remote_dry_run(caplog):
    caplog.set_level(logging.INFO)
    with patch("asyncio.create_subprocess_exec", new=AsyncMock()) as mock_exec:
        rc = asyncio.run(run_remote(MACHINE, "cd /vagrant && make", dry_run=True))
    assert rc == 0
    mock_exec.assert_not_called()
    assert "[dry-run] ssh vagrant@127.0.0.1: cd /vagrant && make" in caplog.text


def test_run_remote_returns_remote_exit_code():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(3))) as mock_exec:
        rc = asyncio.run(run_remote(MACHINE, "make test"))
    assert rc == 3
    argv = mock_exec.call_args.args
    assert argv[-1] == "make test"
    assert argv[-2] == "vagrant@127.0.0.1"
    # Output is streamed, not captured
    assert "stdout" not in mock_exec.call_args.kwargs


def test_run_remote_key_for_machine_without_one():
    machine = Machine(name="a", host="h")
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(0))) as mock_exec:
        asyncio.run(run_remote(machine, "true", ssh_key="/fallback"))
    argv = list(mock_exec.call_args.args)
    assert argv[argv.index("-i") + 1] == "/fallback"


def test_run_remote_override_key_wins():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(0))) as mock_exec:
        asyncio.run(run_remote(MACHINE, "true", ssh_key="/override"))
    argv = list(mock_exec.call_args.args)
    assert argv[argv.index("-i") + 1] == "/override"


def test_run_remote_machine_key_without_override():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(0))) as mock_exec:
        asyncio.run(run_remote(MACHINE, "true"))
    argv = list(mock_exec.call_args.args)
    assert argv[argv.index("-i") + 1] == "/keys/default"


def test_run_remote_tty_flag():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(0))) as mock_exec:
        asyncio.run(run_remote(MACHINE, "bundle exec rails console", tty=True))
    assert "-t" in mock_exec.call_args.args


def test_run_remote_connection_failure_logged(caplog):
    caplog.set_level(logging.INFO)
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(255))):
        rc = asyncio.run(run_remote(MACHINE, "true"))
    assert rc == 255
    assert "SSH connection to vagrant@127.0.0.1:2222 failed" in caplog.text


def test_run_remote_killed_by_signal(caplog):
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(-15))):
        rc = asyncio.run(run_remote(MACHINE, "true"))
    assert rc == 143
    assert "terminated by signal 15" in caplog.text


def test_run_remote_ssh_missing(caplog):
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(side_effect=FileNotFoundError)):
        rc = asyncio.run(run_remote(MACHINE, "true"))
    assert rc == 1
    assert "'ssh' not found" in caplog.text


def test_run_remote_timeout_kills_process(caplog):
    proc = _HangingProc()
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)):
        rc = asyncio.run(run_remote(MACHINE, "sleep 100", timeout=0.01))
    assert rc == 1
    assert proc.killed
    assert "timed out" in caplog.text


# ── wait_for_ssh ─────────────────────────────────────────────────


def test_wait_for_ssh_success():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(0))) as mock_exec:
        assert asyncio.run(wait_for_ssh(MACHINE, timeout=10, interval=1))
    argv = mock_exec.call_args.args
    assert argv[-1] == "true"
    assert "ConnectTimeout=5" in argv


def test_wait_for_ssh_timeout(caplog):
    with patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=_FakeProc(255))), \
            patch("asyncio.sleep", new=AsyncMock()):
        assert not asyncio.run(wait_for_ssh(MACHINE, timeout=3, interval=1))
    assert "Timeout after 3s" in caplog.text


def test_wait_for_ssh_dry_run():
    with patch("asyncio.create_subprocess_exec", new=AsyncMock()) as mock_exec:
        assert asyncio.run(wait_for_ssh(MACHINE, dry_run=True))
    mock_exec.assert_not_called()
