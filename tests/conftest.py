"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest
import yaml


PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def run_cli(project_root, tmp_path):
    """Return a callable that invokes the guestcmd CLI as a subprocess.

    Runs from tmp_path so no stray ./guestcmd.yaml is picked up. Extra
    environment variables can be passed with env=.
    """

    def _run(*args, env=None, cwd=None):
        run_env = {k: v for k, v in os.environ.items() if k != "GUESTCMD_CONFIG"}
        run_env["PYTHONPATH"] = os.pathsep.join(filter(None, [project_root, run_env.get("PYTHONPATH")]))
        if env:
            run_env.update(env)
        result = subprocess.run(
            [sys.executable, "-m", "guestcmd.guestcmd", *args],
            capture_output=True,
            text=True,
            cwd=cwd or str(tmp_path),
            env=run_env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


@pytest.fixture
def make_inventory(tmp_path):
    """Return a factory that writes a temporary machines.yaml."""

    def _make(machines=None, filename="machines.yaml"):
        if machines is None:
            machines = [
                {
                    "name": "default",
                    "host": "127.0.0.1",
                    "username": "vagrant",
                    "ssh_port": 2222,
                    "ssh_key": "keys/private_key",
                    "state": "running",
                }
            ]
        inventory_path = tmp_path / filename
        with open(inventory_path, "w") as f:
            yaml.dump({"machines": machines}, f)
        return str(inventory_path)

    return _make


@pytest.fixture
def multi_machines():
    """Inventory entries for a multi-machine setup."""
    return [
        {"name": "web1", "host": "10.0.0.11", "username": "vagrant", "state": "running"},
        {"name": "web2", "host": "10.0.0.12", "username": "vagrant", "state": "running"},
        {"name": "db", "host": "10.0.0.20", "username": "vagrant", "state": "poweroff"},
    ]


@pytest.fixture
def fake_ssh(tmp_path):
    """Return a factory that puts a fake 'ssh' script first on PATH.

    The script echoes its full argument list and its last argument (the
    remote command), then exits with the given status, or kills itself
    with the given signal. Returns the env dict to pass to run_cli.
    """

    def _make(exit_code=0, signal=None):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / "ssh"
        script.write_text(
            "#!/bin/sh\n"
            'for last; do :; done\n'
            'echo "args: $*"\n'
            'echo "remote: $last"\n'
            + (f"kill -{signal} $$\n" if signal else "")
            + f"exit {exit_code}\n"
        )
        script.chmod(0o755)
        return {"PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}"}

    return _make
