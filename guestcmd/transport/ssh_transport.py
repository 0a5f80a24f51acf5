"""SSH transport: run commands on guest machines via the system ssh client."""

import asyncio
import logging
import shlex

logger = logging.getLogger(__name__)

# ssh reserves this exit status for its own (connection/auth) failures
SSH_CONNECTION_ERROR = 255


def ssh_base_args(address, ssh_key, ssh_port, tty=False):
    """Build base SSH arguments."""
    args = [
        "ssh",
        "-o", "StrictHostKeyChecking=no",
        "-o", "UserKnownHostsFile=/dev/null",
        "-o", "LogLevel=ERROR",
        "-o", "ServerAliveInterval=60",
        "-o", "ServerAliveCountMax=5",
    ]
    if tty:
        args.append("-t")
    else:
        args += ["-o", "BatchMode=yes"]
    if ssh_key:
        args += ["-i", ssh_key]
    if ssh_port and ssh_port != 22:
        args += ["-p", str(ssh_port)]
    args.append(address)
    return args


async def run_remote(machine, command, tty=False, ssh_key=None, timeout=None, dry_run=False):
    """Run a shell command on a guest machine and return its exit code.

    Output is not captured: the child inherits our stdin/stdout/stderr so the
    remote command streams straight to the caller's terminal.

    Args:
        machine: target Machine
        command: shell command string executed by the guest's login shell
        tty: request a pseudo-terminal (interactive commands)
        ssh_key: key to use instead of the machine's own
        timeout: maximum seconds to wait, None for no limit
        dry_run: log the command instead of executing it

    Returns:
        The remote exit code (255 when ssh itself failed, 128 + N when ssh was
        killed by signal N), or 1 on local errors.
    """
    if dry_run:
        logger.info(f"[dry-run] ssh {machine.address}: {command}")
        return 0

    ssh_args = ssh_base_args(machine.address, ssh_key or machine.ssh_key, machine.ssh_port, tty=tty)
    ssh_args.append(command)
    logger.debug(f"Running: {shlex.join(ssh_args)}")

    try:
        proc = await asyncio.create_subprocess_exec(*ssh_args)
    except FileNotFoundError:
        logger.error("Error: 'ssh' not found. Is it installed and on PATH?")
        return 1

    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout)
    except TimeoutError:
        logger.error(f"Command timed out after {timeout}s on {machine.name}: {command}")
        proc.kill()
        await proc.wait()
        return 1

    rc = proc.returncode
    if rc < 0:
        # Killed by a signal: report it the way a shell does (128 + signal number)
        logger.error(f"ssh to {machine.name} was terminated by signal {-rc}")
        return 128 - rc
    if rc == SSH_CONNECTION_ERROR:
        logger.error(f"SSH connection to {machine.address}:{machine.ssh_port} failed (machine '{machine.name}')")
    return rc
