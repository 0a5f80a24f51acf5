"""SSH readiness polling."""

import asyncio
import logging

from guestcmd.transport.ssh_transport import ssh_base_args

logger = logging.getLogger(__name__)


async def wait_for_ssh(machine, ssh_key=None, timeout=120, interval=5, dry_run=False):
    """Poll SSH connectivity until success or timeout.

    Returns:
        True if SSH connected, False on timeout.
    """
    if dry_run:
        logger.info(f"[dry-run] wait for SSH on {machine.address}:{machine.ssh_port} (timeout {timeout}s)")
        return True

    logger.info(f"Waiting for SSH connectivity to {machine.name} ({machine.address}:{machine.ssh_port})...")
    elapsed = 0
    while elapsed < timeout:
        args = ssh_base_args(machine.address, ssh_key or machine.ssh_key, machine.ssh_port)
        # Add ConnectTimeout for fast failure during polling
        args.insert(-1, "-o")
        args.insert(-1, "ConnectTimeout=5")
        args.append("true")
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error("Error: 'ssh' not found. Is it installed and on PATH?")
            return False
        await proc.communicate()
        if proc.returncode == 0:
            return True
        await asyncio.sleep(interval)
        elapsed += interval

    logger.error(f"Timeout after {timeout}s waiting for SSH connectivity to {machine.address}:{machine.ssh_port}")
    return False
