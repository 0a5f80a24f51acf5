"""Guest commands: shared logic for the named sub-commands.

Every guest command follows the same flow: pick one running machine from
the inventory, run the command's shell string there over SSH, and exit with
the remote exit code.
"""

import asyncio
import logging
import shlex
import sys

from guestcmd.commands.builtin import BUILTIN_COMMANDS
from guestcmd.commands.types import GuestCommand
from guestcmd.machines import find_target, load_inventory
from guestcmd.transport import run_remote, wait_for_ssh

logger = logging.getLogger(__name__)

# Sub-commands that are not guest commands and cannot be overridden
RESERVED_NAMES = {"commands", "machines"}


def resolve_commands(overrides=None):
    """Merge the built-in commands with the 'commands' section of the config.

    An entry for an existing name replaces only the fields it sets; an entry
    for a new name defines a new command and must set 'command'.

    Returns a dict of name -> GuestCommand, built-ins first.
    """
    commands = {gc.name: gc for gc in BUILTIN_COMMANDS}

    for name, entry in (overrides or {}).items():
        name = str(name)
        if name in RESERVED_NAMES:
            raise ValueError(f"Command name '{name}' is reserved")
        if entry is None:
            entry = {}
        elif isinstance(entry, str):
            entry = {"command": entry}
        elif not isinstance(entry, dict):
            raise ValueError(f"Command '{name}' must be a command string or a mapping")

        if name in commands:
            commands[name] = commands[name].with_overrides(entry)
        elif entry.get("command"):
            commands[name] = GuestCommand(name=name, command="").with_overrides(entry)
        else:
            raise ValueError(f"Command '{name}' is missing a 'command' string")

        if not commands[name].command:
            raise ValueError(f"Command '{name}' has an empty 'command' string")

    return commands


def build_remote_command(command, remote_dir="", extra_args=None):
    """Assemble the shell string run in the guest.

    extra_args is split shell-style and re-quoted, so each argument reaches
    the remote command exactly as it was typed.
    """
    full_cmd = command
    if extra_args:
        full_cmd = f"{full_cmd} {shlex.join(shlex.split(extra_args))}"
    if remote_dir:
        full_cmd = f"cd {shlex.quote(remote_dir)} && {full_cmd}"
    return full_cmd


def handle_guest_command(args):
    """Handle a guest command and exit with the remote exit code."""
    rc = asyncio.run(_handle_guest_command(args))
    sys.exit(rc)


async def _handle_guest_command(args):
    settings = args.settings
    guest_command = args.guest_command
    inventory_path = args.inventory or settings["inventory"]
    # --args is a shell string; arguments after -- are taken verbatim
    extra_args = " ".join(filter(None, [args.args, shlex.join(getattr(args, "passthrough", []))]))

    try:
        machines = load_inventory(inventory_path)
        target = find_target(machines, args.machine)
        remote_command = build_remote_command(guest_command.command, settings["remote_dir"], extra_args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1

    # --ssh-key beats the inventory key; the config key only fills gaps
    ssh_key = args.ssh_key or target.ssh_key or settings["ssh_key"]
    logger.debug(f"[{guest_command.name}] target: {target.name} ({target.address}:{target.ssh_port})")

    if args.wait_ssh:
        ready = await wait_for_ssh(target, ssh_key, timeout=args.wait_ssh_timeout, dry_run=args.dry_run)
        if not ready:
            return 1

    return await run_remote(
        target,
        remote_command,
        tty=guest_command.tty,
        ssh_key=ssh_key,
        timeout=args.timeout,
        dry_run=args.dry_run,
    )


def register_guest_command(subparsers, guest_command):
    """Register one guest command as a sub-command."""
    parser = subparsers.add_parser(
        guest_command.name,
        help=guest_command.help or f"Run '{guest_command.command}' in the guest",
        description=f"Runs '{guest_command.command}' on a running guest machine.",
    )
    parser.add_argument("machine", nargs="?", default=None, help="Target machine name or /regex/ (default: the only or primary machine)")
    parser.add_argument("--args", default=None, help="Extra arguments appended to the command (shell-quoted string; write --args=-v for a leading dash, or pass them after --)")
    parser.add_argument("--ssh-key", default=None, help="SSH key path (overrides the inventory key)")
    parser.add_argument("--timeout", type=int, default=None, help="Maximum seconds to wait for the command (default: no limit)")
    parser.add_argument("--wait-ssh", action="store_true", help="Wait for SSH connectivity before running the command")
    parser.add_argument("--wait-ssh-timeout", type=int, default=120, help="SSH wait timeout in seconds (default: 120)")
    parser.add_argument("--dry-run", action="store_true", help="Print the command without executing")
    parser.set_defaults(func=handle_guest_command, guest_command=guest_command)


def register_guest_commands(subparsers, commands):
    """Register every resolved guest command."""
    for guest_command in commands.values():
        register_guest_command(subparsers, guest_command)
