"""Informational sub-commands: list guest commands and inventory machines."""

import logging
import sys

from guestcmd.machines import load_inventory

logger = logging.getLogger(__name__)


def handle_commands(args):
    """Handle the commands sub-command."""
    commands = args.commands
    width = max(len(name) for name in commands)
    for name, gc in commands.items():
        tty = " (tty)" if gc.tty else ""
        logger.info(f"{name:<{width}}  {gc.command}{tty}")


def handle_machines(args):
    """Handle the machines sub-command."""
    inventory_path = args.inventory or args.settings["inventory"]
    try:
        machines = load_inventory(inventory_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    if not machines:
        logger.info(f"No machines defined in {inventory_path}")
        return

    width = max(len(m.name) for m in machines)
    for m in machines:
        marker = " (primary)" if m.primary else ""
        logger.info(f"{m.name:<{width}}  {m.address}:{m.ssh_port}  {m.state}{marker}")


def register_catalog_commands(subparsers, commands):
    """Register the commands and machines sub-commands."""
    commands_parser = subparsers.add_parser("commands", help="List available guest commands")
    commands_parser.set_defaults(func=handle_commands, commands=commands)

    machines_parser = subparsers.add_parser("machines", help="List machines in the inventory")
    machines_parser.set_defaults(func=handle_machines)
