#!/usr/bin/env python3
"""Guest command tools: CLI entrypoint."""

import argparse
import logging
import sys

from guestcmd.commands import register_guest_commands, resolve_commands
from guestcmd.commands.catalog import register_catalog_commands
from guestcmd.config import find_config_path, load_config
from guestcmd.logging_setup import setup_cli_logging

logger = logging.getLogger(__name__)

# Global options that take a value
_VALUE_OPTIONS = {"--config", "--inventory"}


def _add_global_arguments(parser):
    parser.add_argument("--config", default=None, help="Config file (default: $GUESTCMD_CONFIG or ./guestcmd.yaml)")
    parser.add_argument("--inventory", default=None, help="Machine inventory file (default: from config, else ./machines.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output, including the full ssh command")


def split_passthrough(argv):
    """Split argv at the first '--' into (own arguments, arguments for the guest command)."""
    if "--" in argv:
        idx = argv.index("--")
        return argv[:idx], argv[idx + 1:]
    return argv, []


def global_prefix(argv):
    """Return the leading global options, stopping at the sub-command name.

    Options of the sub-command (including values such as --args=-v) are
    never seen by the pre-parser.
    """
    prefix = []
    expect_value = False
    for token in argv:
        if expect_value:
            expect_value = False
        elif token in _VALUE_OPTIONS:
            expect_value = True
        elif not token.startswith("-"):
            break
        prefix.append(token)
    return prefix


def main(argv=None):
    argv = sys.argv[1:] if argv is None else list(argv)
    argv, passthrough = split_passthrough(argv)

    # Config decides which sub-commands exist, so read it before building the parser
    pre_parser = argparse.ArgumentParser(add_help=False)
    _add_global_arguments(pre_parser)
    pre_args, _ = pre_parser.parse_known_args(global_prefix(argv))
    setup_cli_logging(verbose=pre_args.verbose)

    config_path, required = find_config_path(pre_args.config)
    try:
        settings = load_config(config_path, required=required)
        commands = resolve_commands(settings["commands"])
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description="Run project commands inside a guest VM over SSH",
        epilog="Arguments after '--' are appended to the guest command, e.g. guestcmd test -- -v",
    )
    _add_global_arguments(parser)
    parser.set_defaults(settings=settings)
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_guest_commands(subparsers, commands)
    register_catalog_commands(subparsers, commands)

    args = parser.parse_args(argv)
    if passthrough and getattr(args, "guest_command", None) is None:
        parser.error(f"'{args.command}' does not take extra arguments: {' '.join(passthrough)}")
    args.passthrough = passthrough
    args.func(args)


if __name__ == "__main__":
    main()
