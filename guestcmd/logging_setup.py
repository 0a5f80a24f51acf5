"""CLI logging setup: simple %(message)s format."""

import logging
import sys

from guestcmd.redact import SecretRedactingFilter


def setup_cli_logging(verbose=False):
    """Configure root logger with plain message format for CLI commands.

    Produces output identical to print(). With verbose, debug records
    (such as the full ssh command line) are shown too.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    root.filters.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    # Filter on the handler so records from child loggers are redacted too
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
