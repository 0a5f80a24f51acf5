"""Secret redaction for log output.

Dry-run and debug lines echo full command strings, which may carry
credentials pulled from the environment.
"""

import logging
import os
import re

# Env vars redacted by exact name
_SECRET_ENV_VARS = [
    "GUESTCMD_SSH_PASSPHRASE",
]

# Env vars redacted by name suffix
_SECRET_ENV_SUFFIXES = ("_TOKEN", "_SECRET", "_PASSWORD", "_API_KEY")

_MIN_SECRET_LENGTH = 8  # skip short values to avoid false positives


def _is_secret_var(name: str) -> bool:
    return name in _SECRET_ENV_VARS or name.upper().endswith(_SECRET_ENV_SUFFIXES)


def _collect_secret_values() -> set[str]:
    values = set()
    for var, val in os.environ.items():
        if _is_secret_var(var) and len(val) >= _MIN_SECRET_LENGTH:
            values.add(val)
    return values


def _build_patterns(values: set[str]) -> list[re.Pattern]:
    # Sort by length descending so longer values match first
    return [re.compile(re.escape(v)) for v in sorted(values, key=len, reverse=True)]


# Lazy-initialized module cache
_patterns: list[re.Pattern] | None = None


def _get_patterns() -> list[re.Pattern]:
    global _patterns
    if _patterns is None:
        _patterns = _build_patterns(_collect_secret_values())
    return _patterns


def _apply(text: str, patterns: list[re.Pattern]) -> str:
    for p in patterns:
        text = p.sub("***", text)
    return text


def redact_secrets(text: str) -> str:
    """Replace known secret env var values with '***'."""
    return _apply(text, _get_patterns())


class SecretRedactingFilter(logging.Filter):
    """Logging filter that replaces secret values in log records with '***'.

    Handles both f-string messages (msg is pre-formatted) and
    %-style messages (msg + args).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        patterns = _get_patterns()
        if patterns:
            record.msg = _apply(str(record.msg), patterns)
            if isinstance(record.args, dict):
                record.args = {k: _apply(v, patterns) if isinstance(v, str) else v for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(_apply(a, patterns) if isinstance(a, str) else a for a in record.args)
        return True
