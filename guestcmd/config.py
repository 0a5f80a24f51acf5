"""Configuration loading: guestcmd.yaml."""

import logging
import os

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GUESTCMD_CONFIG"
DEFAULT_CONFIG_FILE = "guestcmd.yaml"
DEFAULT_INVENTORY_FILE = "machines.yaml"
DEFAULT_REMOTE_DIR = "/vagrant"

_KNOWN_KEYS = {"inventory", "remote_dir", "ssh_key", "commands"}


def find_config_path(explicit_path=None):
    """Pick the config file: --config, then $GUESTCMD_CONFIG, then ./guestcmd.yaml.

    Returns (path, required). A path that was asked for explicitly must exist;
    the implicit ./guestcmd.yaml is optional.
    """
    if explicit_path:
        return explicit_path, True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path, True
    return DEFAULT_CONFIG_FILE, False


def load_config(config_path=None, required=False) -> dict:
    """Load configuration from YAML file and fill in defaults.

    Relative paths inside the file (inventory, ssh_key) are resolved against
    the directory holding the config file.
    """
    config = {}
    base_dir = os.getcwd()

    if config_path and os.path.isfile(config_path):
        with open(config_path) as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Error parsing YAML config {config_path}: {e}") from e
        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        base_dir = os.path.dirname(os.path.abspath(config_path))
        logger.debug(f"Loaded config from {config_path}")
    elif required:
        raise FileNotFoundError(f"Config file '{config_path}' not found.")

    unknown = sorted(set(config) - _KNOWN_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown config key(s): {', '.join(unknown)}")

    commands = config.get("commands") or {}
    if not isinstance(commands, dict):
        raise ValueError("'commands' in config must be a mapping of command name to settings")

    ssh_key = config.get("ssh_key")
    return {
        "inventory": expand_path(str(config.get("inventory") or DEFAULT_INVENTORY_FILE), base_dir),
        "remote_dir": config.get("remote_dir", DEFAULT_REMOTE_DIR) or "",
        "ssh_key": expand_path(str(ssh_key), base_dir) if ssh_key else None,
        "commands": commands,
    }


def expand_path(path: str, base_dir: str) -> str:
    """Expand user home directory and environment variables in path."""
    expanded = os.path.expanduser(os.path.expandvars(path))
    if not os.path.isabs(expanded):
        expanded = os.path.normpath(os.path.join(base_dir, expanded))
    return expanded
