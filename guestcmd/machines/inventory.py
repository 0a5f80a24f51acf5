"""Machine inventory loading and single-target lookup.

The inventory is a YAML file written by the host orchestration tool (or by
hand) that lists the guest machines and how to reach them over SSH:

    machines:
      - name: default
        host: 127.0.0.1
        username: vagrant
        ssh_port: 2222
        ssh_key: .vagrant/machines/default/virtualbox/private_key
        state: running
        primary: true
"""

import logging
import os
import re

import yaml

from guestcmd.config import expand_path
from guestcmd.machines.types import Machine

logger = logging.getLogger(__name__)


def load_inventory(inventory_path):
    """Load machines from an inventory YAML file.

    Returns a list of Machine objects in file order.
    """
    if not os.path.isfile(inventory_path):
        raise FileNotFoundError(f"Inventory file not found: {inventory_path}")

    with open(inventory_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing inventory {inventory_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Inventory {inventory_path} must be a mapping with a 'machines' list")

    entries = data.get("machines") or []
    if not isinstance(entries, list):
        raise ValueError(f"'machines' in {inventory_path} must be a list")

    base_dir = os.path.dirname(os.path.abspath(inventory_path))
    machines = []
    seen = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Inventory entry {entry!r} must be a mapping")
        machine = Machine.from_dict(entry)
        if machine.name in seen:
            raise ValueError(f"Duplicate machine name '{machine.name}' in {inventory_path}")
        seen.add(machine.name)
        if machine.ssh_key:
            machine.ssh_key = expand_path(machine.ssh_key, base_dir)
        machines.append(machine)

    logger.debug(f"Loaded {len(machines)} machine(s) from {inventory_path}")
    return machines


def _match_names(machines, name):
    """Return machines selected by name: exact, or regex when wrapped in slashes."""
    if len(name) > 2 and name.startswith("/") and name.endswith("/"):
        try:
            pattern = re.compile(name[1:-1])
        except re.error as e:
            raise ValueError(f"Invalid machine name pattern {name}: {e}") from e
        return [m for m in machines if pattern.search(m.name)]
    return [m for m in machines if m.name == name]


def find_target(machines, name=None):
    """Select exactly one running machine to run a command against.

    With a name, the machine must exist (a /regex/ must match exactly one
    machine). Without a name, the sole machine is used, or the one marked
    primary when there are several.
    """
    if not machines:
        raise ValueError("No machines defined in the inventory")

    available = ", ".join(m.name for m in machines)

    if name:
        matches = _match_names(machines, name)
        if not matches:
            raise ValueError(f"Unknown machine '{name}'. Available machines: {available}")
        if len(matches) > 1:
            matched = ", ".join(m.name for m in matches)
            raise ValueError(f"Pattern {name} matches several machines ({matched}); this command targets one machine")
        target = matches[0]
    elif len(machines) == 1:
        target = machines[0]
    else:
        primaries = [m for m in machines if m.primary]
        if len(primaries) != 1:
            raise ValueError(
                f"This command targets a single machine but the inventory defines several ({available}). "
                f"Name one, or mark one as primary."
            )
        target = primaries[0]

    if not target.is_running:
        raise ValueError(f"Machine '{target.name}' is not running (state: {target.state})")

    return target
