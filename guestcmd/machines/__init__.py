"""Guest machines: inventory types and target lookup."""

from guestcmd.machines.inventory import find_target, load_inventory
from guestcmd.machines.types import Machine
