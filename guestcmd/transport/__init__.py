"""Remote execution over SSH."""

from guestcmd.transport.ssh import wait_for_ssh
from guestcmd.transport.ssh_transport import run_remote, ssh_base_args
