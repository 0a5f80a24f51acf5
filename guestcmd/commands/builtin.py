"""Built-in guest commands.

Each one runs a fixed command string from the project directory inside the
guest. Config can override these or add more (see resolve_commands).
"""

from guestcmd.commands.types import GuestCommand

BUILTIN_COMMANDS = [
    GuestCommand(
        name="console",
        command="bundle exec rails console",
        help="Open a Rails console in the guest",
        tty=True,
    ),
    GuestCommand(
        name="server",
        command="bundle exec rails server -b 0.0.0.0",
        help="Start the Rails server in the guest",
        tty=True,
    ),
    GuestCommand(
        name="migrate",
        command="bundle exec rake db:migrate",
        help="Run database migrations in the guest",
    ),
    GuestCommand(
        name="test",
        command="bundle exec rake test",
        help="Run the test suite in the guest",
    ),
]
