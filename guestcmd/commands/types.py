"""Guest command dataclass types."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class GuestCommand:
    """A named sub-command that runs one fixed shell command in the guest."""

    name: str
    command: str
    help: str = ""
    tty: bool = False

    def with_overrides(self, d: dict) -> "GuestCommand":
        """Return a copy with the fields present in a config entry replaced."""
        fields = {key: d[key] for key in ("command", "help", "tty") if key in d}
        if "tty" in fields and not isinstance(fields["tty"], bool):
            raise ValueError(f"Command '{self.name}': 'tty' must be true or false, got {fields['tty']!r}")
        return replace(self, **fields)
