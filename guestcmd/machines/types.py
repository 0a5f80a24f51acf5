"""Guest machine types."""

from dataclasses import dataclass

RUNNING_STATE = "running"


@dataclass
class Machine:
    """One guest machine from the inventory, with its SSH connection details."""

    name: str
    host: str
    username: str = ""
    ssh_port: int = 22
    ssh_key: str | None = None
    state: str = RUNNING_STATE
    primary: bool = False

    @property
    def address(self) -> str:
        """SSH address string (user@host)."""
        return f"{self.username}@{self.host}" if self.username else self.host

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING_STATE

    @classmethod
    def from_dict(cls, d: dict) -> "Machine":
        """Build a Machine from one inventory entry."""
        missing = [key for key in ("name", "host") if not d.get(key)]
        if missing:
            raise ValueError(f"Inventory entry {d!r} is missing required field(s): {', '.join(missing)}")
        return cls(
            name=str(d["name"]),
            host=str(d["host"]),
            username=str(d.get("username") or ""),
            ssh_port=int(d.get("ssh_port") or 22),
            ssh_key=str(d["ssh_key"]) if d.get("ssh_key") is not None else None,
            state=str(d.get("state") or RUNNING_STATE),
            primary=bool(d.get("primary", False)),
        )
