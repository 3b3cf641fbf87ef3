from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .cli_shared import ConfigCorrupt, InvalidArgument

PORT_MIN = 1
PORT_MAX = 65535


@dataclass(frozen=True)
class Profile:
    """Connection parameters saved under a profile name.

    ``None`` means "not provided"; such fields are left out of the stored
    record entirely.
    """

    host: str
    user: str | None = None
    port: int | None = None
    key: str | None = None

    @classmethod
    def build(
        cls,
        *,
        host: str,
        user: str | None = None,
        port: int | None = None,
        key: str | None = None,
    ) -> "Profile":
        if not str(host or "").strip():
            raise InvalidArgument("host is required (pass -h/--host)")
        if port is not None and not (PORT_MIN <= int(port) <= PORT_MAX):
            raise InvalidArgument(f"port must be between {PORT_MIN} and {PORT_MAX}, got {port}")
        # An empty user or key means "not provided".
        return cls(
            host=host,
            user=user or None,
            port=None if port is None else int(port),
            key=key or None,
        )

    @classmethod
    def from_dict(cls, name: str, raw: Any) -> "Profile":
        if not isinstance(raw, dict):
            raise ConfigCorrupt(f"profile {name!r}: expected JSON object")
        host = raw.get("host")
        if not isinstance(host, str) or not host:
            raise ConfigCorrupt(f"profile {name!r}: missing or empty 'host'")
        for field in ("user", "key"):
            if field in raw and not isinstance(raw[field], str):
                raise ConfigCorrupt(f"profile {name!r}: '{field}' must be a string")
        port = raw.get("port")
        if "port" in raw:
            # bool is an int subclass; reject it explicitly.
            if isinstance(port, bool) or not isinstance(port, int):
                raise ConfigCorrupt(f"profile {name!r}: 'port' must be an integer")
            if not (PORT_MIN <= port <= PORT_MAX):
                raise ConfigCorrupt(f"profile {name!r}: 'port' out of range: {port}")
        return cls(host=host, user=raw.get("user"), port=port, key=raw.get("key"))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"host": self.host}
        if self.user is not None:
            out["user"] = self.user
        if self.port is not None:
            out["port"] = self.port
        if self.key is not None:
            out["key"] = self.key
        return out

    @property
    def target(self) -> str:
        if self.user is not None:
            return f"{self.user}@{self.host}"
        return self.host

    def ssh_args(self) -> list[str]:
        """Arguments for the SSH client, in the order a person would type them.

        Flags come first (port, then key) and the ``[user@]host`` target last.
        """
        args: list[str] = []
        if self.port is not None:
            args += ["-p", str(self.port)]
        if self.key is not None:
            args += ["-i", self.key]
        args.append(self.target)
        return args

    def display(self) -> str:
        s = self.target
        if self.port is not None:
            s += f":{self.port}"
        if self.key is not None:
            s += f" (key: {self.key})"
        return s
