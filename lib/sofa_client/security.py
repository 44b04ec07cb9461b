from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Members:
    names: list[str] = field(default_factory=list)
    roles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {"names": list(self.names), "roles": list(self.roles)}

    @classmethod
    def from_dict(cls, data: Any) -> "Members":
        if not isinstance(data, dict):
            return cls()
        return cls(
            names=[str(n) for n in data.get("names") or []],
            roles=[str(r) for r in data.get("roles") or []],
        )


@dataclass
class Security:
    """The ``_security`` object of a database. It carries no revision."""

    members: Members = field(default_factory=Members)
    admins: Members = field(default_factory=Members)

    def to_dict(self) -> dict[str, Any]:
        return {"members": self.members.to_dict(), "admins": self.admins.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> "Security":
        if not isinstance(data, dict):
            return cls()
        return cls(
            members=Members.from_dict(data.get("members")),
            admins=Members.from_dict(data.get("admins")),
        )
