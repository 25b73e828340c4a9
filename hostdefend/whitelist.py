from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable

DEFAULT_USERS = ("root", "sysadmin")

@dataclass(frozen=True)
class Whitelist:
    users: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, users: Iterable[str]) -> "Whitelist":
        return cls(users=frozenset(u for u in users if u))

    @classmethod
    def from_config(cls, cfg: Dict, section: str, key: str) -> "Whitelist":
        users = (cfg.get(section) or {}).get(key)
        if users is None:
            users = DEFAULT_USERS
        return cls.of(users)

    def is_allowed(self, user: str) -> bool:
        return user in self.users
