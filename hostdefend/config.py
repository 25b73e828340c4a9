from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List
from pathlib import Path
import copy
import sys

import yaml

from .integrity import CRITICAL_FILES, MTIME_WINDOW
from .models import SIGNATURES, ConfigError
from .whitelist import DEFAULT_USERS, Whitelist

DEFAULT_CONFIG: Dict[str, Any] = {
    "monitor": {
        "interval": 5.0,
        "critical_files": list(CRITICAL_FILES),
        "file_mode": "snapshot",
        "mtime_window": MTIME_WINDOW,
        "probe": "ss",
    },
    "persistence": {
        "ignore_users": list(DEFAULT_USERS),
        "extra_signatures": [],
    },
    "harden": {
        "shell_whitelist": list(DEFAULT_USERS),
    },
    "backup": {
        "dest": "./backups",
        "targets": ["/etc/dovecot", "/etc/postfix"],
    },
}

def load_config(path: str | None) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if not path:
        return cfg
    try:
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError("top level must be a mapping")
        # per-section merge so a partial section keeps the other defaults
        for section, values in data.items():
            if isinstance(values, dict) and isinstance(cfg.get(section), dict):
                cfg[section].update(values)
            else:
                cfg[section] = values
        print(f"Loaded config from {path}", file=sys.stderr)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Warning: Could not load config {path}: {e}", file=sys.stderr)
    return cfg


def parse_interval(value: Any) -> float:
    try:
        interval = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"interval must be a number, got {value!r}")
    if interval < 0:
        raise ConfigError(f"interval must be >= 0, got {interval}")
    return interval


@dataclass
class Settings:
    interval: float = 5.0
    critical_files: List[str] = field(default_factory=lambda: list(CRITICAL_FILES))
    file_mode: str = "snapshot"
    mtime_window: float = MTIME_WINDOW
    probe: str = "ss"
    ignore_users: Whitelist = field(default_factory=lambda: Whitelist.of(DEFAULT_USERS))
    shell_whitelist: Whitelist = field(default_factory=lambda: Whitelist.of(DEFAULT_USERS))
    signatures: List[str] = field(default_factory=lambda: list(SIGNATURES))
    backup_dest: str = "./backups"
    backup_targets: List[str] = field(default_factory=list)
    auto_remediate: bool = False

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Settings":
        mon = cfg.get("monitor") or {}
        pers = cfg.get("persistence") or {}
        bak = cfg.get("backup") or {}
        extra = [s for s in pers.get("extra_signatures") or [] if s and s not in SIGNATURES]
        return cls(
            interval=parse_interval(mon.get("interval", 5.0)),
            critical_files=list(mon.get("critical_files") or CRITICAL_FILES),
            file_mode=str(mon.get("file_mode", "snapshot")),
            mtime_window=float(mon.get("mtime_window", MTIME_WINDOW)),
            probe=str(mon.get("probe", "ss")),
            ignore_users=Whitelist.from_config(cfg, "persistence", "ignore_users"),
            shell_whitelist=Whitelist.from_config(cfg, "harden", "shell_whitelist"),
            signatures=list(SIGNATURES) + extra,
            backup_dest=str(bak.get("dest") or "./backups"),
            backup_targets=list(bak.get("targets") or ["/etc/dovecot", "/etc/postfix"]),
        )
