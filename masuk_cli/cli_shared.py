from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any


class MasukError(Exception):
    pass


class InvalidArgument(MasukError):
    pass


class ProfileNotFound(MasukError):
    pass


class ConfigCorrupt(MasukError):
    pass


class PersistenceFailure(MasukError):
    pass


class SshLaunchError(MasukError):
    pass


MASUK_CONFIG = "MASUK_CONFIG"
MASUK_SSH_BIN = "MASUK_SSH_BIN"
MASUK_DEBUG = "MASUK_DEBUG"

DEFAULT_SSH_BIN = "ssh"


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def default_config_path() -> Path:
    override = _env_or_none(MASUK_CONFIG)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "masuk" / "config.json"


def ssh_binary() -> str:
    return _env_or_none(MASUK_SSH_BIN) or DEFAULT_SSH_BIN


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")
