from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .cli_shared import ConfigCorrupt, InvalidArgument, PersistenceFailure, ProfileNotFound
from .profiles import Profile


def _now() -> int:
    return int(time.time())


@dataclass
class ConfigDoc:
    profiles: dict[str, Profile] = field(default_factory=dict)
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
            "updated_at": self.updated_at,
        }


def _parse_doc(raw: str, *, path: Path) -> ConfigDoc:
    try:
        val = json.loads(raw)
    except ValueError as e:
        raise ConfigCorrupt(f"invalid JSON in {path}: {e}") from e
    if not isinstance(val, dict):
        raise ConfigCorrupt(f"invalid config at {path}: expected JSON object")
    profiles_raw = val.get("profiles", {})
    if not isinstance(profiles_raw, dict):
        raise ConfigCorrupt(f"invalid config at {path}: 'profiles' must be an object")
    updated_at = val.get("updated_at")
    if isinstance(updated_at, bool) or not isinstance(updated_at, int):
        raise ConfigCorrupt(f"invalid config at {path}: 'updated_at' must be an integer")
    profiles = {name: Profile.from_dict(name, item) for name, item in profiles_raw.items()}
    return ConfigDoc(profiles=profiles, updated_at=updated_at)


class ProfileStore:
    """Named SSH profiles persisted in one JSON file.

    Every call re-reads the file; nothing is cached between operations.
    Mutations rewrite the whole document through a temp file and
    ``os.replace`` so an interrupted write leaves the previous file intact.
    Concurrent writers are not coordinated: the last one wins.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> ConfigDoc:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            doc = ConfigDoc(profiles={}, updated_at=_now())
            self._write(doc)
            return doc
        except UnicodeDecodeError as e:
            raise ConfigCorrupt(f"invalid UTF-8 in {self.path}: {e}") from e
        except OSError as e:
            raise PersistenceFailure(f"failed to read {self.path}: {e}") from e
        return _parse_doc(raw, path=self.path)

    def get(self, name: str) -> Profile:
        doc = self.load()
        profile = doc.profiles.get(name)
        if profile is None:
            raise ProfileNotFound(
                f"Profile '{name}' not found. Use 'masuk ls' to see available profiles."
            )
        return profile

    def add(
        self,
        name: str,
        host: str,
        *,
        user: str | None = None,
        port: int | None = None,
        key: str | None = None,
    ) -> Profile:
        if not str(name or "").strip():
            raise InvalidArgument("profile name is required")
        profile = Profile.build(host=host, user=user, port=port, key=key)
        doc = self.load()
        doc.profiles[name] = profile
        self._save(doc)
        return profile

    def remove(self, name: str) -> Profile:
        doc = self.load()
        if name not in doc.profiles:
            raise ProfileNotFound(f"Profile '{name}' not found")
        profile = doc.profiles.pop(name)
        self._save(doc)
        return profile

    def list(self) -> list[tuple[str, Profile]]:
        doc = self.load()
        return sorted(doc.profiles.items(), key=lambda item: item[0])

    def _save(self, doc: ConfigDoc) -> None:
        doc.updated_at = max(doc.updated_at, _now())
        self._write(doc)

    def _write(self, doc: ConfigDoc) -> None:
        text = json.dumps(doc.to_dict(), indent=2, sort_keys=True) + "\n"
        tmp_name = ""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceFailure(f"failed to write {self.path}: {e}") from e
