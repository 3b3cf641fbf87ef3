from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

import masuk_cli.store as store_mod
from masuk_cli.cli_shared import ConfigCorrupt, InvalidArgument, PersistenceFailure, ProfileNotFound
from masuk_cli.profiles import Profile
from masuk_cli.store import ProfileStore


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _clock(monkeypatch, start: int = 1_700_000_000) -> list[int]:
    now = [start]
    monkeypatch.setattr(store_mod, "_now", lambda: now[0])
    return now


def test_load_creates_empty_document(tmp_path: Path, monkeypatch) -> None:
    _clock(monkeypatch)
    path = tmp_path / "nested" / "config.json"
    doc = ProfileStore(path).load()

    assert doc.profiles == {}
    assert doc.updated_at == 1_700_000_000
    assert _read(path) == {"profiles": {}, "updated_at": 1_700_000_000}


def test_add_with_only_host_stores_no_optional_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    ProfileStore(path).add("myserver", "example.com")

    assert _read(path)["profiles"] == {"myserver": {"host": "example.com"}}


def test_add_stores_all_fields(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    ProfileStore(path).add("dev", "dev.example.com", user="root", port=2222, key="~/.ssh/id_rsa")

    assert _read(path)["profiles"]["dev"] == {
        "host": "dev.example.com",
        "user": "root",
        "port": 2222,
        "key": "~/.ssh/id_rsa",
    }


def test_add_is_upsert(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "config.json")
    store.add("foobar", "first.example.com", user="root")
    store.add("foobar", "second.example.com")

    items = store.list()
    assert items == [("foobar", Profile(host="second.example.com"))]


@pytest.mark.parametrize(("name", "host"), [("", "h"), ("  ", "h"), ("p", "")])
def test_add_rejects_empty_name_or_host(tmp_path: Path, name: str, host: str) -> None:
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    with pytest.raises(InvalidArgument):
        store.add(name, host)
    assert not path.exists()


def test_list_is_sorted(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "config.json")
    for name in ("foobar", "dev", "myserver"):
        store.add(name, f"{name}.example.com")

    assert [name for name, _ in store.list()] == ["dev", "foobar", "myserver"]


def test_add_then_get_resolves_ssh_args(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "config.json")
    store.add("foobar", "192.168.1.81", port=2222)

    assert store.get("foobar").ssh_args() == ["-p", "2222", "192.168.1.81"]


def test_remove_deletes_entry(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    store.add("a", "a.example.com")
    store.add("b", "b.example.com")

    removed = store.remove("a")

    assert removed == Profile(host="a.example.com")
    assert list(_read(path)["profiles"]) == ["b"]


def test_not_found_leaves_file_untouched(tmp_path: Path, monkeypatch) -> None:
    now = _clock(monkeypatch)
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    store.add("a", "a.example.com")
    before = path.read_bytes()
    now[0] += 100

    with pytest.raises(ProfileNotFound):
        store.remove("nonexistent")
    with pytest.raises(ProfileNotFound):
        store.get("nonexistent")

    assert path.read_bytes() == before


def test_updated_at_refreshes_on_mutation_only(tmp_path: Path, monkeypatch) -> None:
    now = _clock(monkeypatch)
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    store.add("a", "a.example.com")
    assert _read(path)["updated_at"] == 1_700_000_000

    now[0] += 5
    store.list()
    assert _read(path)["updated_at"] == 1_700_000_000

    store.add("b", "b.example.com")
    assert _read(path)["updated_at"] == 1_700_000_005

    now[0] += 5
    store.remove("a")
    assert _read(path)["updated_at"] == 1_700_000_010


def test_updated_at_never_moves_backwards(tmp_path: Path, monkeypatch) -> None:
    now = _clock(monkeypatch)
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    store.add("a", "a.example.com")

    now[0] -= 3600
    store.add("b", "b.example.com")

    assert _read(path)["updated_at"] == 1_700_000_000


def test_load_reads_existing_document(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"profiles": {"x": {"host": "h", "user": "u"}}, "updated_at": 42}),
        encoding="utf-8",
    )
    doc = ProfileStore(path).load()

    assert doc.updated_at == 42
    assert doc.profiles == {"x": Profile(host="h", user="u")}


def test_load_defaults_missing_profiles(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"updated_at": 1}', encoding="utf-8")

    assert ProfileStore(path).load().profiles == {}


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[]",
        '{"profiles": [], "updated_at": 1}',
        '{"profiles": {}}',
        '{"profiles": {}, "updated_at": "yesterday"}',
        '{"profiles": {"x": {"user": "u"}}, "updated_at": 1}',
    ],
)
def test_load_rejects_corrupt_config(tmp_path: Path, raw: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(raw, encoding="utf-8")

    with pytest.raises(ConfigCorrupt):
        ProfileStore(path).load()
    assert path.read_text(encoding="utf-8") == raw


def test_failed_write_keeps_previous_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "config.json"
    store = ProfileStore(path)
    store.add("a", "a.example.com")
    before = path.read_bytes()

    def _boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(store_mod.os, "replace", _boom)
    with pytest.raises(PersistenceFailure):
        store.add("b", "b.example.com")

    assert path.read_bytes() == before
    assert sorted(os.listdir(tmp_path)) == ["config.json"]


def test_load_rejects_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    raw = b'{"profiles": {"\xff": {"host": "h"}}, "updated_at": 1}'
    path.write_bytes(raw)

    with pytest.raises(ConfigCorrupt):
        ProfileStore(path).load()
    assert path.read_bytes() == raw
