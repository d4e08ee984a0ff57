"""Tests for the persisted registry index."""

import datetime
import json
import os
import tempfile
from pathlib import Path

import pytest

from talon.errors import Conflict, IndexCorrupt, IoFailure, NotFound
from talon.registry.index import RegistryIndex
from talon.registry.models import PackageManifest, RegistryEntry


def _entry(name: str, version: str = "1.0.0", description: str = "", tags=None) -> RegistryEntry:
    manifest = PackageManifest(
        name=name,
        version=version,
        description=description or f"The {name} talon",
        tags=tags or [],
    )
    return RegistryEntry(
        manifest=manifest,
        source_path=Path("/opt/talons") / name,
        installed_at="2026-01-01T00:00:00+00:00",
    )


# --- Load / Save ---


def test_load_missing_file_is_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        index = RegistryIndex.load(Path(tmpdir) / "index.json")
        assert index.list() == []
        assert len(index) == 0


def test_save_and_load_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nested" / "index.json"
        index = RegistryIndex()
        index.add(_entry("alpha", tags=["x", "y"]))
        index.add(_entry("beta", "0.1.0-rc.1"))
        index.save(path)

        loaded = RegistryIndex.load(path)
        assert loaded.list() == index.list()
        assert loaded.get("beta").version == "0.1.0-rc.1"


def test_save_and_load_keeps_yaml_types():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        manifest = PackageManifest(
            name="alpha",
            version="1.0.0",
            description="Dated talon",
            runtime={"ports": {8080: "http"}},
            extra={"released": datetime.date(2024, 5, 1)},
            documentation="# Alpha\n",
        )
        entry = RegistryEntry(manifest, Path("/opt/talons/alpha"), "2026-01-01T00:00:00+00:00")
        index = RegistryIndex()
        index.add(entry)
        index.save(path)

        loaded = RegistryIndex.load(path).get("alpha")
        assert loaded == entry
        assert loaded.manifest.extra["released"] == datetime.date(2024, 5, 1)
        assert loaded.manifest.runtime == {"ports": {8080: "http"}}


def test_saved_file_format():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        index = RegistryIndex()
        index.add(_entry("alpha"))
        index.save(path)

        data = json.loads(path.read_text())
        assert data["version"] == "1.0"
        record = data["talons"]["alpha"]
        assert record["manifest"].startswith("---\nname: alpha\nversion: 1.0.0\n")
        assert record["source_path"] == str(Path("/opt/talons/alpha"))
        assert record["installed_at"] == "2026-01-01T00:00:00+00:00"


def test_load_invalid_json_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        path.write_text("{not json")
        with pytest.raises(IndexCorrupt):
            RegistryIndex.load(path)


def test_load_wrong_shape_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        path.write_text("[]")
        with pytest.raises(IndexCorrupt):
            RegistryIndex.load(path)


def test_load_entry_with_invalid_version_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        index = RegistryIndex()
        index.add(_entry("alpha"))
        index.save(path)

        data = json.loads(path.read_text())
        record = data["talons"]["alpha"]
        record["manifest"] = record["manifest"].replace("version: 1.0.0", "version: not-a-version")
        path.write_text(json.dumps(data))

        with pytest.raises(IndexCorrupt):
            RegistryIndex.load(path)


def test_load_entry_keyed_under_wrong_name_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        index = RegistryIndex()
        index.add(_entry("alpha"))
        index.save(path)

        data = json.loads(path.read_text())
        data["talons"]["beta"] = data["talons"].pop("alpha")
        path.write_text(json.dumps(data))

        with pytest.raises(IndexCorrupt):
            RegistryIndex.load(path)


def test_failed_rename_keeps_previous_index(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"
        index = RegistryIndex()
        index.add(_entry("alpha"))
        index.save(path)
        before = path.read_text()

        def crash(src, dst):
            raise OSError(28, "No space left on device")

        index.add(_entry("beta"))
        monkeypatch.setattr(os, "replace", crash)
        with pytest.raises(IoFailure):
            index.save(path)
        monkeypatch.undo()

        assert path.read_text() == before
        assert RegistryIndex.load(path).names() == ["alpha"]
        assert list(Path(tmpdir).glob("*.tmp")) == []


def test_failed_write_before_rename_leaves_no_index(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "index.json"

        def crash(fd):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(os, "fsync", crash)
        index = RegistryIndex()
        index.add(_entry("alpha"))
        with pytest.raises(IoFailure):
            index.save(path)
        monkeypatch.undo()

        assert not path.exists()
        assert RegistryIndex.load(path).list() == []
        assert list(Path(tmpdir).iterdir()) == []


# --- Add / Get / Remove ---


def test_add_then_get_returns_same_entry():
    index = RegistryIndex()
    entry = _entry("alpha")
    index.add(entry)
    assert index.get("alpha") == entry
    assert "alpha" in index


def test_add_duplicate_is_conflict_and_leaves_index_unchanged():
    index = RegistryIndex()
    index.add(_entry("alpha"))
    before = index.list()

    with pytest.raises(Conflict) as exc:
        index.add(_entry("alpha", "2.0.0"))

    assert exc.value.name == "alpha"
    assert index.list() == before


def test_add_with_replace_swaps_entry():
    index = RegistryIndex()
    index.add(_entry("alpha"))
    index.add(_entry("alpha", "2.0.0"), replace=True)
    assert index.get("alpha").version == "2.0.0"
    assert len(index) == 1


def test_names_are_case_sensitive():
    index = RegistryIndex()
    index.add(_entry("alpha"))
    with pytest.raises(NotFound):
        index.get("Alpha")


def test_remove_returns_entry_then_get_is_not_found():
    index = RegistryIndex()
    entry = _entry("alpha")
    index.add(entry)
    assert index.remove("alpha") == entry
    with pytest.raises(NotFound):
        index.get("alpha")


def test_remove_absent_name_is_not_found():
    index = RegistryIndex()
    with pytest.raises(NotFound) as exc:
        index.remove("ghost")
    assert exc.value.name == "ghost"


# --- Search / List ---


def test_list_is_sorted_by_name():
    index = RegistryIndex()
    for name in ("gamma", "alpha", "beta"):
        index.add(_entry(name))
    assert [e.name for e in index.list()] == ["alpha", "beta", "gamma"]


def test_search_is_case_insensitive_on_name_and_description():
    index = RegistryIndex()
    index.add(_entry("rate-limiter", description="Throttle outbound calls"))
    index.add(_entry("auth-helper", description="OAuth token RATE refresh"))
    index.add(_entry("ui-kit", description="Widgets"))

    assert [e.name for e in index.search("RATE")] == ["auth-helper", "rate-limiter"]
    assert [e.name for e in index.search("throttle")] == ["rate-limiter"]


def test_search_tag_matches_exactly():
    index = RegistryIndex()
    index.add(_entry("beta", description="Beta package", tags=["devtools"]))
    index.add(_entry("gamma", description="Gamma package", tags=["DevTools-Extra"]))

    # The query is a substring of a tag: no match.
    assert index.search("dev") == []
    # The query contains a tag: no match.
    assert [e.name for e in index.search("devtools-extra")] == ["gamma"]
    assert index.search("devtools-extras") == []
    # Exact tag, ignoring case.
    assert [e.name for e in index.search("DEVTOOLS")] == ["beta"]


def test_search_empty_query_matches_everything():
    index = RegistryIndex()
    index.add(_entry("beta"))
    index.add(_entry("alpha"))
    assert [e.name for e in index.search("")] == ["alpha", "beta"]


def test_search_empty_index():
    assert RegistryIndex().search("anything") == []
