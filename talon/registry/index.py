"""Registry index — the persisted name -> RegistryEntry mapping.

The index is the single source of truth for what is installed. It is
loaded and saved explicitly around every operation; there is no
long-lived file handle. Saving writes a sibling temp file and renames it
over the index so a reader never sees a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from talon.errors import Conflict, IndexCorrupt, IoFailure, NotFound, ParseError
from talon.manifest.parser import parse_text, serialize
from talon.registry.models import PackageManifest, RegistryEntry

logger = logging.getLogger(__name__)

INDEX_FORMAT_VERSION = "1.0"


class RegistryIndex:
    """In-memory view of the persisted registry index."""

    def __init__(self, entries: dict[str, RegistryEntry] | None = None):
        self._entries: dict[str, RegistryEntry] = dict(entries or {})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, index_path: str | Path) -> RegistryIndex:
        """Read an index from disk. A missing file is an empty index."""
        path = Path(index_path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No index at %s, starting empty", path)
            return cls()
        except UnicodeDecodeError as e:
            raise IndexCorrupt(path, f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise IoFailure(path, e) from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise IndexCorrupt(path, f"invalid JSON ({e.msg} at line {e.lineno})") from e

        if not isinstance(data, dict) or not isinstance(data.get("talons"), dict):
            raise IndexCorrupt(path, "expected an object with a 'talons' mapping")

        entries: dict[str, RegistryEntry] = {}
        for name, record in data["talons"].items():
            try:
                entry = _dict_to_entry(record)
            except (KeyError, TypeError, AttributeError) as e:
                raise IndexCorrupt(path, f"malformed entry '{name}'") from e
            except ParseError as e:
                raise IndexCorrupt(path, f"entry '{name}': {e}") from e
            if entry.name != name:
                raise IndexCorrupt(
                    path, f"entry keyed '{name}' describes talon '{entry.name}'"
                )
            entries[name] = entry

        logger.debug("Loaded %d entries from %s", len(entries), path)
        return cls(entries)

    def save(self, index_path: str | Path) -> None:
        """Persist the whole index atomically (temp file + rename)."""
        path = Path(index_path)
        payload = {
            "version": INDEX_FORMAT_VERSION,
            "talons": {name: _entry_to_dict(e) for name, e in sorted(self._entries.items())},
        }
        content = json.dumps(payload, indent=2)

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise IoFailure(path, e) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Saved %d entries to %s", len(self._entries), path)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, entry: RegistryEntry, replace: bool = False) -> None:
        """Register ``entry``; a name already present is a Conflict unless ``replace``."""
        if entry.name in self._entries and not replace:
            raise Conflict(entry.name)
        self._entries[entry.name] = entry

    def remove(self, name: str) -> RegistryEntry:
        """Delete and return the entry for ``name``."""
        try:
            return self._entries.pop(name)
        except KeyError:
            raise NotFound(name) from None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> RegistryEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise NotFound(name) from None

    def search(self, query: str) -> list[RegistryEntry]:
        """Find entries matching ``query``, sorted by name.

        Name and description match on a case-insensitive substring. Tags
        match only when one equals the query (ignoring case), so "dev" does
        not match a "devtools" tag.
        """
        needle = query.strip().lower()
        return [e for e in self.list() if _matches(e.manifest, needle)]

    def list(self) -> list[RegistryEntry]:
        return [self._entries[name] for name in sorted(self._entries)]

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _matches(manifest: PackageManifest, needle: str) -> bool:
    if not needle:
        return True
    if needle in manifest.name.lower() or needle in manifest.description.lower():
        return True
    return any(tag.lower() == needle for tag in manifest.tags)


def _entry_to_dict(entry: RegistryEntry) -> dict:
    # The manifest is kept as TALON.md text so YAML types (dates, int keys) survive.
    return {
        "manifest": serialize(entry.manifest),
        "source_path": str(entry.source_path),
        "installed_at": entry.installed_at,
    }


def _dict_to_entry(data: dict) -> RegistryEntry:
    manifest = parse_text(data["manifest"])
    return RegistryEntry(
        manifest=manifest,
        source_path=Path(data["source_path"]),
        installed_at=data.get("installed_at", ""),
    )
