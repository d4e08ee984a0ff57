"""Local file-based registry operations.

Composes the manifest parser, the discovery scanner, and the registry
index into the operations the CLI exposes. Every mutation loads the
index, applies the change in memory, and saves it; if anything fails
before the save, the persisted index is left exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from talon.errors import IoFailure, ParseError
from talon.manifest.parser import parse
from talon.registry.index import RegistryIndex
from talon.registry.models import DiscoveryResult, ReconcileReport, RegistryEntry
from talon.utils.package_scanner import discover

logger = logging.getLogger(__name__)


class LocalRegistry:
    """File-based local registry for talons.

    Args:
        index_path: Location of the JSON index file.
        packages_root: Directory whose immediate children are talon
            directories; scanned by ``discover`` and ``reconcile``.
    """

    def __init__(self, index_path: str | Path, packages_root: str | Path):
        self.index_path = Path(index_path)
        self.packages_root = Path(packages_root)

    def load(self) -> RegistryIndex:
        return RegistryIndex.load(self.index_path)

    def save(self, index: RegistryIndex) -> None:
        index.save(self.index_path)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_from_path(self, path: str | Path, replace: bool = False) -> RegistryEntry:
        """Parse the talon at ``path`` and register it in place.

        The talon's files are not copied; the entry points at ``path``.
        Raises ParseError subclasses for an invalid talon and Conflict if
        the name is taken and ``replace`` is not set.
        """
        source = Path(path).resolve()
        manifest = parse(source)

        index = self.load()
        entry = RegistryEntry(
            manifest=manifest,
            source_path=source,
            installed_at=datetime.now(timezone.utc).isoformat(),
        )
        replaced = entry.name in index
        index.add(entry, replace=replace)
        self.save(index)

        action = "Replaced" if replaced else "Added"
        logger.info("%s talon %s from %s", action, entry.qualified_id, source)
        return entry

    def remove_by_name(self, name: str) -> RegistryEntry:
        """Drop ``name`` from the index. The talon's files are left on disk."""
        index = self.load()
        entry = index.remove(name)
        self.save(index)
        logger.info("Removed talon %s (files kept at %s)", entry.qualified_id, entry.source_path)
        return entry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> RegistryEntry:
        return self.load().get(name)

    info = get

    def search(self, query: str) -> list[RegistryEntry]:
        return self.load().search(query)

    def list(self) -> list[RegistryEntry]:
        return self.load().list()

    def discover(self) -> Iterator[DiscoveryResult]:
        """Scan the packages root. See ``talon.utils.package_scanner.discover``."""
        return discover(self.packages_root)

    def reconcile(self) -> ReconcileReport:
        """Compare the index with the packages root without changing either.

        - installable: valid talons on disk whose name is not indexed
        - stale: indexed talons whose source directory no longer holds a
          valid manifest
        - invalid: directories under the packages root whose manifest
          fails to parse
        """
        index = self.load()
        report = ReconcileReport()

        for result in self.discover():
            if not result.ok:
                report.invalid.append(result)
            elif result.manifest.name not in index:
                report.installable.append(result)

        for entry in index.list():
            try:
                parse(entry.source_path)
            except (ParseError, IoFailure) as e:
                logger.debug("Stale entry %s: %s", entry.name, e)
                report.stale.append(entry)

        logger.info("Reconcile %s: %s", self.packages_root, report.summary())
        return report
