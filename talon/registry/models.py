"""Registry data models — manifests, index entries, discovery and reconcile results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from talon.errors import TalonError

# Fields with a fixed meaning, in the order they are written back out.
REQUIRED_FIELDS = ("name", "version", "description")
OPTIONAL_STRING_FIELDS = ("author", "license", "repository", "homepage")
OPAQUE_FIELDS = ("runtime", "permissions", "environment", "commands")
KNOWN_FIELDS = (
    "name",
    "version",
    "description",
    "author",
    "license",
    "tags",
    "repository",
    "homepage",
    "runtime",
    "permissions",
    "environment",
    "commands",
)


@dataclass
class PackageManifest:
    """Parsed metadata and documentation for one talon."""

    # Identity
    name: str
    version: str
    description: str

    # Descriptive
    author: str | None = None
    license: str | None = None
    tags: list[str] = field(default_factory=list)
    repository: str | None = None
    homepage: str | None = None

    # Opaque nested metadata, round-tripped untouched
    runtime: Any = None
    permissions: Any = None
    environment: Any = None
    commands: Any = None

    # Unknown top-level keys, kept for forward compatibility
    extra: dict[str, Any] = field(default_factory=dict)

    # Free text after the metadata block
    documentation: str = ""

    @property
    def qualified_id(self) -> str:
        return f"{self.name}@{self.version}"

    def metadata(self) -> dict[str, Any]:
        """Return the metadata block as an ordered mapping.

        Absent optional fields are left out, so a manifest with only the
        required fields serializes to only those three keys.
        """
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
        }
        for key in ("author", "license"):
            if getattr(self, key) is not None:
                data[key] = getattr(self, key)
        if self.tags:
            data["tags"] = list(self.tags)
        for key in ("repository", "homepage"):
            if getattr(self, key) is not None:
                data[key] = getattr(self, key)
        for key in OPAQUE_FIELDS:
            if getattr(self, key) is not None:
                data[key] = getattr(self, key)
        data.update(self.extra)
        return data


@dataclass(frozen=True)
class RegistryEntry:
    """A single row of the registry index.

    Entries are never patched in place; a new version of a talon is a new
    entry swapped in for the old one.
    """

    manifest: PackageManifest
    source_path: Path
    installed_at: str  # ISO 8601, UTC

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def qualified_id(self) -> str:
        return self.manifest.qualified_id


@dataclass
class DiscoveryResult:
    """Outcome of parsing one candidate directory during discovery."""

    path: Path
    manifest: PackageManifest | None = None
    error: TalonError | None = None

    @property
    def ok(self) -> bool:
        return self.manifest is not None


@dataclass
class ReconcileReport:
    """Divergence between the registry index and the packages root on disk."""

    installable: list[DiscoveryResult] = field(default_factory=list)
    stale: list[RegistryEntry] = field(default_factory=list)
    invalid: list[DiscoveryResult] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.installable and not self.stale

    def summary(self) -> str:
        return (
            f"{len(self.installable)} installable, {len(self.stale)} stale, "
            f"{len(self.invalid)} invalid"
        )
