"""Error types raised by the manifest parser, index, and registry operations."""

from __future__ import annotations

from pathlib import Path


class TalonError(Exception):
    """Base class for every error raised by the talon core."""


# ── Manifest parsing ─────────────────────────────────────────────────


class ParseError(TalonError):
    """A manifest could not be turned into a valid PackageManifest."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{self.path}: {message}"
        super().__init__(message)


class ManifestMissing(ParseError):
    def __init__(self, path: str | Path):
        super().__init__("TALON.md not found", path)


class InvalidManifest(ParseError):
    """The manifest file is structurally broken (delimiters, YAML, shape)."""

    def __init__(self, reason: str, path: str | Path | None = None):
        self.reason = reason
        super().__init__(f"invalid manifest: {reason}", path)


class MissingRequiredField(ParseError):
    def __init__(self, field: str, path: str | Path | None = None):
        self.field = field
        super().__init__(f"missing required field '{field}'", path)


class InvalidName(ParseError):
    def __init__(self, name: str, path: str | Path | None = None):
        self.name = name
        super().__init__(
            f"invalid name '{name}' (expected lowercase hyphen-separated token)", path
        )


class InvalidVersion(ParseError):
    def __init__(self, version: str, path: str | Path | None = None):
        self.version = version
        super().__init__(f"invalid semantic version '{version}'", path)


# ── Index ────────────────────────────────────────────────────────────


class IndexCorrupt(TalonError):
    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"index {self.path} is corrupt: {reason}")


class Conflict(TalonError):
    """A talon with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"talon '{name}' is already registered")


class NotFound(TalonError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"talon '{name}' not found")


class IoFailure(TalonError):
    """Wraps an underlying filesystem error (permission denied, disk full, ...)."""

    def __init__(self, path: str | Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"I/O failure on {self.path}: {cause.strerror or cause}")
