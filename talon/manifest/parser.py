"""Manifest parser — turn a talon directory into a validated PackageManifest.

Parsing is pure: it only reads the manifest file and never touches the
registry, so it is safe to call repeatedly or from several threads.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import semver
import yaml

from talon.errors import (
    InvalidManifest,
    InvalidName,
    InvalidVersion,
    IoFailure,
    ManifestMissing,
    MissingRequiredField,
)
from talon.manifest import DELIMITER, MANIFEST_FILE
from talon.registry.models import (
    KNOWN_FIELDS,
    OPAQUE_FIELDS,
    OPTIONAL_STRING_FIELDS,
    REQUIRED_FIELDS,
    PackageManifest,
)

# Lowercase alphanumeric words joined by single hyphens: "github", "web-search-2".
NAME_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def parse(directory: str | Path) -> PackageManifest:
    """Parse the TALON.md manifest inside ``directory``.

    Raises:
        ManifestMissing: the directory does not exist or has no TALON.md.
        InvalidManifest: delimiters or YAML are malformed.
        MissingRequiredField, InvalidName, InvalidVersion: metadata is invalid.
        IoFailure: the manifest exists but could not be read.
    """
    directory = Path(directory)
    manifest_path = directory / MANIFEST_FILE

    if not directory.is_dir() or not _has_manifest(directory):
        raise ManifestMissing(directory)

    try:
        text = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestMissing(directory) from None
    except UnicodeDecodeError as e:
        raise InvalidManifest(f"not valid UTF-8 ({e.reason})", manifest_path) from e
    except OSError as e:
        raise IoFailure(manifest_path, e) from e

    return parse_text(text, source=manifest_path)


def parse_text(text: str, source: str | Path | None = None) -> PackageManifest:
    """Parse manifest text. ``source`` is only used in error messages."""
    front, body = split_manifest(text, source)

    try:
        data = yaml.safe_load(front)
    except yaml.YAMLError as e:
        raise InvalidManifest(f"metadata is not valid YAML: {e}", source) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidManifest("metadata block must be a mapping", source)

    return build_manifest(data, body, source)


def split_manifest(text: str, source: str | Path | None = None) -> tuple[str, str]:
    """Split manifest text into (metadata YAML, documentation body)."""
    lines = text.lstrip("\ufeff").splitlines(keepends=True)

    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines) or lines[start].rstrip() != DELIMITER:
        raise InvalidManifest("missing opening '---' delimiter", source)

    for end in range(start + 1, len(lines)):
        # Only an unindented delimiter closes the block; indented "---" belongs to a YAML value.
        if lines[end].rstrip() == DELIMITER:
            front = "".join(lines[start + 1 : end])
            body = "".join(lines[end + 1 :])
            return front, body

    raise InvalidManifest("missing closing '---' delimiter", source)


def build_manifest(
    data: dict[str, Any], documentation: str = "", source: str | Path | None = None
) -> PackageManifest:
    """Validate a metadata mapping and build a PackageManifest from it."""
    for field_name in REQUIRED_FIELDS:
        value = data.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingRequiredField(field_name, source)

    name = _scalar(data, "name", source)
    if not NAME_PATTERN.match(name):
        raise InvalidName(name, source)

    version = _scalar(data, "version", source)
    if not semver.Version.is_valid(version):
        raise InvalidVersion(version, source)

    description = _scalar(data, "description", source)
    if "\n" in description:
        raise InvalidManifest("'description' must be a single line", source)

    optional = {
        key: _scalar(data, key, source) if data.get(key) is not None else None
        for key in OPTIONAL_STRING_FIELDS
    }

    return PackageManifest(
        name=name,
        version=version,
        description=description,
        tags=_tags(data.get("tags"), source),
        documentation=documentation,
        extra={k: v for k, v in data.items() if k not in KNOWN_FIELDS},
        **optional,
        **{key: data.get(key) for key in OPAQUE_FIELDS},
    )


def serialize(manifest: PackageManifest) -> str:
    """Render a manifest back to TALON.md text that ``parse_text`` accepts."""
    front = yaml.safe_dump(
        manifest.metadata(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=None,
        width=1000,
    )
    return f"{DELIMITER}\n{front}{DELIMITER}\n{manifest.documentation}"


def _has_manifest(directory: Path) -> bool:
    # Exact-case lookup so "talon.md" is not accepted on case-insensitive filesystems.
    try:
        return any(p.name == MANIFEST_FILE and p.is_file() for p in directory.iterdir())
    except OSError as e:
        raise IoFailure(directory, e) from e


def _scalar(data: dict[str, Any], key: str, source) -> str:
    value = data[key]
    if isinstance(value, (dict, list)):
        raise InvalidManifest(f"'{key}' must be a string", source)
    return str(value)


def _tags(value: Any, source) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(t) for t in value]
    if isinstance(value, dict):
        raise InvalidManifest("'tags' must be a list", source)
    return [str(value)]
