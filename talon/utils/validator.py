"""Validator — check a talon directory and report every problem found.

The parser stops at the first error. This module collects all of them so
an author can fix a manifest in one pass.
"""

from pathlib import Path

import semver
import yaml

from talon.errors import InvalidManifest
from talon.manifest import MANIFEST_FILE
from talon.manifest.parser import NAME_PATTERN, split_manifest
from talon.registry.models import OPTIONAL_STRING_FIELDS, REQUIRED_FIELDS


def validate_package(package_path: str) -> list[str]:
    """Validate the TALON.md manifest in a talon directory.

    Returns a list of issues found. Empty list means valid.
    """
    issues: list[str] = []
    manifest_path = Path(package_path) / MANIFEST_FILE

    if not manifest_path.is_file():
        return [f"{MANIFEST_FILE} not found in {package_path}"]

    try:
        front, _ = split_manifest(manifest_path.read_text(encoding="utf-8"))
        data = yaml.safe_load(front)
    except (OSError, UnicodeDecodeError) as e:
        return [f"Cannot read {manifest_path}: {e}"]
    except InvalidManifest as e:
        return [f"Invalid manifest: {e.reason}"]
    except yaml.YAMLError as e:
        return [f"Invalid YAML: {e}"]

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return ["Metadata block must be a mapping"]

    for field_name in REQUIRED_FIELDS:
        if data.get(field_name) in (None, ""):
            issues.append(f"Manifest missing required field: {field_name}")

    name = data.get("name")
    if name and not NAME_PATTERN.match(str(name)):
        issues.append(f"Invalid name '{name}'. Use lowercase words joined by hyphens")

    version = data.get("version")
    if version and not semver.Version.is_valid(str(version)):
        issues.append(f"Invalid version '{version}'. Must be a semantic version (e.g. 1.2.3)")

    description = data.get("description")
    if isinstance(description, str) and "\n" in description:
        issues.append("Description must be a single line")

    tags = data.get("tags")
    if isinstance(tags, dict):
        issues.append("Tags must be a list")

    for field_name in OPTIONAL_STRING_FIELDS + REQUIRED_FIELDS:
        if isinstance(data.get(field_name), (dict, list)):
            issues.append(f"Field '{field_name}' must be a string")

    return issues
