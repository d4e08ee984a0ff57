"""Package scanner — discover talon directories under a packages root."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from talon.errors import IoFailure, ManifestMissing, ParseError
from talon.manifest.parser import parse
from talon.registry.models import DiscoveryResult

logger = logging.getLogger(__name__)


def discover(root: str | Path) -> Iterator[DiscoveryResult]:
    """Parse every immediate child directory of ``root``.

    Yields one result per child that has a TALON.md, in name order.
    Children without a manifest are skipped; manifests that fail to parse
    are yielded with their error rather than raised. Nothing is cached, so
    each call reflects what is on disk right now.
    """
    for candidate in _candidate_dirs(Path(root)):
        try:
            manifest = parse(candidate)
        except ManifestMissing:
            continue
        except (ParseError, IoFailure) as e:
            logger.debug("Discovery: %s failed to parse: %s", candidate, e)
            yield DiscoveryResult(path=candidate, error=e)
            continue
        logger.debug("Discovery: found %s at %s", manifest.qualified_id, candidate)
        yield DiscoveryResult(path=candidate, manifest=manifest)


def _candidate_dirs(root: Path) -> list[Path]:
    """Return visible child directories of ``root`` (one level, no recursion)."""
    if not root.is_dir():
        return []
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise IoFailure(root, e) from e
    return [p for p in children if p.is_dir() and not p.name.startswith(".")]
