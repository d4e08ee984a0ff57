"""Talon loader — expose registered talons to an agent runtime.

Turns the ``commands`` section of registered manifests into capability
descriptions and renders a system prompt listing the available talons.
The manifest is re-read from the talon's directory on each load so the
result reflects what is on disk, not what was indexed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from talon.errors import TalonError
from talon.manifest.parser import parse
from talon.registry.local_registry import LocalRegistry
from talon.registry.models import PackageManifest, RegistryEntry

logger = logging.getLogger(__name__)


@dataclass
class CapabilityArg:
    name: str
    type: str = "string"
    required: bool = False
    description: str = ""


@dataclass
class Capability:
    """A single callable command offered by a talon (``<talon>.<command>``)."""

    name: str
    description: str = ""
    args: list[CapabilityArg] = field(default_factory=list)


class TalonLoader:
    """Loads talons from a LocalRegistry."""

    def __init__(self, registry: LocalRegistry):
        self.registry = registry

    def load_talon(self, name: str) -> RegistryEntry:
        entry = self.registry.get(name)
        manifest = parse(entry.source_path)
        return RegistryEntry(
            manifest=manifest,
            source_path=entry.source_path,
            installed_at=entry.installed_at,
        )

    def get_capabilities(self, name: str) -> list[Capability]:
        return _capabilities(self.load_talon(name).manifest)

    def generate_system_prompt(self, names: list[str]) -> str:
        prompt = "Available Talons:\n\n"

        for name in names:
            try:
                talon = self.load_talon(name)
            except TalonError as e:
                logger.warning("Skipping talon %s in system prompt: %s", name, e)
                continue

            manifest = talon.manifest
            prompt += f"## {manifest.name} (v{manifest.version})\n"
            prompt += f"{manifest.description}\n\n"

            capabilities = _capabilities(manifest)
            if capabilities:
                prompt += "Commands:\n"
                for cap in capabilities:
                    command = cap.name.split(".", 1)[1]
                    prompt += f"- {command}: {cap.description}\n"
                prompt += "\n"

        return prompt


def _capabilities(manifest: PackageManifest) -> list[Capability]:
    # ``commands`` is opaque metadata: anything that is not the expected shape is skipped.
    commands = manifest.commands
    if not isinstance(commands, list):
        return []

    capabilities = []
    for cmd in commands:
        if not isinstance(cmd, dict) or not cmd.get("name"):
            continue
        raw_args = cmd.get("args")
        if not isinstance(raw_args, list):
            raw_args = []
        args = [
            CapabilityArg(
                name=str(a["name"]),
                type=str(a.get("type", "string")),
                required=bool(a.get("required", False)),
                description=str(a.get("description") or ""),
            )
            for a in raw_args
            if isinstance(a, dict) and a.get("name")
        ]
        capabilities.append(
            Capability(
                name=f"{manifest.name}.{cmd['name']}",
                description=str(cmd.get("description") or ""),
                args=args,
            )
        )
    return capabilities
