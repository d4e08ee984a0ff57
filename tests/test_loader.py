"""Tests for the talon loader (capabilities and system prompt)."""

import tempfile
from pathlib import Path

import pytest

from talon.errors import NotFound
from talon.loader import TalonLoader
from talon.registry.local_registry import LocalRegistry

GITHUB = """\
---
name: github
version: 1.0.0
description: GitHub integration
commands:
  - name: open-issue
    description: Open a new issue
    args:
      - name: title
        type: string
        required: true
      - name: body
  - name: list-prs
    description: List pull requests
  - not a command
---
# GitHub
"""

NOTES = """\
---
name: notes
version: 0.2.0
description: Plain notes talon
---
"""


def _setup(tmpdir: str) -> tuple[LocalRegistry, Path]:
    root = Path(tmpdir) / "talons"
    for name, text in (("github", GITHUB), ("notes", NOTES)):
        (root / name).mkdir(parents=True)
        (root / name / "TALON.md").write_text(text)

    reg = LocalRegistry(Path(tmpdir) / "index.json", root)
    reg.add_from_path(root / "github")
    reg.add_from_path(root / "notes")
    return reg, root


def test_get_capabilities():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, _ = _setup(tmpdir)
        caps = TalonLoader(reg).get_capabilities("github")

        assert [c.name for c in caps] == ["github.open-issue", "github.list-prs"]
        assert caps[0].description == "Open a new issue"
        assert [a.name for a in caps[0].args] == ["title", "body"]
        assert caps[0].args[0].required is True
        assert caps[0].args[1].type == "string"
        assert caps[0].args[1].required is False
        assert caps[1].args == []


def test_capabilities_empty_without_commands():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, _ = _setup(tmpdir)
        assert TalonLoader(reg).get_capabilities("notes") == []


def test_load_talon_reads_current_disk_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, root = _setup(tmpdir)
        (root / "notes" / "TALON.md").write_text(NOTES.replace("Plain notes talon", "Updated"))

        talon = TalonLoader(reg).load_talon("notes")
        assert talon.manifest.description == "Updated"
        assert reg.get("notes").manifest.description == "Plain notes talon"


def test_load_unknown_talon():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, _ = _setup(tmpdir)
        with pytest.raises(NotFound):
            TalonLoader(reg).load_talon("ghost")


def test_generate_system_prompt():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, _ = _setup(tmpdir)
        prompt = TalonLoader(reg).generate_system_prompt(["github", "ghost", "notes"])

    assert prompt == (
        "Available Talons:\n\n"
        "## github (v1.0.0)\n"
        "GitHub integration\n\n"
        "Commands:\n"
        "- open-issue: Open a new issue\n"
        "- list-prs: List pull requests\n\n"
        "## notes (v0.2.0)\n"
        "Plain notes talon\n\n"
    )


def test_malformed_command_args_are_skipped():
    text = "---\nname: odd\nversion: 1.0.0\ndescription: Odd talon\ncommands:\n  - name: x\n    args: 3\n---\n"
    with tempfile.TemporaryDirectory() as tmpdir:
        reg, root = _setup(tmpdir)
        (root / "odd").mkdir()
        (root / "odd" / "TALON.md").write_text(text)
        reg.add_from_path(root / "odd")
        loader = TalonLoader(reg)

        caps = loader.get_capabilities("odd")
        assert [c.name for c in caps] == ["odd.x"]
        assert caps[0].args == []
        assert "- x: \n" in loader.generate_system_prompt(["odd"])


def test_system_prompt_reads_each_manifest_once(monkeypatch):
    import talon.loader as loader_module

    calls = []
    real_parse = loader_module.parse

    def counting_parse(path):
        calls.append(path)
        return real_parse(path)

    with tempfile.TemporaryDirectory() as tmpdir:
        reg, _ = _setup(tmpdir)
        monkeypatch.setattr(loader_module, "parse", counting_parse)
        prompt = TalonLoader(reg).generate_system_prompt(["github", "notes"])

    assert "- open-issue: Open a new issue\n" in prompt
    assert len(calls) == 2
