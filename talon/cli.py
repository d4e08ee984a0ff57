"""Talon CLI — command-line front end for the local talon registry."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from talon import __version__
from talon.config import HOME_ENV, INDEX_ENV, default_index_path, default_packages_root
from talon.errors import TalonError
from talon.manifest import MANIFEST_FILE
from talon.registry.local_registry import LocalRegistry

console = Console()

EXAMPLE_TALON = """\
---
name: example
version: 1.0.0
description: An example talon demonstrating the format
author: Your Name
license: MIT
tags: [example, demo]
commands:
  - name: greet
    description: Greets the user with a custom message
    args:
      - name: message
        type: string
        required: false
---

# Example Talon

This is an example talon that demonstrates the TALON.md format.

## Commands

### greet
Greets the user with a custom message.

## Requirements
- None
"""


def _fail(error: Exception):
    console.print(f"[red]Error:[/] {escape(str(error))}")
    raise click.exceptions.Exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--dir",
    "-d",
    "packages_root",
    envvar=HOME_ENV,
    type=click.Path(file_okay=False),
    default=None,
    help="Directory containing talon packages",
)
@click.option(
    "--index",
    "-i",
    "index_path",
    envvar=INDEX_ENV,
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the registry index file",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)")
@click.pass_context
def main(ctx: click.Context, packages_root: str | None, index_path: str | None, verbose: int):
    """Talon — manage locally installed capability packages.

    Talons are directories holding a TALON.md manifest. Register them
    with 'talon add', find them with 'talon discover', and check the
    index against disk with 'talon reconcile'.
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )

    ctx.obj = LocalRegistry(
        index_path=index_path or default_index_path(),
        packages_root=packages_root or default_packages_root(),
    )


# ── List / Search / Info ─────────────────────────────────────────────


@main.command(name="list")
@click.pass_obj
def list_talons(registry: LocalRegistry):
    """List installed talons."""
    try:
        entries = registry.list()
    except TalonError as e:
        _fail(e)

    if not entries:
        console.print("[yellow]No talons installed.[/] Run 'talon discover' to find talons.")
        return

    table = Table(title=f"Installed Talons ({len(entries)})")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Description")
    table.add_column("Tags", style="dim")

    for entry in entries:
        m = entry.manifest
        table.add_row(
            escape(m.name), escape(m.version), escape(m.description), escape(", ".join(m.tags))
        )

    console.print(table)


@main.command()
@click.argument("query")
@click.pass_obj
def search(registry: LocalRegistry, query: str):
    """Search installed talons by name, description, or tag."""
    try:
        results = registry.search(query)
    except TalonError as e:
        _fail(e)

    if not results:
        console.print(f"[yellow]No talons found matching '{escape(query)}'.[/]")
        return

    console.print(f"Search results for '{escape(query)}':\n")
    for entry in results:
        console.print(f"  [cyan]{escape(entry.qualified_id)}[/]")
        console.print(f"    {escape(entry.manifest.description)}")


@main.command()
@click.argument("name")
@click.pass_obj
def info(registry: LocalRegistry, name: str):
    """Show details for an installed talon."""
    try:
        entry = registry.info(name)
    except TalonError as e:
        _fail(e)

    m = entry.manifest
    lines = [
        f"[bold]Version:[/] {escape(m.version)}",
        f"[bold]Description:[/] {escape(m.description)}",
    ]
    for label, value in (
        ("Author", m.author),
        ("License", m.license),
        ("Homepage", m.homepage),
        ("Repository", m.repository),
    ):
        if value:
            lines.append(f"[bold]{label}:[/] {escape(value)}")
    if m.tags:
        lines.append(f"[bold]Tags:[/] {escape(', '.join(m.tags))}")
    lines.append(f"[bold]Path:[/] {escape(str(entry.source_path))}")
    lines.append(f"[bold]Installed:[/] {escape(entry.installed_at)}")

    console.print(Panel("\n".join(lines), title=escape(m.name)))


# ── Add / Remove ─────────────────────────────────────────────────────


@main.command()
@click.argument("path", type=click.Path())
@click.option("--replace", is_flag=True, help="Replace an installed talon with the same name")
@click.pass_obj
def add(registry: LocalRegistry, path: str, replace: bool):
    """Register the talon in PATH."""
    try:
        entry = registry.add_from_path(path, replace=replace)
    except TalonError as e:
        _fail(e)

    console.print(f"[green]Added talon:[/] {escape(entry.qualified_id)}")


@main.command()
@click.argument("name")
@click.pass_obj
def remove(registry: LocalRegistry, name: str):
    """Remove a talon from the index. Its files stay on disk."""
    try:
        entry = registry.remove_by_name(name)
    except TalonError as e:
        _fail(e)

    console.print(f"[green]Removed talon:[/] {escape(entry.name)}")
    console.print(f"  [dim]Files left in place at {escape(str(entry.source_path))}[/]")


# ── Discover / Reconcile ─────────────────────────────────────────────


@main.command()
@click.option("--register", is_flag=True, help="Add every valid talon not yet in the index")
@click.pass_obj
def discover(registry: LocalRegistry, register: bool):
    """Scan the packages directory for talons."""
    found = 0
    try:
        installed = set(e.name for e in registry.list())
        for result in registry.discover():
            if not result.ok:
                console.print(f"  [red]x[/] {escape(str(result.path))}: {escape(str(result.error))}")
                continue

            found += 1
            m = result.manifest
            line = f"  - {escape(m.name)} v{escape(m.version)}"
            if register and m.name not in installed:
                registry.add_from_path(result.path)
                installed.add(m.name)
                line += " [green](registered)[/]"
            console.print(line)
    except TalonError as e:
        _fail(e)

    console.print(f"\nDiscovered {found} talon(s) in {escape(str(registry.packages_root))}")


@main.command()
@click.pass_obj
def reconcile(registry: LocalRegistry):
    """Compare the index with the packages directory (read-only)."""
    try:
        report = registry.reconcile()
    except TalonError as e:
        _fail(e)

    if report.in_sync and not report.invalid:
        console.print("[green]Index is in sync with disk.[/]")
        return

    if report.installable:
        console.print("[bold]Installable[/] (on disk, not indexed):")
        for r in report.installable:
            console.print(f"  [cyan]+[/] {escape(r.manifest.qualified_id)}  {escape(str(r.path))}")

    if report.stale:
        console.print("[bold]Stale[/] (indexed, missing or broken on disk):")
        for entry in report.stale:
            console.print(f"  [yellow]![/] {escape(entry.name)}  {escape(str(entry.source_path))}")

    if report.invalid:
        console.print("[bold]Invalid[/] (manifest does not parse):")
        for r in report.invalid:
            console.print(f"  [red]x[/] {escape(str(r.path))}: {escape(str(r.error))}")

    console.print(f"\n{report.summary()}")


# ── Validate / Init / Prompt ─────────────────────────────────────────


@main.command()
@click.argument("path", type=click.Path())
def validate(path: str):
    """Check the TALON.md in PATH and list every problem."""
    from talon.utils.validator import validate_package

    issues = validate_package(path)
    if issues:
        console.print("[red]Validation FAILED:[/]")
        for issue in issues:
            console.print(f"  [red]x[/] {escape(issue)}")
        raise click.exceptions.Exit(1)

    console.print("[green]Valid![/]")


@main.command()
@click.pass_obj
def init(registry: LocalRegistry):
    """Create the packages directory with an example talon."""
    example = registry.packages_root / "example-talon" / MANIFEST_FILE
    if example.exists():
        console.print(f"[yellow]Example talon already exists at[/] {escape(str(example))}")
        return

    try:
        example.parent.mkdir(parents=True, exist_ok=True)
        example.write_text(EXAMPLE_TALON, encoding="utf-8")
    except OSError as e:
        _fail(e)

    console.print(f"[green]Created example talon at[/] {escape(str(example))}")


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def prompt(registry: LocalRegistry, names: tuple):
    """Print an agent system prompt describing the given talons."""
    from talon.loader import TalonLoader

    loader = TalonLoader(registry)
    click.echo(loader.generate_system_prompt(list(names)), nl=False)


if __name__ == "__main__":
    main()
