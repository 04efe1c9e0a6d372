"""CLI entry point: pubgrade.

Subcommands:
    pubgrade check                         # List outdated dependencies
    pubgrade check --all --json            # Every dependency, as JSON
    pubgrade upgrade http                  # Bump http to the latest release
    pubgrade upgrade http 1.2.0 --section dev_dependencies
    pubgrade ignore http --reason "pinned for web"
    pubgrade ignored                       # Show ignore lists
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from pubgrade.core.config import Settings, load_settings, save_ignore_lists
from pubgrade.core.logging import setup_logging
from pubgrade.engines.outdated_checker.checker import run_check
from pubgrade.engines.outdated_checker.models import (
    CheckReport,
    ManifestGroup,
    PackageStatus,
    visible_packages,
)
from pubgrade.engines.outdated_checker.pubdev_client import PubDevClient, format_relative_time
from pubgrade.engines.upgrader.upgrader import apply_upgrade, run_pub_get
from pubgrade.exceptions import PubgradeError
from pubgrade.manifest.models import SECTION_ORDER, SourceKind

_SECTION_CHOICES = [s.value for s in SECTION_ORDER]


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    try:
        return load_settings(ctx.obj["config_path"], root=ctx.obj["root"])
    except PubgradeError as e:
        _fail(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project root containing pubspec.yaml",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: <root>/.pubgrade.yaml)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, root: Path, config_path: Path | None) -> None:
    """pubgrade: keep pubspec.yaml dependencies fresh."""
    try:
        setup_logging("DEBUG" if verbose else None)
    except PubgradeError as e:
        _fail(str(e))
    ctx.obj = {"root": root, "config_path": config_path}


# ── check ────────────────────────────────────────────────────────────────


@main.command("check")
@click.option(
    "--scan-all/--root-only",
    default=None,
    help="Scan every pubspec.yaml below the root (default: from settings)",
)
@click.option("--all", "show_all", is_flag=True, help="Also list up-to-date packages")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--dates", is_flag=True, help="Show when each latest version was published")
@click.pass_context
def check(
    ctx: click.Context,
    scan_all: bool | None,
    show_all: bool,
    as_json: bool,
    dates: bool,
) -> None:
    """Check dependencies against the latest releases on pub.dev."""
    settings = _settings(ctx)
    if scan_all is not None:
        settings.scan_all_pubspecs = scan_all
    hide_up_to_date = settings.hide_up_to_date and not show_all

    try:
        report, published = asyncio.run(_check(ctx.obj["root"], settings, dates))
    except PubgradeError as e:
        _fail(str(e))

    if as_json:
        rows = [
            _status_row(p, published.get((p.name, p.latest_version)))
            for p in visible_packages(report.packages, hide_up_to_date)
        ]
        click.echo(json.dumps(rows, indent=2))
        return

    _print_report(report, hide_up_to_date, published)


async def _check(
    root: Path, settings: Settings, dates: bool
) -> tuple[CheckReport, dict[tuple[str, str | None], str]]:
    published: dict[tuple[str, str | None], str] = {}
    async with PubDevClient(settings.pubdev_url) as client:
        report = await run_check(root, settings, client)
        if dates:
            for p in report.packages:
                if not p.is_outdated or p.latest_version is None:
                    continue
                when = await client.get_version_published_date(p.name, p.latest_version)
                if when is not None:
                    published[(p.name, p.latest_version)] = format_relative_time(when)
    return report, published


def _status_row(p: PackageStatus, published: str | None) -> dict:
    return {
        "name": p.name,
        "manifest": p.relative_path,
        "section": p.section.value,
        "source": p.source_kind.value,
        "current_version": p.current_version,
        "latest_version": p.latest_version,
        "is_outdated": p.is_outdated,
        "update_type": p.update_type.value,
        "is_ignored": p.is_ignored,
        "ignore_reason": p.ignore_reason,
        "fetch_failed": p.fetch_failed,
        "published": published,
    }


def _describe(p: PackageStatus, published: str | None) -> str:
    current = p.current_version or "unknown"
    source = f" ({p.source_kind.value})" if p.source_kind is not SourceKind.HOSTED else ""
    if p.is_ignored:
        reason = f": {p.ignore_reason}" if p.ignore_reason else ""
        text = f"{current} (ignored{reason})"
        if p.is_outdated:
            text += f" -> {p.latest_version}"
    elif p.fetch_failed:
        text = "fetch failed"
    elif p.is_outdated:
        text = f"{current} -> {p.latest_version}  [{p.update_type.value}]"
        if published:
            text += f"  released {published}"
    else:
        text = f"{current} up to date"
    return f"{p.name}  {text}{source}"


def _print_report(
    report: CheckReport,
    hide_up_to_date: bool,
    published: dict[tuple[str, str | None], str],
) -> None:
    if not report.packages:
        click.echo("No dependencies found.")
        return

    for group in report.groups():
        visible = visible_packages(group.packages, hide_up_to_date)
        label = group.manifest.display_name
        if label != group.manifest.relative_path:
            label += f" ({group.manifest.relative_path})"
        click.echo(label)
        if not visible:
            click.echo("  nothing to report")
            click.echo()
            continue

        for section, members in ManifestGroup(group.manifest, visible).by_section():
            click.echo(f"  {section.value} ({len(members)})")
            for p in members:
                click.echo(f"    {_describe(p, published.get((p.name, p.latest_version)))}")
        click.echo()

    click.echo(report.summary())


# ── upgrade ──────────────────────────────────────────────────────────────


@main.command("upgrade")
@click.argument("package")
@click.argument("version", required=False)
@click.option(
    "--manifest",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="pubspec.yaml to edit (default: <root>/pubspec.yaml)",
)
@click.option(
    "--section",
    type=click.Choice(_SECTION_CHOICES),
    default=None,
    help="Only update the declaration in this section",
)
@click.option("--pub-get/--no-pub-get", default=True, help="Run the package fetch command")
@click.pass_context
def upgrade(
    ctx: click.Context,
    package: str,
    version: str | None,
    manifest: Path | None,
    section: str | None,
    pub_get: bool,
) -> None:
    """Set PACKAGE to VERSION (default: latest on pub.dev), keeping formatting."""
    settings = _settings(ctx)
    manifest_path = manifest or ctx.obj["root"] / "pubspec.yaml"

    if version is None:
        version = asyncio.run(_latest(settings, package))
        if version is None:
            _fail(f"could not look up the latest version of {package}")

    try:
        changed = apply_upgrade(manifest_path, package, version, section)
    except PubgradeError as e:
        _fail(str(e))

    if not changed:
        click.echo(f"Could not update {package}: no matching declaration", err=True)
        sys.exit(1)

    click.echo(f"Updated {package} to {version} in {manifest_path}")
    if pub_get:
        try:
            run_pub_get(manifest_path.parent, settings.pub_get_command)
        except PubgradeError as e:
            _fail(str(e))
        click.echo(f"Ran: {settings.pub_get_command}")


async def _latest(settings: Settings, package: str) -> str | None:
    async with PubDevClient(settings.pubdev_url) as client:
        return await client.get_latest_version(package)


# ── ignore lists ─────────────────────────────────────────────────────────


@main.command("ignore")
@click.argument("package")
@click.option("--reason", default=None, help="Why the package is ignored")
@click.pass_context
def ignore(ctx: click.Context, package: str, reason: str | None) -> None:
    """Stop reporting PACKAGE as an actionable update."""
    settings = _settings(ctx)
    if not settings.ignore_package(package, reason):
        click.echo(f"{package} is already ignored")
        return
    save_ignore_lists(settings)
    click.echo(f"{package} is now ignored")


@main.command("unignore")
@click.argument("package")
@click.pass_context
def unignore(ctx: click.Context, package: str) -> None:
    """Report PACKAGE again."""
    settings = _settings(ctx)
    if not settings.unignore_package(package):
        click.echo(f"{package} is not ignored")
        return
    save_ignore_lists(settings)
    click.echo(f"{package} is no longer ignored")


@main.command("ignore-manifest")
@click.argument("relative_path")
@click.pass_context
def ignore_manifest(ctx: click.Context, relative_path: str) -> None:
    """Skip the pubspec.yaml at RELATIVE_PATH (relative to the root)."""
    settings = _settings(ctx)
    if not settings.ignore_pubspec(relative_path):
        click.echo(f"{relative_path} is already ignored")
        return
    save_ignore_lists(settings)
    click.echo(f"Ignored pubspec: {relative_path}")


@main.command("unignore-manifest")
@click.argument("relative_path")
@click.pass_context
def unignore_manifest(ctx: click.Context, relative_path: str) -> None:
    """Scan the pubspec.yaml at RELATIVE_PATH again."""
    settings = _settings(ctx)
    if not settings.unignore_pubspec(relative_path):
        click.echo(f"{relative_path} is not ignored")
        return
    save_ignore_lists(settings)
    click.echo(f"Unignored pubspec: {relative_path}")


@main.command("ignored")
@click.pass_context
def ignored(ctx: click.Context) -> None:
    """List ignored packages and manifests."""
    settings = _settings(ctx)
    if not settings.ignored_packages and not settings.ignored_pubspecs:
        click.echo("Nothing is ignored")
        return
    for pkg in settings.ignored_packages:
        click.echo(f"package  {pkg.name}  {pkg.reason or 'No reason provided'}")
    for rel in settings.ignored_pubspecs:
        click.echo(f"pubspec  {rel}")


if __name__ == "__main__":
    main()
