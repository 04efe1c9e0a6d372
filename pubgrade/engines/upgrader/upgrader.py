"""Upgrader — write a new dependency version into pubspec.yaml."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path

import structlog

from pubgrade.exceptions import ManifestReadError, PubGetError
from pubgrade.manifest.models import DependencySection
from pubgrade.manifest.rewriter import rewrite_dependency_version

log = structlog.get_logger("pubgrade.engine")


def apply_upgrade(
    manifest_path: Path,
    package_name: str,
    new_version: str,
    section: DependencySection | str | None = None,
) -> bool:
    """Rewrite *package_name* to *new_version* in *manifest_path*.

    Only *section* is touched when given, otherwise every dependency
    section.  Returns ``False`` (and leaves the file alone) when no
    declaration was changed.

    The file is read and written without locking; no concurrent writer is
    expected.
    """
    try:
        # newline="" keeps CRLF line endings intact on every platform.
        with open(manifest_path, encoding="utf-8", newline="") as fh:
            content = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(f"cannot read manifest: {exc}", path=str(manifest_path)) from exc

    targets = [DependencySection(section)] if section is not None else None
    updated = rewrite_dependency_version(content, package_name, new_version, targets)

    if updated == content:
        log.warning(
            "upgrader.no_change",
            manifest=str(manifest_path),
            package=package_name,
            version=new_version,
            section=targets[0].value if targets else None,
        )
        return False

    with open(manifest_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(updated)
    log.info(
        "upgrader.updated",
        manifest=str(manifest_path),
        package=package_name,
        version=new_version,
    )
    return True


def run_pub_get(manifest_dir: Path, command: str = "flutter pub get") -> str:
    """Run the package fetch command in *manifest_dir* and return its output.

    Raises :class:`PubGetError` on a non-zero exit or a missing executable.
    """
    argv = shlex.split(command)
    log.info("upgrader.pub_get", cwd=str(manifest_dir), command=command)
    try:
        proc = subprocess.run(
            argv,
            cwd=manifest_dir,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise PubGetError(argv, None, str(exc)) from exc

    if proc.returncode != 0:
        raise PubGetError(argv, proc.returncode, proc.stderr or proc.stdout)
    return proc.stdout
