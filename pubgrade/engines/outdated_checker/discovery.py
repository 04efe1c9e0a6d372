"""Manifest discovery — locate pubspec.yaml files under a project root."""

from __future__ import annotations

from pathlib import Path

import structlog

from pubgrade.core.config import Settings
from pubgrade.engines.outdated_checker.models import ManifestSummary
from pubgrade.exceptions import ManifestReadError
from pubgrade.manifest.parser import parse_manifest_file

log = structlog.get_logger("pubgrade.engine")

MANIFEST_FILENAME = "pubspec.yaml"

# Platform folders and build output may contain generated pubspecs.
_EXCLUDED_DIRS = frozenset(
    {"build", "ios", "macos", "android", "windows", "linux", "web", ".dart_tool"}
)


def find_manifests(root: Path, scan_all: bool = False) -> list[Path]:
    """Return the root manifest, or every manifest below *root* when *scan_all*."""
    if not scan_all:
        candidate = root / MANIFEST_FILENAME
        return [candidate] if candidate.is_file() else []

    hits: list[Path] = []
    for hit in sorted(root.glob(f"**/{MANIFEST_FILENAME}")):
        rel_dirs = hit.relative_to(root).parts[:-1]
        if _EXCLUDED_DIRS.intersection(rel_dirs):
            continue
        if hit.is_file():
            hits.append(hit)
    return hits


def load_manifests(root: Path, settings: Settings) -> list[ManifestSummary]:
    """Discover and parse manifests, skipping those on the ignore list.

    Raises :class:`ManifestReadError` when not scanning all manifests and
    *root* has no pubspec.yaml; parse errors propagate unchanged.
    """
    root = root.resolve()
    paths = find_manifests(root, settings.scan_all_pubspecs)
    if not paths and not settings.scan_all_pubspecs:
        raise ManifestReadError(
            "root pubspec.yaml not found; enable scan_all_pubspecs to scan sub-packages",
            path=str(root / MANIFEST_FILENAME),
        )

    ignored = set(settings.ignored_pubspecs)
    summaries: list[ManifestSummary] = []
    for path in paths:
        relative_path = path.relative_to(root).as_posix()
        if relative_path in ignored:
            log.debug("discovery.manifest_ignored", manifest=relative_path)
            continue

        info = parse_manifest_file(path)
        summaries.append(
            ManifestSummary(
                path=path,
                relative_path=relative_path,
                name=info.name,
                is_workspace_root=path.parent == root,
                dependencies=info.dependencies,
            )
        )
    return summaries
