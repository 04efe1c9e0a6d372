"""Parser for Dart/Flutter pubspec.yaml manifests."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from pubgrade.exceptions import ManifestParseError, ManifestReadError
from pubgrade.manifest.models import (
    SECTION_ORDER,
    DependencyRecord,
    DependencySection,
    ManifestInfo,
    SourceKind,
)

# SDK placeholders that are never published on pub.dev.
_SKIP_PACKAGES: dict[DependencySection, frozenset[str]] = {
    DependencySection.DEPENDENCIES: frozenset({"flutter"}),
    DependencySection.DEV_DEPENDENCIES: frozenset({"flutter_test"}),
    DependencySection.DEPENDENCY_OVERRIDES: frozenset(),
}

_OPERATOR_RE = re.compile(r"^[\^>=<]+")


def clean_version(raw: str) -> str:
    """Strip leading constraint operators (``^``, ``>=``, ``<`` ...) from *raw*.

    The remainder is not validated: ``">=1.0.0 <2.0.0"`` becomes
    ``"1.0.0 <2.0.0"``.
    """
    return _OPERATOR_RE.sub("", raw.strip()).strip()


def parse_manifest(content: str, *, path: str | None = None) -> ManifestInfo:
    """Parse pubspec text into a :class:`ManifestInfo`.

    Raises :class:`ManifestParseError` if *content* is not valid YAML.
    """
    try:
        doc = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ManifestParseError(f"invalid YAML: {exc}", path=path) from exc

    if not isinstance(doc, dict):
        return ManifestInfo()

    name = doc.get("name")
    deps: list[DependencyRecord] = []
    for section in SECTION_ORDER:
        deps.extend(_parse_section(doc.get(section.value), section))

    return ManifestInfo(name=name if isinstance(name, str) else None, dependencies=deps)


def parse_manifest_file(file_path: Path | str) -> ManifestInfo:
    """Read and parse a pubspec.yaml file.

    Raises :class:`ManifestReadError` when the file cannot be read and
    :class:`ManifestParseError` when it is not valid YAML.
    """
    file_path = Path(file_path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(f"cannot read manifest: {exc}", path=str(file_path)) from exc
    return parse_manifest(content, path=str(file_path))


def _parse_section(section_data: Any, section: DependencySection) -> list[DependencyRecord]:
    if not isinstance(section_data, dict):
        return []

    skip = _SKIP_PACKAGES[section]
    records: list[DependencyRecord] = []
    for raw_name, spec in section_data.items():
        name = str(raw_name)
        if name in skip:
            continue
        parsed = _version_and_source(spec)
        if parsed is None:
            continue
        constraint, source_kind = parsed
        records.append(
            DependencyRecord(
                name=name,
                version_constraint=constraint,
                section=section,
                source_kind=source_kind,
            )
        )
    return records


def _version_and_source(spec: Any) -> tuple[str, SourceKind] | None:
    """Classify a declaration value; ``None`` means the entry is skipped."""
    if isinstance(spec, str):
        return spec, SourceKind.HOSTED

    if not isinstance(spec, dict):
        return None

    if isinstance(spec.get("path"), str):
        return f"path:{spec['path']}", SourceKind.PATH

    if "git" in spec:
        git = spec["git"]
        if isinstance(git, str):
            return f"git:{git}", SourceKind.GIT
        if isinstance(git, dict) and isinstance(git.get("url"), str):
            return f"git:{git['url']}", SourceKind.GIT
        return "git", SourceKind.GIT

    # Covers both the explicit ``hosted:`` form and a bare ``version:``.
    version = spec.get("version")
    if isinstance(version, str):
        return version, SourceKind.HOSTED

    return None
