"""Data models for the outdated checker engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pubgrade.manifest.models import SECTION_ORDER, DependencyRecord, DependencySection, SourceKind
from pubgrade.versioning import UpdateType


@dataclass
class ManifestSummary:
    """One discovered pubspec.yaml and the dependencies it declares."""

    path: Path
    relative_path: str
    name: str | None = None
    is_workspace_root: bool = False
    dependencies: list[DependencyRecord] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.relative_path


@dataclass
class PackageStatus:
    """Freshness of a single dependency declaration."""

    name: str
    current_version: str  # constraint with operators stripped
    latest_version: str | None
    section: DependencySection
    source_kind: SourceKind
    manifest_path: Path
    relative_path: str
    manifest_name: str | None = None
    is_outdated: bool = False
    update_type: UpdateType = UpdateType.NONE
    is_ignored: bool = False
    ignore_reason: str | None = None
    fetch_failed: bool = False

    @property
    def is_actionable(self) -> bool:
        return self.is_outdated and not self.is_ignored

    @property
    def priority(self) -> int:
        """Display priority: actionable, fetch failures, ignored, up to date."""
        if self.is_actionable:
            return 0
        if self.fetch_failed and not self.is_ignored:
            return 1
        if self.is_ignored:
            return 2
        return 3


@dataclass
class ManifestGroup:
    manifest: ManifestSummary
    packages: list[PackageStatus]

    def by_section(self) -> list[tuple[DependencySection, list[PackageStatus]]]:
        """Non-empty sections in declaration order, packages sorted for display."""
        grouped = []
        for section in SECTION_ORDER:
            members = [p for p in self.packages if p.section is section]
            if members:
                grouped.append((section, sort_for_display(members)))
        return grouped


@dataclass
class CheckReport:
    """Result of checking one or more manifests."""

    manifests: list[ManifestSummary]
    packages: list[PackageStatus] = field(default_factory=list)

    @property
    def actionable_outdated_count(self) -> int:
        return sum(1 for p in self.packages if p.is_outdated and not p.is_ignored)

    @property
    def ignored_outdated_count(self) -> int:
        return sum(1 for p in self.packages if p.is_outdated and p.is_ignored)

    def groups(self) -> list[ManifestGroup]:
        """Per-manifest groups, workspace root first, then by relative path."""
        ordered = sorted(
            self.manifests, key=lambda m: (not m.is_workspace_root, m.relative_path)
        )
        return [
            ManifestGroup(
                manifest=m,
                packages=[p for p in self.packages if p.manifest_path == m.path],
            )
            for m in ordered
        ]

    def summary(self) -> str:
        actionable = self.actionable_outdated_count
        ignored = self.ignored_outdated_count
        if actionable:
            return f"{actionable} outdated package{'s' if actionable > 1 else ''}"
        if ignored:
            return f"{ignored} ignored update{'s' if ignored > 1 else ''}"
        return "All packages up to date"


def sort_for_display(packages: list[PackageStatus]) -> list[PackageStatus]:
    return sorted(packages, key=lambda p: (p.priority, p.name))


def visible_packages(packages: list[PackageStatus], hide_up_to_date: bool) -> list[PackageStatus]:
    """Drop up-to-date entries when hiding; outdated and failed lookups stay."""
    if not hide_up_to_date:
        return list(packages)
    return [p for p in packages if p.is_outdated or p.fetch_failed]
