"""Data models for parsed pubspec manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DependencySection(str, Enum):
    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "dev_dependencies"
    DEPENDENCY_OVERRIDES = "dependency_overrides"


class SourceKind(str, Enum):
    HOSTED = "hosted"
    PATH = "path"
    GIT = "git"


# Declaration order inside a pubspec; also the display order.
SECTION_ORDER: tuple[DependencySection, ...] = (
    DependencySection.DEPENDENCIES,
    DependencySection.DEV_DEPENDENCIES,
    DependencySection.DEPENDENCY_OVERRIDES,
)


@dataclass(frozen=True)
class DependencyRecord:
    """A single dependency declared in one section of a manifest."""

    name: str
    version_constraint: str  # as written, or a path:/git: marker
    section: DependencySection
    source_kind: SourceKind

    @property
    def is_hosted(self) -> bool:
        return self.source_kind is SourceKind.HOSTED


@dataclass(frozen=True)
class ManifestInfo:
    """Result of parsing one pubspec.yaml document."""

    name: str | None = None
    dependencies: list[DependencyRecord] = field(default_factory=list)

    def in_section(self, section: DependencySection) -> list[DependencyRecord]:
        return [d for d in self.dependencies if d.section is section]
