"""pubgrade — dependency freshness checks and format-preserving upgrades for pubspec.yaml."""

from pubgrade.exceptions import (
    ConfigError,
    ManifestError,
    ManifestParseError,
    ManifestReadError,
    PubgradeError,
    PubGetError,
)
from pubgrade.manifest import (
    DependencyRecord,
    DependencySection,
    ManifestInfo,
    SourceKind,
    clean_version,
    parse_manifest,
    parse_manifest_file,
    rewrite_dependency_version,
)
from pubgrade.versioning import UpdateType, classify, compare_pub_versions, is_outdated

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DependencyRecord",
    "DependencySection",
    "ManifestError",
    "ManifestInfo",
    "ManifestParseError",
    "ManifestReadError",
    "PubGetError",
    "PubgradeError",
    "SourceKind",
    "UpdateType",
    "classify",
    "clean_version",
    "compare_pub_versions",
    "is_outdated",
    "parse_manifest",
    "parse_manifest_file",
    "rewrite_dependency_version",
]
