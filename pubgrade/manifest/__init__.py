"""Manifest engine — parse pubspec.yaml and rewrite dependency versions in place."""

from pubgrade.manifest.models import (
    SECTION_ORDER,
    DependencyRecord,
    DependencySection,
    ManifestInfo,
    SourceKind,
)
from pubgrade.manifest.parser import clean_version, parse_manifest, parse_manifest_file
from pubgrade.manifest.rewriter import rewrite_dependency_version

__all__ = [
    "SECTION_ORDER",
    "DependencyRecord",
    "DependencySection",
    "ManifestInfo",
    "SourceKind",
    "clean_version",
    "parse_manifest",
    "parse_manifest_file",
    "rewrite_dependency_version",
]
