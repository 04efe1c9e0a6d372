"""Outdated checker engine — discover manifests and look up newer releases."""

from pubgrade.engines.outdated_checker.checker import (
    check_manifests,
    evaluate_dependency,
    run_check,
)
from pubgrade.engines.outdated_checker.discovery import find_manifests, load_manifests
from pubgrade.engines.outdated_checker.models import (
    CheckReport,
    ManifestGroup,
    ManifestSummary,
    PackageStatus,
    visible_packages,
)
from pubgrade.engines.outdated_checker.pubdev_client import PubDevClient

__all__ = [
    "CheckReport",
    "ManifestGroup",
    "ManifestSummary",
    "PackageStatus",
    "PubDevClient",
    "check_manifests",
    "evaluate_dependency",
    "find_manifests",
    "load_manifests",
    "run_check",
    "visible_packages",
]
