"""Outdated checker — compare declared constraints with the latest releases."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from pubgrade.core.config import Settings
from pubgrade.engines.outdated_checker.discovery import load_manifests
from pubgrade.engines.outdated_checker.models import CheckReport, ManifestSummary, PackageStatus
from pubgrade.engines.outdated_checker.pubdev_client import PubDevClient
from pubgrade.manifest.models import DependencyRecord
from pubgrade.manifest.parser import clean_version
from pubgrade.versioning import classify, is_outdated

log = structlog.get_logger("pubgrade.engine")

LatestVersionLookup = Callable[[str], Awaitable["str | None"]]


def is_any_constraint(version: str) -> bool:
    return version.strip().lower() == "any"


def evaluate_dependency(
    record: DependencyRecord,
    latest_version: str | None,
    manifest: ManifestSummary,
    settings: Settings,
) -> PackageStatus:
    """Build the status of one declaration given its looked-up latest version.

    Path and git dependencies are never outdated.  A hosted dependency with
    no known latest version is reported as a failed lookup.
    """
    current = clean_version(record.version_constraint)
    ignored = settings.find_ignored(record.name)
    status = PackageStatus(
        name=record.name,
        current_version=current,
        latest_version=latest_version,
        section=record.section,
        source_kind=record.source_kind,
        manifest_path=manifest.path,
        relative_path=manifest.relative_path,
        manifest_name=manifest.name,
        is_ignored=ignored is not None,
        ignore_reason=ignored.reason if ignored is not None else None,
    )

    if not record.is_hosted:
        return status
    if latest_version is None:
        status.fetch_failed = True
        return status
    if settings.treat_any_as_up_to_date and is_any_constraint(current):
        return status

    if is_outdated(current, latest_version):
        status.is_outdated = True
        status.update_type = classify(current, latest_version)
    return status


async def check_manifests(
    manifests: list[ManifestSummary],
    lookup: LatestVersionLookup,
    settings: Settings,
) -> CheckReport:
    """Look up every hosted dependency with bounded concurrency."""
    sem = asyncio.Semaphore(settings.concurrency)

    async def _check_one(manifest: ManifestSummary, record: DependencyRecord) -> PackageStatus:
        latest: str | None = None
        if record.is_hosted:
            async with sem:
                try:
                    latest = await lookup(record.name)
                except Exception as exc:
                    log.error("checker.lookup_failed", package=record.name, error=str(exc))
        return evaluate_dependency(record, latest, manifest, settings)

    tasks = [_check_one(m, dep) for m in manifests for dep in m.dependencies]
    packages = list(await asyncio.gather(*tasks))

    report = CheckReport(manifests=manifests, packages=packages)
    log.info(
        "checker.done",
        manifests=len(manifests),
        packages=len(packages),
        outdated=report.actionable_outdated_count,
        ignored_outdated=report.ignored_outdated_count,
        fetch_failed=sum(1 for p in packages if p.fetch_failed),
    )
    return report


async def run_check(
    root: Path,
    settings: Settings,
    client: PubDevClient | None = None,
) -> CheckReport:
    """Discover manifests under *root* and check them against pub.dev."""
    manifests = load_manifests(root, settings)
    if client is not None:
        return await check_manifests(manifests, client.get_latest_version, settings)

    async with PubDevClient(settings.pubdev_url) as own_client:
        return await check_manifests(manifests, own_client.get_latest_version, settings)
