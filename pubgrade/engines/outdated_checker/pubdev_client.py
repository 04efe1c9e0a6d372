"""Async pub.dev API client with a short-lived cache and retries."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from pubgrade.core.config import DEFAULT_PUBDEV_URL

log = structlog.get_logger("pubgrade.engine")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds

_SUCCESS_TTL = 10 * 60  # seconds
_FAILURE_TTL = 60


@dataclass
class _CacheEntry:
    value: dict[str, Any] | None
    expires_at: float


class PubDevClient:
    """Thin async wrapper around ``GET /api/packages/<name>``.

    Package documents are cached per client instance: successful lookups
    for ten minutes, failures for one minute.  Concurrent lookups of the
    same package share a single request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_PUBDEV_URL,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", "User-Agent": "pubgrade"},
            timeout=timeout,
            transport=transport,
        )
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[dict[str, Any] | None]] = {}

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PubDevClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def get_latest_version(self, package_name: str) -> str | None:
        """Latest published version of *package_name*, or ``None`` if unknown."""
        doc = await self.get_package(package_name)
        if doc is None:
            return None
        latest = doc.get("latest")
        if not isinstance(latest, dict):
            return None
        version = latest.get("version")
        return version if isinstance(version, str) else None

    async def get_version_published_date(
        self, package_name: str, version: str
    ) -> datetime | None:
        """Publication time of one version, or ``None`` if unavailable."""
        doc = await self.get_package(package_name)
        if doc is None:
            return None
        for entry in doc.get("versions") or []:
            if isinstance(entry, dict) and entry.get("version") == version:
                return _parse_timestamp(entry.get("published"))
        return None

    async def get_package(self, package_name: str) -> dict[str, Any] | None:
        """Package document from the cache, an in-flight request, or the API."""
        cached = self._cache.get(package_name)
        if cached is not None and cached.expires_at > self._clock():
            return cached.value

        task = self._in_flight.get(package_name)
        if task is None:
            task = asyncio.ensure_future(self._fetch_package(package_name))
            self._in_flight[package_name] = task
        return await asyncio.shield(task)

    # ── internal ───────────────────────────────────────────────────────────

    async def _fetch_package(self, package_name: str) -> dict[str, Any] | None:
        try:
            resp = await self._request_with_retry(f"/api/packages/{package_name}")
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError("unexpected response body")
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("pubdev.lookup_failed", package=package_name, error=str(exc))
            self._store(package_name, None, _FAILURE_TTL)
            return None
        finally:
            self._in_flight.pop(package_name, None)

        self._store(package_name, data, _SUCCESS_TTL)
        return data

    def _store(self, package_name: str, value: dict[str, Any] | None, ttl: float) -> None:
        self._cache[package_name] = _CacheEntry(value=value, expires_at=self._clock() + ttl)

    async def _request_with_retry(self, url: str) -> httpx.Response:
        """GET with exponential backoff on 5xx and timeout errors."""
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(url)

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                log.warning(
                    "pubdev.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = httpx.HTTPStatusError(
                    f"{resp.status_code}", request=resp.request, response=resp
                )
            except httpx.TimeoutException as exc:
                log.warning(
                    "pubdev.timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = exc

            if attempt < _MAX_RETRIES - 1:
                delay = _RETRY_BASE_DELAY * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_relative_time(when: datetime, now: datetime | None = None) -> str:
    """Render *when* as ``"3 days ago"``-style text relative to *now*."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - when).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    months = days // 30
    years = days // 365

    if seconds < 60:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 30:
        return _plural(days, "day")
    if months < 12:
        return _plural(months, "month")
    return _plural(years, "year")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"
