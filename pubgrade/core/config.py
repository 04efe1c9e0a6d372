"""Settings — `.pubgrade.yaml` in the project root, overridable via env vars."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pubgrade.exceptions import ConfigError

SETTINGS_FILENAME = ".pubgrade.yaml"

DEFAULT_PUBDEV_URL = "https://pub.dev"
DEFAULT_PUB_GET_COMMAND = "flutter pub get"
DEFAULT_CONCURRENCY = 4

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class IgnoredPackage:
    name: str
    reason: str | None = None


@dataclass
class Settings:
    """User-facing configuration for checks and upgrades."""

    scan_all_pubspecs: bool = False
    hide_up_to_date: bool = True
    treat_any_as_up_to_date: bool = True
    ignored_packages: list[IgnoredPackage] = field(default_factory=list)
    ignored_pubspecs: list[str] = field(default_factory=list)
    concurrency: int = DEFAULT_CONCURRENCY
    pubdev_url: str = DEFAULT_PUBDEV_URL
    pub_get_command: str = DEFAULT_PUB_GET_COMMAND
    path: Path | None = None  # file the settings were loaded from

    # ── ignore lists ─────────────────────────────────────────────────────

    def find_ignored(self, name: str) -> IgnoredPackage | None:
        for pkg in self.ignored_packages:
            if pkg.name == name:
                return pkg
        return None

    def ignore_package(self, name: str, reason: str | None = None) -> bool:
        """Add *name* to the ignore list; False if it was already there."""
        if self.find_ignored(name) is not None:
            return False
        self.ignored_packages.append(IgnoredPackage(name=name, reason=reason or None))
        return True

    def unignore_package(self, name: str) -> bool:
        before = len(self.ignored_packages)
        self.ignored_packages = [p for p in self.ignored_packages if p.name != name]
        return len(self.ignored_packages) != before

    def ignore_pubspec(self, relative_path: str) -> bool:
        if relative_path in self.ignored_pubspecs:
            return False
        self.ignored_pubspecs = sorted([*self.ignored_pubspecs, relative_path])
        return True

    def unignore_pubspec(self, relative_path: str) -> bool:
        if relative_path not in self.ignored_pubspecs:
            return False
        self.ignored_pubspecs = [p for p in self.ignored_pubspecs if p != relative_path]
        return True


def load_settings(path: Path | str | None = None, *, root: Path | str = ".") -> Settings:
    """Load settings from *path* (default ``<root>/.pubgrade.yaml``).

    A missing file yields defaults.  Environment variables override file
    values:

        PUBGRADE_SCAN_ALL, PUBGRADE_HIDE_UP_TO_DATE,
        PUBGRADE_TREAT_ANY_AS_UP_TO_DATE, PUBGRADE_CONCURRENCY,
        PUBGRADE_PUBDEV_URL, PUBGRADE_PUB_GET_COMMAND

    Raises :class:`ConfigError` if the file is not a valid settings mapping.
    """
    settings_path = Path(path) if path is not None else Path(root) / SETTINGS_FILENAME
    data = _read_yaml(settings_path)

    settings = Settings(
        scan_all_pubspecs=_get_bool(data, "scan_all_pubspecs", False),
        hide_up_to_date=_get_bool(data, "hide_up_to_date", True),
        treat_any_as_up_to_date=_get_bool(data, "treat_any_as_up_to_date", True),
        ignored_packages=_get_ignored_packages(data),
        ignored_pubspecs=_get_str_list(data, "ignored_pubspecs"),
        concurrency=_get_int(data, "concurrency", DEFAULT_CONCURRENCY),
        pubdev_url=_get_str(data, "pubdev_url", DEFAULT_PUBDEV_URL),
        pub_get_command=_get_str(data, "pub_get_command", DEFAULT_PUB_GET_COMMAND),
        path=settings_path,
    )

    settings.scan_all_pubspecs = _env_bool("PUBGRADE_SCAN_ALL", settings.scan_all_pubspecs)
    settings.hide_up_to_date = _env_bool("PUBGRADE_HIDE_UP_TO_DATE", settings.hide_up_to_date)
    settings.treat_any_as_up_to_date = _env_bool(
        "PUBGRADE_TREAT_ANY_AS_UP_TO_DATE", settings.treat_any_as_up_to_date
    )
    settings.concurrency = _env_int("PUBGRADE_CONCURRENCY", settings.concurrency)
    settings.pubdev_url = os.environ.get("PUBGRADE_PUBDEV_URL", settings.pubdev_url)
    settings.pub_get_command = os.environ.get(
        "PUBGRADE_PUB_GET_COMMAND", settings.pub_get_command
    )

    if settings.concurrency < 1:
        raise ConfigError(f"concurrency must be >= 1, got {settings.concurrency}")
    return settings


def save_ignore_lists(settings: Settings, path: Path | str | None = None) -> Path:
    """Write the ignore lists back to the settings file.

    Other keys keep their values and order, but the file is re-serialized
    with ``yaml.safe_dump``: comments and custom formatting are not kept.
    """
    target = Path(path) if path is not None else settings.path
    if target is None:
        raise ConfigError("no settings file to save to")

    data = _read_yaml(target)
    data["ignored_packages"] = [
        {"name": p.name, "reason": p.reason} if p.reason else {"name": p.name}
        for p in settings.ignored_packages
    ]
    data["ignored_pubspecs"] = list(settings.ignored_pubspecs)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return target


# ── file helpers ─────────────────────────────────────────────────────────


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot load settings from {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"settings file {path} must contain a mapping")
    return data


def _get_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _get_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    return value


def _get_str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}")
    return value


def _get_str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def _get_ignored_packages(data: dict[str, Any]) -> list[IgnoredPackage]:
    """Entries may be a bare name or a ``{name, reason}`` mapping."""
    raw = data.get("ignored_packages") or []
    if not isinstance(raw, list):
        raise ConfigError("'ignored_packages' must be a list")

    packages: list[IgnoredPackage] = []
    for entry in raw:
        if isinstance(entry, str):
            packages.append(IgnoredPackage(name=entry))
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            reason = entry.get("reason")
            packages.append(
                IgnoredPackage(name=entry["name"], reason=str(reason) if reason else None)
            )
        else:
            raise ConfigError(f"invalid ignored_packages entry: {entry!r}")
    return packages


# ── env helpers ──────────────────────────────────────────────────────────


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
