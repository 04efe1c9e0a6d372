"""Upgrader engine — apply a version bump and refresh packages."""

from pubgrade.engines.upgrader.upgrader import apply_upgrade, run_pub_get

__all__ = ["apply_upgrade", "run_pub_get"]
