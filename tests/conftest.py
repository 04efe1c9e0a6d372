"""Shared pytest fixtures for pubgrade tests."""

from pathlib import Path

import pytest

SAMPLE_PUBSPEC = """\
name: demo
description: A sample app.
version: 1.0.0+1

environment:
  sdk: ">=3.0.0 <4.0.0"

dependencies:
  flutter:
    sdk: flutter
  http: ^1.1.0  # networking
  intl: 0.18.1
  local_pkg:
    path: ../local_pkg
  git_pkg:
    git:
      url: https://github.com/acme/git_pkg.git
      ref: main
  any_pkg: any

dev_dependencies:
  flutter_test:
    sdk: flutter
  lints: ^2.0.0

dependency_overrides:
  http: 1.0.0
"""


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sample_pubspec() -> str:
    return SAMPLE_PUBSPEC


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root holding the sample pubspec.yaml."""
    (tmp_path / "pubspec.yaml").write_text(SAMPLE_PUBSPEC, encoding="utf-8")
    return tmp_path
