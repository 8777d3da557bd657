"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from changeset_tools.models import Package, Release, ReleasePlan

PackageFactory = Callable[..., Package]


@pytest.fixture
def make_package() -> PackageFactory:
    """Factory building a Package from package.json-style keyword arguments."""

    def _make(
        name: str,
        *,
        dir: str | None = None,
        version: str = "1.0.0",
        private: bool = False,
        dependencies: dict[str, str] | None = None,
        dev_dependencies: dict[str, str] | None = None,
        peer_dependencies: dict[str, str] | None = None,
    ) -> Package:
        manifest: dict[str, Any] = {"name": name, "version": version}
        if private:
            manifest["private"] = True
        if dependencies is not None:
            manifest["dependencies"] = dependencies
        if dev_dependencies is not None:
            manifest["devDependencies"] = dev_dependencies
        if peer_dependencies is not None:
            manifest["peerDependencies"] = peer_dependencies
        return Package.from_manifest(dir or f"packages/{name}", manifest)

    return _make


@pytest.fixture
def abc_packages(make_package: PackageFactory) -> list[Package]:
    """a ← b, and a ← c → b, all on caret ranges."""
    return [
        make_package("@af/package-a", dir="foo/package-a"),
        make_package(
            "@af/package-b",
            dir="foo/package-b",
            dependencies={"@af/package-a": "^1.0.0"},
        ),
        make_package(
            "@af/package-c",
            dir="foo/package-c",
            dependencies={"@af/package-a": "^1.0.0", "@af/package-b": "^1.0.0"},
        ),
    ]


@pytest.fixture
def minor_a() -> ReleasePlan:
    """Release plan with a single minor release of package-a."""
    return ReleasePlan(
        releases=[
            Release(
                name="@af/package-a",
                old_version="1.0.0",
                new_version="1.1.0",
                type="minor",
            )
        ]
    )


def _write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A yarn workspace on disk with package-a, package-b and package-c."""
    _write_json(
        tmp_path / "package.json",
        {"name": "root", "private": True, "workspaces": ["packages/*"]},
    )
    _write_json(
        tmp_path / "packages" / "package-a" / "package.json",
        {"name": "@af/package-a", "version": "1.0.0", "private": True},
    )
    _write_json(
        tmp_path / "packages" / "package-b" / "package.json",
        {
            "name": "@af/package-b",
            "version": "1.0.0",
            "private": True,
            "dependencies": {"@af/package-a": "^1.0.0"},
        },
    )
    _write_json(
        tmp_path / "packages" / "package-c" / "package.json",
        {
            "name": "@af/package-c",
            "version": "1.0.0",
            "private": True,
            "dependencies": {"@af/package-a": "^1.0.0", "@af/package-b": "^1.0.0"},
        },
    )
    return tmp_path
