"""Tests for changeset_tools.models."""

from __future__ import annotations

import pytest

from changeset_tools.errors import MalformedPackageError
from changeset_tools.models import Package, Release, ReleasePlan


class TestPackage:
    def test_from_manifest(self) -> None:
        pkg = Package.from_manifest(
            "packages/button",
            {
                "name": "@af/button",
                "version": "2.1.0",
                "private": True,
                "dependencies": {"react": "^18.0.0"},
                "devDependencies": {"jest": "^29.0.0"},
            },
        )
        assert pkg.name == "@af/button"
        assert pkg.version == "2.1.0"
        assert pkg.dir == "packages/button"
        assert pkg.private
        assert pkg.get_dependencies("dependencies") == {"react": "^18.0.0"}
        assert pkg.get_dependencies("devDependencies") == {"jest": "^29.0.0"}
        assert pkg.get_dependencies("peerDependencies") == {}

    def test_defaults(self) -> None:
        pkg = Package.from_manifest("packages/x", {"name": "x"})
        assert pkg.version == "0.0.0"
        assert not pkg.private

    def test_missing_name_raises(self) -> None:
        with pytest.raises(MalformedPackageError, match="packages/x"):
            Package.from_manifest("packages/x", {"version": "1.0.0"})

    def test_set_dependency_range(self) -> None:
        pkg = Package.from_manifest(
            "packages/x", {"name": "x", "peerDependencies": {"y": "^1.0.0"}}
        )
        pkg.set_dependency_range("peerDependencies", "y", "^1.1.0")
        assert pkg.peer_dependencies == {"y": "^1.1.0"}

    def test_set_undeclared_dependency_raises(self) -> None:
        pkg = Package.from_manifest("packages/x", {"name": "x"})
        with pytest.raises(KeyError):
            pkg.set_dependency_range("dependencies", "y", "^1.1.0")

    def test_to_manifest_preserves_keys_and_order(self) -> None:
        manifest = {
            "name": "x",
            "version": "1.0.0",
            "dependencies": {"y": "^1.0.0"},
            "scripts": {"build": "tsc"},
            "peerDependencies": {},
        }
        pkg = Package.from_manifest("packages/x", manifest)
        pkg.set_dependency_range("dependencies", "y", "^1.1.0")

        result = pkg.to_manifest()

        assert list(result) == [
            "name",
            "version",
            "dependencies",
            "scripts",
            "peerDependencies",
        ]
        assert result["dependencies"] == {"y": "^1.1.0"}
        assert result["scripts"] == {"build": "tsc"}
        assert "devDependencies" not in result
        # The loaded manifest itself is untouched
        assert manifest["dependencies"] == {"y": "^1.0.0"}


class TestRelease:
    def test_parses_changesets_json(self) -> None:
        release = Release.model_validate(
            {
                "name": "@af/button",
                "type": "minor",
                "oldVersion": "1.0.0",
                "newVersion": "1.1.0",
                "changesets": ["brave-cats-dance"],
            }
        )
        assert release.old_version == "1.0.0"
        assert release.new_version == "1.1.0"
        assert release.changesets == ["brave-cats-dance"]
        assert release.is_version_change

    def test_no_version_change(self) -> None:
        release = Release(
            name="a", old_version="1.0.0", new_version="1.0.0", type="none"
        )
        assert not release.is_version_change

    def test_rejects_unknown_bump_type(self) -> None:
        with pytest.raises(ValueError):
            Release(
                name="a", old_version="1.0.0", new_version="1.1.0", type="huge"
            )

    def test_dumps_with_aliases(self) -> None:
        release = Release(
            name="a", old_version="1.0.0", new_version="1.1.0", type="minor"
        )
        assert release.model_dump(by_alias=True) == {
            "name": "a",
            "oldVersion": "1.0.0",
            "newVersion": "1.1.0",
            "type": "minor",
            "changesets": [],
        }


class TestReleasePlan:
    def test_releases_by_name(self) -> None:
        plan = ReleasePlan(
            releases=[
                Release(
                    name="a", old_version="1.0.0", new_version="1.1.0", type="minor"
                ),
                Release(
                    name="b", old_version="2.0.0", new_version="2.0.1", type="patch"
                ),
            ]
        )
        assert set(plan.releases_by_name()) == {"a", "b"}
        assert plan.releases_by_name()["b"].new_version == "2.0.1"

    def test_empty(self) -> None:
        assert ReleasePlan().releases == []
