"""Data models for changeset-tools.

These Pydantic models represent the workspace packages and release plans
passed between the graph, propagation and check steps.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import MalformedPackageError

DependencyType = Literal["dependencies", "devDependencies", "peerDependencies"]
BumpType = Literal["none", "patch", "minor", "major"]

DEPENDENCY_TYPES: tuple[DependencyType, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
)

# package.json key → Package attribute
_DEPENDENCY_FIELDS: dict[str, str] = {
    "dependencies": "dependencies",
    "devDependencies": "dev_dependencies",
    "peerDependencies": "peer_dependencies",
}


class Package(BaseModel):
    """A single package.json workspace package.

    Attributes:
        name: Package name from package.json (e.g. "@scope/button").
        version: Current version string, "0.0.0" when undeclared.
        dir: Package directory, relative to the workspace root.
        private: Whether the package is marked private (never published).
        dependencies: Runtime dependency name → version range.
        dev_dependencies: Dev dependency name → version range.
        peer_dependencies: Peer dependency name → version range.
        manifest: The raw package.json contents. Keys not modelled above are
                  written back untouched.
    """

    name: str
    version: str = "0.0.0"
    dir: str
    private: bool = False
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    peer_dependencies: dict[str, str] = Field(default_factory=dict)
    manifest: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_manifest(cls, dir: str, manifest: dict[str, Any]) -> Package:
        """Build a Package from a parsed package.json.

        Raises:
            MalformedPackageError: If the manifest has no name.
        """
        name = manifest.get("name")
        if not name:
            raise MalformedPackageError(f"package.json in {dir} has no name")
        return cls(
            name=name,
            version=manifest.get("version", "0.0.0"),
            dir=dir,
            private=bool(manifest.get("private", False)),
            dependencies=dict(manifest.get("dependencies") or {}),
            dev_dependencies=dict(manifest.get("devDependencies") or {}),
            peer_dependencies=dict(manifest.get("peerDependencies") or {}),
            manifest=manifest,
        )

    def get_dependencies(self, dep_type: DependencyType) -> dict[str, str]:
        """Return the declared dependency map for a package.json category."""
        return getattr(self, _DEPENDENCY_FIELDS[dep_type])

    def set_dependency_range(
        self, dep_type: DependencyType, dep_name: str, version_range: str
    ) -> None:
        """Rewrite a declared range in place.

        Raises:
            KeyError: If the dependency isn't declared under dep_type.
        """
        deps = self.get_dependencies(dep_type)
        if dep_name not in deps:
            raise KeyError(f"{self.name} has no {dep_type} entry for {dep_name}")
        deps[dep_name] = version_range

    def to_manifest(self) -> dict[str, Any]:
        """Return package.json contents with the current dependency ranges.

        Key order of the original manifest is preserved; empty categories that
        the original manifest never declared are not added.
        """
        data = dict(self.manifest)
        for dep_type in DEPENDENCY_TYPES:
            deps = self.get_dependencies(dep_type)
            if deps or dep_type in data:
                data[dep_type] = dict(deps)
        return data


class DependencyEdge(BaseModel):
    """A dependent's declaration of some dependency.

    Stored in the dependents graph under the *dependency's* name.

    Attributes:
        name: Name of the dependent package declaring the range.
        version_range: The declared range string, e.g. "^1.2.0".
        dep_type: package.json category the declaration came from.
    """

    name: str
    version_range: str
    dep_type: DependencyType


class Release(BaseModel):
    """A package scheduled for release by changesets."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    old_version: str = Field(alias="oldVersion")
    new_version: str = Field(alias="newVersion")
    type: BumpType
    changesets: list[str] = Field(default_factory=list)

    @property
    def is_version_change(self) -> bool:
        return self.old_version != self.new_version


class ReleasePlan(BaseModel):
    """The set of releases computed by changesets from pending changesets."""

    releases: list[Release] = Field(default_factory=list)
    changesets: list[dict[str, Any]] = Field(default_factory=list)

    def releases_by_name(self) -> dict[str, Release]:
        return {release.name: release for release in self.releases}


DependentsGraph = dict[str, list[DependencyEdge]]
DependencyGraph = dict[str, list[str]]
