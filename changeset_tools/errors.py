"""Exceptions raised by changeset-tools."""

from __future__ import annotations


class ChangesetToolsError(Exception):
    """Base class for all changeset-tools errors."""


class MalformedPackageError(ChangesetToolsError):
    """A package.json is missing required fields (e.g. name)."""


class DataConsistencyError(ChangesetToolsError):
    """Workspace listing and manifest contents disagree."""


class PackageNotFoundError(DataConsistencyError):
    """A package referenced by a graph is not in the current package set."""


class WorkspaceError(ChangesetToolsError):
    """The workspace root or its package globs could not be resolved."""


class ReleaseInfoError(ChangesetToolsError):
    """release-info.json is missing or cannot be parsed."""


class MissingChangesetsError(ChangesetToolsError):
    """Changed packages are missing a changeset.

    Attributes:
        packages: Names of the packages without a changeset.
    """

    def __init__(self, packages: list[str]) -> None:
        self.packages = packages
        super().__init__(
            "The following packages have changes that probably need a changeset:\n"
            + "\n".join(f"  {name}" for name in packages)
        )
