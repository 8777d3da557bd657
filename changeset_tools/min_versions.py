"""Raise minimum dependency ranges of unreleased dependents.

A package that isn't released this cycle keeps declaring the *old* minimum
version of its dependencies. If it already relies on a feature added in a
minor release of a dependency, consumers can resolve a stale dependency
version that lacks that feature. This module raises the caret range of such
dependents to the newly released version, without releasing them. The raised
range ships with the dependent's next real release.

A dependent's range is raised when:
1. One of its dependencies is minor-released (configurable via bump_types).
2. The dependent itself is not released with a version change this cycle.
   Released dependents already get their ranges rewritten by changesets.

Patch releases are skipped: new features shouldn't land in patches, and
bumping on every patch would churn the whole transitive dependent tree.
Major releases are skipped: the new major falls outside existing caret
ranges, so changesets releases the dependents anyway.

Runs after `changeset version`, which consumes the changesets, so the release
plan is read from release-info.json written before the bump.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from .config import Config
from .errors import PackageNotFoundError
from .graph import build_dependents_graph
from .manifest import discover_packages, write_package
from .models import DependencyEdge, Package, Release, ReleasePlan
from .shell import commit_files, step, warn
from .versions import caret_range, is_caret_range, satisfies_minimum, should_propagate

COMMIT_MESSAGE = "CI: Update version ranges of unreleased dependents"
COMMIT_SKIP_CI = "[skip ci]"


def _update_dependents(
    release: Release,
    dependents: list[DependencyEdge],
    packages_by_name: dict[str, Package],
    releases_by_name: dict[str, Release],
) -> list[Package]:
    """Raise the range of release.name in each eligible dependent.

    Returns:
        Dependents whose manifests were modified, in edge order.

    Raises:
        PackageNotFoundError: If a dependent isn't in packages_by_name.
    """
    target = caret_range(release.new_version)
    updated: list[Package] = []
    for edge in dependents:
        existing = releases_by_name.get(edge.name)
        if existing is not None and existing.is_version_change:
            continue

        if not is_caret_range(edge.version_range):
            # Pinned and tilde ranges fall out of range on a minor release, so
            # changesets bumps those itself. Anything else is left to humans.
            warn(
                f'{edge.name} has non-caret version range "{edge.version_range}" '
                f"for {release.name} ({edge.dep_type}). Not updating minimum version."
            )
            continue

        dependent = packages_by_name.get(edge.name)
        if dependent is None:
            raise PackageNotFoundError(f"Cannot find package: {edge.name}")

        if satisfies_minimum(edge.version_range, release.new_version):
            continue

        print(
            f"  Updating {edge.name}'s dependency version of {release.name} to {target}"
        )
        dependent.set_dependency_range(edge.dep_type, release.name, target)
        updated.append(dependent)
    return updated


def propagate_min_versions(
    release_plan: ReleasePlan,
    packages: Iterable[Package],
    *,
    bump_types: Collection[str] = ("minor",),
    include_prereleases: bool = False,
) -> list[Package]:
    """Compute and apply range updates for unreleased dependents.

    Packages are modified in place; nothing is written to disk.

    Args:
        release_plan: Releases of this cycle.
        packages: All workspace packages.
        bump_types: Release types that trigger propagation.
        include_prereleases: Also propagate releases to prerelease versions.

    Returns:
        Updated packages, each listed once even when several releases
        touched it, in order of first update.

    Raises:
        PackageNotFoundError: If the dependents graph names a package that
                              isn't in packages.
    """
    packages = list(packages)
    dependents_graph = build_dependents_graph(packages)
    packages_by_name = {pkg.name: pkg for pkg in packages}
    releases_by_name = release_plan.releases_by_name()

    updated: dict[str, Package] = {}
    for release in release_plan.releases:
        if not should_propagate(release, bump_types, include_prereleases):
            continue

        if release.name not in packages_by_name:
            warn(f"Cannot find package marked for release: {release.name}")
            continue

        dependents = dependents_graph.get(release.name)
        if not dependents:
            print(f"  {release.name} has no dependents")
            continue

        for pkg in _update_dependents(
            release, dependents, packages_by_name, releases_by_name
        ):
            updated.setdefault(pkg.name, pkg)

    return list(updated.values())


def update_min_versions(release_plan: ReleasePlan, config: Config) -> list[Package]:
    """Raise dependents' ranges on disk and commit the result.

    Every updated package.json is written once, and all writes finish before
    a single commit stages exactly those files. Nothing is written or
    committed when no dependent needs an update.

    Returns:
        The updated packages.
    """
    step("Updating minimum version ranges of unreleased dependents")

    packages = discover_packages(config.root, config.workspaces)
    updated = propagate_min_versions(
        release_plan,
        packages,
        bump_types=config.bump_types,
        include_prereleases=config.include_prereleases,
    )

    written = [write_package(config.root, pkg) for pkg in updated]

    print(f"Updated version ranges of {len(updated)} unreleased dependents")

    if written:
        commit_files(
            [path.relative_to(config.root).as_posix() for path in written],
            COMMIT_MESSAGE,
            COMMIT_SKIP_CI,
            cwd=config.root,
        )
        print("  Committed")

    return updated
