"""Dependency graph utilities.

Two views of the workspace are built here:

- the *dependents* graph (dependency name → packages declaring it), used to
  find who must have their ranges raised after a release;
- the *dependency* graph (package name → internal dependencies), used to
  walk a package's transitive dependencies.

Both are plain name-keyed dicts, so cycles in the workspace are harmless as
long as traversals keep a visited set.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

from .errors import MalformedPackageError, PackageNotFoundError
from .models import (
    DEPENDENCY_TYPES,
    DependencyEdge,
    DependencyGraph,
    DependentsGraph,
    Package,
)


def build_dependents_graph(packages: Iterable[Package]) -> DependentsGraph:
    """Map every declared dependency to the packages that declare it.

    Every (dependency name, range) pair of every dependency category becomes
    an edge keyed by the dependency name. External dependencies get entries
    too; callers look up only the names they care about.

    Edges for a dependency appear in package iteration order, then in
    category order (dependencies, devDependencies, peerDependencies).

    Raises:
        MalformedPackageError: If a package has an empty name.

    Example:
        If b declares {"a": "^1.0.0"}:
        build_dependents_graph([a, b]) → {"a": [Edge(name="b", "^1.0.0", ...)]}
    """
    graph: DependentsGraph = {}
    for pkg in packages:
        if not pkg.name:
            raise MalformedPackageError(f"Package in {pkg.dir or '?'} has no name")
        for dep_type in DEPENDENCY_TYPES:
            for dep_name, version_range in pkg.get_dependencies(dep_type).items():
                graph.setdefault(dep_name, []).append(
                    DependencyEdge(
                        name=pkg.name, version_range=version_range, dep_type=dep_type
                    )
                )
    return graph


def build_dependency_graph(
    packages: Iterable[Package], excluded_types: Collection[str] = ()
) -> DependencyGraph:
    """Map every package to its internal (workspace) dependencies.

    External dependencies are dropped. A dependency declared under several
    categories is listed once.

    Args:
        packages: All workspace packages.
        excluded_types: package.json categories to ignore, e.g.
                        {"devDependencies"}.
    """
    packages = list(packages)
    workspace_names = {pkg.name for pkg in packages}
    graph: DependencyGraph = {}
    for pkg in packages:
        deps: list[str] = []
        for dep_type in DEPENDENCY_TYPES:
            if dep_type in excluded_types:
                continue
            for dep_name in pkg.get_dependencies(dep_type):
                if dep_name in workspace_names and dep_name not in deps:
                    deps.append(dep_name)
        graph[pkg.name] = deps
    return graph


def get_transitive_dependencies(
    package_name: str,
    packages: Iterable[Package] = (),
    *,
    depth: int = -1,
    excluded_types: Collection[str] = (),
    dependency_graph: DependencyGraph | None = None,
) -> set[str]:
    """Collect the internal dependencies reachable from a package.

    Breadth-first walk, one level at a time: level 1 holds the direct
    dependencies, level 2 their dependencies and so on. Each package is
    visited once, so cycles terminate.

    Args:
        package_name: Package to start from. Not included in the result.
        packages: Workspace packages to build the graph from. Ignored when
                  dependency_graph is given.
        depth: Maximum level to include. Negative means unbounded.
        excluded_types: package.json categories to ignore.
        dependency_graph: Prebuilt graph to walk instead of building one.

    Raises:
        PackageNotFoundError: If a visited package is not in the graph.

    Example:
        If a → b → c:
        get_transitive_dependencies("a", ...) → {"b", "c"}
        get_transitive_dependencies("a", ..., depth=1) → {"b"}
    """
    graph = (
        dependency_graph
        if dependency_graph is not None
        else build_dependency_graph(packages, excluded_types)
    )

    visited: set[str] = set()
    frontier = [package_name]
    level = 0
    while frontier and (depth < 0 or level <= depth):
        next_frontier: list[str] = []
        for name in frontier:
            if name in visited:
                continue
            visited.add(name)
            if name not in graph:
                raise PackageNotFoundError(f"Cannot find '{name}' in dependency graph")
            next_frontier.extend(dep for dep in graph[name] if dep not in visited)
        frontier = next_frontier
        level += 1

    visited.discard(package_name)
    return visited
