"""Mandatory changeset check for pull request builds.

Fails when a branch changes a package's published surface (source files,
package.json, tsconfig.json) without adding a changeset for it. Private
packages are exempt unless they opt in.
"""

from __future__ import annotations

import tempfile
from collections.abc import Collection, Iterable
from pathlib import Path

from .changed import get_changed_packages
from .config import Config
from .errors import MissingChangesetsError
from .models import Package, ReleasePlan
from .release_info import changeset_status
from .shell import git, step

MISSING_CHANGESETS_HELP = """\
Use the command "yarn changeset" to add a changeset for your changes.
The changesets are used to determine what needs to be published to npm.

Does your change not need to be released? Either:
  1. [PREFERRED] Create a none changeset for the package(s) with "yarn changeset --none"
  2. Opt-out entirely using the "no-changeset/" branch prefix"""


def is_opted_out(branch: str | None, config: Config) -> bool:
    """True if the branch skips the changeset check entirely."""
    if not branch:
        return False
    return branch in config.branch_exact_optouts or any(
        branch.startswith(prefix) for prefix in config.branch_prefix_optouts
    )


def find_missing_changesets(
    changed_packages: Iterable[Package],
    release_plan: ReleasePlan,
    private_opt_in: Collection[str] = (),
) -> list[str]:
    """Names of changed packages that have no changeset.

    A package is covered when some release in the plan names it and was
    produced by at least one changeset. Private packages are skipped unless
    listed in private_opt_in.
    """
    with_changesets = {
        release.name for release in release_plan.releases if release.changesets
    }
    return [
        pkg.name
        for pkg in changed_packages
        if pkg.name not in with_changesets
        and not (pkg.private and pkg.name not in private_opt_in)
    ]


def run_check(config: Config) -> None:
    """Check that every changed package has a changeset.

    Raises:
        MissingChangesetsError: If any changed package lacks a changeset.
    """
    step("Checking changesets")

    if is_opted_out(config.branch, config):
        print("  Changesets escape-hatch detected, skipping changesets check")
        return

    # The PR target may not exist locally in CI clones
    if config.pr_destination_branch:
        git("fetch", "origin", config.pr_destination_branch, cwd=config.root)

    since_ref = config.since_ref
    print(f"  Comparing against {since_ref}")

    # changesets writes --output relative to the workspace root
    with tempfile.TemporaryDirectory(dir=config.root, prefix=".changeset-") as tmp:
        release_plan = changeset_status(
            config,
            Path(Path(tmp).name, "status.json"),
            since=since_ref,
            allow_failure=True,
        )
    changed = get_changed_packages(config, since=since_ref, mandatory=True)

    missing = find_missing_changesets(
        changed, release_plan, config.private_package_opt_in
    )
    if missing:
        raise MissingChangesetsError(missing)

    print(f"  {len(changed)} changed packages, all have changesets")
