"""Configuration for changeset-tools.

All process-wide state (working directory, CI environment variables, the
optional changeset-tools.toml file) is resolved once by load_config() at the
CLI boundary. Everything below the CLI receives a Config explicitly.

Example changeset-tools.toml:

    [tool.changeset-tools]
    base-branch = "origin/develop"
    bump-types = ["minor"]
    private-package-opt-in = ["@af/af-ops"]
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field

from .models import BumpType

CONFIG_FILENAME = "changeset-tools.toml"


class Config(BaseModel):
    """Resolved settings for a single run.

    Attributes:
        root: Workspace root (directory holding the root package.json).
        branch: Current branch name, if known.
        pr_destination_branch: Pull request target branch, if running in a
                               pull request build.
        base_branch: Ref to diff against when there is no pull request.
        release_info_file: Release plan file, relative to root.
        changeset_command: Command prefix used to invoke the changesets CLI.
        workspaces: Workspace globs overriding the root package.json.
        bump_types: Release types that raise dependents' minimum ranges.
        include_prereleases: Also propagate releases to prerelease versions.
        source_dir: Name of a package's source subtree.
        branch_prefix_optouts: Branch prefixes that skip the changeset check.
        branch_exact_optouts: Branch names that skip the changeset check.
        private_package_opt_in: Private packages that still need changesets.
    """

    root: Path
    branch: str | None = None
    pr_destination_branch: str | None = None
    base_branch: str = "origin/master"
    release_info_file: str = "release-info.json"
    changeset_command: list[str] = Field(default_factory=lambda: ["yarn", "changeset"])
    workspaces: list[str] | None = None
    bump_types: list[BumpType] = Field(default_factory=lambda: ["minor"])
    include_prereleases: bool = False
    source_dir: str = "src"
    branch_prefix_optouts: list[str] = Field(
        default_factory=lambda: [
            "no-changeset/",
            "renovate/no-changeset/",
            "merge-branch/",
            "release-candidate/",
        ]
    )
    branch_exact_optouts: list[str] = Field(
        default_factory=lambda: ["develop", "master"]
    )
    private_package_opt_in: list[str] = Field(default_factory=list)

    @property
    def since_ref(self) -> str:
        """Ref that changes are measured against.

        The pull request target when known, otherwise base_branch.
        """
        if self.pr_destination_branch:
            return f"origin/{self.pr_destination_branch}"
        return self.base_branch

    @property
    def release_info_path(self) -> Path:
        return self.root / self.release_info_file


def load_config_file(path: Path) -> dict[str, Any]:
    """Read settings from a changeset-tools.toml file.

    Settings may live under [tool.changeset-tools] or at the top level.
    Keys use dashes in TOML and are converted to Config field names.
    Returns an empty dict when the file doesn't exist.
    """
    if not path.exists():
        return {}
    doc = tomlkit.parse(path.read_text()).unwrap()
    table = doc.get("tool", {}).get("changeset-tools", doc)
    return {
        key.replace("-", "_"): value
        for key, value in table.items()
        # root always comes from the caller
        if key not in ("tool", "root")
    }


def load_config(root: Path, env: Mapping[str, str] | None = None) -> Config:
    """Resolve the configuration for a run.

    Precedence: CI environment variables for branch information, then
    changeset-tools.toml, then defaults.

    Args:
        root: Workspace root directory.
        env: Environment to read CI variables from (usually os.environ).
    """
    env = env or {}
    settings = load_config_file(root / CONFIG_FILENAME)
    branch = env.get("BITBUCKET_BRANCH") or env.get("GITHUB_HEAD_REF")
    if branch:
        settings["branch"] = branch
    destination = env.get("BITBUCKET_PR_DESTINATION_BRANCH") or env.get(
        "GITHUB_BASE_REF"
    )
    if destination:
        settings["pr_destination_branch"] = destination
    return Config(root=root, **settings)
