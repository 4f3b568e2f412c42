# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# GIT INFRASTRUCTURE - SUBTREES & SUBMODULES
# -----------------------------------------------------------------------------
# Responsibility: Vendor units into the project with git subtree (squashed
# history) and keep submodules in sync.
# Uses subprocess for lean, direct git command execution.
#
# Prefix checks mirror what git would complain about later:
# - add needs a fresh prefix
# - remove / pull / push need an existing one
# -----------------------------------------------------------------------------

import subprocess
from pathlib import Path

from rich.console import Console

console = Console()

GIT_TIMEOUT_SECONDS = 600


class GitError(Exception):
    """Raised when a Git operation fails."""

    pass


class GitProvider:
    """
    Git subtree, remote and submodule operations on one repository.

    Commands go through the git CLI; git subtree has no library API.
    """

    def __init__(self, workspace_path: Path | str) -> None:
        """
        Args:
            workspace_path: Root of the Git repository.
        """
        self._workspace = Path(workspace_path)

        if not self._workspace.exists():
            raise GitError(f"Workspace does not exist: {workspace_path}")

    def _run(self, cmd: list[str], check: bool = True) -> subprocess.CompletedProcess:
        """
        Run a git command in the workspace.

        Args:
            cmd: Command parts (e.g., ["git", "remote", "-v"])
            check: Raise on non-zero exit

        Raises:
            GitError: If command fails and check=True
        """
        try:
            result = subprocess.run(
                cmd,
                cwd=self._workspace,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            raise GitError(f"Git operation timed out ({GIT_TIMEOUT_SECONDS}s limit)")
        except (OSError, subprocess.SubprocessError) as e:
            raise GitError(f"Git subprocess error: {e}")

        if check and result.returncode != 0:
            raise GitError(f"Git command failed: {result.stderr or result.stdout or 'Unknown error'}")

        if result.stdout.strip():
            console.print(result.stdout.rstrip(), markup=False, highlight=False)
        return result

    def _prefix_path(self, prefix: str) -> Path:
        return self._workspace / prefix

    # -------------------------------------------------------------------------
    # SUBTREES
    # -------------------------------------------------------------------------

    def subtree_add(self, remote: str, prefix: str, branch: str) -> None:
        """
        Add a subtree with squashed history.

        Args:
            remote: URL or existing remote name.
            prefix: Path of the subtree in the local repo (must not exist).
            branch: Branch to pull from.
        """
        if self._prefix_path(prefix).exists():
            raise GitError(f"Prefix path {prefix} already exists")

        console.print(f"[cyan][GIT] Adding subtree {prefix} from {remote} ({branch})[/cyan]")
        self._run(["git", "subtree", "add", f"--prefix={prefix}", remote, branch, "--squash"])
        console.print(f"[green][GIT] Subtree added: {prefix}[/green]")

    def subtree_remove(self, prefix: str) -> None:
        """Remove a subtree from the index and the working tree."""
        if not self._prefix_path(prefix).is_dir():
            raise GitError(f"Prefix path {prefix} does not exist")

        console.print(f"[cyan][GIT] Removing subtree {prefix}[/cyan]")
        self._run(["git", "rm", "-r", prefix])
        console.print("[yellow][GIT] Remember to commit the removal![/yellow]")

    def subtree_pull(self, remote: str, prefix: str, branch: str) -> None:
        if not self._prefix_path(prefix).is_dir():
            raise GitError(f"Prefix path {prefix} does not exist")

        console.print(f"[cyan][GIT] Pulling subtree {prefix} from {remote} ({branch})[/cyan]")
        self._run(["git", "subtree", "pull", f"--prefix={prefix}", remote, branch, "--squash"])

    def subtree_push(self, remote: str, prefix: str, branch: str) -> None:
        if not self._prefix_path(prefix).is_dir():
            raise GitError(f"Prefix path {prefix} does not exist")

        console.print(f"[cyan][GIT] Pushing subtree {prefix} to {remote} ({branch})[/cyan]")
        self._run(["git", "subtree", "push", f"--prefix={prefix}", remote, branch])

    # -------------------------------------------------------------------------
    # REMOTES
    # -------------------------------------------------------------------------

    def remote_add(self, name: str, url: str) -> None:
        """Add a remote and fetch it right away."""
        console.print(f"[cyan][GIT] Adding remote {name}: {url}[/cyan]")
        self._run(["git", "remote", "add", "-f", name, url])

    def remote_remove(self, name: str) -> None:
        console.print(f"[cyan][GIT] Removing remote {name}[/cyan]")
        self._run(["git", "remote", "remove", name])

    def remote_rename(self, old: str, new: str) -> None:
        console.print(f"[cyan][GIT] Renaming remote {old} -> {new}[/cyan]")
        self._run(["git", "remote", "rename", old, new])

    # -------------------------------------------------------------------------
    # SUBMODULES
    # -------------------------------------------------------------------------

    def submodule_update(self) -> None:
        console.print("[cyan][GIT] Updating submodules...[/cyan]")
        self._run(["git", "submodule", "update", "--init", "--recursive"])

    def submodule_status(self) -> str:
        return self._run(["git", "submodule", "status", "--recursive"]).stdout
