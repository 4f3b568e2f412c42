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
# DUA SETUP - COMMAND LINE INTERFACE
# -----------------------------------------------------------------------------
# Responsibility: Parse the command line once into a SetupCommand and hand it
# to the TargetManager; wrap the Docker and Git providers.
#
# Commands:
# - create / modify / clear / delete: target lifecycle
# - targets: list whitelisted targets and their units
# - build / compose: hand a target's context to Docker
# - subtree ... / submod ...: vendor units with Git
#
# Every failure exits with status 1; usage errors also print the banner.
# -----------------------------------------------------------------------------

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dua.core.passwords import (
    DEFAULT_PASSWORD,
    PasswordHashError,
    UnsupportedPlatformError,
    check_platform,
    resolve_hasher,
)
from dua.core.policy import PolicyViolation, SetupPolicy, default_config_path
from dua.core.splicer import UnitSourceError
from dua.core.targets import ProjectRootError, TargetExistsError, TargetManager, TargetNotFoundError
from dua.domain.dockerfile import MarkerError
from dua.domain.models import SetupCommand, Verb
from dua.infra.docker_client import DockerProvider, DockerProviderError, compose as run_compose
from dua.infra.git_client import GitError, GitProvider

console = Console()
err_console = Console(stderr=True)

USAGE = """Usage:
    dua create [-a UNIT1,UNIT2,...] NAME TARGET [PASSWORD]
    dua modify [-a UNIT1,UNIT2,...] [-r UNIT1,UNIT2,...] TARGET
    dua clear TARGET
    dua delete TARGET
See dua --help for more info."""

SETUP_ERRORS = (
    TargetExistsError,
    TargetNotFoundError,
    ProjectRootError,
    MarkerError,
    UnitSourceError,
    PasswordHashError,
    UnsupportedPlatformError,
    GitError,
    DockerProviderError,
    FileNotFoundError,
)

# Exit status click uses for command line parse errors
USAGE_ERROR_EXIT_CODE = 2

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    name="dua",
    help="Set up per-target development containers for DUA projects.",
    no_args_is_help=True,
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)
subtree_app = typer.Typer(name="subtree", help="Manage unit subtrees.", no_args_is_help=True)
submod_app = typer.Typer(name="submod", help="Manage submodules.", no_args_is_help=True)
app.add_typer(subtree_app, name="subtree")
app.add_typer(submod_app, name="submod")


@dataclass
class AppState:
    """Options shared by every command."""

    root: Path
    config_path: Path
    trace: bool


def print_usage() -> None:
    err_console.print(USAGE, markup=False, highlight=False)


def fail(message: str, usage: bool = False, details: str = "") -> None:
    """Report an error on stderr and exit with status 1."""
    err_console.print(f"[red]ERROR: {escape(message)}[/red]")
    if details:
        err_console.print(f"[dim]{escape(details)}[/dim]")
    if usage:
        print_usage()
    raise typer.Exit(code=1)


@contextmanager
def handle_errors():
    """Turn domain exceptions into messages and exit code 1."""
    try:
        yield
    except PolicyViolation as e:
        fail(str(e), usage=e.rule == "usage", details=e.details)
    except ValidationError as e:
        errors = e.errors()
        message = errors[0]["msg"] if errors else str(e)
        fail(message.removeprefix("Value error, "), usage=True)
    except SETUP_ERRORS as e:
        fail(str(e))


def _state(ctx: typer.Context) -> AppState:
    return ctx.find_root().obj


def _policy(state: AppState) -> SetupPolicy:
    return SetupPolicy(state.config_path)


def _manager(state: AppState, policy: SetupPolicy, hasher=None) -> TargetManager:
    return TargetManager(state.root, policy, hasher=hasher, trace=state.trace)


def _require(value: Optional[str]) -> str:
    if not value:
        raise PolicyViolation("Missing arguments", rule="usage")
    return value


@app.callback()
def setup(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None, "--root", envvar="DUA_ROOT", help="Project root (default: current directory)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", envvar="DUA_CONFIG", help="Configuration file (default: ROOT/dua.yaml)"
    ),
) -> None:
    """Set up per-target development containers for DUA projects."""
    root = (root or Path.cwd()).resolve()
    load_dotenv(root / ".env")

    with handle_errors():
        check_platform()

    ctx.obj = AppState(
        root=root,
        config_path=config or default_config_path(root),
        trace=os.getenv("DUA_TRACE", "0") == "1",
    )


# -----------------------------------------------------------------------------
# TARGET LIFECYCLE
# -----------------------------------------------------------------------------


@app.command()
def create(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Project name"),
    target: Optional[str] = typer.Argument(None, help="Target platform"),
    password: Optional[str] = typer.Argument(None, help="Container user password"),
    add: Optional[str] = typer.Option(None, "-a", "--add", help="Units to add: UNIT1,UNIT2,..."),
) -> None:
    """Create a new target, optionally with units."""
    state = _state(ctx)
    with handle_errors():
        name = _require(name)
        policy = _policy(state)
        policy.check_target(_require(target))
        units = policy.parse_unit_list(add) if add is not None else ()
        hasher = resolve_hasher()

        command = SetupCommand(
            verb=Verb.CREATE,
            name=name,
            target=target,
            password=password or os.getenv("DUA_PASSWORD") or DEFAULT_PASSWORD,
            add_units=units,
        )
        _manager(state, policy, hasher).execute(command)


@app.command()
def modify(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="Target platform"),
    add: Optional[str] = typer.Option(None, "-a", "--add", help="Units to add: UNIT1,UNIT2,..."),
    remove: Optional[str] = typer.Option(
        None, "-r", "--remove", help="Units to remove: UNIT1,UNIT2,..."
    ),
) -> None:
    """Remove and/or add units in an existing target."""
    state = _state(ctx)
    with handle_errors():
        policy = _policy(state)
        policy.check_target(_require(target))
        if add is None and remove is None:
            raise PolicyViolation("Invalid options for modify", rule="usage")

        command = SetupCommand(
            verb=Verb.MODIFY,
            target=target,
            add_units=policy.parse_unit_list(add) if add is not None else (),
            remove_units=policy.parse_unit_list(remove) if remove is not None else (),
        )
        _manager(state, policy).execute(command)


@app.command()
def clear(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="Target platform"),
) -> None:
    """Remove every unit from a target's Dockerfile."""
    state = _state(ctx)
    with handle_errors():
        policy = _policy(state)
        policy.check_target(_require(target))
        _manager(state, policy).execute(SetupCommand(verb=Verb.CLEAR, target=target))


@app.command()
def delete(
    ctx: typer.Context,
    target: Optional[str] = typer.Argument(None, help="Target platform"),
) -> None:
    """Delete a target directory. No confirmation is asked."""
    state = _state(ctx)
    with handle_errors():
        policy = _policy(state)
        policy.check_target(_require(target))
        _manager(state, policy).execute(SetupCommand(verb=Verb.DELETE, target=target))


@app.command()
def targets(ctx: typer.Context) -> None:
    """List the allowed targets and the units each one contains."""
    state = _state(ctx)
    with handle_errors():
        infos = _manager(state, _policy(state)).list_targets()

    table = Table(title=f"DUA targets ({state.root.name})")
    table.add_column("Target", style="cyan")
    table.add_column("Status")
    table.add_column("Units")
    for info in infos:
        status = "[green]created[/green]" if info.exists else "[dim]-[/dim]"
        table.add_row(info.name, status, ", ".join(info.units))
    console.print(table)


# -----------------------------------------------------------------------------
# DOCKER
# -----------------------------------------------------------------------------


@app.command()
def build(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Target platform"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Image tag"),
) -> None:
    """Build a target's image with Docker."""
    state = _state(ctx)
    with handle_errors():
        manager = _manager(state, _policy(state))
        context_dir = manager.require_target(target)
        tag = tag or f"{state.root.name}-{target}:latest".lower()
        DockerProvider().build_target(context_dir, tag)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def compose(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Target platform"),
) -> None:
    """Run docker compose on a target: dua compose TARGET up -d"""
    state = _state(ctx)
    with handle_errors():
        manager = _manager(state, _policy(state))
        compose_file = manager.require_target(target) / "docker-compose.yml"
        code = run_compose(compose_file, list(ctx.args))
    if code != 0:
        raise typer.Exit(code=code)


# -----------------------------------------------------------------------------
# GIT
# -----------------------------------------------------------------------------


def _git(ctx: typer.Context) -> GitProvider:
    return GitProvider(_state(ctx).root)


@subtree_app.command("add")
def subtree_add(
    ctx: typer.Context,
    remote: str = typer.Argument(..., help="URL or existing remote name"),
    prefix: str = typer.Argument(..., help="Path of the subtree in the local repo"),
    branch: str = typer.Argument(..., help="Branch to pull from"),
) -> None:
    """Add a subtree with squashed history."""
    with handle_errors():
        _git(ctx).subtree_add(remote, prefix, branch)


@subtree_app.command("remove")
def subtree_remove(
    ctx: typer.Context,
    prefix: str = typer.Argument(..., help="Path of the subtree in the local repo"),
) -> None:
    """Remove a subtree (commit afterwards)."""
    with handle_errors():
        _git(ctx).subtree_remove(prefix)


@subtree_app.command("pull")
def subtree_pull(
    ctx: typer.Context,
    remote: str = typer.Argument(..., help="URL or existing remote name"),
    prefix: str = typer.Argument(..., help="Path of the subtree in the local repo"),
    branch: str = typer.Argument(..., help="Branch to pull from"),
) -> None:
    """Pull upstream changes into a subtree."""
    with handle_errors():
        _git(ctx).subtree_pull(remote, prefix, branch)


@subtree_app.command("push")
def subtree_push(
    ctx: typer.Context,
    remote: str = typer.Argument(..., help="URL or existing remote name"),
    prefix: str = typer.Argument(..., help="Path of the subtree in the local repo"),
    branch: str = typer.Argument(..., help="Branch to push to"),
) -> None:
    """Push local subtree changes upstream."""
    with handle_errors():
        _git(ctx).subtree_push(remote, prefix, branch)


@subtree_app.command("remote-add")
def subtree_remote_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the remote to add"),
    url: str = typer.Argument(..., help="URL of the remote"),
) -> None:
    """Add and fetch a remote."""
    with handle_errors():
        _git(ctx).remote_add(name, url)


@subtree_app.command("remote-remove")
def subtree_remote_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the remote to remove"),
) -> None:
    """Remove a remote."""
    with handle_errors():
        _git(ctx).remote_remove(name)


@subtree_app.command("remote-rename")
def subtree_remote_rename(
    ctx: typer.Context,
    old: str = typer.Argument(..., help="Current remote name"),
    new: str = typer.Argument(..., help="New remote name"),
) -> None:
    """Rename a remote."""
    with handle_errors():
        _git(ctx).remote_rename(old, new)


@submod_app.command("update")
def submod_update(ctx: typer.Context) -> None:
    """Initialize and update submodules recursively."""
    with handle_errors():
        _git(ctx).submodule_update()


@submod_app.command("status")
def submod_status(ctx: typer.Context) -> None:
    """Show submodule status recursively."""
    with handle_errors():
        _git(ctx).submodule_status()


# -----------------------------------------------------------------------------
# ENTRY POINT
# -----------------------------------------------------------------------------


def main() -> None:
    """
    Console script entry point.

    The app runs in standalone mode, where typer prints parse errors itself
    and exits with status 2; that status is mapped to 1 like every other
    failure.
    """
    try:
        app()
    except SystemExit as e:
        if e.code == USAGE_ERROR_EXIT_CODE:
            sys.exit(1)
        raise


if __name__ == "__main__":
    main()
