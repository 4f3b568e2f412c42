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
# THE TARGET MANAGER - CONTAINER LIFECYCLE
# -----------------------------------------------------------------------------
# Responsibility: Create, modify, clear and delete target directories
# (docker/container-<TARGET>) from a SetupCommand.
#
# Every operation validates first and mutates last:
# - create renders the whole Dockerfile in memory before mkdir
# - modify removes units before adding them
# - nothing here prompts for confirmation; delete is irreversible
# -----------------------------------------------------------------------------

import shutil
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from dua.core.passwords import DEFAULT_PASSWORD, PasswordHasher, PasswordHashError
from dua.core.policy import PolicyViolation, SetupPolicy
from dua.core.splicer import (
    UnitSource,
    add_units_to_file,
    clear_file,
    merge_units,
    read_document,
    remove_units_from_file,
)
from dua.domain.dockerfile import DockerfileDocument
from dua.domain.models import SetupCommand, Verb

console = Console()

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

# (template path, destination inside the target directory)
CONTEXT_FILES = [
    ("context/aliases.sh", "aliases.sh"),
    ("context/bashrc", "bashrc"),
    ("context/colcon-defaults.yaml.template", "colcon-defaults.yaml"),
    ("context/commands.sh", "commands.sh"),
    ("context/nanorc", "nanorc"),
    ("context/p10k.zsh", "p10k.zsh"),
    ("context/ros2.sh", "ros2.sh"),
    ("context/vimrc", "vimrc"),
    ("context/zshrc", "zshrc"),
    ("context/gitignore-zsh_history", "zsh_history/.gitignore"),
]

DOCKERFILE_TEMPLATE = "Dockerfile.template"
COMPOSE_TEMPLATE = "docker-compose.yml.template"
COMPOSE_NVIDIA_TEMPLATE = "docker-compose.yml.nvidia.template"
DEVCONTAINER_TEMPLATE = "devcontainer.json.template"


class ProjectRootError(Exception):
    """Raised when the command does not run in a project root."""

    pass


class TargetExistsError(Exception):
    """Raised by create when the target directory is already there."""

    pass


class TargetNotFoundError(Exception):
    """Raised by modify, clear and delete when the target does not exist."""

    pass


@dataclass
class TargetInfo:
    """Summary of one whitelisted target, for listing."""

    name: str
    exists: bool
    units: list[str]


def substitute(text: str, replacements: dict[str, str]) -> str:
    """Literal placeholder replacement, applied in dict order."""
    for token, value in replacements.items():
        text = text.replace(token, value)
    return text


class TargetManager:
    """
    Runs the four lifecycle verbs against one project root.

    The policy and the password hasher are passed in; the hasher may be None
    when no hashing tool is installed, which only matters to create.
    """

    def __init__(
        self,
        root: Path,
        policy: SetupPolicy,
        hasher: PasswordHasher | None = None,
        trace: bool = False,
    ) -> None:
        """
        Initialize the manager.

        Args:
            root: Project root containing the targets directory.
            policy: Validation rules and configuration.
            hasher: Password hashing tool; required by create only.
            trace: Print extra diagnostic lines.

        Raises:
            ProjectRootError: If the targets directory does not exist.
        """
        self._root = Path(root)
        self._policy = policy
        self._hasher = hasher
        self._trace = trace

        config = policy.config
        self._targets_root = self._root / config.targets_dir
        self._units_root = self._root / config.units_dir
        self._templates = (
            self._root / config.templates_dir if config.templates_dir else TEMPLATES_DIR
        )

        if not self._targets_root.is_dir():
            raise ProjectRootError(
                f"This command must be executed in the project root "
                f"({config.targets_dir}/ not found in {self._root})"
            )

    def _debug(self, message: str) -> None:
        if self._trace:
            console.print(f"[dim][TRACE] {message}[/dim]")

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------

    def target_dir(self, target: str) -> Path:
        return self._targets_root / f"container-{target}"

    def dockerfile(self, target: str) -> Path:
        return self.target_dir(target) / "Dockerfile"

    def unit_source(self, target: str) -> UnitSource:
        return UnitSource(self._units_root, target)

    def require_target(self, target: str) -> Path:
        self._policy.check_target(target)
        target_dir = self.target_dir(target)
        if not target_dir.is_dir():
            raise TargetNotFoundError(f"Target {target} does not exist")
        return target_dir

    # -------------------------------------------------------------------------
    # VERBS
    # -------------------------------------------------------------------------

    def execute(self, command: SetupCommand) -> Path:
        """Dispatch a command to its verb."""
        handlers = {
            Verb.CREATE: self.create,
            Verb.MODIFY: self.modify,
            Verb.CLEAR: self.clear,
            Verb.DELETE: self.delete,
        }
        return handlers[command.verb](command)

    def create(self, command: SetupCommand) -> Path:
        """
        Create a new target from the templates.

        Returns:
            The new target directory.

        Raises:
            PolicyViolation: Invalid target or missing name.
            TargetExistsError: If the target directory exists.
            PasswordHashError: If no hasher is available or hashing fails.
            UnitSourceError / MarkerError: If a requested unit cannot be merged.
        """
        target = self._policy.check_target(command.target)
        if not command.name:
            raise PolicyViolation("Missing arguments", rule="usage")

        target_dir = self.target_dir(target)
        if target_dir.exists():
            raise TargetExistsError(f"Target {target} already exists")

        if self._hasher is None:
            raise PasswordHashError("No password hashing tool configured")
        password_hash = self._hasher.hash(
            command.password or DEFAULT_PASSWORD, self._policy.config.password_salt
        )

        console.print(f"[cyan][SETUP] Project name: {command.name}[/cyan]")
        console.print(f"[cyan][SETUP] Service name: {command.service}[/cyan]")
        console.print(f"[cyan][SETUP] Creating target {target} ...[/cyan]")
        self._debug(f"Password hash: {password_hash}")

        # Render everything before the first mkdir
        dockerfile = substitute(
            self._read_template(DOCKERFILE_TEMPLATE),
            {"TARGET": target, "HPSW": password_hash},
        )
        document = DockerfileDocument.parse(dockerfile)
        if command.add_units:
            for unit in command.add_units:
                console.print(f"[cyan][SPLICER] Adding unit {unit} ...[/cyan]")
            document = merge_units(document, command.add_units, self.unit_source(target).fetch)

        compose_template = (
            COMPOSE_NVIDIA_TEMPLATE if self._policy.is_nvidia(target) else COMPOSE_TEMPLATE
        )
        service_files = {
            "docker-compose.yml": substitute(
                self._read_template(compose_template), {"SERVICE": command.service}
            ),
            ".devcontainer.json": substitute(
                self._read_template(DEVCONTAINER_TEMPLATE), {"SERVICE": command.service}
            ),
            "Dockerfile": document.render(),
        }
        context_files = [(self._templates / src, target_dir / dst) for src, dst in CONTEXT_FILES]
        for src, _ in context_files:
            if not src.is_file():
                raise FileNotFoundError(f"Template not found: {src}")

        target_dir.mkdir()
        for src, dst in context_files:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(src, dst)
            self._debug(f"Copied {src} -> {dst}")
        for filename, content in service_files.items():
            (target_dir / filename).write_text(content)
            self._debug(f"Wrote {target_dir / filename}")

        console.print(f"[green][SETUP] Target {target} created: {target_dir}[/green]")
        return target_dir

    def modify(self, command: SetupCommand) -> Path:
        """
        Remove then add units in an existing target's Dockerfile.

        Raises:
            PolicyViolation: Invalid target or no units given.
            TargetNotFoundError: If the target does not exist.
        """
        target = command.target
        self.require_target(target)
        if not command.add_units and not command.remove_units:
            raise PolicyViolation("Invalid options for modify", rule="usage")

        console.print(f"[cyan][SETUP] Modifying target {target} ...[/cyan]")
        path = self.dockerfile(target)

        if command.remove_units:
            remove_units_from_file(path, command.remove_units)
        if command.add_units:
            add_units_to_file(path, command.add_units, self.unit_source(target))

        console.print(f"[green][SETUP] Target {target} modified[/green]")
        return path

    def clear(self, command: SetupCommand) -> Path:
        """Remove every unit section from a target's Dockerfile."""
        target = command.target
        self.require_target(target)

        console.print(f"[cyan][SETUP] Clearing target {target} ...[/cyan]")
        path = self.dockerfile(target)
        clear_file(path)
        console.print(f"[green][SETUP] Target {target} cleared[/green]")
        return path

    def delete(self, command: SetupCommand) -> Path:
        """Recursively remove a target directory."""
        target = command.target
        target_dir = self.require_target(target)

        console.print(f"[cyan][SETUP] Removing target {target} ...[/cyan]")
        shutil.rmtree(target_dir)
        console.print(f"[green][SETUP] Target {target} removed[/green]")
        return target_dir

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def list_targets(self) -> list[TargetInfo]:
        """Every whitelisted target with its state and units."""
        infos = []
        for name in self._policy.allowed_targets:
            path = self.dockerfile(name)
            units: list[str] = []
            if path.is_file():
                units = read_document(path).unit_names
            infos.append(TargetInfo(name=name, exists=self.target_dir(name).is_dir(), units=units))
        return infos

    def _read_template(self, name: str) -> str:
        path = self._templates / name
        if not path.is_file():
            raise FileNotFoundError(f"Template not found: {path}")
        return path.read_text()
