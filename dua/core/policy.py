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
# THE GATEKEEPER - SETUP POLICY
# -----------------------------------------------------------------------------
# Responsibility: Load the project configuration (dua.yaml) and validate
# user input against it before any file is touched. Invalid target names and
# empty unit lists are REJECTED here.
# -----------------------------------------------------------------------------

import os
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ValidationError
from rich.console import Console

from dua.domain.models import TARGET_WHITELISTS, TargetRevision

console = Console()

CONFIG_FILENAME = "dua.yaml"

UNIT_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class PolicyConfig(BaseModel):
    """
    Pydantic model for the project configuration.

    Loaded from dua.yaml in the project root; every key is optional.
    """

    target_revision: TargetRevision = TargetRevision.LEGACY
    allowed_targets: Optional[List[str]] = None
    nvidia_targets: List[str] = ["x86-cudev"]
    targets_dir: str = "docker"
    units_dir: str = "src"
    templates_dir: Optional[str] = None
    password_salt: Optional[str] = None


class PolicyViolation(Exception):
    """
    Raised when user input fails validation.

    `rule` names the check that failed; "usage" marks errors that should be
    reported together with the usage banner.
    """

    def __init__(self, message: str, rule: str, details: str = "") -> None:
        super().__init__(message)
        self.rule = rule
        self.details = details


def default_config_path(root: Path) -> Path:
    """Config file location: DUA_CONFIG, else <root>/dua.yaml."""
    override = os.getenv("DUA_CONFIG")
    if override:
        return Path(override)
    return root / CONFIG_FILENAME


class SetupPolicy:
    """Validates targets and unit lists against the loaded configuration."""

    def __init__(self, config_path: Path | None = None, config: PolicyConfig | None = None) -> None:
        """
        Initialize the policy.

        Args:
            config_path: Path to the YAML configuration file.
            config: Ready-made configuration; skips file loading when given.
        """
        self._config_path = config_path
        self._config: PolicyConfig = config if config is not None else self._load_config()

    def _load_config(self) -> PolicyConfig:
        """
        Load configuration from YAML.

        Returns:
            PolicyConfig, with defaults when the file does not exist.

        Raises:
            PolicyViolation: If the file is not valid YAML or holds invalid values.
        """
        if self._config_path is None or not self._config_path.exists():
            return PolicyConfig()

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PolicyViolation(
                f"Invalid configuration file: {self._config_path}",
                rule="config",
                details=str(e),
            )

        if not isinstance(data, dict):
            raise PolicyViolation(
                f"Invalid configuration file: {self._config_path}",
                rule="config",
                details="Top level must be a mapping",
            )

        try:
            config = PolicyConfig(**data)
        except ValidationError as e:
            raise PolicyViolation(
                f"Invalid configuration file: {self._config_path}",
                rule="config",
                details="; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                ),
            )

        console.print(f"[cyan][POLICY] Configuration loaded: {self._config_path}[/cyan]")
        return config

    @property
    def config(self) -> PolicyConfig:
        return self._config

    @property
    def allowed_targets(self) -> tuple[str, ...]:
        if self._config.allowed_targets is not None:
            return tuple(self._config.allowed_targets)
        return TARGET_WHITELISTS[self._config.target_revision]

    def check_target(self, target: str | None) -> str:
        """
        Check that a target name is in the whitelist (exact match only).

        Raises:
            PolicyViolation: If the name is missing or not allowed.
        """
        if not target:
            raise PolicyViolation("Missing target", rule="usage")
        if target not in self.allowed_targets:
            raise PolicyViolation(
                f"Invalid target: {target}",
                rule="allowed_targets",
                details=f"Allowed: {', '.join(self.allowed_targets)}",
            )
        return target

    def parse_unit_list(self, raw: str | None) -> tuple[str, ...]:
        """
        Split a comma-separated unit list.

        Whitespace is stripped, empty items and repeated names are dropped
        (first occurrence wins).

        Raises:
            PolicyViolation: If no unit name remains.
        """
        units: list[str] = []
        for item in (raw or "").split(","):
            item = item.strip()
            if not item:
                continue
            if not UNIT_NAME_RE.match(item):
                raise PolicyViolation(f"Invalid unit name: {item}", rule="units")
            if item not in units:
                units.append(item)

        if not units:
            raise PolicyViolation("No units specified", rule="usage")
        return tuple(units)

    def is_nvidia(self, target: str) -> bool:
        return target in self._config.nvidia_targets
