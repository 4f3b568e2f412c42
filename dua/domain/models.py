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
# DOMAIN MODELS - SETUP COMMANDS
# -----------------------------------------------------------------------------
# The CLI parses its options exactly once into a SetupCommand; the target
# lifecycle operations receive it by value and never read global state.
#
# Invalid combinations (create without a name, modify without units) are
# rejected here, before any filesystem access.
# -----------------------------------------------------------------------------

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class Verb(str, Enum):
    """The four target lifecycle verbs."""

    CREATE = "create"
    MODIFY = "modify"
    CLEAR = "clear"
    DELETE = "delete"


class TargetRevision(str, Enum):
    """
    Known generations of the target whitelist.

    LEGACY carries the original Jetson names; JETPACK names Jetson targets
    after the JetPack release they are built on.
    """

    LEGACY = "legacy"
    JETPACK = "jetpack"


TARGET_WHITELISTS: dict[TargetRevision, tuple[str, ...]] = {
    TargetRevision.LEGACY: (
        "x86-base",
        "x86-dev",
        "x86-cudev",
        "armv8-base",
        "armv8-dev",
        "jetson5c7",
    ),
    TargetRevision.JETPACK: (
        "x86-base",
        "x86-dev",
        "x86-cudev",
        "armv8-base",
        "armv8-dev",
        "jetson5",
        "jetson6",
    ),
}


class SetupCommand(BaseModel):
    """
    Immutable argument struct for one lifecycle invocation.

    Fields:
    - verb: which operation to run
    - target: target name (whitelist membership is checked by the policy)
    - name: project name, required by create
    - password: plain password hashed into the Dockerfile by create
    - add_units / remove_units: ordered unit lists from -a / -r
    """

    verb: Verb
    target: str = Field(..., min_length=1, description="Target platform name")
    name: str | None = Field(
        None,
        min_length=1,
        max_length=64,
        pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$",
        description="Project name, used to build the compose service name",
    )
    password: str | None = Field(None, description="Container user password (plain text)")
    add_units: tuple[str, ...] = ()
    remove_units: tuple[str, ...] = ()

    class Config:
        """Commands are values: never mutated after parsing."""

        frozen = True

    @field_validator("target", "name", mode="before")
    @classmethod
    def _strip(cls, value):
        # Passwords keep surrounding whitespace
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_verb_arguments(self) -> "SetupCommand":
        if self.verb == Verb.CREATE:
            if not self.name:
                raise ValueError("create requires a project name")
            if self.remove_units:
                raise ValueError("create does not accept units to remove")
        elif self.verb == Verb.MODIFY:
            if not self.add_units and not self.remove_units:
                raise ValueError("modify requires units to add or remove")
        elif self.add_units or self.remove_units:
            raise ValueError(f"{self.verb.value} does not accept unit lists")
        return self

    @property
    def service(self) -> str:
        """Compose service name: <name>-<target>."""
        return f"{self.name}-{self.target}"
