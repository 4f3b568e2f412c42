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
# DOCKER PROVIDER
# -----------------------------------------------------------------------------
# Responsibility: A thin wrapper around the Docker SDK to build target images,
# plus the `docker compose` CLI for running them (compose has no SDK).
#
# This is part of the Infrastructure layer: the target manager produces the
# build context, Docker is only asked to consume it.
# -----------------------------------------------------------------------------

import platform
import shutil
import subprocess
import time
from pathlib import Path

import docker
from docker import DockerClient
from docker.errors import BuildError, DockerException
from rich.console import Console
from rich.panel import Panel

console = Console()

WAKE_TIMEOUT_SECONDS = 60


class DockerProviderError(Exception):
    """Raised when Docker is unavailable or a build/compose call fails."""

    pass


class DockerProvider:
    """
    Docker SDK wrapper with auto-wake capability.

    Starts the engine if it is sleeping (Docker Desktop, user systemd unit)
    and raises DockerProviderError when it stays unreachable.
    """

    def __init__(self, auto_wake: bool = True, client: DockerClient | None = None) -> None:
        """
        Initialize the Docker provider.

        Args:
            auto_wake: If True, attempt to start the engine if it's sleeping.
            client: Pre-built client (skips connecting).
        """
        self._client: DockerClient | None = client
        self._auto_wake = auto_wake

        if self._client is None:
            self._connect()

    def _wake_docker(self) -> DockerClient | None:
        """
        Attempt to start the Docker engine.

        Returns:
            DockerClient if wake succeeds, None otherwise.
        """
        system = platform.system()
        console.print("[yellow][DOCKER] Engine sleeping. Attempting auto-wake...[/yellow]")

        try:
            if system == "Darwin":
                subprocess.run(["open", "-a", "Docker"], check=False)
            elif system == "Linux":
                # User-level unit first: no sudo password prompt
                subprocess.run(["systemctl", "--user", "start", "docker"], check=False)
        except OSError as e:
            console.print(f"[red][DOCKER] Auto-wake failed: {e}[/red]")
            return None

        with console.status(
            f"[yellow]Waiting for Docker Engine (up to {WAKE_TIMEOUT_SECONDS}s)...[/yellow]",
            spinner="clock",
        ):
            for _ in range(WAKE_TIMEOUT_SECONDS):
                try:
                    client = docker.from_env()
                    client.ping()
                    console.print("[green][DOCKER] Engine Online.[/green]")
                    return client
                except DockerException:
                    time.sleep(1)

        console.print("[red][DOCKER] Wake timeout - Docker did not respond[/red]")
        return None

    def _connect(self) -> None:
        """
        Establish connection to Docker daemon.

        Raises:
            DockerProviderError: If connection fails and auto-wake is disabled or fails.
        """
        try:
            self._client = docker.from_env()
            self._client.ping()
            console.print("[green][DOCKER] Connected to Docker Engine[/green]")
        except DockerException:
            self._client = None
            if self._auto_wake:
                self._client = self._wake_docker()

            if self._client is None:
                console.print(
                    Panel(
                        "[bold red]Docker Engine Unavailable[/bold red]\n\n"
                        "1. Start the Docker daemon or Docker Desktop\n"
                        "2. Check that your user can access the Docker socket\n"
                        "3. Run the command again",
                        title="DOCKER",
                        border_style="red",
                    )
                )
                raise DockerProviderError("Docker Engine is not available")

    def get_client(self) -> DockerClient:
        """
        Get the Docker client, verifying connection is still active.

        Raises:
            DockerProviderError: If Docker connection is lost.
        """
        if self._client is None:
            raise DockerProviderError("Docker client not initialized")

        try:
            self._client.ping()
            return self._client
        except DockerException as e:
            console.print(f"[red][DOCKER] Connection lost: {e}[/red]")
            raise DockerProviderError(f"Docker connection lost: {e}")

    def build_target(self, context_dir: Path, tag: str) -> str:
        """
        Build a target image from its context directory.

        Args:
            context_dir: docker/container-<TARGET> directory.
            tag: Image tag, e.g. "myproj-x86-dev:latest".

        Returns:
            The built image ID.

        Raises:
            DockerProviderError: If the build fails.
        """
        client = self.get_client()
        console.print(f"[cyan][DOCKER] Building {tag} from {context_dir} ...[/cyan]")

        try:
            image, logs = client.images.build(
                path=str(context_dir), dockerfile="Dockerfile", tag=tag, rm=True
            )
        except BuildError as e:
            for chunk in e.build_log:
                line = chunk.get("stream", "").rstrip()
                if line:
                    console.print(line, markup=False, highlight=False)
            raise DockerProviderError(f"Build failed for {tag}: {e.msg}")
        except DockerException as e:
            raise DockerProviderError(f"Build failed for {tag}: {e}")

        for chunk in logs:
            line = chunk.get("stream", "").rstrip()
            if line:
                console.print(line, markup=False, highlight=False)

        console.print(f"[green][DOCKER] Image ready: {tag} ({image.short_id})[/green]")
        return image.id


def compose(compose_file: Path, args: list[str]) -> int:
    """
    Run `docker compose -f <compose_file> ARGS...` in the foreground.

    Returns:
        The compose process exit code.

    Raises:
        DockerProviderError: If the docker CLI is not installed.
    """
    if shutil.which("docker") is None:
        raise DockerProviderError("docker CLI not found")

    cmd = ["docker", "compose", "-f", str(compose_file), *args]
    console.print(f"[cyan][COMPOSE] {' '.join(cmd)}[/cyan]")
    try:
        result = subprocess.run(cmd, cwd=compose_file.parent, check=False)
    except OSError as e:
        raise DockerProviderError(f"docker compose failed: {e}")
    return result.returncode
