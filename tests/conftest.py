"""
Pytest configuration and fixtures for DUA setup tests.
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep the developer's environment out of the tests
for var in ("DUA_ROOT", "DUA_CONFIG", "DUA_PASSWORD", "DUA_TRACE"):
    os.environ.pop(var, None)

from dua.core.passwords import PasswordHasher  # noqa: E402
from dua.core.policy import PolicyConfig, SetupPolicy  # noqa: E402
from dua.core.targets import TargetManager  # noqa: E402

FAKE_HASH = "$6$testsalt$fakedigest"


class FakeHasher(PasswordHasher):
    """Stands in for mkpasswd: records calls, returns a fixed hash."""

    executable = "fakehash"

    def __init__(self) -> None:
        self.calls = []

    def is_available(self) -> bool:
        return True

    def hash(self, password: str, salt: str | None = None) -> str:
        self.calls.append((password, salt))
        return FAKE_HASH


def unit_dockerfile(unit: str, steps: list[str] | None = None) -> str:
    """A unit's own Dockerfile, with its section inside its IMAGE SETUP region."""
    steps = steps or [f"RUN echo 'installing {unit}'"]
    body = "\n".join(steps)
    return (
        f"FROM dotxautomation/dua-foundation:x86-dev\n"
        f"\n"
        f"### IMAGE SETUP START ###\n"
        f"### {unit} START ###\n"
        f"{body}\n"
        f"### {unit} END ###\n"
        f"### IMAGE SETUP END ###\n"
        f"\n"
        f"USER neo\n"
    )


def unit_section(unit: str, steps: list[str] | None = None) -> str:
    """The marked block that unit_dockerfile() contains."""
    steps = steps or [f"RUN echo 'installing {unit}'"]
    return f"### {unit} START ###\n" + "".join(f"{s}\n" for s in steps) + f"### {unit} END ###\n"


def write_unit(root: Path, unit: str, target: str = "x86-dev", steps=None) -> Path:
    path = root / "src" / unit / "docker" / f"container-{target}" / "Dockerfile"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(unit_dockerfile(unit, steps))
    return path


def setup_region(dockerfile_text: str) -> str:
    """Text strictly between the IMAGE SETUP markers."""
    start = dockerfile_text.index("### IMAGE SETUP START ###\n") + len("### IMAGE SETUP START ###\n")
    end = dockerfile_text.index("### IMAGE SETUP END ###")
    return dockerfile_text[start:end]


def snapshot(root: Path) -> dict:
    """Map of relative path -> file bytes (None for directories)."""
    return {
        str(p.relative_to(root)): (None if p.is_dir() else p.read_bytes())
        for p in sorted(root.rglob("*"))
    }


@pytest.fixture
def project(tmp_path):
    """A project root with an empty docker/ tree and three units."""
    root = tmp_path / "myproj"
    (root / "docker").mkdir(parents=True)
    for unit in ("sensor-driver", "lidar", "camera"):
        write_unit(root, unit)
    write_unit(root, "sensor-driver", target="x86-cudev")
    return root


@pytest.fixture
def policy():
    """Policy with the default (legacy) whitelist."""
    return SetupPolicy(config=PolicyConfig())


@pytest.fixture
def fake_hasher():
    return FakeHasher()


@pytest.fixture
def manager(project, policy, fake_hasher):
    return TargetManager(project, policy, hasher=fake_hasher)


@pytest.fixture
def mock_docker_client():
    """Mock Docker client for testing."""
    client = MagicMock()
    client.ping.return_value = True

    image = MagicMock()
    image.id = "sha256:abc123"
    image.short_id = "sha256:abc1"
    client.images.build.return_value = (image, iter([{"stream": "Step 1/3 : FROM base\n"}]))

    return client
