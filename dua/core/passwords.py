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
# PASSWORD HASHING & HOST CHECKS
# -----------------------------------------------------------------------------
# Responsibility: Produce the salted SHA-512 crypt hash that is substituted
# into the target Dockerfile as the container user's password.
#
# Hashing is delegated to host tools, tried in order:
# - mkpasswd -m sha-512
# - openssl passwd -6
# - perl crypt()
# If none is installed the setup fails before touching the filesystem.
# -----------------------------------------------------------------------------

import platform
import secrets
import shutil
import subprocess

from rich.console import Console

console = Console()

SUPPORTED_PLATFORMS = ("Linux", "Darwin")
DEFAULT_PASSWORD = "dua"
HASH_TIMEOUT_SECONDS = 30


class PasswordHashError(Exception):
    """Raised when no hashing tool is available or hashing fails."""

    pass


class UnsupportedPlatformError(Exception):
    """Raised when the host operating system is not supported."""

    pass


def check_platform(system: str | None = None) -> str:
    """
    Verify the host OS is one we can set up containers on.

    Raises:
        UnsupportedPlatformError: On anything but Linux or macOS.
    """
    system = system or platform.system()
    if system not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(f"Unsupported host operating system: {system}")
    return system


def generate_salt() -> str:
    """16 hex characters: valid for every backend's salt alphabet."""
    return secrets.token_hex(8)


class PasswordHasher:
    """
    One external hashing tool.

    Subclasses only describe the command line; running it and error
    handling live here.
    """

    executable: str = ""

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def command(self, salt: str) -> list[str]:
        """Command line for one hash; the password is read from stdin."""
        raise NotImplementedError

    def hash(self, password: str, salt: str | None = None) -> str:
        """
        Hash a password.

        Args:
            password: Plain text password.
            salt: Salt string; a random one is generated when omitted.

        Returns:
            The crypt(3) string, e.g. "$6$<salt>$<digest>".

        Raises:
            PasswordHashError: If the tool fails or prints nothing, or the
                password holds a line break.
        """
        if "\n" in password or "\r" in password:
            raise PasswordHashError("Passwords cannot contain line breaks")

        salt = salt or generate_salt()
        try:
            result = subprocess.run(
                self.command(salt),
                input=password + "\n",
                capture_output=True,
                text=True,
                timeout=HASH_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise PasswordHashError(f"{self.executable} failed: {e}")

        hashed = result.stdout.strip()
        if result.returncode != 0 or not hashed:
            raise PasswordHashError(
                f"{self.executable} failed: {result.stderr.strip() or 'no output'}"
            )
        return hashed


class MkpasswdHasher(PasswordHasher):
    executable = "mkpasswd"

    def command(self, salt: str) -> list[str]:
        return ["mkpasswd", "-m", "sha-512", "-S", salt, "--stdin"]


class OpensslHasher(PasswordHasher):
    executable = "openssl"

    def command(self, salt: str) -> list[str]:
        return ["openssl", "passwd", "-6", "-salt", salt, "-stdin"]


class PerlHasher(PasswordHasher):
    """Interpreter fallback: glibc crypt() through Perl."""

    executable = "perl"

    def command(self, salt: str) -> list[str]:
        script = 'chomp(my $pw = <STDIN>); print crypt($pw, "\\$6\\$$ARGV[0]\\$")'
        return ["perl", "-e", script, salt]


DEFAULT_HASHERS = (MkpasswdHasher, OpensslHasher, PerlHasher)


def resolve_hasher(candidates=None) -> PasswordHasher:
    """
    Pick the first hashing tool installed on the host.

    Raises:
        PasswordHashError: If none of the candidates is available.
    """
    candidates = candidates if candidates is not None else [cls() for cls in DEFAULT_HASHERS]
    for hasher in candidates:
        if hasher.is_available():
            return hasher

    names = ", ".join(h.executable for h in candidates) or "none"
    raise PasswordHashError(f"No password hashing tool found (tried: {names})")
