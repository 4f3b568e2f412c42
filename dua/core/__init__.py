# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The business logic of the setup tool:
# - SetupPolicy: configuration and input validation
# - Splicer: Dockerfile section merge / removal / clear
# - TargetManager: target lifecycle (create, modify, clear, delete)
# - Password hashers: host tools producing the container user's hash
# -----------------------------------------------------------------------------

from .passwords import PasswordHasher, PasswordHashError, UnsupportedPlatformError, resolve_hasher
from .policy import PolicyConfig, PolicyViolation, SetupPolicy
from .splicer import UnitSourceError, clear_units, merge_units, remove_units
from .targets import ProjectRootError, TargetExistsError, TargetManager, TargetNotFoundError

__all__ = [
    "PasswordHasher", "PasswordHashError", "UnsupportedPlatformError", "resolve_hasher",
    "PolicyConfig", "PolicyViolation", "SetupPolicy",
    "UnitSourceError", "clear_units", "merge_units", "remove_units",
    "ProjectRootError", "TargetExistsError", "TargetManager", "TargetNotFoundError",
]
