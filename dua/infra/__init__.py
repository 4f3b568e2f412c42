# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - DockerProvider: Docker SDK wrapper for building target images
# - GitProvider: git subtree / remote / submodule commands
# -----------------------------------------------------------------------------

from .docker_client import DockerProvider, DockerProviderError, compose
from .git_client import GitError, GitProvider

__all__ = ["DockerProvider", "DockerProviderError", "compose", "GitError", "GitProvider"]
