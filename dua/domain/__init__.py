# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Contains the setup command (Pydantic model) parsed once by the CLI and the
# Dockerfile document model that the splicer operates on.
# -----------------------------------------------------------------------------

from .dockerfile import IMAGE_SETUP, DockerfileDocument, MarkerError, Section
from .models import SetupCommand, TargetRevision, Verb

__all__ = [
    "IMAGE_SETUP", "DockerfileDocument", "MarkerError", "Section",
    "SetupCommand", "TargetRevision", "Verb",
]
