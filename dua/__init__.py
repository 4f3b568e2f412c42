# -----------------------------------------------------------------------------
# DUA SETUP
# -----------------------------------------------------------------------------
# Scaffolding for per-target development containers:
# - domain: command struct and Dockerfile document model
# - core: validation, section splicing, target lifecycle, password hashing
# - infra: Docker and Git wrappers
# -----------------------------------------------------------------------------

__version__ = "1.0.0"
