"""ADR Package Rotator - rotate deployment packages behind auto-deployment rules."""

__version__ = "0.1.0"
__author__ = "Endpoint Platform Team"

from adr_rotator.core.config import Settings
from adr_rotator.core.models import RotationResult

__all__ = ["Settings", "RotationResult", "__version__"]
