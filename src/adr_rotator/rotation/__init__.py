"""Package rotation for auto-deployment rules."""

from .rotator import PackageRotator

__all__ = ["PackageRotator"]
