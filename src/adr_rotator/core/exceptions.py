"""Custom exceptions for ADR Package Rotator."""

from typing import Optional


class RotatorError(Exception):
    """Base exception for all rotator errors."""
    
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigurationError(RotatorError):
    """Configuration error."""
    pass


class SiteConnectionError(RotatorError):
    """The site's management API could not be reached or the site is unknown."""
    pass


class ContentFolderError(RotatorError):
    """Parent content folder is unreachable or a package folder cannot be created."""
    pass


class RuleError(RotatorError):
    """Auto-deployment rule errors."""
    pass


class RuleNotFoundError(RuleError):
    """Named rule does not exist in the site."""
    pass


class NoRulesFoundError(RuleError):
    """None of the named rules exist in the site."""
    pass


class AdminServiceError(RotatorError):
    """AdminService request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.status_code = status_code


class PackageError(RotatorError):
    """Deployment package lookup or creation failed."""
    pass


class DistributionError(RotatorError):
    """Distribution-point group registration failed."""
    pass


class ContentTemplateError(RotatorError):
    """Rule content template is missing or malformed."""
    pass
