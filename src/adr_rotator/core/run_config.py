"""
Invocation parameter validation.

Merges command-line arguments over environment settings and validates the
result, failing fast with clear error messages if anything is invalid.
"""

import re
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from adr_rotator.core.config import Settings
from adr_rotator.core.exceptions import ConfigurationError
from adr_rotator.core.naming import date_stamp

logger = structlog.get_logger()

SITE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3}$")


class RunConfig:
    """
    Parameters of one rotation run.

    All fields are validated on initialization. Every problem found is logged
    and the process exits with status 1 if there were any.
    """

    def __init__(self, args, settings: Optional[Settings] = None):
        """Initialize from parsed CLI arguments and validate."""
        self.errors: List[str] = []
        self._args = args
        self._settings = settings or Settings()

        self.site_server: Optional[str] = None
        self.site_code: Optional[str] = None
        self.rule_names: List[str] = []
        self.date_format: str = self._settings.date_format
        self.date_suffix: Optional[str] = None
        self.single_package: bool = bool(getattr(args, "single_package", False))
        self.remove_date: bool = bool(getattr(args, "no_date", False))
        self.folder: Optional[Path] = None
        self.source_root: Optional[str] = None
        self.package_name: Optional[str] = None
        self.description: Optional[str] = None
        self.dp_group: Optional[str] = None
        self.dry_run: bool = bool(getattr(args, "dry_run", False))

        self._validate()

        if self.errors:
            for error in self.errors:
                logger.error("Parameter validation error", error=error)
            logger.error(
                "Run parameter validation failed",
                error_count=len(self.errors)
            )
            sys.exit(1)

    def _arg(self, name: str) -> Optional[str]:
        value = getattr(self._args, name, None)
        if isinstance(value, str):
            value = value.strip()
        return value or None

    def _validate(self):
        self._validate_site()
        self._validate_rules()
        self._validate_date_format()
        self._validate_folder()
        self._validate_optional_names()

    def _validate_site(self):
        """Validate site server and site code (CLI wins over environment)."""
        self.site_server = self._arg("site_server") or self._settings.site_server
        if not self.site_server and not self._settings.adminservice_url:
            self.errors.append("Site server is required (--site-server or SITE_SERVER)")

        site_code = self._arg("site_code") or self._settings.site_code
        if not site_code:
            self.errors.append("Site code is required (--site-code or SITE_CODE)")
        elif not SITE_CODE_PATTERN.match(site_code.strip()):
            self.errors.append(f"Site code must be three letters or digits, got: {site_code}")
        else:
            self.site_code = site_code.strip().upper()

    def _validate_rules(self):
        """Collect rule names, dropping blanks and duplicates while keeping order."""
        raw = list(getattr(self._args, "rules", None) or [])
        raw += list(getattr(self._args, "rule", None) or [])
        seen = set()
        for name in raw:
            name = (name or "").strip()
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            self.rule_names.append(name)
        if not self.rule_names:
            self.errors.append("At least one auto-deployment rule name is required")

    def _validate_date_format(self):
        self.date_format = self._arg("date_format") or self._settings.date_format
        if self.remove_date:
            return
        try:
            self.date_suffix = date_stamp(self.date_format)
        except ConfigurationError as e:
            self.errors.append(str(e))

    def _validate_folder(self):
        folder = self._arg("folder")
        if not folder:
            self.errors.append("Parent content folder is required (--folder)")
            return
        self.folder = Path(folder).expanduser()
        self.source_root = self._arg("source_root")

    def _validate_optional_names(self):
        self.package_name = self._arg("package_name")
        self.description = self._arg("description")
        self.dp_group = self._arg("dp_group")

    def to_dict(self):
        """Convert configuration to dictionary (for logging/debugging)."""
        return {
            "site_server": self.site_server,
            "site_code": self.site_code,
            "rule_names": self.rule_names,
            "date_format": self.date_format,
            "date_suffix": self.date_suffix,
            "single_package": self.single_package,
            "remove_date": self.remove_date,
            "folder": str(self.folder) if self.folder else None,
            "source_root": self.source_root,
            "package_name": self.package_name,
            "dp_group": self.dp_group,
            "dry_run": self.dry_run,
        }
