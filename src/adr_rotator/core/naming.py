"""Package naming and content-folder collision resolution."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path, PureWindowsPath
from typing import Callable, List, Optional, Tuple

import structlog

from adr_rotator.core.exceptions import ConfigurationError, ContentFolderError

logger = structlog.get_logger()

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
MAX_FOLDER_SUFFIX = 999

_ILLEGAL_FOLDER_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def date_stamp(date_format: str = DEFAULT_DATE_FORMAT, today: Optional[date] = None) -> str:
    """Format today's date for use as a package name suffix."""
    today = today or date.today()
    try:
        stamp = today.strftime(date_format).strip()
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid date format {date_format!r}: {e}") from e
    if not stamp:
        raise ConfigurationError(f"Date format {date_format!r} produces an empty suffix")
    return stamp


def package_base_name(
    rule_name: str,
    *,
    package_name: Optional[str] = None,
    date_suffix: Optional[str] = None,
    remove_date: bool = False,
) -> str:
    """Candidate package name: override or rule name, plus the date suffix.

    The suffix is left off when ``remove_date`` is set.
    """
    base = (package_name or rule_name or "").strip()
    if not base:
        raise ConfigurationError("Package name cannot be empty")
    if remove_date:
        return base
    if not date_suffix:
        raise ConfigurationError("A date suffix is required unless date removal is requested")
    return f"{base}_{date_suffix}"


def plan_names(
    rule_names: List[str],
    *,
    single_package: bool,
    package_name: Optional[str] = None,
    date_suffix: Optional[str] = None,
    remove_date: bool = False,
) -> List[Tuple[str, List[str]]]:
    """Group rules by the candidate package name they will use.

    Single-package mode names the one package after the first rule (or the
    override). Otherwise each rule gets a package named after itself.
    """
    if not rule_names:
        raise ConfigurationError("At least one rule name is required")

    if single_package:
        name = package_base_name(
            rule_names[0],
            package_name=package_name,
            date_suffix=date_suffix,
            remove_date=remove_date,
        )
        return [(name, list(rule_names))]

    if package_name:
        logger.warning(
            "Package name override ignored without single-package mode",
            package_name=package_name,
        )
    return [
        (package_base_name(rule, date_suffix=date_suffix, remove_date=remove_date), [rule])
        for rule in rule_names
    ]


def sanitize_folder_name(name: str) -> str:
    """Make a package name safe to use as a Windows folder name."""
    cleaned = _ILLEGAL_FOLDER_CHARS.sub("_", name).rstrip(" .")
    if not cleaned:
        raise ConfigurationError(f"Package name {name!r} cannot be used as a folder name")
    return cleaned


def resolve_folder_name(
    parent: Path,
    candidate: str,
    exists: Optional[Callable[[Path], bool]] = None,
) -> Tuple[str, str]:
    """Find a package name whose content folder does not exist yet.

    Tries ``candidate``, then ``candidate_1``, ``candidate_2`` and so on.
    Returns ``(package_name, folder_name)``.
    """
    exists = exists or (lambda p: p.exists())
    for attempt in range(MAX_FOLDER_SUFFIX + 1):
        name = candidate if attempt == 0 else f"{candidate}_{attempt}"
        folder = sanitize_folder_name(name)
        if not exists(parent / folder):
            if attempt:
                logger.info(
                    "Content folder already exists, using suffixed name",
                    candidate=candidate,
                    name=name,
                )
            return name, folder
    raise ContentFolderError(
        f"No free folder name for {candidate!r} under {parent} after {MAX_FOLDER_SUFFIX} attempts"
    )


def build_source_path(folder_path: Path, folder_name: str, source_root: Optional[str] = None) -> str:
    """PkgSourcePath for the site.

    When ``source_root`` is given (typically the UNC share behind a local
    mount) the folder is joined onto it with Windows separators.
    """
    if source_root:
        return str(PureWindowsPath(source_root) / folder_name)
    return str(folder_path)
