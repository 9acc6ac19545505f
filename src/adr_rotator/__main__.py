"""CLI entrypoint: adr-rotate."""

from __future__ import annotations

import argparse
import sys
import uuid
from typing import List, Optional

import structlog
from pydantic import ValidationError

from adr_rotator import __version__
from adr_rotator.core.config import Settings
from adr_rotator.core.exceptions import RotatorError
from adr_rotator.core.models import RotationResult
from adr_rotator.core.run_config import RunConfig
from adr_rotator.rotation.rotator import PackageRotator
from adr_rotator.sms.client import AdminServiceClient
from adr_rotator.utils.logging import bind_run_context, setup_logging

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_ABORTED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adr-rotate",
        description="Point auto-deployment rules at a fresh, date-stamped deployment package",
    )
    parser.add_argument("rules", nargs="*", metavar="RULE", help="Auto-deployment rule name(s)")
    parser.add_argument("--rule", action="append", metavar="NAME", help="Auto-deployment rule name (repeatable)")
    parser.add_argument("--site-server", help="SMS provider / AdminService host (env: SITE_SERVER)")
    parser.add_argument("--site-code", help="Three-character site code (env: SITE_CODE)")
    parser.add_argument("--folder", help="Parent folder in which package content folders are created")
    parser.add_argument("--source-root", help="UNC path of --folder as the site sees it, if different")
    parser.add_argument("--date-format", help="strftime format of the date suffix (default %%Y-%%m-%%d)")
    parser.add_argument("--single-package", action="store_true", help="Use one package for all rules")
    parser.add_argument("--no-date", action="store_true", help="Do not append the date suffix")
    parser.add_argument("--package-name", help="Explicit package name (with --single-package)")
    parser.add_argument("--description", help="Description for newly created packages")
    parser.add_argument("--dp-group", help="Distribution point group to add new packages to")
    parser.add_argument("--dry-run", action="store_true", help="Plan only; change nothing")
    parser.add_argument("--json", action="store_true", help="Print the run summary as JSON on stdout")
    parser.add_argument("--log-level", help="Log level (env: LOG_LEVEL)")
    parser.add_argument("--log-format", choices=["json", "console"], help="Log format (env: LOG_FORMAT)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_summary(result: RotationResult) -> None:
    """Human-readable summary on stdout."""
    prefix = "[dry run] " if result.dry_run else ""
    for pkg in result.packages:
        if pkg.package is None:
            state = "would create"
        elif pkg.created:
            state = "created"
        else:
            state = "reused"
        pkg_id = pkg.package.package_id if pkg.package else "-"
        line = f"{prefix}package {pkg.plan.name!r} ({pkg_id}): {state}"
        if pkg.distributed_to:
            line += f", distributed to {pkg.distributed_to!r}"
        print(line)
    for rule in result.rules:
        line = f"{prefix}rule {rule.rule_name!r}: {rule.status.value}"
        if rule.detail:
            line += f" ({rule.detail})"
        print(line)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging(args.log_level or "INFO", args.log_format or "console")
        logger.error("Invalid environment configuration", error=str(e), error_count=e.error_count())
        return EXIT_ABORTED

    setup_logging(args.log_level or settings.log_level, args.log_format or settings.log_format)

    config = RunConfig(args, settings)
    bind_run_context(config.site_code, uuid.uuid4().hex[:12])

    try:
        with AdminServiceClient.from_settings(settings, config.site_server) as client:
            result = PackageRotator(client, config).run()
    except RotatorError as e:
        logger.error("Package rotation aborted", error=str(e), error_type=type(e).__name__, code=e.code)
        return EXIT_ABORTED

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_summary(result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
