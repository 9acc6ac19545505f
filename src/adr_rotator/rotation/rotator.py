"""
Rotate the deployment package behind one or more auto-deployment rules.

The run is strictly sequential: verify the site and the content folder,
resolve the rules, find or create the package(s), then rewrite each rule's
content template to reference the package. Nothing is retried and nothing
is rolled back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import structlog

from adr_rotator.core.exceptions import (
    AdminServiceError,
    ContentFolderError,
    ContentTemplateError,
    DistributionError,
    NoRulesFoundError,
    PackageError,
    RuleNotFoundError,
)
from adr_rotator.core.models import (
    AutoDeploymentRule,
    DistributionPointGroup,
    PackageOutcome,
    PackagePlan,
    RotationResult,
    RuleOutcome,
    RuleStatus,
    UpdatePackage,
)
from adr_rotator.core.naming import build_source_path, plan_names, resolve_folder_name
from adr_rotator.sms.client import AdminServiceClient
from adr_rotator.sms.content_template import get_package_id, set_package_id

logger = structlog.get_logger()


class PackageRotator:
    """Points the named rules at a fresh (or reused) deployment package."""

    def __init__(self, client: AdminServiceClient, config):
        self.client = client
        self.config = config
        self.folder: Path = config.folder

    def run(self) -> RotationResult:
        """Execute one rotation.

        Raises:
            SiteConnectionError: the site cannot be reached or is unknown
            ContentFolderError: the parent folder is unreachable
            NoRulesFoundError: none of the named rules exist
        """
        result = RotationResult(site_code=self.config.site_code, dry_run=self.config.dry_run)
        logger.info("Starting package rotation", **self.config.to_dict())

        self.client.check_site(self.config.site_code)
        self._check_parent_folder()

        rules = self._resolve_rules(result)
        groups = plan_names(
            list(rules),
            single_package=self.config.single_package,
            package_name=self.config.package_name,
            date_suffix=self.config.date_suffix,
            remove_date=self.config.remove_date,
        )
        dp_group = self._resolve_dp_group()

        for candidate, rule_names in groups:
            try:
                outcome = self._ensure_package(candidate, rule_names, dp_group)
            except (PackageError, ContentFolderError) as e:
                logger.error("Package could not be created", package=candidate, error=str(e))
                for name in rule_names:
                    result.rules.append(
                        RuleOutcome(rule_name=name, status=RuleStatus.FAILED, detail=str(e))
                    )
                continue
            result.packages.append(outcome)
            for name in rule_names:
                result.rules.append(self._repoint_rule(rules[name], outcome))

        logger.info(
            "Package rotation complete",
            updated=result.updated_count,
            failed=result.failed_count,
            not_found=result.not_found_count,
            dry_run=result.dry_run,
        )
        return result

    # -- preconditions -----------------------------------------------------------

    def _check_parent_folder(self) -> None:
        try:
            reachable = self.folder.is_dir()
        except OSError as e:
            raise ContentFolderError(f"Cannot access content folder {self.folder}: {e}") from e
        if not reachable:
            raise ContentFolderError(f"Content folder {self.folder} does not exist or is unreachable")
        logger.debug("Content folder reachable", folder=str(self.folder))

    def _find_rule(self, name: str) -> AutoDeploymentRule:
        rule = self.client.find_rule(name)
        if rule is None:
            raise RuleNotFoundError(f"Auto-deployment rule {name!r} not found", code="rule_not_found")
        return rule

    def _resolve_rules(self, result: RotationResult) -> Dict[str, AutoDeploymentRule]:
        """Look up every named rule; missing or unreadable ones are reported and skipped."""
        rules: Dict[str, AutoDeploymentRule] = {}
        for name in self.config.rule_names:
            try:
                rules[name] = self._find_rule(name)
            except RuleNotFoundError as e:
                logger.warning("Skipping rule", rule=name, reason=str(e))
                result.rules.append(
                    RuleOutcome(rule_name=name, status=RuleStatus.NOT_FOUND, detail=str(e))
                )
            except AdminServiceError as e:
                logger.error("Rule lookup failed", rule=name, error=str(e))
                result.rules.append(
                    RuleOutcome(rule_name=name, status=RuleStatus.FAILED, detail=str(e))
                )
        if not rules:
            raise NoRulesFoundError(
                f"None of the named rules were found: {', '.join(self.config.rule_names)}",
                code="no_rules",
            )
        logger.info("Resolved rules", found=list(rules), missing=len(self.config.rule_names) - len(rules))
        return rules

    def _resolve_dp_group(self) -> Optional[DistributionPointGroup]:
        name = self.config.dp_group
        if not name:
            return None
        try:
            group = self.client.find_distribution_point_group(name)
        except AdminServiceError as e:
            logger.warning("Distribution point group lookup failed, new packages will not be distributed", dp_group=name, error=str(e))
            return None
        if group is None:
            logger.warning("Distribution point group not found, new packages will not be distributed", dp_group=name)
        return group

    # -- packages ------------------------------------------------------------------

    def _reuse(self, package: UpdatePackage, candidate: str, rule_names: List[str]) -> PackageOutcome:
        logger.info("Reusing existing package", package=package.name, package_id=package.package_id)
        plan = PackagePlan(
            candidate_name=candidate,
            name=package.name,
            folder_path=package.source_path or "",
            source_path=package.source_path or "",
            rule_names=rule_names,
        )
        return PackageOutcome(plan=plan, package=package)

    def _ensure_package(
        self,
        candidate: str,
        rule_names: List[str],
        dp_group: Optional[DistributionPointGroup],
    ) -> PackageOutcome:
        """Find the package for ``candidate`` or create it with a free folder."""
        existing = self._find_package(candidate)
        if existing is not None:
            return self._reuse(existing, candidate, rule_names)

        name, folder_name = resolve_folder_name(self.folder, candidate)
        if name != candidate:
            existing = self._find_package(name)
            if existing is not None:
                return self._reuse(existing, candidate, rule_names)

        folder_path = self.folder / folder_name
        plan = PackagePlan(
            candidate_name=candidate,
            name=name,
            folder_path=str(folder_path),
            source_path=build_source_path(folder_path, folder_name, self.config.source_root),
            rule_names=rule_names,
        )

        if self.config.dry_run:
            logger.info("Dry run: would create package", package=name, source_path=plan.source_path)
            return PackageOutcome(plan=plan)

        try:
            folder_path.mkdir()
        except OSError as e:
            raise ContentFolderError(f"Cannot create content folder {folder_path}: {e}") from e
        logger.info("Created content folder", folder=str(folder_path))

        try:
            package = self.client.create_package(name, plan.source_path, self.config.description)
        except AdminServiceError as e:
            raise PackageError(f"Creating package {name!r} failed: {e}") from e
        logger.info("Created package", package=package.name, package_id=package.package_id)

        outcome = PackageOutcome(plan=plan, package=package, created=True, folder_created=True)
        if dp_group is not None:
            try:
                self._distribute(package, dp_group)
                outcome.distributed_to = dp_group.name
            except DistributionError as e:
                logger.error("Package not distributed", package_id=package.package_id, error=str(e))
        return outcome

    def _find_package(self, name: str) -> Optional[UpdatePackage]:
        try:
            return self.client.find_package(name)
        except AdminServiceError as e:
            raise PackageError(f"Looking up package {name!r} failed: {e}") from e

    def _distribute(self, package: UpdatePackage, dp_group: DistributionPointGroup) -> None:
        try:
            self.client.add_package_to_group(dp_group.group_id, package.package_id)
        except AdminServiceError as e:
            raise DistributionError(
                f"Adding {package.package_id} to {dp_group.name!r} failed: {e}"
            ) from e
        logger.info("Package added to distribution point group", package_id=package.package_id, dp_group=dp_group.name)

    # -- rules -------------------------------------------------------------------------

    def _repoint_rule(self, rule: AutoDeploymentRule, outcome: PackageOutcome) -> RuleOutcome:
        """Rewrite one rule's content template; failures only affect this rule."""
        package_id = outcome.package.package_id if outcome.package else None
        log = logger.bind(rule=rule.name, rule_id=rule.rule_id, package_id=package_id)
        try:
            full = self.client.get_rule(rule.rule_id)
            if full is None:
                log.warning("Rule disappeared before update")
                return RuleOutcome(
                    rule_name=rule.name,
                    status=RuleStatus.NOT_FOUND,
                    package_id=package_id,
                    detail="Rule no longer exists",
                )
            previous = get_package_id(full.content_template)

            if self.config.dry_run:
                log.info("Dry run: would repoint rule", previous_package_id=previous, package=outcome.plan.name)
                return RuleOutcome(
                    rule_name=rule.name,
                    status=RuleStatus.SKIPPED,
                    package_id=package_id,
                    previous_package_id=previous,
                    detail=f"Would use package {outcome.plan.name!r}",
                )

            if previous == package_id:
                log.info("Rule already uses package")
                return RuleOutcome(
                    rule_name=rule.name,
                    status=RuleStatus.UNCHANGED,
                    package_id=package_id,
                    previous_package_id=previous,
                )

            template = set_package_id(full.content_template, package_id)
            self.client.update_rule_content_template(rule.rule_id, template)
        except (AdminServiceError, ContentTemplateError) as e:
            log.error("Rule update failed", error=str(e))
            return RuleOutcome(
                rule_name=rule.name,
                status=RuleStatus.FAILED,
                package_id=package_id,
                detail=str(e),
            )

        log.info("Rule repointed", previous_package_id=previous)
        return RuleOutcome(
            rule_name=rule.name,
            status=RuleStatus.UPDATED,
            package_id=package_id,
            previous_package_id=previous,
        )
