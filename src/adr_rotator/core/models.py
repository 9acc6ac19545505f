"""Core data models for ADR Package Rotator."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RuleStatus(str, Enum):
    """Outcome of repointing one rule."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"    # Already referenced the target package
    NOT_FOUND = "not_found"
    FAILED = "failed"
    SKIPPED = "skipped"        # Dry run


class AutoDeploymentRule(BaseModel):
    """SMS_AutoDeployment instance."""

    rule_id: int = Field(..., description="AutoDeploymentID")
    name: str = Field(..., description="Rule name")
    enabled: bool = Field(True)
    content_template: Optional[str] = Field(
        None,
        description="ContentTemplate XML (lazy property, only present on instance reads)",
    )

    @classmethod
    def from_wmi(cls, data: Dict[str, Any]) -> "AutoDeploymentRule":
        return cls(
            rule_id=data["AutoDeploymentID"],
            name=data["Name"],
            enabled=data.get("AutoDeploymentEnabled", True),
            content_template=data.get("ContentTemplate"),
        )


class UpdatePackage(BaseModel):
    """SMS_SoftwareUpdatesPackage instance."""

    package_id: str = Field(..., description="PackageID, e.g. PS100045")
    name: str = Field(..., description="Package name")
    description: Optional[str] = Field(None)
    source_path: Optional[str] = Field(None, description="PkgSourcePath")

    @classmethod
    def from_wmi(cls, data: Dict[str, Any]) -> "UpdatePackage":
        return cls(
            package_id=data["PackageID"],
            name=data["Name"],
            description=data.get("Description") or None,
            source_path=data.get("PkgSourcePath") or None,
        )


class DistributionPointGroup(BaseModel):
    """SMS_DistributionPointGroup instance."""

    group_id: str = Field(..., description="GroupID")
    name: str = Field(..., description="Group name")

    @classmethod
    def from_wmi(cls, data: Dict[str, Any]) -> "DistributionPointGroup":
        return cls(group_id=data["GroupID"], name=data["Name"])


class PackagePlan(BaseModel):
    """Decided name and content location for one package."""

    candidate_name: str = Field(..., description="Name before folder collision resolution")
    name: str = Field(..., description="Final package name")
    folder_path: str = Field(..., description="Local content folder path")
    source_path: str = Field(..., description="PkgSourcePath sent to the site")
    rule_names: List[str] = Field(default_factory=list)


class PackageOutcome(BaseModel):
    plan: PackagePlan
    package: Optional[UpdatePackage] = None
    created: bool = False
    folder_created: bool = False
    distributed_to: Optional[str] = None


class RuleOutcome(BaseModel):
    rule_name: str
    status: RuleStatus
    package_id: Optional[str] = None
    previous_package_id: Optional[str] = None
    detail: Optional[str] = None


class RotationResult(BaseModel):
    """Summary of one rotation run."""

    site_code: str
    dry_run: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    packages: List[PackageOutcome] = Field(default_factory=list)
    rules: List[RuleOutcome] = Field(default_factory=list)

    def _count(self, status: RuleStatus) -> int:
        return sum(1 for r in self.rules if r.status == status)

    @property
    def updated_count(self) -> int:
        return self._count(RuleStatus.UPDATED)

    @property
    def failed_count(self) -> int:
        return self._count(RuleStatus.FAILED)

    @property
    def not_found_count(self) -> int:
        return self._count(RuleStatus.NOT_FOUND)
