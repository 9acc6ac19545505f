"""
Pytest configuration and fixtures for rotator tests.
"""

import argparse
from unittest.mock import MagicMock

import pytest

from adr_rotator.core.config import Settings
from adr_rotator.core.models import AutoDeploymentRule, DistributionPointGroup, UpdatePackage
from adr_rotator.core.run_config import RunConfig

ENV_VARS = (
    "SITE_SERVER",
    "SITE_CODE",
    "ADMINSERVICE_URL",
    "SMS_AUTH",
    "SMS_USERNAME",
    "SMS_PASSWORD",
    "SMS_VERIFY_TLS",
    "SMS_CA_BUNDLE",
    "REQUEST_TIMEOUT_SECONDS",
    "DATE_FORMAT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)

TEMPLATE = (
    "<ContentActionXML>"
    "<PackageID>PS100001</PackageID>"
    "<ContentLocales><Locale>Locale:9</Locale></ContentLocales>"
    "<ContentSources><Source Name=\"Internet\" Order=\"1\" /></ContentSources>"
    "</ContentActionXML>"
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """
    Keep host environment and any .env file out of the tests.

    Tests run from an empty directory with none of the settings variables set.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def content_root(tmp_path):
    root = tmp_path / "updates"
    root.mkdir()
    return root


def make_args(**overrides) -> argparse.Namespace:
    values = dict(
        rules=[],
        rule=None,
        site_server="cm01.corp.example",
        site_code="PS1",
        folder=None,
        source_root=None,
        date_format="%Y-%m-%d",
        single_package=False,
        no_date=False,
        package_name=None,
        description=None,
        dp_group=None,
        dry_run=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def make_config(content_root):
    """Build a validated RunConfig with sensible defaults."""
    def _make(**overrides):
        overrides.setdefault("folder", str(content_root))
        return RunConfig(make_args(**overrides), Settings(sms_auth="none"))
    return _make


def make_rule(rule_id: int, name: str, template: str = TEMPLATE) -> AutoDeploymentRule:
    return AutoDeploymentRule(rule_id=rule_id, name=name, content_template=template)


class FakeSite:
    """In-memory stand-in for the AdminService used by the rotator."""

    def __init__(self, rules=(), packages=(), groups=()):
        self.rules = {r.name: r for r in rules}
        self.packages = {p.name: p for p in packages}
        self.groups = {g.name: g for g in groups}
        self.group_members = {}
        self._next_package = 200

        client = MagicMock()
        client.check_site.return_value = {"SiteCode": "PS1", "SiteName": "Primary"}
        client.find_rule.side_effect = self.find_rule
        client.get_rule.side_effect = self.get_rule
        client.update_rule_content_template.side_effect = self.update_rule
        client.find_package.side_effect = self.packages.get
        client.create_package.side_effect = self.create_package
        client.find_distribution_point_group.side_effect = self.groups.get
        client.add_package_to_group.side_effect = self.add_to_group
        self.client = client

    def find_rule(self, name):
        rule = self.rules.get(name)
        if rule is None:
            return None
        # List queries do not return lazy properties
        return rule.model_copy(update={"content_template": None})

    def get_rule(self, rule_id):
        for rule in self.rules.values():
            if rule.rule_id == rule_id:
                return rule
        return None

    def update_rule(self, rule_id, template):
        for name, rule in self.rules.items():
            if rule.rule_id == rule_id:
                self.rules[name] = rule.model_copy(update={"content_template": template})

    def create_package(self, name, source_path, description=None):
        package = UpdatePackage(
            package_id=f"PS100{self._next_package}",
            name=name,
            description=description,
            source_path=source_path,
        )
        self._next_package += 1
        self.packages[name] = package
        return package

    def add_to_group(self, group_id, package_id):
        self.group_members.setdefault(group_id, []).append(package_id)


@pytest.fixture
def fake_site():
    return FakeSite(
        rules=[
            make_rule(16777217, "Windows Monthly"),
            make_rule(16777218, "Office Monthly"),
        ],
        groups=[DistributionPointGroup(group_id="{8E1B1C2D-0000-4F6A-9C3B-1A2B3C4D5E6F}", name="All DPs")],
    )
