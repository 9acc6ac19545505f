"""AdminService client for the WMI classes used by package rotation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog

from adr_rotator.core.config import Settings
from adr_rotator.core.exceptions import (
    AdminServiceError,
    ConfigurationError,
    SiteConnectionError,
)
from adr_rotator.core.models import AutoDeploymentRule, DistributionPointGroup, UpdatePackage

logger = structlog.get_logger()

# PkgSourceFlag: store software updates in the package source path
PKG_SOURCE_FLAG_STORAGE_DIRECT = 2


def odata_quote(value: str) -> str:
    """Quote a string literal for an OData $filter expression."""
    return "'" + value.replace("'", "''") + "'"


def build_auth(settings: Settings):
    """httpx auth object for the configured authentication mode."""
    if settings.sms_auth == "none":
        return None
    if not settings.sms_username or not settings.sms_password:
        raise ConfigurationError(
            f"SMS_USERNAME and SMS_PASSWORD are required for {settings.sms_auth} authentication"
        )
    if settings.sms_auth == "basic":
        return httpx.BasicAuth(settings.sms_username, settings.sms_password)
    from httpx_ntlm import HttpNtlmAuth
    return HttpNtlmAuth(settings.sms_username, settings.sms_password)


class AdminServiceClient:
    """Synchronous client for ``https://<server>/AdminService/wmi/``.

    Use as a context manager so the underlying ``httpx.Client`` is closed.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth=None,
        verify=True,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            verify=verify,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, site_server: Optional[str] = None) -> "AdminServiceClient":
        return cls(
            settings.base_url(site_server),
            auth=build_auth(settings),
            verify=settings.tls_verify,
            timeout=settings.request_timeout_seconds,
        )

    def __enter__(self) -> "AdminServiceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -- transport helpers -------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise AdminServiceError(f"{method} {path} failed: {e}") from e
        if resp.is_error:
            raise AdminServiceError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp

    def _json(self, resp: httpx.Response) -> Dict[str, Any]:
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise AdminServiceError(
                f"Invalid JSON from {resp.request.url}", status_code=resp.status_code
            ) from e

    def _query(self, wmi_class: str, filter_expr: str) -> List[Dict[str, Any]]:
        resp = self._request("GET", wmi_class, params={"$filter": filter_expr})
        return self._json(resp).get("value", [])

    def _get_instance(self, wmi_class: str, key: str) -> Optional[Dict[str, Any]]:
        """Read one instance by key; lazy properties are only returned this way."""
        try:
            resp = self._request("GET", f"{wmi_class}({key})")
        except AdminServiceError as e:
            if e.status_code == 404:
                return None
            raise
        data = self._json(resp)
        # Instance reads come back wrapped in a one-element value list
        if "value" in data:
            values = data["value"]
            return values[0] if values else None
        return data

    # -- site ----------------------------------------------------------------

    def check_site(self, site_code: str) -> Dict[str, Any]:
        """Verify the AdminService answers and knows the site."""
        try:
            sites = self._query("SMS_Site", f"SiteCode eq {odata_quote(site_code)}")
        except AdminServiceError as e:
            raise SiteConnectionError(
                f"Cannot reach AdminService at {self.base_url}: {e}", code="site_unreachable"
            ) from e
        if not sites:
            raise SiteConnectionError(
                f"Site {site_code} is not known to {self.base_url}", code="site_unknown"
            )
        logger.info("Connected to site", site_code=site_code, site_name=sites[0].get("SiteName"))
        return sites[0]

    # -- auto-deployment rules ----------------------------------------------

    def find_rule(self, name: str) -> Optional[AutoDeploymentRule]:
        rows = self._query("SMS_AutoDeployment", f"Name eq {odata_quote(name)}")
        if not rows:
            return None
        return AutoDeploymentRule.from_wmi(rows[0])

    def get_rule(self, rule_id: int) -> Optional[AutoDeploymentRule]:
        data = self._get_instance("SMS_AutoDeployment", str(rule_id))
        return AutoDeploymentRule.from_wmi(data) if data else None

    def update_rule_content_template(self, rule_id: int, content_template: str) -> None:
        self._request(
            "POST",
            f"SMS_AutoDeployment({rule_id})",
            json={"ContentTemplate": content_template},
        )

    # -- packages --------------------------------------------------------------

    def find_package(self, name: str) -> Optional[UpdatePackage]:
        rows = self._query("SMS_SoftwareUpdatesPackage", f"Name eq {odata_quote(name)}")
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning("Multiple packages share a name, using the first", name=name, count=len(rows))
        return UpdatePackage.from_wmi(rows[0])

    def create_package(self, name: str, source_path: str, description: Optional[str] = None) -> UpdatePackage:
        body = {
            "Name": name,
            "Description": description or "",
            "PkgSourceFlag": PKG_SOURCE_FLAG_STORAGE_DIRECT,
            "PkgSourcePath": source_path,
        }
        data = self._json(self._request("POST", "SMS_SoftwareUpdatesPackage", json=body))
        if "value" in data and isinstance(data["value"], list) and data["value"]:
            data = data["value"][0]
        if not data.get("PackageID"):
            # Some site versions return no body on create; read it back by name
            created = self.find_package(name)
            if created is None:
                raise AdminServiceError(f"Package {name!r} was not returned after creation")
            return created
        return UpdatePackage.from_wmi(data)

    # -- distribution point groups ---------------------------------------------

    def find_distribution_point_group(self, name: str) -> Optional[DistributionPointGroup]:
        rows = self._query("SMS_DistributionPointGroup", f"Name eq {odata_quote(name)}")
        if not rows:
            return None
        return DistributionPointGroup.from_wmi(rows[0])

    def add_package_to_group(self, group_id: str, package_id: str) -> None:
        self._request(
            "POST",
            f"SMS_DistributionPointGroup({odata_quote(group_id)})/AdminService.AddPackages",
            json={"PackageIDs": [package_id]},
        )
