"""Configuration management for ADR Package Rotator."""

import ssl
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ADMINSERVICE_PATH = "/AdminService/wmi/"
AUTH_MODES = ("ntlm", "basic", "none")


class Settings(BaseSettings):
    """Environment settings for connecting to a site and logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Site
    site_server: Optional[str] = Field(None, description="SMS provider / AdminService host FQDN")
    site_code: Optional[str] = Field(None, description="Three-character site code")
    adminservice_url: Optional[str] = Field(
        None,
        description="Override for the AdminService WMI route base URL",
    )

    # Authentication
    sms_auth: str = Field("ntlm", description="Authentication mode: ntlm, basic or none")
    sms_username: Optional[str] = Field(None, description="Account used against the AdminService")
    sms_password: Optional[str] = Field(None, description="Password for sms_username")
    sms_verify_tls: bool = Field(True, description="Verify the AdminService TLS certificate")
    sms_ca_bundle: Optional[str] = Field(None, description="CA bundle used for TLS verification")
    request_timeout_seconds: float = Field(30.0, description="Per-request timeout")

    # Naming
    date_format: str = Field("%Y-%m-%d", description="strftime format of the package date suffix")

    # Observability
    log_level: str = Field("INFO")
    log_format: str = Field("console")

    @field_validator("sms_auth")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        """Normalize and check the authentication mode."""
        mode = v.strip().lower()
        if mode not in AUTH_MODES:
            raise ValueError(f"sms_auth must be one of {', '.join(AUTH_MODES)}, got: {v}")
        return mode

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.strip().lower()
        if fmt not in ("json", "console"):
            raise ValueError(f"log_format must be json or console, got: {v}")
        return fmt

    def base_url(self, site_server: Optional[str] = None) -> str:
        """AdminService WMI route for the given (or configured) server."""
        if self.adminservice_url:
            url = self.adminservice_url
            return url if url.endswith("/") else url + "/"
        server = site_server or self.site_server
        if not server:
            raise ValueError("site_server is required to build the AdminService URL")
        return f"https://{server.strip()}{ADMINSERVICE_PATH}"

    @property
    def tls_verify(self):
        """Value for httpx's verify argument."""
        if not self.sms_verify_tls:
            return False
        if self.sms_ca_bundle:
            return ssl.create_default_context(cafile=self.sms_ca_bundle)
        return True
