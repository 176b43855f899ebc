"""WAF IP set sync configuration settings.

Environment-based configuration, read once per process.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AWS_IP_RANGES_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
DEFAULT_NAME_PREFIX = "AutoUpdateWafIpSetOfCloudFront-"


class IPSetSyncSettings(BaseSettings):
    """Configuration for the CloudFront IP set synchronizer.

    All settings can be configured via environment variables or .env file.

    Attributes:
        name_prefix: Prefix shared by the IP set names and the job identifier
        ip_ranges_url: URL of the published AWS IP range document
        waf_scope: WAFv2 scope the IP sets live in (REGIONAL or CLOUDFRONT)
        request_timeout: HTTP timeout for fetching the range document, in seconds
        aws_region: Region for the WAFv2 client (boto3 default chain if unset)
        log_level: Root logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    name_prefix: str = Field(
        default=DEFAULT_NAME_PREFIX,
        alias="NAME_PREFIX",
        description="Prefix for IP set names and the job source identifier",
    )
    ip_ranges_url: str = Field(
        default=AWS_IP_RANGES_URL,
        alias="IP_RANGES_URL",
        description="Published AWS IP range document",
    )
    waf_scope: str = Field(
        default="REGIONAL",
        alias="WAF_SCOPE",
        description="WAFv2 scope of the managed IP sets",
    )
    request_timeout: float = Field(
        default=30.0,
        alias="IPSET_SYNC_REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds",
    )
    aws_region: str | None = Field(
        default=None,
        alias="AWS_REGION",
        description="AWS region for the WAFv2 client",
    )
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("waf_scope")
    @classmethod
    def validate_waf_scope(cls, v: str) -> str:
        """Validate scope is one WAFv2 accepts."""
        valid_scopes = {"REGIONAL", "CLOUDFRONT"}
        if v.upper() not in valid_scopes:
            msg = f"Invalid WAF scope: {v}. Must be one of: {', '.join(sorted(valid_scopes))}"
            raise ValueError(msg)
        return v.upper()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Fall back to INFO for unknown levels."""
        if v.upper() not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            return "INFO"
        return v.upper()

    @property
    def global_ip_set_name(self) -> str:
        """Name of the IP set holding GLOBAL CloudFront ranges."""
        return f"{self.name_prefix}CloudFront-Global"

    @property
    def regional_ip_set_name(self) -> str:
        """Name of the IP set holding regional CloudFront ranges."""
        return f"{self.name_prefix}CloudFront-Regional"

    @property
    def source_name(self) -> str:
        """Job identifier reported in every outcome record."""
        return f"{self.name_prefix}Lambda"


_settings_instance: IPSetSyncSettings | None = None


def get_settings() -> IPSetSyncSettings:
    """Get default settings (singleton, reads from environment).

    Returns:
        IPSetSyncSettings instance.

    Raises:
        ValidationError: If an environment variable holds an invalid value.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = IPSetSyncSettings()
    return _settings_instance


def reset_settings() -> None:
    """Reset singleton (for testing)."""
    global _settings_instance
    _settings_instance = None
