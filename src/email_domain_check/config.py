"""Configuration management for email-domain-check."""

import logging
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BIMI_SELECTOR,
    DEFAULT_DELIVERY_PORT,
    DEFAULT_DKIM_SELECTOR,
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_DNS_TRIES,
    DEFAULT_FAILOVER_SERVERS,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_ROOT_CERTS_DIR,
    DEFAULT_SMTP_TIMEOUT,
    DEFAULT_USER_AGENT,
)

logger = logging.getLogger(__name__)


class CheckerOptions(BaseSettings):
    """
    Options of a DomainChecker.

    Every field can also be set from the environment with the
    ``EMAIL_DOMAIN_CHECK_`` prefix, e.g. ``EMAIL_DOMAIN_CHECK_USE_MTA_STS=1``.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_DOMAIN_CHECK_",
        extra="ignore",
    )

    server: list[str] | None = Field(
        default=None,
        description="DNS servers for the primary resolver (default: system configuration)",
    )
    dkim_selector: str = Field(default=DEFAULT_DKIM_SELECTOR, description="Default DKIM selector")
    bimi_selector: str = Field(default=DEFAULT_BIMI_SELECTOR, description="Default BIMI selector")
    smtp_timeout: float = Field(default=DEFAULT_SMTP_TIMEOUT, description="SMTP connect timeout in seconds")
    dns_timeout: float = Field(default=DEFAULT_DNS_TIMEOUT, description="DNS query timeout in seconds")
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, description="HTTPS fetch timeout in seconds")
    tries: int = Field(default=DEFAULT_DNS_TRIES, description="DNS attempts per resolver")
    use_domain_ns: bool = Field(
        default=False,
        description="Query the target's authoritative nameservers instead of the primary resolver",
    )
    use_mta_sts: bool = Field(default=False, description="Filter MX records through the MTA-STS policy")
    ignore_ipv6: bool = Field(default=False, description="Skip AAAA lookups for nameserver addresses")
    failover_servers: list[list[str]] = Field(
        default_factory=lambda: [list(group) for group in DEFAULT_FAILOVER_SERVERS],
        description="Resolver groups tried in order when the primary resolver fails",
    )
    block_local_ips: bool = Field(
        default=False,
        description="Refuse SMTP connections to reserved or private IP literal targets",
    )
    delivery_port: int = Field(default=DEFAULT_DELIVERY_PORT, description="SMTP delivery port")
    root_certs_dir: Path = Field(
        default=DEFAULT_ROOT_CERTS_DIR,
        description="Directory of trusted VMC root certificates (*.pem)",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent for HTTPS fetches")

    @field_validator("smtp_timeout", "dns_timeout", "http_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("tries")
    @classmethod
    def _at_least_one_try(cls, value: int) -> int:
        if value < 1:
            raise ValueError("tries must be at least 1")
        return value

    @field_validator("delivery_port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return value

    @classmethod
    def from_toml_file(cls, path: Path) -> "CheckerOptions":
        """
        Import options from a TOML file.

        Args:
            path: Path to the TOML file

        Returns:
            CheckerOptions object
        """
        with open(path, "rb") as f:
            data = tomllib.load(f)
        logger.info(f"Imported config from: {path}")
        return cls(**data)


def get_config_paths() -> list[Path]:
    """
    Get configuration file paths in order of precedence (lowest to highest).

    Returns:
        List of existing config file paths
    """
    paths = []

    # 1. Package default config
    default_config = Path(__file__).parent / "default_config.toml"
    if default_config.exists():
        paths.append(default_config)

    # 2. System-wide config
    system_config = Path("/etc/email-domain-check/config.toml")
    if system_config.exists():
        paths.append(system_config)

    # 3. User config in ~/.config
    user_config = Path.home() / ".config" / "email-domain-check" / "config.toml"
    if user_config.exists():
        paths.append(user_config)

    # 4. User config in home directory
    home_config = Path.home() / ".email-domain-check.toml"
    if home_config.exists():
        paths.append(home_config)

    # 5. Current directory config
    current_config = Path.cwd() / ".email-domain-check.toml"
    if current_config.exists():
        paths.append(current_config)

    return paths


def load_options(extra_paths: list[Path] | None = None, **overrides: Any) -> CheckerOptions:
    """
    Load options from config files.

    Files are merged in the order of ``get_config_paths()`` followed by
    ``extra_paths``; later files override earlier ones. Keyword overrides
    win over every file. Unreadable files and files with invalid values are
    logged and skipped.

    Returns:
        Merged options
    """
    config_data: dict[str, Any] = {}

    for config_path in [*get_config_paths(), *(extra_paths or [])]:
        try:
            with open(config_path, "rb") as f:
                file_data = tomllib.load(f)
            merged = _merge_configs(config_data, file_data)
            CheckerOptions(**merged)
        except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            continue
        config_data = merged
        logger.debug(f"Loaded config from {config_path}")

    config_data.update({key: value for key, value in overrides.items() if value is not None})
    return CheckerOptions(**config_data)


def _merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Configuration to override base with

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_configs(result[key], value)
        else:
            result[key] = value

    return result
