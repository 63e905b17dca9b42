"""
Configuration loading and validation for the Auth0 Management Tool.

Single source of truth: all modules import config from here.
Tenant settings come from config.toml; client credentials come from .env.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from rate_limiter import DEFAULT_RATE_LIMIT


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""


@dataclass(frozen=True)
class TenantConfig:
    domain: str = ""
    audience: str = ""

    @property
    def resolved_audience(self) -> str:
        """Configured audience, or the tenant's Management API audience."""
        return self.audience or f"https://{self.domain}/api/v2/"


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_second: int = DEFAULT_RATE_LIMIT
    max_retries: int = 3
    retry_delay: float = 1.0


@dataclass(frozen=True)
class LoggingConfig:
    verbose_console_logging: bool = True


@dataclass(frozen=True)
class PathsConfig:
    output_dir: str = "output"


@dataclass(frozen=True)
class AppConfig:
    tenant: TenantConfig = TenantConfig()
    rate_limiting: RateLimitConfig = RateLimitConfig()
    logging: LoggingConfig = LoggingConfig()
    paths: PathsConfig = PathsConfig()
    project_root: Path = Path(".")

    def resolve_path(self, path: str | Path) -> Path:
        """Resolve a path relative to project_root.

        - Expands ~ to home directory
        - Returns absolute paths unchanged
        - Resolves relative paths against project_root
        """
        p = Path(path).expanduser()
        if p.is_absolute():
            return p
        return self.project_root / p


def print_setup_hint() -> None:
    """Print a helpful message about creating the config files."""
    print("\n" + "=" * 60)
    print("  CONFIGURATION REQUIRED")
    print("=" * 60)
    print("\n  Create config.toml with your tenant domain:\n")
    print("    [tenant]")
    print('    domain = "your-tenant.auth0.com"')
    print("\n  and a .env file with AUTH0_CLIENT_ID / AUTH0_CLIENT_SECRET")
    print("  for an M2M application authorized on the Management API.")
    print("=" * 60 + "\n")


def load_config(config_path: str | Path = "config.toml") -> AppConfig:
    """Load configuration from TOML file and return an AppConfig instance.

    Applies defaults for any missing sections/keys. AUTH0_DOMAIN and
    AUTH0_AUDIENCE environment variables override the [tenant] values.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file '{config_path}' not found.")

    with open(config_file, "rb") as f:
        raw = tomllib.load(f)

    project_root = config_file.resolve().parent

    tenant_raw = dict(raw.get("tenant", {}))
    if os.getenv("AUTH0_DOMAIN"):
        tenant_raw["domain"] = os.environ["AUTH0_DOMAIN"]
    if os.getenv("AUTH0_AUDIENCE"):
        tenant_raw["audience"] = os.environ["AUTH0_AUDIENCE"]
    tenant = TenantConfig(**tenant_raw)
    if not tenant.domain:
        raise ConfigurationError("No tenant domain configured. Set [tenant] domain in config.toml.")

    rate_limiting = RateLimitConfig(**raw.get("rate_limiting", {}))
    if rate_limiting.requests_per_second < 1:
        raise ConfigurationError("rate_limiting.requests_per_second must be at least 1.")

    return AppConfig(
        tenant=tenant,
        rate_limiting=rate_limiting,
        logging=LoggingConfig(**raw.get("logging", {})),
        paths=PathsConfig(**raw.get("paths", {})),
        project_root=project_root,
    )


def load_credentials(project_root: Path = Path(".")) -> tuple[str, str]:
    """Load the M2M client id and secret from .env / the environment.

    Returns:
        (client_id, client_secret)
    """
    load_dotenv(dotenv_path=project_root / ".env")
    client_id = os.getenv("AUTH0_CLIENT_ID")
    client_secret = os.getenv("AUTH0_CLIENT_SECRET")
    if not client_id:
        raise ConfigurationError("AUTH0_CLIENT_ID not configured in .env file.")
    if not client_secret:
        raise ConfigurationError("AUTH0_CLIENT_SECRET not configured in .env file.")
    return client_id, client_secret
