"""
Configuration Module for the Vanity Username Service

This module defines the configuration system for the service, using Pydantic for
settings validation and dependency injection through AppKeys.

The Settings class serves as the central configuration point, loaded from
environment variables with defaults suitable for development environments. All
application components access settings and shared resources through typed
AppKeys.

Key configuration areas include:
- Service networking
- Database connection
- Bluesky AppView and handle defaults
- Username policy (blocked terms, reserved names)
- Error notification and monitoring
- UI customization
"""

from typing import Final, FrozenSet, List, Optional
import logging
from pydantic import (
    AliasChoices,
    Field,
    PostgresDsn,
    field_validator,
)
from pydantic_settings import BaseSettings
from aiohttp import web
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    AsyncSession,
)
from aiohttp import ClientSession

from social.persona.vanity.app.metrics import MetricsClient


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the vanity username service.

    This class uses Pydantic's BaseSettings to automatically load values from
    environment variables. Aliases are provided where the deployment uses a
    different variable name, for example the database connection string can be
    set with either PG_DSN or DATABASE_URL.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging of outbound requests.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=5100)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/vanity",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    Database connection string.
    Set with PG_DSN or DATABASE_URL environment variables.
    Default: postgresql+asyncpg://postgres:password@db/vanity
    """

    appview_url: str = "https://public.api.bsky.app"
    """
    Bluesky AppView used to look up profiles.
    Set with APPVIEW_URL environment variable.
    """

    default_handle_suffix: str = "bsky.social"
    """
    Suffix appended to an existing handle entered without a dot.
    Set with DEFAULT_HANDLE_SUFFIX environment variable.
    """

    blocked_terms: List[str] = list()
    """
    Usernames that may never be claimed, compared case-insensitively.
    Set with BLOCKED_TERMS environment variable as a JSON list.
    """

    blocked_terms_file: Optional[str] = None
    """
    Path to a file of additional blocked terms, one per line.
    Set with BLOCKED_TERMS_FILE environment variable.
    """

    reserved_usernames: List[str] = list()
    """
    Usernames the domain owner keeps for themselves.
    Set with RESERVED_USERNAMES environment variable as a JSON list.
    """

    error_webhook_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("error_webhook_url", "discord_error_webhook"),
    )
    """
    Discord-compatible webhook that receives unexpected claim errors.
    Set with ERROR_WEBHOOK_URL or DISCORD_ERROR_WEBHOOK environment variables.
    """

    error_webhook_mention: Optional[str] = None
    """
    Mention prepended to webhook messages, e.g. <@270260819999064065>.
    Set with ERROR_WEBHOOK_MENTION environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: str = "none"
    """
    Metrics backend, either 'telegraf' or 'none'.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "vanity"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    support_contact: Optional[str] = None
    """Handle users are asked to message when errors persist, e.g. @joker.tokyo"""

    donation_url: Optional[str] = None
    """Link shown on the claim page for supporting the domain owner"""

    @field_validator("default_handle_suffix", mode="after")
    @classmethod
    def strip_handle_suffix(cls, v: str) -> str:
        return v.strip().lstrip(".")

    @field_validator("blocked_terms", "reserved_usernames", mode="after")
    @classmethod
    def lowercase_terms(cls, v: List[str]) -> List[str]:
        return [term.strip().lower() for term in v if term.strip()]

    def load_blocked_terms(self) -> FrozenSet[str]:
        """
        Combine the configured blocked terms with those in blocked_terms_file.

        Lines that are empty or start with '#' are ignored.

        Raises:
            OSError: If blocked_terms_file is set but cannot be read
        """
        terms = set(self.blocked_terms)
        if self.blocked_terms_file:
            with open(self.blocked_terms_file) as fd:
                for line in fd:
                    line = line.strip()
                    if line and not line.startswith("#"):
                        terms.add(line.lower())
        return frozenset(terms)


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

DatabaseAppKey: Final = web.AppKey("database", AsyncEngine)
"""AppKey for accessing the SQLAlchemy async database engine"""

DatabaseSessionMakerAppKey: Final = web.AppKey(
    "database_session_maker", async_sessionmaker[AsyncSession]
)
"""AppKey for accessing the SQLAlchemy async session factory"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""

BlockedTermsAppKey: Final = web.AppKey("blocked_terms", frozenset)
"""AppKey for the blocked terms loaded at startup"""
