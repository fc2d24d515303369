"""Plugin settings via Pydantic.

The plugin configuration lives in a JSON file next to the host's other plugin
configs. Section and key names are PascalCase to match what server operators
already edit by hand:

    {
      "Database": {"ConnectionString": ""},
      "Registration": {...},
      "Steam": {...},
      "BanCheck": {...},
      "ConfigVersion": 1
    }

Database credentials fall back to environment variables (DB_HOST, DB_PORT, ...)
when no connection string is configured.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger("bancheck")


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DatabaseSection(_Section):
    connection_string: str = Field(default="", alias="ConnectionString")


class RegistrationSection(_Section):
    enabled: bool = Field(default=True, alias="Enabled")

    # Either set this in config OR provide the env var named by server_key_env_var
    server_key: str = Field(default="", alias="ServerKey")
    server_key_env_var: str = Field(default="SERVER_KEY", alias="ServerKeyEnvVar")

    server_name: str = Field(default="CS2 Server", alias="ServerName")
    server_ip: str | None = Field(default=None, alias="ServerIp")
    server_port: int | None = Field(default=None, alias="ServerPort")
    heartbeat_seconds: int = Field(default=60, alias="HeartbeatSeconds")

    # If True, CREATE TABLE IF NOT EXISTS for user_info + server_info on load
    auto_create_tables: bool = Field(default=False, alias="AutoCreateTables")


class SteamSection(_Section):
    use_steam_web_api: bool = Field(default=True, alias="UseSteamWebApi")
    api_key_env_var: str = Field(default="API_KEY", alias="ApiKeyEnvVar")

    # Refresh the stored profile if last_updated is older than this
    refresh_minutes: int = Field(default=1440, alias="RefreshMinutes")
    timeout_seconds: int = Field(default=5, alias="TimeoutSeconds")


class BanCheckSection(_Section):
    kick_reason: str = Field(default="You are banned from this server.", alias="KickReason")

    # If True: allow the player when the DB / Steam API fails (avoids false kicks)
    fail_open: bool = Field(default=True, alias="FailOpen")

    # Cache ban decisions (steamid64 -> banned?) to reduce DB load
    cache_seconds: int = Field(default=60, alias="CacheSeconds")

    insert_if_missing: bool = Field(default=True, alias="InsertIfMissing")


class BanCheckConfig(_Section):
    """Plugin configuration as stored in the JSON config file."""

    database: DatabaseSection = Field(default_factory=DatabaseSection, alias="Database")
    registration: RegistrationSection = Field(
        default_factory=RegistrationSection, alias="Registration"
    )
    steam: SteamSection = Field(default_factory=SteamSection, alias="Steam")
    ban_check: BanCheckSection = Field(default_factory=BanCheckSection, alias="BanCheck")
    version: int = Field(default=1, alias="ConfigVersion")

    @property
    def cache_ttl_seconds(self) -> int:
        return max(1, self.ban_check.cache_seconds)

    @property
    def heartbeat_interval_seconds(self) -> int:
        return max(10, self.registration.heartbeat_seconds)

    @property
    def steam_timeout_seconds(self) -> int:
        return max(1, self.steam.timeout_seconds)


class DatabaseEnv(BaseSettings):
    """Discrete database credentials used when no connection string is configured."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    name: str = "cs2"


def _to_async_url(url: str) -> str:
    """Rewrite a plain postgres URL to the asyncpg driver.

    Hosting panels usually hand out postgresql:// (or postgres://) URLs, but the
    async engine needs postgresql+asyncpg://.
    """
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    return url


def resolve_connection_string(config: BanCheckConfig) -> str:
    """Get the async database URL for the configured store."""
    configured = config.database.connection_string.strip()
    if configured:
        return _to_async_url(configured)

    env = DatabaseEnv()
    url = URL.create(
        "postgresql+asyncpg",
        username=env.user,
        password=env.password or None,
        host=env.host,
        port=env.port,
        database=env.name,
    )
    return url.render_as_string(hide_password=False)


def resolve_env(name: str) -> str:
    """Read an environment variable whose name is itself configurable."""
    if not name:
        return ""
    return (os.environ.get(name) or "").strip()


def load_or_create_config(path: Path) -> BanCheckConfig:
    """Load the config file, writing defaults first if it does not exist.

    An unreadable or invalid file is logged and replaced by defaults in memory
    (the file on disk is left alone so the operator can fix it).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        config = BanCheckConfig()
        save_config(path, config)
        return config

    try:
        return BanCheckConfig.model_validate_json(path.read_text(encoding="utf-8"))
    # ValueError covers pydantic's ValidationError and non-UTF-8 files
    except (OSError, ValueError):
        logger.exception("[bancheck] Failed to read config. Using defaults.")
        return BanCheckConfig()


def save_config(path: Path, config: BanCheckConfig) -> None:
    """Write the config file as indented JSON, omitting null values."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        config.model_dump_json(by_alias=True, exclude_none=True, indent=2),
        encoding="utf-8",
    )
