"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``SATADDRESS_``, nested via ``__``)
2. YAML config file (``SATADDRESS_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class StoreEngine(enum.StrEnum):
    """Supported record store backends."""

    MEMORY = "memory"
    SQL = "sql"
    REDIS = "redis"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_SERVER__",
        case_sensitive=False,
    )

    host: str = "127.0.0.1"
    port: int = 3030


class StoreConfig(BaseSettings):
    """Record store settings."""

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_STORE__",
        case_sensitive=False,
    )

    engine: StoreEngine = Field(
        default=StoreEngine.SQL,
        description="Record store backend: memory, sql or redis",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./sataddress.db",
        description="Async SQLAlchemy connection string (sql engine)",
    )
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "sataddress:"
    debug_sql: bool = False


class InvoiceConfig(BaseSettings):
    """Outbound invoice call settings."""

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_INVOICE__",
        case_sensitive=False,
    )

    timeout: float = Field(default=180.0, ge=30.0, le=180.0)
    # Many self-hosted nodes present self-signed certificates. Turning this
    # off enforces normal certificate verification for every backend.
    accept_invalid_certs: bool = True
    tor_proxy_url: str = "socks5://127.0.0.1:9050"


class LNbitsConfig(BaseSettings):
    """LNbits instance used to relay keysend payments."""

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_LNBITS__",
        case_sensitive=False,
    )

    url: str = "https://legend.lnbits.com/"
    api_key: str = ""
    admin_id: str = ""

    @field_validator("url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``SATADDRESS_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SATADDRESS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""

    domains: Annotated[list[str], NoDecode] = Field(default_factory=list)
    reserved_names: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["admin", "root", "berni"]
    )
    pin_secret: str = ""
    admin_token: str = ""
    site_name: str = "sataddress"
    site_sub_name: str = "Lightning Address for your domain"

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    invoice: InvoiceConfig = Field(default_factory=InvoiceConfig)
    lnbits: LNbitsConfig = Field(default_factory=LNbitsConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("domains", "reserved_names", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        """Accept comma separated strings (``a.com, b.com``) for list fields."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("domains")
    @classmethod
    def _lowercase_domains(cls, value: list[str]) -> list[str]:
        """Hosts are compared case-insensitively, so domains are kept lowercase."""
        return [domain.lower() for domain in value]

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                merged = {**val, **values[key]}
                values[key] = merged
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
