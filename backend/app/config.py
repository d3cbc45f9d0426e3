"""IPO tracker application configuration.

Loads settings from two YAML files:
  * ipo.settings.yaml: non-secret configuration
  * ipo.secrets.yaml: secrets (never committed)

The Finnhub API key may also come from the FINNHUB_API_KEY environment
variable, which takes precedence over the secrets file.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("ipo.settings.yaml")
SECRETS_FILE  = Path("ipo.secrets.yaml")

FINNHUB_API_KEY_ENV = "FINNHUB_API_KEY"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _default_upload_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "prospectus-uploads")


# ---------------------------------------------------------------------------
# Secrets models
# ---------------------------------------------------------------------------


class FinnhubSecrets(BaseModel):
    api_key: Optional[str] = None


class Secrets(BaseModel):
    finnhub: FinnhubSecrets = Field(default_factory=FinnhubSecrets)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: str = "info"


class FinnhubSettings(BaseModel):
    """Outbound calls to the Finnhub market-data API."""
    base_url:        str   = "https://finnhub.io/api/v1"
    timeout_seconds: float = 10.0
    max_retries:     int   = 1

    @field_validator("max_retries")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v


class FilesSettings(BaseModel):
    """Prospectus upload storage."""
    upload_dir:       str = Field(default_factory=_default_upload_dir)
    retention_hours:  int = 24
    max_upload_bytes: int = 50 * 1024 * 1024


class AnalyticsSettings(BaseModel):
    db_path:      str = "page_views.duckdb"
    history_days: int = 7


class IpoSettings(BaseModel):
    """IPO stock listings store."""
    db_path: str = "ipo_stocks.duckdb"


class AppConfig(BaseModel):
    server:    ServerSettings    = Field(default_factory=ServerSettings)
    logging:   LoggingSettings   = Field(default_factory=LoggingSettings)
    finnhub:   FinnhubSettings   = Field(default_factory=FinnhubSettings)
    files:     FilesSettings     = Field(default_factory=FilesSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    ipo:       IpoSettings       = Field(default_factory=IpoSettings)
    secrets:   Secrets           = Field(default_factory=Secrets)

    @property
    def finnhub_api_key(self) -> Optional[str]:
        """Provider key from the environment, else from the secrets file."""
        return os.environ.get(FINNHUB_API_KEY_ENV) or self.secrets.finnhub.api_key


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

_config: Optional[AppConfig] = None


def load_config(
    settings_path: Optional[Path] = None,
    secrets_path: Optional[Path] = None,
) -> AppConfig:
    """Load and merge settings + secrets into a single *AppConfig* object."""
    settings_data = _load_yaml(Path(settings_path) if settings_path else SETTINGS_FILE)
    secrets_data  = _load_yaml(Path(secrets_path) if secrets_path else SECRETS_FILE)

    # Merge: secrets live under the "secrets" key in AppConfig
    settings_data["secrets"] = secrets_data

    config = AppConfig(**settings_data)
    logger.info(
        "Settings loaded (server=%s:%s, upload_dir=%s, finnhub_key=%s)",
        config.server.host,
        config.server.port,
        config.files.upload_dir,
        "set" if config.finnhub_api_key else "missing",
    )
    return config


def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Replace the cached configuration (None forces a reload)."""
    global _config
    _config = config
