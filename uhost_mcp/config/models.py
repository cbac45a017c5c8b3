"""Config models and loader.

Pydantic models for the UCloud credentials file and for environment-based
settings. JSON parsing prefers ``orjson`` when it is installed and falls back
to the standard library ``json`` module otherwise.
"""

from __future__ import annotations

import json as _json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("region", "project_id", "public_key", "private_key")


class UCloudConfig(BaseModel):
    """UCloud connection settings.

    Attributes
    ----------
    region: str
        UCloud region, e.g. ``cn-bj2``.
    project_id: str
        Project the instances belong to.
    public_key: str
        API public key.
    private_key: str
        API private key used to sign requests. Never logged.
    base_url: str
        API endpoint.
    timeout_seconds: int
        HTTP request timeout for every API call.
    page_size: int
        ``Limit`` used for paginated listings.
    max_pages: int
        Upper bound on pages fetched for a single listing.
    """

    region: str = ""
    project_id: str = ""
    public_key: str = ""
    private_key: str = Field("", repr=False)
    base_url: str = Field("https://api.ucloud.cn")
    timeout_seconds: int = Field(30, ge=1)
    page_size: int = Field(100, ge=1, le=1000)
    max_pages: int = Field(1000, ge=1)

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def fill_from_env(self, env: Optional["UCloudEnvSettings"] = None) -> "UCloudConfig":
        """Return a copy where blank credential fields come from ``UCLOUD_*``."""
        env = env or UCloudEnvSettings()
        updates: Dict[str, Any] = {}
        for name in REQUIRED_FIELDS:
            if not getattr(self, name):
                value = getattr(env, name)
                if value:
                    updates[name] = value
        return self.model_copy(update=updates)

    def validate_required(self) -> "UCloudConfig":
        """Raise ConfigError naming every missing required field."""
        missing = self.missing_fields()
        if missing:
            raise ConfigError(f"missing required fields: {', '.join(missing)}")
        return self

    @staticmethod
    def load(path: Path, env: Optional["UCloudEnvSettings"] = None) -> "UCloudConfig":
        """Load config from a JSON file, filling blanks from the environment.

        Raises
        ------
        OSError
            If the file cannot be read.
        ValueError
            If the file is not valid JSON or does not match the model.
        ConfigError
            If required fields are still missing after the environment merge.
        """
        raw = path.read_bytes()
        if _loads_orjson is not None:
            data = _loads_orjson(raw)
        else:
            data = _json.loads(raw.decode("utf-8"))
        cfg = UCloudConfig.model_validate(data)
        return cfg.fill_from_env(env).validate_required()


class UCloudEnvSettings(BaseSettings):
    """UCloud credentials from ``UCLOUD_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="UCLOUD_", extra="ignore")

    region: str = ""
    project_id: str = ""
    public_key: str = ""
    private_key: str = Field("", repr=False)
    base_url: Optional[str] = None


class EnvSettings(BaseSettings):
    """Server settings from ``UHOST_MCP_*`` environment variables and .env.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    config: Optional[str]
        Path to the UCloud JSON config file.
    http_token: Optional[str]
        Bearer token required by the HTTP transport when set.
    cors_origins: str
        Comma-separated list of allowed CORS origins for the HTTP transport.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="UHOST_MCP_", extra="ignore"
    )

    log_level: str = Field("INFO")
    config: Optional[str] = None
    http_token: Optional[str] = None
    cors_origins: str = ""


def load_config(
    path: Optional[Path], env: Optional[UCloudEnvSettings] = None
) -> UCloudConfig:
    """Load config from ``path``, falling back to the environment alone.

    A missing or unreadable file is not fatal: a warning is logged and the
    configuration is built from ``UCLOUD_*`` variables. Required fields are
    validated either way.
    """
    env = env or UCloudEnvSettings()
    if path is not None:
        try:
            return UCloudConfig.load(path, env)
        except (OSError, ValueError) as exc:
            logger.warning(
                "config.file_unavailable",
                extra={"path": str(path), "error": str(exc)},
            )
    base: Dict[str, Any] = {}
    if env.base_url:
        base["base_url"] = env.base_url
    return UCloudConfig(**base).fill_from_env(env).validate_required()
