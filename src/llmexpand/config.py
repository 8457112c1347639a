"""Settings for LLM Expand.

Settings come from an optional JSON file (camelCase keys as written by
editors, or snake_case) and are overridden by ``LLMEXPAND_*`` environment
variables. Call ``load_dotenv()`` before ``load_settings()`` to pick up a
``.env`` file.
"""

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from llmexpand.domain.errors import ConfigError
from llmexpand.logger import get_logger

logger = get_logger("config")

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "qwen3-base-4b"

ENV_PREFIX = "LLMEXPAND_"

# Environment variable suffix -> settings field
_ENV_FIELDS = {
    "BASE_URL": "base_url",
    "API_KEY": "api_key",
    "MODEL": "model",
    "MAX_COMPLETIONS": "max_completions",
    "CONTEXT_SIZE": "context_size",
    "DEPTH": "depth",
    "LANGUAGES": "languages",
    "REQUEST_TIMEOUT": "request_timeout",
}


class ExpandSettings(BaseModel):
    """User-facing configuration of the completion provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    base_url: str = Field(DEFAULT_BASE_URL, alias="baseURL", description="Inference backend root URL")
    api_key: Optional[str] = Field(None, alias="apiKey", description="Bearer token sent when set")
    model: str = Field(DEFAULT_MODEL, min_length=1, description="Backend model name")
    max_completions: int = Field(10, alias="maxCompletions", ge=1, description="Maximum items per request")
    context_size: int = Field(1000, alias="contextSize", ge=1, description="Characters of preceding text sent")
    depth: int = Field(2, ge=0, description="Maximum extra tokens per branch expansion (0 = single token)")
    languages: tuple[str, ...] = Field(("*",), description="Language ids the provider is registered for")
    request_timeout: Optional[float] = Field(
        None, alias="requestTimeout", gt=0, description="Transport timeout in seconds (None = no timeout)"
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("baseURL cannot be empty")
        return value.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("languages", mode="before")
    @classmethod
    def _dedupe_languages(cls, value):
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        unique = tuple(dict.fromkeys(lang for lang in value if lang))
        return unique or ("*",)

    def with_overrides(self, **overrides) -> "ExpandSettings":
        """Return a copy with the non-None overrides applied and validated."""
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return ExpandSettings(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e


def _to_field_names(data: dict) -> dict:
    """Map camelCase aliases to field names so file and environment values merge by field."""
    aliases = {info.alias: name for name, info in ExpandSettings.model_fields.items() if info.alias}
    return {aliases.get(key, key): value for key, value in data.items()}


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> dict:
    """Collect ``LLMEXPAND_*`` overrides as raw field values."""
    environ = os.environ if environ is None else environ
    values = {}
    for suffix, field_name in _ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is not None and raw != "":
            values[field_name] = raw
    return values


def load_settings(
    config_path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ExpandSettings:
    """
    Load settings from a JSON file and the environment.

    Args:
        config_path: JSON file with settings. If None, ``LLMEXPAND_CONFIG`` is
            consulted; with neither, only defaults and environment apply.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated, frozen settings

    Raises:
        ConfigError: If the file is missing, is not valid JSON, or a value
            fails validation
    """
    environ = os.environ if environ is None else environ
    if config_path is None and environ.get(ENV_PREFIX + "CONFIG"):
        config_path = environ[ENV_PREFIX + "CONFIG"]

    data: dict = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            error_msg = f"Configuration file not found: {path}"
            logger.error(error_msg)
            raise ConfigError(error_msg)

        logger.info(f"Loading settings from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            error_msg = f"Invalid JSON in configuration file {path}: {e}"
            logger.error(error_msg)
            raise ConfigError(error_msg) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a JSON object")

        # Editors namespace extension settings, e.g. {"LLMExpand": {...}}
        if isinstance(data.get("LLMExpand"), dict):
            data = data["LLMExpand"]

    data = _to_field_names(data)
    env_values = settings_from_env(environ)
    if env_values:
        logger.debug(f"Environment overrides: {sorted(env_values)}")

    try:
        settings = ExpandSettings(**{**data, **env_values})
    except ValidationError as e:
        error_msg = f"Invalid settings: {e}"
        logger.error(error_msg)
        raise ConfigError(error_msg) from e

    logger.debug(
        f"Settings: base_url={settings.base_url}, model={settings.model}, "
        f"max_completions={settings.max_completions}, depth={settings.depth}"
    )
    return settings
