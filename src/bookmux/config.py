# ABOUTME: JSON configuration for the aggregator: global settings and per-provider options.
# ABOUTME: Loads, validates, and saves config files through frozen pydantic models.

import json
import os
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

DEFAULT_CONFIG_PATH = Path.home() / ".bookmux" / "config.json"
CONFIG_ENV_VAR = "BOOKMUX_CONFIG"

BUILTIN_PROVIDERS = ("openlibrary", "storytel")

# camelCase on disk, snake_case in code; both accepted on input.
_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

Percentage = Annotated[float, Field(strict=True, ge=0, le=100)]


class ConfigError(Exception):
    """Raised when a config file cannot be read or fails validation."""

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ProviderSettings(BaseModel):
    """Operator settings for one provider."""

    model_config = _MODEL_CONFIG

    enabled: StrictBool = True
    priority: StrictInt = 0
    max_results: Annotated[StrictInt, Field(ge=0)] = 0
    concurrency: Annotated[StrictInt, Field(ge=1)] | None = None
    language: StrictStr | None = None


class GlobalSettings(BaseModel):
    """Scoring, filtering, and merge settings applied to every request.

    title_weight and similarity_threshold are percentages (0-100) as stored
    in the config file; use the *_fraction properties in the pipeline.
    """

    model_config = _MODEL_CONFIG

    title_weight: Percentage = 60
    similarity_threshold: Percentage = 0
    allow_books: StrictBool = True
    allow_audiobooks: StrictBool = True
    merge_best_results: StrictBool = False
    merge_preferences: dict[StrictStr, StrictStr] = Field(default_factory=dict)
    merge_debug: StrictBool = False

    @property
    def title_weight_fraction(self) -> float:
        return max(0.0, min(100.0, self.title_weight)) / 100

    @property
    def threshold_fraction(self) -> float:
        return max(0.0, min(100.0, self.similarity_threshold)) / 100


class AggregatorConfig(BaseModel):
    """Complete configuration snapshot. Never mutated; reloads build a new one."""

    model_config = _MODEL_CONFIG

    settings: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    def provider(self, name: str) -> ProviderSettings:
        """Settings for a provider, falling back to defaults when unconfigured."""
        return self.providers.get(name) or ProviderSettings()


def default_config() -> AggregatorConfig:
    """Config with every built-in provider enabled at priority 0."""
    return AggregatorConfig(providers={name: ProviderSettings() for name in BUILTIN_PROVIDERS})


def resolve_config_path(path: Path | None = None) -> Path:
    """Explicit path, else $BOOKMUX_CONFIG, else ~/.bookmux/config.json."""
    if path is not None:
        return path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def _error_details(exc: ValidationError) -> list[str]:
    """One "dotted.location: message" line per validation error."""
    details = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"]) or "config"
        details.append(f"{where}: {error['msg']}")
    return details


def validate_config_dict(data: Any) -> list[str]:
    """Check a raw config mapping and return every problem found (empty if valid)."""
    try:
        AggregatorConfig.model_validate(data)
    except ValidationError as exc:
        return _error_details(exc)
    return []


def config_from_dict(data: Any) -> AggregatorConfig:
    """Build an AggregatorConfig from a raw camelCase mapping.

    Raises:
        ConfigError: If the mapping fails validation; details lists each problem.
    """
    try:
        return AggregatorConfig.model_validate(data)
    except ValidationError as exc:
        details = _error_details(exc)
        raise ConfigError("Invalid config: " + "; ".join(details), details=details) from exc


def config_to_dict(config: AggregatorConfig) -> dict[str, Any]:
    """Serialize a config back to the on-disk camelCase JSON shape."""
    return config.model_dump(by_alias=True, exclude_none=True)


def load_config(path: Path | None = None) -> AggregatorConfig:
    """Load and validate the config file.

    A missing file yields default_config(). Unreadable or invalid files
    raise ConfigError.

    Args:
        path: Config file path. Defaults to resolve_config_path().
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return default_config()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read config {config_path}: {exc}") from exc

    return config_from_dict(data)


def save_config(config: AggregatorConfig, path: Path | None = None) -> Path:
    """Validate and write a config as pretty-printed JSON. Returns the path written."""
    data = config_to_dict(config)
    config_from_dict(data)

    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return config_path
