"""
Configuration management for the member extraction engine.

Supports:
- Loading config overrides from YAML
- Deep-merging overrides onto defaults
- Config validation with Pydantic
- Config hashing for reproducibility
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = "https://www.djparin.in/member_details_open.php?member_id={member_id}"
PLACEHOLDER_IMAGE_URL = "/assets/dummy.JPG"

# Record shape tag stamped into extraction metadata
PROCESSING_VERSION = "2.1.0"

# Cache key version; bump whenever the extracted field shape changes
CACHE_SCHEMA_VERSION = "2"


# =============================================================================
# Pydantic Config Models
# =============================================================================


class SourceConfig(BaseModel):
    """Upstream member directory settings."""

    url_template: str = DEFAULT_URL_TEMPLATE
    timeout_seconds: float = Field(15.0, gt=0)
    headers: dict[str, str] = Field(
        default_factory=lambda: {
            "User-Agent": "Mozilla/5.0 (compatible; DataExtractor/2.0)",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
        }
    )

    @field_validator("url_template")
    @classmethod
    def check_url_template(cls, value: str) -> str:
        """Reject templates that cannot be filled from a member id alone."""
        try:
            value.format(member_id=1)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ValueError(f"url_template must only use the {{member_id}} placeholder: {e!r}") from e
        return value

    def url_for(self, member_id: int) -> str:
        """Build the profile URL for a member."""
        return self.url_template.format(member_id=member_id)


class BatchConfig(BaseModel):
    """Range processing settings."""

    chunk_size: int = Field(3, ge=1)  # Ids fetched concurrently per chunk
    inter_chunk_delay_ms: int = Field(1000, ge=0)  # Pause between chunks
    max_concurrency: int = Field(5, ge=1)  # Accepted, chunk_size is the real bound


class CacheConfig(BaseModel):
    """Record cache settings."""

    schema_version: str = CACHE_SCHEMA_VERSION


class ExtractionConfig(BaseModel):
    """Field extraction settings."""

    use_fallback: bool = True
    placeholder_image_url: str = PLACEHOLDER_IMAGE_URL
    processing_version: str = PROCESSING_VERSION


class LoggingConfig(BaseModel):
    """Logging settings used by the CLI."""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt: str = "%H:%M:%S"


class AppConfig(BaseModel):
    """Complete engine configuration."""

    source: SourceConfig = Field(default_factory=SourceConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def config_hash(self) -> str:
        """
        Generate hash of config for reproducibility tracking.

        Returns:
            SHA256 hash of serialized config (first 12 chars)
        """
        config_json = self.model_dump_json(exclude={"logging"})
        return hashlib.sha256(config_json.encode()).hexdigest()[:12]


# =============================================================================
# Config Loading Functions
# =============================================================================


def load_yaml(path: Union[str, Path]) -> dict[str, Any]:
    """Load YAML file and return as dict."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Override values take precedence. Nested dicts are merged recursively.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(config_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load engine configuration.

    Defaults are used when no path is given. Otherwise the YAML file is
    deep-merged over the defaults, so partial files are fine.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        AppConfig with all settings resolved
    """
    config_dict = AppConfig().model_dump()

    if config_path is not None:
        config_dict = deep_merge(config_dict, load_yaml(config_path))

    try:
        config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    logger.info(f"Loaded config from {config_path or 'defaults'} (hash: {config.config_hash()})")
    return config


def save_config(config: AppConfig, output_path: Union[str, Path]) -> Path:
    """Save resolved config to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved config to {output_path}")
    return output_path


# =============================================================================
# Config Validation
# =============================================================================


def validate_config(config: AppConfig) -> list[str]:
    """
    Validate config and return list of warnings/issues.

    Args:
        config: AppConfig to validate

    Returns:
        List of warning messages (empty if all good)
    """
    warnings = []

    if "{member_id}" not in config.source.url_template:
        warnings.append(
            f"url_template has no {{member_id}} placeholder: {config.source.url_template}"
        )

    if config.batch.max_concurrency != config.batch.chunk_size:
        warnings.append(
            f"max_concurrency={config.batch.max_concurrency} has no effect, "
            f"concurrency is bounded by chunk_size={config.batch.chunk_size}"
        )

    if config.batch.inter_chunk_delay_ms == 0:
        warnings.append("inter_chunk_delay_ms=0 disables backpressure on the upstream source")

    if config.batch.chunk_size > 20:
        warnings.append(
            f"chunk_size={config.batch.chunk_size} is high, "
            "may overload the upstream source"
        )

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.logging.level.upper() not in valid_levels:
        warnings.append(
            f"Invalid logging level: {config.logging.level}. Valid options: {valid_levels}"
        )

    return warnings
