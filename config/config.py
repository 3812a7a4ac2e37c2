"""Configuration management for the reminder service."""

import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment variables from .env file
load_dotenv()


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
FCM_MULTICAST_LIMIT = 500


class EnvironmentSettings(BaseSettings):
    """Process-level overrides read straight from the environment."""
    model_config = SettingsConfigDict(env_prefix="EVENTPULSE_", extra="ignore")

    config_path: Optional[Path] = Field(default=None, description="Alternative config.yaml")
    log_level: Optional[str] = Field(default=None, description="Overrides logging.level")


class RemindersConfig(BaseModel):
    """Reminder scheduler configuration."""
    enabled: bool = Field(default=True, description="Whether reminder sweeps run at all")
    check_interval_seconds: int = Field(default=60, gt=0, description="Sweep cadence and window width")
    max_concurrent_events: int = Field(default=10, gt=0, description="Events processed in parallel per sweep")
    default_timezone: str = Field(default="UTC", description="Timezone for events without one")
    thresholds: List[str] = Field(
        default_factory=lambda: ["24h", "2h", "30m"],
        description="Thresholds that get their own sweep cadence",
    )


class FcmConfig(BaseModel):
    """Firebase Cloud Messaging configuration."""
    enabled: bool = Field(default=False, description="Deliver through FCM instead of logging")
    project_id: Optional[str] = Field(default=None, description="Firebase project ID")
    credentials_path: Optional[str] = Field(default=None, description="Service account JSON file")
    credentials_json: Optional[str] = Field(default=None, description="Inline service account JSON")
    dry_run: bool = Field(default=False, description="Validate messages without delivering")
    android_channel_id: str = Field(default="event_reminders", description="Android notification channel")
    batch_size: int = Field(default=FCM_MULTICAST_LIMIT, gt=0, description="Tokens per multicast call")

    @field_validator("batch_size")
    @classmethod
    def _cap_batch_size(cls, value: int) -> int:
        return min(value, FCM_MULTICAST_LIMIT)

    @field_validator("project_id", "credentials_path", "credentials_json", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ApiConfig(BaseModel):
    """HTTP status API configuration."""
    enabled: bool = Field(default=True, description="Serve the status API")
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    date_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="Date format for logs")


class AppConfig(BaseModel):
    """Application configuration."""
    reminders: RemindersConfig = Field(default_factory=RemindersConfig)
    fcm: FcmConfig = Field(default_factory=FcmConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in configuration data.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_part = data[2:-1]
            if ":" in var_part:
                var_name, default_value = var_part.split(":", 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(var_part, data)
        return data
    else:
        return data


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to config YAML file. Defaults to EVENTPULSE_CONFIG_PATH,
            then config/config.yaml

    Returns:
        AppConfig: Loaded configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If configuration is invalid
    """
    env = EnvironmentSettings()
    if config_path is None:
        config_path = env.config_path or DEFAULT_CONFIG_PATH

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config_data = yaml.safe_load(f) or {}

    config_data = expand_env_vars(config_data)

    if env.log_level:
        config_data.setdefault("logging", {})["level"] = env.log_level

    try:
        return AppConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def validate_config(config: AppConfig) -> List[str]:
    """Check that the configuration can actually run.

    Args:
        config: Application configuration

    Returns:
        List of validation error messages (empty if valid)
    """
    from eventpulse.reminders.thresholds import Threshold
    from eventpulse.models.event import resolve_timezone

    errors = []

    for name in config.reminders.thresholds:
        try:
            Threshold.parse(name)
        except ValueError:
            errors.append(f"Unknown reminder threshold: {name}")

    if config.reminders.enabled and not config.reminders.thresholds:
        errors.append("Reminders enabled but no thresholds configured")

    try:
        resolve_timezone(config.reminders.default_timezone)
    except Exception:
        errors.append(f"Unknown default timezone: {config.reminders.default_timezone}")

    if config.fcm.enabled:
        if not (config.fcm.credentials_json or config.fcm.credentials_path or config.fcm.project_id):
            errors.append("FCM enabled but no credentials or project ID configured")
        if config.fcm.credentials_path and not Path(config.fcm.credentials_path).exists():
            errors.append(f"FCM credentials file not found: {config.fcm.credentials_path}")

    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"Invalid logging level: {config.logging.level}")

    return errors


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance.

    Raises:
        RuntimeError: If configuration hasn't been loaded
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not loaded. Call init_config() first.")
    return _config


def init_config(config_path: Optional[Path] = None) -> AppConfig:
    """Initialize the global configuration."""
    global _config
    _config = load_config(config_path)
    return _config
