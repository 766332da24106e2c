import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Define the root directory of the threadrank package
PACKAGE_ROOT_DIR = Path(__file__).parent.parent.resolve()
DEFAULT_CONFIG_PATH = PACKAGE_ROOT_DIR / "config" / "app_config.yaml"
# Path to the repository root (one level up from the package)
PROJECT_ROOT_DIR = PACKAGE_ROOT_DIR.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "threadrank"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"
    LOGGING_CONFIG_PATH: str = str(PACKAGE_ROOT_DIR / "config" / "logging_config.yaml")

    # Ranking
    RANK_GRAVITY: float = Field(default=1.8, ge=0)
    RANK_TIMEBASE_HOURS: float = Field(default=96, gt=0)

    # Listing and discussion
    STORIES_PER_PAGE: int = Field(default=10, gt=0)
    FRONT_PAGE_ORDER: Literal["created", "rank"] = "created"
    COMMENT_ORDER: Literal["input", "rank"] = "input"
    EDIT_WINDOW_MINUTES: int = Field(default=60, gt=0)
    MAX_TITLE_LENGTH: int = Field(default=64, gt=0)
    MAX_THREAD_DEPTH: int = Field(default=64, gt=0)

    # Vote conflict retry
    VOTE_MAX_RETRIES: int = Field(default=3, ge=0)
    VOTE_RETRY_INITIAL_BACKOFF: float = Field(default=0.05, ge=0)
    VOTE_RETRY_BACKOFF_FACTOR: float = Field(default=2.0, ge=1)
    VOTE_RETRY_MAX_BACKOFF: float = Field(default=1.0, ge=0)

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        extra='ignore'  # Ignore extra fields from env or yaml
    )

    @field_validator("LOG_LEVEL", mode='before')
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def edit_window(self) -> timedelta:
        return timedelta(minutes=self.EDIT_WINDOW_MINUTES)

    @classmethod
    def load_from_yaml(cls, config_path: Path = DEFAULT_CONFIG_PATH, **overrides: Any) -> 'Settings':
        """
        Build settings from class defaults, the YAML app config, .env and the
        environment.

        Precedence, highest first: explicit ``overrides``, environment
        variables, YAML values, .env, class defaults.
        """
        initial_data: Dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if yaml_config:
                # Environment names match case-insensitively, as in pydantic-settings.
                env_names = {k.upper() for k in os.environ}
                for key, value in yaml_config.items():
                    name = str(key).upper()
                    if name not in env_names:
                        initial_data[name] = value
        initial_data.update(overrides)
        return cls(**initial_data)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.load_from_yaml()
    return _settings
