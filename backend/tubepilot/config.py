"""Settings for tubepilot, read from config.yaml, .env and TUBEPILOT_* variables.

Nested sections are addressed in the environment with a double underscore,
e.g. TUBEPILOT_PIPELINE__DAILY_SHORT_GOAL=5. TUBEPILOT_CONFIG_FILE points
at a YAML file other than ./config.yaml.
"""

import os
from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_FILE_ENV = "TUBEPILOT_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Reads the whole settings tree from one YAML mapping."""

    def get_field_value(self, field, field_name: str):
        # Unused: __call__ returns the complete mapping
        pass

    def __call__(self) -> dict:
        path = Path(os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE))
        if not path.is_file():
            return {}
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping at the top level")
        return data


class GoogleCloudConfig(BaseModel):
    """Vertex AI project; project_id is required before any Gemini or Veo call."""

    project_id: str = ""
    location: str = "us-central1"


class ModelsConfig(BaseModel):
    """Model id per collaborator. Text models accept an ollama/ prefix."""

    script_llm: str = "gemini-2.5-flash"
    metadata_llm: str = "gemini-2.5-flash"
    strategy_llm: str = "gemini-2.5-flash"
    video_gen: str = "veo-2.0-generate-001"
    speech: str = "gemini-2.5-flash-preview-tts"
    voice: str = "Algenib"
    thumbnail: str = "gemini-2.5-flash-image"


class PipelineConfig(BaseModel):
    """Operation tracking, status polling and autopilot quotas."""

    operation_ttl_hours: float = 24
    poll_interval: float = 5
    poll_backoff_max: float = 120
    poll_max_attempts: int = 60
    daily_short_goal: int = 3
    weekly_long_goal: int = 2
    video_duration_seconds: int = 5
    aspect_ratio: str = "16:9"
    retry_max_attempts: int = 3

    @field_validator("poll_max_attempts", "daily_short_goal", "weekly_long_goal")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("operation_ttl_hours", "retry_max_attempts")
    @classmethod
    def positive(cls, v):
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("aspect_ratio")
    @classmethod
    def supported_aspect_ratio(cls, v: str) -> str:
        if v not in ("16:9", "9:16"):
            raise ValueError("aspect_ratio must be 16:9 or 9:16")
        return v


class OllamaConfig(BaseModel):
    """Server used for ollama/ model ids."""

    endpoint: str = "http://localhost:11434"
    api_key: Optional[str] = None


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000


class Settings(BaseSettings):
    """Application settings.

    Sources, highest priority first: environment variables, .env, the YAML
    file, then values passed to the constructor, then field defaults.
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="TUBEPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    google_cloud: GoogleCloudConfig = Field(default_factory=GoogleCloudConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


settings = Settings()
