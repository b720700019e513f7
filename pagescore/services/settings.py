from __future__ import annotations
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RUBRIC_PATH = Path(__file__).resolve().parent.parent / "config" / "rubric.v2.0.json"

DEFAULT_UA = "Mozilla/5.0 (compatible; PageScoreBot/1.0; +https://pagescore.example/bot)"

class SettingsError(ValueError):
    pass

class Settings(BaseSettings):
    """Engine settings, read from PAGESCORE_* environment variables."""
    model_config = SettingsConfigDict(
        env_prefix="PAGESCORE_",
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    phase: int = 3
    rubric_path: Path = DEFAULT_RUBRIC_PATH
    render_endpoint: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PAGESCORE_RENDER_ENDPOINT", "CF_RENDER_ENDPOINT"),
    )
    render_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PAGESCORE_RENDER_TOKEN", "CF_RENDER_TOKEN"),
    )
    fetch_timeout: float = Field(default=10.0, gt=0)
    render_timeout: float = Field(default=15.0, gt=0)
    lookup_timeout: float = Field(default=5.0, gt=0)
    user_agent: str = DEFAULT_UA
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("PAGESCORE_LOG_LEVEL", "LOG_LEVEL"),
    )

    @field_validator("log_level")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()

def load_settings() -> Settings:
    """Read engine settings from the environment once, at process start."""
    try:
        return Settings()
    except ValidationError as e:
        raise SettingsError(f"invalid settings: {e}") from e
