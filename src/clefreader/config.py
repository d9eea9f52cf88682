"""Configuration via pydantic-settings — 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """clefreader configuration — loaded from env vars / .env file."""

    encoding: str = Field(default="utf-8", description="Text encoding of CLEF files")
    default_output: str = Field(default="stream", description="Default output format (stream|table|json)")
    skip_invalid: bool = Field(default=False, description="Warn about and skip invalid lines instead of stopping")
    min_level: str = Field(default="Verbose", description="Minimum level of events to display")

    class Config:
        env_prefix = "CLEF_"
        env_file = ".env"


settings = Settings()
