"""Configuration module for the Suggestion Engine.

This module handles all engine configuration using pydantic-settings.
Values come from environment variables or a .env file; explicit arguments
passed to the engine always take precedence.
"""

import logging
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from pydantic import Field

# Explicitly load .env file BEFORE BaseSettings reads environment variables
load_dotenv()

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """Engine settings class.

    Settings are loaded from environment variables with appropriate defaults.
    """

    # Application settings
    environment: str = "development"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root log level used by setup_logging().")

    # Candidate building
    reference_date: Optional[str] = Field(
        default=None,
        description="YYYY-MM-DD date used for items without a date. Defaults to today's UTC date."
    )
    default_duration_min: int = Field(default=60, description="Duration in minutes for items without one.")

    # AI fallback gate
    ai_fallback_threshold: float = Field(
        default=0.55,
        description="Fallback is considered only if the best deterministic group confidence is below this."
    )
    dev_log: bool = Field(default=True, description="Log the fallback decision at INFO instead of DEBUG.")

    # Cue matching
    cue_locales: List[str] = Field(default=["en", "de"], description="Built-in cue sets to combine.")
    cue_file: Optional[str] = Field(
        default=None,
        description="Optional JSON file with extra cue lists keyed by locale."
    )

    # Model-backed fallback strategy (only used when explicitly enabled)
    llm_fallback_enabled: bool = Field(default=False, description="Use the Ollama-backed grouping fallback.")
    ollama_base_url: str = Field(default="http://localhost:11434", description="Base URL for the Ollama API server.")
    default_model: str = Field(default="llama3.1:latest", description="Ollama model used by the grouping fallback.")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra='ignore'
    )

def get_settings() -> Settings:
    """Get the engine settings instance.

    Returns:
        Settings: Settings loaded from the environment/.env file.
    """
    settings = Settings()
    logger.debug(f"Loaded settings for environment '{settings.environment}'")
    return settings
