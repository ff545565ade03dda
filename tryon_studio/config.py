"""
Configuration module for the Try-On Studio API
Contains logger setup and the environment-backed settings object
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from tryon_studio.errors import ConfigurationError

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(name: str = __name__, log_file: str = "tryon_studio.log") -> logging.Logger:
    """
    Set up and return a logger with both file and console handlers

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


# Create the main application logger
logger = setup_logger("tryon_studio")


# -------------------------
# Settings
# -------------------------
REQUIRED_ENV_VARS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "GEMINI_API_KEY")

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_VIDEO_MODEL = "veo-3.1-generate-preview"


def get_env_var(name: str) -> str:
    """Return a required environment variable or raise ConfigurationError."""
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    logger.debug(f"[env] Loaded {name}")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once and handed to each request."""

    supabase_url: str
    supabase_service_key: str
    gemini_api_key: str
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    video_poll_interval_seconds: float = 10.0
    video_poll_max_attempts: int = 60
    video_poll_deadline_seconds: float = 900.0
    http_timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Raises:
            ConfigurationError: If a required variable is missing or a tunable
                cannot be parsed
        """
        supabase_url, supabase_service_key, gemini_api_key = (
            get_env_var(name) for name in REQUIRED_ENV_VARS
        )
        try:
            return cls(
                supabase_url=supabase_url,
                supabase_service_key=supabase_service_key,
                gemini_api_key=gemini_api_key,
                image_model=os.getenv("GEMINI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
                video_model=os.getenv("GEMINI_VIDEO_MODEL") or DEFAULT_VIDEO_MODEL,
                video_poll_interval_seconds=float(
                    os.getenv("VIDEO_POLL_INTERVAL_SECONDS", "10")
                ),
                video_poll_max_attempts=int(os.getenv("VIDEO_POLL_MAX_ATTEMPTS", "60")),
                video_poll_deadline_seconds=float(
                    os.getenv("VIDEO_POLL_DEADLINE_SECONDS", "900")
                ),
                http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "60")),
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric configuration value: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process. Failures are not cached."""
    settings = Settings.from_env()
    logger.info("Configuration loaded successfully")
    logger.debug(f"Image model: {settings.image_model}")
    logger.debug(f"Video model: {settings.video_model}")
    return settings
