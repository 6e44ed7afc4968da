"""
Crossfade Image Configuration
=============================

This module handles configuration loading for the image engine.

Configuration Sources (in order of precedence):
    1. CROSSFADE_* environment variables (highest priority)
    2. YAML file: explicit path, else $CROSSFADE_CONFIG, else
       crossfade.yaml / crossfade.yml in the working directory
    3. Default values (lowest priority)

Environment Variable Mapping:
    CROSSFADE_HTTP_TIMEOUT    -> http.timeout_seconds
    CROSSFADE_USER_AGENT      -> http.user_agent
    CROSSFADE_FADE_OUT_MS     -> fade.fade_out_duration (milliseconds)
    CROSSFADE_FADE_IN_MS      -> fade.fade_in_duration (milliseconds)
    CROSSFADE_TICK_INTERVAL   -> clock.tick_interval_seconds
    CROSSFADE_PACE_ANIMATION  -> decode.pace_animation
    CROSSFADE_LOG_LEVEL       -> logging.level

Example:
    from crossfade_image.config import load_config, setup_logging

    settings = load_config("crossfade.yaml")
    setup_logging(settings)      # handler on the crossfade_image logger only
    print(settings.fade.fade_in_duration)
"""

import os
import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class HttpConfig(BaseModel):
    """HTTP transport configuration."""

    timeout_seconds: float = Field(default=10.0, gt=0, description="Request timeout")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    user_agent: Optional[str] = Field(default=None, description="User-Agent header")
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL relative image urls are resolved against",
    )
    default_headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Headers applied to requests built from settings",
    )


class FadeConfig(BaseModel):
    """Default fade timings for requests built from settings."""

    fade_out_duration: float = Field(default=0.3, ge=0, description="Fade-out seconds")
    fade_out_curve: str = Field(default="ease_out", description="Fade-out curve name")
    fade_in_duration: float = Field(default=0.7, ge=0, description="Fade-in seconds")
    fade_in_curve: str = Field(default="ease_in", description="Fade-in curve name")

    @field_validator("fade_out_curve", "fade_in_curve")
    @classmethod
    def _known_curve(cls, value: str) -> str:
        from crossfade_image.phase.curves import CURVES

        if value not in CURVES:
            raise ValueError(f"Unknown curve '{value}', expected one of {sorted(CURVES)}")
        return value


class ClockConfig(BaseModel):
    """Fade clock configuration."""

    tick_interval_seconds: float = Field(
        default=1 / 60,
        gt=0,
        le=1.0,
        description="Seconds between fade clock ticks",
    )


class DecodeConfig(BaseModel):
    """Codec configuration."""

    pace_animation: bool = Field(
        default=True,
        description="Deliver animated frames paced by their frame durations",
    )
    max_frames: int = Field(
        default=500,
        ge=1,
        description="Maximum frames decoded from one payload",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the image engine.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    http: HttpConfig = Field(default_factory=HttpConfig)
    fade: FadeConfig = Field(default_factory=FadeConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

CONFIG_ENV_VAR = "CROSSFADE_CONFIG"
DEFAULT_CONFIG_NAMES = ("crossfade.yaml", "crossfade.yml")

_LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
    "text": "%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
}


def find_config_file(config_path: Optional[str] = None) -> Optional[Path]:
    """
    Locate the YAML file to load.

    Lookup order: the explicit ``config_path``, then the file named by
    ``CROSSFADE_CONFIG``, then ``crossfade.yaml`` / ``crossfade.yml`` in
    the working directory.

    Returns:
        Path of an existing file, or None
    """
    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if path.is_file():
            return path
        logger.warning(f"Config file {path} not found, using defaults")
        return None

    for name in DEFAULT_CONFIG_NAMES:
        path = Path(name)
        if path.is_file():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build engine Settings from YAML and ``CROSSFADE_*`` variables.

    Environment variables win over the file, the file wins over the
    defaults. A missing file is not an error.

    Args:
        config_path: YAML file to read; see ``find_config_file`` for the
            lookup when omitted

    Returns:
        Settings: Validated engine settings

    Raises:
        pydantic.ValidationError: If the merged configuration is invalid
    """
    config_data: dict = {}
    path = find_config_file(config_path)
    if path is not None:
        logger.info(f"Loading crossfade config from {path}")
        config_data = yaml.safe_load(path.read_text()) or {}

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # HTTP settings
    if env_timeout := os.environ.get("CROSSFADE_HTTP_TIMEOUT"):
        config_data.setdefault("http", {})["timeout_seconds"] = float(env_timeout)
    if env_agent := os.environ.get("CROSSFADE_USER_AGENT"):
        config_data.setdefault("http", {})["user_agent"] = env_agent

    # Fade settings (milliseconds in the environment, seconds in the model)
    if env_out := os.environ.get("CROSSFADE_FADE_OUT_MS"):
        config_data.setdefault("fade", {})["fade_out_duration"] = int(env_out) / 1000.0
    if env_in := os.environ.get("CROSSFADE_FADE_IN_MS"):
        config_data.setdefault("fade", {})["fade_in_duration"] = int(env_in) / 1000.0

    # Clock settings
    if env_tick := os.environ.get("CROSSFADE_TICK_INTERVAL"):
        config_data.setdefault("clock", {})["tick_interval_seconds"] = float(env_tick)

    # Decode settings
    if env_pace := os.environ.get("CROSSFADE_PACE_ANIMATION"):
        config_data.setdefault("decode", {})["pace_animation"] = env_pace.lower() in ("1", "true", "yes")

    # Logging settings
    if env_log := os.environ.get("CROSSFADE_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Attach a stream handler to the ``crossfade_image`` logger.

    Only the package logger is touched; the host's root logger is left
    alone. Calling this again replaces the handler installed by the
    previous call instead of adding a second one.

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("crossfade_image")
    package_logger.setLevel(getattr(logging, settings.logging.level.upper(), logging.INFO))

    fmt = _LOG_FORMATS.get(settings.logging.format, _LOG_FORMATS["text"])
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%dT%H:%M:%S"))
    handler.set_name("crossfade_image")

    for existing in list(package_logger.handlers):
        if existing.get_name() == "crossfade_image":
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    return package_logger


# =============================================================================
# Global Settings Instance
# =============================================================================

# Default settings - loaded on import. Logging is left to the host
# application; call setup_logging(settings) to opt in.
settings = load_config()
