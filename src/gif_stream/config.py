"""
GifStream Configuration
=======================

This module handles configuration loading for the GifStream service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    GIFSTREAM_INTERVAL_MS   -> gif.interval_ms
    GIFSTREAM_WIDTH         -> gif.width
    GIFSTREAM_HEIGHT        -> gif.height
    GIFSTREAM_DELAY_POLICY  -> gif.delay_policy
    GIFSTREAM_PALETTE       -> gif.palette
    GIFSTREAM_COLORS        -> gif.colors
    GIFSTREAM_SCENE         -> demo.scene
    GIFSTREAM_PORT          -> server.port
    GIFSTREAM_LOG_LEVEL     -> logging.level
    PORT                    -> server.port (Cloud Run)

Example:
    from gif_stream.config import settings
    
    print(settings.gif.interval_ms)
    print(settings.demo.scene)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from gif_stream.constants import MAX_DIMENSION
from gif_stream.models.stream import DelayPolicy, DisposalMethod, PaletteMode


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""
    
    name: str = Field(default="gif-stream", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class GifConfig(BaseModel):
    """Live GIF encoding and pacing configuration."""
    
    interval_ms: int = Field(
        default=1000,
        gt=0,
        description="Time between frames in milliseconds",
    )
    width: int = Field(default=400, gt=0, le=MAX_DIMENSION, description="Frame width")
    height: int = Field(default=100, gt=0, le=MAX_DIMENSION, description="Frame height")
    delay_policy: DelayPolicy = Field(
        default=DelayPolicy.MEASURED,
        description="Per-frame delay: 'measured' or 'nominal'",
    )
    palette: PaletteMode = Field(
        default=PaletteMode.LOCAL,
        description="Color tables: 'local', 'global' or 'auto'",
    )
    colors: int = Field(default=256, ge=2, le=256, description="Maximum palette size")
    dither: bool = Field(default=True, description="Floyd-Steinberg dithering")
    interlaced: bool = Field(default=False, description="Write interlaced frames")
    dispose: DisposalMethod = Field(
        default=DisposalMethod.KEEP,
        description="GIF disposal method (0-3)",
    )


class DemoConfig(BaseModel):
    """Demo frame generator configuration."""
    
    scene: str = Field(default="clock", description="Demo scene: 'clock' or 'bars'")
    background: tuple[int, int, int] = Field(
        default=(24, 28, 36),
        description="Background RGB color",
    )
    foreground: tuple[int, int, int] = Field(
        default=(240, 240, 240),
        description="Text RGB color",
    )


class ServerConfig(BaseModel):
    """Server configuration."""
    
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for GifStream.
    
    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """
    
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    gif: GifConfig = Field(default_factory=GifConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.
    
    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        
    Args:
        config_path: Path to config.yaml. If None, searches common locations.
        
    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break
    
    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")
    
    # Apply environment variable overrides
    _apply_env_overrides(config_data)
    
    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""
    
    # GIF settings
    if env_interval := os.environ.get("GIFSTREAM_INTERVAL_MS"):
        config_data.setdefault("gif", {})["interval_ms"] = int(env_interval)
    if env_width := os.environ.get("GIFSTREAM_WIDTH"):
        config_data.setdefault("gif", {})["width"] = int(env_width)
    if env_height := os.environ.get("GIFSTREAM_HEIGHT"):
        config_data.setdefault("gif", {})["height"] = int(env_height)
    if env_policy := os.environ.get("GIFSTREAM_DELAY_POLICY"):
        config_data.setdefault("gif", {})["delay_policy"] = env_policy.lower()
    if env_palette := os.environ.get("GIFSTREAM_PALETTE"):
        config_data.setdefault("gif", {})["palette"] = env_palette.lower()
    if env_colors := os.environ.get("GIFSTREAM_COLORS"):
        config_data.setdefault("gif", {})["colors"] = int(env_colors)
    
    # Demo settings
    if env_scene := os.environ.get("GIFSTREAM_SCENE"):
        config_data.setdefault("demo", {})["scene"] = env_scene
    
    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("GIFSTREAM_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    
    # Logging settings
    if env_log := os.environ.get("GIFSTREAM_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    
    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
