"""
Configuration management for Mockup Composer
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field, field_validator
from loguru import logger

from .errors import ConfigurationError


RESAMPLING_FILTERS = ("nearest", "bilinear", "bicubic")
SCALING_POLICIES = ("independent", "uniform")
OUTPUT_FORMATS = ("JPEG", "PNG")


# Shared by AppConfig and CompositionSettings
def check_alpha_threshold(value: int) -> int:
    if not 0 <= value <= 255:
        raise ValueError("alpha threshold must be within 0-255")
    return value


def check_rgb(value: Sequence[int]) -> Sequence[int]:
    if len(value) != 3 or any(not 0 <= c <= 255 for c in value):
        raise ValueError("colors must be three 0-255 channel values")
    return value


def normalize_output_format(value: str) -> str:
    value = value.upper()
    if value == "JPG":
        value = "JPEG"
    if value not in OUTPUT_FORMATS:
        raise ValueError(f"output format must be one of {OUTPUT_FORMATS}")
    return value


def normalize_resampling(value: str) -> str:
    value = value.lower()
    if value not in RESAMPLING_FILTERS:
        raise ValueError(f"resampling must be one of {RESAMPLING_FILTERS}")
    return value


def normalize_scaling_policy(value: str) -> str:
    value = value.lower()
    if value not in SCALING_POLICIES:
        raise ValueError(f"scaling policy must be one of {SCALING_POLICIES}")
    return value


def check_jpeg_quality(value: int) -> int:
    if not 1 <= value <= 100:
        raise ValueError("JPEG quality must be within 1-100")
    return value


def check_positive(value: int) -> int:
    if value < 1:
        raise ValueError("must be positive")
    return value


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Request limits
    MAX_UPLOAD_SIZE: int = 40 * 1024 * 1024  # 40MB of JSON/base64
    MAX_CANVAS_PIXELS: int = 100_000_000

    # Composition
    ALPHA_THRESHOLD: int = 10
    KEY_COLOR: List[int] = [255, 0, 255]
    BACKGROUND_COLOR: List[int] = [0, 0, 0]
    OUTPUT_FORMAT: str = "JPEG"
    JPEG_QUALITY: int = 92
    RESAMPLING: str = "bicubic"
    SCALING_POLICY: str = "independent"  # or "uniform"
    MAX_DECODE_WORKERS: int = 8

    @field_validator('ALPHA_THRESHOLD')
    @classmethod
    def _check_threshold(cls, value: int) -> int:
        return check_alpha_threshold(value)

    @field_validator('KEY_COLOR', 'BACKGROUND_COLOR')
    @classmethod
    def _check_rgb(cls, value: List[int]) -> List[int]:
        return check_rgb(value)

    @field_validator('OUTPUT_FORMAT')
    @classmethod
    def _check_format(cls, value: str) -> str:
        return normalize_output_format(value)

    @field_validator('RESAMPLING')
    @classmethod
    def _check_resampling(cls, value: str) -> str:
        return normalize_resampling(value)

    @field_validator('SCALING_POLICY')
    @classmethod
    def _check_policy(cls, value: str) -> str:
        return normalize_scaling_policy(value)

    @field_validator('JPEG_QUALITY')
    @classmethod
    def _check_quality(cls, value: int) -> int:
        return check_jpeg_quality(value)

    @field_validator('MAX_DECODE_WORKERS', 'MAX_CANVAS_PIXELS')
    @classmethod
    def _check_positive(cls, value: int) -> int:
        return check_positive(value)


class CompositionSettings(BaseModel):
    """The subset of configuration the composition pipeline reads."""
    alpha_threshold: int = 10
    key_color: Tuple[int, int, int] = (255, 0, 255)
    background_color: Tuple[int, int, int] = (0, 0, 0)
    output_format: str = "JPEG"
    jpeg_quality: int = 92
    resampling: str = "bicubic"
    scaling_policy: str = "independent"
    max_decode_workers: int = 8
    max_canvas_pixels: int = 100_000_000

    @field_validator('alpha_threshold')
    @classmethod
    def _check_threshold(cls, value: int) -> int:
        return check_alpha_threshold(value)

    @field_validator('key_color', 'background_color')
    @classmethod
    def _check_rgb(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        return check_rgb(value)

    @field_validator('output_format')
    @classmethod
    def _check_format(cls, value: str) -> str:
        return normalize_output_format(value)

    @field_validator('resampling')
    @classmethod
    def _check_resampling(cls, value: str) -> str:
        return normalize_resampling(value)

    @field_validator('scaling_policy')
    @classmethod
    def _check_policy(cls, value: str) -> str:
        return normalize_scaling_policy(value)

    @field_validator('jpeg_quality')
    @classmethod
    def _check_quality(cls, value: int) -> int:
        return check_jpeg_quality(value)

    @field_validator('max_decode_workers', 'max_canvas_pixels')
    @classmethod
    def _check_positive(cls, value: int) -> int:
        return check_positive(value)

    @classmethod
    def from_config(cls, config: AppConfig) -> "CompositionSettings":
        return cls(
            alpha_threshold=config.ALPHA_THRESHOLD,
            key_color=tuple(config.KEY_COLOR),
            background_color=tuple(config.BACKGROUND_COLOR),
            output_format=config.OUTPUT_FORMAT,
            jpeg_quality=config.JPEG_QUALITY,
            resampling=config.RESAMPLING,
            scaling_policy=config.SCALING_POLICY,
            max_decode_workers=config.MAX_DECODE_WORKERS,
            max_canvas_pixels=config.MAX_CANVAS_PIXELS,
        )


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.debug(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development", config_dir: str = "config",
                overrides: Optional[Dict] = None) -> AppConfig:
    """Load configuration with environment-specific overrides"""

    # Load base settings
    base_config = load_yaml_config(f"{config_dir}/settings.yaml")

    # Load environment-specific settings
    env_config = load_yaml_config(f"{config_dir}/settings_{environment}.yaml")

    # Merge configurations (env overrides base)
    config_dict = {**base_config, **env_config}

    # Apply environment variable overrides
    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'LOG_FILE': os.getenv('LOG_FILE'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'OUTPUT_FORMAT': os.getenv('OUTPUT_FORMAT'),
        'JPEG_QUALITY': os.getenv('JPEG_QUALITY'),
    }

    # Only include non-None values
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    if overrides:
        config_dict.update(overrides)

    # Special handling for boolean DEBUG flag
    if 'DEBUG' not in (overrides or {}):
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    try:
        return AppConfig(**config_dict)
    except ValueError as e:
        logger.error(f"Configuration validation error: {e}")
        raise ConfigurationError(
            "Invalid configuration",
            details={'environment': environment, 'errors': str(e)},
            suggestions=[f"Check {config_dir}/settings.yaml and environment variables"]
        ) from e


# Global config instance
_config_instance = None

def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config(os.getenv('FLASK_ENV', 'development'))
    return _config_instance


def reset_config():
    """Drop the cached global configuration (used by tests)"""
    global _config_instance
    _config_instance = None
