"""Configuration and logging setup for NebulaDocs."""

import logging
import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

from .core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "nebuladocs.yaml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class Settings:
    """Central configuration for the application."""
    # Storage
    data_dir: Path = field(default_factory=lambda: Path("~/.nebuladocs").expanduser())
    save_delay: float = 2.0  # seconds of quiet before a debounced save

    # Generative assist
    anthropic_api_key: str = ""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4000

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Build settings from .env, an optional YAML file, then the environment.

    Later sources win. Without ``path`` a ``nebuladocs.yaml`` in the working
    directory is used if present.
    """
    load_dotenv()
    settings = Settings()

    config_path = Path(path) if path else Path.cwd() / CONFIG_FILENAME
    if path or config_path.exists():
        _apply_yaml(settings, config_path)

    if os.getenv("NEBULA_DATA_DIR"):
        settings.data_dir = Path(os.environ["NEBULA_DATA_DIR"]).expanduser()
    if os.getenv("NEBULA_SAVE_DELAY"):
        settings.save_delay = _to_float("NEBULA_SAVE_DELAY", os.environ["NEBULA_SAVE_DELAY"])
    if os.getenv("NEBULA_LOG_LEVEL"):
        settings.log_level = os.environ["NEBULA_LOG_LEVEL"].upper()
    if os.getenv("ANTHROPIC_API_KEY"):
        settings.anthropic_api_key = os.environ["ANTHROPIC_API_KEY"]

    return settings


def _apply_yaml(settings: Settings, config_path: Path) -> None:
    try:
        with config_path.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        if key == "data_dir":
            value = Path(str(value)).expanduser()
        elif key == "save_delay":
            value = _to_float(key, value)
        elif key == "max_tokens":
            value = int(value)
        setattr(settings, key, value)


def _to_float(name: str, value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if number < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return number


def setup_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging to stdout and, optionally, a file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
