import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """
    Process-wide inputs.

    - config_dir: directory holding the YAML configuration files
    - graphite_password: used by graphite backends with no password configured
    """

    config_dir: Path
    graphite_password: str = ""


def get_settings() -> Settings:
    """Read settings from the environment. Nothing else in fleetgauge reads it."""
    return Settings(
        config_dir=Path(os.getenv("FLEETGAUGE_CONFIG_DIR", "config")),
        graphite_password=os.getenv("GRAPHITE_PASSWORD", ""),
    )


def build_backends(settings: Settings):
    """
    Parse the configuration once and build every configured backend.

    Raises ConfigError (or BadConfigurationError); the caller decides
    whether that ends the process.
    """
    from backends import initialize_backends  # local import to avoid cycles

    from .loader import load_config

    config = load_config(settings.config_dir)
    logger.info("Loaded %d backend(s) from %s", len(config.backends), settings.config_dir)
    return initialize_backends(config.backends, graphite_password=settings.graphite_password)
