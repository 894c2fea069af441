import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .models import RootConfig

logger = logging.getLogger(__name__)


def _config_files(config_dir: Path) -> list[Path]:
    if not config_dir.is_dir():
        raise ConfigError(f"Failed to detect config directory: {config_dir}")
    return sorted(p for p in config_dir.rglob("*") if p.is_file())


def merge(base: dict[str, Any], other: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge `other` into `base`. Mappings merge, anything else is replaced."""
    for key, value in other.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge(base[key], value)
        else:
            base[key] = value
    return base


def _stamp_names(config: RootConfig) -> None:
    """Each backend, job, group and rule takes its map key as its name."""
    for backend_name, backend in config.backends.items():
        backend.name = backend_name

    for job_name, job in config.jobs.items():
        job.name = job_name
        for group_name, group in job.groups.items():
            group.name = group_name
            for rule_name, rule in group.rules.items():
                rule.name = rule_name


def load_config(path: str | Path) -> RootConfig:
    """
    Load every file under `path` and merge them into one RootConfig.

    Files are read in sorted order; keys in later files override earlier
    ones. Raises ConfigError if anything can't be read, parsed or validated.
    """
    files = _config_files(Path(path))
    for i, file in enumerate(files):
        logger.info("File #%d: %s", i, file)

    blob: dict[str, Any] = {}
    for file in files:
        try:
            with file.open("r", encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(f"Failed to read file ({file}): {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML error in {file}: {exc}") from exc

        if not isinstance(document, dict):
            raise ConfigError(f"Expected a mapping at the top of {file}")
        merge(blob, document)

    try:
        config = RootConfig.model_validate(blob)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc

    _stamp_names(config)
    return config
