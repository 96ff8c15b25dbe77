"""Configuration loading from an optional YAML file and environment variables.

Precedence (lowest to highest): dataclass defaults, YAML, ACCESSLOG_* env vars.
CLI flags are applied on top by the caller.
"""

import logging
import os
from dataclasses import dataclass, fields

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "ACCESSLOG_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised for unreadable YAML or invalid setting values."""


@dataclass(frozen=True)
class Config:
    response_codes_path: str | None = None
    ip_mapping_path: str | None = None
    response_codes_delimiter: str = ","
    ip_mapping_delimiter: str = "\t"
    top_n: int = 10
    frequent_ip_threshold: int = 10
    max_malformed_samples: int = 5
    input_dir: str = "./logs"
    output_dir: str = "./parsed_logs"
    log_level: str = "INFO"


_INT_FIELDS = {"top_n", "frequent_ip_threshold", "max_malformed_samples"}


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path or file missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _coerce(name: str, value) -> object:
    if name in _INT_FIELDS:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be an integer, got {value!r}") from None
        if number < 0:
            raise ConfigError(f"{name} must not be negative, got {number}")
        return number
    if name == "log_level":
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level
    if value is None:
        return None
    return str(value)


def load_config(yaml_path: str | None = None) -> Config:
    """Build Config from defaults, the YAML file at *yaml_path*, and env vars."""
    yaml_data = load_yaml_config(yaml_path)
    known = {f.name for f in fields(Config)}

    unknown = set(yaml_data) - known
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    values = {}
    for name in known:
        if name in yaml_data:
            values[name] = _coerce(name, yaml_data[name])
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = _coerce(name, env_value)

    return Config(**values)
