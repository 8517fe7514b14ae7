"""Configuration module — frozen dataclass loaded from YAML, environment
variables and CLI args."""

import os
import argparse
import logging
from dataclasses import dataclass, fields

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SinkConfig:
    host: str = "http://localhost:9200"
    destination_pattern: str = "[logstash-]YYYY[-]MM[-]DD"
    category: str = "logs"
    limit: int = 100
    idle_interval: float = 5.0
    request_timeout: float = 10.0
    close_timeout: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.idle_interval <= 0:
            raise ValueError(f"idle_interval must be positive, got {self.idle_interval}")


# env var -> (field, type)
_ENV_VARS = {
    "ELASTICSEARCH_HOST": ("host", str),
    "DESTINATION_PATTERN": ("destination_pattern", str),
    "CATEGORY": ("category", str),
    "BATCH_LIMIT": ("limit", int),
    "IDLE_INTERVAL": ("idle_interval", float),
    "REQUEST_TIMEOUT": ("request_timeout", float),
    "CLOSE_TIMEOUT": ("close_timeout", float),
    "LOG_LEVEL": ("log_level", str),
}


def load_yaml_config(path: str | None) -> dict:
    """Load sink settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}

    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}

    known = {f.name for f in fields(SinkConfig)}
    settings = {}
    for key, value in data.items():
        if key in known:
            settings[key] = value
        else:
            logger.warning("Ignoring unknown config key %r in %s", key, path)
    return settings


def load_config(argv=None) -> SinkConfig:
    """Build SinkConfig from defaults <- YAML file <- env vars <- CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    parser = argparse.ArgumentParser(description="Bulk Log Sink")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--pattern", type=str, default=None)
    parser.add_argument("--category", type=str, default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--interval", type=float, default=None)
    parser.add_argument("--log-level", type=str, default=None)

    args = parser.parse_args(argv)

    settings = load_yaml_config(args.config or os.environ.get("SINK_CONFIG"))

    for env_name, (field_name, cast) in _ENV_VARS.items():
        value = os.environ.get(env_name)
        if value is not None:
            settings[field_name] = cast(value)

    # CLI flags override env vars
    overrides = {
        "host": args.host,
        "destination_pattern": args.pattern,
        "category": args.category,
        "limit": args.limit,
        "idle_interval": args.interval,
        "log_level": args.log_level,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})

    return SinkConfig(**settings)
