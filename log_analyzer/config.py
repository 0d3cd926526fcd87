"""Configuration loading from an optional YAML file and environment variables."""

import os
import logging
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

REDUCTION_MODES = ("shared", "per_worker")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    pool_size: int = 5
    progress_every: int = 10
    progress_timeout: float = 0.5
    reduction: str = "shared"
    compute_average_response: bool = False
    store_path: str = "./data/analyses.json"
    upload_dir: str = "./tmp"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    def __post_init__(self):
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {self.pool_size}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {self.progress_every}")
        if self.progress_timeout < 0:
            raise ValueError(f"progress_timeout must be >= 0, got {self.progress_timeout}")
        if self.reduction not in REDUCTION_MODES:
            raise ValueError(
                f"reduction must be one of {REDUCTION_MODES}, got {self.reduction!r}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from YAML data overlaid with environment variables.

    Precedence: environment > YAML > dataclass defaults. The YAML layout
    groups keys under ``pipeline``, ``storage`` and ``server`` sections.
    """
    yaml_data = yaml_data or {}
    pipeline = yaml_data.get("pipeline", {}) or {}
    storage = yaml_data.get("storage", {}) or {}
    server = yaml_data.get("server", {}) or {}

    def pick(env_key: str, section: dict, key: str, default):
        if env_key in os.environ:
            return os.environ[env_key]
        return section.get(key, default)

    return Config(
        pool_size=int(pick("WORKER_POOL_SIZE", pipeline, "pool_size", Config.pool_size)),
        progress_every=int(
            pick("PROGRESS_INTERVAL", pipeline, "progress_every", Config.progress_every)
        ),
        progress_timeout=float(
            pick("PROGRESS_TIMEOUT", pipeline, "progress_timeout", Config.progress_timeout)
        ),
        reduction=str(pick("REDUCTION_MODE", pipeline, "reduction", Config.reduction)).lower(),
        compute_average_response=_parse_bool(
            pick(
                "COMPUTE_AVERAGE_RESPONSE",
                pipeline,
                "compute_average_response",
                Config.compute_average_response,
            )
        ),
        store_path=str(pick("STORE_PATH", storage, "store_path", Config.store_path)),
        upload_dir=str(pick("UPLOAD_DIR", storage, "upload_dir", Config.upload_dir)),
        host=str(pick("SERVER_HOST", server, "host", Config.host)),
        port=int(pick("SERVER_PORT", server, "port", Config.port)),
        log_level=str(pick("LOG_LEVEL", yaml_data, "log_level", Config.log_level)).upper(),
    )
