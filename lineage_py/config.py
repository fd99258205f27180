"""Configuration loader for lineage_py.

Behavior:
- Load defaults.
- If environment variable `LINEAGE_CONFIG` is set, load that JSON file and merge.
- Environment variables override file values (variables: LINEAGE_DATA_DIR,
  LINEAGE_LOG_LEVEL, LINEAGE_DEFAULT_GENERATIONS).
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
import json
import logging
from typing import Optional

from .traversal import DEFAULT_GENERATIONS

logger = logging.getLogger(__name__)


@dataclass
class Config:
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    default_generations: int = DEFAULT_GENERATIONS


def _load_json_file(path: Path) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config file %s: %s", path, exc)
        return None


def _parse_int(value: object, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("invalid default_generations %r, using %d", value, fallback)
        return fallback


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from (1) defaults, (2) JSON file, (3) env vars.

    :param config_path: optional path to a JSON config file. If not provided
                        will use environment variable `LINEAGE_CONFIG` if set.
    """
    cfg = Config()

    cp = config_path or os.environ.get("LINEAGE_CONFIG")
    if cp:
        data = _load_json_file(Path(cp))
        if isinstance(data, dict):
            if data.get("data_dir"):
                cfg.data_dir = Path(data["data_dir"])
            if data.get("log_level"):
                cfg.log_level = str(data["log_level"]).upper()
            if "default_generations" in data:
                cfg.default_generations = _parse_int(data["default_generations"], cfg.default_generations)

    # an explicit config_path is authoritative: env vars only apply without one
    if config_path is None:
        if os.environ.get("LINEAGE_DATA_DIR"):
            cfg.data_dir = Path(os.environ["LINEAGE_DATA_DIR"])
        if os.environ.get("LINEAGE_LOG_LEVEL"):
            cfg.log_level = os.environ["LINEAGE_LOG_LEVEL"].upper()
        if os.environ.get("LINEAGE_DEFAULT_GENERATIONS"):
            cfg.default_generations = _parse_int(os.environ["LINEAGE_DEFAULT_GENERATIONS"], cfg.default_generations)

    return cfg
