"""
Device table loading.

The table is TOML (or JSON, by file suffix) laid out as:

    [general]
    net = "BK"
    sta = "TSM1"
    loc = "00"

    [[emc_oids]]
    oid = "1.3.6.1.2.1.1.5.0"
    label = "System Name"

    [[device_groups]]
    group_oid = "..."
    model_group = "..."
    model_list = ["...", "..."]
    [[device_groups.measurements]]
    oid = "..."
    chancode = "VEA"
    type = "number"
    scaling = 0.1
"""
from __future__ import annotations
import json
import os
import logging
import tomllib
from typing import Optional

from pydantic import ValidationError

from .config import CONFIG_FILE, CONFIG_NAME, CONFIG_SEARCH_PATHS
from .errors import ConfigurationError
from .models import TSMConfig

logger = logging.getLogger(__name__)


def find_config_file(path: Optional[str] = None) -> str:
    """Explicit path first, then $TSM_CONFIG_FILE, then tsm.toml in the search directories."""
    if path:
        return path
    if CONFIG_FILE:
        return CONFIG_FILE
    for directory in CONFIG_SEARCH_PATHS:
        candidate = os.path.join(directory, CONFIG_NAME)
        if os.path.exists(candidate):
            return candidate
    raise ConfigurationError(
        f"no {CONFIG_NAME} found in: {', '.join(CONFIG_SEARCH_PATHS)}"
    )


def load_config(path: Optional[str] = None) -> TSMConfig:
    cfg_file = find_config_file(path)
    try:
        if cfg_file.endswith(".json"):
            with open(cfg_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            with open(cfg_file, "rb") as f:
                data = tomllib.load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {cfg_file}: {e}") from e
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"cannot parse config file {cfg_file}: {e}") from e

    try:
        cfg = TSMConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid config file {cfg_file}: {e}") from e

    logger.info(f"Using config file: {cfg_file}")
    return cfg
