from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import yaml


logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".jots.yaml"
STATE_FILE_ENV = "JOTS_FILE"


@dataclass(frozen=True)
class JotsConfig:
    state_file: str = "jots.json"
    default_priority: int = 2


DEFAULT_CONFIG = JotsConfig()


class ConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load overrides from a YAML file.

    Format:
      state_file: jots.json
      default_priority: 2

    Returns only the keys present in the file.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"{p}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: config must be a mapping")

    out: dict[str, Any] = {}
    for k, v in raw.items():
        if k == "state_file":
            if not isinstance(v, str) or not v.strip():
                raise ConfigError(f"{p}: state_file must be a non-empty string")
            out[k] = v.strip()
        elif k == "default_priority":
            if not isinstance(v, int) or isinstance(v, bool) or not 1 <= v <= 5:
                raise ConfigError(f"{p}: default_priority must be an integer from 1 to 5")
            out[k] = v
        else:
            raise ConfigError(f"{p}: unknown config key: {k}")
    return out


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    cur = (start_dir or Path.cwd()).resolve()
    for d in [cur, *cur.parents]:
        candidate = d / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(start_dir: Optional[Path] = None, *, env: Optional[dict[str, str]] = None) -> JotsConfig:
    """DEFAULT_CONFIG, then the nearest .jots.yaml, then the JOTS_FILE env var."""

    cfg = DEFAULT_CONFIG
    path = find_config_file(start_dir)
    if path is not None:
        logger.debug("loading config from %s", path)
        cfg = replace(cfg, **load_config_file(path))

    environ = os.environ if env is None else env
    state_file = environ.get(STATE_FILE_ENV)
    if state_file:
        cfg = replace(cfg, state_file=state_file)
    return cfg
