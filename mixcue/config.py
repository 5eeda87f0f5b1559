#!/usr/bin/env python3
"""
Centralized configuration for mixcue with env var overrides.
- User config file: ~/.config/mixcue/config.json
- Precedence: environment > user config file > built-in defaults
- Types exposed to the app:
  - DB_PATH: Path to the Mixxx library database
  - MUSIC_ROOT: Path the playback daemon's file paths are relative to
  - MPD_HOST: str
  - MPD_PORT: int
  - LOG_LEVEL: str
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Paths
CONFIG_DIR = Path.home() / ".config" / "mixcue"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Built-in defaults
DEFAULTS = {
    "DB_PATH": str(Path.home() / ".mixxx" / "mixxxdb.sqlite"),
    "MUSIC_ROOT": str(Path.home() / "Music"),
    "MPD_HOST": "localhost",
    "MPD_PORT": 6600,
    "LOG_LEVEL": "WARNING",
}

# Environment variable mapping
ENV_MAP = {
    "DB_PATH": "MIXCUE_DB_PATH",
    "MUSIC_ROOT": "MIXCUE_MUSIC_ROOT",
    "MPD_HOST": "MPD_HOST",
    "MPD_PORT": "MPD_PORT",
    "LOG_LEVEL": "MIXCUE_LOG_LEVEL",
}

INT_KEYS = ("MPD_PORT",)


def _load_user_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}
    return data


def _apply_env_overrides(
    cfg: Dict[str, Any], environ: Mapping[str, str]
) -> Dict[str, Any]:
    out = dict(cfg)
    for key, env_name in ENV_MAP.items():
        val = environ.get(env_name)
        if val is None:
            continue
        if key in INT_KEYS:
            try:
                out[key] = int(val)
            except ValueError:
                logger.warning(f"Ignoring non-integer {env_name}={val!r}")
        else:
            out[key] = val
    return out


def _coerce_types(eff: Dict[str, Any]) -> Dict[str, Any]:
    eff["DB_PATH"] = Path(str(eff["DB_PATH"])).expanduser()
    eff["MUSIC_ROOT"] = Path(str(eff["MUSIC_ROOT"])).expanduser()
    eff["MPD_HOST"] = str(eff["MPD_HOST"])
    for k in INT_KEYS:
        try:
            eff[k] = int(eff[k])
        except (TypeError, ValueError):
            eff[k] = DEFAULTS[k]
    eff["LOG_LEVEL"] = str(eff["LOG_LEVEL"]).upper()
    return eff


def load_config(
    path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Load effective config: env > file > defaults, coerced to expected types."""
    if path is None:
        path = CONFIG_FILE
    if environ is None:
        environ = os.environ
    file_cfg = _load_user_file(path)
    merged = DEFAULTS | {k: v for k, v in file_cfg.items() if k in DEFAULTS}
    merged = _apply_env_overrides(merged, environ)
    return _coerce_types(merged)


def save_config(data: Mapping[str, Any], path: Optional[Path] = None) -> Path:
    """Write the user config file and return its path."""
    if path is None:
        path = CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    serializable = {k: (str(v) if isinstance(v, Path) else v) for k, v in data.items()}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serializable, f, indent=2)
    return path
