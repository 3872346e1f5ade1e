import os
import shutil
from functools import lru_cache
from pathlib import Path

import yaml

from archivist.lib import paths

DEFAULT_SUFFIX = "'s Archive"
DEFAULT_MUTE_MAX_DAYS = 28
TOKEN_ENV = "ARCHIVIST_TOKEN"

_TYPES: dict[str, tuple[type, ...]] = {
    "records_file": (str,),
    "category_suffix": (str,),
    "guild_id": (int,),
    "log_level": (str,),
    "mute_max_days": (int,),
}


def get_default_config_path() -> Path:
    return paths.package_root() / "config.yaml"


def _validate_config(cfg: dict) -> None:
    """Validate config structure. Fail fast on invalid types."""
    if not isinstance(cfg, dict):
        raise ValueError(f"Config must be a dict, got {type(cfg).__name__}")

    for key, types in _TYPES.items():
        value = cfg.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, types):
            raise ValueError(f"Config '{key}' must be {types[0].__name__}")

    if cfg.get("category_suffix") == "":
        raise ValueError("Config 'category_suffix' cannot be empty")


def _clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load the config.yaml file, returning its content or an empty dict if not found."""
    path = paths.config_file()
    if not path.exists():
        return {}
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    _validate_config(cfg)
    return cfg


def init_config() -> Path:
    """Initialize ~/.archivist/config.yaml from defaults if missing."""
    target = paths.config_file()
    if target.exists():
        return target

    target.parent.mkdir(parents=True, exist_ok=True)

    default_config_path = get_default_config_path()
    if not default_config_path.exists():
        raise FileNotFoundError(f"Default config not found at {default_config_path}")

    shutil.copy(default_config_path, target)
    _clear_cache()
    return target


def records_file() -> Path:
    configured = load_config().get("records_file")
    if configured:
        return Path(configured).expanduser()
    return paths.records_file()


def category_suffix() -> str:
    return load_config().get("category_suffix") or DEFAULT_SUFFIX


def guild_id() -> int | None:
    return load_config().get("guild_id")


def log_level() -> str:
    return load_config().get("log_level") or "WARNING"


def mute_max_days() -> int:
    return load_config().get("mute_max_days") or DEFAULT_MUTE_MAX_DAYS


def token() -> str | None:
    return os.environ.get(TOKEN_ENV) or None
