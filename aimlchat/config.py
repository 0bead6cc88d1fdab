"""
Config loader for aimlchat.
Reads config.yaml once and caches it. All other modules import from here.
Built-in defaults sit underneath the file, so a missing or partial
config.yaml still yields a complete config.
"""

import copy
import logging
import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv

from aimlchat.models import GenerationParameters

load_dotenv()

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

DEFAULT_CONFIG: dict = {
    "api": {
        "base_url": "https://api.aimlapi.com",
        "api_key": "${AIMLAPI_KEY}",
        "timeout": 60,
    },
    "storage": {
        "path": "save.json",
        "local_save": True,
    },
    "chat": {
        "history": True,
        "defaults": {
            "max_tokens": 512,
            "frequency_penalty": 0.7,
            "top_p": 0.7,
            "temperature": 0.7,
            "stream": False,
        },
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}

_config: dict | None = None


def _resolve_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} patterns with actual environment variable values."""
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _merge(base: dict, override: dict) -> dict:
    """Deep-merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _default_path() -> Path:
    env_path = os.environ.get("AIMLCHAT_CONFIG")
    return Path(env_path) if env_path else _CONFIG_PATH


def load_config(path: Path | None = None) -> dict:
    """Load and cache config from YAML file."""
    global _config
    if _config is not None and path is None:
        return _config

    config_path = Path(path) if path else _default_path()
    raw: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config root must be a mapping: {config_path}")
    else:
        logger.debug("No config at %s, using built-in defaults", config_path)

    _config = _walk_and_resolve(_merge(DEFAULT_CONFIG, raw))
    return _config


def with_defaults(cfg: dict) -> dict:
    """Fill a partial, caller-built config in from the built-in defaults."""
    return _walk_and_resolve(_merge(DEFAULT_CONFIG, cfg))


def get_config() -> dict:
    """Return cached config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the file."""
    global _config
    _config = None


def default_params(cfg: dict | None = None) -> GenerationParameters:
    """Generation parameters for new chats, from chat.defaults."""
    cfg = cfg or get_config()
    return GenerationParameters.from_dict(cfg["chat"]["defaults"])
