"""
User configuration for orgsync.

Configuration is a nested dict. Defaults are overlaid by the user's config
file and then by `ORGSYNC_<SECTION>_<KEY>` environment variables.
"""

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger("orgsync")

ENV_PREFIX = "ORGSYNC_"
CONFIG_ENV_VAR = "ORGSYNC_CONFIG"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Path of the user config file.

    $ORGSYNC_CONFIG wins when it points to an existing file, then the first
    config.* found in ~/.orgsync/. When nothing exists the JSON path is
    returned so messages can name it.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit and Path(explicit).exists():
        return Path(explicit)

    config_dir = Path.home() / '.orgsync'
    for filename in CONFIG_FILENAMES:
        candidate = config_dir / filename
        if candidate.exists():
            return candidate
    return config_dir / 'config.json'


def _read_config_file(config_path):
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    with open(config_path, 'r', encoding='utf-8') as f:
        if suffix in ('.yaml', '.yml'):
            return yaml.safe_load(f)
        return json.load(f)


def load_config():
    """Defaults, overlaid by the config file, overlaid by the environment."""
    defaults = get_default_config()
    config_path = get_config_path()

    if not config_path.exists():
        return apply_env_overrides(defaults)

    try:
        from_file = _read_config_file(config_path)
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    from_file = from_file or {}
    if not isinstance(from_file, dict):
        raise ConfigError(f"Config in {config_path} must be a mapping")

    logger.debug(f"Loaded config from {config_path}")
    return apply_env_overrides(merge_configs(defaults, from_file))


def get_default_config():
    return {
        "general": {
            "max_concurrent_operations": 30,
            "main_branch": "master",
            "log_file": ".orgsync.log",
            "manifest_file": ".orgsync.yaml",
        },
        "github": {
            "host": "github.com",
            "token": "",
        },
        "prompts": {
            "clone_timeout_seconds": 60,
        },
        "report": {
            "bot_patterns": [
                "renovate",
                "jenkins",
                "snyk-",
                "dependabot",
                "github-actions",
            ],
        },
    }


def merge_configs(base_config, override_config):
    """
    Merge override_config into a copy of base_config.

    Nested dicts are merged key by key; any other value replaces the base.
    """
    merged = dict(base_config)
    for key, value in override_config.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = merge_configs(base_value, value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(env_key, value, current):
    """Parse value as the type of the setting it replaces.

    Lists are comma separated; strings are taken verbatim, so a branch
    named 2024 stays a string.
    """
    if isinstance(current, bool):
        lowered = value.strip().lower()
        if lowered in ('true', 'yes', 'on', '1'):
            return True
        if lowered in ('false', 'no', 'off', '0'):
            return False
        raise ConfigError(f"{env_key} must be a boolean, got {value!r}")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"{env_key} must be an integer, got {value!r}") from None
    if isinstance(current, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    return value


def _longest_key_match(section, parts):
    """Config key of section spelling the longest prefix of parts, with its length."""
    best_key, best_len = None, 0
    for key in section:
        key_parts = key.split('_')
        if len(key_parts) > best_len and parts[:len(key_parts)] == key_parts:
            best_key, best_len = key, len(key_parts)
    return best_key, best_len


def apply_env_overrides(config):
    """
    Set existing config keys from ORGSYNC_* environment variables.

    Keys may contain underscores, so the variable name is matched against
    the longest existing key at each level, e.g.
    ORGSYNC_GENERAL_MAX_CONCURRENT_OPERATIONS=10. Unknown keys are ignored.
    """
    for env_key, raw_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == CONFIG_ENV_VAR:
            continue

        parts = env_key[len(ENV_PREFIX):].lower().split('_')
        section = config
        while parts:
            key, length = _longest_key_match(section, parts)
            if key is None:
                break
            parts = parts[length:]
            if not parts:
                if not isinstance(section[key], dict):
                    section[key] = _coerce_env_value(env_key, raw_value, section[key])
                break
            if isinstance(section[key], dict):
                section = section[key]
            else:
                break

    return config


def get_github_token(config):
    """Token from config, falling back to the conventional environment variables."""
    return (
        config.get("github", {}).get("token")
        or os.environ.get('ORGSYNC_GITHUB_TOKEN')
        or os.environ.get('GITHUB_TOKEN')
        or None
    )
