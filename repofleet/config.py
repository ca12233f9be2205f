#!/usr/bin/env python3

import os
import json
import re
import tomllib
from pathlib import Path
from typing import List

import logging
import sys

import yaml

from .domain.descriptor import RepositoryDescriptor
from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("repofleet")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
LOCAL_CONFIG_FILENAMES = ['repofleet.yaml', 'repofleet.yml', 'repofleet.toml', 'repofleet.json']

NUMBER_RE = re.compile(r'^-?\d+\.\d+$')


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. REPOFLEET_CONFIG environment variable
    2. repofleet.{yaml,yml,toml,json} in the current directory
    3. ~/.repofleet/ directory

    Returns None when no config file exists.
    """
    # Check for environment variable override
    if 'REPOFLEET_CONFIG' in os.environ:
        path = Path(os.environ['REPOFLEET_CONFIG']).expanduser()
        if path.exists():
            return path
        logger.warning(f"REPOFLEET_CONFIG points to missing file {path}")

    # Project-local config next to the checkouts
    for filename in LOCAL_CONFIG_FILENAMES:
        path = Path.cwd() / filename
        if path.exists():
            return path

    repofleet_dir = Path.home() / '.repofleet'
    for filename in CONFIG_FILENAMES:
        path = repofleet_dir / filename
        if path.exists():
            return path

    return None


def read_config_file(config_path: Path) -> dict:
    """Parse a JSON, TOML or YAML config file into a dict."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path is not None:
        try:
            file_config = read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}")
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        # Merge file config with defaults
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded configuration from {config_path}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        # Remote repositories to fetch: URL strings or {"url": ..., "name": ...}
        "repositories": [],
        "fetch": {
            "target_dir": "cloned_repos",
            "sparse": True,
            "paths": ["README.md", "src/"],
            "parallel": 1,
            "retries": 0,
            "retry_backoff_seconds": 2.0,
            "timeout_seconds": 600,
            "deadline_seconds": 0,
        },
        "changelog": {
            "repos_dir": "cloned_repos",
            "output_file": "CHANGELOG.md",
            "command": "git-cliff",
            "extra_args": [],
            "parallel": 1,
            "timeout_seconds": 300,
            "deadline_seconds": 0,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def load_descriptors(config) -> List[RepositoryDescriptor]:
    """Build the ordered descriptor list from the ``repositories`` section."""
    entries = config.get("repositories") or []
    if not isinstance(entries, list):
        raise ConfigError("'repositories' must be a list")

    descriptors = []
    for index, entry in enumerate(entries):
        try:
            descriptors.append(RepositoryDescriptor.from_config(entry))
        except ValueError as e:
            raise ConfigError(f"repositories[{index}]: {e}")
    return descriptors


def get_number(config, section: str, key: str, default, cast=float):
    """
    Read a numeric setting from ``config[section][key]``.

    Raises:
        ConfigError: if the value is not a number ``cast`` accepts
    """
    value = config.get(section, {}).get(key, default)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}")
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}")


def configure_logging(config, debug: bool = False):
    """Apply the configured log level (``debug`` forces DEBUG)."""
    settings = config.get("logging", {})
    level_name = "DEBUG" if debug else str(settings.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if settings.get("format"):
        formatter = logging.Formatter(settings["format"])
        for handler in root.handlers:
            handler.setFormatter(formatter)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: REPOFLEET_SECTION_KEY
    For example: REPOFLEET_FETCH_PARALLEL=4
    """
    env_prefix = "REPOFLEET_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        elif NUMBER_RE.match(value):
            typed_value = float(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current = current_level[matched_key]
                    if isinstance(current, (dict, list)):
                        break
                    # Numbers and switches must keep their type
                    if isinstance(current, bool) and not isinstance(typed_value, bool):
                        raise ConfigError(f"{env_key} must be true or false, got {value!r}")
                    if (isinstance(current, (int, float)) and not isinstance(current, bool)
                            and isinstance(typed_value, (bool, str))):
                        raise ConfigError(f"{env_key} must be a number, got {value!r}")
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
