#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("buildbump")


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. BUILDBUMP_CONFIG environment variable
    2. ~/.buildbump/ directory
    """
    if 'BUILDBUMP_CONFIG' in os.environ:
        path = Path(os.environ['BUILDBUMP_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.buildbump'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                import yaml
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix.lower() in ['.toml']:
            # tomllib is read-only
            import toml
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            import yaml
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except Exception as e:
        logger.error(f"Error saving config to {config_path}: {e}")


def get_default_config():
    """Get default configuration."""
    return {
        "registry": {
            "url": "",               # e.g. https://registry.homelab.local
            "namespace": "",         # image name prefix, e.g. "homelab"
            "username": "",
            "password": "",
            "timeout_seconds": 10,
            "verify_tls": True
        },
        "build": {
            "poll_interval_seconds": 5,
            "timeout_seconds": 300,
            "namespace": "build",    # Kubernetes namespace for build jobs
            "kubectl": "kubectl",
            "builder_image": "gcr.io/kaniko-project/executor:latest",
            "git_url": "",           # repository the builder clones
            "git_branch": "main",    # branch holding commits built by hash
            "backoff_limit": 0
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def configure_logging(config=None, verbose=False):
    """Apply the logging section of the configuration."""
    config = config or get_default_config()
    log_config = config.get("logging", {})
    level = "DEBUG" if verbose else str(log_config.get("level", "INFO")).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    log_format = log_config.get("format")
    if log_format:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(log_format))


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
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: BUILDBUMP_SECTION_KEY
    For example: BUILDBUMP_BUILD_TIMEOUT_SECONDS=600
    """
    env_prefix = "BUILDBUMP_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "BUILDBUMP_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        elif value.count('.') == 1 and value.replace('.', '').isdigit():
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
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # env var is longer than the config path it matched
                break

    return config
