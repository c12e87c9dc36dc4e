#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import sys

import yaml

from .domain.rule import RuleTable
from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("labelfixer")

CONFIG_FILENAMES = ['config.yaml', 'config.yml', 'config.json', 'config.toml']

# Overrides kept verbatim; a token or repo name like "1" or "yes" is not a flag
STRING_ENV_KEYS = {
    "LABELFIXER_GITHUB_TOKEN",
    "LABELFIXER_GITHUB_OWNER",
    "LABELFIXER_GITHUB_REPO",
    "LABELFIXER_SNAPSHOT_PATH",
}


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. LABELFIXER_CONFIG environment variable
    2. ~/.labelfixer/ directory
    """
    if 'LABELFIXER_CONFIG' in os.environ:
        path = Path(os.environ['LABELFIXER_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = Path.home() / '.labelfixer'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.yaml'


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """Parse a config file based on its suffix."""
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f)
        else:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return file_config


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration.

    Defaults are merged with the config file (if any), then with
    LABELFIXER_* environment variable overrides.

    Raises:
        ConfigError: If an explicit path is missing or the file is malformed
    """
    if config_path is not None:
        config_path = Path(config_path).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        logger.debug(f"Loading config from {config_path}")
        config = merge_configs(config, _read_config_file(config_path))

    return apply_env_overrides(config)


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> Path:
    """Save configuration to file (YAML unless the path says otherwise)."""
    config_path = Path(config_path) if config_path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() == '.json':
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2, ensure_ascii=False)
    elif config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    else:
        raise ConfigError(f"Cannot write config in {config_path.suffix or 'unknown'} format")

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "github": {
            "owner": "",
            "repo": "",
            "token": "",
            "max_concurrent_requests": 10,
            "rate_limit": {
                "max_retries": 3,
                "max_delay_seconds": 60,
            }
        },
        "snapshot": {
            "path": "issues.json",
        },
        "run": {
            "dry_run": True,
            "remove_superseded": False,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
        # None means DEFAULT_RULES
        "rules": None,
    }


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
    Environment variables follow the pattern: LABELFIXER_SECTION_SUBSECTION_KEY
    For example: LABELFIXER_RUN_DRY_RUN=false
    """
    env_prefix = "LABELFIXER_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if env_key in STRING_ENV_KEYS:
            typed_value = value
        elif value.lower() in ('true', '1', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', '0', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
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

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                # Path conflict, e.g., env var is longer but we found a non-dict value
                break

            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Apply the logging section to the labelfixer logger."""
    section = config.get("logging", {})
    level = "DEBUG" if verbose else str(section.get("level", "INFO")).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))

    fmt = section.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def redact_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the config with the GitHub token masked for display."""
    redacted = merge_configs(config, {})
    github = dict(redacted.get("github") or {})
    if github.get("token"):
        github["token"] = "***"
    redacted["github"] = github
    return redacted


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable configuration for one run.

    Built once at startup and passed to the services that need it.
    """
    rules: RuleTable
    owner: str = ""
    repo: str = ""
    snapshot_path: Path = Path("issues.json")
    dry_run: bool = True
    remove_superseded: bool = False
    max_concurrent_requests: int = 10

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'RunConfig':
        """
        Build from a loaded config dict.

        Raises:
            ConfigError: If the rule table or any value is malformed
        """
        github = config.get("github") or {}
        snapshot = config.get("snapshot") or {}
        run = config.get("run") or {}

        concurrency = github.get("max_concurrent_requests", 10)
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ConfigError("'github.max_concurrent_requests' must be a positive integer")

        for section, key in (("run", "dry_run"), ("run", "remove_superseded")):
            if not isinstance(run.get(key, False), bool):
                raise ConfigError(f"'{section}.{key}' must be true or false")

        return cls(
            rules=RuleTable.from_config(config.get("rules")),
            owner=str(github.get("owner") or ""),
            repo=str(github.get("repo") or ""),
            snapshot_path=Path(str(snapshot.get("path") or "issues.json")).expanduser(),
            dry_run=run.get("dry_run", True),
            remove_superseded=run.get("remove_superseded", False),
            max_concurrent_requests=concurrency,
        )

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def require_repository(self) -> None:
        """Raise ConfigError unless owner and repo are configured."""
        if not self.owner or not self.repo:
            raise ConfigError("GitHub owner and repo must be configured ('github.owner', 'github.repo')")
