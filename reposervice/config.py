"""
Configuration for reposervice.

Configuration is assembled as a nested dict (defaults, then config file,
then REPOSERVICE_* environment variables) and frozen into a ServiceConfig
that is passed explicitly to every component. Nothing here is mutated after
startup.
"""

import dataclasses
import json
import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .domain.operation import ErrorRule
from .exit_codes import ConfigError
from .normalizers import IdentityNormalizer

logger = logging.getLogger(__name__)

ENV_PREFIX = "REPOSERVICE_"

DESTINATION_EXISTS = "already exists and is not an empty directory"

DEFAULT_SSH_HELP = (
    "Please, make sure an SSH key is added to your account "
    "before working with remote repositories."
)


def configure_logging(level: str = "INFO", fmt: str = "%(levelname)s: %(message)s") -> None:
    """Send reposervice log records to stderr."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=fmt,
        handlers=[
            logging.StreamHandler(sys.stderr)  # Default to stderr
        ]
    )


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. REPOSERVICE_CONFIG environment variable
    2. ~/.reposervice/ directory
    """
    if 'REPOSERVICE_CONFIG' in os.environ:
        path = Path(os.environ['REPOSERVICE_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = Path.home() / '.reposervice'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists():
            return path

    return config_dir / 'config.json'


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "defaults": {
            "branch": "master",
            "commit": "HEAD",
            "silent": True,
            "blocking": False,
        },
        "execution": {
            "timeout": None,
            "max_workers": 4,
        },
        "directories": {
            "remove_missing_ok": False,
        },
        "errors": {
            "allowed_patterns": [
                {"label": "destination-exists", "pattern": DESTINATION_EXISTS},
            ],
        },
        "diff": {
            "extension": ".csv",
        },
        "credentials": {
            "ssh_host": "git@github.com",
            "failure_threshold": 1,
            "help": DEFAULT_SSH_HELP,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
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
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _typed_env_value(value: str):
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config, environ=None):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: REPOSERVICE_SECTION_KEY
    For example: REPOSERVICE_DIRECTORIES_REMOVE_MISSING_OK=true
    """
    environ = os.environ if environ is None else environ

    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'REPOSERVICE_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')
        typed_value = _typed_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key that prefixes the remaining parts wins
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                logger.debug(f"Ignoring unknown config override {env_key}")
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f) or {}
        if suffix in ('.yaml', '.yml'):
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        with open(config_path, 'r') as f:
            return json.load(f) or {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e


def load_config_dict(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the merged configuration dict (defaults, file, environment)."""
    config_path = Path(config_path) if config_path else get_config_path()
    config = get_default_config()

    if config_path.exists():
        file_config = _read_config_file(config_path)
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded config from {config_path}")

    return apply_env_overrides(config)


def load_config(config_path: Optional[Path] = None) -> "ServiceConfig":
    """Load configuration and freeze it into a ServiceConfig."""
    return ServiceConfig.from_dict(load_config_dict(config_path))


@dataclass(frozen=True)
class ServiceConfig:
    """Immutable, process-wide settings for reposervice."""
    branch: str = "master"
    commit: str = "HEAD"
    silent: bool = True
    blocking: bool = False
    timeout: Optional[float] = None
    max_workers: int = 4
    remove_missing_ok: bool = False
    allowed_errors: Tuple[ErrorRule, ...] = field(
        default_factory=lambda: (ErrorRule.contains("destination-exists", DESTINATION_EXISTS),)
    )
    diff_extension: str = ".csv"
    ssh_host: str = "git@github.com"
    ssh_failure_threshold: int = 1
    ssh_help: str = DEFAULT_SSH_HELP

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ServiceConfig":
        """Build a ServiceConfig from a (merged) configuration dict."""
        config = merge_configs(get_default_config(), config or {})
        defaults = config["defaults"]
        execution = config["execution"]
        credentials = config["credentials"]

        rules = []
        for entry in config["errors"].get("allowed_patterns") or []:
            if not isinstance(entry, dict) or not entry.get("label") or not entry.get("pattern"):
                raise ConfigError(f"Invalid allowed error pattern: {entry!r}")
            rules.append(ErrorRule.contains(str(entry["label"]), str(entry["pattern"])))

        try:
            max_workers = int(execution.get("max_workers") or 1)
            timeout = execution.get("timeout")
            timeout = float(timeout) if timeout not in (None, "", 0) else None
            threshold = int(credentials.get("failure_threshold", 1))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric configuration value: {e}") from e

        if max_workers < 1:
            raise ConfigError("execution.max_workers must be at least 1")

        return cls(
            branch=str(defaults["branch"]),
            commit=str(defaults["commit"]),
            silent=bool(defaults["silent"]),
            blocking=bool(defaults["blocking"]),
            timeout=timeout,
            max_workers=max_workers,
            remove_missing_ok=bool(config["directories"]["remove_missing_ok"]),
            allowed_errors=tuple(rules),
            diff_extension=str(config["diff"]["extension"]),
            ssh_host=str(credentials["ssh_host"]),
            ssh_failure_threshold=threshold,
            ssh_help=str(credentials.get("help") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Log/JSON friendly view (rules reduced to their labels)."""
        result = dataclasses.asdict(self)
        result["allowed_errors"] = [rule.label for rule in self.allowed_errors]
        return result


def with_defaults(options, config: ServiceConfig):
    """
    Return a copy of ``options`` with every unset field taken from ``config``.

    Pure: ``options`` is left untouched.
    """
    fallbacks = {
        'branch': config.branch,
        'commit': config.commit,
        'silent': config.silent,
        'blocking': config.blocking,
        'normalizer': IdentityNormalizer(),
        'host': config.ssh_host,
    }
    fields = getattr(options, '__dataclass_fields__', {})
    updates = {
        name: value
        for name, value in fallbacks.items()
        if name in fields and getattr(options, name) is None
    }
    return dataclasses.replace(options, **updates) if updates else options
