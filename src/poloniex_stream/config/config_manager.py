"""
Configuration Loader

YAML-based configuration for the stream client.

Loading order:
1. `.env` file (python-dotenv, never overrides the real environment)
2. `config.yaml` from an explicit path or the first guessed location
3. `${VAR}` / `${VAR:default}` substitution from the environment
4. Struct construction and validation

Example config.yaml:

    poloniex:
      websocket_url: wss://ws.poloniex.com/ws/
      symbol: BTC_USDT
      credentials:
        api_key: "${POLONIEX_API_KEY:}"
        secret_key: "${POLONIEX_SECRET_KEY:}"
      websocket:
        connect_timeout: 10
        ping_interval: 20
    logging:
      environment: dev
      console:
        min_level: DEBUG
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import msgspec
import yaml
from dotenv import load_dotenv

from poloniex_stream.infrastructure.exceptions import ConfigurationError
from poloniex_stream.infrastructure.logging.structs import LoggingConfig
from .structs import PoloniexConfig

_logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')


def guess_file_paths(file_name: str) -> List[Path]:
    """Returns a list of possible file locations to search."""
    return [
        Path(__file__).parent.parent.parent.parent / file_name,  # Project root
        Path.cwd() / file_name,                                  # Current working directory
        Path.home() / file_name,                                 # User home directory (fallback)
    ]


def substitute_env_vars(content: str) -> str:
    """
    Substitute environment variables in configuration content.

    Supports syntax:
    - ${VAR_NAME} - Environment variable, empty when unset
    - ${VAR_NAME:default} - Optional with default value
    """
    def replace_var(match):
        var_expr = match.group(1)

        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
            env_value = os.getenv(var_name.strip())
            if env_value is None:
                return default_value
            return env_value

        var_name = var_expr.strip()
        env_value = os.getenv(var_name)
        if env_value is None:
            _logger.warning(f"Environment variable {var_name} not set - using empty value")
            return ""
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, content)


def _load_env_file() -> None:
    for env_path in guess_file_paths('.env'):
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
            _logger.info(f"Loaded environment variables from: {env_path}")
            return
    _logger.debug("No .env file found - using system environment variables only")


def _read_yaml(path: Optional[Union[str, Path]]) -> Tuple[Dict[str, Any], Path]:
    candidates = [Path(path)] if path is not None else guess_file_paths('config.yaml')

    for config_path in candidates:
        if not config_path.exists():
            continue
        try:
            raw_content = config_path.read_text()
            data = yaml.safe_load(substitute_env_vars(raw_content)) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")
        return data, config_path

    searched = ", ".join(str(p) for p in candidates)
    raise ConfigurationError(f"No valid config.yaml found (searched: {searched})")


def _build_section(data: Dict[str, Any], section: str, struct_type: type):
    section_data = data.get(section) or {}
    try:
        config = msgspec.convert(section_data, type=struct_type, str_keys=True)
        config.validate()
    except (msgspec.ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid '{section}' configuration: {e}", section) from e
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> Tuple[PoloniexConfig, LoggingConfig]:
    """
    Load client and logging configuration.

    Args:
        path: Explicit config.yaml path; guessed locations are searched if omitted

    Returns:
        (PoloniexConfig, LoggingConfig)

    Raises:
        ConfigurationError: If no file is found or a section is invalid
    """
    _load_env_file()
    data, config_path = _read_yaml(path)
    _logger.info(f"Configuration loaded from: {config_path}")

    client_config = _build_section(data, 'poloniex', PoloniexConfig)
    logging_config = _build_section(data, 'logging', LoggingConfig)
    return client_config, logging_config
