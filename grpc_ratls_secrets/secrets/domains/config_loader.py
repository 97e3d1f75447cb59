"""Configuration loader for grpc-ratls-secrets."""
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import yaml

from . import preferences
from .preferences import get_preference

logger = logging.getLogger(__name__)

SERVER_ADDR_ENV = "RATLS_SERVER_ADDR"


def default_config_path() -> Path:
    return preferences.preferences_dir() / "config.yml"


def _get_config_path() -> str:
    """
    Get config file path.

    Priority order:
    1. User preference (config_path in preferences.json)
    2. Default location: ~/.config/grpc-ratls-secrets/config.yml

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   ratls-secrets config set-path /path/to/your/config.yml\n\n"
        "3. Run interactive setup:\n"
        "   ratls-secrets config init\n"
    )


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def _validate_client_section(client: Any, config_path: str) -> None:
    if not isinstance(client, dict):
        raise ConfigError(f"'client' section in {config_path} must be a mapping")

    timeout = client.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"'client.timeout' must be a positive number of seconds, got: {timeout!r}")

    strict = client.get("strict_decode")
    if strict is not None and not isinstance(strict, bool):
        raise ConfigError(f"'client.strict_decode' must be true or false, got: {strict!r}")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Explicit path; resolved from preferences/defaults when None

    Returns:
        Dict with keys:
        - server: dict with address
        - attestation: dict with config_path (channel configuration blob)
        - client: optional dict with timeout and strict_decode

    Raises:
        FileNotFoundError: If no config path can be resolved
        ConfigError: If config file is invalid or the attestation config doesn't exist
    """
    # Resolved on every call so preference changes apply immediately
    if config_path is None:
        config_path = _get_config_path()

    if not os.path.exists(config_path):
        raise ConfigError(f"Configuration file not found at: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    server = config.get('server')
    if not isinstance(server, dict):
        raise ConfigError(
            f"Missing 'server' section in config at {config_path}\n"
            f"Required format:\n"
            f"server:\n"
            f"  address: host:port"
        )

    if not server.get('address'):
        raise ConfigError("Missing 'server.address' in config")

    attestation = config.get('attestation')
    if not isinstance(attestation, dict):
        raise ConfigError(
            f"Missing 'attestation' section in config at {config_path}\n"
            f"Required format:\n"
            f"attestation:\n"
            f"  config_path: /path/to/channel-config.json"
        )

    if 'config_path' not in attestation:
        raise ConfigError(
            "Missing 'attestation.config_path' in config\n"
            "Please specify the path to the channel configuration JSON file."
        )

    attestation_path = os.path.expanduser(str(attestation['config_path']))

    if not os.path.exists(attestation_path):
        raise ConfigError(
            f"Attestation config file not found at: {attestation_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )

    if not os.path.isfile(attestation_path):
        raise ConfigError(f"Attestation config path is not a file: {attestation_path}")

    if 'client' in config:
        _validate_client_section(config['client'], config_path)

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using server address: {server['address']}")
    logger.debug(f"Using attestation config: {attestation_path}")

    return config


def get_server_address(config: Dict[str, Any]) -> str:
    """Server address, with RATLS_SERVER_ADDR overriding the config file."""
    env_addr = os.getenv(SERVER_ADDR_ENV)
    if env_addr:
        logger.debug(f"Using {SERVER_ADDR_ENV} from environment: {env_addr}")
        return env_addr
    return config['server']['address']


def read_channel_config(config: Dict[str, Any]) -> str:
    """
    Return the attestation configuration blob as text.

    The blob is handed to the channel factory unparsed.

    Raises:
        ConfigError: If the file can't be read
    """
    path = os.path.expanduser(str(config['attestation']['config_path']))
    try:
        with open(path, 'r') as f:
            return f.read()
    except OSError as e:
        raise ConfigError(f"Failed to read attestation config at {path}: {e}")


def get_client_options(config: Dict[str, Any]) -> Tuple[Optional[float], bool]:
    """Return (timeout, strict_decode); defaults are (None, True)."""
    client = config.get('client') or {}
    strict = client.get('strict_decode')
    return client.get('timeout'), True if strict is None else strict
