"""Configuration loading and validation."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass
import logging

from ..api.relay import RelayClient
from ..errors import EncodingError, InvalidKey, UnsupportedStrategy
from ..logging.logger import LoggerManager, initialize_logging, register_secret
from ..order.lifecycle import OrderLifecycle
from ..signing.codec import normalize_address
from ..signing.hasher import HashStrategy, resolve_strategy
from ..signing.signer import Signer, SignatureMode, SigningKey

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/default.yaml"
DEFAULT_PRIVATE_KEY_ENV = "OCEAN_PRIVATE_KEY"
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    message: str
    config_path: Optional[str] = None
    field_path: Optional[str] = None
    expected_type: Optional[str] = None
    actual_value: Optional[Any] = None


def _type_name(expected_type) -> str:
    if isinstance(expected_type, tuple):
        return ' or '.join(t.__name__ for t in expected_type)
    return expected_type.__name__


class ConfigManager:
    """Manages YAML configuration loading and validation.

    Private keys are never read from the configuration file. The
    ``signing.private_key_env`` entry names the environment variable that
    holds the key.
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize ConfigManager.

        Args:
            config_path: Optional path to main config file
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = {}
        self._loaded = False

    def load_config(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Args:
            config_path: Optional path to config file. Uses instance path if not provided.

        Returns:
            Dictionary containing loaded configuration

        Raises:
            ConfigValidationError: If config file is invalid or missing
        """
        path = config_path or self.config_path

        try:
            config_file = Path(path)
            if not config_file.exists():
                raise ConfigValidationError(
                    f"Configuration file not found: {path}",
                    config_path=path
                )

            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)

            if config_data is None:
                raise ConfigValidationError(
                    f"Configuration file is empty: {path}",
                    config_path=path
                )

            if not isinstance(config_data, dict):
                raise ConfigValidationError(
                    f"Configuration must be a dictionary, got {type(config_data).__name__}",
                    config_path=path,
                    expected_type="dict",
                    actual_value=type(config_data).__name__
                )

            self._reject_embedded_keys(config_data, path)

            # Validate required sections
            self._validate_config_structure(config_data, path)

            # Validate individual sections
            self._validate_relay_config(config_data['relay'], path)
            self._validate_signing_config(config_data['signing'], path)
            self._validate_wallet_config(config_data['wallet'], path)
            self._validate_logging_config(config_data.get('logging', {}), path)

            self._config = config_data
            self._loaded = True

            logger.info(f"Successfully loaded configuration from {path}")
            return config_data.copy()

        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Invalid YAML syntax in {path}: {str(e)}",
                config_path=path
            )
        except ConfigValidationError:
            raise
        except OSError as e:
            raise ConfigValidationError(
                f"Failed to load configuration from {path}: {str(e)}",
                config_path=path
            )

    def _reject_embedded_keys(self, config: Dict[str, Any], path: str) -> None:
        """Refuse configuration files that carry a private key.

        The value is never echoed back.
        """
        for section_name, section in config.items():
            if section_name == 'private_key' or (isinstance(section, dict) and 'private_key' in section):
                field_path = 'private_key' if section_name == 'private_key' else f"{section_name}.private_key"
                raise ConfigValidationError(
                    f"Private keys must not be stored in configuration files ({field_path} in {path}); "
                    "set the environment variable named by signing.private_key_env instead",
                    config_path=path,
                    field_path=field_path
                )

    def _validate_config_structure(self, config: Dict[str, Any], path: str) -> None:
        """Validate that config has required structure."""
        required_sections = ['relay', 'signing', 'wallet']

        for section in required_sections:
            if section not in config:
                raise ConfigValidationError(
                    f"Missing required configuration section '{section}' in {path}",
                    config_path=path,
                    field_path=section
                )

            if not isinstance(config[section], dict):
                raise ConfigValidationError(
                    f"Configuration section '{section}' must be a dictionary in {path}",
                    config_path=path,
                    field_path=section,
                    expected_type="dict",
                    actual_value=type(config[section]).__name__
                )

        if 'logging' in config and not isinstance(config['logging'], dict):
            raise ConfigValidationError(
                f"Configuration section 'logging' must be a dictionary in {path}",
                config_path=path,
                field_path='logging',
                expected_type="dict",
                actual_value=type(config['logging']).__name__
            )

    def _check_fields(self, section_name: str, section: Dict[str, Any],
                      fields: Dict[str, Any], path: str, required: bool = True) -> None:
        for field, expected_type in fields.items():
            if field not in section:
                if not required:
                    continue
                raise ConfigValidationError(
                    f"Missing required {section_name} config field '{field}' in {path}",
                    config_path=path,
                    field_path=f"{section_name}.{field}"
                )

            value = section[field]
            # bool is an int subclass; only accept it where bool is expected
            wrong_bool = isinstance(value, bool) and expected_type is not bool
            if wrong_bool or not isinstance(value, expected_type):
                raise ConfigValidationError(
                    f"{section_name.capitalize()} config field '{field}' must be of type {_type_name(expected_type)} in {path}",
                    config_path=path,
                    field_path=f"{section_name}.{field}",
                    expected_type=_type_name(expected_type),
                    actual_value=type(value).__name__
                )

    def _validate_relay_config(self, relay_config: Dict[str, Any], path: str) -> None:
        """Validate relay configuration section."""
        self._check_fields('relay', relay_config, {'transport_retries': int}, path)

        if relay_config['transport_retries'] not in (0, 1):
            raise ConfigValidationError(
                f"Relay config 'transport_retries' must be 0 or 1 in {path}",
                config_path=path,
                field_path="relay.transport_retries",
                expected_type="0 or 1",
                actual_value=relay_config['transport_retries']
            )

    def _validate_signing_config(self, signing_config: Dict[str, Any], path: str) -> None:
        """Validate signing configuration section."""
        required_fields = {
            'hash_strategy': str,
            'signature_mode': str,
            'private_key_env': str,
        }
        self._check_fields('signing', signing_config, required_fields, path)

        try:
            resolve_strategy(signing_config['hash_strategy'])
        except UnsupportedStrategy:
            raise ConfigValidationError(
                f"Signing config 'hash_strategy' must be one of {[s.value for s in HashStrategy]} in {path}",
                config_path=path,
                field_path="signing.hash_strategy",
                expected_type=f"one of {[s.value for s in HashStrategy]}",
                actual_value=signing_config['hash_strategy']
            )

        valid_modes = [m.value for m in SignatureMode]
        if signing_config['signature_mode'] not in valid_modes:
            raise ConfigValidationError(
                f"Signing config 'signature_mode' must be one of {valid_modes} in {path}",
                config_path=path,
                field_path="signing.signature_mode",
                expected_type=f"one of {valid_modes}",
                actual_value=signing_config['signature_mode']
            )

        if not signing_config['private_key_env'].strip():
            raise ConfigValidationError(
                f"Signing config 'private_key_env' must name an environment variable in {path}",
                config_path=path,
                field_path="signing.private_key_env"
            )

        chain_id = signing_config.get('chain_id')
        if chain_id is not None and (isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 0):
            raise ConfigValidationError(
                f"Signing config 'chain_id' must be a non-negative integer or null in {path}",
                config_path=path,
                field_path="signing.chain_id",
                expected_type="int or null",
                actual_value=chain_id
            )

    def _validate_wallet_config(self, wallet_config: Dict[str, Any], path: str) -> None:
        """Validate wallet configuration section."""
        self._check_fields('wallet', wallet_config, {'address': str}, path)

        try:
            normalize_address(wallet_config['address'])
        except EncodingError as e:
            raise ConfigValidationError(
                f"Wallet config 'address' is not a valid address in {path}: {e}",
                config_path=path,
                field_path="wallet.address",
                expected_type="20-byte hex address",
                actual_value=wallet_config['address']
            )

    def _validate_logging_config(self, logging_config: Dict[str, Any], path: str) -> None:
        """Validate optional logging configuration section."""
        optional_fields = {
            'log_dir': str,
            'log_level': str,
            'structured': bool,
        }
        self._check_fields('logging', logging_config, optional_fields, path, required=False)

        level = logging_config.get('log_level')
        if level is not None and level.upper() not in LOG_LEVELS:
            raise ConfigValidationError(
                f"Logging config 'log_level' must be one of {LOG_LEVELS} in {path}",
                config_path=path,
                field_path="logging.log_level",
                expected_type=f"one of {LOG_LEVELS}",
                actual_value=level
            )

    def get_config(self) -> Dict[str, Any]:
        """Get current configuration. Loads if not already loaded."""
        if not self._loaded:
            self.load_config()
        return self._config.copy()

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get specific configuration section."""
        config = self.get_config()
        if section not in config:
            raise ConfigValidationError(f"Configuration section '{section}' not found")
        return config[section].copy()

    def get_hash_strategy(self) -> HashStrategy:
        return resolve_strategy(self.get_section('signing')['hash_strategy'])

    def get_transport_retries(self) -> int:
        return self.get_section('relay')['transport_retries']

    def get_signer(self) -> Signer:
        """Build a Signer from the signing section."""
        signing = self.get_section('signing')
        return Signer(mode=signing['signature_mode'], chain_id=signing.get('chain_id'))

    def get_wallet_address(self) -> str:
        return normalize_address(self.get_section('wallet')['address'])

    def get_private_key(self) -> SigningKey:
        """Load the signing key from the configured environment variable.

        The raw value is registered with the log redaction filter before
        anything else happens to it.

        Raises:
            InvalidKey: If the variable is unset or does not hold a valid key
        """
        env_name = self.get_section('signing').get('private_key_env', DEFAULT_PRIVATE_KEY_ENV)
        raw_key = os.getenv(env_name)
        if not raw_key:
            raise InvalidKey(f"Environment variable '{env_name}' is not set")

        register_secret(raw_key.strip())
        try:
            return SigningKey.from_hex(raw_key)
        except InvalidKey as e:
            raise InvalidKey(f"Environment variable '{env_name}' does not hold a valid private key: {e}") from None

    def create_lifecycle(self, relay: RelayClient) -> OrderLifecycle:
        """Create an OrderLifecycle wired from this configuration.

        Args:
            relay: RelayClient implementation

        Returns:
            OrderLifecycle ready for ``reserve`` or ``run``
        """
        return OrderLifecycle(
            relay=relay,
            wallet_address=self.get_wallet_address(),
            private_key=self.get_private_key(),
            hash_strategy=self.get_hash_strategy(),
            signer=self.get_signer(),
            max_transport_retries=self.get_transport_retries(),
        )

    def initialize_logging(self, **kwargs) -> LoggerManager:
        """Initialize global logging from the logging section."""
        logging_config = self.get_config().get('logging', {})
        return initialize_logging(
            log_dir=logging_config.get('log_dir', 'logs'),
            log_level=logging_config.get('log_level', 'INFO'),
            structured_format=logging_config.get('structured', True),
            **kwargs
        )
