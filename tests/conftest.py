"""
Pytest configuration and fixtures for the Ocean Trading Bot test suite.
"""

import pytest
import tempfile
import os
import yaml
from pathlib import Path
from unittest.mock import Mock

from ocean_trading_bot.api.relay import RelayClient
from ocean_trading_bot.data.models import OrderRequest, PlacementResult, Reservation
from ocean_trading_bot.logging.logger import clear_secrets


TEST_PRIVATE_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = "0x2c7536e3605d9c16a7a3d7b1898e529396a65c23"

CANONICAL_TEMPLATE = {
    "exchangeContractAddress": "0x516bdc037df84d70672b2d140835833d3623e451",
    "maker": TEST_ADDRESS,
    "taker": "0x00ba938cc0df182c25108d7bf2ee3d37bce07513",
    "makerTokenAddress": "0x7cc7fdd065cfa9c7f4f6a3c1bfc6dfcb1a3177aa",
    "takerTokenAddress": "0x17f15936ef3a2da5593033f84487cbe9e268f02f",
    "feeRecipient": "0x88a64b5e882e5ad851bea5e7a3c8ba7c523fecbe",
    "makerTokenAmount": "10000000000000000000",
    "takerTokenAmount": "10000000000000000000",
    "makerFee": "0",
    "takerFee": "0",
    "expirationUnixTimestampSec": "525600",
    "salt": "37800593840622773016017857006417214310534675667008850948421364357744823963318",
}

CANONICAL_PACKED_SHA = "157fad2423a9ab5a7db4e43426abbe1f39abd6998cd5e71c083078c4b1ed5cb5"
CANONICAL_PACKED_SHA256 = "441bc1669a58a06edcd84a4b4f080801139f2205e64d0abc5ee94a8a39c40b11"
CANONICAL_TYPED = "fb7425c52ba2d54d4386006e86bf71241b7fb8392e3d7e242bcee8972779e74e"

# Reservation template as returned by the relay: maker left empty
RELAY_TEMPLATE = {
    "exchangeContractAddress": "0x90fe2af704b34e0224bf2299c838e04d4dcf1364",
    "maker": "",
    "taker": "0x00ba938cc0df182c25108d7bf2ee3d37bce07513",
    "makerTokenAddress": "0xd0a1e359811322d97991e03f863a0c30c2cf029c",
    "takerTokenAddress": "0x6ff6c0ff1d68b964901f986d4c9fa3ac68346570",
    "feeRecipient": "0x88a64b5e882e5ad851bea5e7a3c8ba7c523fecbe",
    "makerTokenAmount": "27100000000000000",
    "takerTokenAmount": "881877819717396973",
    "makerFee": "0",
    "takerFee": "0",
    "expirationUnixTimestampSec": "1534651346",
    "salt": "73665372381710778176321403164539964478925879098761330710742710411655889865098",
}
RELAY_TEMPLATE_HASH = "806dc0c4f784b8a13dbb1d4facd9fff7c46abddafc08145b36dc4af093e44a65"

WETH_ADDRESS = "0xd0a1e359811322d97991e03f863a0c30c2cf029c"
ZRX_ADDRESS = "0x6ff6c0ff1d68b964901f986d4c9fa3ac68346570"


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for test configurations."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def canonical_template():
    return dict(CANONICAL_TEMPLATE)


@pytest.fixture
def relay_template():
    return dict(RELAY_TEMPLATE)


@pytest.fixture
def market_request():
    """Sample market buy request."""
    return OrderRequest(
        side='buy',
        base_token_address=ZRX_ADDRESS,
        quote_token_address=WETH_ADDRESS,
        amount=10 ** 18,
    )


@pytest.fixture
def mock_relay(relay_template):
    """Mock relay returning a reservation and accepting the placement."""
    relay = Mock(spec=RelayClient)
    relay.reserve_order.return_value = Reservation(
        reservation_id="res-123",
        template=relay_template,
        order_type='market',
    )
    relay.place_order.return_value = PlacementResult(
        order_id="0x" + RELAY_TEMPLATE_HASH,
        transaction_hash="0x" + "ab" * 32,
        filled_amount=27100000000000000,
    )
    return relay


@pytest.fixture
def config_data():
    """Valid configuration mapping."""
    return {
        'relay': {'transport_retries': 1},
        'signing': {
            'hash_strategy': 'packed_sha',
            'signature_mode': 'raw',
            'private_key_env': 'OCEAN_TEST_PRIVATE_KEY',
            'chain_id': None,
        },
        'wallet': {'address': TEST_ADDRESS},
        'logging': {'log_dir': 'logs', 'log_level': 'DEBUG', 'structured': True},
    }


@pytest.fixture
def write_config(temp_config_dir):
    """Write a configuration mapping to a temporary YAML file and return its path."""
    def _write(data, name="config.yaml"):
        path = temp_config_dir / name
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f)
        return str(path)
    return _write


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment variables and reset registered secrets."""
    test_env = {
        "OCEAN_TEST_PRIVATE_KEY": TEST_PRIVATE_KEY,
        "TESTING": "True"
    }

    # Store original values
    original_env = {}
    for key, value in test_env.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    yield

    clear_secrets()

    # Restore original values
    for key, value in original_env.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
