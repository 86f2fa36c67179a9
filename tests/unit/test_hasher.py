"""Unit tests for order hashing strategies."""

import hashlib

import pytest
from eth_utils import keccak

from ocean_trading_bot.data.models import Order, ORDER_TYPE_STRING
from ocean_trading_bot.errors import EncodingError, UnsupportedStrategy
from ocean_trading_bot.signing.codec import encode, encode_padded
from ocean_trading_bot.signing.hasher import (
    DEFAULT_STRATEGY, HashStrategy, OrderHasher, hash_order, resolve_strategy,
)

from conftest import (
    CANONICAL_TEMPLATE, CANONICAL_PACKED_SHA, CANONICAL_PACKED_SHA256, CANONICAL_TYPED,
    RELAY_TEMPLATE, RELAY_TEMPLATE_HASH, TEST_ADDRESS,
)


@pytest.fixture
def canonical_order():
    return Order.from_template(CANONICAL_TEMPLATE)


class TestHashStrategies:
    """Pinned hashes for the canonical order."""

    def test_default_is_packed_keccak(self):
        assert DEFAULT_STRATEGY is HashStrategy.PACKED_SHA

    def test_packed_sha(self, canonical_order):
        assert hash_order(canonical_order).hex() == CANONICAL_PACKED_SHA

    def test_packed_sha256(self, canonical_order):
        assert hash_order(canonical_order, HashStrategy.PACKED_SHA256).hex() == CANONICAL_PACKED_SHA256

    def test_typed(self, canonical_order):
        assert hash_order(canonical_order, "typed").hex() == CANONICAL_TYPED

    def test_strategies_are_distinct(self, canonical_order):
        hashes = {hash_order(canonical_order, s) for s in HashStrategy}
        assert len(hashes) == len(HashStrategy)

    def test_packed_is_keccak_of_encoding(self, canonical_order):
        packed = encode(canonical_order.typed_fields())
        assert hash_order(canonical_order) == keccak(packed)
        assert hash_order(canonical_order, "packed_sha256") == hashlib.sha256(packed).digest()

    def test_typed_composition(self, canonical_order):
        schema_hash = keccak(ORDER_TYPE_STRING.encode('utf-8'))
        values_hash = keccak(encode_padded(canonical_order.typed_fields()))
        assert hash_order(canonical_order, "typed") == keccak(schema_hash + values_hash)

    def test_type_string(self):
        assert ORDER_TYPE_STRING == (
            "Order(address exchangeContractAddress,address maker,address taker,"
            "address makerTokenAddress,address takerTokenAddress,address feeRecipient,"
            "uint256 makerTokenAmount,uint256 takerTokenAmount,uint256 makerFee,"
            "uint256 takerFee,uint256 expirationUnixTimestampSec,uint256 salt)"
        )

    def test_relay_template_with_stamped_maker(self):
        order = Order.from_template(RELAY_TEMPLATE, maker=TEST_ADDRESS)
        assert hash_order(order).hex() == RELAY_TEMPLATE_HASH

    def test_hash_is_32_bytes(self, canonical_order):
        for strategy in HashStrategy:
            assert len(hash_order(canonical_order, strategy)) == 32


class TestResolveStrategy:
    """Test cases for strategy name resolution."""

    @pytest.mark.parametrize("name,expected", [
        ("packed_sha", HashStrategy.PACKED_SHA),
        ("PACKED_SHA256", HashStrategy.PACKED_SHA256),
        (" typed ", HashStrategy.TYPED),
        (HashStrategy.TYPED, HashStrategy.TYPED),
    ])
    def test_known_names(self, name, expected):
        assert resolve_strategy(name) is expected

    @pytest.mark.parametrize("name", ["eip712", "", "sha3", None, 1])
    def test_unknown_names(self, name):
        with pytest.raises(UnsupportedStrategy):
            resolve_strategy(name)

    def test_unknown_strategy_in_hash_order(self, canonical_order):
        with pytest.raises(UnsupportedStrategy):
            hash_order(canonical_order, "md5")


class TestOrderHasher:
    """Test cases for OrderHasher."""

    def test_default_strategy(self, canonical_order):
        hasher = OrderHasher()
        assert hasher.hash(canonical_order).hex() == CANONICAL_PACKED_SHA

    def test_configured_strategy(self, canonical_order):
        hasher = OrderHasher("packed_sha256")
        assert hasher.hash(canonical_order).hex() == CANONICAL_PACKED_SHA256

    def test_per_call_override(self, canonical_order):
        hasher = OrderHasher()
        assert hasher.hash(canonical_order, HashStrategy.TYPED).hex() == CANONICAL_TYPED
        assert hasher.strategy is HashStrategy.PACKED_SHA

    def test_hash_hex(self, canonical_order):
        assert OrderHasher().hash_hex(canonical_order) == "0x" + CANONICAL_PACKED_SHA

    def test_invalid_strategy_at_construction(self):
        with pytest.raises(UnsupportedStrategy):
            OrderHasher("keccak512")

    def test_unencodable_order(self):
        class BrokenOrder:
            def typed_fields(self):
                return [("not-an-address", "address")]

            @staticmethod
            def type_string():
                return "Broken(address a)"

        with pytest.raises(EncodingError):
            OrderHasher().hash(BrokenOrder())
