"""
Order hashing strategies.

``packed_sha`` is the Solidity ``sha3`` (keccak-256) over tightly packed
fields, the scheme 0x v1 settlement contracts recompute. ``packed_sha256``
is the Solidity ``sha256`` variant over the same packing. ``typed`` is the
two-level typed hash: keccak of the schema hash followed by the hash of the
32-byte padded values.
"""

import hashlib
import logging
from enum import Enum
from typing import Any, Optional, Union

from eth_utils import keccak

from ..errors import UnsupportedStrategy
from .codec import encode, encode_padded


logger = logging.getLogger(__name__)


class HashStrategy(str, Enum):
    """Named order hashing schemes."""

    PACKED_SHA = "packed_sha"
    PACKED_SHA256 = "packed_sha256"
    TYPED = "typed"


DEFAULT_STRATEGY = HashStrategy.PACKED_SHA


def resolve_strategy(strategy: Union[HashStrategy, str]) -> HashStrategy:
    """Map a strategy name to its enum member."""
    if isinstance(strategy, HashStrategy):
        return strategy
    if isinstance(strategy, str):
        try:
            return HashStrategy(strategy.strip().lower())
        except ValueError:
            pass
    raise UnsupportedStrategy(f"Unsupported hashing strategy: {strategy!r}")


def hash_order(order: Any, strategy: Union[HashStrategy, str] = DEFAULT_STRATEGY) -> bytes:
    """
    Compute the 32-byte hash identifying an order.

    Args:
        order: Order exposing ``typed_fields()`` and ``type_string()``
        strategy: Hashing scheme to apply

    Returns:
        bytes: 32-byte order hash

    Raises:
        UnsupportedStrategy: If the strategy name is unknown
        EncodingError: If any order field cannot be encoded
    """
    resolved = resolve_strategy(strategy)
    fields = order.typed_fields()

    if resolved is HashStrategy.PACKED_SHA:
        return keccak(encode(fields))

    if resolved is HashStrategy.PACKED_SHA256:
        return hashlib.sha256(encode(fields)).digest()

    schema_hash = keccak(order.type_string().encode('utf-8'))
    return keccak(schema_hash + keccak(encode_padded(fields)))


class OrderHasher:
    """Hashes orders with a default strategy that calls may override."""

    def __init__(self, strategy: Union[HashStrategy, str] = DEFAULT_STRATEGY):
        self.strategy = resolve_strategy(strategy)

    def hash(self, order: Any, strategy: Optional[Union[HashStrategy, str]] = None) -> bytes:
        order_hash = hash_order(order, strategy if strategy is not None else self.strategy)
        logger.debug(f"Order hash 0x{order_hash.hex()}")
        return order_hash

    def hash_hex(self, order: Any, strategy: Optional[Union[HashStrategy, str]] = None) -> str:
        return '0x' + self.hash(order, strategy).hex()
