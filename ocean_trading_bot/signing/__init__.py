"""Canonical encoding, hashing and signing of relay orders."""

from .codec import FieldType, encode, encode_padded, encode_field, normalize_address, to_uint256
from .hasher import HashStrategy, OrderHasher, hash_order, resolve_strategy
from .signer import Signer, SigningKey, SignatureMode, Signature, recover_address, address_of

__all__ = [
    'FieldType',
    'encode',
    'encode_padded',
    'encode_field',
    'normalize_address',
    'to_uint256',
    'HashStrategy',
    'OrderHasher',
    'hash_order',
    'resolve_strategy',
    'Signer',
    'SigningKey',
    'SignatureMode',
    'Signature',
    'recover_address',
    'address_of',
]
