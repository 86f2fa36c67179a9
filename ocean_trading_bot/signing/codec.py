"""
Canonical field packing for order hashing.

Fields are packed with fixed per-type widths, strictly big-endian, with no
delimiters and no length prefixes. The settlement contract recomputes the
same bytes from the same field order, so widths and ordering here are part
of the wire contract.

Values are validated and normalized here; the byte layout itself comes from
``eth_abi`` (``encode_packed`` for the tight form, ``encode`` for the
word-padded form).
"""

from enum import Enum
from typing import Any, Iterable, List, Tuple, Union

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError as AbiEncodingError
from eth_abi.packed import encode_packed
from eth_utils import decode_hex, is_hex

from ..errors import EncodingError


ADDRESS_WIDTH = 20
WORD_WIDTH = 32
UINT256_MAX = 2 ** 256 - 1
UINT256_MAX_DIGITS = len(str(UINT256_MAX))


class FieldType(str, Enum):
    """Type tags understood by the codec."""

    ADDRESS = "address"
    UINT256 = "uint256"


FieldSpec = Tuple[Any, Union[FieldType, str]]


def _resolve_type(type_tag: Union[FieldType, str]) -> FieldType:
    if isinstance(type_tag, FieldType):
        return type_tag
    if isinstance(type_tag, str):
        try:
            return FieldType(type_tag.lower())
        except ValueError:
            pass
    raise EncodingError(f"Unsupported field type: {type_tag!r}")


def to_address_bytes(value: Any) -> bytes:
    """
    Convert an address value to its canonical 20 bytes.

    Short values are left-padded with zeros, as the relay sometimes sends
    addresses with leading zero bytes stripped.

    Raises:
        EncodingError: If the value is empty, not hex or longer than 20 bytes
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if len(raw) > ADDRESS_WIDTH:
            raise EncodingError(f"Address is {len(raw)} bytes, expected at most {ADDRESS_WIDTH}")
        return raw.rjust(ADDRESS_WIDTH, b'\x00')

    if not isinstance(value, str):
        raise EncodingError(f"Address must be a hex string or bytes, got {type(value).__name__}")

    text = value.strip()
    digits = text[2:] if text[:2] in ('0x', '0X') else text

    # An empty maker is how the relay marks the field still to be filled
    if not digits:
        raise EncodingError(f"Address is empty: {value!r}")
    if not is_hex(text):
        raise EncodingError(f"Address is not valid hex: {value!r}")
    if len(digits) > ADDRESS_WIDTH * 2:
        raise EncodingError(f"Address has {len(digits)} hex digits, expected at most {ADDRESS_WIDTH * 2}")

    return decode_hex(digits.rjust(ADDRESS_WIDTH * 2, '0'))


def normalize_address(value: Any) -> str:
    """Return the canonical lowercase ``0x`` form of an address."""
    return '0x' + to_address_bytes(value).hex()


def to_uint256(value: Any) -> int:
    """
    Convert a value to an integer that fits in 256 unsigned bits.

    Args:
        value: Python int or base-10 string (relay payloads carry decimal strings)

    Returns:
        int: The validated integer

    Raises:
        EncodingError: If the value is not an integer, is negative or exceeds 2^256 - 1
    """
    if isinstance(value, bool):
        raise EncodingError("Boolean is not a valid uint256 value")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise EncodingError(f"uint256 string must be base-10 digits: {value!r}")
        if len(text.lstrip('0')) > UINT256_MAX_DIGITS:
            raise EncodingError(f"uint256 string has {len(text)} digits, value exceeds 2^256 - 1")
        number = int(text.lstrip('0') or '0')
    else:
        raise EncodingError(f"uint256 value must be int or decimal string, got {type(value).__name__}")

    if number < 0:
        raise EncodingError(f"uint256 value is negative: {number}")
    if number > UINT256_MAX:
        raise EncodingError("uint256 value exceeds 2^256 - 1")

    return number


def _normalize(fields: Iterable[FieldSpec]) -> Tuple[List[str], List[Any]]:
    """Split fields into ABI type names and validated values."""
    types: List[str] = []
    values: List[Any] = []
    for value, type_tag in fields:
        field_type = _resolve_type(type_tag)
        types.append(field_type.value)
        if field_type is FieldType.ADDRESS:
            values.append(to_address_bytes(value))
        else:
            values.append(to_uint256(value))
    return types, values


def _abi_call(encoder, types: List[str], values: List[Any]) -> bytes:
    try:
        return encoder(types, values)
    except AbiEncodingError as e:
        raise EncodingError(f"ABI encoding failed: {e}") from e


def encode(fields: Iterable[FieldSpec]) -> bytes:
    """
    Pack typed fields into the canonical byte string.

    Args:
        fields: Ordered (value, type tag) pairs

    Returns:
        bytes: Tight packing, 20 bytes per address and 32 per uint256
    """
    types, values = _normalize(fields)
    return _abi_call(encode_packed, types, values)


def encode_padded(fields: Iterable[FieldSpec]) -> bytes:
    """Pack typed fields with every value occupying one full 32-byte word."""
    types, values = _normalize(fields)
    return _abi_call(abi_encode, types, values)


def encode_field(value: Any, type_tag: Union[FieldType, str]) -> bytes:
    """Encode a single value with the fixed width of its type."""
    return encode([(value, type_tag)])


def encode_address(value: Any) -> bytes:
    """Encode an address as exactly 20 bytes, left-padded with zeros."""
    return encode_field(value, FieldType.ADDRESS)


def encode_uint256(value: Any) -> bytes:
    """Encode an unsigned integer as exactly 32 big-endian bytes."""
    return encode_field(value, FieldType.UINT256)
