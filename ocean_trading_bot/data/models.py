"""
Order data models.

Orders follow the 0x v1 layout used by TheOcean relay: six addresses
followed by six unsigned 256-bit integers. Python attributes are snake_case,
``to_dict``/``from_template`` speak the relay's camelCase wire names.
"""

import json
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..errors import EncodingError
from ..signing.codec import FieldType, normalize_address, to_uint256
from ..signing.signer import Signature


NULL_ADDRESS = '0x' + '00' * 20

# (attribute, wire name, type) in canonical hashing order
ORDER_FIELDS: Tuple[Tuple[str, str, FieldType], ...] = (
    ('exchange_contract_address', 'exchangeContractAddress', FieldType.ADDRESS),
    ('maker', 'maker', FieldType.ADDRESS),
    ('taker', 'taker', FieldType.ADDRESS),
    ('maker_token_address', 'makerTokenAddress', FieldType.ADDRESS),
    ('taker_token_address', 'takerTokenAddress', FieldType.ADDRESS),
    ('fee_recipient', 'feeRecipient', FieldType.ADDRESS),
    ('maker_token_amount', 'makerTokenAmount', FieldType.UINT256),
    ('taker_token_amount', 'takerTokenAmount', FieldType.UINT256),
    ('maker_fee', 'makerFee', FieldType.UINT256),
    ('taker_fee', 'takerFee', FieldType.UINT256),
    ('expiration_unix_timestamp_sec', 'expirationUnixTimestampSec', FieldType.UINT256),
    ('salt', 'salt', FieldType.UINT256),
)

ORDER_TYPE_STRING = 'Order(' + ','.join(
    f"{field_type.value} {wire}" for _, wire, field_type in ORDER_FIELDS
) + ')'

ORDER_SIDES = ('buy', 'sell')
ORDER_TYPES = ('market', 'limit')
FEE_OPTIONS = ('feeInNative', 'feeInZRX')


@dataclass(frozen=True)
class Order:
    """Unsigned 0x order. Immutable; use ``with_maker`` to derive a copy."""

    exchange_contract_address: str
    maker: str
    taker: str
    maker_token_address: str
    taker_token_address: str
    fee_recipient: str
    maker_token_amount: int
    taker_token_amount: int
    maker_fee: int
    taker_fee: int
    expiration_unix_timestamp_sec: int
    salt: int

    @classmethod
    def from_template(cls, template: Mapping[str, Any], maker: Optional[str] = None) -> 'Order':
        """
        Build an order from a relay template.

        Args:
            template: Unsigned order mapping keyed by wire names
            maker: Address stamped into the maker field, overriding the template

        Returns:
            Order: Normalized order

        Raises:
            EncodingError: If any required field is missing or malformed
        """
        values: Dict[str, Any] = {}
        for attr, wire, field_type in ORDER_FIELDS:
            if attr == 'maker' and maker is not None:
                raw = maker
            else:
                raw = template.get(wire)
                if raw is None:
                    raise EncodingError(f"Order template is missing required field '{wire}'", field=wire)

            try:
                if field_type is FieldType.ADDRESS:
                    values[attr] = normalize_address(raw)
                else:
                    values[attr] = to_uint256(raw)
            except EncodingError as e:
                raise EncodingError(f"Invalid order field '{wire}': {e}", field=wire) from e

        return cls(**values)

    def with_maker(self, maker: str) -> 'Order':
        return replace(self, maker=normalize_address(maker))

    def values(self) -> Tuple[Any, ...]:
        """Field values in canonical hashing order."""
        return tuple(getattr(self, attr) for attr, _, _ in ORDER_FIELDS)

    def typed_fields(self) -> List[Tuple[Any, FieldType]]:
        """(value, type) pairs in canonical hashing order."""
        return [(getattr(self, attr), field_type) for attr, _, field_type in ORDER_FIELDS]

    @staticmethod
    def type_string() -> str:
        return ORDER_TYPE_STRING

    def validate(self) -> bool:
        """Return True when every field is encodable."""
        try:
            for attr, _, field_type in ORDER_FIELDS:
                value = getattr(self, attr)
                if field_type is FieldType.ADDRESS:
                    normalize_address(value)
                else:
                    to_uint256(value)
            return True
        except EncodingError:
            return False

    def to_dict(self) -> Dict[str, str]:
        """Wire representation: lowercase hex addresses, decimal-string integers."""
        result: Dict[str, str] = {}
        for attr, wire, field_type in ORDER_FIELDS:
            value = getattr(self, attr)
            if field_type is FieldType.ADDRESS:
                result[wire] = normalize_address(value)
            else:
                result[wire] = str(to_uint256(value))
        return result


@dataclass(frozen=True)
class SignedOrder:
    """Order together with its resolved hash and signature."""

    order: Order
    signature: Signature
    order_hash: bytes

    @property
    def order_hash_hex(self) -> str:
        return '0x' + self.order_hash.hex()

    def to_dict(self) -> Dict[str, Any]:
        """Placement payload for the relay."""
        data: Dict[str, Any] = self.order.to_dict()
        data['orderHash'] = self.order_hash_hex
        data['ecSignature'] = self.signature.to_dict()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SignedOrder':
        if 'orderHash' not in data or 'ecSignature' not in data:
            raise EncodingError("Signed order payload requires 'orderHash' and 'ecSignature'")
        order_hash = str(data['orderHash'])
        if order_hash[:2] in ('0x', '0X'):
            order_hash = order_hash[2:]
        try:
            hash_bytes = bytes.fromhex(order_hash)
        except ValueError:
            raise EncodingError(f"orderHash is not valid hex: {data['orderHash']!r}")
        if len(hash_bytes) != 32:
            raise EncodingError("orderHash must be 32 bytes")
        return cls(
            order=Order.from_template(data),
            signature=Signature.from_dict(data['ecSignature']),
            order_hash=hash_bytes,
        )


@dataclass
class OrderRequest:
    """Caller's trade intent sent to the relay's reserve endpoint."""

    side: str
    base_token_address: str
    quote_token_address: str
    amount: int
    order_type: str = 'market'
    price: Optional[str] = None
    fee_option: str = 'feeInNative'

    def validate(self) -> bool:
        """Validate request data."""
        if self.side not in ORDER_SIDES:
            return False
        if self.order_type not in ORDER_TYPES:
            return False
        if self.fee_option not in FEE_OPTIONS:
            return False
        try:
            normalize_address(self.base_token_address)
            normalize_address(self.quote_token_address)
            if to_uint256(self.amount) == 0:
                return False
        except EncodingError:
            return False

        # Price is only meaningful for limit orders
        if self.order_type == 'limit':
            if self.price is None:
                return False
            try:
                price = Decimal(str(self.price))
            except InvalidOperation:
                return False
            if not price.is_finite() or price <= 0:
                return False
        elif self.price is not None:
            return False

        return True

    def to_dict(self, wallet_address: str) -> Dict[str, str]:
        data = {
            'walletAddress': normalize_address(wallet_address),
            'baseTokenAddress': normalize_address(self.base_token_address),
            'quoteTokenAddress': normalize_address(self.quote_token_address),
            'side': self.side,
            'orderAmount': str(to_uint256(self.amount)),
            'feeOption': self.fee_option,
        }
        if self.order_type == 'limit':
            data['price'] = str(self.price)
        return data


@dataclass(frozen=True)
class Reservation:
    """Relay-issued unsigned counter-order awaiting signature and placement."""

    reservation_id: str
    template: Mapping[str, Any]
    order_type: str = 'market'

    def validate(self) -> bool:
        return bool(self.reservation_id) and isinstance(self.template, Mapping)


@dataclass
class PlacementResult:
    """Identifiers the relay assigns to an accepted placement."""

    order_id: str
    transaction_hash: Optional[str] = None
    filled_amount: Optional[int] = None
    info: Dict[str, Any] = field(default_factory=dict)
