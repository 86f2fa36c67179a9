"""
Recoverable secp256k1 signatures over order hashes.

Signing is deterministic (RFC 6979 nonces, low-s normalized) and stateless:
the private key is passed in on every call and never stored, logged or
echoed back in error messages.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from eth_keys import keys
from eth_keys.constants import SECPK1_N
from eth_utils import keccak

from ..errors import EncodingError, InvalidKey, SigningError


logger = logging.getLogger(__name__)


SECP256K1_N = SECPK1_N
ETH_SIGN_PREFIX = b"\x19Ethereum Signed Message:\n32"
DIGEST_LENGTH = 32


class SignatureMode(str, Enum):
    """What exactly gets signed for a given order hash."""

    RAW = "raw"            # the 32-byte digest itself
    ETH_SIGN = "eth_sign"  # keccak(prefix + digest), as wallets do for personal_sign


@dataclass(frozen=True)
class Signature:
    """ECDSA signature triplet as the relay expects it in ``ecSignature``."""

    v: int
    r: int
    s: int

    def validate(self) -> bool:
        """Check that all components are in range."""
        return (
            isinstance(self.v, int) and self.v >= 0 and
            isinstance(self.r, int) and 0 < self.r < SECP256K1_N and
            isinstance(self.s, int) and 0 < self.s < SECP256K1_N
        )

    @property
    def recovery_id(self) -> int:
        """Public key recovery parity bit encoded in ``v``."""
        if self.v >= 35:
            return (self.v - 35) % 2
        if self.v >= 27:
            return self.v - 27
        return self.v

    @property
    def r_hex(self) -> str:
        return '0x' + self.r.to_bytes(32, 'big').hex()

    @property
    def s_hex(self) -> str:
        return '0x' + self.s.to_bytes(32, 'big').hex()

    def to_bytes(self) -> bytes:
        """65-byte ``r || s || v`` form used by most wallets."""
        return self.r.to_bytes(32, 'big') + self.s.to_bytes(32, 'big') + bytes([self.recovery_id + 27])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'v': self.v,
            'r': self.r_hex,
            's': self.s_hex,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Signature':
        """Parse an ``ecSignature`` mapping with hex ``r``/``s``."""
        try:
            signature = cls(
                v=int(data['v']),
                r=int(str(data['r']), 16),
                s=int(str(data['s']), 16),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise EncodingError(f"Malformed signature payload: {e}")
        if not signature.validate():
            raise EncodingError("Signature components out of range")
        return signature


class SigningKey:
    """
    Validated secp256k1 private key.

    The secret is only reachable through ``secret``; ``repr`` and ``str``
    are redacted so a key that ends up in a log line or traceback does not
    leak.
    """

    __slots__ = ('_secret', '_address')

    def __init__(self, secret: bytes):
        if not isinstance(secret, (bytes, bytearray)) or len(secret) != 32:
            raise InvalidKey("Private key must be exactly 32 bytes")
        scalar = int.from_bytes(secret, 'big')
        if not 0 < scalar < SECP256K1_N:
            raise InvalidKey("Private key is not a valid secp256k1 scalar")
        self._secret = bytes(secret)
        self._address: Optional[str] = None

    @classmethod
    def from_hex(cls, value: str) -> 'SigningKey':
        text = value.strip()
        if text[:2] in ('0x', '0X'):
            text = text[2:]
        if len(text) != 64:
            raise InvalidKey("Private key hex must be 64 characters")
        try:
            secret = bytes.fromhex(text)
        except ValueError:
            raise InvalidKey("Private key is not valid hex") from None
        return cls(secret)

    @classmethod
    def coerce(cls, value: Union['SigningKey', bytes, str]) -> 'SigningKey':
        """Accept a SigningKey, 32 raw bytes or a hex string."""
        if isinstance(value, SigningKey):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(bytes(value))
        if isinstance(value, str):
            return cls.from_hex(value)
        raise InvalidKey(f"Unsupported private key type: {type(value).__name__}")

    @property
    def secret(self) -> bytes:
        return self._secret

    @property
    def address(self) -> str:
        """Lowercase hex address controlled by this key."""
        if self._address is None:
            self._address = keys.PrivateKey(self._secret).public_key.to_address()
        return self._address

    def __repr__(self) -> str:
        return "SigningKey(<redacted>)"

    __str__ = __repr__


def _message_hash(digest: bytes, mode: SignatureMode) -> bytes:
    if mode is SignatureMode.ETH_SIGN:
        return keccak(ETH_SIGN_PREFIX + digest)
    return digest


def _validate_digest(digest: Any) -> bytes:
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != DIGEST_LENGTH:
        raise SigningError(f"Digest must be exactly {DIGEST_LENGTH} bytes")
    return bytes(digest)


class Signer:
    """
    Produces recoverable signatures over 32-byte digests.

    Args:
        mode: Sign the digest directly or with the ``eth_sign`` prefix
        chain_id: When set, ``v`` is chain-adjusted (35 + 2 * chain_id + parity)
    """

    def __init__(self, mode: Union[SignatureMode, str] = SignatureMode.RAW, chain_id: Optional[int] = None):
        try:
            self.mode = SignatureMode(mode)
        except ValueError:
            raise SigningError(f"Unknown signature mode: {mode!r}") from None
        if chain_id is not None and (isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 0):
            raise SigningError(f"Invalid chain id: {chain_id!r}")
        self.chain_id = chain_id

    def sign(self, digest: bytes, private_key: Union[SigningKey, bytes, str]) -> Signature:
        """
        Sign a digest with the given private key.

        Args:
            digest: 32-byte order hash
            private_key: SigningKey, 32 raw bytes or hex string

        Returns:
            Signature: (v, r, s) triplet

        Raises:
            InvalidKey: If the key is not a valid nonzero scalar below the curve order
            SigningError: If the digest is malformed or signing fails
        """
        digest = _validate_digest(digest)
        key = SigningKey.coerce(private_key)
        message_hash = _message_hash(digest, self.mode)

        try:
            raw = keys.PrivateKey(key.secret).sign_msg_hash(message_hash)
        except Exception as e:
            # Type name only: backend messages may carry key material
            raise SigningError(f"secp256k1 signing failed: {type(e).__name__}") from None

        if self.chain_id is None:
            v = 27 + raw.v
        else:
            v = 35 + 2 * self.chain_id + raw.v

        logger.debug(f"Signed digest 0x{digest.hex()} ({self.mode.value})")
        return Signature(v=v, r=raw.r, s=raw.s)


def recover_address(digest: bytes, signature: Signature,
                    mode: Union[SignatureMode, str] = SignatureMode.RAW) -> str:
    """
    Recover the lowercase address that produced a signature.

    Raises:
        SigningError: If the digest or signature cannot be recovered
    """
    digest = _validate_digest(digest)
    message_hash = _message_hash(digest, SignatureMode(mode))
    try:
        raw = keys.Signature(vrs=(signature.recovery_id, signature.r, signature.s))
        return raw.recover_public_key_from_msg_hash(message_hash).to_address()
    except Exception as e:
        raise SigningError(f"Signature recovery failed: {e}") from e


def address_of(private_key: Union[SigningKey, bytes, str]) -> str:
    """Lowercase address for a private key."""
    return SigningKey.coerce(private_key).address
