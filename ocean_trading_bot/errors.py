"""Exception hierarchy shared by the signing core and the order lifecycle."""

from typing import Optional


class OceanError(Exception):
    """Base class for all errors raised by ocean_trading_bot."""


class EncodingError(OceanError):
    """A value is out of range or malformed for its field type."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnsupportedStrategy(OceanError):
    """An unknown order hashing strategy was requested."""


class InvalidKey(OceanError):
    """The private key is not a valid secp256k1 scalar.

    Messages never contain the key material itself.
    """


class SigningError(OceanError):
    """The underlying signature computation failed."""


class RelayError(OceanError):
    """Failure reported by the relay in a response."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code


class ReservationExpired(RelayError):
    """The reservation referenced by a placement is no longer valid."""


class ReservationConflict(RelayError):
    """The relay refused the reservation or placement as conflicting."""


class TransportFailure(OceanError):
    """No response was received from the relay."""


class LifecycleStateError(OceanError):
    """An order lifecycle operation was called in the wrong state."""
