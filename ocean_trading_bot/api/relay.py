"""
Relay collaborator interface.

The HTTP transport (request authentication, JSON handling, rate limiting)
lives outside this package. Transports implement ``RelayClient`` and map
their failures onto the shared error types:

* no response received -> ``TransportFailure``
* relay rejected the call -> ``RelayError`` (or ``ReservationExpired`` /
  ``ReservationConflict``), carrying the relay's message verbatim
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..data.models import OrderRequest, PlacementResult, Reservation


class RelayClient(ABC):
    """Two-phase order placement against TheOcean relay."""

    @abstractmethod
    def reserve_order(self, request: OrderRequest, wallet_address: str) -> Reservation:
        """
        Reserve a matching counter-order.

        Args:
            request: Trade intent
            wallet_address: Address that will sign and own the order

        Returns:
            Reservation: Unsigned order template with the maker left empty
        """

    @abstractmethod
    def place_order(self, order_type: str, signed_order: Dict[str, Any], reservation_id: str) -> PlacementResult:
        """
        Place a signed order against an earlier reservation.

        Args:
            order_type: 'market' or 'limit', selects the placement endpoint
            signed_order: Serialized signed order payload
            reservation_id: Identifier returned by ``reserve_order``

        Returns:
            PlacementResult: Relay-assigned identifiers
        """
