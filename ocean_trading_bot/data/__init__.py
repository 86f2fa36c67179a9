"""Order, signature and relay exchange data models."""

from .models import (
    NULL_ADDRESS,
    ORDER_FIELDS,
    Order,
    SignedOrder,
    Signature,
    OrderRequest,
    Reservation,
    PlacementResult,
)

__all__ = [
    'NULL_ADDRESS',
    'ORDER_FIELDS',
    'Order',
    'SignedOrder',
    'Signature',
    'OrderRequest',
    'Reservation',
    'PlacementResult',
]
