"""
주문 라이프사이클 관리.

릴레이에 주문을 예약, 서명, 제출하는 OrderLifecycle 클래스를 제공합니다.
각 인스턴스는 한 번만 사용되며 다음 순서로 진행합니다:

    REQUESTED -> RESERVED -> SIGNED -> SUBMITTED -> ACCEPTED | REJECTED

종료 상태에 도달한 인스턴스는 폐기합니다.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Union

from ..api.relay import RelayClient
from ..data.models import Order, OrderRequest, PlacementResult, Reservation, SignedOrder
from ..errors import EncodingError, LifecycleStateError, RelayError, TransportFailure
from ..signing.codec import normalize_address
from ..signing.hasher import DEFAULT_STRATEGY, HashStrategy, OrderHasher
from ..signing.signer import Signer, SigningKey


logger = logging.getLogger(__name__)


class OrderState(str, Enum):
    """주문 라이프사이클 상태."""

    REQUESTED = "requested"
    RESERVED = "reserved"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


TERMINAL_STATES: FrozenSet[OrderState] = frozenset({
    OrderState.ACCEPTED,
    OrderState.REJECTED,
    OrderState.CANCELLED,
})

ALLOWED_TRANSITIONS: Dict[OrderState, FrozenSet[OrderState]] = {
    OrderState.REQUESTED: frozenset({OrderState.RESERVED, OrderState.REJECTED, OrderState.CANCELLED}),
    OrderState.RESERVED: frozenset({OrderState.SIGNED, OrderState.CANCELLED}),
    OrderState.SIGNED: frozenset({OrderState.SUBMITTED, OrderState.CANCELLED}),
    OrderState.SUBMITTED: frozenset({OrderState.ACCEPTED, OrderState.REJECTED}),
}

# 응답을 받지 못한 경우로 간주하는 예외
TRANSPORT_ERRORS = (TransportFailure, ConnectionError, TimeoutError)


@dataclass
class LifecycleResult:
    """라이프사이클 실행 결과."""

    state: OrderState
    reservation_id: Optional[str] = None
    order_hash: Optional[str] = None
    placement: Optional[PlacementResult] = None
    rejection_reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.state is OrderState.ACCEPTED


class OrderLifecycle:
    """
    단일 주문의 예약-서명-제출 흐름.

    개인키는 인스턴스 수명 동안만 보관하며 서명 시점에 Signer로 전달합니다.
    전송 실패는 단계마다 같은 인자로 최대 한 번 재시도하고,
    재예약이나 재서명은 하지 않습니다.
    """

    def __init__(self,
                 relay: RelayClient,
                 wallet_address: str,
                 private_key: Union[SigningKey, bytes, str],
                 hash_strategy: Union[HashStrategy, str] = DEFAULT_STRATEGY,
                 signer: Optional[Signer] = None,
                 max_transport_retries: int = 1):
        """
        OrderLifecycle 초기화.

        Args:
            relay: 릴레이 전송 클라이언트
            wallet_address: 호출자 지갑 주소 (maker 필드에 기록)
            private_key: wallet_address에 대응하는 개인키
            hash_strategy: 주문 해시 방식
            signer: 사용할 서명기 (기본값: 다이제스트 직접 서명)
            max_transport_retries: 전송 실패 시 단계별 재시도 횟수 (0 또는 1)

        Raises:
            InvalidKey: 개인키가 유효하지 않은 경우
            EncodingError: 지갑 주소 형식이 잘못된 경우
        """
        if max_transport_retries not in (0, 1):
            raise ValueError("max_transport_retries must be 0 or 1")

        self.relay = relay
        self.wallet_address = normalize_address(wallet_address)
        self._key = SigningKey.coerce(private_key)
        self.hasher = OrderHasher(hash_strategy)
        self.signer = signer or Signer()
        self.max_transport_retries = max_transport_retries

        self.state = OrderState.REQUESTED
        self.history: List[OrderState] = [OrderState.REQUESTED]
        self.request: Optional[OrderRequest] = None
        self.reservation: Optional[Reservation] = None
        self.signed_order: Optional[SignedOrder] = None
        self.placement: Optional[PlacementResult] = None
        self.rejection_reason: Optional[str] = None

        if self._key.address != self.wallet_address:
            logger.warning(f"서명 키가 지갑 주소와 일치하지 않음: {self.wallet_address} "
                           "(릴레이가 서명을 거부합니다)")

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def reserve(self, request: OrderRequest) -> Reservation:
        """
        예약 요청 (REQUESTED -> RESERVED).

        Raises:
            EncodingError: 요청이 유효하지 않은 경우
            RelayError: 릴레이가 예약을 거부한 경우 (REJECTED로 전환)
            TransportFailure: 재시도 후에도 응답이 없는 경우 (REQUESTED 유지)
        """
        self._require(OrderState.REQUESTED, 'reserve')

        if not request.validate():
            raise EncodingError(f"Invalid order request: {request}")

        self.request = request
        try:
            reservation = self._call_with_retry('reserve', self.relay.reserve_order, request, self.wallet_address)
        except RelayError as e:
            self._reject(e)
            raise

        if not reservation.validate():
            raise EncodingError("Relay returned a reservation without id or template")

        self.reservation = reservation
        self._transition(OrderState.RESERVED)
        logger.info(f"주문 예약 완료: {reservation.reservation_id}", extra={
            'reservation_id': reservation.reservation_id,
            'order_type': reservation.order_type,
        })
        return reservation

    def sign(self) -> SignedOrder:
        """
        주문 서명 (RESERVED -> SIGNED).

        Raises:
            EncodingError: 예약 템플릿에 필드가 없거나 형식이 잘못된 경우
            InvalidKey, SigningError: 서명에 실패한 경우
        """
        self._require(OrderState.RESERVED, 'sign')

        order = Order.from_template(self.reservation.template, maker=self.wallet_address)
        order_hash = self.hasher.hash(order)
        signature = self.signer.sign(order_hash, self._key)

        self.signed_order = SignedOrder(order=order, signature=signature, order_hash=order_hash)
        self._transition(OrderState.SIGNED)
        logger.info(f"주문 서명 완료: {self.signed_order.order_hash_hex}", extra={
            'reservation_id': self.reservation.reservation_id,
            'order_hash': self.signed_order.order_hash_hex,
            'hash_strategy': self.hasher.strategy.value,
        })
        return self.signed_order

    def submit(self) -> PlacementResult:
        """
        서명된 주문 제출 (SIGNED -> SUBMITTED -> ACCEPTED | REJECTED).

        Raises:
            RelayError: 릴레이가 제출을 거부한 경우 (REJECTED로 전환)
            TransportFailure: 재시도 후에도 응답이 없는 경우 (SIGNED 유지)
        """
        self._require(OrderState.SIGNED, 'submit')

        payload = self.signed_order.to_dict()
        reservation_id = self.reservation.reservation_id

        try:
            placement = self._call_with_retry(
                'place', self.relay.place_order, self.reservation.order_type, payload, reservation_id
            )
        except RelayError as e:
            self._transition(OrderState.SUBMITTED)
            self._reject(e)
            raise

        self._transition(OrderState.SUBMITTED)
        self.placement = placement
        self._transition(OrderState.ACCEPTED)
        logger.info(f"주문 제출 성공: {placement.order_id}", extra={
            'reservation_id': reservation_id,
            'order_hash': self.signed_order.order_hash_hex,
            'order_id': placement.order_id,
        })
        return placement

    def run(self, request: OrderRequest) -> LifecycleResult:
        """
        예약, 서명, 제출을 한 번에 수행합니다.

        릴레이 거부는 REJECTED 결과로 반환하고, 인코딩/서명/전송 오류는
        호출자에게 그대로 전달합니다.
        """
        try:
            self.reserve(request)
            self.sign()
            self.submit()
        except RelayError:
            pass
        return self.result()

    def cancel(self) -> None:
        """
        제출 전 주문 폐기.

        사용되지 않은 예약은 릴레이가 만료시키므로 예약과 서명된 주문을
        버리는 것으로 충분합니다.
        """
        if self.state is OrderState.SUBMITTED or self.is_terminal:
            raise LifecycleStateError(
                f"Cannot cancel an order in state '{self.state.value}'; "
                "submitted orders are cancelled through the relay"
            )
        reservation_id = self.reservation.reservation_id if self.reservation else None
        self.reservation = None
        self.signed_order = None
        self._transition(OrderState.CANCELLED)
        logger.info(f"주문 폐기: {reservation_id}", extra={'reservation_id': reservation_id})

    def result(self) -> LifecycleResult:
        return LifecycleResult(
            state=self.state,
            reservation_id=self.reservation.reservation_id if self.reservation else None,
            order_hash=self.signed_order.order_hash_hex if self.signed_order else None,
            placement=self.placement,
            rejection_reason=self.rejection_reason,
        )

    def _require(self, expected: OrderState, operation: str) -> None:
        if self.state is not expected:
            raise LifecycleStateError(
                f"'{operation}' requires state '{expected.value}', current state is '{self.state.value}'"
            )

    def _transition(self, new_state: OrderState) -> None:
        allowed = ALLOWED_TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise LifecycleStateError(f"Invalid transition {self.state.value} -> {new_state.value}")
        logger.debug(f"주문 상태 변경: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _reject(self, error: RelayError) -> None:
        self.rejection_reason = error.message
        self._transition(OrderState.REJECTED)
        logger.error(f"릴레이 주문 거부: {error.message}", extra={
            'error_type': type(error).__name__,
            'status_code': error.status_code,
            'error_code': error.error_code,
            'reservation_id': self.reservation.reservation_id if self.reservation else None,
        })

    def _call_with_retry(self, step: str, func: Callable[..., Any], *args: Any) -> Any:
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_transport_retries + 1):
            try:
                return func(*args)
            except TRANSPORT_ERRORS as e:
                last_error = e
                logger.warning(f"{step} 요청 응답 없음 (시도 {attempt + 1}/{self.max_transport_retries + 1}): {e}")

        logger.error(f"{step} 요청 최종 실패, 상태 유지: {self.state.value}")
        raise TransportFailure(f"No response from relay during {step}: {last_error}") from last_error
