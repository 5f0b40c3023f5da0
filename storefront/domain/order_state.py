# storefront/domain/order_state.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


#kolejnosc statusow, ruch tylko do przodu
_FORWARD = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_PAYMENT_FORWARD = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.PROCESSING: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.SUCCEEDED: set(),
    PaymentStatus.FAILED: set(),
    PaymentStatus.CANCELLED: set(),
}


def is_terminal(status: OrderStatus) -> bool:
    return status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


def can_cancel(status: OrderStatus) -> bool:
    return status in _CANCELLABLE


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if new == OrderStatus.CANCELLED:
        return can_cancel(current)
    if is_terminal(current):
        return False
    return _FORWARD.index(new) > _FORWARD.index(current)


def can_transition_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in _PAYMENT_FORWARD[current]
