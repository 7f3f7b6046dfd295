"""
Payment gate — couples payment completion to the delivery transition.

Non-cash orders are marked paid at creation, so in practice only cash orders
can be blocked here.
"""
from datetime import datetime

from domain.constants import PAID_AT_KEY
from domain.enums import OrderStatus, PaymentMethod, PaymentStatus, UserRole
from domain.errors import ConflictError, PaymentRequiredError, PermissionDeniedError
from domain.order_updates import OrderPatch, PaymentChange


def can_deliver(order) -> bool:
    return (
        PaymentStatus(order.payment_status) == PaymentStatus.COMPLETED
        or PaymentMethod(order.payment_method) != PaymentMethod.CASH
    )


def require_payment(order) -> None:
    """Raise PaymentRequiredError when the order may not be delivered yet."""
    if not can_deliver(order):
        raise PaymentRequiredError(
            details={
                "payment_method": PaymentMethod(order.payment_method).value,
                "payment_status": PaymentStatus(order.payment_status).value,
            }
        )


def initial_payment_status(method: PaymentMethod) -> PaymentStatus:
    return PaymentStatus.PENDING if method == PaymentMethod.CASH else PaymentStatus.COMPLETED


def _refuse_rejected(order) -> None:
    if OrderStatus(order.status) == OrderStatus.REJECTED:
        raise ConflictError(
            "Order was rejected; its payment can no longer change",
            details={"status": OrderStatus.REJECTED.value},
        )


def record_payment(order, now: datetime, *, actor: UserRole = UserRole.ADMIN) -> OrderPatch:
    """
    Mark payment completed and stamp paidAt. Leaves status untouched.

    Cash is collected by staff, so only an admin may record it. Idempotent:
    an already-paid order yields an empty patch.
    """
    if PaymentStatus(order.payment_status) == PaymentStatus.COMPLETED:
        return OrderPatch()
    _refuse_rejected(order)
    if PaymentMethod(order.payment_method) == PaymentMethod.CASH and UserRole(actor) != UserRole.ADMIN:
        raise PermissionDeniedError("Only admins can record cash payments")
    paid_at = order.timestamps.get(PAID_AT_KEY) or now
    return OrderPatch(changes=(PaymentChange(PaymentStatus.COMPLETED, paid_at),))


def record_payment_failure(order) -> OrderPatch:
    if PaymentStatus(order.payment_status) == PaymentStatus.COMPLETED:
        raise ConflictError(
            "Payment already completed; cannot mark it failed",
            details={"payment_status": PaymentStatus.COMPLETED.value},
        )
    if PaymentStatus(order.payment_status) == PaymentStatus.FAILED:
        return OrderPatch()
    _refuse_rejected(order)
    return OrderPatch(changes=(PaymentChange(PaymentStatus.FAILED),))
