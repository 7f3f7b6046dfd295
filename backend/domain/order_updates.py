"""
Typed partial updates for orders.

A patch is a list of field-group changes plus an optional guard on the status
the order must still be in when the patch is applied. Persistence writes only
the columns a patch names, so concurrent patches that touch different fields
(e.g. notes vs. payment) never clobber each other.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from domain.enums import OrderStatus, PaymentStatus


@dataclass(frozen=True)
class StatusChange:
    status: OrderStatus
    timestamp_key: str
    at: datetime


@dataclass(frozen=True)
class NotesChange:
    notes: str


@dataclass(frozen=True)
class PaymentChange:
    payment_status: PaymentStatus
    paid_at: Optional[datetime] = None


OrderChange = Union[StatusChange, NotesChange, PaymentChange]


@dataclass(frozen=True)
class OrderPatch:
    changes: tuple[OrderChange, ...] = field(default_factory=tuple)
    expected_status: Optional[OrderStatus] = None

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def status_change(self) -> Optional[StatusChange]:
        return next((c for c in self.changes if isinstance(c, StatusChange)), None)
