"""
Status flow engine — the order lifecycle state machine.

Two pipeline variants exist:
    extended: placed → accepted → picked-up → washing → ironing → packing
              → out-for-delivery → delivered
    basic:    placed → accepted → picked-up → out-for-delivery → delivered

Movement is strictly forward, one stage at a time, except:
    - placed → rejected (admin only, absorbing)
    - out-for-delivery → client-confirmed (owning client only, payment completed)
    - client-confirmed → delivered (admin only)

Re-issuing the current status is a no-op for status and timestamps; supplied
notes are still written.

Functions here never touch the database. They validate and return an
OrderPatch describing the change; persisting it is the caller's job.
"""
from datetime import datetime
from typing import Optional

from domain import payment_gate
from domain.constants import TERMINAL_STATUSES, TIMESTAMP_KEYS
from domain.enums import OrderStatus, PaymentStatus, StatusCategory, UserRole
from domain.errors import (
    DomainError,
    InvalidTransitionError,
    PaymentRequiredError,
    PermissionDeniedError,
)
from domain.order_updates import NotesChange, OrderPatch, StatusChange


class StatusFlow:
    """An ordered, forward-only pipeline of order stages."""

    def __init__(self, name: str, stages: list[OrderStatus]):
        if len(stages) < 3 or stages[0] != OrderStatus.PLACED or stages[-1] != OrderStatus.DELIVERED:
            raise ValueError("A status flow must start at 'placed' and end at 'delivered'")
        self.name = name
        self.stages: tuple[OrderStatus, ...] = tuple(stages)

    def __repr__(self) -> str:
        return f"StatusFlow({self.name!r}, {[s.value for s in self.stages]})"

    @property
    def final_stage(self) -> OrderStatus:
        return self.stages[-1]

    @property
    def delivery_stage(self) -> OrderStatus:
        """The stage right before the final one (out-for-delivery)."""
        return self.stages[-2]

    @property
    def known_statuses(self) -> frozenset[OrderStatus]:
        return frozenset(self.stages) | {OrderStatus.REJECTED, OrderStatus.CLIENT_CONFIRMED}

    # ── Queries ─────────────────────────────────────────────────────

    def next_stage(self, current) -> Optional[OrderStatus]:
        """Stage immediately after ``current``, or None at the end / when rejected."""
        current = OrderStatus(current)
        if current == OrderStatus.CLIENT_CONFIRMED:
            return self.final_stage
        if current not in self.stages:
            return None
        idx = self.stages.index(current)
        if idx + 1 >= len(self.stages):
            return None
        return self.stages[idx + 1]

    def progress(self, status) -> int:
        """Percentage of the pipeline completed (0 for rejected)."""
        status = OrderStatus(status)
        if status == OrderStatus.CLIENT_CONFIRMED:
            status = self.delivery_stage
        if status not in self.stages:
            return 0
        return round((self.stages.index(status) + 1) / len(self.stages) * 100)

    @staticmethod
    def category(status) -> StatusCategory:
        status = OrderStatus(status)
        if status == OrderStatus.PLACED:
            return StatusCategory.PENDING
        if status in TERMINAL_STATUSES:
            return StatusCategory.COMPLETED
        return StatusCategory.ACTIVE

    def available_targets(self, order, actor: UserRole) -> list[OrderStatus]:
        """Statuses ``actor`` could move ``order`` to right now."""
        candidates = [
            self.next_stage(order.status),
            OrderStatus.REJECTED,
            OrderStatus.CLIENT_CONFIRMED,
        ]
        allowed = []
        for target in candidates:
            if target is None or target in allowed:
                continue
            try:
                self.check_transition(order, target, actor)
            except DomainError:
                continue
            allowed.append(target)
        return allowed

    # ── Validation ──────────────────────────────────────────────────

    def check_transition(self, order, target, actor: UserRole) -> None:
        """
        Validate moving ``order`` to ``target`` (a different status).

        Raises:
            InvalidTransitionError: target not reachable from the current status
            PermissionDeniedError: actor may not perform this move
            PaymentRequiredError: delivery/confirmation blocked by payment
        """
        current = OrderStatus(order.status)
        target = OrderStatus(target)

        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(current.value, target.value, "order is closed")
        if target not in self.known_statuses:
            raise InvalidTransitionError(
                current.value, target.value, f"not a stage of the {self.name} flow"
            )

        if target == OrderStatus.REJECTED:
            if current != OrderStatus.PLACED:
                raise InvalidTransitionError(
                    current.value, target.value, "only placed orders can be rejected"
                )
            _require_role(actor, UserRole.ADMIN, "reject orders")
            return

        if target == OrderStatus.CLIENT_CONFIRMED:
            if current != self.delivery_stage:
                raise InvalidTransitionError(
                    current.value, target.value,
                    f"receipt can be confirmed only while '{self.delivery_stage.value}'",
                )
            _require_role(actor, UserRole.CLIENT, "confirm receipt")
            if PaymentStatus(order.payment_status) != PaymentStatus.COMPLETED:
                raise PaymentRequiredError("Payment must be completed before confirming receipt")
            return

        expected = self.next_stage(current)
        if target != expected:
            reason = f"next stage is '{expected.value}'" if expected else "no further stage"
            raise InvalidTransitionError(current.value, target.value, reason)

        _require_role(actor, UserRole.ADMIN, "advance orders")
        if target == self.final_stage:
            payment_gate.require_payment(order)

    # ── Transitions ─────────────────────────────────────────────────

    def advance(
        self,
        order,
        target=None,
        *,
        actor: UserRole = UserRole.ADMIN,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OrderPatch:
        """
        Build the patch that moves ``order`` to ``target``.

        ``target`` defaults to the next stage. The timestamp for the target is
        only stamped if it was never set before. Notes are admin-only.
        """
        if notes is not None:
            _require_role(actor, UserRole.ADMIN, "edit notes")
        current = OrderStatus(order.status)
        if target is None:
            target = self.next_stage(current)
            if target is None:
                raise InvalidTransitionError(current.value, None, "no further stage")
        target = OrderStatus(target)

        if target == current:
            if notes is None:
                return OrderPatch()
            return OrderPatch(changes=(NotesChange(notes),))

        self.check_transition(order, target, actor)

        key = TIMESTAMP_KEYS[target]
        stamp = order.timestamps.get(key) or (now or datetime.utcnow())
        changes = [StatusChange(target, key, stamp)]
        if notes is not None:
            changes.append(NotesChange(notes))
        return OrderPatch(changes=tuple(changes), expected_status=current)


def _require_role(actor: UserRole, required: UserRole, action: str) -> None:
    if UserRole(actor) != required:
        raise PermissionDeniedError(f"Only {required.value}s can {action}")


EXTENDED_FLOW = StatusFlow(
    "extended",
    [
        OrderStatus.PLACED,
        OrderStatus.ACCEPTED,
        OrderStatus.PICKED_UP,
        OrderStatus.WASHING,
        OrderStatus.IRONING,
        OrderStatus.PACKING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ],
)

BASIC_FLOW = StatusFlow(
    "basic",
    [
        OrderStatus.PLACED,
        OrderStatus.ACCEPTED,
        OrderStatus.PICKED_UP,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ],
)

FLOWS: dict[str, StatusFlow] = {f.name: f for f in (EXTENDED_FLOW, BASIC_FLOW)}


def get_status_flow(name: str) -> StatusFlow:
    try:
        return FLOWS[name]
    except KeyError:
        raise ValueError(f"Unknown status flow '{name}' (expected one of {sorted(FLOWS)})")
