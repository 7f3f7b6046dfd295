"""
Order service — creation, lifecycle transitions, payments, listings.

Validation is delegated to the pure domain modules (status_flow, payment_gate,
catalog); this module loads orders, persists the resulting OrderPatch as a
single partial UPDATE, and builds the read model.

Transactions are committed by the caller (routes), as elsewhere in the app.
"""
import json
import logging
from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, User
from domain import payment_gate
from domain.catalog import compute_total_cost, normalize_clothes
from domain.constants import (
    ADMIN_ORDERS_COLLECTION,
    CLIENT_ORDERS_COLLECTION,
    STATUS_LABELS,
    TERMINAL_STATUSES,
    TIMESTAMP_COLUMNS,
)
from domain.enums import OrderStatus, PaymentMethod, StatusCategory, UserRole
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from domain.order_updates import NotesChange, OrderPatch, PaymentChange, StatusChange
from domain.status_flow import StatusFlow, get_status_flow
from services import catalog_service
from services.order_events import OrderEventBus

logger = logging.getLogger(__name__)


def active_flow() -> StatusFlow:
    return get_status_flow(settings.status_flow)


# ════════════════════════════════════════════════════════════════════
# Creation
# ════════════════════════════════════════════════════════════════════

async def create_order(
    db: AsyncSession,
    *,
    client: User,
    service_id: str,
    clothes: dict[str, int],
    phone: str,
    address: str,
    payment_method: PaymentMethod,
    now: datetime | None = None,
) -> Order:
    """
    Place a new order in 'placed' status.

    The service's prices are applied once here; total_cost is never
    recomputed. Non-cash orders are recorded as paid immediately.
    """
    snapshot = normalize_clothes(clothes)
    service = await catalog_service.get_service(db, service_id)
    total = compute_total_cost(
        service.name,
        service.price_per_cloth,
        snapshot,
        lenient=settings.lenient_pricing,
    )

    now = now or datetime.utcnow()
    method = PaymentMethod(payment_method)
    payment_status = payment_gate.initial_payment_status(method)

    order = Order(
        client_id=client.id,
        client_name=client.name,
        client_phone=phone,
        delivery_address=address,
        service=service.name,
        clothes_json=json.dumps(snapshot),
        total_cost=total,
        status=OrderStatus.PLACED.value,
        payment_method=method.value,
        payment_status=payment_status.value,
        placed_at=now,
        paid_at=now if method != PaymentMethod.CASH else None,
    )
    db.add(order)
    await db.flush()
    logger.info(
        f"Order {order.id} placed by client {client.id}: {service.name}, "
        f"total={total}, payment={method.value}/{payment_status.value}"
    )
    return order


# ════════════════════════════════════════════════════════════════════
# Reads
# ════════════════════════════════════════════════════════════════════

async def get_order(db: AsyncSession, order_id: int) -> Order:
    res = await db.execute(select(Order).where(Order.id == order_id))
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


async def get_order_for(db: AsyncSession, order_id: int, user: User) -> Order:
    """Load an order the user may see: admins see all, clients only their own."""
    order = await get_order(db, order_id)
    if UserRole(user.role) == UserRole.CLIENT and order.client_id != user.id:
        raise PermissionDeniedError("Order belongs to another client")
    return order


def _category_clause(category: StatusCategory):
    terminal = [s.value for s in TERMINAL_STATUSES]
    if category == StatusCategory.PENDING:
        return Order.status == OrderStatus.PLACED.value
    if category == StatusCategory.ACTIVE:
        return Order.status.not_in([OrderStatus.PLACED.value, *terminal])
    if category == StatusCategory.COMPLETED:
        return Order.status.in_(terminal)
    return None


def _filtered(query, category: StatusCategory, client_id: int | None):
    clause = _category_clause(StatusCategory(category))
    if clause is not None:
        query = query.where(clause)
    if client_id is not None:
        query = query.where(Order.client_id == client_id)
    return query


async def list_orders(
    db: AsyncSession,
    *,
    category: StatusCategory = StatusCategory.ALL,
    client_id: int | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Order]:
    """Orders newest first, optionally filtered by status category and client."""
    query = _filtered(select(Order), category, client_id).order_by(
        Order.placed_at.desc(), Order.id.desc()
    )
    if limit is not None:
        query = query.limit(limit).offset(offset)
    res = await db.execute(query)
    return res.scalars().all()


async def count_orders(
    db: AsyncSession,
    *,
    category: StatusCategory = StatusCategory.ALL,
    client_id: int | None = None,
) -> int:
    res = await db.execute(_filtered(select(func.count(Order.id)), category, client_id))
    return res.scalar_one()


async def order_stats(db: AsyncSession, *, client_id: int | None = None) -> dict:
    """Dashboard counters; revenue is the sum of delivered orders' totals."""
    query = select(
        Order.status,
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_cost), 0),
    ).group_by(Order.status)
    if client_id is not None:
        query = query.where(Order.client_id == client_id)
    res = await db.execute(query)

    stats = {"total": 0, "pending": 0, "active": 0, "completed": 0, "revenue": 0}
    for status, count, total_cost in res.all():
        stats["total"] += count
        stats[StatusFlow.category(status).value] += count
        if status == OrderStatus.DELIVERED.value:
            stats["revenue"] += int(total_cost)
    return stats


# ════════════════════════════════════════════════════════════════════
# Mutations
# ════════════════════════════════════════════════════════════════════

async def apply_patch(db: AsyncSession, order: Order, patch: OrderPatch) -> Order:
    """
    Persist ``patch`` as one UPDATE touching only the named columns.

    Timestamp columns are written with COALESCE so an existing stamp is never
    overwritten. If the patch carries a status guard and the stored status has
    moved on, nothing is written and ConflictError is raised.
    """
    if patch.is_empty:
        return order

    values = {}
    for change in patch.changes:
        if isinstance(change, StatusChange):
            column = TIMESTAMP_COLUMNS[change.timestamp_key]
            values["status"] = change.status.value
            values[column] = func.coalesce(getattr(Order, column), change.at)
        elif isinstance(change, NotesChange):
            values["notes"] = change.notes
        elif isinstance(change, PaymentChange):
            values["payment_status"] = change.payment_status.value
            if change.paid_at is not None:
                values["paid_at"] = func.coalesce(Order.paid_at, change.paid_at)
        else:
            raise TypeError(f"Unsupported order change: {change!r}")

    stmt = update(Order).where(Order.id == order.id)
    if patch.expected_status is not None:
        stmt = stmt.where(Order.status == patch.expected_status.value)
    result = await db.execute(
        stmt.values(**values).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(
            f"Order {order.id} was modified concurrently; reload and retry",
            details={"expected_status": patch.expected_status.value if patch.expected_status else None},
        )

    await db.refresh(order)
    return order


async def update_status(
    db: AsyncSession,
    *,
    order_id: int,
    target: OrderStatus | None,
    actor: User,
    notes: str | None = None,
) -> Order:
    """
    Move an order to ``target`` (default: the next stage).

    Re-issuing the current status only writes ``notes`` (if given).
    """
    order = await get_order_for(db, order_id, actor)
    previous = order.status
    patch = active_flow().advance(order, target, actor=UserRole(actor.role), notes=notes)
    order = await apply_patch(db, order, patch)
    if order.status != previous:
        logger.info(f"Order {order.id}: {previous} → {order.status} (by {actor.role} {actor.id})")
    return order


async def update_notes(db: AsyncSession, *, order_id: int, notes: str) -> Order:
    order = await get_order(db, order_id)
    return await apply_patch(db, order, OrderPatch(changes=(NotesChange(notes),)))


async def confirm_receipt(db: AsyncSession, *, order_id: int, actor: User) -> Order:
    return await update_status(
        db, order_id=order_id, target=OrderStatus.CLIENT_CONFIRMED, actor=actor
    )


async def record_payment(db: AsyncSession, *, order_id: int, actor: User) -> Order:
    """Mark payment completed and stamp paidAt; status is unchanged."""
    order = await get_order_for(db, order_id, actor)
    patch = payment_gate.record_payment(order, datetime.utcnow(), actor=UserRole(actor.role))
    if patch.is_empty:
        return order
    order = await apply_patch(db, order, patch)
    logger.info(f"Order {order.id}: payment completed ({order.payment_method}, {order.total_cost})")
    return order


async def record_payment_failure(db: AsyncSession, *, order_id: int, actor: User) -> Order:
    order = await get_order_for(db, order_id, actor)
    patch = payment_gate.record_payment_failure(order)
    if patch.is_empty:
        return order
    order = await apply_patch(db, order, patch)
    logger.warning(f"Order {order.id}: payment failed ({order.payment_method})")
    return order


# ════════════════════════════════════════════════════════════════════
# Read model & subscriptions
# ════════════════════════════════════════════════════════════════════

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_order(order: Order, *, viewer_role: UserRole | None = None) -> dict:
    flow = active_flow()
    status = OrderStatus(order.status)
    next_status = flow.next_stage(status)
    data = {
        "id": order.id,
        "client_id": order.client_id,
        "client_name": order.client_name,
        "client_phone": order.client_phone,
        "delivery_address": order.delivery_address,
        "service": order.service,
        "clothes": order.clothes,
        "total_cost": order.total_cost,
        "status": status.value,
        "status_label": STATUS_LABELS[status],
        "progress": flow.progress(status),
        "next_status": next_status.value if next_status else None,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "can_deliver": payment_gate.can_deliver(order),
        "notes": order.notes,
        "timestamps": {k: _iso(v) for k, v in order.timestamps.items()},
    }
    if viewer_role is not None:
        data["available_statuses"] = [
            s.value for s in flow.available_targets(order, UserRole(viewer_role))
        ]
    return data


async def publish_order_change(db: AsyncSession, bus: OrderEventBus, *, client_id: int) -> None:
    """Push fresh snapshots to subscribers of the collections an order belongs to."""
    targets = (
        (ADMIN_ORDERS_COLLECTION, None),
        (CLIENT_ORDERS_COLLECTION.format(client_id=client_id), client_id),
    )
    for collection, scope in targets:
        if not bus.has_subscribers(collection):
            continue
        orders = await list_orders(db, client_id=scope)
        await bus.publish(collection, [serialize_order(o) for o in orders])
