"""
Order endpoints — client ordering, admin pipeline management, payments, reports.

Every mutation commits first, then pushes fresh snapshots to subscribers of
the affected order collections.
"""

import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Order, User
from deps import (
    Pagination,
    get_current_user,
    get_order_events,
    pagination_params,
    require_admin,
    require_client,
)
from domain.enums import StatusCategory, UserRole
from domain.responses import paginated_response, success_response
from middleware.rate_limit import rate_limit
from models import (
    NotesUpdateRequest,
    OrderCreateRequest,
    ReportCreateRequest,
    StatusUpdateRequest,
)
from services import order_service, report_service
from services.order_events import OrderEventBus
from utils.validators import validate_address, validate_phone

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])
reports_router = APIRouter(prefix="/reports", tags=["reports"])


async def _commit_and_publish(db: AsyncSession, bus: OrderEventBus, order: Order, user: User) -> dict:
    await db.commit()
    await order_service.publish_order_change(db, bus, client_id=order.client_id)
    return success_response(
        data=order_service.serialize_order(order, viewer_role=UserRole(user.role))
    )


@router.post("", dependencies=[Depends(rate_limit(20, 60))])
async def create_order(
    request: OrderCreateRequest,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    order = await order_service.create_order(
        db,
        client=user,
        service_id=request.service_id,
        clothes=request.clothes.model_dump(),
        phone=validate_phone(request.phone),
        address=validate_address(request.address),
        payment_method=request.payment_method,
    )
    await db.commit()
    await db.refresh(order)
    await order_service.publish_order_change(db, bus, client_id=order.client_id)
    return success_response(
        data=order_service.serialize_order(order, viewer_role=UserRole(user.role))
    )


@router.get("")
async def list_orders(
    category: StatusCategory = Query(StatusCategory.ALL),
    page: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Admins see every order; clients only their own."""
    client_id = user.id if UserRole(user.role) == UserRole.CLIENT else None
    orders = await order_service.list_orders(
        db,
        category=category,
        client_id=client_id,
        limit=page["limit"],
        offset=page["offset"],
    )
    total = await order_service.count_orders(db, category=category, client_id=client_id)
    return paginated_response(
        items=[order_service.serialize_order(o, viewer_role=UserRole(user.role)) for o in orders],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/stats")
async def order_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    client_id = user.id if UserRole(user.role) == UserRole.CLIENT else None
    stats = await order_service.order_stats(db, client_id=client_id)
    return success_response(data=stats)


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_order_for(db, order_id, user)
    return success_response(
        data=order_service.serialize_order(order, viewer_role=UserRole(user.role))
    )


@router.patch("/{order_id}/status")
async def update_status(
    order_id: int,
    request: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    """
    Move an order through the pipeline.

    Omitting ``status`` advances to the next stage. Re-sending the current
    status only updates ``notes``.
    """
    order = await order_service.update_status(
        db,
        order_id=order_id,
        target=request.status,
        actor=user,
        notes=request.notes,
    )
    return await _commit_and_publish(db, bus, order, user)


@router.patch("/{order_id}/notes")
async def update_notes(
    order_id: int,
    request: NotesUpdateRequest,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    order = await order_service.update_notes(db, order_id=order_id, notes=request.notes)
    return await _commit_and_publish(db, bus, order, user)


@router.post("/{order_id}/confirm")
async def confirm_receipt(
    order_id: int,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    order = await order_service.confirm_receipt(db, order_id=order_id, actor=user)
    return await _commit_and_publish(db, bus, order, user)


@router.post("/{order_id}/payment")
async def record_payment(
    order_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    order = await order_service.record_payment(db, order_id=order_id, actor=user)
    return await _commit_and_publish(db, bus, order, user)


@router.post("/{order_id}/payment/failure")
async def record_payment_failure(
    order_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    bus: OrderEventBus = Depends(get_order_events),
):
    order = await order_service.record_payment_failure(db, order_id=order_id, actor=user)
    return await _commit_and_publish(db, bus, order, user)


@router.post("/{order_id}/reports", dependencies=[Depends(rate_limit(10, 3600))])
async def file_report(
    order_id: int,
    request: ReportCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    report = await report_service.file_report(
        db, order_id=order_id, actor=user, reason=request.reason
    )
    await db.commit()
    await db.refresh(report)
    return success_response(data=report_service.report_to_dict(report))


@reports_router.get("", dependencies=[Depends(require_admin)])
async def list_reports(
    order_id: int | None = Query(None, alias="orderId"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    reports = await report_service.list_reports(
        db, order_id=order_id, limit=page["limit"], offset=page["offset"]
    )
    total = await report_service.count_reports(db, order_id=order_id)
    return paginated_response(
        [report_service.report_to_dict(r) for r in reports],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )
