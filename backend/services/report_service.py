"""
Report service — issues filed by clients against an order.

Reports are a side channel keyed by order id; filing one never changes the
order itself.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Report, User
from services import order_service

logger = logging.getLogger(__name__)


async def file_report(db: AsyncSession, *, order_id: int, actor: User, reason: str) -> Report:
    order = await order_service.get_order_for(db, order_id, actor)
    report = Report(order_id=order.id, client_id=order.client_id, reason=reason.strip())
    db.add(report)
    await db.flush()
    logger.info(f"Report {report.id} filed on order {order.id} by {actor.role} {actor.id}")
    return report


async def list_reports(
    db: AsyncSession,
    *,
    order_id: int | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Report]:
    query = select(Report).order_by(Report.created_at.desc(), Report.id.desc())
    if order_id is not None:
        query = query.where(Report.order_id == order_id)
    res = await db.execute(query.limit(limit).offset(offset))
    return res.scalars().all()


async def count_reports(db: AsyncSession, *, order_id: int | None = None) -> int:
    query = select(func.count(Report.id))
    if order_id is not None:
        query = query.where(Report.order_id == order_id)
    res = await db.execute(query)
    return res.scalar_one()


def report_to_dict(report: Report) -> dict:
    return {
        "id": report.id,
        "order_id": report.order_id,
        "client_id": report.client_id,
        "reason": report.reason,
        "created_at": report.created_at.isoformat() if report.created_at else None,
    }
