"""
Catalog service — laundry services and their per-garment prices.
"""
import json
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Service
from domain.catalog import DEFAULT_SERVICES, service_id_for
from domain.constants import GARMENT_KINDS
from domain.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


async def seed_default_services(db: AsyncSession) -> int:
    """Insert the default catalog if no services exist. Returns rows inserted."""
    existing = await db.execute(select(func.count(Service.id)))
    if existing.scalar_one() > 0:
        return 0

    for entry in DEFAULT_SERVICES:
        db.add(
            Service(
                id=service_id_for(entry["name"]),
                name=entry["name"],
                description=entry["description"],
                price_per_cloth_json=json.dumps(entry["price_per_cloth"]),
            )
        )
    await db.flush()
    logger.info(f"Seeded {len(DEFAULT_SERVICES)} default services")
    return len(DEFAULT_SERVICES)


async def list_services(db: AsyncSession) -> list[Service]:
    res = await db.execute(select(Service).order_by(Service.created_at, Service.id))
    return res.scalars().all()


async def get_service(db: AsyncSession, service_id: str) -> Service:
    res = await db.execute(select(Service).where(Service.id == service_id))
    service = res.scalar_one_or_none()
    if not service:
        raise NotFoundError("Service", service_id)
    return service


async def create_service(
    db: AsyncSession,
    *,
    name: str,
    description: str | None,
    price_per_cloth: dict[str, int],
) -> Service:
    kinds = {k.value for k in GARMENT_KINDS}
    unknown = sorted(set(price_per_cloth) - kinds)
    if unknown:
        raise ValidationError(f"Unknown garment kind(s): {', '.join(unknown)}", field="price_per_cloth")
    if any(int(p) < 0 for p in price_per_cloth.values()):
        raise ValidationError("Prices must be >= 0", field="price_per_cloth")

    service_id = service_id_for(name)
    res = await db.execute(select(Service).where(Service.id == service_id))
    if res.scalar_one_or_none():
        raise ConflictError(f"Service '{name}' already exists", details={"id": service_id})

    service = Service(
        id=service_id,
        name=name.strip(),
        description=description,
        price_per_cloth_json=json.dumps({k: int(v) for k, v in price_per_cloth.items()}),
    )
    db.add(service)
    await db.flush()
    logger.info(f"Service created: {service_id}")
    return service


def service_to_dict(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "price_per_cloth": service.price_per_cloth,
    }
