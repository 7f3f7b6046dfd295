"""
Catalog endpoints — list services, admin service management.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import require_admin
from domain.responses import success_response
from models import ServiceCreateRequest
from services import catalog_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/services", tags=["catalog"])


@router.get("")
async def list_services(db: AsyncSession = Depends(get_db)):
    services = await catalog_service.list_services(db)
    return success_response(
        data=[catalog_service.service_to_dict(s) for s in services],
        meta={"total": len(services)},
    )


@router.get("/{service_id}")
async def get_service(service_id: str, db: AsyncSession = Depends(get_db)):
    service = await catalog_service.get_service(db, service_id)
    return success_response(data=catalog_service.service_to_dict(service))


@router.post("", dependencies=[Depends(require_admin)])
async def create_service(request: ServiceCreateRequest, db: AsyncSession = Depends(get_db)):
    service = await catalog_service.create_service(
        db,
        name=request.name,
        description=request.description,
        price_per_cloth=request.price_per_cloth,
    )
    await db.commit()
    await db.refresh(service)
    return success_response(data=catalog_service.service_to_dict(service))
