"""Business settings management routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from washbay.core.database import get_db
from washbay.core.deps import Actor, require_admin, require_staff
from washbay.modules.schedule.config import load_business_config, update_business_config
from washbay.modules.schedule.schemas import BusinessConfigPublic, BusinessConfigUpdate

router = APIRouter(prefix="/api/settings/business", tags=["admin-settings"])


@router.get("", response_model=BusinessConfigPublic)
async def read_business_config(
    _: Actor = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> BusinessConfigPublic:
    return await load_business_config(db)


@router.put("", response_model=BusinessConfigPublic)
async def write_business_config(
    payload: BusinessConfigUpdate,
    _: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BusinessConfigPublic:
    return await update_business_config(db, **payload.model_dump(exclude_unset=True))
