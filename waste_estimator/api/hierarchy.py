"""
Waste Estimator - Administrative Hierarchy API Routes
Zilla → Block → Gram Panchayat → Ward, plus collectors.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from waste_estimator.core.errors import ConflictError, NotFoundError
from waste_estimator.db.models import (
    Block,
    Collector,
    GramPanchayat,
    Ward,
    WasteEstimation,
    ZillaPanchayat,
)
from waste_estimator.db.session import get_db
from waste_estimator.models.schemas import (
    BlockRead,
    CollectorRead,
    CollectorRole,
    DataResponse,
    ErrorResponse,
    GramPanchayatCreate,
    GramPanchayatDetail,
    GramPanchayatWithBlock,
    WardRead,
    ZillaPanchayatRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Hierarchy"])


# =============================================================================
# GRAM PANCHAYATS
# =============================================================================

@router.get("/panchayats", response_model=DataResponse[list[GramPanchayatDetail]])
async def list_panchayats(
    block_id: Optional[str] = Query(None, alias="blockId"),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[GramPanchayatDetail]]:
    """List Gram Panchayats by name, with block, zilla, wards and row counts."""
    estimation_count = (
        select(func.count(WasteEstimation.id))
        .where(WasteEstimation.panchayat_id == GramPanchayat.id)
        .correlate(GramPanchayat)
        .scalar_subquery()
    )
    collector_count = (
        select(func.count(Collector.id))
        .where(Collector.panchayat_id == GramPanchayat.id)
        .correlate(GramPanchayat)
        .scalar_subquery()
    )

    query = select(GramPanchayat, estimation_count, collector_count).options(
        selectinload(GramPanchayat.block).selectinload(Block.zilla_panchayat),
        selectinload(GramPanchayat.wards),
    )
    if block_id:
        query = query.where(GramPanchayat.block_id == block_id)
    query = query.order_by(GramPanchayat.name)

    result = await db.execute(query)
    return DataResponse[list[GramPanchayatDetail]](
        data=[
            GramPanchayatDetail.from_row(panchayat, estimations, collectors)
            for panchayat, estimations, collectors in result.all()
        ]
    )


@router.post(
    "/panchayats",
    response_model=DataResponse[GramPanchayatWithBlock],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_panchayat(
    payload: GramPanchayatCreate,
    db: AsyncSession = Depends(get_db),
) -> DataResponse[GramPanchayatWithBlock]:
    """Create a Gram Panchayat under an existing block."""
    block = await db.get(Block, payload.block_id, options=[selectinload(Block.zilla_panchayat)])
    if not block:
        raise NotFoundError(f"Block {payload.block_id} not found")

    existing = await db.execute(select(GramPanchayat.id).where(GramPanchayat.code == payload.code))
    if existing.scalar_one_or_none():
        raise ConflictError(f"Gram Panchayat with code {payload.code} already exists")

    panchayat = GramPanchayat(
        name=payload.name,
        code=payload.code,
        block=block,
        population=payload.population,
        area=payload.area,
    )
    db.add(panchayat)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"Gram Panchayat with code {payload.code} already exists") from e

    logger.info(f"Created Gram Panchayat: {panchayat.name} ({panchayat.id})")
    return DataResponse[GramPanchayatWithBlock](data=GramPanchayatWithBlock.model_validate(panchayat))


# =============================================================================
# ZILLAS / BLOCKS / WARDS / COLLECTORS
# =============================================================================

@router.get("/zillas", response_model=DataResponse[list[ZillaPanchayatRead]])
async def list_zillas(db: AsyncSession = Depends(get_db)) -> DataResponse[list[ZillaPanchayatRead]]:
    result = await db.execute(select(ZillaPanchayat).order_by(ZillaPanchayat.name))
    return DataResponse[list[ZillaPanchayatRead]](
        data=[ZillaPanchayatRead.model_validate(z) for z in result.scalars().all()]
    )


@router.get("/blocks", response_model=DataResponse[list[BlockRead]])
async def list_blocks(
    zilla_id: Optional[str] = Query(None, alias="zillaId"),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[BlockRead]]:
    query = select(Block)
    if zilla_id:
        query = query.where(Block.zilla_id == zilla_id)
    result = await db.execute(query.order_by(Block.name))
    return DataResponse[list[BlockRead]](
        data=[BlockRead.model_validate(b) for b in result.scalars().all()]
    )


@router.get("/wards", response_model=DataResponse[list[WardRead]])
async def list_wards(
    panchayat_id: Optional[str] = Query(None, alias="panchayatId"),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[WardRead]]:
    """List wards, optionally for one panchayat, by ward number."""
    query = select(Ward)
    if panchayat_id:
        query = query.where(Ward.panchayat_id == panchayat_id)
    result = await db.execute(query.order_by(Ward.panchayat_id, Ward.ward_number))
    return DataResponse[list[WardRead]](
        data=[WardRead.model_validate(w) for w in result.scalars().all()]
    )


@router.get("/collectors", response_model=DataResponse[list[CollectorRead]])
async def list_collectors(
    panchayat_id: Optional[str] = Query(None, alias="panchayatId"),
    ward_id: Optional[str] = Query(None, alias="wardId"),
    role: Optional[CollectorRole] = None,
    db: AsyncSession = Depends(get_db),
) -> DataResponse[list[CollectorRead]]:
    query = select(Collector).where(Collector.is_active == True)  # noqa: E712
    if panchayat_id:
        query = query.where(Collector.panchayat_id == panchayat_id)
    if ward_id:
        query = query.where(Collector.ward_id == ward_id)
    if role:
        query = query.where(Collector.role == role.value)
    result = await db.execute(query.order_by(Collector.name))
    return DataResponse[list[CollectorRead]](
        data=[CollectorRead.model_validate(c) for c in result.scalars().all()]
    )
