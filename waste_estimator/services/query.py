"""Read-side filters and page summary over waste estimations."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from waste_estimator.core.config import settings
from waste_estimator.db.models import WasteEstimation
from waste_estimator.models.schemas import EstimationSummary

logger = logging.getLogger(__name__)


@dataclass
class EstimationFilters:
    panchayat_id: Optional[str] = None
    ward_id: Optional[str] = None
    collector_id: Optional[str] = None
    status: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    limit: int = settings.DEFAULT_QUERY_LIMIT


def build_estimation_query(filters: EstimationFilters) -> Select:
    """Filtered, newest-first query with hierarchy relations eagerly loaded."""
    query = select(WasteEstimation).options(
        selectinload(WasteEstimation.gram_panchayat),
        selectinload(WasteEstimation.ward),
        selectinload(WasteEstimation.collector),
    )

    if filters.panchayat_id:
        query = query.where(WasteEstimation.panchayat_id == filters.panchayat_id)
    if filters.ward_id:
        query = query.where(WasteEstimation.ward_id == filters.ward_id)
    if filters.collector_id:
        query = query.where(WasteEstimation.collector_id == filters.collector_id)
    if filters.status:
        query = query.where(WasteEstimation.status == filters.status)
    if filters.from_date:
        query = query.where(WasteEstimation.collection_date >= filters.from_date)
    if filters.to_date:
        query = query.where(WasteEstimation.collection_date <= filters.to_date)

    return query.order_by(WasteEstimation.collection_date.desc()).limit(filters.limit)


def summarize(estimations: Sequence[WasteEstimation]) -> EstimationSummary:
    """Totals over exactly the rows given (the returned page, not all matches)."""
    count = len(estimations)
    total_weight = sum(e.estimated_weight_kg for e in estimations)
    total_volume = sum(e.estimated_volume_liters for e in estimations)
    avg_confidence = sum(e.confidence for e in estimations) / count if count else 0.0

    return EstimationSummary(
        count=count,
        total_weight_kg=round(total_weight, 2),
        total_volume_liters=round(total_volume, 2),
        avg_confidence=round(avg_confidence, 2),
    )


async def list_estimations(
    db: AsyncSession, filters: EstimationFilters
) -> tuple[list[WasteEstimation], EstimationSummary]:
    result = await db.execute(build_estimation_query(filters))
    estimations = list(result.scalars().all())
    logger.debug(f"Fetched {len(estimations)} estimations (limit={filters.limit})")
    return estimations, summarize(estimations)
