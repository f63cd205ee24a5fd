"""
Waste Estimator - Estimations Query API
Filtered listing with a summary over the returned page.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from waste_estimator.core.config import settings
from waste_estimator.core.errors import InvalidFieldError, WasteEstimatorError
from waste_estimator.db.session import get_db
from waste_estimator.models.schemas import (
    ErrorResponse,
    EstimationListResponse,
    EstimationStatus,
    WasteEstimationRead,
)
from waste_estimator.services.query import EstimationFilters, list_estimations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Estimations"])


def _parse_date(field: str, value: Optional[str]) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise InvalidFieldError(f"{field} must be an ISO-8601 date or datetime", details={field: value})
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@router.get(
    "/estimations",
    response_model=EstimationListResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_estimations(
    panchayat_id: Optional[str] = Query(None, alias="panchayatId"),
    ward_id: Optional[str] = Query(None, alias="wardId"),
    collector_id: Optional[str] = Query(None, alias="collectorId"),
    status: Optional[EstimationStatus] = None,
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    limit: int = Query(settings.DEFAULT_QUERY_LIMIT, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> EstimationListResponse:
    """
    List estimations, newest collection date first.

    The summary covers only the rows returned (at most `limit`), not every
    row matching the filters.
    """
    filters = EstimationFilters(
        panchayat_id=panchayat_id or None,
        ward_id=ward_id or None,
        collector_id=collector_id or None,
        status=status.value if status else None,
        from_date=_parse_date("fromDate", from_date),
        to_date=_parse_date("toDate", to_date),
        limit=limit,
    )

    try:
        estimations, summary = await list_estimations(db, filters)
    except Exception as e:
        logger.exception("Failed to fetch estimations")
        raise WasteEstimatorError("Failed to fetch estimations", details=str(e)) from e

    return EstimationListResponse(
        data=[WasteEstimationRead.model_validate(e) for e in estimations],
        summary=summary,
    )
