"""
Waste Estimator - Estimation API Route
Multipart photo upload → AI-assisted waste estimate.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from waste_estimator.core.errors import InvalidFieldError
from waste_estimator.dependencies import get_estimation_pipeline
from waste_estimator.models.schemas import EstimateResponse, ErrorResponse, WasteEstimationRead
from waste_estimator.services.estimation import EstimationPipeline, EstimationSubmission

router = APIRouter(prefix="/api", tags=["Estimation"])


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _optional_number(field: str, value: Optional[str]) -> Optional[float]:
    text = _optional_text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        raise InvalidFieldError(f"{field} must be a number", details={field: value})
    if not math.isfinite(number):
        raise InvalidFieldError(f"{field} must be a finite number", details={field: value})
    return number


@router.post(
    "/estimate",
    response_model=EstimateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def estimate_waste(
    image: Optional[UploadFile] = File(None),
    panchayat_id: Optional[str] = Form(None, alias="panchayatId"),
    ward_id: Optional[str] = Form(None, alias="wardId"),
    collector_id: Optional[str] = Form(None, alias="collectorId"),
    container_type: Optional[str] = Form(None, alias="containerType"),
    container_volume_liters: Optional[str] = Form(None, alias="containerVolumeLiters"),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    pipeline: EstimationPipeline = Depends(get_estimation_pipeline),
) -> EstimateResponse:
    """
    Estimate waste weight from a photo.

    Blank panchayatId/wardId/collectorId fall back to the demo hierarchy.
    The persisted record is returned with gramPanchayat, ward and collector
    expanded, alongside the classifier's raw JSON.
    """
    submission = EstimationSubmission(
        image=await image.read() if image is not None else None,
        image_name=image.filename if image is not None else None,
        mime_type=(image.content_type if image is not None else None) or "image/jpeg",
        panchayat_id=panchayat_id,
        ward_id=ward_id,
        collector_id=collector_id,
        container_type=_optional_text(container_type),
        container_volume_liters=_optional_number("containerVolumeLiters", container_volume_liters),
        latitude=_optional_number("latitude", latitude),
        longitude=_optional_number("longitude", longitude),
        address=_optional_text(address),
    )

    outcome = await pipeline.run(submission)
    return EstimateResponse(
        data=WasteEstimationRead.model_validate(outcome.estimation),
        gemini_raw=outcome.classifier_raw,
    )
