"""
Waste Estimator - Estimation Pipeline

validate image → resolve hierarchy → Gemini → parse → density/weight →
confidence → persist (PENDING)

Client-correctable failures (missing image, unresolved hierarchy) propagate
as-is (400). Everything else is logged and re-raised as a classified
EstimationFailedError (500).
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from waste_estimator.core.config import settings
from waste_estimator.core.errors import ImageRequiredError, WasteEstimatorError, wrap_failure
from waste_estimator.db.models import WasteEstimation
from waste_estimator.models.schemas import EstimationStatus
from waste_estimator.services.classifier import (
    WasteClassifier,
    build_estimation_prompt,
    parse_classifier_response,
)
from waste_estimator.services.density import (
    DEFAULT_CONSTANTS,
    EstimationConstants,
    blend_confidence,
    compute_weight_kg,
)
from waste_estimator.services.hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)


@dataclass
class EstimationSubmission:
    """One capture from the field, already decoded from the multipart form."""
    image: Optional[bytes]
    image_name: Optional[str] = None
    mime_type: str = "image/jpeg"
    panchayat_id: Optional[str] = None
    ward_id: Optional[str] = None
    collector_id: Optional[str] = None
    container_type: Optional[str] = None
    container_volume_liters: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class EstimationOutcome:
    estimation: WasteEstimation
    classifier_raw: dict[str, Any]


class EstimationPipeline:
    """Runs one estimation request end to end inside the caller's session."""

    def __init__(
        self,
        db: AsyncSession,
        classifier: WasteClassifier,
        constants: EstimationConstants = DEFAULT_CONSTANTS,
        resolver: Optional[HierarchyResolver] = None,
    ):
        self.db = db
        self.classifier = classifier
        self.constants = constants
        self.resolver = resolver or HierarchyResolver(db)

    async def run(self, submission: EstimationSubmission) -> EstimationOutcome:
        try:
            outcome = await self._run(submission)
            await self.db.commit()
            return outcome
        except WasteEstimatorError as e:
            if e.status_code < 500:
                raise
            logger.error(f"[ESTIMATE] Waste estimation failed: {e.message}")
            raise wrap_failure(e, include_trace=not settings.is_production) from e
        except Exception as e:
            logger.exception("[ESTIMATE] Waste estimation failed")
            raise wrap_failure(e, include_trace=not settings.is_production) from e

    async def _run(self, submission: EstimationSubmission) -> EstimationOutcome:
        if not submission.image:
            raise ImageRequiredError()

        hierarchy = await self.resolver.resolve(
            submission.panchayat_id,
            submission.ward_id,
            submission.collector_id,
        )

        prompt = build_estimation_prompt(
            self.constants.material_types,
            container_type=submission.container_type,
            container_volume_liters=submission.container_volume_liters,
        )
        reply = await self.classifier.classify(submission.image, submission.mime_type, prompt)
        result = parse_classifier_response(reply)

        material = self.constants.resolve_material(result.material)
        density = self.constants.densities[material]
        volume_liters = result.volume_liters_estimate or 0.0
        weight_kg = compute_weight_kg(volume_liters, density)
        confidence = blend_confidence(
            result.material_confidence,
            result.volume_confidence,
            result.image_quality,
            self.constants,
        )

        estimation = WasteEstimation(
            gram_panchayat=hierarchy.panchayat,
            ward=hierarchy.ward,
            collector=hierarchy.collector,
            image_url=self._image_preview(submission.image, submission.mime_type),
            image_name=submission.image_name,
            image_size=len(submission.image),
            container_type=submission.container_type,
            container_volume_liters=submission.container_volume_liters,
            latitude=submission.latitude,
            longitude=submission.longitude,
            address=submission.address,
            material_type=material,
            estimated_volume_liters=volume_liters,
            density_kg_per_l=density,
            estimated_weight_kg=weight_kg,
            fullness_percent=result.fullness_percent,
            moisture_level=result.moisture_level.value if result.moisture_level else None,
            contamination_level=result.contamination_level,
            image_quality=self.constants.resolve_image_quality(result.image_quality),
            confidence=confidence,
            ai_reasoning=result.reasoning_short,
            status=EstimationStatus.PENDING.value,
        )
        self.db.add(estimation)
        await self.db.flush()

        logger.info(
            f"[ESTIMATE] Recorded {estimation.id}: {material} {volume_liters}L → {weight_kg}kg "
            f"(confidence={confidence}, panchayat={hierarchy.panchayat.id})"
        )
        return EstimationOutcome(estimation=estimation, classifier_raw=result.raw)

    @staticmethod
    def _image_preview(image: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(image).decode("utf-8")
        return f"data:{mime_type};base64,{encoded[:settings.IMAGE_PREVIEW_CHARS]}..."
