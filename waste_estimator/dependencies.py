"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from waste_estimator.db.session import get_db
from waste_estimator.services.classifier import GeminiClassifier, WasteClassifier
from waste_estimator.services.density import DEFAULT_CONSTANTS, EstimationConstants
from waste_estimator.services.estimation import EstimationPipeline


@lru_cache()
def get_classifier() -> WasteClassifier:
    """Gemini adapter configured from settings. Overridden in tests."""
    return GeminiClassifier()


def get_estimation_constants() -> EstimationConstants:
    return DEFAULT_CONSTANTS


def get_estimation_pipeline(
    db: AsyncSession = Depends(get_db),
    classifier: WasteClassifier = Depends(get_classifier),
    constants: EstimationConstants = Depends(get_estimation_constants),
) -> EstimationPipeline:
    return EstimationPipeline(db, classifier, constants)
