"""Estimation services: density math, Gemini adapter, hierarchy resolution, queries."""

from waste_estimator.services.classifier import GeminiClassifier, WasteClassifier, parse_classifier_response
from waste_estimator.services.density import DEFAULT_CONSTANTS, EstimationConstants
from waste_estimator.services.estimation import EstimationPipeline, EstimationSubmission
from waste_estimator.services.hierarchy import HierarchyResolver

__all__ = [
    "GeminiClassifier",
    "WasteClassifier",
    "parse_classifier_response",
    "DEFAULT_CONSTANTS",
    "EstimationConstants",
    "EstimationPipeline",
    "EstimationSubmission",
    "HierarchyResolver",
]
