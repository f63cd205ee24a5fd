"""
Waste Estimator - Density Table & Confidence Math

WEIGHT:
- weight_kg = round(volume_liters × density_kg_per_l, 2)
- Unknown or empty material → mixed_msw (0.15 kg/L)

CONFIDENCE (fixed weights, consumed by downstream display):
- C = round(0.50*C_material + 0.30*C_volume + 0.20*Q_image, 2)
- Q_image: good=1.0, medium=0.6, poor=0.3
- Missing C_material / C_volume → 0.5
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from waste_estimator.models.schemas import ImageQuality, MaterialType


# =============================================================================
# REFERENCE DATA
# =============================================================================

# kg per liter of loosely piled waste
MATERIAL_DENSITIES: Mapping[str, float] = MappingProxyType({
    MaterialType.MIXED_MSW.value: 0.15,
    MaterialType.PLASTIC.value: 0.04,
    MaterialType.PAPER.value: 0.12,
    MaterialType.GLASS.value: 0.5,
    MaterialType.METAL.value: 0.35,
    MaterialType.ORGANIC.value: 0.6,
    MaterialType.TEXTILES.value: 0.1,
    MaterialType.E_WASTE.value: 0.4,
    MaterialType.CONSTRUCTION_DEBRIS.value: 0.8,
    MaterialType.RUBBER.value: 0.3,
    MaterialType.WOOD.value: 0.25,
})

MATERIAL_TYPES: tuple[str, ...] = tuple(m.value for m in MaterialType)

IMAGE_QUALITY_SCORES: Mapping[str, float] = MappingProxyType({
    ImageQuality.GOOD.value: 1.0,
    ImageQuality.MEDIUM.value: 0.6,
    ImageQuality.POOR.value: 0.3,
})


@dataclass(frozen=True)
class ConfidenceWeights:
    material: float = 0.5
    volume: float = 0.3
    image_quality: float = 0.2


@dataclass(frozen=True)
class EstimationConstants:
    """Immutable lookup tables injected into the estimation pipeline.

    A replacement table may drop categories but not add new ones: stored
    material types and image qualities are limited to MaterialType and
    ImageQuality.
    """
    densities: Mapping[str, float] = field(default_factory=lambda: MATERIAL_DENSITIES)
    default_material: str = MaterialType.MIXED_MSW.value
    image_quality_scores: Mapping[str, float] = field(default_factory=lambda: IMAGE_QUALITY_SCORES)
    fallback_image_quality: str = ImageQuality.POOR.value
    weights: ConfidenceWeights = field(default_factory=ConfidenceWeights)
    default_confidence: float = 0.5

    def __post_init__(self):
        unknown = set(self.densities) - {m.value for m in MaterialType}
        if unknown:
            raise ValueError(f"Unknown material types in density table: {sorted(unknown)}")
        unknown = set(self.image_quality_scores) - {q.value for q in ImageQuality}
        if unknown:
            raise ValueError(f"Unknown image qualities in score table: {sorted(unknown)}")
        if self.default_material not in self.densities:
            raise ValueError(f"Default material {self.default_material!r} has no density entry")
        if self.fallback_image_quality not in self.image_quality_scores:
            raise ValueError(f"Fallback image quality {self.fallback_image_quality!r} has no score")
        # Callers may pass plain dicts; freeze them.
        object.__setattr__(self, "densities", MappingProxyType(dict(self.densities)))
        object.__setattr__(self, "image_quality_scores", MappingProxyType(dict(self.image_quality_scores)))

    @property
    def material_types(self) -> tuple[str, ...]:
        return tuple(self.densities)

    def resolve_material(self, material: Optional[str]) -> str:
        """Return the reported material if the table knows it, else the default."""
        if material and material in self.densities:
            return material
        return self.default_material

    def density_for(self, material: Optional[str]) -> float:
        return self.densities[self.resolve_material(material)]

    def resolve_image_quality(self, quality: Optional[str]) -> str:
        if quality and quality in self.image_quality_scores:
            return quality
        return self.fallback_image_quality

    def image_quality_score(self, quality: Optional[str]) -> float:
        return self.image_quality_scores[self.resolve_image_quality(quality)]


DEFAULT_CONSTANTS = EstimationConstants()


def compute_weight_kg(volume_liters: Optional[float], density_kg_per_l: float) -> float:
    """weight = volume × density, two decimals. Missing volume counts as 0."""
    return round((volume_liters or 0.0) * density_kg_per_l, 2)


def _clamp_unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def blend_confidence(
    material_confidence: Optional[float],
    volume_confidence: Optional[float],
    image_quality: Optional[str],
    constants: EstimationConstants = DEFAULT_CONSTANTS,
) -> float:
    """Weighted blend of classifier confidences and image quality, two decimals."""
    mc = constants.default_confidence if material_confidence is None else _clamp_unit(material_confidence)
    vc = constants.default_confidence if volume_confidence is None else _clamp_unit(volume_confidence)
    iq = constants.image_quality_score(image_quality)

    w = constants.weights
    return round(w.material * mc + w.volume * vc + w.image_quality * iq, 2)
