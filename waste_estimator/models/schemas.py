"""
Waste Estimator - Pydantic Schemas
Request/response contracts. Wire keys are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class MaterialType(str, Enum):
    """Dominant waste material categories the classifier may report."""
    MIXED_MSW = "mixed_msw"                      # Mixed Municipal Solid Waste
    PLASTIC = "plastic"                          # Bottles, bags
    PAPER = "paper"                              # Paper, cardboard
    GLASS = "glass"                              # Bottles, jars
    METAL = "metal"                              # Cans, containers
    ORGANIC = "organic"                          # Food, garden waste
    TEXTILES = "textiles"                        # Cloth, fabric
    E_WASTE = "e_waste"                          # Electronic waste
    CONSTRUCTION_DEBRIS = "construction_debris"
    RUBBER = "rubber"                            # Rubber, tyres
    WOOD = "wood"


class MoistureLevel(str, Enum):
    DRY = "dry"
    MOIST = "moist"
    WET = "wet"


class ImageQuality(str, Enum):
    GOOD = "good"
    MEDIUM = "medium"
    POOR = "poor"


class EstimationStatus(str, Enum):
    """Review lifecycle; the pipeline only ever writes PENDING."""
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class CollectorRole(str, Enum):
    COLLECTOR = "COLLECTOR"
    SUPERVISOR = "SUPERVISOR"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# =============================================================================
# ADMINISTRATIVE HIERARCHY
# =============================================================================

class ZillaPanchayatRead(CamelModel):
    id: str
    name: str
    code: str
    state: str
    district: str
    created_at: datetime
    updated_at: datetime


class BlockRead(CamelModel):
    id: str
    name: str
    code: str
    zilla_id: str
    created_at: datetime
    updated_at: datetime


class BlockWithZilla(BlockRead):
    zilla_panchayat: ZillaPanchayatRead


class WardRead(CamelModel):
    id: str
    name: str
    ward_number: int
    panchayat_id: str
    households: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CollectorRead(CamelModel):
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    role: CollectorRole
    panchayat_id: str
    ward_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class GramPanchayatRead(CamelModel):
    id: str
    name: str
    code: str
    block_id: str
    population: Optional[int] = None
    area: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class GramPanchayatWithBlock(GramPanchayatRead):
    block: BlockWithZilla


class PanchayatCounts(BaseModel):
    estimations: int = 0
    collectors: int = 0


class GramPanchayatDetail(GramPanchayatWithBlock):
    """Listing shape: block (with zilla), wards and related-row counts."""
    wards: list[WardRead] = Field(default_factory=list)
    counts: PanchayatCounts = Field(default_factory=PanchayatCounts, alias="_count")

    @classmethod
    def from_row(cls, panchayat: Any, estimations: int, collectors: int) -> "GramPanchayatDetail":
        detail = cls.model_validate(panchayat)
        detail.counts = PanchayatCounts(estimations=estimations, collectors=collectors)
        return detail


class GramPanchayatCreate(CamelModel):
    """Panchayat creation payload."""
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    block_id: str = Field(..., min_length=1)
    population: Optional[int] = Field(None, ge=0)
    area: Optional[float] = Field(None, ge=0)


# =============================================================================
# WASTE ESTIMATIONS
# =============================================================================

class WasteEstimationRead(CamelModel):
    id: str
    panchayat_id: str
    ward_id: str
    collector_id: str

    image_url: Optional[str] = None
    image_name: Optional[str] = None
    image_size: Optional[int] = None
    container_type: Optional[str] = None
    container_volume_liters: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    material_type: MaterialType
    estimated_volume_liters: float
    density_kg_per_l: float
    estimated_weight_kg: float
    fullness_percent: Optional[float] = None
    moisture_level: Optional[MoistureLevel] = None
    contamination_level: Optional[float] = None
    image_quality: ImageQuality
    confidence: float
    ai_reasoning: Optional[str] = None

    status: EstimationStatus
    collection_date: datetime
    created_at: datetime
    updated_at: datetime

    gram_panchayat: GramPanchayatRead
    ward: WardRead
    collector: CollectorRead


class EstimationSummary(CamelModel):
    """Aggregates over the returned page of estimations."""
    count: int
    total_weight_kg: float
    total_volume_liters: float
    avg_confidence: float


# =============================================================================
# RESPONSE ENVELOPES
# =============================================================================

T = TypeVar("T")


class EstimateResponse(CamelModel):
    success: bool = True
    data: WasteEstimationRead
    gemini_raw: dict[str, Any]


class EstimationListResponse(CamelModel):
    success: bool = True
    data: list[WasteEstimationRead]
    summary: EstimationSummary


class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None
