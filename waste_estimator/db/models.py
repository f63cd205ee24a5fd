"""
Waste Estimator - SQLAlchemy ORM Models
Administrative hierarchy (Zilla → Block → Gram Panchayat → Ward) plus
collectors and the waste estimation fact table.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class ZillaPanchayat(TimestampMixin, Base):
    """District-level administrative tier."""

    __tablename__ = "zilla_panchayats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)

    blocks: Mapped[list["Block"]] = relationship(back_populates="zilla_panchayat")


class Block(TimestampMixin, Base):
    """Block (taluk) within a Zilla Panchayat."""

    __tablename__ = "blocks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    zilla_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("zilla_panchayats.id", ondelete="CASCADE"), nullable=False
    )

    zilla_panchayat: Mapped["ZillaPanchayat"] = relationship(back_populates="blocks")
    panchayats: Mapped[list["GramPanchayat"]] = relationship(back_populates="block")

    __table_args__ = (Index("idx_blocks_zilla", "zilla_id"),)


class GramPanchayat(TimestampMixin, Base):
    """Village-level local self-government unit."""

    __tablename__ = "gram_panchayats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    block_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False
    )
    population: Mapped[Optional[int]] = mapped_column(Integer)
    area: Mapped[Optional[float]] = mapped_column(Float)  # km²

    block: Mapped["Block"] = relationship(back_populates="panchayats")
    wards: Mapped[list["Ward"]] = relationship(
        back_populates="panchayat", order_by="Ward.ward_number"
    )
    collectors: Mapped[list["Collector"]] = relationship(back_populates="panchayat")
    estimations: Mapped[list["WasteEstimation"]] = relationship(back_populates="gram_panchayat")

    __table_args__ = (
        CheckConstraint("population IS NULL OR population >= 0", name="gram_panchayats_population_non_negative"),
        Index("idx_gram_panchayats_block", "block_id"),
        Index("idx_gram_panchayats_name", "name"),
    )


class Ward(TimestampMixin, Base):
    """Ward within a Gram Panchayat."""

    __tablename__ = "wards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    ward_number: Mapped[int] = mapped_column(Integer, nullable=False)
    panchayat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gram_panchayats.id", ondelete="CASCADE"), nullable=False
    )
    households: Mapped[Optional[int]] = mapped_column(Integer)

    panchayat: Mapped["GramPanchayat"] = relationship(back_populates="wards")

    __table_args__ = (Index("idx_wards_panchayat", "panchayat_id"),)


class Collector(TimestampMixin, Base):
    """Field personnel capturing waste images."""

    __tablename__ = "collectors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="COLLECTOR")
    panchayat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gram_panchayats.id", ondelete="CASCADE"), nullable=False
    )
    ward_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("wards.id", ondelete="SET NULL")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    panchayat: Mapped["GramPanchayat"] = relationship(back_populates="collectors")
    ward: Mapped[Optional["Ward"]] = relationship()

    __table_args__ = (
        CheckConstraint("role IN ('COLLECTOR', 'SUPERVISOR')", name="collectors_role_valid"),
        Index("idx_collectors_panchayat", "panchayat_id"),
    )


class WasteEstimation(TimestampMixin, Base):
    """One AI-assisted waste estimate. Created once, never mutated by the pipeline."""

    __tablename__ = "waste_estimations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    panchayat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gram_panchayats.id"), nullable=False
    )
    ward_id: Mapped[str] = mapped_column(String(36), ForeignKey("wards.id"), nullable=False)
    collector_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collectors.id"), nullable=False
    )

    # Image preview only; the upload itself is not stored
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    image_name: Mapped[Optional[str]] = mapped_column(String(255))
    image_size: Mapped[Optional[int]] = mapped_column(Integer)

    container_type: Mapped[Optional[str]] = mapped_column(String(100))
    container_volume_liters: Mapped[Optional[float]] = mapped_column(Float)

    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    address: Mapped[Optional[str]] = mapped_column(String(500))

    # Derived
    material_type: Mapped[str] = mapped_column(String(50), nullable=False)
    estimated_volume_liters: Mapped[float] = mapped_column(Float, nullable=False)
    density_kg_per_l: Mapped[float] = mapped_column(Float, nullable=False)
    estimated_weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    fullness_percent: Mapped[Optional[float]] = mapped_column(Float)
    moisture_level: Mapped[Optional[str]] = mapped_column(String(10))
    contamination_level: Mapped[Optional[float]] = mapped_column(Float)
    image_quality: Mapped[str] = mapped_column(String(10), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    ai_reasoning: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    collection_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    gram_panchayat: Mapped["GramPanchayat"] = relationship(back_populates="estimations")
    ward: Mapped["Ward"] = relationship()
    collector: Mapped["Collector"] = relationship()

    __table_args__ = (
        CheckConstraint(
            "material_type IN ('mixed_msw', 'plastic', 'paper', 'glass', 'metal', 'organic', "
            "'textiles', 'e_waste', 'construction_debris', 'rubber', 'wood')",
            name="waste_estimations_material_valid",
        ),
        CheckConstraint(
            "moisture_level IS NULL OR moisture_level IN ('dry', 'moist', 'wet')",
            name="waste_estimations_moisture_valid",
        ),
        CheckConstraint(
            "image_quality IN ('good', 'medium', 'poor')",
            name="waste_estimations_image_quality_valid",
        ),
        CheckConstraint(
            "status IN ('PENDING', 'VERIFIED', 'REJECTED')",
            name="waste_estimations_status_valid",
        ),
        CheckConstraint(
            "confidence >= 0 AND confidence <= 1",
            name="waste_estimations_confidence_range",
        ),
        CheckConstraint("estimated_volume_liters >= 0", name="waste_estimations_volume_non_negative"),
        Index("idx_waste_estimations_panchayat", "panchayat_id"),
        Index("idx_waste_estimations_ward", "ward_id"),
        Index("idx_waste_estimations_collector", "collector_id"),
        Index("idx_waste_estimations_collection_date", "collection_date"),
        Index("idx_waste_estimations_status", "status"),
    )
