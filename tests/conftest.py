"""
Shared fixtures: per-test SQLite database, a canned classifier, and an
HTTP client wired to the app with both overridden.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ["GOOGLE_API_KEY"] = ""

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from waste_estimator.db.models import (
    Base,
    Block,
    Collector,
    GramPanchayat,
    Ward,
    WasteEstimation,
    ZillaPanchayat,
)
from waste_estimator.db.session import get_db
from waste_estimator.dependencies import get_classifier
from waste_estimator.main import create_app


DEFAULT_REPLY: dict[str, Any] = {
    "material": "plastic",
    "volume_liters_estimate": 20,
    "volume_confidence": 0.7,
    "material_confidence": 0.9,
    "fullness_percent": 65,
    "moisture_level": "dry",
    "contamination_level": 0.2,
    "image_quality": "good",
    "reasoning_short": "Mostly PET bottles and carry bags in a 60L bin",
}


@dataclass
class ClassifierCall:
    image: bytes
    mime_type: str
    prompt: str


@dataclass
class FakeClassifier:
    """Returns a fixed reply (or raises) and records every call."""
    reply: str = field(default_factory=lambda: json.dumps(DEFAULT_REPLY))
    error: Optional[Exception] = None
    calls: list[ClassifierCall] = field(default_factory=list)

    async def classify(self, image: bytes, mime_type: str, prompt: str) -> str:
        self.calls.append(ClassifierCall(image, mime_type, prompt))
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass
class Hierarchy:
    zilla_id: str
    block_id: str
    demo_panchayat_id: str
    demo_ward_ids: list[str]
    demo_collector_id: str
    other_panchayat_id: str
    other_ward_id: str
    other_collector_id: str


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'waste_estimator.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def default_reply() -> dict[str, Any]:
    return dict(DEFAULT_REPLY)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
async def client(session_maker, classifier):
    app = create_app()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_classifier] = lambda: classifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
async def hierarchy(session_maker) -> Hierarchy:
    """Dakshina Kannada zilla with one demo panchayat and one regular panchayat."""
    async with session_maker() as session:
        zilla = ZillaPanchayat(
            id="zp-dk",
            name="Dakshina Kannada Zilla Panchayat",
            code="KA-DK-ZP",
            state="Karnataka",
            district="Dakshina Kannada",
        )
        block = Block(id="block-mlr", name="Mangaluru Block", code="KA-DK-MANGALURU", zilla_panchayat=zilla)

        other = GramPanchayat(
            id="gp-bantwal",
            name="Bantwal Gram Panchayat",
            code="KA-DK-GP-001",
            block=block,
            population=8500,
            area=12.5,
        )
        other_ward = Ward(id="bantwal-ward-1", name="Ward 1 - Market", ward_number=1, panchayat=other)
        other_collector = Collector(
            id="bantwal-collector-1",
            name="Anitha Rao",
            phone="+91-9876500001",
            panchayat=other,
            ward=other_ward,
        )

        demo = GramPanchayat(
            id="demo-panchayat-1",
            name="Demo Panchayat (For Testing)",
            code="KA-DK-GP-DEMO",
            block=block,
            population=5000,
            area=8.0,
        )
        ward_2 = Ward(id="demo-ward-2", name="Ward 2 - East", ward_number=2, panchayat=demo, households=95)
        ward_1 = Ward(id="demo-ward-1", name="Ward 1 - Central", ward_number=1, panchayat=demo, households=120)
        collector = Collector(
            id="demo-collector-1",
            name="Ramesh Kumar",
            phone="+91-9876543210",
            email="ramesh@example.com",
            role="COLLECTOR",
            panchayat=demo,
            ward=ward_1,
        )

        session.add_all([zilla, block, other, other_ward, other_collector, demo, ward_2, ward_1, collector])
        await session.commit()

    return Hierarchy(
        zilla_id="zp-dk",
        block_id="block-mlr",
        demo_panchayat_id="demo-panchayat-1",
        demo_ward_ids=["demo-ward-1", "demo-ward-2"],
        demo_collector_id="demo-collector-1",
        other_panchayat_id="gp-bantwal",
        other_ward_id="bantwal-ward-1",
        other_collector_id="bantwal-collector-1",
    )


@pytest.fixture
def make_estimation(session_maker, hierarchy):
    """Insert a WasteEstimation row directly, bypassing the pipeline."""

    async def _make(**overrides) -> WasteEstimation:
        values = dict(
            panchayat_id=hierarchy.demo_panchayat_id,
            ward_id=hierarchy.demo_ward_ids[0],
            collector_id=hierarchy.demo_collector_id,
            material_type="organic",
            estimated_volume_liters=10.0,
            density_kg_per_l=0.6,
            estimated_weight_kg=6.0,
            image_quality="good",
            confidence=0.8,
            status="PENDING",
            collection_date=datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc),
        )
        values.update(overrides)
        async with session_maker() as session:
            estimation = WasteEstimation(**values)
            session.add(estimation)
            await session.commit()
        return estimation

    return _make
