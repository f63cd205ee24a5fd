# Database module
from waste_estimator.db.session import get_db, engine, async_session_maker
from waste_estimator.db.models import (
    Base,
    ZillaPanchayat,
    Block,
    GramPanchayat,
    Ward,
    Collector,
    WasteEstimation,
)

__all__ = [
    "get_db",
    "engine",
    "async_session_maker",
    "Base",
    "ZillaPanchayat",
    "Block",
    "GramPanchayat",
    "Ward",
    "Collector",
    "WasteEstimation",
]
