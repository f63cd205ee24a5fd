"""
Waste Estimator - Hierarchy Resolution
Resolves panchayat → ward → collector for an estimation request.

Precedence per level (first hit wins):
- panchayat: explicit ID | demo-named panchayat → any panchayat
- ward:      explicit ID | first ward of resolved panchayat
- collector: explicit ID | first collector of resolved panchayat

An explicit ID is looked up directly and never falls back to a default.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from waste_estimator.core.config import settings
from waste_estimator.core.errors import HierarchyNotProvisionedError
from waste_estimator.db.models import Collector, GramPanchayat, Ward

logger = logging.getLogger(__name__)

T = TypeVar("T")
Lookup = Callable[[], Awaitable[Optional[T]]]


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


@dataclass(frozen=True)
class ResolvedHierarchy:
    panchayat: GramPanchayat
    ward: Ward
    collector: Collector


class HierarchyResolver:
    """Ordered resolve-or-default lookups against the persistence store."""

    def __init__(self, db: AsyncSession, demo_marker: Optional[str] = None):
        self.db = db
        self.demo_marker = demo_marker if demo_marker is not None else settings.DEMO_PANCHAYAT_MARKER

    async def resolve(
        self,
        panchayat_id: Optional[str] = None,
        ward_id: Optional[str] = None,
        collector_id: Optional[str] = None,
    ) -> ResolvedHierarchy:
        panchayat = await self._first_match(self.panchayat_lookups(panchayat_id))
        ward = await self._first_match(self.ward_lookups(ward_id, panchayat))
        collector = await self._first_match(self.collector_lookups(collector_id, panchayat))

        missing = [
            name
            for name, value in (("panchayat", panchayat), ("ward", ward), ("collector", collector))
            if value is None
        ]
        if missing:
            logger.warning(f"[HIERARCHY] Unresolved: {', '.join(missing)}")
            raise HierarchyNotProvisionedError(details={"unresolved": missing})

        return ResolvedHierarchy(panchayat=panchayat, ward=ward, collector=collector)

    # -------------------------------------------------------------------------
    # Lookup chains
    # -------------------------------------------------------------------------

    def panchayat_lookups(self, panchayat_id: Optional[str]) -> list[Lookup[GramPanchayat]]:
        if not is_blank(panchayat_id):
            return [lambda: self.db.get(GramPanchayat, panchayat_id.strip())]
        lookups: list[Lookup[GramPanchayat]] = []
        if self.demo_marker:
            lookups.append(
                lambda: self._first(
                    select(GramPanchayat)
                    .where(GramPanchayat.name.contains(self.demo_marker, autoescape=True))
                    .order_by(GramPanchayat.created_at, GramPanchayat.id)
                )
            )
        lookups.append(
            lambda: self._first(select(GramPanchayat).order_by(GramPanchayat.created_at, GramPanchayat.id))
        )
        return lookups

    def ward_lookups(self, ward_id: Optional[str], panchayat: Optional[GramPanchayat]) -> list[Lookup[Ward]]:
        if not is_blank(ward_id):
            return [lambda: self.db.get(Ward, ward_id.strip())]
        if panchayat is None:
            return []
        return [
            lambda: self._first(
                select(Ward)
                .where(Ward.panchayat_id == panchayat.id)
                .order_by(Ward.ward_number, Ward.id)
            )
        ]

    def collector_lookups(
        self, collector_id: Optional[str], panchayat: Optional[GramPanchayat]
    ) -> list[Lookup[Collector]]:
        if not is_blank(collector_id):
            return [lambda: self.db.get(Collector, collector_id.strip())]
        if panchayat is None:
            return []
        return [
            lambda: self._first(
                select(Collector)
                .where(Collector.panchayat_id == panchayat.id)
                .order_by(Collector.created_at, Collector.id)
            )
        ]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _first(self, query: Select) -> Optional[T]:
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    @staticmethod
    async def _first_match(lookups: Sequence[Lookup[T]]) -> Optional[T]:
        for lookup in lookups:
            found = await lookup()
            if found is not None:
                return found
        return None
