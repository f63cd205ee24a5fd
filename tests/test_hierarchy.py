"""
Panchayat → ward → collector resolution with demo defaults.
"""

import pytest

from waste_estimator.core.errors import HierarchyNotProvisionedError
from waste_estimator.db.models import Block, GramPanchayat, ZillaPanchayat
from waste_estimator.services.hierarchy import HierarchyResolver, is_blank


class TestIsBlank:

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_blank(self, value):
        assert is_blank(value)

    def test_not_blank(self):
        assert not is_blank(" demo-ward-1 ")


class TestDefaults:
    """No IDs supplied: the demo panchayat and its first ward/collector."""

    async def test_resolves_demo_hierarchy(self, db, hierarchy):
        resolved = await HierarchyResolver(db).resolve()
        assert resolved.panchayat.id == hierarchy.demo_panchayat_id
        assert resolved.ward.id == "demo-ward-1"
        assert resolved.collector.id == hierarchy.demo_collector_id

    async def test_whitespace_ids_are_absent(self, db, hierarchy):
        resolved = await HierarchyResolver(db).resolve("  ", "", "\t")
        assert resolved.panchayat.id == hierarchy.demo_panchayat_id
        assert resolved.ward.id == "demo-ward-1"

    async def test_falls_back_to_any_panchayat(self, db, hierarchy):
        resolved = await HierarchyResolver(db, demo_marker="Sandbox").resolve()
        assert resolved.panchayat.id in {hierarchy.demo_panchayat_id, hierarchy.other_panchayat_id}
        assert resolved.ward.panchayat_id == resolved.panchayat.id
        assert resolved.collector.panchayat_id == resolved.panchayat.id

    async def test_empty_store(self, db):
        with pytest.raises(HierarchyNotProvisionedError) as exc:
            await HierarchyResolver(db).resolve()
        assert exc.value.status_code == 400
        assert exc.value.details == {"unresolved": ["panchayat", "ward", "collector"]}

    async def test_panchayat_without_wards_or_collectors(self, db):
        zilla = ZillaPanchayat(name="Udupi Zilla Panchayat", code="KA-UD-ZP", state="Karnataka", district="Udupi")
        block = Block(name="Karkala Block", code="KA-UD-KARKALA", zilla_panchayat=zilla)
        db.add(GramPanchayat(name="Demo Panchayat Karkala", code="KA-UD-GP-DEMO", block=block))
        await db.commit()

        with pytest.raises(HierarchyNotProvisionedError) as exc:
            await HierarchyResolver(db).resolve()
        assert exc.value.details == {"unresolved": ["ward", "collector"]}


class TestExplicitIds:

    async def test_explicit_ids_win(self, db, hierarchy):
        resolved = await HierarchyResolver(db).resolve(
            hierarchy.other_panchayat_id,
            hierarchy.other_ward_id,
            hierarchy.other_collector_id,
        )
        assert resolved.panchayat.id == hierarchy.other_panchayat_id
        assert resolved.ward.id == hierarchy.other_ward_id
        assert resolved.collector.id == hierarchy.other_collector_id

    async def test_explicit_panchayat_defaults_ward_and_collector(self, db, hierarchy):
        resolved = await HierarchyResolver(db).resolve(hierarchy.other_panchayat_id)
        assert resolved.ward.id == hierarchy.other_ward_id
        assert resolved.collector.id == hierarchy.other_collector_id

    async def test_explicit_ward_is_used_as_given(self, db, hierarchy):
        resolved = await HierarchyResolver(db).resolve(ward_id="demo-ward-2")
        assert resolved.panchayat.id == hierarchy.demo_panchayat_id
        assert resolved.ward.id == "demo-ward-2"

    async def test_unknown_ward_does_not_fall_back(self, db, hierarchy):
        with pytest.raises(HierarchyNotProvisionedError) as exc:
            await HierarchyResolver(db).resolve(ward_id="no-such-ward")
        assert exc.value.details == {"unresolved": ["ward"]}

    async def test_unknown_panchayat_does_not_fall_back(self, db, hierarchy):
        with pytest.raises(HierarchyNotProvisionedError) as exc:
            await HierarchyResolver(db).resolve(panchayat_id="no-such-panchayat")
        assert exc.value.details == {"unresolved": ["panchayat", "ward", "collector"]}
