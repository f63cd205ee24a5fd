"""
Administrative hierarchy endpoints and service probes.
"""

from waste_estimator.db.models import Collector


class TestPanchayats:

    async def test_listing(self, client, hierarchy, make_estimation):
        await make_estimation()
        await make_estimation()

        response = await client.get("/api/panchayats")
        assert response.status_code == 200
        data = response.json()["data"]
        assert [p["name"] for p in data] == ["Bantwal Gram Panchayat", "Demo Panchayat (For Testing)"]

        demo = data[1]
        assert demo["_count"] == {"estimations": 2, "collectors": 1}
        assert demo["block"]["name"] == "Mangaluru Block"
        assert demo["block"]["zillaPanchayat"]["district"] == "Dakshina Kannada"
        assert [w["wardNumber"] for w in demo["wards"]] == [1, 2]

        assert data[0]["_count"] == {"estimations": 0, "collectors": 1}

    async def test_block_filter(self, client, hierarchy):
        data = (await client.get("/api/panchayats", params={"blockId": hierarchy.block_id})).json()["data"]
        assert len(data) == 2
        data = (await client.get("/api/panchayats", params={"blockId": "block-elsewhere"})).json()["data"]
        assert data == []

    async def test_create(self, client, hierarchy):
        response = await client.post(
            "/api/panchayats",
            json={
                "name": "Ullal Gram Panchayat",
                "code": "KA-DK-GP-002",
                "blockId": hierarchy.block_id,
                "population": 12000,
                "area": 9.75,
            },
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"]
        assert data["code"] == "KA-DK-GP-002"
        assert data["blockId"] == hierarchy.block_id
        assert data["block"]["zillaPanchayat"]["id"] == hierarchy.zilla_id

        names = [p["name"] for p in (await client.get("/api/panchayats")).json()["data"]]
        assert "Ullal Gram Panchayat" in names

    async def test_create_missing_fields(self, client, hierarchy):
        response = await client.post("/api/panchayats", json={"code": "KA-DK-GP-003", "blockId": hierarchy.block_id})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Missing or invalid fields: name"

    async def test_create_unknown_block(self, client, hierarchy):
        response = await client.post(
            "/api/panchayats",
            json={"name": "Nowhere Gram Panchayat", "code": "KA-XX-GP-001", "blockId": "block-missing"},
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Block block-missing not found"

    async def test_create_duplicate_code(self, client, hierarchy):
        response = await client.post(
            "/api/panchayats",
            json={"name": "Bantwal Again", "code": "KA-DK-GP-001", "blockId": hierarchy.block_id},
        )
        assert response.status_code == 409
        assert response.json()["success"] is False


class TestLookups:

    async def test_zillas(self, client, hierarchy):
        data = (await client.get("/api/zillas")).json()["data"]
        assert [z["code"] for z in data] == ["KA-DK-ZP"]

    async def test_blocks(self, client, hierarchy):
        data = (await client.get("/api/blocks", params={"zillaId": hierarchy.zilla_id})).json()["data"]
        assert [b["id"] for b in data] == [hierarchy.block_id]
        data = (await client.get("/api/blocks", params={"zillaId": "zp-elsewhere"})).json()["data"]
        assert data == []

    async def test_wards(self, client, hierarchy):
        data = (await client.get("/api/wards", params={"panchayatId": hierarchy.demo_panchayat_id})).json()["data"]
        assert [w["id"] for w in data] == ["demo-ward-1", "demo-ward-2"]
        assert data[0]["households"] == 120

    async def test_collectors(self, client, hierarchy, session_maker):
        async with session_maker() as session:
            session.add(
                Collector(
                    id="demo-supervisor-1",
                    name="Suresh Shetty",
                    phone="+91-9876500099",
                    role="SUPERVISOR",
                    panchayat_id=hierarchy.demo_panchayat_id,
                    is_active=False,
                )
            )
            await session.commit()

        data = (await client.get("/api/collectors")).json()["data"]
        assert [c["name"] for c in data] == ["Anitha Rao", "Ramesh Kumar"]

        data = (await client.get("/api/collectors", params={"panchayatId": hierarchy.demo_panchayat_id})).json()["data"]
        assert [c["id"] for c in data] == [hierarchy.demo_collector_id]
        assert data[0]["role"] == "COLLECTOR"
        assert data[0]["wardId"] == "demo-ward-1"

        data = (await client.get("/api/collectors", params={"role": "SUPERVISOR"})).json()["data"]
        assert data == []


class TestProbes:

    async def test_root(self, client):
        body = (await client.get("/")).json()
        assert body["service"] == "Panchayat Waste Estimator"
        assert body["status"] == "operational"

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}
