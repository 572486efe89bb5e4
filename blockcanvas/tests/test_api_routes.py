"""Tests for API routes."""

from xml.etree import ElementTree as ET

import pytest

DOORBELL = "Smart doorbell with camera, PIR motion sensor, microphone, and cloud connectivity"


@pytest.fixture
def created(client) -> dict:
    """A diagram generated through the API."""
    response = client.post("/api/diagrams/generate", json={"description": DOORBELL})
    assert response.status_code == 200
    return response.json()


class TestHealthRoutes:
    """Tests for health check routes."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == "BlockCanvas"
        assert "version" in data

    def test_readiness(self, client):
        response = client.get("/api/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True

    def test_request_id_header(self, client):
        response = client.get("/api/diagrams", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestGenerateRoute:
    """Tests for diagram generation."""

    def test_generate(self, created):
        assert [section["id"] for section in created["sections"]] == [
            "power", "inputs", "control", "outputs", "peripherals",
        ]
        assert created["metadata"]["generatedBy"] == "pattern-matching"
        assert created["metadata"]["originalDescription"] == DOORBELL
        inputs = [b["name"] for b in created["blocks"] if b["sectionId"] == "inputs"]
        assert {"Camera", "Motion Sensor", "Microphone"} <= set(inputs)

    @pytest.mark.parametrize("body", [{}, {"description": ""}, {"description": "   "}, {"description": 7}])
    def test_missing_description(self, client, body):
        response = client.post("/api/diagrams/generate", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Description is required"

    def test_no_body(self, client):
        assert client.post("/api/diagrams/generate").status_code == 400


class TestDiagramRoutes:
    """Tests for CRUD routes."""

    def test_get(self, client, created):
        response = client.get(f"/api/diagrams/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing(self, client):
        response = client.get("/api/diagrams/does-not-exist")

        assert response.status_code == 404
        assert response.json()["detail"] == "Diagram not found"

    def test_list(self, client, created):
        second = client.post("/api/diagrams/generate", json={"description": "LED lamp"}).json()

        response = client.get("/api/diagrams")

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == [second["id"], created["id"]]

    def test_update(self, client, created):
        blocks = created["blocks"][:2]
        blocks[0]["x"] = -40

        response = client.put(
            f"/api/diagrams/{created['id']}",
            json={"blocks": blocks, "title": "Doorbell"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Doorbell"
        assert [b["id"] for b in data["blocks"]] == [b["id"] for b in blocks]
        assert data["blocks"][0]["x"] == -40
        assert data["connections"] == created["connections"]

    def test_update_non_list_ignored(self, client, created):
        response = client.put(f"/api/diagrams/{created['id']}", json={"blocks": "oops"})

        assert response.status_code == 200
        assert response.json()["blocks"] == created["blocks"]

    def test_update_drops_malformed_entries(self, client, created):
        note = {"id": "ann_1", "x": 1, "y": 2, "text": "note"}

        response = client.put(
            f"/api/diagrams/{created['id']}",
            json={"annotations": [note, "junk", 5]},
        )

        assert response.status_code == 200
        assert [a["id"] for a in response.json()["annotations"]] == ["ann_1"]

    def test_update_invalid(self, client, created):
        bad = dict(created["blocks"][0], width=-1)

        response = client.put(f"/api/diagrams/{created['id']}", json={"blocks": [bad]})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"]

    def test_update_connection_reusing_block_id(self, client, created):
        """A connection id that equals a block id is rejected, not stored."""
        blocks = created["blocks"]
        clash = {"id": blocks[0]["id"], "from": blocks[0]["id"], "to": blocks[1]["id"]}

        response = client.put(f"/api/diagrams/{created['id']}", json={"connections": [clash]})

        assert response.status_code == 400
        stored = client.get(f"/api/diagrams/{created['id']}").json()
        assert stored["connections"] == created["connections"]

    def test_update_missing(self, client):
        response = client.put("/api/diagrams/does-not-exist", json={"title": "x"})

        assert response.status_code == 404

    def test_delete(self, client, created):
        response = client.delete(f"/api/diagrams/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Diagram deleted successfully"}
        assert client.get(f"/api/diagrams/{created['id']}").status_code == 404

    def test_delete_missing(self, client):
        assert client.delete("/api/diagrams/does-not-exist").status_code == 404


class TestExportRoutes:
    """Tests for downloads."""

    @pytest.mark.parametrize("export_format,media_type,extension", [
        ("json", "application/json", "json"),
        ("svg", "image/svg+xml", "svg"),
        ("drawio", "application/xml", "xml"),
    ])
    def test_export(self, client, created, export_format, media_type, extension):
        response = client.get(f"/api/diagrams/{created['id']}/export/{export_format}")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(media_type)
        assert response.headers["content-disposition"] == (
            f"attachment; filename=diagram_{created['id']}.{extension}"
        )

    def test_json_export_matches_get(self, client, created):
        response = client.get(f"/api/diagrams/{created['id']}/export/json")

        assert response.json() == created

    def test_drawio_has_no_edges_for_section_connections(self, client, created):
        response = client.get(f"/api/diagrams/{created['id']}/export/drawio")
        cells = list(ET.fromstring(response.content).iter("mxCell"))

        assert not [cell for cell in cells if cell.get("edge") == "1"]
        assert len([cell for cell in cells if cell.get("vertex") == "1"]) == len(created["blocks"])

    def test_export_missing(self, client):
        assert client.get("/api/diagrams/does-not-exist/export/svg").status_code == 404

    def test_export_unknown_format(self, client, created):
        response = client.get(f"/api/diagrams/{created['id']}/export/pptx")

        assert response.status_code == 422
