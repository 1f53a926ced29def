"""Unit tests for the HTTP decode API."""

from __future__ import annotations

import base64

import pytest
from fastapi.testclient import TestClient

from edidscope.api.app import create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


class TestDecodeEndpoint:
    """Test POST /api/edid/decode."""

    def test_decode_hex_text(self, client, conformant_edid):
        response = client.post("/api/edid/decode", json={
            "text": conformant_edid.hex(),
            "current_year": 2026,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["conformant"] is True
        assert body["monitor_name"] == "TEST MONITOR"
        assert body["report"]["verdict"] == "pass"
        assert body["lines"][0] == "Extracted contents:"

    def test_decode_base64(self, client, conformant_edid):
        response = client.post("/api/edid/decode", json={
            "data_base64": base64.b64encode(conformant_edid).decode(),
            "include_breakdown": False,
        })
        assert response.status_code == 200
        assert response.json()["lines"][0].startswith("Manufacturer: ABC")

    def test_nonconformant_is_still_200(self, client, conformant_edid):
        data = bytearray(conformant_edid)
        data[127] = (data[127] + 1) & 0xFF
        response = client.post("/api/edid/decode", json={"text": bytes(data).hex()})
        assert response.status_code == 200
        body = response.json()
        assert body["conformant"] is False
        assert "\tBlock has broken checksum" in body["lines"]

    def test_requires_exactly_one_source(self, client, conformant_edid):
        assert client.post("/api/edid/decode", json={}).status_code == 422
        both = {
            "text": conformant_edid.hex(),
            "data_base64": base64.b64encode(conformant_edid).decode(),
        }
        assert client.post("/api/edid/decode", json=both).status_code == 422

    def test_invalid_base64(self, client):
        response = client.post("/api/edid/decode", json={"data_base64": "not base64!"})
        assert response.status_code == 400

    def test_short_data(self, client):
        response = client.post("/api/edid/decode", json={
            "data_base64": base64.b64encode(bytes(16)).decode(),
        })
        assert response.status_code == 400
        assert "at least 128" in response.json()["detail"]

    def test_unrecognised_text_is_too_short(self, client):
        response = client.post("/api/edid/decode", json={"text": "hello"})
        assert response.status_code == 400
        assert "at least 128" in response.json()["detail"]


class TestReportEndpoint:
    """Test POST /api/edid/report."""

    def test_html_report(self, client, conformant_edid):
        response = client.post("/api/edid/report", json={"text": conformant_edid.hex()})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "edid-report-TEST_MONITOR.html" in response.headers["content-disposition"]
        assert "Executive Summary" in response.text
        assert "Monitor Ranges" in response.text
