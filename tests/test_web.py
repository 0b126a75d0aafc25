"""Tests for the FastAPI web adapter."""

import pytest
from fastapi.testclient import TestClient

from chip8core.state import MAX_PROGRAM_SIZE
from web.app import app


@pytest.fixture
def client():
    return TestClient(app)


class TestRunEndpoint:
    """POST /api/run"""

    def test_run_success(self, client):
        response = client.post("/api/run", json={"program": "6A05 1202"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["stop_reason"] == "self_jump"
        assert data["steps_executed"] == 2
        assert data["final_state"]["registers"][0xA] == 5
        assert len(data["screen"]) == 32
        assert data["beeping"] is False
        assert data["trace"] == []
        assert data["error"] is None

    def test_run_with_options(self, client):
        response = client.post(
            "/api/run",
            json={"program": "F50A1202", "options": {"keys_down": [11], "trace": True}},
        )
        data = response.json()
        assert data["final_state"]["registers"][5] == 0xB
        assert data["trace"][0]["instr_text"] == "LD V5, K"

    def test_run_reports_machine_error(self, client):
        response = client.post("/api/run", json={"program": "FFFF"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "error"
        assert data["error"]["type"] == "UnknownInstruction"

    def test_bad_hex(self, client):
        response = client.post("/api/run", json={"program": "zz"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Program must be hexadecimal bytes"

    def test_program_too_large(self, client):
        response = client.post("/api/run", json={"program": "00" * (MAX_PROGRAM_SIZE + 1)})
        assert response.status_code == 400
        assert "exceeds limit" in response.json()["detail"]

    def test_invalid_key(self, client):
        response = client.post(
            "/api/run", json={"program": "1200", "options": {"keys_down": [16]}}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid key: 16"

    def test_invalid_policy_rejected_by_model(self, client):
        response = client.post(
            "/api/run", json={"program": "1200", "options": {"unknown_instruction": "ignore"}}
        )
        assert response.status_code == 422


class TestDisassembleEndpoint:
    """POST /api/disassemble"""

    def test_listing(self, client):
        response = client.post("/api/disassemble", json={"program": "6A05 A2F0 FFFF"})
        assert response.status_code == 200
        assert response.json() == [
            {"addr": 0x200, "opcode": 0x6A05, "text": "LD VA, 0x05"},
            {"addr": 0x202, "opcode": 0xA2F0, "text": "LD I, 0x2F0"},
            {"addr": 0x204, "opcode": 0xFFFF, "text": "DW 0xFFFF"},
        ]

    def test_trailing_odd_byte_is_listed(self, client):
        response = client.post("/api/disassemble", json={"program": "6A05A2"})
        assert response.json() == [
            {"addr": 0x200, "opcode": 0x6A05, "text": "LD VA, 0x05"},
            {"addr": 0x202, "opcode": 0xA2, "text": "DW 0xA2"},
        ]

    def test_bad_hex(self, client):
        response = client.post("/api/disassemble", json={"program": "6A0G"})
        assert response.status_code == 400
