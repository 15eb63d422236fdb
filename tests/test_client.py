"""Tests for ServerConfig and HttpTransport."""

import json

import httpx
import pytest

from openapi_mcp_server.client import HttpResponse, HttpTransport
from openapi_mcp_server.config import DocumentConfig, ServerConfig


# ---------------------------------------------------------------------------
# ServerConfig
# ---------------------------------------------------------------------------


class TestServerConfig:
    def test_default_config(self):
        cfg = ServerConfig()
        assert cfg.documents == []
        assert str(cfg.upload_dir) == "uploads"
        assert cfg.timeout == 30
        assert cfg.server_name == "openapi-mcp-server"

    def test_env_var_loading(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_MCP_TIMEOUT", "5")
        monkeypatch.setenv("OPENAPI_MCP_UPLOAD_DIR", "/tmp/specs")
        cfg = ServerConfig()
        assert cfg.timeout == 5
        assert str(cfg.upload_dir) == "/tmp/specs"

    def test_documents_from_env_json(self, monkeypatch):
        monkeypatch.setenv(
            "OPENAPI_MCP_DOCUMENTS",
            '[{"name": "petstore", "location": "petstore.yaml",'
            ' "override_url": "http://localhost:8080"}]',
        )
        cfg = ServerConfig()
        assert cfg.documents == [
            DocumentConfig(
                name="petstore",
                location="petstore.yaml",
                override_url="http://localhost:8080",
            )
        ]

    def test_document_is_immutable(self):
        doc = DocumentConfig(name="a", location="a.json")
        with pytest.raises(Exception):
            doc.name = "b"


# ---------------------------------------------------------------------------
# HttpResponse
# ---------------------------------------------------------------------------


class TestHttpResponse:
    def test_content_type_case_insensitive(self):
        resp = HttpResponse(200, {"Content-Type": "application/json"}, b"{}")
        assert resp.content_type == "application/json"

    def test_no_content_type(self):
        assert HttpResponse(200).content_type is None

    def test_text(self):
        assert HttpResponse(200, {}, "héllo".encode()).text == "héllo"


# ---------------------------------------------------------------------------
# HttpTransport
# ---------------------------------------------------------------------------


class TestHttpTransport:
    async def test_send_success(self, httpx_mock):
        httpx_mock.add_response(
            url="https://api.example.com/pets?limit=2",
            json=[{"id": 1}],
        )
        async with HttpTransport() as http:
            resp = await http.send(
                "https://api.example.com/pets", "GET", params={"limit": 2}
            )
        assert resp.status_code == 200
        assert resp.content_type == "application/json"
        assert json.loads(resp.content) == [{"id": 1}]

    async def test_error_status_not_raised(self, httpx_mock):
        httpx_mock.add_response(
            url="https://api.example.com/pets/9",
            status_code=404,
            json={"detail": "Not found"},
        )
        async with HttpTransport() as http:
            resp = await http.send("https://api.example.com/pets/9", "GET")
        assert resp.status_code == 404

    async def test_headers_and_body_sent(self, httpx_mock):
        httpx_mock.add_response(url="https://api.example.com/pets", status_code=201)
        async with HttpTransport() as http:
            await http.send(
                "https://api.example.com/pets",
                "POST",
                headers={"Content-Type": "application/json", "X-Trace": "1"},
                body=b'{"name": "rex"}',
            )
        request = httpx_mock.get_request()
        assert request.method == "POST"
        assert request.headers["X-Trace"] == "1"
        assert request.content == b'{"name": "rex"}'

    async def test_network_error_propagates(self, httpx_mock):
        httpx_mock.add_exception(
            httpx.ConnectError("Connection refused"),
            url="https://api.example.com/pets",
        )
        async with HttpTransport() as http:
            with pytest.raises(httpx.ConnectError):
                await http.send("https://api.example.com/pets", "GET")

    async def test_close_is_idempotent(self):
        http = HttpTransport()
        await http.close()
        await http._ensure_client()
        await http.close()
        await http.close()
        assert http.client is None
