"""Shared fixtures for tests."""

import json
from pathlib import Path

import pytest

from openapi_mcp_server.config import DocumentConfig
from openapi_mcp_server.discovery.catalog import OperationCatalog, extract_operations
from openapi_mcp_server.discovery.document_manager import DocumentManager
from openapi_mcp_server.discovery.openapi_parser import OpenAPIParser
from openapi_mcp_server.discovery.schema_converter import SchemaConverter
from openapi_mcp_server.discovery.schema_resolver import SchemaResolver
from openapi_mcp_server.discovery.tool_host import McpToolHost
from openapi_mcp_server.discovery.tool_registry import ToolRegistry
from openapi_mcp_server.utils.storage import FileStorage

FIXTURES_DIR = Path(__file__).parent / "fixtures"
PETSTORE_PATH = FIXTURES_DIR / "petstore.json"


@pytest.fixture
def petstore_spec() -> dict:
    """Load the Petstore OpenAPI fixture."""
    with open(PETSTORE_PATH) as f:
        return json.load(f)


@pytest.fixture
def petstore_location() -> str:
    return str(PETSTORE_PATH)


@pytest.fixture
def write_spec(tmp_path):
    """Write a spec dict to a JSON file and return its path."""

    def _write(spec: dict, filename: str = "spec.json") -> str:
        path = tmp_path / filename
        path.write_text(json.dumps(spec))
        return str(path)

    return _write


def load_into_catalog(catalog: OperationCatalog, spec: dict, name: str = "petstore", override_url=None):
    """Put every operation of *spec* straight into *catalog*."""
    document = DocumentConfig(name=name, location=f"{name}.json", override_url=override_url)
    records = extract_operations(document, spec)
    for operation_id, record in records.items():
        catalog.put(operation_id, record)
    return records


@pytest.fixture
def catalog() -> OperationCatalog:
    return OperationCatalog()


@pytest.fixture
def load_spec(catalog):
    def _load(spec: dict, name: str = "petstore", override_url=None):
        return load_into_catalog(catalog, spec, name, override_url)

    return _load


@pytest.fixture
def resolver(catalog) -> SchemaResolver:
    return SchemaResolver(catalog)


@pytest.fixture
def converter(resolver) -> SchemaConverter:
    return SchemaConverter(resolver)


@pytest.fixture
def tool_host() -> McpToolHost:
    return McpToolHost()


@pytest.fixture
def registry(converter, tool_host) -> ToolRegistry:
    return ToolRegistry(converter, tool_host)


@pytest.fixture
def manager(catalog, registry, tmp_path) -> DocumentManager:
    return DocumentManager(
        catalog,
        registry,
        OpenAPIParser(),
        FileStorage(tmp_path / "uploads"),
    )
