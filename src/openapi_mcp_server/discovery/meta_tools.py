"""Management tools that are NOT generated from a document."""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable

from mcp.types import Tool

from ..errors import OperationNotFoundError
from ..models.schemas import (
    AddFileContentRequest,
    AddUriRequest,
    DescribeOperationRequest,
    OperationDescription,
    RemoveDocumentRequest,
)
from .catalog import OperationCatalog
from .document_manager import DocumentManager
from .tool_registry import ToolRegistry

_OVERRIDE_URL = {
    "type": "string",
    "description": "Base URL to call instead of the first server URL in the document",
}

# ─── Tool definitions ────────────────────────────────────────────────

META_TOOL_DEFINITIONS: list[Tool] = [
    Tool(
        name="list_operations",
        description="List every loaded operation with its document name.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="add_openapi_from_uri",
        description=(
            "Load an OpenAPI document from a URL or file path and expose each "
            "of its operations as a tool."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Unique name for the document",
                },
                "uri": {
                    "type": "string",
                    "description": "URL or file path of the OpenAPI document",
                },
                "override_url": _OVERRIDE_URL,
            },
            "required": ["name", "uri"],
        },
    ),
    Tool(
        name="add_openapi_from_content",
        description=(
            "Upload OpenAPI document text (JSON or YAML) and expose each of its "
            "operations as a tool."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Unique name for the document",
                },
                "content": {
                    "type": "string",
                    "description": "The OpenAPI document text",
                },
                "override_url": _OVERRIDE_URL,
                "filename": {
                    "type": "string",
                    "description": "Original file name (e.g. petstore.yaml)",
                },
            },
            "required": ["name", "content"],
        },
    ),
    Tool(
        name="remove_openapi",
        description="Remove a loaded OpenAPI document and all of its tools.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Name of the document to remove",
                },
            },
            "required": ["name"],
        },
    ),
    Tool(
        name="describe_operation",
        description=(
            "Show the input schema and the documented response schema of a "
            "loaded operation."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "operation_id": {
                    "type": "string",
                    "description": "operationId of the tool",
                },
            },
            "required": ["operation_id"],
        },
    ),
]

META_TOOL_NAMES: set[str] = {t.name for t in META_TOOL_DEFINITIONS}


class MetaTools:
    """Handles the document management tools."""

    def __init__(
        self,
        manager: DocumentManager,
        registry: ToolRegistry,
        catalog: OperationCatalog,
    ):
        self._manager = manager
        self._registry = registry
        self._catalog = catalog
        # Set by the server so clients hear about tool list changes
        self._tools_changed_fn: Callable[[], Awaitable[None]] | None = None

    def set_callbacks(
        self,
        *,
        tools_changed_fn: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._tools_changed_fn = tools_changed_fn

    @staticmethod
    def get_tools() -> list[Tool]:
        return list(META_TOOL_DEFINITIONS)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Dispatch a meta tool call. Returns a text string."""
        if name == "list_operations":
            return self._list_operations()
        if name == "add_openapi_from_uri":
            return await self._add_from_uri(arguments)
        if name == "add_openapi_from_content":
            return await self._add_from_content(arguments)
        if name == "remove_openapi":
            return await self._remove(arguments)
        if name == "describe_operation":
            return self._describe(arguments)
        raise ValueError(f"Unknown meta tool: {name}")

    # ─── Handlers ──────────────────────────────────────────────────

    def _list_operations(self) -> str:
        operations = [
            info.model_dump(by_alias=True) for info in self._manager.list_operations()
        ]
        return json.dumps({"operations": operations, "total": len(operations)}, indent=2)

    async def _add_from_uri(self, arguments: dict[str, Any]) -> str:
        request = AddUriRequest(**arguments)
        count = await self._manager.add_document(
            request.name, request.uri, request.override_url
        )
        await self._notify()
        return json.dumps({
            "success": True,
            "message": "OpenAPI spec added successfully from URI",
            "operation_count": count,
        })

    async def _add_from_content(self, arguments: dict[str, Any]) -> str:
        request = AddFileContentRequest(**arguments)
        count = await self._manager.add_document_from_content(
            request.name, request.content, request.override_url, request.filename
        )
        await self._notify()
        return json.dumps({
            "success": True,
            "message": "OpenAPI spec uploaded successfully",
            "operation_count": count,
        })

    async def _remove(self, arguments: dict[str, Any]) -> str:
        request = RemoveDocumentRequest(**arguments)
        count = self._manager.remove_document(request.name)
        await self._notify()
        return json.dumps({
            "success": True,
            "message": "OpenAPI spec removed successfully",
            "removed_tools": count,
        })

    def _describe(self, arguments: dict[str, Any]) -> str:
        request = DescribeOperationRequest(**arguments)
        record = self._catalog.get(request.operation_id)
        registered = self._registry.get(request.operation_id)
        if record is None or registered is None:
            raise OperationNotFoundError(request.operation_id)
        description = OperationDescription(
            operation_id=request.operation_id,
            description=registered.description,
            document_name=record.document.name,
            method=record.method,
            path=record.path,
            input_schema=registered.input_schema,
            response_schema=registered.response_schema,
        )
        return json.dumps(description.model_dump(by_alias=True), indent=2, default=str)

    async def _notify(self) -> None:
        if self._tools_changed_fn is not None:
            await self._tools_changed_fn()
