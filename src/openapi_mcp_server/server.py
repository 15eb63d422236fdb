"""MCP server that exposes OpenAPI operations as tools."""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

import httpx
import structlog
from mcp import types
from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import Tool
from pydantic import ValidationError

from .client import HttpTransport
from .config import ServerConfig
from .discovery.catalog import OperationCatalog
from .discovery.dispatcher import Dispatcher
from .discovery.document_manager import DocumentManager
from .discovery.meta_tools import META_TOOL_NAMES, MetaTools
from .discovery.openapi_parser import OpenAPIParser
from .discovery.schema_converter import SchemaConverter
from .discovery.schema_resolver import SchemaResolver
from .discovery.tool_host import McpToolHost
from .discovery.tool_registry import ToolRegistry
from .errors import OpenAPIMCPError
from .utils.storage import FileStorage

logger = structlog.get_logger(__name__)


def format_result(result: Any) -> str:
    """Render an invocation result as tool text."""
    if result is None:
        return "null"
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


class OpenAPIMCPServer:
    """MCP server whose tools are generated from OpenAPI documents."""

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ServerConfig()
        self.server = Server(self.config.server_name)

        # Registry state
        self.catalog = OperationCatalog()
        self.resolver = SchemaResolver(self.catalog)
        self.converter = SchemaConverter(self.resolver)
        self.tool_host = McpToolHost()
        self.registry = ToolRegistry(
            self.converter, self.tool_host, reserved_names=META_TOOL_NAMES
        )
        self.manager = DocumentManager(
            self.catalog,
            self.registry,
            OpenAPIParser(timeout=self.config.timeout, transport=transport),
            FileStorage(self.config.upload_dir),
        )

        # Invocation
        self.http = HttpTransport(self.config, transport=transport)
        self.dispatcher = Dispatcher(self.catalog, self.http, self.resolver)

        self.meta_tools = MetaTools(self.manager, self.registry, self.catalog)
        self.meta_tools.set_callbacks(tools_changed_fn=self._notify_tools_changed)

        self._register_handlers()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def load_configured_documents(self) -> int:
        count = await self.manager.load_documents(self.config.documents)
        logger.info("Startup load complete", tool_count=self.registry.tool_count)
        return count

    async def _notify_tools_changed(self) -> None:
        """Tell MCP clients that the tool list changed."""
        try:
            session = self.server.request_context.session
        except LookupError:
            logger.debug("No active session, skipping tool list notification")
            return
        await session.send_tool_list_changed()

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    def list_tools(self) -> list[Tool]:
        return self.meta_tools.get_tools() + self.tool_host.get_mcp_tools()

    async def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        """Run a meta tool or invoke the operation bound to tool *name*."""
        arguments = arguments or {}
        if name in META_TOOL_NAMES:
            return await self.meta_tools.call_tool(name, arguments)

        operation_id = self.tool_host.binding(name) or name
        result = await self.dispatcher.invoke(operation_id, arguments)
        return format_result(result)

    # ------------------------------------------------------------------
    # MCP handlers
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            tools = self.list_tools()
            logger.info("list_tools", count=len(tools))
            return tools

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
            try:
                logger.info("call_tool", tool=name)
                text = await self.call(name, arguments)
                return [types.TextContent(type="text", text=text)]

            except (OpenAPIMCPError, ValidationError) as e:
                logger.error("Tool call failed", error=str(e), tool=name)
                return [types.TextContent(type="text", text=f"Error: {e}")]
            except Exception as e:
                logger.error("Unexpected error", error=str(e), tool=name, exc_info=True)
                return [types.TextContent(type="text", text=f"Error: {e}")]

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> None:
        logger.info("Starting OpenAPI MCP server")
        await self.load_configured_documents()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=self.config.server_name,
                        server_version="0.1.0",
                        capabilities=types.ServerCapabilities(
                            tools=types.ToolsCapability(listChanged=True),
                        ),
                    ),
                )
        finally:
            await self.http.close()


# ------------------------------------------------------------------
# Entry points
# ------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the MCP stdio stream
    logging.basicConfig(stream=sys.stderr, level=level.upper(), format="%(message)s")
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


async def async_main() -> None:
    config = ServerConfig()
    configure_logging(config.log_level)

    try:
        server = OpenAPIMCPServer(config)
        await server.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error("Server error", error=str(e), exc_info=True)
        sys.exit(1)


def main() -> None:
    """Synchronous entry point for console script."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
