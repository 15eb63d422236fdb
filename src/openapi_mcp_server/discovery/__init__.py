"""Discovery module: OpenAPI documents to tools and back to HTTP requests."""

from .catalog import OperationCatalog, OperationRecord
from .dispatcher import Dispatcher
from .document_manager import DocumentManager
from .meta_tools import MetaTools
from .openapi_parser import OpenAPIParser
from .schema_converter import SchemaConverter
from .schema_resolver import SchemaResolver
from .tool_host import McpToolHost, ToolHost
from .tool_registry import ToolRegistry

__all__ = [
    "OperationCatalog",
    "OperationRecord",
    "Dispatcher",
    "DocumentManager",
    "MetaTools",
    "OpenAPIParser",
    "SchemaConverter",
    "SchemaResolver",
    "McpToolHost",
    "ToolHost",
    "ToolRegistry",
]
