"""Tool table backing the MCP ``list_tools`` / ``call_tool`` handlers."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Protocol

import structlog
from mcp.types import Tool

logger = structlog.get_logger(__name__)


class ToolHost(Protocol):
    """Where registered tools are published to."""

    def publish(
        self, name: str, description: str, input_schema: str, binding: str
    ) -> None: ...

    def retract(self, name: str) -> None: ...


@dataclass(frozen=True)
class HostedTool:
    tool: Tool
    binding: str  # operationId the tool invokes


class McpToolHost:
    """In-process tool table exposed through the MCP server."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tools: dict[str, HostedTool] = {}

    def publish(
        self, name: str, description: str, input_schema: str, binding: str
    ) -> None:
        tool = Tool(
            name=name,
            description=description,
            inputSchema=json.loads(input_schema),
        )
        with self._lock:
            self._tools[name] = HostedTool(tool=tool, binding=binding)
        logger.debug("Published tool", tool=name)

    def retract(self, name: str) -> None:
        with self._lock:
            removed = self._tools.pop(name, None)
        if removed is None:
            logger.debug("Retract of unknown tool ignored", tool=name)

    def binding(self, name: str) -> str | None:
        with self._lock:
            hosted = self._tools.get(name)
        return hosted.binding if hosted else None

    def get_mcp_tools(self) -> list[Tool]:
        with self._lock:
            return [hosted.tool for hosted in self._tools.values()]

    @property
    def tool_names(self) -> list[str]:
        with self._lock:
            return list(self._tools)
