"""Tool registry: turns catalog operations into published tools."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Iterable

import structlog

from .catalog import OperationRecord
from .schema_converter import SchemaConverter, pick_media_type
from .schema_resolver import PARAMETERS_PREFIX, parameter_name_from_ref
from .tool_host import ToolHost

logger = structlog.get_logger(__name__)

REQUEST_BODY_PROPERTY = "requestBody"

_GENERIC_BODY: dict[str, Any] = {"type": "object", "description": "Request body"}


@dataclass(frozen=True)
class RegisteredTool:
    """Bookkeeping for a tool published on behalf of one operation."""

    name: str
    description: str
    input_schema: dict[str, Any]
    response_schema: dict[str, Any] | None
    document_name: str


class ToolRegistry:
    """Publishes at most one tool per operationId and retracts it on demand.

    Registration and unregistration are serialized by one lock so that a
    register racing an unregister cannot leave the host and the bookkeeping
    disagreeing.
    """

    def __init__(
        self,
        converter: SchemaConverter,
        host: ToolHost,
        reserved_names: Iterable[str] = (),
    ):
        self.converter = converter
        self.host = host
        # Names already taken by tools that are not generated from documents
        self.reserved_names = frozenset(reserved_names)
        self._lock = threading.RLock()
        self._registered: dict[str, RegisteredTool] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_operation(self, operation_id: str, record: OperationRecord) -> bool:
        """Publish a tool for *operation_id*.

        Returns False if one exists or the name is reserved.
        """
        if operation_id in self.reserved_names:
            logger.warning(
                "Operation id collides with a reserved tool name, not publishing",
                operation_id=operation_id,
            )
            return False

        with self._lock:
            if operation_id in self._registered:
                logger.warning(
                    "Tool already exists, skipping registration",
                    operation_id=operation_id,
                )
                return False

            description = record.summary or f"Operation: {operation_id}"
            input_schema = self.build_input_schema(record)
            registered = RegisteredTool(
                name=operation_id,
                description=description,
                input_schema=input_schema,
                response_schema=self.converter.response_schema(
                    operation_id, record.operation
                ),
                document_name=record.document.name,
            )

            self._registered[operation_id] = registered
            try:
                self.host.publish(
                    operation_id,
                    description,
                    json.dumps(input_schema),
                    operation_id,
                )
            except Exception:
                self._registered.pop(operation_id, None)
                raise

        logger.info("Successfully registered tool", operation_id=operation_id)
        return True

    def unregister_operation(self, operation_id: str) -> None:
        """Retract the tool for *operation_id*; a no-op if none is published."""
        with self._lock:
            self._registered.pop(operation_id, None)
            self.converter.forget(operation_id)
            self.host.retract(operation_id)
        logger.info("Removed tool", operation_id=operation_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, operation_id: str) -> RegisteredTool | None:
        with self._lock:
            return self._registered.get(operation_id)

    def is_registered(self, operation_id: str) -> bool:
        with self._lock:
            return operation_id in self._registered

    @property
    def tool_names(self) -> list[str]:
        with self._lock:
            return list(self._registered)

    @property
    def tool_count(self) -> int:
        with self._lock:
            return len(self._registered)

    # ------------------------------------------------------------------
    # Input schema builder
    # ------------------------------------------------------------------

    def build_input_schema(self, record: OperationRecord) -> dict[str, Any]:
        """Build the ``inputSchema`` from parameters + request body."""
        properties: dict[str, Any] = {}
        required: list[str] = []

        for param in record.parameters:
            if "$ref" in param:
                ref = str(param["$ref"])
                name = parameter_name_from_ref(ref)
                properties[name] = self._referenced_param_property(ref)
                resolved = self.converter.resolver.resolve_parameter(ref)
                if resolved and resolved.get("required"):
                    required.append(name)
                continue

            name = param.get("name")
            if not name:
                continue
            properties[name] = self._param_property(param)
            if param.get("required", False):
                required.append(name)

        body = record.operation.get("requestBody")
        if body is not None:
            properties[REQUEST_BODY_PROPERTY] = self._request_body_property(body)
            if isinstance(body, dict) and body.get("required"):
                required.append(REQUEST_BODY_PROPERTY)

        result: dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            result["required"] = required
        return result

    def _param_property(self, param: dict[str, Any]) -> dict[str, Any]:
        name = param.get("name")
        description = param.get("description") or f"Parameter: {name}"
        schema = param.get("schema")
        if not isinstance(schema, dict):
            return {"type": "string", "description": description}

        if "$ref" in schema:
            schema = self.converter.convert(schema)

        prop: dict[str, Any] = {
            "type": schema.get("type") or "string",
            "description": description,
        }
        if schema.get("format"):
            prop["format"] = schema["format"]
        if schema.get("enum"):
            prop["enum"] = list(schema["enum"])
            logger.debug("Added enum values for parameter", parameter=name)
        if schema.get("type") == "array" and schema.get("items") is not None:
            prop["items"] = self.converter.convert(schema["items"])
        return prop

    def _referenced_param_property(self, ref: str) -> dict[str, Any]:
        if not ref.startswith(PARAMETERS_PREFIX):
            return {"type": "string", "description": f"Unknown parameter reference: {ref}"}

        schema = self.converter.resolver.resolve(ref)
        if schema is None:
            logger.warning("Unresolved parameter reference", ref=ref)
            return {
                "type": "string",
                "description": f"Unresolved parameter reference: {ref}",
            }
        if "$ref" in schema:
            schema = self.converter.convert(schema)

        prop: dict[str, Any] = {
            "type": schema.get("type") or "string",
            "description": f"Parameter reference: {ref}",
        }
        if schema.get("format"):
            prop["format"] = schema["format"]
        if schema.get("enum"):
            prop["enum"] = list(schema["enum"])
        return prop

    def _request_body_property(self, body: Any) -> dict[str, Any]:
        try:
            media = pick_media_type(body.get("content"))
            if media is None or media.get("schema") is None:
                logger.warning("No schema found in request body, using generic object")
                return dict(_GENERIC_BODY)
            return self.converter.convert(media["schema"])
        except Exception as e:
            logger.error("Error processing request body schema", error=str(e))
            return dict(_GENERIC_BODY)
