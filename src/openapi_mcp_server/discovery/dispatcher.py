"""Generic HTTP dispatcher for catalogued operations."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote, urljoin

import httpx
import structlog

from ..client import HttpResponse, HttpTransport
from ..errors import ConfigurationError, InvocationError, OperationNotFoundError
from .catalog import OperationCatalog, OperationRecord
from .openapi_parser import is_remote
from .schema_resolver import SchemaResolver, parameter_name_from_ref
from .tool_registry import REQUEST_BODY_PROPERTY

logger = structlog.get_logger(__name__)


class Dispatcher:
    """Execute any catalogued operation against its backend."""

    def __init__(
        self,
        catalog: OperationCatalog,
        transport: HttpTransport,
        resolver: SchemaResolver | None = None,
    ):
        self.catalog = catalog
        self.transport = transport
        self.resolver = resolver

    async def invoke(self, operation_id: str, arguments: dict[str, Any] | None) -> Any:
        """Build the HTTP request from the catalog entry + *arguments*.

        Returns decoded JSON for JSON responses, the body text otherwise, and
        None for an empty body.
        """
        record = self.catalog.get(operation_id)
        if record is None:
            raise OperationNotFoundError(operation_id)
        arguments = arguments or {}

        base_url = self._resolve_base_url(record)
        path, query, headers = self._place_parameters(record, arguments)

        body: bytes | None = None
        if REQUEST_BODY_PROPERTY in arguments:
            try:
                body = json.dumps(arguments[REQUEST_BODY_PROPERTY]).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise InvocationError(operation_id, f"Cannot serialize request body: {e}") from e
            headers["Content-Type"] = "application/json"

        url = base_url.rstrip("/") + path

        logger.info(
            "Dispatching",
            operation_id=operation_id,
            method=record.method,
            url=url,
        )

        try:
            response = await self.transport.send(
                url,
                record.method,
                headers=headers,
                body=body,
                params=query,
            )
        except httpx.HTTPError as e:
            logger.error("Error invoking operation", operation_id=operation_id, error=str(e))
            raise InvocationError(operation_id, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(
                "Backend returned an error",
                operation_id=operation_id,
                status_code=response.status_code,
            )
            raise InvocationError(operation_id, message, response.status_code)

        return self._decode(response)

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_base_url(record: OperationRecord) -> str:
        if record.document.override_url:
            return record.document.override_url

        servers = record.root_spec.get("servers") or []
        server = servers[0] if servers and isinstance(servers[0], dict) else None
        url = server.get("url") if server else None
        if not url:
            raise ConfigurationError(
                f"No base URL for document '{record.document.name}': "
                "set an override URL or declare servers in the document"
            )

        for var_name, var in (server.get("variables") or {}).items():
            if isinstance(var, dict) and "default" in var:
                url = url.replace("{" + var_name + "}", str(var["default"]))

        if not is_remote(url) and is_remote(record.document.location):
            url = urljoin(record.document.location, url)
        return url

    def _place_parameters(
        self,
        record: OperationRecord,
        arguments: dict[str, Any],
    ) -> tuple[str, dict[str, Any], dict[str, str]]:
        """Split *arguments* into (path, query params, headers) by ``in``."""
        path = record.path
        query: dict[str, Any] = {}
        headers: dict[str, str] = {}

        for param in record.parameters:
            name, location, keys = self._parameter_binding(param)
            key = next((k for k in keys if k in arguments), None)
            if not name or key is None:
                continue
            value = arguments[key]
            if location == "query":
                query[name] = value
            elif location == "path":
                path = path.replace("{" + name + "}", quote(str(value), safe=""))
            elif location == "header":
                headers[name] = str(value)

        return path, query, headers

    def _parameter_binding(
        self, param: dict[str, Any]
    ) -> tuple[str | None, str | None, list[str]]:
        """Return (wire name, location, candidate argument keys)."""
        if "$ref" not in param:
            return param.get("name"), param.get("in"), [param.get("name")]

        ref = str(param["$ref"])
        resolved = self.resolver.resolve_parameter(ref) if self.resolver else None
        if not resolved:
            return None, None, []
        name = resolved.get("name")
        return name, resolved.get("in"), [name, parameter_name_from_ref(ref)]

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    @staticmethod
    def _media_type(content_type: str | None) -> str:
        if not content_type:
            return ""
        return content_type.split(";", 1)[0].strip().lower()

    @classmethod
    def _decode(cls, response: HttpResponse) -> Any:
        """JSON bodies become Python values; XML and anything else stay text."""
        if not response.content:
            return None

        media = cls._media_type(response.content_type)
        if "json" in media:
            try:
                return json.loads(response.content)
            except ValueError:
                logger.debug("Response is not valid JSON, returning as string")
        return response.text

    @staticmethod
    def _error_message(response: HttpResponse) -> str:
        message = f"API request failed: {response.status_code}"
        try:
            detail = json.loads(response.content)
        except ValueError:
            detail = None
        if isinstance(detail, dict) and "detail" in detail:
            return f"{message} - {detail['detail']}"
        if response.content:
            message += f" - {response.text}"
        return message
