"""Convert OpenAPI schema nodes into plain JSON-Schema-like dicts.

References are inlined through the :class:`SchemaResolver`. Cycles are cut
with a marker stub instead of recursing forever, and three memoization layers
avoid re-resolving and re-converting the same components:

* resolved references (owned by the resolver),
* converted schemas keyed by reference string,
* response schemas keyed by operationId.

None of the caches affect results, only speed.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from .schema_resolver import SchemaResolver

logger = structlog.get_logger(__name__)

# Keywords copied verbatim from a concrete schema node, in output order.
_COPIED_KEYWORDS: tuple[str, ...] = (
    "type",
    "description",
    "format",
    "default",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
)

# Copied only when non-empty.
_NON_EMPTY_KEYWORDS: tuple[str, ...] = ("required", "enum")

PRIMITIVE_TYPES: frozenset[str] = frozenset({"string", "integer", "number", "boolean"})

_RESPONSE_CODES: tuple[str, ...] = ("200", "201", "default")


def pick_media_type(content: Any) -> dict[str, Any] | None:
    """Pick JSON, then XML, then whatever media type is declared first."""
    if not isinstance(content, dict) or not content:
        return None
    for key in ("application/json", "application/xml"):
        if isinstance(content.get(key), dict):
            return content[key]
    for media in content.values():
        if isinstance(media, dict):
            return media
    return None


def _has_type(node: dict[str, Any], name: str) -> bool:
    declared = node.get("type")
    if isinstance(declared, list):
        return name in declared
    return declared == name


class SchemaConverter:
    """Turns schema nodes into converted schema maps."""

    def __init__(self, resolver: SchemaResolver):
        self.resolver = resolver
        self._converted_cache: dict[str, dict[str, Any]] = {}
        self._response_cache: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(
        self,
        node: Any,
        in_progress: set[str] | None = None,
    ) -> dict[str, Any]:
        """Convert *node*; *in_progress* holds refs open on this branch."""
        if in_progress is None:
            in_progress = set()

        if not isinstance(node, dict):
            return {"type": "object", "description": "No schema available"}

        ref = node.get("$ref")
        if isinstance(ref, str):
            return self._convert_ref(ref, in_progress)
        return self._convert_concrete(node, in_progress)

    def response_schema(
        self, operation_id: str, operation: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Converted schema of the success response, or None.

        Advisory metadata only; responses are never validated against it.
        """
        cached = self._response_cache.get(operation_id)
        if cached is not None:
            return copy.deepcopy(cached)

        try:
            responses = operation.get("responses") or {}
            for code in _RESPONSE_CODES:
                response = responses.get(code)
                if response is None:
                    response = responses.get(int(code)) if code.isdigit() else None
                if isinstance(response, dict):
                    break
            else:
                return None

            media = pick_media_type(response.get("content"))
            if media is None or media.get("schema") is None:
                return None

            schema = self.convert(media["schema"])
        except Exception as e:
            logger.warning(
                "Error getting response schema",
                operation_id=operation_id,
                error=str(e),
            )
            return None

        self._response_cache[operation_id] = copy.deepcopy(schema)
        return schema

    def forget(self, operation_id: str) -> None:
        """Drop the cached response schema of one operation."""
        self._response_cache.pop(operation_id, None)

    def clear(self) -> None:
        """Drop every cached resolution and conversion."""
        self.resolver.clear()
        self._converted_cache.clear()
        self._response_cache.clear()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _convert_ref(self, ref: str, in_progress: set[str]) -> dict[str, Any]:
        if ref in in_progress:
            logger.warning("Detected circular reference", ref=ref)
            return {"type": "object", "description": f"Circular reference: {ref}"}

        cached = self._converted_cache.get(ref)
        if cached is not None:
            logger.debug("Using cached converted schema", ref=ref)
            return copy.deepcopy(cached)

        in_progress.add(ref)
        try:
            resolved = self.resolver.resolve(ref)
            if resolved is None:
                logger.warning("Unable to resolve schema reference", ref=ref)
                return {
                    "$ref": ref,
                    "type": "object",
                    "description": f"Referenced schema: {ref}",
                }

            result: dict[str, Any] = {"$ref": ref}
            result.update(self.convert(resolved, in_progress))
            self._converted_cache[ref] = copy.deepcopy(result)
            return result
        finally:
            in_progress.discard(ref)

    def _convert_concrete(
        self, node: dict[str, Any], in_progress: set[str]
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}

        for key in _COPIED_KEYWORDS:
            if node.get(key) is not None:
                result[key] = copy.deepcopy(node[key])
        for key in _NON_EMPTY_KEYWORDS:
            if node.get(key):
                result[key] = copy.deepcopy(node[key])
        if node.get("uniqueItems") is True:
            result["uniqueItems"] = True

        properties = node.get("properties")
        if _has_type(node, "object") and isinstance(properties, dict):
            result["properties"] = {
                name: self.convert(prop, set(in_progress))
                for name, prop in properties.items()
            }

        items = node.get("items")
        if _has_type(node, "array") and items is not None:
            items_map = self.convert(items, set(in_progress))
            # Primitive item types must stay explicit for tool schema consumers.
            items_type = items.get("type") if isinstance(items, dict) else None
            if (
                isinstance(items_type, str)
                and items_type in PRIMITIVE_TYPES
                and "type" not in items_map
            ):
                items_map["type"] = items_type
            result["items"] = items_map

        additional = node.get("additionalProperties")
        if isinstance(additional, bool):
            result["additionalProperties"] = additional
        elif isinstance(additional, dict):
            result["additionalProperties"] = self.convert(additional, set(in_progress))

        return result
