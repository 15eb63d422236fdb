"""Resolve local ``$ref`` strings against every loaded OpenAPI document."""

from __future__ import annotations

from typing import Any

import structlog

from .catalog import OperationCatalog

logger = structlog.get_logger(__name__)

SCHEMAS_PREFIX = "#/components/schemas/"
PARAMETERS_PREFIX = "#/components/parameters/"


class SchemaResolver:
    """Looks up component schemas and parameters by reference string.

    Successful lookups are cached by the exact reference; misses are not,
    since a document loaded later may still provide the component.
    """

    def __init__(self, catalog: OperationCatalog):
        self._catalog = catalog
        self._cache: dict[str, dict[str, Any]] = {}

    def resolve(self, ref: str | None) -> dict[str, Any] | None:
        """Return the schema node behind *ref*, or None when it is unknown.

        For ``#/components/parameters/<name>`` the parameter's own schema is
        returned.
        """
        if not ref:
            return None

        cached = self._cache.get(ref)
        if cached is not None:
            logger.debug("Using cached schema for reference", ref=ref)
            return cached

        if ref.startswith(SCHEMAS_PREFIX):
            resolved = self._find_component("schemas", ref[len(SCHEMAS_PREFIX):])
        elif ref.startswith(PARAMETERS_PREFIX):
            parameter = self._find_component(
                "parameters", ref[len(PARAMETERS_PREFIX):]
            )
            resolved = parameter.get("schema") if parameter else None
        elif "#" in ref:
            logger.warning(
                "External references with local paths not supported", ref=ref
            )
            return None
        else:
            logger.warning("Unsupported reference format", ref=ref)
            return None

        if isinstance(resolved, dict):
            self._cache[ref] = resolved
            return resolved
        return None

    def resolve_parameter(self, ref: str | None) -> dict[str, Any] | None:
        """Return the full parameter object behind a parameter reference."""
        if not ref or not ref.startswith(PARAMETERS_PREFIX):
            return None
        return self._find_component("parameters", ref[len(PARAMETERS_PREFIX):])

    def clear(self) -> None:
        self._cache.clear()

    def _find_component(self, category: str, name: str) -> dict[str, Any] | None:
        for root_spec in self._catalog.root_specs():
            components = root_spec.get("components") or {}
            entries = components.get(category) or {}
            found = entries.get(name)
            if isinstance(found, dict):
                return found
        return None


def parameter_name_from_ref(ref: str | None) -> str:
    """Derive a tool property name from a parameter reference.

    ``#/components/parameters/PageSize`` becomes ``pageSize``.
    """
    if ref and ref.startswith(PARAMETERS_PREFIX):
        name = ref[len(PARAMETERS_PREFIX):]
        if name and name[0].isupper():
            return name[0].lower() + name[1:]
        return name
    return "param"
