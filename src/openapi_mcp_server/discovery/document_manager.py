"""Add and remove OpenAPI documents at runtime.

Each document moves ``absent → loaded → absent``. Adding parses the document,
puts every operation with an ``operationId`` into the catalog and registers a
tool for it; removing retracts those tools and drops the catalog entries.
Mutations are serialized by one lock; catalog reads never wait on parsing.
"""

from __future__ import annotations

import threading
from typing import Iterable

import structlog

from ..config import DocumentConfig
from ..errors import (
    DocumentNotFoundError,
    DuplicateDocumentError,
    OpenAPIMCPError,
    ParseError,
)
from ..models.schemas import ToolInfo
from ..utils.storage import FileStorage
from .catalog import OperationCatalog, extract_operations
from .openapi_parser import OpenAPIParser
from .tool_registry import ToolRegistry

logger = structlog.get_logger(__name__)


class DocumentManager:
    """Owns the set of loaded documents and keeps catalog and tools in step."""

    def __init__(
        self,
        catalog: OperationCatalog,
        registry: ToolRegistry,
        parser: OpenAPIParser,
        storage: FileStorage | None = None,
    ):
        self.catalog = catalog
        self.registry = registry
        self.parser = parser
        self.storage = storage or FileStorage()
        self._lock = threading.RLock()
        self._documents: dict[str, DocumentConfig] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_operations(self) -> list[ToolInfo]:
        return [
            ToolInfo(
                operation_id=operation_id,
                description=record.summary,
                document_name=record.document.name,
            )
            for operation_id, record in self.catalog.items()
        ]

    def list_documents(self) -> list[DocumentConfig]:
        with self._lock:
            return list(self._documents.values())

    def get_document(self, name: str) -> DocumentConfig | None:
        with self._lock:
            return self._documents.get(name)

    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------

    async def add_document(
        self,
        name: str,
        location: str,
        override_url: str | None = None,
    ) -> int:
        """Load the document at *location*; returns its operation count."""
        self._ensure_absent(name)
        document = DocumentConfig(name=name, location=location, override_url=override_url)

        spec = await self.parser.parse(location)
        if spec is None:
            raise ParseError(location)

        records = extract_operations(document, spec)

        with self._lock:
            self._ensure_absent(name)
            self.catalog.add_root_spec(name, spec)

            for operation_id, record in records.items():
                previous = self.catalog.put(operation_id, record)
                if previous is not None:
                    # Last loaded wins for both dispatch and the published tool.
                    logger.warning(
                        "Operation id already loaded, replacing",
                        operation_id=operation_id,
                        previous_document=previous.document.name,
                        document=name,
                    )
                    self._unregister(operation_id)

            for operation_id, record in records.items():
                try:
                    self.registry.register_operation(operation_id, record)
                except Exception as e:
                    logger.error(
                        "Failed to register tool",
                        operation_id=operation_id,
                        error=str(e),
                        exc_info=True,
                    )

            self._documents[name] = document

        logger.info(
            "Added OpenAPI document",
            document=name,
            location=location,
            operation_count=len(records),
        )
        return len(records)

    async def add_document_from_content(
        self,
        name: str,
        content: str,
        override_url: str | None = None,
        filename: str | None = None,
    ) -> int:
        """Store raw document text, then load it like any other location."""
        self._ensure_absent(name)
        try:
            path = self.storage.save(content, filename)
        except (ValueError, OSError) as e:
            raise ParseError(filename or "<uploaded content>", str(e)) from e
        return await self.add_document(name, path, override_url)

    async def load_documents(self, documents: Iterable[DocumentConfig]) -> int:
        """Bulk-load configured documents, skipping the ones that fail."""
        total = 0
        for doc in documents:
            try:
                total += await self.add_document(doc.name, doc.location, doc.override_url)
            except OpenAPIMCPError as e:
                logger.error("Skipping OpenAPI document", document=doc.name, error=str(e))
        return total

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove_document(self, name: str) -> int:
        """Retract every tool of document *name*; returns how many."""
        with self._lock:
            document = self._documents.pop(name, None)
            if document is None:
                raise DocumentNotFoundError(name)

            operation_ids = self.catalog.operation_ids_for(name)
            for operation_id in operation_ids:
                self._unregister(operation_id)
                self.catalog.remove(operation_id)
            self.catalog.remove_root_spec(name)

            # Cached resolutions may point into the removed spec.
            self.registry.converter.clear()

        logger.info(
            "Removed OpenAPI document",
            document=name,
            operation_count=len(operation_ids),
        )
        return len(operation_ids)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_absent(self, name: str) -> None:
        with self._lock:
            if name in self._documents:
                raise DuplicateDocumentError(name)

    def _unregister(self, operation_id: str) -> None:
        try:
            self.registry.unregister_operation(operation_id)
        except Exception as e:
            logger.warning(
                "Error removing tool",
                operation_id=operation_id,
                error=str(e),
            )
