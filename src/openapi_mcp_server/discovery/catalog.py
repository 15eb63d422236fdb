"""Operation catalog: operationId → the document and spec it came from."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterator

from ..config import DocumentConfig

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)


@dataclass(frozen=True)
class OperationRecord:
    """One operation of a loaded OpenAPI document."""

    document: DocumentConfig
    root_spec: dict[str, Any]
    path: str
    method: str  # GET, POST, …
    operation: dict[str, Any]

    @property
    def summary(self) -> str | None:
        return self.operation.get("summary")

    @property
    def parameters(self) -> list[dict[str, Any]]:
        """Path-item parameters merged with operation parameters.

        Operation-level entries override path-level ones with the same
        ``(name, in)`` pair. ``$ref`` entries are keyed by the reference.
        """
        path_item = (self.root_spec.get("paths") or {}).get(self.path) or {}
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for source in (path_item.get("parameters"), self.operation.get("parameters")):
            for param in source or []:
                if not isinstance(param, dict):
                    continue
                if "$ref" in param:
                    key = ("$ref", str(param["$ref"]))
                else:
                    key = (str(param.get("name", "")), str(param.get("in", "")))
                merged[key] = param
        return list(merged.values())


def extract_operations(
    document: DocumentConfig, root_spec: dict[str, Any]
) -> dict[str, OperationRecord]:
    """Build one record per operation that declares an ``operationId``.

    Within a single document a repeated operationId keeps the last one seen.
    """
    records: dict[str, OperationRecord] = {}
    for path, path_item in (root_spec.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            op = path_item.get(method)
            if not isinstance(op, dict):
                continue
            operation_id = op.get("operationId")
            if not operation_id:
                continue
            records[operation_id] = OperationRecord(
                document=document,
                root_spec=root_spec,
                path=path,
                method=method.upper(),
                operation=op,
            )
    return records


class OperationCatalog:
    """Thread-safe mapping of operationId → OperationRecord.

    Records are immutable, so a reader either sees the previous record for a
    key or the new one, never a partial one.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, OperationRecord] = {}
        # Every loaded document's root spec, whether or not it owns records
        self._root_specs: dict[str, dict[str, Any]] = {}

    def get(self, operation_id: str) -> OperationRecord | None:
        with self._lock:
            return self._records.get(operation_id)

    def put(self, operation_id: str, record: OperationRecord) -> OperationRecord | None:
        """Insert *record*; return the record it replaced, if any."""
        with self._lock:
            previous = self._records.get(operation_id)
            self._records[operation_id] = record
            return previous

    def remove(self, operation_id: str) -> OperationRecord | None:
        with self._lock:
            return self._records.pop(operation_id, None)

    def items(self) -> list[tuple[str, OperationRecord]]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            return list(self._records.items())

    def operation_ids_for(self, document_name: str) -> list[str]:
        with self._lock:
            return [
                op_id
                for op_id, record in self._records.items()
                if record.document.name == document_name
            ]

    def add_root_spec(self, document_name: str, root_spec: dict[str, Any]) -> None:
        """Make *root_spec* searchable for references while its document is loaded."""
        with self._lock:
            self._root_specs[document_name] = root_spec

    def remove_root_spec(self, document_name: str) -> None:
        with self._lock:
            self._root_specs.pop(document_name, None)

    def root_specs(self) -> Iterator[dict[str, Any]]:
        """Yield each distinct root spec once, earliest loaded first.

        Registered document specs come first, then any spec that only
        reached the catalog through its records.
        """
        with self._lock:
            candidates = list(self._root_specs.values())
            candidates.extend(record.root_spec for record in self._records.values())
        seen: set[int] = set()
        for root_spec in candidates:
            if id(root_spec) in seen:
                continue
            seen.add(id(root_spec))
            yield root_spec

    def __contains__(self, operation_id: object) -> bool:
        with self._lock:
            return operation_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
