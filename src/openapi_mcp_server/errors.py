"""Exceptions raised by the OpenAPI MCP server core."""

from typing import Optional


class OpenAPIMCPError(Exception):
    """Base exception for OpenAPI MCP server errors."""


class DuplicateDocumentError(OpenAPIMCPError):
    """A document with the same name is already loaded."""

    def __init__(self, name: str):
        super().__init__(f"OpenAPI document with name '{name}' already exists")
        self.name = name


class ParseError(OpenAPIMCPError):
    """The document at *location* could not be read or parsed."""

    def __init__(self, location: str, reason: Optional[str] = None):
        message = f"Failed to parse OpenAPI from: {location}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.location = location


class DocumentNotFoundError(OpenAPIMCPError):
    def __init__(self, name: str):
        super().__init__(f"OpenAPI document not found: {name}")
        self.name = name


class OperationNotFoundError(OpenAPIMCPError):
    def __init__(self, operation_id: str):
        super().__init__(f"Operation not found: {operation_id}")
        self.operation_id = operation_id


class ConfigurationError(OpenAPIMCPError):
    """No usable base URL (or similar setup problem) for an operation."""


class InvocationError(OpenAPIMCPError):
    """Calling the backend for an operation failed."""

    def __init__(
        self,
        operation_id: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(f"Error invoking {operation_id} : {message}")
        self.operation_id = operation_id
        self.status_code = status_code
