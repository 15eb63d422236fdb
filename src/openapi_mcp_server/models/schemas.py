"""Pydantic models for the management tools."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


def _required_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class ToolInfo(BaseModel):
    """One catalogued operation as reported by ``list_operations``."""

    operation_id: str = Field(serialization_alias="operationId")
    description: Optional[str] = None
    document_name: str = Field(serialization_alias="documentName")


class AddUriRequest(BaseModel):
    """Request model for adding a document by URI or file path."""

    name: str = Field(description="Unique name for the document")
    uri: str = Field(description="URL or file path of the OpenAPI document")
    override_url: Optional[str] = Field(
        default=None, description="Base URL to call instead of the document's servers"
    )

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Name")

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v):
        return _required_text(v, "URI")

    @field_validator("override_url")
    @classmethod
    def validate_override_url(cls, v):
        return _optional_text(v)


class AddFileContentRequest(BaseModel):
    """Request model for adding a document from raw JSON/YAML text."""

    name: str = Field(description="Unique name for the document")
    content: str = Field(description="OpenAPI document text (JSON or YAML)")
    override_url: Optional[str] = Field(
        default=None, description="Base URL to call instead of the document's servers"
    )
    filename: Optional[str] = Field(
        default=None, description="Original file name, used for the stored copy"
    )

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Name")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return _required_text(v, "File content")

    @field_validator("override_url", "filename")
    @classmethod
    def validate_optional(cls, v):
        return _optional_text(v)


class RemoveDocumentRequest(BaseModel):
    name: str = Field(description="Name of the document to remove")

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Name")


class DescribeOperationRequest(BaseModel):
    operation_id: str = Field(description="operationId of the tool to describe")

    model_config = {"extra": "forbid"}


class OperationDescription(BaseModel):
    """Input and (advisory) response schema of a registered tool."""

    operation_id: str = Field(serialization_alias="operationId")
    description: str
    document_name: str = Field(serialization_alias="documentName")
    method: str
    path: str
    input_schema: Dict[str, Any] = Field(serialization_alias="inputSchema")
    response_schema: Optional[Dict[str, Any]] = Field(
        default=None, serialization_alias="responseSchema"
    )
