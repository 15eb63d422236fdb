"""Server configuration loaded from the environment."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DocumentConfig(BaseModel):
    """One OpenAPI document to expose as tools."""

    name: str = Field(description="Unique name of the document")
    location: str = Field(description="URI or file path of the OpenAPI document")
    override_url: Optional[str] = Field(
        default=None,
        description="Base URL used instead of the document's first server URL",
    )

    model_config = {"frozen": True}


class ServerConfig(BaseSettings):
    """Configuration for the OpenAPI MCP server."""

    documents: List[DocumentConfig] = Field(
        default_factory=list,
        description="Documents loaded at startup",
    )
    upload_dir: Path = Field(
        default=Path("uploads"),
        description="Directory where uploaded document content is stored",
    )
    timeout: float = Field(default=30, description="Request timeout in seconds")
    server_name: str = Field(
        default="openapi-mcp-server", description="Name reported to MCP clients"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = {
        "env_prefix": "OPENAPI_MCP_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }
