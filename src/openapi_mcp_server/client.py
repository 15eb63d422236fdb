"""HTTP transport used to reach the backends described by OpenAPI documents."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
import structlog

from .config import ServerConfig

logger = structlog.get_logger(__name__)


@dataclass
class HttpResponse:
    """Status, headers and raw body of a backend response."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def content_type(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class HttpTransport:
    """Asynchronous transport around a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ServerConfig()
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_client(self):
        if not self.client:
            self.client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def send(
        self,
        url: str,
        method: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> HttpResponse:
        """Send one request and return the raw response.

        Transport failures surface as ``httpx.HTTPError``; status codes are
        not interpreted here.
        """
        await self._ensure_client()

        response = await self.client.request(
            method=method,
            url=url,
            params=params or None,
            headers=headers or None,
            content=body,
        )

        logger.info(
            "API request",
            method=method,
            url=url,
            status_code=response.status_code,
        )

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )
