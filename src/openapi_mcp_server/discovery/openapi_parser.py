"""Fetch or read an OpenAPI document and parse it into a spec dict."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import structlog
import yaml

logger = structlog.get_logger(__name__)


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class OpenAPIParser:
    """Loads JSON or YAML OpenAPI documents from a URL or the filesystem."""

    def __init__(self, timeout: float = 15, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def parse(self, location: str) -> dict[str, Any] | None:
        """Return the parsed spec, or None when *location* is unusable."""
        try:
            if is_remote(location):
                text = await self._fetch(location)
            else:
                text = Path(location).read_text(encoding="utf-8")
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Could not read OpenAPI document", location=location, error=str(e))
            return None

        return self.parse_text(text, location)

    def parse_text(self, text: str, location: str = "<string>") -> dict[str, Any] | None:
        """Parse raw JSON/YAML text (useful for testing)."""
        try:
            if text.lstrip().startswith("{"):
                spec = json.loads(text)
            else:
                spec = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            logger.warning("Malformed OpenAPI document", location=location, error=str(e))
            return None

        if not isinstance(spec, dict) or not isinstance(spec.get("paths"), dict):
            logger.warning("Document has no paths object", location=location)
            return None

        logger.info(
            "Parsed OpenAPI spec",
            location=location,
            path_count=len(spec["paths"]),
        )
        return spec

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def _fetch(self, url: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.text
