"""Reachability probe for a local Ollama backend."""

from __future__ import annotations

import httpx
from loguru import logger


async def probe_ollama(api_base: str, *, timeout: float = 3.0) -> list[str] | None:
    """Return installed model names, or None when the server cannot be reached."""
    url = api_base.rstrip("/") + "/api/tags"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("ollama probe failed url={}: {}", url, exc)
        return None

    models = payload.get("models") if isinstance(payload, dict) else None
    if not isinstance(models, list):
        return []
    return [str(m.get("name")) for m in models if isinstance(m, dict) and m.get("name")]
