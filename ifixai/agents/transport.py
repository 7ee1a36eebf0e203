"""
Shared async HTTP client for providers reached over plain OpenAI-compatible HTTP.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

import httpx

from ifixai.config.settings import settings
from ifixai.util.logger import get_logger

logger = get_logger("transport")

_async_client: httpx.AsyncClient | None = None
_client_lock: asyncio.Lock | None = None


def _http_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=max(10, int(settings.upstream_max_connections)),
        max_keepalive_connections=max(5, int(settings.upstream_max_keepalive_connections)),
    )


def _http_timeout() -> httpx.Timeout:
    timeout = float(settings.upstream_timeout_seconds)
    return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=timeout)


async def _get_async_client() -> httpx.AsyncClient:
    global _async_client, _client_lock
    if _async_client is not None:
        return _async_client
    if _client_lock is None:
        _client_lock = asyncio.Lock()
    async with _client_lock:
        if _async_client is None:
            _async_client = httpx.AsyncClient(timeout=_http_timeout(), limits=_http_limits())
    return _async_client


async def close_async_client() -> None:
    global _async_client
    if _async_client is not None:
        await _async_client.aclose()
        _async_client = None


def bearer_headers(credential: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {credential}",
    }


def decode_json_or_text(body: bytes) -> dict[str, Any] | str:
    text = body.decode("utf-8", errors="replace")
    if not text:
        return ""
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
        return text
    except json.JSONDecodeError:
        return text


def error_message(payload: dict[str, Any] | str) -> str | None:
    """Pull ``error.message`` (or a bare string ``error``) out of an error body."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"].strip():
        return error["message"]
    if isinstance(error, str) and error.strip():
        return error
    return None


async def post_json(url: str, payload: dict[str, Any], headers: Mapping[str, str]) -> tuple[int, dict[str, Any] | str]:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    logger.debug("post_json start url=%s payload_bytes=%d", url, len(body))
    client = await _get_async_client()
    try:
        response = await client.post(url=url, content=body, headers=dict(headers))
        logger.debug("post_json done url=%s status=%s", url, response.status_code)
        return response.status_code, decode_json_or_text(response.content)
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
        logger.warning("post_json http_error url=%s error=%s", url, detail)
        raise RuntimeError(detail) from exc
