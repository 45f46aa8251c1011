"""
Dispatcher — send one built request to a provider and return its JSON body.

No retries and no suppression: a non-2xx answer becomes ProviderHttpError,
a transport failure becomes ProviderNetworkError, and both propagate to the
relay untouched.
"""

from __future__ import annotations

import logging
import time

import httpx

from chatrelay.adapters.base import ProviderAdapter
from chatrelay.errors import ProviderHttpError, ProviderNetworkError
from chatrelay.json_path import JsonValue
from chatrelay.models import ApiMessage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


def error_detail(resp: httpx.Response, raw_text_errors: bool = False) -> str:
    """
    Best human-readable reason for a failed call, in order of preference:
    error.message, error.type, error (as a string), the reason phrase, and for
    custom endpoints that did not answer JSON, the raw body text.
    """
    reason = resp.reason_phrase or f"HTTP {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        text = resp.text.strip()
        if raw_text_errors and text:
            return text[:500]
        return reason

    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        for key in ("message", "type"):
            value = err.get(key)
            if isinstance(value, str) and value:
                return value
    elif isinstance(err, str) and err:
        return err
    return reason


async def dispatch(
    adapter: ProviderAdapter,
    history: list[ApiMessage],
    credential: str | None = None,
    model: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> JsonValue:
    """Build the adapter's request, POST it, and return the decoded body."""
    logger.debug(
        "Dispatching %d message(s) to '%s' (model=%s)",
        len(history), adapter.name, model or adapter.default_model or "-",
    )
    request = adapter.build_request(history, credential, model)
    t0 = time.monotonic()
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(
                request.url,
                headers=request.headers,
                params=request.params or None,
                json=request.body,
            )
    except httpx.TransportError as e:
        latency = (time.monotonic() - t0) * 1000
        logger.warning(
            "Provider '%s' unreachable after %.0fms: %s", adapter.name, latency, e,
        )
        raise ProviderNetworkError(adapter.target, e) from e

    latency = (time.monotonic() - t0) * 1000
    if not resp.is_success:
        detail = error_detail(resp, adapter.raw_text_errors)
        logger.warning(
            "Provider '%s' answered HTTP %d in %.0fms: %s",
            adapter.name, resp.status_code, latency, detail,
        )
        raise ProviderHttpError(adapter.target, resp.status_code, detail)

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning("Provider '%s' returned a non-JSON body", adapter.name)
        raise ProviderHttpError(
            adapter.target, resp.status_code, "Invalid JSON in provider response",
        ) from e

    logger.info("Provider '%s' answered in %.0fms", adapter.name, latency)
    return data

