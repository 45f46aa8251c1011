"""
Error taxonomy for the relay.

The dispatcher and extractor raise these; only the relay entry point turns
them into the wire envelope.
"""

from __future__ import annotations

import json


class RelayError(Exception):
    """Base class for every error the relay knows how to report."""
    status_code: int = 500


class ValidationError(RelayError):
    """Inbound relay request is missing or malformed."""
    status_code = 400


class ProviderHttpError(RelayError):
    """Provider answered with a non-2xx status (or an unreadable 2xx body)."""

    def __init__(self, target: str, status: int, message: str):
        self.target = target
        self.status = status
        self.message = message
        super().__init__(f"{target} failed with status {status}: {message}")


class ProviderNetworkError(RelayError):
    """Transport failure before any HTTP response arrived."""

    def __init__(self, target: str, cause: Exception):
        self.target = target
        self.cause = cause
        detail = str(cause) or cause.__class__.__name__
        super().__init__(f"{target} failed: {detail}")


class ExtractionError(RelayError):
    """
    Response JSON did not have the shape we expected.
    Non-fatal: the relay answers 200 with `placeholder` as the reply text.
    """

    def __init__(self, provider: str, raw, placeholder: str, reason: str = ""):
        self.provider = provider
        self.raw = raw
        self.placeholder = placeholder
        msg = f"Could not extract reply from {provider} response"
        if reason:
            msg += f" ({reason})"
        super().__init__(f"{msg}: {_truncate(raw)}")


def _truncate(raw, limit: int = 200) -> str:
    try:
        text = json.dumps(raw, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(raw)
    if len(text) > limit:
        return text[:limit] + "..."
    return text
