"""Transient error classification for vendor calls.

Polling is lenient and submission is strict: a status check that times out,
hits a transport error or gets a 5xx/429 from the vendor is reported as
`processing`, while the same failure during submission is surfaced to the
caller. The rule is a policy object so the orchestrator can be handed a
different one in tests or deployments.
"""

from __future__ import annotations

import asyncio
import json

import httpx

from reelgate.errors import VendorPollError


class VendorEnvelopeError(Exception):
    """A vendor response could not be decoded into a known variant."""


def _should_retry_status(status_code: int) -> bool:
    if status_code == 429:
        return True
    if status_code in {408, 409}:
        return True
    return 500 <= status_code <= 599


class TransientErrorClassifier:
    """Decide whether an exception raised while polling should read as `processing`."""

    def __init__(self, *, extra_transient_statuses: frozenset[int] = frozenset()):
        self._extra_statuses = extra_transient_statuses

    def is_transient_status(self, status_code: int) -> bool:
        return _should_retry_status(status_code) or status_code in self._extra_statuses

    def is_transient(self, exc: BaseException) -> bool:
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return True
        if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
            return True
        if isinstance(exc, httpx.HTTPStatusError):
            return self.is_transient_status(exc.response.status_code)
        if isinstance(exc, VendorPollError):
            return exc.http_status is not None and self.is_transient_status(exc.http_status)
        if isinstance(exc, (VendorEnvelopeError, json.JSONDecodeError)):
            return True
        return False


DEFAULT_CLASSIFIER = TransientErrorClassifier()

__all__ = ["DEFAULT_CLASSIFIER", "TransientErrorClassifier", "VendorEnvelopeError"]
