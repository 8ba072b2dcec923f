"""Allowlisted upstream fetches with manual redirect handling."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urljoin, urlsplit

import httpx

from reelgate.errors import TooManyRedirectsError, UpstreamFetchError
from reelgate.observability.logging import get_logger
from reelgate.security.host_allowlist import HostAllowlist

logger = get_logger(__name__)

MAX_REDIRECTS = 5
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


async def open_upstream(
    client: httpx.AsyncClient,
    url: str,
    *,
    allowlist: HostAllowlist,
    headers: Mapping[str, str] | None = None,
    component: str = "upstream",
    max_redirects: int = MAX_REDIRECTS,
) -> httpx.Response:
    """Open `url` as a streaming GET, following at most `max_redirects` redirects.

    Every hop (the initial URL included) is checked against `allowlist` before
    a request is sent. Intermediate redirect responses are closed without
    reading their bodies. The caller owns the returned response and must
    `aclose()` it.
    """
    request_headers = {"Accept-Encoding": "identity", **dict(headers or {})}
    current = url
    for hop in range(max_redirects + 1):
        allowlist.ensure_allowed(current, component=component)
        request = client.build_request("GET", current, headers=request_headers)
        try:
            response = await client.send(request, stream=True, follow_redirects=False)
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError(f"Upstream timed out: {urlsplit(current).hostname}") from exc
        except httpx.TransportError as exc:
            raise UpstreamFetchError(f"Upstream unreachable: {urlsplit(current).hostname}: {exc}") from exc

        if response.status_code not in REDIRECT_STATUSES:
            return response

        location = response.headers.get("location")
        await response.aclose()
        if not location:
            raise UpstreamFetchError(f"Upstream redirect without Location (HTTP {response.status_code})")
        next_url = urljoin(str(response.url), location)
        logger.info(
            "upstream_redirect",
            component=component,
            hop=hop + 1,
            status=response.status_code,
            from_host=urlsplit(current).hostname,
            to_host=urlsplit(next_url).hostname,
        )
        current = next_url

    raise TooManyRedirectsError(f"Upstream exceeded {max_redirects} redirects")


__all__ = ["MAX_REDIRECTS", "REDIRECT_STATUSES", "open_upstream"]
