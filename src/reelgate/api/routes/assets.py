"""Asset proxy endpoint for relocated (or otherwise allowlisted) media."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from reelgate.api.dependencies import get_proxy_gateway
from reelgate.api.rate_limit import limiter
from reelgate.api.schemas import ErrorResponse
from reelgate.config import settings
from reelgate.observability.logging import get_logger
from reelgate.services.proxy_gateway import ProxyGateway

router = APIRouter(prefix="/v1/assets", tags=["assets"])
logger = get_logger(__name__)


@router.get(
    "/proxy",
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.proxy_rate_limit)
async def proxy_asset(
    request: Request,
    url: str | None = Query(None, description="Absolute asset URL on an allowlisted host"),
    key: str | None = Query(None, description="Object store key"),
    gateway: ProxyGateway = Depends(get_proxy_gateway),
) -> Response:
    """Stream an asset, forwarding Range/conditional headers.

    Exactly one of `url` or `key` must be given.
    """
    proxied = await gateway.open(url=url, key=key, request_headers=request.headers)

    if not settings.proxy_streaming_enabled:
        logger.info("proxy_buffered_response", status=proxied.status_code)
        body = await proxied.read()
        return Response(content=body, status_code=proxied.status_code, headers=proxied.headers)

    return StreamingResponse(
        proxied.iter_bytes(),
        status_code=proxied.status_code,
        headers=proxied.headers,
        background=BackgroundTask(proxied.aclose),
    )
