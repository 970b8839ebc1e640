"""Proxy API route: forwards test requests to the API under test."""
import time
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from testhelper.api.dependencies import get_proxy_transport, get_resolver
from testhelper.api.requests import ProxyRequest
from testhelper.api.responses import ProxyResponse
from testhelper.services.constant_resolver import ConstantResolver
from testhelper.config.settings import get_settings
from testhelper.config.request_context import CORRELATION_ID_HEADER, get_correlation_id
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/proxy", tags=["Proxy"])


def _timeout_seconds(timeout_ms: Optional[int]) -> float:
    settings = get_settings()
    effective = min(timeout_ms or settings.proxy_default_timeout_ms, settings.proxy_max_timeout_ms)
    return effective / 1000


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


@router.post("/request", response_model=ProxyResponse)
async def proxy_request(
    request: ProxyRequest,
    resolver: ConstantResolver = Depends(get_resolver),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_proxy_transport),
):
    """
    Send a request to the target API and return what it answered.

    Constants are resolved in headers and body before sending. The caller's
    correlation id is forwarded unless the request sets its own. Timeouts
    answer 408; connection failures answer 502.
    """
    headers = resolver.resolve_headers(request.headers or {})
    correlation_id = get_correlation_id()
    if correlation_id and not any(name.lower() == CORRELATION_ID_HEADER.lower() for name in headers):
        headers[CORRELATION_ID_HEADER] = correlation_id
    body = resolver.resolve(request.body)

    send_kwargs: dict = {"headers": headers}
    if body is not None and request.method.value not in ("GET", "HEAD"):
        if isinstance(body, str):
            send_kwargs["content"] = body
        else:
            send_kwargs["json"] = body

    started = time.perf_counter()
    try:
        async with httpx.AsyncClient(transport=transport, timeout=_timeout_seconds(request.timeout)) as client:
            response = await client.request(request.method.value, request.url, **send_kwargs)
    except httpx.TimeoutException:
        logger.warning("Proxy request timed out", method=request.method.value, url=request.url)
        return JSONResponse(status_code=408, content={"error": "Request timeout", "url": request.url})
    except httpx.RequestError as e:
        logger.warning("Proxy request failed", method=request.method.value, url=request.url, error=str(e))
        return JSONResponse(status_code=502, content={"error": "Proxy request failed", "details": str(e)})

    duration = int((time.perf_counter() - started) * 1000)
    logger.info("Proxy request completed", method=request.method.value, url=request.url, status=response.status_code)
    return ProxyResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=dict(response.headers),
        body=_decode(response),
        duration=duration,
    )
