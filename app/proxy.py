"""
CORS reverse proxy in front of the API for browser clients. Run with:

  python -m app.proxy

Every request is forwarded to PROXY_TARGET_URL with the same method, path,
query and body. Upstream connection failures become 500 PROXY_ERROR.
"""

import logging
import sys

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from app.core.config import get_settings

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# Not forwarded in either direction; httpx sets its own framing and host.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
        "content-encoding",
    }
)

PROXIED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _forwardable(headers) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}


def create_proxy_app(
    target_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float | None = None,
) -> FastAPI:
    """
    Build the proxy app. transport is injectable so tests can stand in for the
    upstream API without a network.
    """
    settings = get_settings()
    target = (target_url or settings.PROXY_TARGET_URL).rstrip("/")
    request_timeout = timeout or settings.PROXY_REQUEST_TIMEOUT_SEC

    proxy = FastAPI(
        title=f"{settings.APP_NAME} proxy",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @proxy.api_route("/{path:path}", methods=PROXIED_METHODS)
    async def forward(path: str, request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        url = f"{target}/{path}"
        logger.info("Proxy %s %s -> %s", request.method, request.url.path, url)
        try:
            async with httpx.AsyncClient(transport=transport, timeout=request_timeout) as client:
                upstream = await client.request(
                    request.method,
                    url,
                    params=list(request.query_params.multi_items()),
                    headers=_forwardable(request.headers),
                    content=await request.body(),
                )
        except httpx.RequestError as e:
            logger.error(
                "Proxy request failed: %s",
                e,
                extra={"method": request.method, "url": url},
            )
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "PROXY_ERROR", "message": str(e)},
                headers=CORS_HEADERS,
            )

        headers = _forwardable(upstream.headers)
        headers.update(CORS_HEADERS)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=headers,
        )

    return proxy


def main() -> int:
    """Serve the proxy on PROXY_PORT."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    settings = get_settings()
    logger.info(
        "Starting proxy on port %s -> %s", settings.PROXY_PORT, settings.PROXY_TARGET_URL
    )
    uvicorn.run(create_proxy_app(), host="0.0.0.0", port=settings.PROXY_PORT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
