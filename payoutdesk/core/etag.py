"""Content ETags for GET responses, answering If-None-Match with 304."""

import hashlib

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_BODY_HEADERS = (b"content-length", b"content-type")


def _etag_for(body: bytes) -> str:
    return f'"{hashlib.sha1(body).hexdigest()}"'


def _matches(if_none_match: str, etag: str) -> bool:
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate in ("*", etag):
            return True
    return False


class ETagMiddleware(BaseHTTPMiddleware):
    """Only plain 200 GETs get an ETag; static files already carry their own."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        if request.method != "GET" or response.status_code != 200 or "etag" in response.headers:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        etag = _etag_for(body)

        if _matches(request.headers.get("if-none-match", ""), etag):
            result = Response(status_code=304)
            result.raw_headers = [(k, v) for k, v in response.raw_headers if k.lower() not in _BODY_HEADERS]
        else:
            result = Response(content=body, status_code=200)
            result.raw_headers = [(k, v) for k, v in response.raw_headers if k.lower() != b"content-length"]
            result.headers["Content-Length"] = str(len(body))
        result.headers["ETag"] = etag
        return result
