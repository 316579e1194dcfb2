import logging
from typing import Callable, List, Optional, Tuple

import httpx
from starlette.requests import ClientDisconnect
from starlette.responses import StreamingResponse

from gateway.errors import UpstreamUnavailable
from gateway.routing import RoutingDecision

log = logging.getLogger(__name__)

# connection-level headers that describe our hop to the backend, not the response
HOP_BY_HOP_HEADERS = {
    b"connection",
    b"keep-alive",
    b"proxy-authenticate",
    b"proxy-authorization",
    b"te",
    b"trailers",
    b"transfer-encoding",
    b"upgrade",
}
# our own server sets these on the way out
SERVER_HEADERS = {b"date", b"server"}


def resolve_credential(inbound: Optional[str], default_key: Optional[str]) -> Optional[str]:
    """Caller's Authorization header verbatim, else a bearer of the configured key, else nothing."""
    if inbound:
        return inbound
    if default_key:
        return f"Bearer {default_key}"
    return None


def outbound_headers(
    authorization: Optional[str], content_type: Optional[str], accept_encoding: Optional[str] = None
) -> dict:
    # the body is relayed still encoded, so only ask for encodings the caller accepts
    headers = {"Accept-Encoding": accept_encoding or "identity"}
    if authorization:
        headers["Authorization"] = authorization
    if content_type is not None:
        headers["Content-Type"] = content_type
    return headers


def mirror_headers(headers: httpx.Headers) -> List[Tuple[bytes, bytes]]:
    """Upstream response headers as ordered raw pairs, repeated names kept, hop-by-hop dropped."""
    return [
        (name, value) for name, value in headers.raw
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() not in SERVER_HEADERS
    ]


async def dispatch(
    client: httpx.AsyncClient, decision: RoutingDecision, body: bytes, headers: dict
) -> httpx.Response:
    """
    Make the one upstream attempt for a request.

    The response comes back with its body still unread so it can be streamed
    to the caller. Any non-2xx status is still a completed exchange and is
    returned as-is.

    Raises:
        UpstreamUnavailable: connect, timeout or other transport failure.
    """
    request = client.build_request("POST", decision.endpoint, content=body, headers=headers)
    try:
        return await client.send(request, stream=True)
    except httpx.RequestError as e:
        raise UpstreamUnavailable(f"error connecting to {decision.tier} endpoint", decision.tier) from e


class RelayResponse(StreamingResponse):
    """
    Streams an upstream response back to the caller unchanged.

    Status and headers are mirrored from upstream and the raw body is copied
    chunk by chunk. Once the copy has been attempted, whether it finished,
    broke on the upstream side or the caller went away, on_finish is called
    with the number of bytes sent and the upstream response is closed.
    """

    def __init__(self, upstream: httpx.Response, on_finish: Callable[[int], None]):
        self.upstream = upstream
        self.on_finish = on_finish
        self.bytes_sent = 0
        super().__init__(self._copy(), status_code=upstream.status_code)
        self.raw_headers = mirror_headers(upstream.headers)

    async def _copy(self):
        try:
            async for chunk in self.upstream.aiter_raw():
                self.bytes_sent += len(chunk)
                yield chunk
        except httpx.HTTPError as e:
            log.error("upstream body broke off after %d bytes: %s", self.bytes_sent, e)

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        except (OSError, ClientDisconnect) as e:
            log.warning("caller went away after %d bytes: %r", self.bytes_sent, e)
        finally:
            self.on_finish(self.bytes_sent)
            await self.upstream.aclose()
