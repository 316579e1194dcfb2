from contextlib import asynccontextmanager
from typing import Optional
import logging, time

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
import httpx

from gateway import config
from gateway.errors import GatewayError, LocalIOError, UpstreamUnavailable
from gateway.payload import analyze
from gateway.routing import route
from gateway.upstream import RelayResponse, dispatch, outbound_headers, resolve_credential
from gateway.usage import UsageMetrics

log = logging.getLogger(__name__)

# ---- prometheus metrics ----
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQS = Counter("gateway_requests_total", "Total gateway chat completion requests", ["code"])
UPSTREAM_ERR = Counter("gateway_upstream_errors_total", "Upstream transport errors", ["tier"])
ROUTED = Counter("gateway_routed_total", "Requests routed per model tier", ["tier"])
LAT = Histogram(
    "gateway_latency_seconds",
    "Latency of /v1/chat/completions until the response starts (seconds)",
    buckets=(0.001, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1, 2, 5, 10, 30)
)

router = APIRouter()


@router.get("/healthz")
async def healthz():
    return PlainTextResponse("ok")


@router.get("/metrics")
async def metrics(req: Request):
    """Usage and estimated cost so far, as JSON."""
    snap = req.app.state.usage.snapshot()
    try:
        return JSONResponse(snap.to_dict())
    except (TypeError, ValueError) as e:
        log.error("failed to encode metrics JSON: %s", e)
        raise LocalIOError("failed to encode metrics") from e


@router.get("/metrics/prometheus")
async def prometheus_metrics():
    return PlainTextResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.post("/v1/chat/completions")
async def chat_completions(req: Request):
    """
    Route a chat completion to the cheap or expensive model by prompt size.

    The body is read once; the bytes we analyze are the bytes we forward.
    The upstream status, headers and body are relayed as-is and usage is
    recorded once the body has been streamed back.
    """
    t0 = time.perf_counter()

    try:
        body = await req.body()
    except Exception as e:
        log.error("failed to read request body: %s", e)
        raise LocalIOError("failed to read request body") from e

    try:
        prompt_length = analyze(body)
    except GatewayError as e:
        log.warning("rejecting request from %s: %s", _peer(req), e.__cause__ or e)
        raise

    decision = route(prompt_length)
    cost = decision.estimate_cost(prompt_length)
    log.info("-> REQ: from %s | prompt size: %d chars", _peer(req), prompt_length)
    log.info(
        "-> ROUTE: prompt size (%d) <= %d? %s. routing to %s (est. cost: $%.6f)",
        prompt_length, config.PROMPT_LENGTH_THRESHOLD,
        prompt_length <= config.PROMPT_LENGTH_THRESHOLD, decision.tier, cost,
    )

    authorization = resolve_credential(req.headers.get("authorization"), config.DEFAULT_API_KEY)
    headers = outbound_headers(
        authorization, req.headers.get("content-type"), req.headers.get("accept-encoding")
    )

    try:
        upstream = await dispatch(req.app.state.client, decision, body, headers)
    except UpstreamUnavailable as e:
        UPSTREAM_ERR.labels(e.tier).inc()
        log.error("upstream request to %s failed: %s", decision.endpoint, e.__cause__ or e)
        raise
    finally:
        LAT.observe(time.perf_counter() - t0)

    REQS.labels(str(upstream.status_code)).inc()
    ROUTED.labels(decision.tier).inc()
    usage: UsageMetrics = req.app.state.usage

    def finish(size: int) -> None:
        usage.record(decision.tier, cost)
        log.info(
            "<- RSP: model: %s | cost est: $%.6f | status: %d | time: %.3fs | size: %d bytes",
            decision.tier, cost, upstream.status_code, time.perf_counter() - t0, size,
        )

    return RelayResponse(upstream, finish)


async def handle_gateway_error(req: Request, exc: GatewayError):
    REQS.labels(str(exc.status_code)).inc()
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def _peer(req: Request) -> str:
    return req.client.host if req.client else "unknown"


def create_app(transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build a gateway app. Each app owns its usage counters and upstream client.

    transport replaces httpx's network transport, e.g. an httpx.MockTransport.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # a single async client reused across requests
        app.state.client = httpx.AsyncClient(timeout=config.UPSTREAM_TIMEOUT_SEC, transport=transport)
        app.state.usage = UsageMetrics()
        try:
            yield
        finally:
            await app.state.client.aclose()

    app = FastAPI(title="llm-gateway (prompt-size router & metrics)", lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(GatewayError, handle_gateway_error)
    return app


app = create_app()
