"""
Mock model servers standing in for the cheap and expensive backends.

Run them next to the gateway:

    uvicorn backends.app:cheap_app --port 8081
    uvicorn backends.app:expensive_app --port 8082
"""
import asyncio, logging, os, time

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

# Prometheus
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

log = logging.getLogger(__name__)

EXPENSIVE_DELAY = float(os.getenv("EXPENSIVE_DELAY_SEC", "0.5"))


def build_app(model: str, reply: str, cost_estimate: float, delay_sec: float = 0.0) -> FastAPI:
    """
    A backend that answers any path with the same canned completion.

    delay_sec simulates the time a bigger model needs to generate.
    Each app gets its own registry so two of them can live in one process.
    """
    app = FastAPI(title=f"mock model server: {model}")

    # ----- Metrics -----
    registry = CollectorRegistry()
    reqs = Counter("backend_requests_total", "Total backend requests", ["model"], registry=registry)
    lat = Histogram(
        "backend_latency_seconds",
        "Latency of the completion handler (seconds)",
        buckets=(0.001, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0),
        registry=registry,
    )

    @app.get("/healthz")
    async def healthz():
        return PlainTextResponse("ok")

    @app.get("/metrics")
    async def metrics():
        return PlainTextResponse(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.api_route("/{path:path}", methods=["GET", "POST"])
    async def complete(path: str):
        t0 = time.perf_counter()
        if delay_sec > 0:
            await asyncio.sleep(delay_sec)

        lat.observe(time.perf_counter() - t0)
        reqs.labels(model).inc()
        log.info("-> served request for %s (/%s) in %.0fms", model, path, delay_sec * 1000)

        return JSONResponse({
            "model": model,
            "response": reply,
            "cost_estimate": cost_estimate,
        })

    return app


cheap_app = build_app(
    "SLM-7B-cheap",
    "Summary: The main idea is to route short prompts to a small model.",
    0.0001,
)
expensive_app = build_app(
    "LLM-150B-expensive",
    "Detailed Architectural Analysis: long prompts get the large model and its latency...",
    0.0125,
    delay_sec=EXPENSIVE_DELAY,
)
