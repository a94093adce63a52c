"""
PDF Signature Service - Backend API
FastAPI app that bakes placed field values (text, date, checkbox, radio,
image, signature) into a PDF, stores the result and keeps a SHA-256 audit trail.

Install dependencies:
pip install -e .

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
import os
import time
import uuid
import contextvars
from collections import defaultdict
from pathlib import Path

from deps import build_storage_adapter, get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# ========== Metrics Storage ==========
request_metrics = {
    "total_requests": defaultdict(int),  # by endpoint
    "total_latency": defaultdict(float),  # by endpoint
    "status_codes": defaultdict(int),  # by status code
}
# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# BACKEND CONFIGURATION
# ============================================================================
settings = get_settings()

STORAGE_BACKEND = settings.storage_backend.lower()
VERSION = "1.0"

logger.info(f"🔧 Storage Backend: {STORAGE_BACKEND.upper()}")

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="PDF Signature API",
    description="Bakes placed form fields and signatures into PDFs with a SHA-256 audit trail",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    request_start_time_var.set(time.time())

    response = await call_next(request)

    latency = time.time() - request_start_time_var.get()

    logger.info(
        f"Request completed",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": round(latency * 1000, 2),
        }
    )

    # Per-route template keeps /audit/{pdf_id} as one metrics bucket
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)
    endpoint = f"{request.method} {path}"
    request_metrics["total_requests"][endpoint] += 1
    request_metrics["total_latency"][endpoint] += latency
    request_metrics["status_codes"][response.status_code] += 1

    response.headers["X-Request-ID"] = request_id

    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    base_url = settings.public_base_url or str(request.base_url)
    return {
        "status": "ok",
        "timestamp": time.time(),
        "baseUrl": base_url.rstrip("/"),
        "backend": STORAGE_BACKEND,
        "version": VERSION,
    }


@app.get("/healthz")
async def healthz():
    """
    Kubernetes-style liveness probe.
    Fast check - is the process alive and responding?
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": VERSION
    }


@app.get("/readyz")
async def readyz(request: Request):
    """
    Kubernetes-style readiness probe.
    Checks if the audit store is usable. Returns 200 if ready, 503 if not.
    """
    adapter = getattr(request.app.state, "storage_adapter", None)
    try:
        if adapter is None:
            raise RuntimeError("storage adapter not initialized")
        adapter.ping()

        return {
            "status": "ready",
            "backend": STORAGE_BACKEND,
            "cache_size": adapter.cache_size() if hasattr(adapter, "cache_size") else 0,
            "timestamp": time.time()
        }

    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "backend": STORAGE_BACKEND,
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/metrics")
async def get_metrics(request: Request):
    """
    Get application metrics.
    Returns request counts, latencies and audit cache stats.
    """
    avg_latencies = {}
    for endpoint, total_latency in request_metrics["total_latency"].items():
        count = request_metrics["total_requests"][endpoint]
        avg_latencies[endpoint] = round((total_latency / count) * 1000, 2) if count > 0 else 0

    adapter = getattr(request.app.state, "storage_adapter", None)
    hits = getattr(adapter, "hits", 0)
    misses = getattr(adapter, "misses", 0)
    cache_total = hits + misses
    cache_hit_rate = round((hits / cache_total * 100), 2) if cache_total > 0 else 0

    total_requests = sum(request_metrics["total_requests"].values())
    return {
        "timestamp": time.time(),
        "uptime_seconds": round(time.time() - startup_time, 2),
        "backend": STORAGE_BACKEND,
        "requests": {
            "by_endpoint": dict(request_metrics["total_requests"]),
            "by_status": dict(request_metrics["status_codes"]),
            "total": total_requests,
        },
        "latency": {
            "by_endpoint_ms": avg_latencies,
            "average_ms": round(
                sum(request_metrics["total_latency"].values()) / total_requests * 1000, 2
            ) if total_requests > 0 else 0,
        },
        "cache": {
            "hits": hits,
            "misses": misses,
            "hit_rate_percent": cache_hit_rate,
            "size": adapter.cache_size() if hasattr(adapter, "cache_size") else 0,
        },
    }


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "PDF Signature API",
        "version": VERSION,
        "backend": STORAGE_BACKEND,
        "status": "running",
        "docs": "/docs"
    }


from routers import signing as signing_router
app.include_router(signing_router.router)

from routers import audit as audit_router
app.include_router(audit_router.router)

from routers import pages as pages_router
app.include_router(pages_router.router)

startup_time = time.time()

@app.on_event("startup")
async def startup_event():
    global startup_time
    startup_time = time.time()
    logger.info("PDF Signature API starting up...")

    app.state.storage_backend = STORAGE_BACKEND
    app.state.storage_adapter = build_storage_adapter(settings)
    app.state.signing_semaphore = asyncio.Semaphore(max(1, settings.max_parallel_signings))

    Path(settings.signed_pdf_dir).mkdir(parents=True, exist_ok=True)
    logger.info(f"Signed PDFs: {Path(settings.signed_pdf_dir).resolve()}")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("PDF Signature API shutting down...")
    adapter = getattr(app.state, "storage_adapter", None)
    inner = getattr(adapter, "inner", None)
    if hasattr(inner, "dispose"):
        inner.dispose()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, proxy_headers=True, forwarded_allow_ips="*")
