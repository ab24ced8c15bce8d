"""
Cup Orders Dashboard - Backend API
FastAPI over a SQLAlchemy order store, Google Drive for art files and a
WhatsApp HTTP gateway for the painting team.

Install dependencies:
pip install -e .

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import Depends, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Annotated
import contextvars
import logging
import os
import time
import uuid

from adapters.base import StorageAdapter
from core.chat_client import ChatGatewayError, ChatNotConnectedError
from deps import get_storage_adapter, peek_chat_service
from settings import get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()
VERSION = "1.0"

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Cup Orders Dashboard API",
    description="Order tracking, production queue and painting notifications for printed cups",
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
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": round(latency * 1000, 2),
        }
    )

    response.headers["X-Request-ID"] = request_id
    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# ERROR BODIES: always {"error": str, "details"?: any}
# ============================================================================

def _error_body(error, details=None) -> dict:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return body


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = _error_body(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request", details),
    )


@app.exception_handler(ChatNotConnectedError)
async def chat_not_connected_handler(request, exc: ChatNotConnectedError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(str(exc)))


@app.exception_handler(ChatGatewayError)
async def chat_gateway_error_handler(request, exc: ChatGatewayError):
    logger.error(f"Chat gateway failure: {exc} ({exc.details})")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(str(exc), exc.details),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", str(exc)),
    )

# ============================================================================
# ENDPOINTS
# ============================================================================

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]


@app.get("/health")
async def health_check(storage: Storage):
    """Health check endpoint"""
    try:
        storage.ping()
        return {
            "status": "healthy",
            "database": settings.db_url.split("://")[0],
            "version": VERSION,
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": str(e)}
        )


@app.get("/healthz")
async def healthz():
    """
    Liveness probe: is the process alive and responding?
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": VERSION
    }


@app.get("/readyz")
async def readyz(storage: Storage):
    """
    Readiness probe: can the database be reached?
    Returns 200 if ready, 503 if not ready.
    """
    chat = peek_chat_service()
    try:
        storage.ping()
        return {
            "status": "ready",
            "chat_state": chat.state.value if chat else "DISCONNECTED",
            "timestamp": time.time()
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Cup Orders Dashboard API",
        "version": VERSION,
        "status": "running",
        "docs": "/docs"
    }


# ========== Routers ==========
from routers import orders as orders_router
from routers import imports as imports_router
from routers import assets as assets_router
from routers import daily_queue as daily_queue_router
from routers import reports as reports_router
from routers import copy_arts as copy_arts_router
from routers import whatsapp as whatsapp_router

app.include_router(orders_router.router)
app.include_router(imports_router.router)
app.include_router(assets_router.router)
app.include_router(daily_queue_router.router)
app.include_router(reports_router.router)
app.include_router(copy_arts_router.router)
app.include_router(whatsapp_router.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Cup Orders Dashboard API starting up...")
    logger.info(f"Database: {settings.db_url.split('://')[0]}")
    logger.info(f"Chat gateway: {settings.chat_gateway_url} (session {settings.chat_session!r})")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Cup Orders Dashboard API shutting down...")
    chat = peek_chat_service()
    if chat is not None:
        await chat.disconnect()
        await chat.aclose()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=False)
