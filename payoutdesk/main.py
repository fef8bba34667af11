import time
import uuid
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from payoutdesk.core.config import get_settings
from payoutdesk.core.etag import ETagMiddleware
from payoutdesk.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from payoutdesk.core.logging import bind_request_id, configure_logging, get_logger
from payoutdesk.db.base import get_record_store
from payoutdesk.routers import auth, details, price, qr_image, users, withdraws
from payoutdesk.storage.local import UPLOADS_URL_PREFIX

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)

app = FastAPI(
    title="Payout Desk API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["Content-Length", "X-Request-ID"],
    max_age=600,
)


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    if not settings.is_production:
        duration_ms = (time.perf_counter() - start) * 1000
        log.info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
    response.headers["X-Request-ID"] = request_id
    return response


# ETag and 304 handling outside production
if not settings.is_production:
    app.add_middleware(ETagMiddleware)

app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(details.router, prefix="/api", tags=["details"])
app.include_router(qr_image.router, prefix="/api/qr-image", tags=["qr-image"])
app.include_router(price.router, prefix="/api/price", tags=["price"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(withdraws.router, prefix="/api/withdraws", tags=["withdraws"])

if settings.storage_backend == "local":
    upload_dir = Path(settings.storage_local_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=upload_dir), name="uploads")


@app.on_event("startup")
async def startup():
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    await get_record_store().connect()
    log.info("startup", msg="Record store connected", backend=settings.record_store_backend)


@app.on_event("shutdown")
async def shutdown():
    await get_record_store().close()


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}
