import logging
from contextlib import asynccontextmanager
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from postal.api.health import router as health_router
from postal.api.routes_admin import router as admin_router
from postal.api.routes_post_offices import router as post_office_router
from postal.api.routes_shipments import router as shipment_router
from postal.config import Settings, configure_logging, get_settings
from postal.db import Database
from postal.errors import (
    CascadeFailure,
    DuplicateKey,
    HasActiveDependents,
    IllegalMutation,
    InvalidFilter,
    NotFound,
    PostalError,
    ReferenceNotFound,
    StoreUnavailable,
)
from postal.services.reconcile_service import ReconciliationService

log = logging.getLogger("postal.app")
request_log = logging.getLogger("postal.requests")

STATUS_BY_KIND = {
    NotFound.kind: 404,
    ReferenceNotFound.kind: 404,
    DuplicateKey.kind: 409,
    HasActiveDependents.kind: 409,
    IllegalMutation.kind: 400,
    InvalidFilter.kind: 422,
    StoreUnavailable.kind: 503,
    CascadeFailure.kind: 500,
}


def _start_scheduler(db: Database, interval: int) -> Optional[BackgroundScheduler]:
    if interval <= 0:
        return None
    scheduler = BackgroundScheduler()

    def reconcile_job():
        session = db.session()
        try:
            report = ReconciliationService(session).sweep()
            if report["repaired"]:
                log.info("reconciliation repaired %d reference(s)", report["repaired"])
        except Exception:
            log.exception("reconciliation sweep failed")
        finally:
            session.close()

    scheduler.add_job(reconcile_job, "interval", seconds=interval, id="reconcile_references")
    scheduler.start()
    return scheduler


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PostalError)
    async def postal_error_handler(request: Request, exc: PostalError):
        body = {"error": exc.kind, "detail": exc.detail}
        if isinstance(exc, ReferenceNotFound):
            body["field"] = exc.field
        status = STATUS_BY_KIND.get(exc.kind, 400)
        level = logging.ERROR if status >= 500 else logging.INFO
        request_log.log(level, "%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.detail)
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        in_query = any(tuple(e.get("loc") or ("",))[0] == "query" for e in errors)
        kind = InvalidFilter.kind if in_query else "InvalidPayload"
        details = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors
        ]
        return JSONResponse(status_code=422, content={"error": kind, "detail": details})

    @app.exception_handler(OperationalError)
    async def store_error_handler(request: Request, exc: OperationalError):
        log.error("store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=503,
            content={"error": StoreUnavailable.kind, "detail": "Database unavailable"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "InternalError", "detail": "Internal Server Error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.DATABASE_URL)
        # no store, no service: StoreUnavailable aborts startup
        db.connect()
        db.create_schema(reset=settings.RESET_DB)
        app.state.db = db
        scheduler = _start_scheduler(db, settings.RECONCILE_INTERVAL_SECONDS)
        log.info("Server ready on %s:%s", settings.APP_HOST, settings.APP_PORT)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            db.dispose()

    app = FastAPI(title="Postal Shipments", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Accept", "Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_log.info("Received request: %s %s", request.method, request.url)
        return await call_next(request)

    _register_error_handlers(app)

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(post_office_router)
    app.include_router(shipment_router)
    app.include_router(admin_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("postal.main:app", host=s.APP_HOST, port=s.APP_PORT)
