import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import Settings, get_settings
from database import Database
from jobs.invoice_cron import start_invoice_cron
from routers import invoices_router, move_in_router, payments_router
from services.agreement_service import AgreementGenerator
from services.exceptions import ServiceError
from services.storage import DocumentStorage
from services.stripe_client import StripeClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(app.state.settings.upload_dir, exist_ok=True)
    scheduler = start_invoice_cron(app.state.settings, app.state.database)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        app.state.database.dispose()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    agreement_generator: Optional[AgreementGenerator] = None,
    document_storage: Optional[DocumentStorage] = None,
    stripe_client: Optional[StripeClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Smart Property Manager", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.sql_echo)
    app.state.agreement_generator = agreement_generator or AgreementGenerator(settings.agreements_dir)
    app.state.document_storage = document_storage or DocumentStorage.from_settings(settings)
    app.state.stripe_client = stripe_client or StripeClient(settings.stripe_secret_key, currency=settings.currency)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount static uploads (agreements and locally stored documents)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"detail": message, "errors": _jsonable_errors(errors)})

    # 500 Fallback Middleware
    @app.middleware("http")
    async def server_error_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(move_in_router)
    app.include_router(invoices_router)
    app.include_router(payments_router)

    @app.get("/health")
    def health():
        ok = app.state.database.check_connection()
        return JSONResponse(status_code=200 if ok else 503, content={"database": "ok" if ok else "unavailable"})

    return app


def _jsonable_errors(errors):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
