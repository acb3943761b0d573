import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gatevault.api.v1.router import v1_router
from gatevault.core.config import Settings, get_settings
from gatevault.core.errors import LedgerError
from gatevault.core.logging import configure_logging
from gatevault.core.middleware import RequestIdMiddleware
from gatevault.db.store import build_store
from gatevault.services.ledger import Ledger

logger = logging.getLogger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    logger.info(
        "request rejected",
        extra={"code": exc.code, "kind": exc.kind, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app(settings: Optional[Settings] = None, ledger: Optional[Ledger] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )

    app.state.settings = settings
    app.state.ledger = ledger or Ledger(build_store(settings.store_backend, settings.database_url))

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
