from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clientportal.api.routes import (
    admin,
    admin_clients,
    admin_invoices,
    admin_projects,
    admin_session,
    contact,
    health,
    payments,
    portal,
    realtime,
)
from clientportal.api.deps import AdminSessionRequired, apply_session_cookies
from clientportal.core.config import settings, validate_secrets
from clientportal.core.errors import PortalError
from clientportal.core.logging_setup import logger
from clientportal.db.session import init_db


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    # Segredos padrão só são aceitos em development
    validate_secrets(settings)
    init_db()
    yield


def _normalize_origin(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = value.strip().rstrip("/")
    return cleaned or None


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        lifespan=lifespan,
    )

    logger.info("Client Portal API inicializada")

    # ===============================================================
    # CORS
    # ===============================================================
    public_front_base = settings.resolved_public_app_url()
    raw_origins = settings.allowed_origins + ([public_front_base] if public_front_base else [])

    origins: list[str] = []
    for item in raw_origins:
        normalized = _normalize_origin(item)
        if normalized and normalized not in origins:
            origins.append(normalized)

    logger.info(f"CORS configurado com origins: {origins}")

    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
        logger.warning(f"[API] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @application.exception_handler(AdminSessionRequired)
    async def admin_session_handler(request: Request, exc: AdminSessionRequired) -> JSONResponse:
        response = JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        apply_session_cookies(response, exc.store)
        return response

    # ===============================================================
    # ROTAS
    # ===============================================================
    application.include_router(health.router, prefix="/health")
    application.include_router(contact.router, prefix=settings.api_v1_str)
    application.include_router(portal.router, prefix=settings.api_v1_str)
    application.include_router(payments.router, prefix=settings.api_v1_str)
    application.include_router(realtime.router, prefix=settings.api_v1_str)
    application.include_router(admin_session.router, prefix=settings.api_v1_str)
    application.include_router(admin_clients.router, prefix=settings.api_v1_str)
    application.include_router(admin_projects.router, prefix=settings.api_v1_str)
    application.include_router(admin_invoices.router, prefix=settings.api_v1_str)
    application.include_router(admin.router, prefix=settings.api_v1_str)

    @application.get("/")
    def root():
        return {"service": settings.project_name}

    return application


app = create_app()
