"""
Canteen Orders - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from canteen_api import __version__
from canteen_api.api import admin, orders, otp
from canteen_api.config import Settings, get_settings
from canteen_api.container import Services, build_services
from canteen_api.database import create_tables
from canteen_api.errors import ServiceError
from canteen_api.log_config import configure_logging
from canteen_api.webhooks import razorpay

logger = structlog.get_logger()


async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, reason=exc.reason, detail=exc.message, **exc.context)
    else:
        logger.info("Request rejected", path=request.url.path, reason=exc.reason, detail=exc.message, **exc.context)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{location}: {first.get('msg', 'invalid input')}" if location else first.get("msg", "invalid input")
    return JSONResponse(status_code=400, content={"error": "validation_error", "detail": detail})


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Build the application. Services passed in are used as-is; otherwise they
    are built from settings when the app starts and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        owns_services = getattr(app.state, "services", None) is None
        if owns_services:
            configure_logging(settings.log_level, settings.log_format)
            app.state.services = build_services(settings)
            if settings.auto_create_tables and app.state.services.engine is not None:
                await create_tables(app.state.services.engine)

        logger.info("Starting Canteen Orders API", version=__version__)
        yield
        logger.info("Shutting down Canteen Orders API")

        if owns_services:
            await app.state.services.close()

    app = FastAPI(
        title="Canteen Orders",
        description="Campus canteen ordering with payment reconciliation",
        version=__version__,
        lifespan=lifespan,
    )

    if services is not None:
        app.state.services = services

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @app.get("/health")
    async def health():
        """Basic health check"""
        return {"status": "healthy", "service": "api", "version": __version__}

    # Include API routers
    app.include_router(orders.router, tags=["Orders"])
    app.include_router(admin.router, tags=["Admin"])
    app.include_router(otp.router, prefix="/otp", tags=["OTP"])

    # Include webhook routers
    app.include_router(razorpay.router, prefix="/webhooks/razorpay", tags=["Webhooks"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "canteen_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
