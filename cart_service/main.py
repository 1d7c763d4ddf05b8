"""
Storefront Cart Service Application

Internal cart API for a hosted-platform storefront: carts mixing platform
items and external feed items, checkout through placeholder variants, and
partial-payment sessions backed by draft orders.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from . import __version__
from .core.config import Settings, get_settings
from .dependencies import ServiceContainer, build_services
from .routes import cart_router, checkout_router, deposit_router

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings: Settings = app.state.settings
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"Platform: {'configured' if settings.platform_configured else 'not configured'}")

    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)

    yield

    logger.info(f"{settings.app_name} shutting down...")
    await app.state.services.close()


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """Build the application; tests pass their own services"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Internal cart and checkout compilation for a hosted commerce platform",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(deposit_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "cart-service"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cart_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
