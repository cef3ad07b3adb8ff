"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.models import ServiceConfig
from ..models.requests import LoginResponse, SaveResponse
from ..utils.error_handler import register_exception_handlers
from .models import HealthResponse
from .server import CalendarServer
from . import routes


def create_app(config: ServiceConfig) -> FastAPI:
    """Create and configure the FastAPI application."""

    server = CalendarServer(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await server.startup()
        try:
            yield
        finally:
            await server.shutdown()

    app = FastAPI(
        title="Shared Calendar API",
        description="Per-year shared calendar with admin editing and live updates",
        version=__version__,
        lifespan=lifespan
    )
    app.state.calendar_server = server

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Add routes
    app.add_api_route("/health", routes.health_check, methods=["GET"], response_model=HealthResponse)
    app.add_api_route("/api/config", routes.get_config, methods=["GET"])
    app.add_api_route("/api/config", routes.save_config, methods=["POST"])
    app.add_api_route("/api/auth/login", routes.login, methods=["POST"], response_model=LoginResponse)
    app.add_api_route("/api/data/{year}", routes.get_data, methods=["GET"])
    app.add_api_route("/api/data/{year}", routes.save_data, methods=["POST"], response_model=SaveResponse)
    app.add_api_websocket_route("/", routes.realtime_channel)

    return app
