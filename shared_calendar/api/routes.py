"""
FastAPI route handlers for the shared calendar API.
"""

from typing import Any, Optional

from fastapi import Body, Header, Request, WebSocket
from fastapi.responses import JSONResponse

from ..models.core import parse_year
from ..models.errors import AuthenticationException
from ..models.requests import LoginRequest, LoginResponse, SaveResponse
from .models import HealthResponse
from .server import CalendarServer


def get_server(request: Request) -> CalendarServer:
    return request.app.state.calendar_server


async def health_check(request: Request):
    """Liveness and component status."""
    server = get_server(request)
    return HealthResponse(**server.health_check())


async def get_config(request: Request):
    """Current presentation configuration; defaults if none was stored."""
    server = get_server(request)
    return await server.get_config()


async def save_config(
    request: Request,
    config: Any = Body(...),
    authorization: Optional[str] = Header(None)
):
    """Replace the configuration record (admin only)."""
    server = get_server(request)
    server.authorize(authorization)
    return await server.save_config(config)


async def login(request: Request, credentials: LoginRequest):
    """Exchange the admin password for a bearer token."""
    server = get_server(request)
    try:
        token = server.login(credentials.password)
    except AuthenticationException:
        return JSONResponse(
            status_code=401,
            content=LoginResponse(role="view", token=None).model_dump()
        )
    return LoginResponse(role="admin", token=token)


async def get_data(request: Request, year: str):
    """Full calendar document for ``year``, or ``{}`` if none exists or the year is not a number."""
    server = get_server(request)
    return await server.get_document(parse_year(year))


async def save_data(
    request: Request,
    year: int,
    document: Any = Body(...),
    authorization: Optional[str] = Header(None)
):
    """Persist a whole calendar document and broadcast it (admin only)."""
    server = get_server(request)
    server.authorize(authorization)
    delivered = await server.save_document(year, document)
    return SaveResponse(message="Data saved successfully.", delivered=delivered)


async def realtime_channel(websocket: WebSocket):
    """Persistent connection receiving DATA_UPDATE and CONFIG_UPDATE envelopes."""
    server: CalendarServer = websocket.app.state.calendar_server
    await server.handle_realtime(websocket)
