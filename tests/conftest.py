"""Test configuration and fixtures."""

import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from shared_calendar.api.app import create_app
from shared_calendar.config.loader import _ENV_FIELDS
from shared_calendar.config.models import ServiceConfig
from shared_calendar.services.interface import LiveTransport


ADMIN_PASSWORD = "correct horse battery staple"


class FakeTransport(LiveTransport):
    """In-memory LiveTransport recording everything sent to it."""

    def __init__(self, name: str = "fake", fail_send: bool = False, fail_ping: bool = False,
                 hang_send: bool = False, hang_ping: bool = False, answer_pings: bool = False):
        self.name = name
        self.fail_send = fail_send
        self.fail_ping = fail_ping
        self.hang_send = hang_send
        self.hang_ping = hang_ping
        self.answer_pings = answer_pings
        self.pong_waiters: List[asyncio.Future] = []
        self.sent: List[str] = []
        self.pings = 0
        self.terminated = False

    @property
    def peer(self) -> str:
        return self.name

    async def send_text(self, message: str) -> None:
        if self.hang_send:
            await asyncio.Event().wait()
        if self.fail_send or self.terminated:
            raise ConnectionError(f"{self.name} is gone")
        self.sent.append(message)

    async def ping(self) -> asyncio.Future:
        if self.hang_ping:
            await asyncio.Event().wait()
        if self.fail_ping:
            raise ConnectionError(f"{self.name} is gone")
        self.pings += 1
        waiter = asyncio.get_running_loop().create_future()
        if self.answer_pings:
            waiter.set_result(None)
        self.pong_waiters.append(waiter)
        return waiter

    async def terminate(self) -> None:
        self.terminated = True


def make_day(year: int, month: int, day: int, **overrides) -> Dict[str, Any]:
    entry = {
        "day": day,
        "month": ["January", "February", "March", "April", "May", "June", "July",
                  "August", "September", "October", "November", "December"][month - 1],
        "year": year,
        "locations": "",
        "details": "",
        "colorId": "none",
        "icons": [],
    }
    entry.update(overrides)
    return entry


def make_document(year: int = 2030, key_items: Optional[List[Dict[str, Any]]] = None,
                  last_updated: Optional[str] = "1/2/2030", **days) -> Dict[str, Any]:
    """Build a small valid calendar document; ``days`` maps 'MM_DD' to day overrides."""
    day_data = {f"{year}-01-01": make_day(year, 1, 1)}
    for key, overrides in days.items():
        month, day = (int(part) for part in key.split("_"))
        day_data[f"{year}-{month:02d}-{day:02d}"] = make_day(year, month, day, **overrides)

    if key_items is None:
        key_items = [
            {"id": "orange", "label": "Travel", "isColorKey": True, "colorCode": "orange",
             "showCount": True, "icon": "None"},
            {"id": "icon_hike", "label": "Hiking", "isColorKey": False, "icon": "Mountain",
             "iconColor": "text-green-600", "showCount": False},
        ]

    return {"dayData": day_data, "keyItems": key_items, "lastUpdatedText": last_updated}


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def service_config(data_dir):
    return ServiceConfig(
        admin_password=ADMIN_PASSWORD,
        data_dir=str(data_dir),
        sweep_interval=3600,
        send_timeout=2,
    )


@pytest.fixture
def app(service_config):
    return create_app(service_config)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client):
    response = client.post("/api/auth/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_FIELDS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    # load_dotenv writes straight into os.environ
    for name in _ENV_FIELDS:
        os.environ.pop(name, None)
