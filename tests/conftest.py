"""
Pytest configuration и общие fixtures для тестов.

Предоставляет переиспользуемые fixtures:
- clock: Управляемые часы UTC
- make_response: Фабрика фейковых HTTP ответов
- token_payload: Ответ token endpoint
- http: Mock HTTP сессии
- client: WugClient, подключённый через mock token endpoint
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from wug_client import WugClient

START_TIME = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Часы, которые двигаются только вручную."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def _make_response(
    status_code: int = 200,
    json_data: Any = None,
    reason: str = "OK",
    text: Optional[str] = None,
    headers: Optional[dict] = None,
):
    """Фейковый requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.headers = headers or {}
    if text is not None:
        response.content = text.encode("utf-8")
        response.json.side_effect = ValueError("not json")
    elif json_data is not None:
        response.content = json.dumps(json_data).encode("utf-8")
        response.json.return_value = json_data
    else:
        response.content = b""
        response.json.side_effect = ValueError("empty")
    return response


def _token_payload(
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
    expires_in: int = 3600,
    token_type: str = "bearer",
) -> dict:
    return {
        "access_token": access_token,
        "token_type": token_type,
        "expires_in": expires_in,
        "refresh_token": refresh_token,
    }


def page(items, next_page_id=None, total_pages=None) -> dict:
    """Тело ответа постраничного endpoint."""
    paging = {"size": len(items)}
    if next_page_id is not None:
        paging["nextPageId"] = next_page_id
    if total_pages is not None:
        paging["totalPages"] = total_pages
    return {"data": items, "paging": paging}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def token_payload():
    return _token_payload


@pytest.fixture
def http(make_response, token_payload):
    """Mock HTTP сессии: token endpoint отвечает успешно."""
    mock_http = MagicMock()
    mock_http.post.return_value = make_response(200, token_payload())
    return mock_http


@pytest.fixture
def client(http, clock):
    """WugClient, подключённый к wug.local."""
    wug = WugClient(server="wug.local", http=http, clock=clock)
    wug.connect("admin", "secret")
    return wug


@pytest.fixture
def make_page():
    return page
