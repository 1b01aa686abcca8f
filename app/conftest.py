from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi import Request

from app.mirror.mapping import default_mapping_table
from app.mirror.resolver import resolve_request_context


@pytest.fixture
def mapping_table():
    """The built-in GitHub mapping table."""
    return default_mapping_table()


@pytest.fixture
def resolved_context(mapping_table):
    """Resolve a proxy hostname against the built-in table."""

    def _resolve(host="nf-gh.example.com"):
        return resolve_request_context(host, mapping_table)

    return _resolve


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object."""

    def _create_request(
        method="GET",
        host="nf-gh.example.com",
        path="/owner/repo/issues",
        query="",
        headers=None,
        body=b"",
        raw_path=None,
    ):
        request = Mock(spec=Request)
        request.method = method
        request.url.path = path
        request.url.query = query
        request.url.netloc = host or "testserver"
        request.headers = {"user-agent": "test-agent", **(headers or {})}
        if host:
            request.headers["host"] = host
        request.scope = {"raw_path": (raw_path or path).encode("utf-8")}
        request.body = AsyncMock(return_value=body)
        request.is_disconnected = AsyncMock(return_value=False)
        return request

    return _create_request


@pytest.fixture
def upstream_response():
    """Create a real httpx Response as the origin would return it."""

    def _create_response(status_code=200, headers=None, content=b""):
        return httpx.Response(status_code, headers=headers or {}, content=content)

    return _create_response
