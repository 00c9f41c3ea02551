"""Shared fixtures for API tests."""

from __future__ import annotations

import httpx
import pytest

from journal.api.app import app


@pytest.fixture
def test_app(engine):
    """FastAPI app wired to a merge engine over a temp-dir store."""
    app.state.merge_engine = engine
    yield app
    del app.state.merge_engine


@pytest.fixture
async def client(test_app):
    """httpx AsyncClient wired to the test app."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
