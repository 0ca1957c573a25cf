#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for WikiMark tests.
The compiler is pure, so only the HTTP tests need fixtures.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wikimark.core.config import get_settings
from wikimark.main import create_app


# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test sees settings built from its own environment."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture(scope="function")
async def client():
    """HTTP test client wired to a fresh application instance."""
    app = create_app()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

def flat(html: str) -> str:
    """Drop the newlines the block assembler puts between lines."""
    return html.replace("\n", "")


def marker_ids(html: str) -> list[int]:
    return [int(n) for n in re.findall(r'id="fnref-(\d+)"', html)]


def note_ids(html: str) -> list[int]:
    return [int(n) for n in re.findall(r'<li id="fn-(\d+)">', html)]


# -----------------------------------------------------------------------------
