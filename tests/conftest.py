"""
Shared pytest fixtures and configuration.

conftest.py is auto-loaded by pytest — fixtures defined here are available
to all test files without explicit imports.
"""

import os
import sys

import httpx
import pytest

# Add the repository root to the path so tests run without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from torblock.config import Settings  # noqa: E402

CHECK_URL = "https://exits.example.test/exit-addresses"

SAMPLE_LISTING = """\
ExitNode 0011BD2485AD45D984EC4159C88FC066E5E3300E
Published 2023-01-01 00:00:00
LastStatus 2023-01-01 01:00:00
ExitAddress 162.247.74.201 2023-01-01 02:00:00
ExitNode 0091174DE56EE4D3E1A8CA6DA2D5C0479E5A1D8E
Published 2023-01-02 10:11:12
LastStatus 2023-01-02 11:00:00
ExitAddress FE80::1 2023-01-02 12:00:00
"""


def mock_transport(body: str = SAMPLE_LISTING, status_code: int = 200, calls: list = None):
    """httpx transport that serves a fixed listing and records each request."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


def failing_transport(calls: list = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(check_url=CHECK_URL, update_frequency_seconds=60)
