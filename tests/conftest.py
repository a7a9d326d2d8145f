"""Pytest configuration and fixtures for pymbdriver tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def tcp_protocols() -> dict[str, dict[str, str]]:
    """Valid Modbus TCP protocol properties."""
    return {
        "modbus-tcp": {
            "Address": "0.0.0.0",
            "Port": "502",
            "UnitID": "255",
        },
    }


@pytest.fixture
def rtu_protocols() -> dict[str, dict[str, str]]:
    """Valid Modbus RTU protocol properties."""
    return {
        "modbus-rtu": {
            "Address": "/dev/USB0tty",
            "UnitID": "255",
            "BaudRate": "19200",
            "DataBits": "8",
            "StopBits": "1",
            "Parity": "N",
        },
    }


@pytest.fixture
def ascii_protocols() -> dict[str, dict[str, str]]:
    """Valid Modbus ASCII protocol properties."""
    return {
        "modbus-ascii": {
            "Address": "/dev/USB0tty",
            "UnitID": "255",
            "BaudRate": "19200",
            "DataBits": "7",
            "StopBits": "1",
            "Parity": "N",
        },
    }


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Factory for pymodbus-like responses with isError() and payload fields."""

    def _make(*, error: bool = False, **fields: Any) -> MagicMock:
        response = MagicMock()
        response.isError.return_value = error
        for name, value in fields.items():
            setattr(response, name, value)
        return response

    return _make


@pytest.fixture
def make_transport_client() -> Callable[..., MagicMock]:
    """Factory for pymodbus-like async clients whose connect() returns ``connected``."""

    def _make(connected: bool = True) -> MagicMock:
        client = MagicMock()
        client.connect = AsyncMock(return_value=connected)
        client.close = MagicMock()
        return client

    return _make
