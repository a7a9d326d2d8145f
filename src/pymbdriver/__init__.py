"""Modbus TCP/RTU/ASCII connection configuration and device client.

Usage:
    Build a client from device-service protocol properties:
        from pymbdriver import CommandInfo, PrimaryTable, create_modbus_client

        client = create_modbus_client(
            {"modbus-tcp": {"Address": "192.168.1.100", "Port": "502", "UnitID": "1"}}
        )
        async with client:
            data = await client.get_value(
                CommandInfo(PrimaryTable.HOLDING_REGISTERS, starting_address=0, length=2)
            )

    Validate configuration only:
        from pymbdriver import create_connection_info

        info = create_connection_info(protocols)
"""

from __future__ import annotations

from .client import (
    ModbusClient,
    SerialConnectionHandle,
    TcpConnectionHandle,
    create_connection_handle,
    create_modbus_client,
)
from .commands import CommandInfo, PrimaryTable
from .config import ConnectionInfo, Protocol, create_connection_info
from .exceptions import (
    ConfigurationError,
    InvalidParityError,
    MissingProtocolError,
    ModbusDriverError,
    ParseError,
    TransportConnectionError,
    TransportError,
    TransportReadError,
    TransportWriteError,
    UnsupportedTableError,
    ValueOutOfRangeError,
)

__version__ = "0.1.0"
__all__ = [
    # Builder
    "create_connection_info",
    "ConnectionInfo",
    "Protocol",
    # Client
    "create_modbus_client",
    "create_connection_handle",
    "ModbusClient",
    "TcpConnectionHandle",
    "SerialConnectionHandle",
    # Commands
    "CommandInfo",
    "PrimaryTable",
    # Exceptions
    "ModbusDriverError",
    "ConfigurationError",
    "MissingProtocolError",
    "ValueOutOfRangeError",
    "ParseError",
    "InvalidParityError",
    "UnsupportedTableError",
    "TransportError",
    "TransportConnectionError",
    "TransportReadError",
    "TransportWriteError",
]
