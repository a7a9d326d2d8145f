"""Modbus client adapter for a single field device.

This module provides the ModbusClient class, which owns one pymodbus
session (TCP, RTU or ASCII) and exposes register-range reads and writes
keyed by a CommandInfo.

The protocol is resolved once, at construction, into a connection handle
(TcpConnectionHandle or SerialConnectionHandle). The handle is the only
place that knows which pymodbus client to build; every other operation is
protocol-agnostic.

IMPORTANT: Single-Session Semantics
-----------------------------------
The client makes exactly one attempt per operation. It never retries and
never reconnects on its own; after a failure the caller must close and
reopen the connection. Callers are expected to serialize access to one
client per device.

Example:
    info = create_connection_info(protocols)
    async with ModbusClient(info) as client:
        command = CommandInfo.create("HOLDING_REGISTERS", 0, 2)
        data = await client.get_value(command)
        await client.set_value(command, b"\\x00\\x01\\x00\\x02")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING, Any

from .commands import (
    CommandInfo,
    PrimaryTable,
    bits_to_bytes,
    bytes_to_bits,
    bytes_to_registers,
    registers_to_bytes,
)
from .config import ConnectionInfo, Protocol, create_connection_info
from .exceptions import (
    TransportConnectionError,
    TransportReadError,
    TransportWriteError,
    UnsupportedTableError,
)

if TYPE_CHECKING:
    from pymodbus.client import AsyncModbusSerialClient, AsyncModbusTcpClient

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

_READ_METHODS = {
    PrimaryTable.DISCRETES_INPUT: "read_discrete_inputs",
    PrimaryTable.COILS: "read_coils",
    PrimaryTable.INPUT_REGISTERS: "read_input_registers",
    PrimaryTable.HOLDING_REGISTERS: "read_holding_registers",
}

_PROTOCOL_LABELS = {
    Protocol.TCP: "TCP",
    Protocol.RTU: "RTU",
    Protocol.ASCII: "ASCII",
}


@dataclass(frozen=True)
class TcpConnectionHandle:
    """Socket parameters for a Modbus TCP session."""

    host: str
    port: int
    unit_id: int
    timeout: float = DEFAULT_TIMEOUT

    @property
    def protocol(self) -> Protocol:
        return Protocol.TCP

    def create_client(self) -> AsyncModbusTcpClient:
        """Build an unconnected pymodbus TCP client."""
        from pymodbus.client import AsyncModbusTcpClient

        return AsyncModbusTcpClient(
            host=self.host,
            port=self.port,
            timeout=self.timeout,
            retries=0,
        )


@dataclass(frozen=True)
class SerialConnectionHandle:
    """Serial line parameters for a Modbus RTU or ASCII session."""

    protocol: Protocol
    port: str
    baudrate: int
    bytesize: int
    stopbits: int
    parity: str
    unit_id: int
    timeout: float = DEFAULT_TIMEOUT

    def create_client(self) -> AsyncModbusSerialClient:
        """Build an unconnected pymodbus serial client with the matching framer."""
        from pymodbus import FramerType
        from pymodbus.client import AsyncModbusSerialClient

        framer = FramerType.ASCII if self.protocol is Protocol.ASCII else FramerType.RTU
        return AsyncModbusSerialClient(
            port=self.port,
            framer=framer,
            baudrate=self.baudrate,
            bytesize=self.bytesize,
            parity=self.parity,
            stopbits=self.stopbits,
            timeout=self.timeout,
            retries=0,
        )


ConnectionHandle = TcpConnectionHandle | SerialConnectionHandle


def create_connection_handle(
    connection_info: ConnectionInfo,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> ConnectionHandle:
    """Select the connection handle for a ConnectionInfo.

    Args:
        connection_info: Validated connection parameters
        timeout: Request timeout in seconds passed to pymodbus

    Returns:
        TcpConnectionHandle for TCP, SerialConnectionHandle for RTU/ASCII
    """
    if connection_info.protocol is Protocol.TCP:
        return TcpConnectionHandle(
            host=connection_info.address,
            port=connection_info.port,
            unit_id=connection_info.unit_id,
            timeout=timeout,
        )

    return SerialConnectionHandle(
        protocol=connection_info.protocol,
        port=connection_info.serial_port,
        baudrate=connection_info.baud_rate,
        bytesize=connection_info.data_bits,
        stopbits=connection_info.stop_bits,
        parity=connection_info.parity,
        unit_id=connection_info.unit_id,
        timeout=timeout,
    )


class ModbusClient:
    """Single-device Modbus client.

    Example:
        client = ModbusClient(info)
        await client.open_connection()
        try:
            data = await client.get_value(
                CommandInfo(PrimaryTable.COILS, starting_address=0, length=8)
            )
        finally:
            await client.close_connection()
    """

    def __init__(
        self,
        connection_info: ConnectionInfo,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            connection_info: Validated connection parameters
            timeout: Request timeout in seconds passed to pymodbus
            logger: Logger to use instead of the module logger
        """
        self._handle = create_connection_handle(connection_info, timeout=timeout)
        self._logger = logger or _LOGGER
        self._client: Any = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> ModbusClient:
        await self.open_connection()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close_connection()

    @property
    def protocol(self) -> Protocol:
        """Get the resolved protocol."""
        return self._handle.protocol

    @property
    def unit_id(self) -> int:
        """Get the Modbus unit/slave ID."""
        return self._handle.unit_id

    @property
    def handle(self) -> ConnectionHandle:
        """Get the protocol-specific connection handle."""
        return self._handle

    @property
    def is_connected(self) -> bool:
        """True once open_connection() has succeeded and until close."""
        return self._client is not None

    async def open_connection(self) -> None:
        """Open the transport session for the configured protocol.

        Raises:
            TransportConnectionError: If pymodbus reports the connect failed
        """
        if self._client is not None:
            await self.close_connection()

        client = self._handle.create_client()
        connected = await client.connect()
        self._logger.info(
            "Modbus client create %s connection.", _PROTOCOL_LABELS[self.protocol]
        )
        if not connected:
            client.close()
            raise TransportConnectionError(
                f"Failed to open {_PROTOCOL_LABELS[self.protocol]} connection to {self._target}"
            )
        self._client = client

    async def close_connection(self) -> None:
        """Close the transport session, if one is open."""
        if self._client is None:
            return
        client, self._client = self._client, None
        client.close()
        self._logger.debug(
            "Modbus client closed %s connection to %s",
            _PROTOCOL_LABELS[self.protocol],
            self._target,
        )

    async def get_value(self, command: CommandInfo) -> bytes:
        """Read a register range.

        Args:
            command: Table, starting address and register/bit count

        Returns:
            Raw response bytes: packed bits LSB-first for bit tables,
            big-endian 16-bit words for register tables

        Raises:
            UnsupportedTableError: If the primary table is not recognized
            TransportConnectionError: If no connection is open
            TransportReadError: If the device returns a Modbus exception
        """
        table = self._resolve_table(command.primary_table)
        client = self._require_client()
        async with self._lock:
            result = await getattr(client, _READ_METHODS[table])(
                address=command.starting_address,
                count=command.length,
                device_id=self.unit_id,
            )

        if result.isError():
            self._logger.error(
                "Modbus error reading %s at %d: %s",
                table.value,
                command.starting_address,
                result,
            )
            raise TransportReadError(
                f"Modbus read error at address {command.starting_address}: {result}"
            )

        if table.is_bit_table:
            response = bits_to_bytes(list(result.bits), command.length)
        else:
            response = registers_to_bytes(list(result.registers))

        self._logger.info("Modbus client GetValue's results %s", response.hex())
        return response

    async def set_value(self, command: CommandInfo, value: bytes) -> None:
        """Write a register range.

        Discrete inputs and coils are written as coils. Holding registers
        with a length of one use a single-register write taken from the
        first two bytes of ``value``.

        Args:
            command: Table, starting address and register/bit count
            value: Raw bytes in Modbus wire order

        Raises:
            UnsupportedTableError: If the primary table is not recognized
            TransportConnectionError: If no connection is open
            TransportWriteError: If the device returns a Modbus exception
            ValueError: If ``value`` is too short for ``command.length``
        """
        table = self._resolve_table(command.primary_table)
        client = self._require_client()
        address = command.starting_address
        async with self._lock:
            if table.is_bit_table:
                result = await client.write_coils(
                    address=address,
                    values=bytes_to_bits(value, command.length),
                    device_id=self.unit_id,
                )
            elif table is PrimaryTable.HOLDING_REGISTERS and command.length == 1:
                result = await client.write_register(
                    address=address,
                    value=bytes_to_registers(value, 1)[0],
                    device_id=self.unit_id,
                )
            else:
                result = await client.write_registers(
                    address=address,
                    values=bytes_to_registers(value, command.length),
                    device_id=self.unit_id,
                )

        if result.isError():
            self._logger.error(
                "Modbus error writing %s at %d: %s", table.value, address, result
            )
            raise TransportWriteError(f"Modbus write error at address {address}: {result}")

        self._logger.info("Modbus client SetValue successful, results: %s", result)

    @property
    def _target(self) -> str:
        if isinstance(self._handle, TcpConnectionHandle):
            return f"{self._handle.host}:{self._handle.port}"
        return self._handle.port

    def _resolve_table(self, table: object) -> PrimaryTable:
        try:
            return PrimaryTable(table.upper() if isinstance(table, str) else table)
        except ValueError as err:
            self._logger.error("None supported primary table! %r", table)
            raise UnsupportedTableError(table) from err

    def _require_client(self) -> Any:
        if self._client is None:
            raise TransportConnectionError(
                f"Modbus client for {self._target} is not connected"
            )
        return self._client


def create_modbus_client(
    protocols: Mapping[str, Mapping[str, str]],
    *,
    timeout: float = DEFAULT_TIMEOUT,
    logger: logging.Logger | None = None,
) -> ModbusClient:
    """Validate protocol properties and build a ModbusClient.

    Args:
        protocols: Mapping of protocol name to string-valued properties
        timeout: Request timeout in seconds passed to pymodbus
        logger: Logger for both the builder and the client

    Returns:
        ModbusClient ready for open_connection()

    Raises:
        ConfigurationError: If the protocol properties are invalid
    """
    info = create_connection_info(protocols, logger=logger)
    return ModbusClient(info, timeout=timeout, logger=logger)


__all__ = [
    "ConnectionHandle",
    "DEFAULT_TIMEOUT",
    "ModbusClient",
    "SerialConnectionHandle",
    "TcpConnectionHandle",
    "create_connection_handle",
    "create_modbus_client",
]
