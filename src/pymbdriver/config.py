"""Connection configuration for Modbus devices.

This module turns the loosely-typed protocol properties supplied by a
device service (every value is a string) into a validated, immutable
ConnectionInfo.

Example:
    protocols = {
        "modbus-rtu": {
            "Address": "/dev/ttyUSB0",
            "UnitID": "1",
            "BaudRate": "19200",
            "DataBits": "8",
            "StopBits": "1",
            "Parity": "N",
        },
    }
    info = create_connection_info(protocols)

    # Serialize to dict for storage
    data = info.to_dict()

    # Restore from dict
    restored = ConnectionInfo.from_dict(data)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import (
    InvalidParityError,
    MissingProtocolError,
    ParseError,
    ValueOutOfRangeError,
)

_LOGGER = logging.getLogger(__name__)

# Protocol property keys
ADDRESS = "Address"
PORT = "Port"
UNIT_ID = "UnitID"
BAUD_RATE = "BaudRate"
DATA_BITS = "DataBits"
STOP_BITS = "StopBits"
PARITY = "Parity"

VALID_PARITIES = ("N", "O", "E")

_UNSIGNED_RE = re.compile(r"[0-9]+")
_SIGNED_RE = re.compile(r"[+-]?[0-9]+")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class Protocol(str, Enum):
    """Modbus protocol enumeration.

    Values are the keys used in the protocol configuration mapping.
    """

    TCP = "modbus-tcp"
    RTU = "modbus-rtu"
    ASCII = "modbus-ascii"


# Lookup order when more than one protocol is configured
PROTOCOL_PRIORITY = (Protocol.TCP, Protocol.RTU, Protocol.ASCII)


@dataclass(frozen=True)
class ConnectionInfo:
    """Validated connection parameters for a single device.

    Attributes:
        protocol: Which Modbus variant to speak
        address: Host for TCP; serial device path for RTU/ASCII, optionally
            followed by comma-separated extra parameters
        port: TCP port (0 for serial protocols)
        unit_id: Modbus unit/slave ID (0-255)
        baud_rate: Serial baud rate (0 for TCP)
        data_bits: Serial data bits (0 for TCP)
        stop_bits: Serial stop bits (0 for TCP)
        parity: 'N', 'O' or 'E' ("" for TCP)
    """

    protocol: Protocol
    address: str
    unit_id: int
    port: int = 0
    baud_rate: int = 0
    data_bits: int = 0
    stop_bits: int = 0
    parity: str = ""

    @property
    def is_serial(self) -> bool:
        """True for RTU and ASCII connections."""
        return self.protocol in (Protocol.RTU, Protocol.ASCII)

    @property
    def serial_port(self) -> str:
        """Serial device path without any trailing comma-separated parameters."""
        return self.address.split(",")[0]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary of typed values for serialization."""
        return {
            "protocol": self.protocol.value,
            "address": self.address,
            "port": self.port,
            "unit_id": self.unit_id,
            "baud_rate": self.baud_rate,
            "data_bits": self.data_bits,
            "stop_bits": self.stop_bits,
            "parity": self.parity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConnectionInfo:
        """Create from a dictionary produced by to_dict().

        Args:
            data: Dictionary with typed configuration values

        Returns:
            ConnectionInfo with values from the dictionary
        """
        return cls(
            protocol=Protocol(data.get("protocol", Protocol.TCP.value)),
            address=data.get("address", ""),
            port=data.get("port", 0),
            unit_id=data.get("unit_id", 0),
            baud_rate=data.get("baud_rate", 0),
            data_bits=data.get("data_bits", 0),
            stop_bits=data.get("stop_bits", 0),
            parity=data.get("parity", ""),
        )


def _parse_unsigned(field: str, value: str, maximum: int) -> int:
    if not _UNSIGNED_RE.fullmatch(value):
        raise ParseError(field, value)
    number = int(value)
    if number > maximum:
        raise ValueOutOfRangeError(field, value, 0, maximum)
    return number


def _parse_int(field: str, value: str) -> int:
    if not _SIGNED_RE.fullmatch(value):
        raise ParseError(field, value)
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueOutOfRangeError(field, value, _INT64_MIN, _INT64_MAX)
    return number


def _parse_parity(value: str) -> str:
    if value not in VALID_PARITIES:
        raise InvalidParityError(value)
    return value


def _create_tcp_connection_info(properties: Mapping[str, str]) -> ConnectionInfo:
    return ConnectionInfo(
        protocol=Protocol.TCP,
        address=properties.get(ADDRESS, ""),
        port=_parse_unsigned(PORT, properties.get(PORT, ""), 0xFFFF),
        unit_id=_parse_unsigned(UNIT_ID, properties.get(UNIT_ID, ""), 0xFF),
    )


def _create_serial_connection_info(
    protocol: Protocol,
    properties: Mapping[str, str],
) -> ConnectionInfo:
    # RTU and ASCII share the same serial line parameters
    return ConnectionInfo(
        protocol=protocol,
        address=properties.get(ADDRESS, ""),
        unit_id=_parse_unsigned(UNIT_ID, properties.get(UNIT_ID, ""), 0xFF),
        baud_rate=_parse_int(BAUD_RATE, properties.get(BAUD_RATE, "")),
        data_bits=_parse_int(DATA_BITS, properties.get(DATA_BITS, "")),
        stop_bits=_parse_int(STOP_BITS, properties.get(STOP_BITS, "")),
        parity=_parse_parity(properties.get(PARITY, "")),
    )


def create_connection_info(
    protocols: Mapping[str, Mapping[str, str]],
    *,
    logger: logging.Logger | None = None,
) -> ConnectionInfo:
    """Build a validated ConnectionInfo from protocol properties.

    The mapping is searched for a TCP entry first, then RTU, then ASCII.
    The first match is used; mutual exclusivity is not checked.

    Args:
        protocols: Mapping of protocol name to string-valued properties
        logger: Logger to use instead of the module logger

    Returns:
        ConnectionInfo with all numeric fields converted

    Raises:
        MissingProtocolError: If no recognized protocol key is present
        ParseError: If a numeric field is not a number
        ValueOutOfRangeError: If a numeric field is outside its domain
        InvalidParityError: If Parity is not N, O or E
    """
    log = logger or _LOGGER

    for protocol in PROTOCOL_PRIORITY:
        properties = protocols.get(protocol.value)
        if properties is None:
            continue

        if protocol is Protocol.TCP:
            info = _create_tcp_connection_info(properties)
        else:
            info = _create_serial_connection_info(protocol, properties)

        log.debug("Created %s connection info for %s", protocol.value, info.address)
        return info

    raise MissingProtocolError([p.value for p in PROTOCOL_PRIORITY])


__all__ = [
    "ConnectionInfo",
    "PROTOCOL_PRIORITY",
    "Protocol",
    "VALID_PARITIES",
    "create_connection_info",
]
