"""Exceptions raised by pymbdriver.

Configuration errors are raised synchronously while building a
:class:`~pymbdriver.config.ConnectionInfo` and prevent a client from being
constructed. Transport errors are raised by :class:`~pymbdriver.client.ModbusClient`
only where pymodbus reports a failure as a value (``connect()`` returning
``False``, a Modbus exception response). Exceptions raised by pymodbus or
pyserial themselves are propagated unchanged.

All exceptions inherit from :class:`ModbusDriverError` so callers can use a
single ``except ModbusDriverError`` for driver-level failures.
"""

from __future__ import annotations


class ModbusDriverError(Exception):
    """Base exception for all pymbdriver errors."""

    pass


class ConfigurationError(ModbusDriverError):
    """Protocol configuration could not be turned into a ConnectionInfo."""

    pass


class MissingProtocolError(ConfigurationError):
    """No recognized protocol key is present in the configuration."""

    def __init__(self, expected: list[str]) -> None:
        self.expected = expected
        super().__init__(
            "missing protocol configuration, expected one of: " + ", ".join(expected)
        )


class ValueOutOfRangeError(ConfigurationError):
    """Numeric property is outside its valid domain."""

    def __init__(self, field: str, value: str, minimum: int, maximum: int) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"fail to parse {field} '{value}': value out of range "
            f"(expected {minimum}-{maximum})"
        )


class ParseError(ConfigurationError):
    """Property could not be converted to the expected numeric type."""

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"fail to parse {field} '{value}': invalid syntax")


class InvalidParityError(ConfigurationError):
    """Parity is not one of N, O or E."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"invalid parity value, it should be N(None) or O(Odd) or E(Even), got '{value}'"
        )


class UnsupportedTableError(ModbusDriverError):
    """Primary table kind is not one the client can dispatch."""

    def __init__(self, table: object) -> None:
        self.table = table
        super().__init__(f"unsupported primary table: {table!r}")


class TransportError(ModbusDriverError):
    """Base exception for transport failures reported by the client."""

    pass


class TransportConnectionError(TransportError):
    """Failed to connect to the device, or no connection is open."""

    pass


class TransportReadError(TransportError):
    """Device answered a read with a Modbus exception response."""

    pass


class TransportWriteError(TransportError):
    """Device answered a write with a Modbus exception response."""

    pass


__all__ = [
    "ConfigurationError",
    "InvalidParityError",
    "MissingProtocolError",
    "ModbusDriverError",
    "ParseError",
    "TransportConnectionError",
    "TransportError",
    "TransportReadError",
    "TransportWriteError",
    "UnsupportedTableError",
    "ValueOutOfRangeError",
]
