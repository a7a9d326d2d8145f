"""Command descriptors and byte conversions for Modbus register access.

A CommandInfo names a register range: which primary table, where it
starts, and how many registers or bits it spans. The client's contract is
raw bytes in Modbus wire order, while pymodbus works with lists of bools
and 16-bit integers; the helpers here convert between the two.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from .exceptions import UnsupportedTableError

MAX_ADDRESS = 0xFFFF


class PrimaryTable(str, Enum):
    """Modbus primary table (addressing space)."""

    DISCRETES_INPUT = "DISCRETES_INPUT"
    COILS = "COILS"
    INPUT_REGISTERS = "INPUT_REGISTERS"
    HOLDING_REGISTERS = "HOLDING_REGISTERS"

    @property
    def is_bit_table(self) -> bool:
        """True for discrete inputs and coils."""
        return self in (PrimaryTable.DISCRETES_INPUT, PrimaryTable.COILS)


@dataclass(frozen=True)
class CommandInfo:
    """A register range to read or write.

    Attributes:
        primary_table: Table the range lives in
        starting_address: First register/bit address (0-65535)
        length: Number of registers (register tables) or bits (bit tables)
    """

    primary_table: PrimaryTable
    starting_address: int
    length: int

    @classmethod
    def create(
        cls,
        primary_table: PrimaryTable | str,
        starting_address: int,
        length: int,
    ) -> CommandInfo:
        """Create a validated CommandInfo.

        Args:
            primary_table: Table enum or its name (case-insensitive)
            starting_address: First register/bit address
            length: Register or bit count

        Raises:
            UnsupportedTableError: If the table name is not recognized
            ValueError: If the address or length is out of range
        """
        if not isinstance(primary_table, PrimaryTable):
            try:
                primary_table = PrimaryTable(str(primary_table).upper())
            except ValueError as err:
                raise UnsupportedTableError(primary_table) from err

        if not 0 <= starting_address <= MAX_ADDRESS:
            raise ValueError(f"starting address {starting_address} out of range 0-{MAX_ADDRESS}")
        if length < 1 or starting_address + length - 1 > MAX_ADDRESS:
            raise ValueError(
                f"length {length} invalid for starting address {starting_address}"
            )

        return cls(primary_table, starting_address, length)


def bits_to_bytes(bits: list[bool], count: int) -> bytes:
    """Pack the first ``count`` bits LSB-first, as coils travel on the wire."""
    packed = bytearray((count + 7) // 8)
    for index, bit in enumerate(bits[:count]):
        if bit:
            packed[index // 8] |= 1 << (index % 8)
    return bytes(packed)


def bytes_to_bits(data: bytes, count: int) -> list[bool]:
    """Unpack ``count`` bits LSB-first from ``data``.

    Raises:
        ValueError: If ``data`` holds fewer than ``count`` bits
    """
    if len(data) * 8 < count:
        raise ValueError(f"{len(data)} bytes cannot hold {count} bits")
    return [bool(data[index // 8] >> (index % 8) & 1) for index in range(count)]


def registers_to_bytes(registers: list[int]) -> bytes:
    """Encode 16-bit registers as big-endian bytes."""
    return struct.pack(f">{len(registers)}H", *registers)


def bytes_to_registers(data: bytes, count: int) -> list[int]:
    """Decode ``count`` big-endian 16-bit registers from ``data``.

    Raises:
        ValueError: If ``data`` is shorter than ``2 * count`` bytes
    """
    if len(data) < count * 2:
        raise ValueError(f"{len(data)} bytes cannot hold {count} registers")
    return list(struct.unpack(f">{count}H", data[: count * 2]))


__all__ = [
    "CommandInfo",
    "PrimaryTable",
    "bits_to_bytes",
    "bytes_to_bits",
    "bytes_to_registers",
    "registers_to_bytes",
]
