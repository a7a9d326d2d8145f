#!/usr/bin/env python3
"""Modbus Diagnostic Tool for pymbdriver.

Reads or writes a single register range on a field device over
Modbus TCP, RTU or ASCII, using the same validation a device service
applies to its protocol properties.

Connection options fall back to MODBUS_* environment variables, which
may be supplied in a .env file.

Usage:
    pymbdriver-diag --address 192.168.1.100 --port 502 read HOLDING_REGISTERS 0 10
    pymbdriver-diag --protocol modbus-rtu --address /dev/ttyUSB0 \\
        --baud-rate 19200 --data-bits 8 --stop-bits 1 --parity N \\
        write COILS 0 8 ff
    pymbdriver-diag --help
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping

from dotenv import load_dotenv
from pymodbus.exceptions import ModbusException

from pymbdriver import __version__
from pymbdriver.client import DEFAULT_TIMEOUT, ModbusClient
from pymbdriver.commands import CommandInfo, PrimaryTable
from pymbdriver.config import (
    ADDRESS,
    BAUD_RATE,
    DATA_BITS,
    PARITY,
    PORT,
    STOP_BITS,
    UNIT_ID,
    Protocol,
    create_connection_info,
)
from pymbdriver.exceptions import (
    ConfigurationError,
    ModbusDriverError,
    UnsupportedTableError,
)

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TRANSPORT_ERROR = 1
EXIT_CONFIG_ERROR = 2

# Option dest -> (property key, environment variable)
CONNECTION_OPTIONS = {
    "address": (ADDRESS, "MODBUS_ADDRESS"),
    "port": (PORT, "MODBUS_PORT"),
    "unit_id": (UNIT_ID, "MODBUS_UNIT_ID"),
    "baud_rate": (BAUD_RATE, "MODBUS_BAUD_RATE"),
    "data_bits": (DATA_BITS, "MODBUS_DATA_BITS"),
    "stop_bits": (STOP_BITS, "MODBUS_STOP_BITS"),
    "parity": (PARITY, "MODBUS_PARITY"),
}

SERIAL_DEFAULTS = {
    BAUD_RATE: "19200",
    DATA_BITS: "8",
    STOP_BITS: "1",
    PARITY: "N",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pymbdriver-diag",
        description="Read or write a Modbus register range on a field device.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pymbdriver-diag --address 192.168.1.100 read HOLDING_REGISTERS 0 10
      Read ten holding registers over Modbus TCP (port 502, unit 1)

  pymbdriver-diag --protocol modbus-ascii --address /dev/ttyUSB0 \\
      --data-bits 7 read INPUT_REGISTERS 100 2
      Read two input registers over Modbus ASCII

  pymbdriver-diag --address 192.168.1.100 write HOLDING_REGISTERS 40 1 00ff
      Write 0x00FF to holding register 40

Environment:
  MODBUS_PROTOCOL, MODBUS_ADDRESS, MODBUS_PORT, MODBUS_UNIT_ID,
  MODBUS_BAUD_RATE, MODBUS_DATA_BITS, MODBUS_STOP_BITS, MODBUS_PARITY
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-file",
        help="Load MODBUS_* variables from this file (default: .env in the working directory)",
    )

    # Connection options
    conn_group = parser.add_argument_group("Connection Options")
    conn_group.add_argument(
        "--protocol",
        "-P",
        choices=[p.value for p in Protocol],
        help="Modbus protocol (default: modbus-tcp)",
    )
    conn_group.add_argument("--address", "-a", help="Host, or serial device path")
    conn_group.add_argument("--port", "-p", help="TCP port (default: 502)")
    conn_group.add_argument("--unit-id", "-u", help="Modbus unit/slave ID (default: 1)")
    conn_group.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Request timeout in seconds (default: %(default)s)",
    )

    serial_group = parser.add_argument_group("Serial Options (RTU/ASCII)")
    serial_group.add_argument("--baud-rate", help="Baud rate (default: 19200)")
    serial_group.add_argument("--data-bits", help="Data bits (default: 8)")
    serial_group.add_argument("--stop-bits", help="Stop bits (default: 1)")
    serial_group.add_argument("--parity", help="Parity: N, O or E (default: N)")

    tables = [t.value for t in PrimaryTable]
    subparsers = parser.add_subparsers(dest="action", required=True)

    read_parser = subparsers.add_parser("read", help="Read a register range")
    read_parser.add_argument("table", type=str.upper, choices=tables)
    read_parser.add_argument("start", type=int, help="Starting address")
    read_parser.add_argument("count", type=int, help="Register or bit count")

    write_parser = subparsers.add_parser("write", help="Write a register range")
    write_parser.add_argument("table", type=str.upper, choices=tables)
    write_parser.add_argument("start", type=int, help="Starting address")
    write_parser.add_argument("count", type=int, help="Register or bit count")
    write_parser.add_argument("value", type=bytes.fromhex, help="Value as hex bytes")

    return parser


def build_protocols(
    args: argparse.Namespace,
    environ: Mapping[str, str] | None = None,
) -> dict[str, dict[str, str]]:
    """Collect connection options into a protocol properties mapping.

    Command-line options win over MODBUS_* environment variables, which
    win over the built-in defaults.

    Args:
        args: Parsed command-line arguments
        environ: Environment to read fallbacks from (default: os.environ)

    Returns:
        Mapping with a single protocol entry of string-valued properties
    """
    env = os.environ if environ is None else environ
    protocol = Protocol(args.protocol or env.get("MODBUS_PROTOCOL", Protocol.TCP.value))

    properties: dict[str, str] = {}
    for dest, (key, env_name) in CONNECTION_OPTIONS.items():
        value = getattr(args, dest, None)
        if value is None:
            value = env.get(env_name)
        if value is not None:
            properties[key] = value

    properties.setdefault(UNIT_ID, "1")
    if protocol is Protocol.TCP:
        properties.setdefault(PORT, "502")
    else:
        for key, default in SERIAL_DEFAULTS.items():
            properties.setdefault(key, default)

    return {protocol.value: properties}


async def run(args: argparse.Namespace, protocols: Mapping[str, Mapping[str, str]]) -> int:
    """Execute the requested action and print the result."""
    try:
        info = create_connection_info(protocols)
        command = CommandInfo.create(args.table, args.start, args.count)
    except (ConfigurationError, UnsupportedTableError, ValueError) as err:
        print(f"Configuration error: {err}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        async with ModbusClient(info, timeout=args.timeout) as client:
            if args.action == "read":
                data = await client.get_value(command)
                print(data.hex())
            else:
                await client.set_value(command, args.value)
                print(
                    f"Wrote {len(args.value)} bytes to {command.primary_table.value} "
                    f"at {command.starting_address}"
                )
    except ValueError as err:
        print(f"Configuration error: {err}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (ModbusDriverError, ModbusException, OSError) as err:
        _LOGGER.debug("Modbus %s failed", args.action, exc_info=True)
        print(f"Modbus error: {err}", file=sys.stderr)
        return EXIT_TRANSPORT_ERROR

    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    try:
        protocols = build_protocols(args)
    except ValueError as err:
        print(f"Configuration error: {err}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    return asyncio.run(run(args, protocols))


if __name__ == "__main__":
    sys.exit(main())
