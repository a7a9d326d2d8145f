"""Tests for connection info building and validation."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from pymbdriver.config import (
    ConnectionInfo,
    Protocol,
    create_connection_info,
)
from pymbdriver.exceptions import (
    ConfigurationError,
    InvalidParityError,
    MissingProtocolError,
    ParseError,
    ValueOutOfRangeError,
)


def _rtu(**overrides: str) -> dict[str, dict[str, str]]:
    properties = {
        "Address": "/dev/USB0tty",
        "UnitID": "1",
        "BaudRate": "19200",
        "DataBits": "8",
        "StopBits": "1",
        "Parity": "N",
    }
    properties.update(overrides)
    return {"modbus-rtu": properties}


def _tcp(**overrides: str) -> dict[str, dict[str, str]]:
    properties = {"Address": "0.0.0.0", "Port": "502", "UnitID": "1"}
    properties.update(overrides)
    return {"modbus-tcp": properties}


class TestProtocol:
    """Tests for Protocol enum."""

    def test_values_are_configuration_keys(self) -> None:
        """Test protocol values match the configuration mapping keys."""
        assert Protocol.TCP == "modbus-tcp"
        assert Protocol.RTU == "modbus-rtu"
        assert Protocol.ASCII == "modbus-ascii"


class TestCreateTCPConnectionInfo:
    """Tests for TCP connection info."""

    def test_valid(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test valid TCP properties are converted exactly."""
        info = create_connection_info(tcp_protocols)

        assert info.protocol is Protocol.TCP
        assert info.address == "0.0.0.0"
        assert info.port == 502
        assert info.unit_id == 255
        assert info.is_serial is False

    def test_serial_fields_unset(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test serial parameters stay at their zero values for TCP."""
        info = create_connection_info(tcp_protocols)

        assert info.baud_rate == 0
        assert info.data_bits == 0
        assert info.stop_bits == 0
        assert info.parity == ""

    def test_unit_id_out_of_range(self) -> None:
        """Test UnitID 256 is rejected."""
        with pytest.raises(ValueOutOfRangeError, match="value out of range"):
            create_connection_info(_tcp(UnitID="256"))

    def test_port_out_of_range(self) -> None:
        """Test Port 65536 is rejected."""
        with pytest.raises(ValueOutOfRangeError, match="value out of range") as exc_info:
            create_connection_info(_tcp(Port="65536"))

        assert exc_info.value.field == "Port"
        assert exc_info.value.value == "65536"

    def test_port_boundaries(self) -> None:
        """Test Port 0 and 65535 are accepted."""
        assert create_connection_info(_tcp(Port="0")).port == 0
        assert create_connection_info(_tcp(Port="65535")).port == 65535

    def test_port_not_numeric(self) -> None:
        """Test non-numeric Port is a parse error."""
        with pytest.raises(ParseError, match="Port"):
            create_connection_info(_tcp(Port="modbus"))

    def test_port_missing(self) -> None:
        """Test a missing Port is a parse error."""
        with pytest.raises(ParseError):
            create_connection_info({"modbus-tcp": {"Address": "0.0.0.0", "UnitID": "1"}})

    def test_tcp_ignores_serial_properties(self) -> None:
        """Test invalid serial properties do not affect a TCP entry."""
        info = create_connection_info(_tcp(Parity="invalid-parity", BaudRate="fast"))

        assert info.protocol is Protocol.TCP


class TestCreateSerialConnectionInfo:
    """Tests for RTU and ASCII connection info."""

    def test_ascii_data_bits_7(self, ascii_protocols: dict[str, dict[str, str]]) -> None:
        """Test ASCII properties with 7 data bits."""
        info = create_connection_info(ascii_protocols)

        assert info == ConnectionInfo(
            protocol=Protocol.ASCII,
            address="/dev/USB0tty",
            unit_id=255,
            baud_rate=19200,
            data_bits=7,
            stop_bits=1,
            parity="N",
        )

    def test_rtu_unit_id_255(self, rtu_protocols: dict[str, dict[str, str]]) -> None:
        """Test RTU properties with 8 data bits and unit 255."""
        info = create_connection_info(rtu_protocols)

        assert info.protocol is Protocol.RTU
        assert info.address == "/dev/USB0tty"
        assert info.unit_id == 255
        assert info.baud_rate == 19200
        assert info.data_bits == 8
        assert info.stop_bits == 1
        assert info.parity == "N"
        assert info.port == 0
        assert info.is_serial is True

    def test_unit_id_0(self) -> None:
        """Test UnitID 0 is a valid value, not treated as unset."""
        info = create_connection_info(_rtu(UnitID="0"))

        assert info.unit_id == 0

    def test_unit_id_out_of_range(self) -> None:
        """Test UnitID 256 is rejected for RTU."""
        with pytest.raises(ValueOutOfRangeError, match="value out of range"):
            create_connection_info(_rtu(UnitID="256"))

    @pytest.mark.parametrize("unit_id", ["-1", "one", "", " 1", "1.0"])
    def test_unit_id_not_numeric(self, unit_id: str) -> None:
        """Test non-decimal UnitID values are parse errors."""
        with pytest.raises(ParseError):
            create_connection_info(_rtu(UnitID=unit_id))

    @pytest.mark.parametrize("parity", ["N", "O", "E"])
    def test_parity_accepted(self, parity: str) -> None:
        """Test each accepted parity is reproduced exactly."""
        assert create_connection_info(_rtu(Parity=parity)).parity == parity

    def test_invalid_parity(self) -> None:
        """Test unknown parity names the accepted set."""
        with pytest.raises(
            InvalidParityError,
            match=r"invalid parity value, it should be N\(None\) or O\(Odd\) or E\(Even\)",
        ):
            create_connection_info(_rtu(Parity="invalid-parity"))

    def test_lowercase_parity_rejected(self) -> None:
        """Test parity matching is case-sensitive."""
        with pytest.raises(InvalidParityError):
            create_connection_info(_rtu(Parity="n"))

    @pytest.mark.parametrize("field", ["BaudRate", "DataBits", "StopBits"])
    def test_serial_field_not_numeric(self, field: str) -> None:
        """Test non-numeric serial parameters are parse errors."""
        with pytest.raises(ParseError, match=field) as exc_info:
            create_connection_info(_rtu(**{field: "abc"}))

        assert exc_info.value.field == field

    def test_serial_field_beyond_int64(self) -> None:
        """Test serial parameters beyond a 64-bit integer are out of range."""
        with pytest.raises(ValueOutOfRangeError):
            create_connection_info(_rtu(BaudRate="9223372036854775808"))

    def test_serial_field_signed(self) -> None:
        """Test serial parameters accept an explicit sign."""
        assert create_connection_info(_rtu(BaudRate="+9600")).baud_rate == 9600

    def test_address_extra_parameters(self) -> None:
        """Test the serial port is the first comma-separated address element."""
        info = create_connection_info(_rtu(Address="/dev/ttyUSB0,19200,8,1,N"))

        assert info.address == "/dev/ttyUSB0,19200,8,1,N"
        assert info.serial_port == "/dev/ttyUSB0"


class TestProtocolSelection:
    """Tests for protocol lookup order."""

    def test_missing_protocol(self) -> None:
        """Test an empty mapping is rejected."""
        with pytest.raises(MissingProtocolError, match="missing protocol configuration"):
            create_connection_info({})

    def test_unknown_protocol_key(self) -> None:
        """Test unrecognized protocol keys are ignored."""
        with pytest.raises(MissingProtocolError) as exc_info:
            create_connection_info({"bacnet-ip": {"Address": "10.0.0.1"}})

        assert exc_info.value.expected == ["modbus-tcp", "modbus-rtu", "modbus-ascii"]

    def test_tcp_preferred(
        self,
        tcp_protocols: dict[str, dict[str, str]],
        rtu_protocols: dict[str, dict[str, str]],
    ) -> None:
        """Test TCP wins when several protocols are configured."""
        info = create_connection_info({**rtu_protocols, **tcp_protocols})

        assert info.protocol is Protocol.TCP

    def test_rtu_preferred_over_ascii(
        self,
        rtu_protocols: dict[str, dict[str, str]],
        ascii_protocols: dict[str, dict[str, str]],
    ) -> None:
        """Test RTU wins over ASCII."""
        info = create_connection_info({**ascii_protocols, **rtu_protocols})

        assert info.protocol is Protocol.RTU

    def test_errors_share_base(self) -> None:
        """Test all builder errors derive from ConfigurationError."""
        for exc_type in (MissingProtocolError, ParseError, ValueOutOfRangeError, InvalidParityError):
            assert issubclass(exc_type, ConfigurationError)


class TestBuilderBehavior:
    """Tests for builder purity and logging."""

    def test_idempotent(self, rtu_protocols: dict[str, dict[str, str]]) -> None:
        """Test building twice from the same input gives equal values."""
        assert create_connection_info(rtu_protocols) == create_connection_info(rtu_protocols)

    def test_input_not_mutated(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test the input mapping is left untouched."""
        snapshot = {k: dict(v) for k, v in tcp_protocols.items()}
        create_connection_info(tcp_protocols)

        assert tcp_protocols == snapshot

    def test_connection_info_frozen(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test ConnectionInfo cannot be modified after construction."""
        info = create_connection_info(tcp_protocols)

        with pytest.raises(AttributeError):
            info.port = 503  # type: ignore[misc]

    def test_injected_logger(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test the injected logger receives the debug record."""
        logger = MagicMock(spec=logging.Logger)

        create_connection_info(tcp_protocols, logger=logger)

        logger.debug.assert_called_once()


class TestConnectionInfoSerialization:
    """Tests for ConnectionInfo to_dict/from_dict."""

    def test_to_dict(self, rtu_protocols: dict[str, dict[str, str]]) -> None:
        """Test typed values are exported."""
        data = create_connection_info(rtu_protocols).to_dict()

        assert data == {
            "protocol": "modbus-rtu",
            "address": "/dev/USB0tty",
            "port": 0,
            "unit_id": 255,
            "baud_rate": 19200,
            "data_bits": 8,
            "stop_bits": 1,
            "parity": "N",
        }

    def test_from_dict_restores(self, tcp_protocols: dict[str, dict[str, str]]) -> None:
        """Test from_dict restores an equal value."""
        info = create_connection_info(tcp_protocols)

        assert ConnectionInfo.from_dict(info.to_dict()) == info

    def test_from_dict_defaults(self) -> None:
        """Test from_dict fills missing keys with defaults."""
        info = ConnectionInfo.from_dict({"address": "10.0.0.5"})

        assert info.protocol is Protocol.TCP
        assert info.port == 0
        assert info.unit_id == 0
