"""Tests for the ESA emulator and its GPIB backend."""

from __future__ import annotations

import pytest

from esalab_core.errors import InstrumentConnectionError, NotConnectedError
from esalab_core.types import BusAddress
from esalab_esa.emulator import (
    EsaEmulator,
    EsaEmulatorBackend,
    EsaEmulatorConfig,
    _normalize_header,
)
from esalab_scpi.number import parse_number, parse_numbers

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _query(emu: EsaEmulator, cmd: str) -> str:
    """Send a query and return the response."""
    emu.write(cmd)
    return emu.read()


def _errors(emu: EsaEmulator) -> list[str]:
    errors = []
    while True:
        response = _query(emu, "SYST:ERR?")
        if response.startswith("+0"):
            return errors
        errors.append(response)


# ---------------------------------------------------------------------------
# Configuration / header normalization
# ---------------------------------------------------------------------------


class TestEsaEmulatorConfig:
    """Tests for EsaEmulatorConfig validation."""

    def test_defaults(self) -> None:
        config = EsaEmulatorConfig()
        assert config.num_points == 401

    def test_empty_identity(self) -> None:
        with pytest.raises(ValueError, match="identity"):
            EsaEmulatorConfig(identity="")

    def test_zero_points(self) -> None:
        with pytest.raises(ValueError, match="num_points"):
            EsaEmulatorConfig(num_points=0)

    def test_bad_max_frequency(self) -> None:
        with pytest.raises(ValueError, match="max_frequency"):
            EsaEmulatorConfig(max_frequency=0.0)


class TestNormalizeHeader:
    """Tests for SCPI header normalization."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            (":freq:cent", "FREQ:CENT"),
            (":SENSE:FREQUENCY:CENTER", "FREQ:CENT"),
            (":BANDWIDTH:RESOLUTION", "BAND:RES"),
            (":calc:marker:x", "CALC:MARK1:X"),
            (":TRACE:DATA", "TRAC:DATA"),
            ("SYSTEM:ERROR", "SYST:ERR"),
        ],
    )
    def test_normalize(self, header: str, expected: str) -> None:
        assert _normalize_header(header) == expected


# ---------------------------------------------------------------------------
# SCPI behaviour
# ---------------------------------------------------------------------------


class TestEmulatorCommands:
    """Tests for the emulator's command and query handling."""

    def test_idn(self) -> None:
        assert _query(EsaEmulator(), "*IDN?").startswith("Agilent Technologies,E4407B")

    def test_center_frequency(self) -> None:
        emu = EsaEmulator()
        emu.write(":freq:cent 1.000000000e+09")
        assert parse_number(_query(emu, ":freq:cent?")) == 1.0e9

    def test_long_form_accepted(self) -> None:
        emu = EsaEmulator()
        emu.write(":SENSE:FREQUENCY:SPAN 5E6")
        assert parse_number(_query(emu, ":freq:span?")) == 5.0e6

    def test_bandwidth_clamped(self) -> None:
        emu = EsaEmulator()
        emu.write(":band:res 0")
        assert parse_number(_query(emu, ":band:res?")) == EsaEmulator.MIN_BANDWIDTH
        assert _errors(emu) == ['-222,"Data out of range"']

    def test_marker_clamped_to_span(self) -> None:
        emu = EsaEmulator()
        emu.write(":freq:cent 1e9")
        emu.write(":freq:span 1e6")
        emu.write(":calc:mark1:x 2e9")
        assert parse_number(_query(emu, ":calc:mark1:x?")) == 1.0005e9

    def test_bad_value(self) -> None:
        emu = EsaEmulator()
        emu.write(":freq:span wide")
        assert _errors(emu) == ['-104,"Data type error"']

    def test_undefined_header(self) -> None:
        emu = EsaEmulator()
        emu.write(":disp:wind:trac:y:rlev -10")
        assert _errors(emu) == ['-113,"Undefined header"']

    def test_trace_point_count(self) -> None:
        emu = EsaEmulator(EsaEmulatorConfig(num_points=11))
        assert len(parse_numbers(_query(emu, ":TRACE:DATA? RAWTRACE"))) == 11

    def test_unknown_trace_name(self) -> None:
        emu = EsaEmulator()
        assert _query(emu, ":TRACE:DATA? TRACE9") == ""
        assert _errors(emu) == ['-224,"Illegal parameter value"']

    def test_noise_floor_far_from_carrier(self) -> None:
        emu = EsaEmulator(EsaEmulatorConfig(signal_frequency=1.0e9, noise_floor=-90.0))
        assert emu.power_at(5.0e9) == pytest.approx(-90.0)

    def test_rst_restores_defaults(self) -> None:
        emu = EsaEmulator()
        emu.write(":freq:span 1e6")
        emu.write("*RST")
        assert parse_number(_query(emu, ":freq:span?")) == 26.5e9

    def test_cls_clears_errors(self) -> None:
        emu = EsaEmulator()
        emu.write(":bogus 1")
        emu.write("*CLS")
        assert _errors(emu) == []

    def test_read_clears_buffer(self) -> None:
        emu = EsaEmulator()
        emu.write("*OPC?")
        assert emu.read() == "1"
        assert emu.read() == ""


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


class TestEsaEmulatorBackend:
    """Tests for EsaEmulatorBackend."""

    def test_create_registers_handle(self) -> None:
        backend = EsaEmulatorBackend()
        address = BusAddress("ni", 0, 18)
        handle = backend.create(address)
        assert backend.discover(address) is handle
        assert backend.created == 1

    def test_open_missing_device(self) -> None:
        backend = EsaEmulatorBackend()
        handle = backend.create(BusAddress("ni", 0, 18))
        with pytest.raises(InstrumentConnectionError, match="GPIB0::18::INSTR"):
            backend.open(handle)
        assert backend.status(handle) == "closed"

    def test_io_round_trip(self) -> None:
        backend = EsaEmulatorBackend()
        backend.attach(0, 18)
        handle = backend.create(BusAddress("ni", 0, 18))
        backend.open(handle)
        backend.write_line(handle, "*IDN?")
        assert backend.read_line(handle).endswith("\n")
        assert backend.traffic == [(BusAddress("ni", 0, 18), "*IDN?")]

    def test_io_when_closed(self) -> None:
        backend = EsaEmulatorBackend()
        backend.attach(0, 18)
        handle = backend.create(BusAddress("ni", 0, 18))
        with pytest.raises(NotConnectedError):
            backend.write_line(handle, "*IDN?")
        assert backend.traffic == []

    def test_release(self) -> None:
        backend = EsaEmulatorBackend()
        handle = backend.create(BusAddress("ni", 0, 18))
        backend.release(handle)
        assert backend.discover(BusAddress("ni", 0, 18)) is None
