"""ESA spectrum analyzer emulator.

Provides an in-process SCPI emulator of an ESA series analyzer
(:class:`EsaEmulator`) and a :class:`GpibBackend` implementation
(:class:`EsaEmulatorBackend`) that places emulated instruments at GPIB
addresses. The emulator synthesizes a deterministic trace made of a flat
noise floor and one carrier shaped by the resolution bandwidth filter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from esalab_core.errors import InstrumentConnectionError, NotConnectedError
from esalab_core.types import BusAddress
from esalab_scpi.backend import HandleStatus

from esalab_esa.trace import frequency_axis

# ---------------------------------------------------------------------------
# Long-form → short-form SCPI keyword map
# ---------------------------------------------------------------------------

_LONG_TO_SHORT: dict[str, str] = {
    "FREQUENCY": "FREQ",
    "CENTER": "CENT",
    "BANDWIDTH": "BAND",
    "BWIDTH": "BAND",
    "RESOLUTION": "RES",
    "CALCULATE": "CALC",
    "MARKER": "MARK",
    "MARKER1": "MARK1",
    "TRACE": "TRAC",
    "SYSTEM": "SYST",
    "ERROR": "ERR",
    "SENSE": "SENS",
}

# Segments that are optional and should be stripped during normalization
_OPTIONAL_SEGMENTS: set[str] = {"SENS"}

# Gaussian RBW filter: FWHM = 2*sqrt(2*ln 2)*sigma
_FWHM_PER_SIGMA = 2.0 * math.sqrt(2.0 * math.log(2.0))


def _normalize_header(header: str) -> str:
    """Normalize a SCPI header to canonical short form.

    Uppercases, strips the leading colon, maps long forms to short forms,
    drops optional segments, and maps a bare ``MARK`` to ``MARK1``.
    """
    upper = header.upper().lstrip(":")
    segments = [_LONG_TO_SHORT.get(seg, seg) for seg in upper.split(":")]
    segments = ["MARK1" if seg == "MARK" else seg for seg in segments]
    return ":".join(seg for seg in segments if seg not in _OPTIONAL_SEGMENTS)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EsaEmulatorConfig:
    """Configuration for an ESA emulator instance.

    Args:
        identity: ``*IDN?`` response string.
        num_points: Sweep points per trace (>= 1).
        max_frequency: Upper frequency limit in Hz (> 0).
        noise_floor: Displayed noise level in dBm.
        signal_frequency: Carrier frequency in Hz.
        signal_power: Carrier power in dBm.
    """

    identity: str = "Agilent Technologies,E4407B,US00000001,A.14.01"
    num_points: int = 401
    max_frequency: float = 26.5e9
    noise_floor: float = -90.0
    signal_frequency: float = 1.0e9
    signal_power: float = -20.0

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity must be non-empty")
        if self.num_points < 1:
            raise ValueError("num_points must be >= 1")
        if self.max_frequency <= 0:
            raise ValueError("max_frequency must be > 0")


@dataclass
class _AnalyzerState:
    center_frequency: float
    span: float
    bandwidth: float
    marker_x: float


# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class EsaEmulator:
    """In-process ESA analyzer that answers SCPI lines.

    Args:
        config: Emulator configuration. Defaults to an E4407B.
    """

    MIN_BANDWIDTH = 1.0
    MAX_BANDWIDTH = 5.0e6

    def __init__(self, config: EsaEmulatorConfig | None = None) -> None:
        self._config = config or EsaEmulatorConfig()
        self._state = self._default_state()
        self._response_buffer: str = ""
        self._error_queue: list[tuple[int, str]] = []

        self._set_handlers: dict[str, Callable[[str], None]] = {
            "FREQ:CENT": self._set_center_frequency,
            "FREQ:SPAN": self._set_span,
            "BAND:RES": self._set_bandwidth,
            "BAND": self._set_bandwidth,
            "CALC:MARK1:X": self._set_marker_x,
        }

        self._query_handlers: dict[str, Callable[[str], str]] = {
            "FREQ:CENT?": lambda _: _format(self._state.center_frequency),
            "FREQ:SPAN?": lambda _: _format(self._state.span),
            "BAND:RES?": lambda _: _format(self._state.bandwidth),
            "BAND?": lambda _: _format(self._state.bandwidth),
            "CALC:MARK1:X?": lambda _: _format(self._state.marker_x),
            "CALC:MARK1:Y?": lambda _: _format(self.power_at(self._state.marker_x)),
            "TRAC:DATA?": self._get_trace,
            "TRAC?": self._get_trace,
        }

    @property
    def config(self) -> EsaEmulatorConfig:
        """The emulator configuration."""
        return self._config

    # -- Line interface -----------------------------------------------------

    def write(self, message: str) -> None:
        """Process a SCPI command or query line."""
        line = message.strip()
        if not line:
            return

        is_query, header, args = self._parse_line(line)

        if self._handle_common_command(header, is_query):
            return

        self._dispatch(header, args, is_query)

    def read(self) -> str:
        """Return and clear the buffered response."""
        resp = self._response_buffer
        self._response_buffer = ""
        return resp

    # -- Signal model -------------------------------------------------------

    def power_at(self, frequency: float) -> float:
        """Displayed power in dBm at *frequency* for the current RBW."""
        return float(self._power(np.asarray([frequency], dtype=np.float64))[0])

    def trace(self) -> np.ndarray:
        """Synthesize the current trace."""
        axis = frequency_axis(
            self._state.center_frequency, self._state.span, self._config.num_points
        )
        return self._power(axis)

    def _power(self, frequencies: np.ndarray) -> np.ndarray:
        sigma = self._state.bandwidth / _FWHM_PER_SIGMA
        offset = (frequencies - self._config.signal_frequency) / sigma
        signal_mw = 10.0 ** (self._config.signal_power / 10.0) * np.exp(-0.5 * offset**2)
        noise_mw = 10.0 ** (self._config.noise_floor / 10.0)
        result: np.ndarray = 10.0 * np.log10(noise_mw + signal_mw)
        return result

    # -- Private helpers ----------------------------------------------------

    def _parse_line(self, line: str) -> tuple[bool, str, str]:
        """Parse a SCPI line into (is_query, header, args)."""
        is_query = "?" in line
        if is_query:
            qmark_idx = line.index("?")
            header = line[: qmark_idx + 1]
            args = line[qmark_idx + 1 :].strip()
        else:
            parts = line.split(None, 1)
            header = parts[0]
            args = parts[1] if len(parts) > 1 else ""
        return is_query, header, args

    def _handle_common_command(self, header: str, is_query: bool) -> bool:
        """Handle IEEE 488.2 and SYST:ERR? commands. Returns True if handled."""
        upper_header = header.upper()
        if upper_header == "*IDN?":
            self._response_buffer = self._config.identity
            return True
        if upper_header == "*OPC?":
            self._response_buffer = "1"
            return True
        if upper_header == "*RST":
            self._state = self._default_state()
            return True
        if upper_header == "*CLS":
            self._error_queue.clear()
            return True
        if is_query and _normalize_header(header.rstrip("?")) == "SYST:ERR":
            self._response_buffer = self._pop_error()
            return True
        return False

    def _dispatch(self, header: str, args: str, is_query: bool) -> None:
        if is_query:
            query = self._query_handlers.get(_normalize_header(header.rstrip("?")) + "?")
            if query is not None:
                self._response_buffer = query(args)
                return
        else:
            setter = self._set_handlers.get(_normalize_header(header))
            if setter is not None:
                setter(args)
                return
        self._error_queue.append((-113, "Undefined header"))

    def _default_state(self) -> _AnalyzerState:
        half = self._config.max_frequency / 2.0
        return _AnalyzerState(
            center_frequency=half,
            span=self._config.max_frequency,
            bandwidth=self.MAX_BANDWIDTH,
            marker_x=half,
        )

    def _pop_error(self) -> str:
        if self._error_queue:
            code, msg = self._error_queue.pop(0)
            return f'{code},"{msg}"'
        return '+0,"No error"'

    def _parse_value(self, args: str) -> float | None:
        try:
            return float(args.strip())
        except ValueError:
            self._error_queue.append((-104, "Data type error"))
            return None

    def _clamp(self, value: float, low: float, high: float) -> float:
        if value < low or value > high:
            self._error_queue.append((-222, "Data out of range"))
        return min(max(value, low), high)

    # -- Set handlers -------------------------------------------------------

    def _set_center_frequency(self, args: str) -> None:
        value = self._parse_value(args)
        if value is not None:
            self._state.center_frequency = self._clamp(value, 0.0, self._config.max_frequency)

    def _set_span(self, args: str) -> None:
        value = self._parse_value(args)
        if value is not None:
            self._state.span = self._clamp(value, 0.0, self._config.max_frequency)

    def _set_bandwidth(self, args: str) -> None:
        value = self._parse_value(args)
        if value is not None:
            self._state.bandwidth = self._clamp(value, self.MIN_BANDWIDTH, self.MAX_BANDWIDTH)

    def _set_marker_x(self, args: str) -> None:
        value = self._parse_value(args)
        if value is None:
            return
        # Markers stay within the displayed span.
        half = self._state.span / 2.0
        low = self._state.center_frequency - half
        high = self._state.center_frequency + half
        self._state.marker_x = min(max(value, low), high)

    # -- Query handlers -----------------------------------------------------

    def _get_trace(self, args: str) -> str:
        name = args.strip().upper() or "TRACE1"
        if name not in ("RAWTRACE", "TRACE1"):
            self._error_queue.append((-224, "Illegal parameter value"))
            return ""
        return ",".join(f"{p:+.3E}" for p in self.trace())


def _format(value: float) -> str:
    """Format a value the way the analyzer reports real numbers."""
    return f"{value:+.11E}"


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class EmulatorHandle:
    """Connection handle issued by :class:`EsaEmulatorBackend`."""

    address: BusAddress
    is_open: bool = False
    read_buffer_size: int | None = None


@dataclass
class EsaEmulatorBackend:
    """GPIB backend whose instruments are :class:`EsaEmulator` objects.

    Attach emulators at (board, primary address) positions with
    :meth:`attach`. Opening an address with nothing attached fails the way
    an absent instrument does.

    Attributes:
        devices: Emulators keyed by (board, primary address).
        handles: Registry of handles handed out, keyed the same way.
        traffic: Every line written, as ``(address, line)`` pairs.
        created: Number of handles created.
    """

    devices: dict[tuple[int, int], EsaEmulator] = field(default_factory=dict)
    handles: dict[tuple[int, int], EmulatorHandle] = field(default_factory=dict)
    traffic: list[tuple[BusAddress, str]] = field(default_factory=list)
    created: int = 0

    def attach(
        self, board: int, primary_address: int, emulator: EsaEmulator | None = None
    ) -> EsaEmulator:
        """Place an emulator on the bus and return it."""
        device = emulator or EsaEmulator()
        self.devices[(board, primary_address)] = device
        return device

    # -- GpibBackend --------------------------------------------------------

    def discover(self, address: BusAddress) -> EmulatorHandle | None:
        return self.handles.get((address.board, address.primary_address))

    def create(self, address: BusAddress) -> EmulatorHandle:
        handle = EmulatorHandle(address=address)
        self.handles[(address.board, address.primary_address)] = handle
        self.created += 1
        return handle

    def set_read_buffer_size(self, handle: EmulatorHandle, size: int) -> None:
        handle.read_buffer_size = size

    def open(self, handle: EmulatorHandle) -> None:
        key = (handle.address.board, handle.address.primary_address)
        if key not in self.devices:
            raise InstrumentConnectionError(
                f"No instrument at {handle.address.resource_string}"
            )
        handle.is_open = True

    def close(self, handle: EmulatorHandle) -> None:
        handle.is_open = False

    def release(self, handle: EmulatorHandle) -> None:
        key = (handle.address.board, handle.address.primary_address)
        if self.handles.get(key) is handle:
            del self.handles[key]

    def status(self, handle: EmulatorHandle) -> HandleStatus:
        return "open" if handle.is_open else "closed"

    def write_line(self, handle: EmulatorHandle, text: str) -> None:
        self._device(handle).write(text)
        self.traffic.append((handle.address, text))

    def read_line(self, handle: EmulatorHandle) -> str:
        return self._device(handle).read() + "\n"

    def _device(self, handle: EmulatorHandle) -> EsaEmulator:
        if not handle.is_open:
            raise NotConnectedError(f"{handle.address.resource_string} is not open")
        return self.devices[(handle.address.board, handle.address.primary_address)]


def make_emulated_analyzer_backend(
    board: int = 0, primary_address: int = 18, config: EsaEmulatorConfig | None = None
) -> EsaEmulatorBackend:
    """Create a backend with one emulated ESA attached at the given address."""
    backend = EsaEmulatorBackend()
    backend.attach(board, primary_address, EsaEmulator(config))
    return backend
