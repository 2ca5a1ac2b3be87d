"""HP/Agilent/Keysight ESA spectrum analyzer driver.

Wraps a :class:`GpibSession` and a :class:`ScpiConnection` with typed methods
for the frequency, span, resolution bandwidth, marker, and trace controls of
the ESA series.

Every setter sends one command. Every getter sends one query, reads one
response line, and parses one number. Both go through the parameter table in
:mod:`esalab_esa.parameters`.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from esalab_core import InstrumentIdentity, InvalidArgumentError
from esalab_scpi import GpibSession, ScpiConnection, ScpiInstrumentError, parse_numbers

from esalab_esa.parameters import (
    BANDWIDTH,
    CENTER_FREQUENCY,
    MARKER_X,
    MARKER_Y,
    PARAMETERS,
    SPAN,
    TRACE_QUERY,
    Parameter,
)
from esalab_esa.trace import Trace, build_trace

if TYPE_CHECKING:
    from esalab_core import BusAddress
    from esalab_scpi import GpibBackend

logger = logging.getLogger(__name__)


class EsaSpectrumAnalyzer:
    """High-level driver for ESA series spectrum analyzers.

    Args:
        *address: ``(board, primary_address)`` or
            ``(driver, board, primary_address)``.
        backend: GPIB backend. Defaults to the shared
            :func:`esalab_scpi.default_backend`.

    Raises:
        InvalidArgumentError: If no address, or an invalid one, is supplied.

    Example:
        >>> with EsaSpectrumAnalyzer(0, 18) as sa:
        ...     sa.open()
        ...     sa.set_center_frequency(1.0e9)
        ...     sa.set_span(1.0e6)
        ...     frequencies, powers = sa.get_trace()
    """

    def __init__(self, *address: Any, backend: GpibBackend | None = None) -> None:
        if not address:
            raise InvalidArgumentError("You must supply at least a board index and primary address")
        self._session = GpibSession(*address, backend=backend)
        self._conn = ScpiConnection(self._session)

    # -- Session / lifecycle ------------------------------------------------

    @property
    def session(self) -> GpibSession:
        """The underlying GPIB session."""
        return self._session

    @property
    def address(self) -> BusAddress:
        """The configured bus address."""
        return self._session.address

    def configure(self, *address: Any) -> None:
        """Change the bus address; see :meth:`GpibSession.configure`."""
        self._session.configure(*address)

    def open(self, *address: Any) -> None:
        """Open the GPIB connection; see :meth:`GpibSession.open`."""
        self._session.open(*address)

    def close(self) -> None:
        """Close the GPIB connection. Safe to call repeatedly."""
        self._session.close()

    def is_open(self) -> bool:
        """Return True if the GPIB connection is open."""
        return self._session.is_open()

    def __enter__(self) -> EsaSpectrumAnalyzer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Raw SCPI -----------------------------------------------------------

    def send_command(self, template: str, *args: object) -> None:
        """Send a formatted SCPI command; no response is read."""
        self._conn.command(template, *args)

    def query(self, template: str, *args: object) -> str:
        """Send a formatted SCPI query and return the raw response line."""
        return self._conn.query(template, *args)

    # -- Identity / status --------------------------------------------------

    def identify(self) -> str:
        """Query instrument identification string (``*IDN?``)."""
        return self._conn.identify()

    def get_identity(self) -> InstrumentIdentity:
        """Query and parse instrument identification (``*IDN?``)."""
        return self._conn.get_identity()

    def reset(self) -> None:
        """Preset the instrument (``*RST``)."""
        self._conn.reset()

    def clear_status(self) -> None:
        """Clear the status registers and error queue (``*CLS``)."""
        self._conn.clear_status()

    def wait_complete(self) -> None:
        """Block until the current sweep and pending settings complete."""
        self._conn.wait_complete()

    def get_errors(self) -> tuple[ScpiInstrumentError, ...]:
        """Drain and return the instrument error queue."""
        return self._conn.get_errors()

    def check_errors(self) -> None:
        """Raise :class:`ScpiCommandError` if the error queue is non-empty."""
        self._conn.check_errors()

    # -- Parameter dispatch -------------------------------------------------

    def set_parameter(self, parameter: Parameter | str, value: float) -> None:
        """Write one parameter from the table.

        Args:
            parameter: A :class:`Parameter` or its name.
            value: Value in the parameter's unit.

        Raises:
            InvalidArgumentError: If the parameter is unknown or read-only.
            NotConnectedError: If the session is closed.
        """
        param = self._lookup(parameter)
        if not param.writable:
            raise InvalidArgumentError(f"Parameter {param.name!r} is read-only")
        self._conn.command(param.command_template, value)

    def get_parameter(self, parameter: Parameter | str) -> float:
        """Query and decode one parameter from the table.

        Raises:
            InvalidArgumentError: If the parameter is unknown.
            NotConnectedError: If the session is closed.
            ParseError: If the response holds no number.
        """
        param = self._lookup(parameter)
        return param.decode(self._conn.query(param.query_template))

    @staticmethod
    def _lookup(parameter: Parameter | str) -> Parameter:
        if isinstance(parameter, Parameter):
            return parameter
        try:
            return PARAMETERS[parameter]
        except KeyError:
            raise InvalidArgumentError(
                f"Unknown parameter {parameter!r}; expected one of {sorted(PARAMETERS)}"
            ) from None

    # -- Frequency ----------------------------------------------------------

    def set_center_frequency(self, freq: float) -> None:
        """Set the center frequency.

        Args:
            freq: Center frequency in Hz.
        """
        self.set_parameter(CENTER_FREQUENCY, freq)

    def get_center_frequency(self) -> float:
        """Query the center frequency in Hz."""
        return self.get_parameter(CENTER_FREQUENCY)

    def set_span(self, span: float) -> None:
        """Set the frequency span.

        Args:
            span: Span in Hz.
        """
        self.set_parameter(SPAN, span)

    def get_span(self) -> float:
        """Query the frequency span in Hz."""
        return self.get_parameter(SPAN)

    # -- Bandwidth ----------------------------------------------------------

    def set_bandwidth(self, bandwidth: float) -> None:
        """Set the resolution bandwidth.

        Args:
            bandwidth: Resolution bandwidth in Hz, sent rounded to whole hertz.
        """
        self.set_parameter(BANDWIDTH, bandwidth)

    def get_bandwidth(self) -> float:
        """Query the resolution bandwidth in Hz."""
        return self.get_parameter(BANDWIDTH)

    # -- Marker -------------------------------------------------------------

    def set_marker_x(self, x: float) -> None:
        """Move marker 1 to frequency *x* in Hz."""
        self.set_parameter(MARKER_X, x)

    def get_marker_x(self) -> float:
        """Query the frequency of marker 1 in Hz."""
        return self.get_parameter(MARKER_X)

    def get_marker_y(self) -> float:
        """Query the amplitude of marker 1."""
        return self.get_parameter(MARKER_Y)

    # -- Trace --------------------------------------------------------------

    def get_trace(self) -> Trace:
        """Fetch the current trace.

        Reads the center frequency and span, then the trace data, as three
        separate query transactions. If another controller retunes the
        instrument between them the axis may not match the sweep; nothing
        here can detect that.

        Returns:
            ``Trace(frequencies, powers)`` of equal length.

        Raises:
            NotConnectedError: If the session is closed.
            ParseError: If the trace data holds no valid numbers.
        """
        center_frequency = self.get_center_frequency()
        span = self.get_span()
        powers = parse_numbers(self._conn.query(TRACE_QUERY))
        logger.debug(
            "Trace of %d points at %.9e Hz, span %.9e Hz", len(powers), center_frequency, span
        )
        return build_trace(center_frequency, span, powers)

    def __repr__(self) -> str:
        return f"EsaSpectrumAnalyzer({self._session.address!s}, state={self._session.state.value})"
