"""SCPI command/query dispatch over a GPIB session.

This module provides the :class:`ScpiConnection` class, which formats SCPI
commands from printf-style templates, performs write-only commands and
write-then-read queries on a :class:`GpibSession`, and offers typed query
variants plus IEEE 488.2 common commands.

Typical usage::

    from esalab_scpi import GpibSession, ScpiConnection

    session = GpibSession(0, 18)
    session.open()
    conn = ScpiConnection(session)

    conn.command(":freq:cent %.9e", 1.0e9)
    center = conn.query_number(":freq:cent?")

    session.close()
"""

from __future__ import annotations

import logging
import re
import threading
from typing import TYPE_CHECKING

from esalab_core.errors import ParseError
from esalab_core.types import InstrumentIdentity

from esalab_scpi.errors import ScpiCommandError, ScpiInstrumentError
from esalab_scpi.number import format_command, parse_number, parse_numbers

if TYPE_CHECKING:
    from esalab_scpi.session import GpibSession

logger = logging.getLogger(__name__)

# Upper bound on SYST:ERR? reads; the ESA error queue holds at most 30 entries.
_MAX_ERROR_DRAIN = 32


def parse_idn_response(response: str) -> InstrumentIdentity:
    """Parse a SCPI ``*IDN?`` response into an :class:`InstrumentIdentity`.

    The standard ``*IDN?`` response format is four comma-separated fields::

        manufacturer,model,serial_number,firmware_version

    Extra fields are joined into the firmware string.

    Args:
        response: The raw ``*IDN?`` response string.

    Returns:
        Parsed identity with manufacturer, model, serial, and firmware.

    Raises:
        ParseError: If the response has fewer than four fields.
    """
    parts = [p.strip() for p in response.strip().split(",")]
    if len(parts) < 4:
        raise ParseError(
            f"Expected at least 4 comma-separated fields in *IDN? response, "
            f"got {len(parts)}: {response!r}"
        )
    return InstrumentIdentity(
        manufacturer=parts[0],
        model=parts[1],
        serial=parts[2],
        firmware=",".join(parts[3:]),
    )


# Matches SCPI error responses: optional +/- code, comma, optional quoted message.
_ERROR_RE = re.compile(r"^\s*([+-]?\d+)\s*,\s*\"?([^\"]*)\"?\s*$")


class ScpiConnection:
    """Command/query dispatch on a GPIB session.

    Commands are fire-and-forget: one formatted line is written and nothing
    is read back. Queries write one line and read exactly one response line;
    the pair runs under a lock so no other transaction issued through this
    connection can interleave between the write and the read.

    Nothing is checked automatically after a transaction. Call
    :meth:`check_errors` to drain the instrument error queue on demand.

    Args:
        session: The :class:`GpibSession` to talk through. It may be opened
            and closed independently of the connection.
    """

    def __init__(self, session: GpibSession) -> None:
        self._session = session
        self._lock = threading.Lock()

    @property
    def session(self) -> GpibSession:
        """The underlying session."""
        return self._session

    # -- Core operations -----------------------------------------------------

    def command(self, template: str, *args: object) -> None:
        """Send a SCPI command (no response expected).

        Args:
            template: Command template (e.g. ``":freq:span %.9e"``).
            *args: Values substituted into *template*.

        Raises:
            InvalidArgumentError: If *args* do not fit *template*.
            NotConnectedError: If the session is closed.
        """
        message = format_command(template, *args)
        with self._lock:
            self._session.write_line(message)
        logger.debug("%s <- %s", self._session.address, message)

    def query(self, template: str, *args: object) -> str:
        """Send a SCPI query and return the raw response line.

        Args:
            template: Query template (e.g. ``":freq:cent?"``).
            *args: Values substituted into *template*.

        Returns:
            The response exactly as read from the transport.

        Raises:
            InvalidArgumentError: If *args* do not fit *template*.
            NotConnectedError: If the session is closed.
        """
        message = format_command(template, *args)
        with self._lock:
            self._session.write_line(message)
            response = self._session.read_line()
        logger.debug("%s <- %s -> %r", self._session.address, message, response)
        return response

    # -- Typed query variants ------------------------------------------------

    def query_number(self, template: str, *args: object) -> float:
        """Query and parse the first number in the response.

        Raises:
            ParseError: If the response contains no numeric token.
        """
        return parse_number(self.query(template, *args))

    def query_numbers(self, template: str, *args: object) -> tuple[float, ...]:
        """Query and parse the response as a comma-separated list of numbers.

        Raises:
            ParseError: If the response is empty or any element is invalid.
        """
        return parse_numbers(self.query(template, *args))

    # -- IEEE 488.2 convenience methods --------------------------------------

    def identify(self) -> str:
        """Query the instrument identification string (``*IDN?``)."""
        return self.query("*IDN?").strip()

    def get_identity(self) -> InstrumentIdentity:
        """Query and parse the instrument identification (``*IDN?``)."""
        return parse_idn_response(self.identify())

    def reset(self) -> None:
        """Send a reset command (``*RST``)."""
        self.command("*RST")

    def clear_status(self) -> None:
        """Clear the status registers and error queue (``*CLS``)."""
        self.command("*CLS")

    def wait_complete(self) -> None:
        """Block until pending operations complete (``*OPC?``)."""
        self.query("*OPC?")

    # -- Error queue ---------------------------------------------------------

    def get_errors(self) -> tuple[ScpiInstrumentError, ...]:
        """Drain the instrument error queue.

        Repeatedly queries ``SYST:ERR?`` until the instrument reports
        ``0,"No error"``.

        Returns:
            Every queued error, oldest first. Empty if there were none.
        """
        errors: list[ScpiInstrumentError] = []
        for _ in range(_MAX_ERROR_DRAIN):
            error = self._parse_error_response(self.query("SYST:ERR?"))
            if error is None:
                break
            errors.append(error)
        return tuple(errors)

    def check_errors(self) -> None:
        """Drain the error queue and raise if it held anything.

        Raises:
            ScpiCommandError: If the instrument reported one or more errors.
        """
        errors = self.get_errors()
        if errors:
            raise ScpiCommandError(errors)

    @staticmethod
    def _parse_error_response(raw: str) -> ScpiInstrumentError | None:
        """Parse a ``SYST:ERR?`` response; None means no error (code 0)."""
        match = _ERROR_RE.match(raw)
        if match is None:
            return None
        code = int(match.group(1))
        if code == 0:
            return None
        return ScpiInstrumentError(code=code, message=match.group(2).strip())
