"""SCPI-over-GPIB protocol library for esalab.

This package provides the bus session and SCPI dispatch layers used by the
esalab instrument drivers. It includes:

- A backend protocol for GPIB transports
- A PyVISA-backed GPIB backend for real instruments
- A session manager that discovers, reuses, opens, and closes connections
- A command/query connection with printf-style templates
- Number parsing and command formatting utilities for SCPI responses
- Exception types for errors reported by the instrument

Typical usage::

    from esalab_scpi import GpibSession, ScpiConnection

    with GpibSession(0, 18) as session:
        session.open()
        conn = ScpiConnection(session)
        print(conn.identify())
"""

from esalab_scpi.backend import GpibBackend, HandleStatus
from esalab_scpi.connection import ScpiConnection, parse_idn_response
from esalab_scpi.errors import ScpiCommandError, ScpiError, ScpiInstrumentError
from esalab_scpi.number import format_command, parse_number, parse_numbers
from esalab_scpi.session import DEFAULT_DRIVER, READ_BUFFER_SIZE, GpibSession, make_address
from esalab_scpi.visa import VISA_LIBRARIES, VisaGpibBackend, VisaHandle, default_backend

__all__ = [
    # Backend
    "GpibBackend",
    "HandleStatus",
    # Connection
    "ScpiConnection",
    "parse_idn_response",
    # Errors
    "ScpiCommandError",
    "ScpiError",
    "ScpiInstrumentError",
    # Number parsing/formatting
    "format_command",
    "parse_number",
    "parse_numbers",
    # Session
    "DEFAULT_DRIVER",
    "READ_BUFFER_SIZE",
    "GpibSession",
    "make_address",
    # VISA
    "VISA_LIBRARIES",
    "VisaGpibBackend",
    "VisaHandle",
    "default_backend",
]
