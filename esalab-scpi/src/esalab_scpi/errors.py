"""SCPI protocol error types.

This module defines exception classes for errors that the instrument itself
reports through its ``SYST:ERR?`` queue. All exceptions inherit from
:class:`esalab_core.errors.EsalabError`.
"""

from __future__ import annotations

from dataclasses import dataclass

from esalab_core.errors import EsalabError


class ScpiError(EsalabError):
    """Base exception for SCPI protocol errors."""


@dataclass(frozen=True)
class ScpiInstrumentError:
    """Single error from an instrument's error queue.

    Attributes:
        code: SCPI error code (negative for standard errors, positive for device-specific).
        message: Human-readable error description from the instrument.
    """

    code: int
    message: str

    def __str__(self) -> str:
        """Return SCPI-format error string.

        Returns:
            Error formatted as ``code,"message"``.
        """
        return f'{self.code},"{self.message}"'


class ScpiCommandError(ScpiError):
    """Raised when the instrument error queue holds errors.

    Raised by :meth:`ScpiConnection.check_errors`, which callers invoke
    explicitly after a sequence of commands they want verified.

    Attributes:
        errors: One or more errors drained from the instrument's error queue.

    Example:
        >>> try:
        ...     conn.check_errors()
        ... except ScpiCommandError as e:
        ...     for err in e.errors:
        ...         print(f"Error {err.code}: {err.message}")
    """

    def __init__(self, errors: tuple[ScpiInstrumentError, ...]) -> None:
        """Initialize the command error with instrument errors.

        Args:
            errors: Tuple of instrument errors from the error queue.
        """
        self.errors = errors
        messages = "; ".join(str(e) for e in errors)
        super().__init__(f"SCPI instrument error(s): {messages}")
