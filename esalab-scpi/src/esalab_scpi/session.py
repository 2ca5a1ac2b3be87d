"""GPIB session lifecycle management.

A :class:`GpibSession` owns one bus address and at most one connection handle
obtained from a :class:`GpibBackend`. Opening a session first asks the
backend whether a handle for the address already exists and reuses it, so a
driver never creates a second connection to an instrument it already holds.

Typical usage::

    from esalab_scpi import GpibSession

    with GpibSession(0, 18) as session:
        session.open()
        session.write_line("*IDN?")
        print(session.read_line())
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

from esalab_core.errors import InstrumentConnectionError, InvalidArgumentError, NotConnectedError
from esalab_core.types import BusAddress, SessionState

from esalab_scpi.visa import default_backend

if TYPE_CHECKING:
    from esalab_scpi.backend import GpibBackend

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "ni"
"""Vendor driver used when only a board index and primary address are given."""

READ_BUFFER_SIZE = 2**20
"""Read buffer capacity in bytes; large enough for a full trace dump."""


def make_address(*args: Any) -> BusAddress:
    """Build a :class:`BusAddress` from positional arguments.

    Accepts ``(board, primary_address)``, using :data:`DEFAULT_DRIVER`, or
    ``(driver, board, primary_address)``.

    Raises:
        InvalidArgumentError: For any other number of arguments, or if the
            values are out of range.
    """
    if len(args) == 2:
        return BusAddress(DEFAULT_DRIVER, args[0], args[1])
    if len(args) == 3:
        return BusAddress(args[0], args[1], args[2])
    raise InvalidArgumentError(
        "Expected (board, primary_address) or (driver, board, primary_address), "
        f"got {len(args)} argument(s)"
    )


class GpibSession:
    """Session Manager for one GPIB instrument.

    States are :attr:`SessionState.CLOSED` and :attr:`SessionState.OPEN`.
    The session is a context manager; leaving the ``with`` block always
    closes and releases the handle, including on exceptions.

    Args:
        *address: ``(board, primary_address)`` or
            ``(driver, board, primary_address)``.
        backend: Transport backend. Defaults to the shared
            :func:`esalab_scpi.visa.default_backend`.

    Raises:
        InvalidArgumentError: If the address arguments are invalid.
    """

    def __init__(self, *address: Any, backend: GpibBackend | None = None) -> None:
        self._backend: GpibBackend = backend if backend is not None else default_backend()
        self._handle: Any = None
        self._address = make_address(*address)

    # -- Properties ----------------------------------------------------------

    @property
    def address(self) -> BusAddress:
        """The configured bus address."""
        return self._address

    @property
    def backend(self) -> GpibBackend:
        """The transport backend."""
        return self._backend

    @property
    def state(self) -> SessionState:
        """Current connection state."""
        return SessionState.OPEN if self.is_open() else SessionState.CLOSED

    # -- Configuration -------------------------------------------------------

    def configure(self, *address: Any) -> None:
        """Set the bus address.

        An open session bound to a different address is closed first.

        Args:
            *address: ``(board, primary_address)`` or
                ``(driver, board, primary_address)``.

        Raises:
            InvalidArgumentError: If the address arguments are invalid.
        """
        new_address = make_address(*address)
        if new_address == self._address:
            return
        if self._handle is not None:
            logger.info("Re-addressing session %s -> %s", self._address, new_address)
            self.close()
        self._address = new_address

    # -- Lifecycle -----------------------------------------------------------

    def open(self, *address: Any) -> None:
        """Open the connection, reusing an existing handle when possible.

        Args:
            *address: Optional new address, as for :meth:`configure`.

        Raises:
            InvalidArgumentError: If a supplied address is invalid.
            InstrumentConnectionError: If the transport cannot be opened.
                The session is left closed.
        """
        if address:
            self.configure(*address)

        if self._handle is None:
            handle = self._backend.discover(self._address)
            if handle is None:
                logger.info("Creating connection handle for %s", self._address)
                handle = self._backend.create(self._address)
            else:
                logger.info("Reusing existing connection handle for %s", self._address)
            self._handle = handle

        if self.is_open():
            return

        try:
            self._backend.set_read_buffer_size(self._handle, READ_BUFFER_SIZE)
            self._backend.open(self._handle)
        except InstrumentConnectionError:
            self._discard_handle()
            raise
        except Exception as exc:
            self._discard_handle()
            raise InstrumentConnectionError(f"Failed to open {self._address}: {exc}") from exc
        logger.info("Opened %s", self._address)

    def close(self) -> None:
        """Close the connection and release the handle.

        Safe to call multiple times, and on a session that was never opened.
        Handles are not reference counted: if another session reused the same
        handle, that session is closed too and its I/O raises
        :class:`NotConnectedError` until it is reopened.
        """
        if self._handle is None:
            return
        if self.is_open():
            try:
                self._backend.close(self._handle)
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing %s: %s", self._address, exc)
            else:
                logger.info("Closed %s", self._address)
        self._discard_handle()

    def is_open(self) -> bool:
        """Return True iff a handle exists and the backend reports it open."""
        if self._handle is None:
            return False
        return self._backend.status(self._handle) == "open"

    def __enter__(self) -> GpibSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Line I/O ------------------------------------------------------------

    def write_line(self, text: str) -> None:
        """Write one line to the instrument.

        Raises:
            NotConnectedError: If the session is not open. Nothing is sent.
        """
        self._require_open()
        self._backend.write_line(self._handle, text)

    def read_line(self) -> str:
        """Read one line from the instrument.

        Raises:
            NotConnectedError: If the session is not open.
        """
        self._require_open()
        return self._backend.read_line(self._handle)

    # -- Private helpers -----------------------------------------------------

    def _require_open(self) -> None:
        if not self.is_open():
            raise NotConnectedError(f"Session {self._address} is not open")

    def _discard_handle(self) -> None:
        handle, self._handle = self._handle, None
        try:
            self._backend.release(handle)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error releasing handle for %s: %s", self._address, exc)

    def __repr__(self) -> str:
        return f"GpibSession({self._address!s}, state={self.state.value})"
