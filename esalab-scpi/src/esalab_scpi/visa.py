"""PyVISA backend for GPIB instruments.

This module provides a VISA-based implementation of :class:`GpibBackend`.
It wraps the PyVISA library, which is lazily imported to allow the rest of
esalab-scpi to work without VISA installed.

Driver identifiers select the VISA library handed to
``pyvisa.ResourceManager``:

- ``ni``, ``keysight``, ``agilent``: the installed IVI VISA (``@ivi``)
- ``py``: the pure-Python pyvisa-py backend (``@py``)
- ``sim``: the pyvisa-sim simulation backend (``@sim``)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from esalab_core.errors import InstrumentConnectionError, InvalidArgumentError, NotConnectedError
from esalab_core.types import BusAddress

from esalab_scpi.backend import HandleStatus

logger = logging.getLogger(__name__)

VISA_LIBRARIES: dict[str, str] = {
    "ni": "@ivi",
    "keysight": "@ivi",
    "agilent": "@ivi",
    "py": "@py",
    "sim": "@sim",
}


@dataclass(eq=False)
class VisaHandle:
    """Connection handle issued by :class:`VisaGpibBackend`.

    Attributes:
        address: Bus address this handle is bound to.
        resource: The open PyVISA resource, or None while closed.
        read_buffer_size: Read chunk size in bytes applied on open.
    """

    address: BusAddress
    resource: Any = None
    read_buffer_size: int | None = None

    @property
    def is_open(self) -> bool:
        """Return True if the underlying resource is open."""
        return self.resource is not None


class VisaGpibBackend:
    """GPIB backend built on PyVISA.

    One ``ResourceManager`` is created per driver on first use and closed
    again when the last handle for that driver is released. The backend
    keeps a registry of handles keyed by (board, primary address);
    :meth:`discover` consults it and then asks each VISA library for
    resources that are already open at that address.

    Args:
        timeout_ms: I/O timeout in milliseconds (applied on open).
        read_termination: Character(s) that terminate read operations.
        write_termination: Character(s) appended to write operations.

    Example:
        >>> backend = VisaGpibBackend(timeout_ms=20000)
        >>> session = GpibSession(0, 18, backend=backend)
        >>> session.open()
    """

    def __init__(
        self,
        *,
        timeout_ms: int = 10000,
        read_termination: str = "\n",
        write_termination: str = "\n",
    ) -> None:
        """Initialize the VISA backend.

        Args:
            timeout_ms: I/O timeout in milliseconds. Defaults to 10000.
            read_termination: Character(s) that terminate read operations.
                Defaults to newline.
            write_termination: Character(s) appended to write operations.
                Defaults to newline.
        """
        self._timeout_ms = timeout_ms
        self._read_termination = read_termination
        self._write_termination = write_termination
        self._managers: dict[str, Any] = {}
        self._handles: dict[tuple[int, int], VisaHandle] = {}
        self._timeouts: dict[tuple[int, int], int] = {}

    # -- Discovery -----------------------------------------------------------

    def discover(self, address: BusAddress) -> VisaHandle | None:
        """Find an existing handle for *address*.

        Args:
            address: Bus address to look up.

        Returns:
            A registered handle, a handle wrapping a VISA resource that is
            already open at that address, or None.
        """
        key = (address.board, address.primary_address)
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        rm = self._resource_manager(address.driver)
        wanted = address.resource_string.upper()
        for resource in rm.list_opened_resources():
            if str(getattr(resource, "resource_name", "")).upper() == wanted:
                logger.info("Adopting open VISA resource %s", address.resource_string)
                handle = VisaHandle(address=address, resource=resource)
                self._handles[key] = handle
                return handle
        return None

    def create(self, address: BusAddress) -> VisaHandle:
        """Create and register a closed handle for *address*."""
        self._resource_manager(address.driver)
        handle = VisaHandle(address=address)
        self._handles[(address.board, address.primary_address)] = handle
        return handle

    # -- Lifecycle -----------------------------------------------------------

    def set_read_buffer_size(self, handle: VisaHandle, size: int) -> None:
        """Set the read chunk size, applying it now if the handle is open."""
        handle.read_buffer_size = size
        if handle.resource is not None:
            handle.resource.chunk_size = size

    def set_timeout(self, address: BusAddress, timeout_ms: int) -> None:
        """Override the I/O timeout for one address.

        Applied on the next open, and immediately if a handle for the address
        is already open.
        """
        key = (address.board, address.primary_address)
        self._timeouts[key] = timeout_ms
        handle = self._handles.get(key)
        if handle is not None and handle.resource is not None:
            handle.resource.timeout = timeout_ms

    def open(self, handle: VisaHandle) -> None:
        """Open the VISA resource behind *handle*.

        Raises:
            InstrumentConnectionError: If ``pyvisa`` is not installed or the
                resource cannot be opened.
        """
        if handle.resource is not None:
            return

        rm = self._resource_manager(handle.address.driver)
        resource_string = handle.address.resource_string
        try:
            resource = rm.open_resource(
                resource_string,
                read_termination=self._read_termination,
                write_termination=self._write_termination,
            )
        except Exception as exc:
            raise InstrumentConnectionError(
                f"Failed to open VISA resource {resource_string!r}: {exc}"
            ) from exc

        try:
            resource.timeout = self._timeouts.get(
                (handle.address.board, handle.address.primary_address), self._timeout_ms
            )
            if handle.read_buffer_size is not None:
                resource.chunk_size = handle.read_buffer_size
        except Exception as exc:
            try:
                resource.close()
            except Exception as close_exc:  # pylint: disable=broad-except
                logger.warning("Error closing %s: %s", resource_string, close_exc)
            raise InstrumentConnectionError(
                f"Failed to configure VISA resource {resource_string!r}: {exc}"
            ) from exc
        handle.resource = resource

    def close(self, handle: VisaHandle) -> None:
        """Close the VISA resource behind *handle*.

        Safe to call multiple times.
        """
        resource = handle.resource
        if resource is None:
            return
        handle.resource = None
        try:
            resource.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing %s: %s", handle.address.resource_string, exc)

    def release(self, handle: VisaHandle) -> None:
        """Remove *handle* from the registry.

        Closes the driver's resource manager once no handles use it.
        """
        key = (handle.address.board, handle.address.primary_address)
        if self._handles.get(key) is handle:
            del self._handles[key]
        driver = handle.address.driver
        if any(h.address.driver == driver for h in self._handles.values()):
            return
        rm = self._managers.pop(driver, None)
        if rm is not None:
            try:
                rm.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing VISA resource manager for %r: %s", driver, exc)

    def status(self, handle: VisaHandle) -> HandleStatus:
        """Return ``"open"`` if the handle's resource is open."""
        return "open" if handle.resource is not None else "closed"

    # -- Line I/O ------------------------------------------------------------

    def write_line(self, handle: VisaHandle, text: str) -> None:
        """Write *text*; PyVISA appends the write termination.

        Raises:
            NotConnectedError: If the handle is not open.
        """
        if handle.resource is None:
            raise NotConnectedError(f"VISA resource {handle.address.resource_string} is not open")
        handle.resource.write(text)

    def read_line(self, handle: VisaHandle) -> str:
        """Read one response line.

        Raises:
            NotConnectedError: If the handle is not open.
        """
        if handle.resource is None:
            raise NotConnectedError(f"VISA resource {handle.address.resource_string} is not open")
        result: str = handle.resource.read()
        return result

    # -- Private helpers -----------------------------------------------------

    def _resource_manager(self, driver: str) -> Any:
        """Return (creating on first use) the resource manager for *driver*."""
        rm = self._managers.get(driver)
        if rm is not None:
            return rm

        library = VISA_LIBRARIES.get(driver.lower())
        if library is None:
            raise InvalidArgumentError(
                f"Unknown GPIB driver {driver!r}; expected one of {sorted(VISA_LIBRARIES)}"
            )

        try:
            import pyvisa  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise InstrumentConnectionError(
                "pyvisa library is not installed. Install with: pip install pyvisa"
            ) from exc

        try:
            rm = pyvisa.ResourceManager(library)
        except Exception as exc:
            raise InstrumentConnectionError(
                f"Failed to load VISA library {library!r} for driver {driver!r}: {exc}"
            ) from exc
        self._managers[driver] = rm
        return rm


_default_backend: VisaGpibBackend | None = None


def default_backend() -> VisaGpibBackend:
    """Return the process-wide VISA backend, creating it on first use.

    Sessions built without an explicit backend share this instance, so they
    share one handle registry and reuse a connection another session already
    holds at the same address.
    """
    global _default_backend  # pylint: disable=global-statement
    if _default_backend is None:
        _default_backend = VisaGpibBackend()
    return _default_backend
