"""GPIB transport backend protocol definition.

This module defines the :class:`GpibBackend` protocol, the interface that a
bus transport must provide to :class:`esalab_scpi.GpibSession`. Backends own
connection handles: they find or create them, open and close them, and move
lines of text across the bus. Handles are opaque to the session.

Implementations include:
- :class:`esalab_scpi.VisaGpibBackend`: PyVISA-backed transport for real hardware
- :class:`esalab_esa.emulator.EsaEmulatorBackend`: in-process ESA emulator
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from esalab_core.types import BusAddress

HandleStatus = Literal["open", "closed"]


class GpibBackend(Protocol):
    """Protocol for GPIB connection backends.

    This is a structural subtyping protocol. Any class that implements the
    methods below with matching signatures is a valid backend.

    Each backend keeps a registry of the handles it has handed out, so that
    :meth:`discover` can return a handle that is already open for an address
    instead of a duplicate.
    """

    def discover(self, address: BusAddress) -> Any | None:
        """Return an existing handle for *address*, or None if there is none."""
        ...

    def create(self, address: BusAddress) -> Any:
        """Create and register a new (closed) handle for *address*."""
        ...

    def set_read_buffer_size(self, handle: Any, size: int) -> None:
        """Set the read buffer capacity of *handle* in bytes."""
        ...

    def open(self, handle: Any) -> None:
        """Open *handle*.

        Raises:
            InstrumentConnectionError: If the device cannot be opened.
        """
        ...

    def close(self, handle: Any) -> None:
        """Close *handle*. Closing a closed handle is a no-op."""
        ...

    def release(self, handle: Any) -> None:
        """Forget *handle*, removing it from the backend's registry.

        Every session sharing the handle loses it; there is no reference count.
        """
        ...

    def status(self, handle: Any) -> HandleStatus:
        """Return ``"open"`` or ``"closed"``."""
        ...

    def write_line(self, handle: Any, text: str) -> None:
        """Write *text* followed by exactly one newline."""
        ...

    def read_line(self, handle: Any) -> str:
        """Read one line of response text."""
        ...
