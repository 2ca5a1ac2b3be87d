"""Common types used across esalab modules.

Classes:
    BusAddress: GPIB (driver, board, primary address) triple.
    SessionState: Open/closed state of a bus session.
    InstrumentIdentity: Instrument identification metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from esalab_core.errors import InvalidArgumentError

GPIB_MIN_ADDRESS = 0
"""Lowest valid GPIB primary address."""

GPIB_MAX_ADDRESS = 30
"""Highest valid GPIB primary address."""


@dataclass(frozen=True)
class BusAddress:
    """Identity of one instrument on a GPIB bus.

    Attributes:
        driver: Identifier of the vendor transport (e.g., "ni", "keysight").
        board: GPIB interface board index (>= 0).
        primary_address: GPIB primary address of the instrument (0-30).

    Raises:
        InvalidArgumentError: If any field is out of range.

    Example:
        >>> address = BusAddress("ni", 0, 18)
        >>> address.resource_string
        'GPIB0::18::INSTR'
    """

    driver: str
    board: int
    primary_address: int

    def __post_init__(self) -> None:
        if not isinstance(self.driver, str) or not self.driver:
            raise InvalidArgumentError(f"driver must be a non-empty string, got {self.driver!r}")
        if isinstance(self.board, bool) or not isinstance(self.board, int):
            raise InvalidArgumentError(f"board must be an integer, got {self.board!r}")
        if self.board < 0:
            raise InvalidArgumentError(f"board must be >= 0, got {self.board}")
        if isinstance(self.primary_address, bool) or not isinstance(self.primary_address, int):
            raise InvalidArgumentError(
                f"primary_address must be an integer, got {self.primary_address!r}"
            )
        if not GPIB_MIN_ADDRESS <= self.primary_address <= GPIB_MAX_ADDRESS:
            raise InvalidArgumentError(
                f"primary_address must be in [{GPIB_MIN_ADDRESS}, {GPIB_MAX_ADDRESS}], "
                f"got {self.primary_address}"
            )

    @property
    def resource_string(self) -> str:
        """VISA resource string for this address (``GPIB<board>::<addr>::INSTR``)."""
        return f"GPIB{self.board}::{self.primary_address}::INSTR"

    def __str__(self) -> str:
        return f"{self.driver}:{self.resource_string}"


class SessionState(Enum):
    """Connection state of a bus session."""

    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class InstrumentIdentity:
    """Instrument identification metadata.

    Represents the four standard fields returned by the SCPI ``*IDN?`` query.

    Attributes:
        manufacturer: Instrument manufacturer name (e.g., "Agilent Technologies").
        model: Instrument model number or name (e.g., "E4407B").
        serial: Serial number string.
        firmware: Firmware or hardware version string.
    """

    manufacturer: str
    model: str
    serial: str
    firmware: str
