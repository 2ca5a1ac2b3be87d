"""Core library for the esalab spectrum analyzer driver.

This package provides the error hierarchy and the small value types shared by
the other esalab packages. It is stdlib-only so it can serve as the base layer
for everything else.

Key components:
    - Types: BusAddress (GPIB driver/board/address triple), SessionState,
      InstrumentIdentity.
    - Errors: Hierarchy of exception types for the driver's failure modes.

Example:
    >>> from esalab_core import BusAddress
    >>> BusAddress("ni", 0, 18).resource_string
    'GPIB0::18::INSTR'
"""

from esalab_core.errors import (
    EsalabError,
    InstrumentConnectionError,
    InvalidArgumentError,
    NotConnectedError,
    ParseError,
)
from esalab_core.types import (
    GPIB_MAX_ADDRESS,
    GPIB_MIN_ADDRESS,
    BusAddress,
    InstrumentIdentity,
    SessionState,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "GPIB_MAX_ADDRESS",
    "GPIB_MIN_ADDRESS",
    "BusAddress",
    "InstrumentIdentity",
    "SessionState",
    # Errors
    "EsalabError",
    "InstrumentConnectionError",
    "InvalidArgumentError",
    "NotConnectedError",
    "ParseError",
]
