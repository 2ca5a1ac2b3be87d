"""Exception types for esalab-core.

This module defines the exception hierarchy used throughout esalab. All
esalab exceptions inherit from EsalabError, allowing consumers to catch all
driver-specific errors with a single except clause.

Exception hierarchy:
    EsalabError (base)
    +-- InvalidArgumentError: Bad configuration arity or values
    +-- NotConnectedError: Bus traffic attempted on a closed session
    +-- InstrumentConnectionError: Transport open/create failures
    +-- ParseError: Response did not contain the expected number(s)
"""


class EsalabError(Exception):
    """Base exception for all esalab errors.

    This is the root of the esalab exception hierarchy. Catch this to handle
    any driver-specific error.
    """


class InvalidArgumentError(EsalabError, ValueError):
    """Raised for invalid configuration arguments.

    This covers a wrong number of bus address arguments, out-of-range board
    indices or primary addresses, unknown driver identifiers, and writes to
    read-only instrument parameters.
    """


class NotConnectedError(EsalabError):
    """Raised when a command or query is attempted on a closed session.

    No bus traffic is generated when this is raised.
    """


class InstrumentConnectionError(EsalabError):
    """Raised when the transport cannot be created or opened.

    Common causes include an absent device, a busy address, a missing VISA
    library, or insufficient permissions on the bus interface.
    """


class ParseError(EsalabError, ValueError):
    """Raised when an instrument response cannot be parsed.

    The response did not contain the numeric token (or the comma-separated
    numeric tokens) that the query expects.
    """
