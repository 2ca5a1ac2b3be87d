"""Declarative table of ESA measurement parameters.

Each :class:`Parameter` names the SCPI path of one instrument setting, the
printf-style format used to write it, and the rule used to decode its query
response. :class:`esalab_esa.EsaSpectrumAnalyzer` dispatches every setter
and getter through this table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from esalab_core.errors import InvalidArgumentError
from esalab_scpi.number import parse_number


@dataclass(frozen=True)
class Parameter:
    """One scalar instrument parameter.

    Attributes:
        name: Python-facing name (e.g. ``"center_frequency"``).
        path: SCPI header without the trailing ``?`` (e.g. ``":freq:cent"``).
        encode: printf-style value format for writes, or None if read-only.
        unit: Unit of the value, for display.
        decode: Parses a query response into a float.
    """

    name: str
    path: str
    encode: str | None
    unit: str
    decode: Callable[[str], float] = field(default=parse_number, compare=False)

    @property
    def writable(self) -> bool:
        """Return True if the parameter accepts writes."""
        return self.encode is not None

    @property
    def command_template(self) -> str:
        """Template for the write command (e.g. ``":freq:cent %.9e"``)."""
        if self.encode is None:
            raise InvalidArgumentError(f"Parameter {self.name!r} is read-only")
        return f"{self.path} {self.encode}"

    @property
    def query_template(self) -> str:
        """The query string (e.g. ``":freq:cent?"``)."""
        return f"{self.path}?"


CENTER_FREQUENCY = Parameter("center_frequency", ":freq:cent", "%.9e", "Hz")
SPAN = Parameter("span", ":freq:span", "%.9e", "Hz")
# Resolution bandwidth is accepted in whole hertz only.
BANDWIDTH = Parameter("bandwidth", ":band:res", "%.0f", "Hz")
MARKER_X = Parameter("marker_x", ":calc:mark1:x", "%.9e", "Hz")
MARKER_Y = Parameter("marker_y", ":calc:mark1:y", None, "dBm")

PARAMETERS: dict[str, Parameter] = {
    p.name: p for p in (CENTER_FREQUENCY, SPAN, BANDWIDTH, MARKER_X, MARKER_Y)
}

TRACE_QUERY = ":TRACE:DATA? RAWTRACE"
"""Query returning the current trace as comma-separated ASCII values."""
