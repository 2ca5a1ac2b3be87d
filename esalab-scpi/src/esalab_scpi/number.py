"""SCPI number parsing and command formatting utilities.

Handles NR1 (integer), NR2 (fixed-point), and NR3 (scientific notation)
numeric responses, the special values defined by SCPI (NAN, INF, NINF), and
the comma-separated ASCII blocks returned by trace queries.
"""

from __future__ import annotations

import re

from esalab_core.errors import InvalidArgumentError, ParseError

_SPECIAL_FLOAT_MAP: dict[str, float] = {
    "NAN": float("nan"),
    "INF": float("inf"),
    "NINF": float("-inf"),
    "-INF": float("-inf"),
}

# First NR1/NR2/NR3 token anywhere in a response (e.g. "-12.3 dBm").
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_LINE_TERMINATORS = ("\r\n", "\n")


def parse_number(text: str) -> float:
    """Parse a SCPI numeric response into a float.

    Accepts NR1 (``"42"``), NR2 (``"1.23"``), NR3 (``"1.23E+4"``), and the
    special tokens ``NAN``, ``INF``, ``NINF``, and ``-INF``. Responses that
    carry extra text, such as units, yield their first numeric token.

    Args:
        text: The raw response string (leading/trailing whitespace is stripped).

    Returns:
        The parsed float value.

    Raises:
        ParseError: If *text* contains no numeric token.
    """
    token = text.strip().upper()
    special = _SPECIAL_FLOAT_MAP.get(token)
    if special is not None:
        return special
    try:
        return float(token)
    except ValueError:
        pass
    match = _NUMBER_RE.search(token)
    if match is None:
        raise ParseError(f"Invalid SCPI number: {text!r}")
    return float(match.group(0))


def parse_numbers(text: str) -> tuple[float, ...]:
    """Parse a comma-separated list of SCPI numbers.

    A single trailing comma is tolerated. Every other element must be a
    complete number; a partially parsed list is never returned.

    Args:
        text: Comma-separated numeric values (e.g. ``"1.0,2.0,3.0"``).

    Returns:
        A tuple of parsed float values.

    Raises:
        ParseError: If *text* is empty or any element cannot be parsed.
    """
    parts = [part.strip() for part in text.strip().split(",")]
    if len(parts) > 1 and parts[-1] == "":
        parts.pop()
    if parts == [""]:
        raise ParseError("Empty SCPI number list")
    values: list[float] = []
    for index, part in enumerate(parts):
        special = _SPECIAL_FLOAT_MAP.get(part.upper())
        if special is not None:
            values.append(special)
            continue
        try:
            values.append(float(part))
        except ValueError:
            raise ParseError(
                f"Invalid SCPI number at position {index} of list: {part!r}"
            ) from None
    return tuple(values)


def format_command(template: str, *args: object) -> str:
    """Format a SCPI command from a printf-style template.

    A single trailing line terminator is removed from the result; the
    transport appends its own.

    The template goes through ``%`` substitution only when *args* are
    given. A template without arguments is sent as written, so a literal
    ``%`` needs no escaping and ``%%`` is not collapsed.

    Args:
        template: Command template (e.g. ``":freq:cent %.9e"``).
        *args: Values substituted into the template.

    Returns:
        The formatted command without a trailing terminator.

    Raises:
        InvalidArgumentError: If *args* do not match the template.
    """
    if args:
        try:
            message = template % args
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(
                f"Cannot format SCPI template {template!r} with {args!r}: {exc}"
            ) from exc
    else:
        message = template
    for terminator in _LINE_TERMINATORS:
        if message.endswith(terminator):
            return message[: -len(terminator)]
    return message
