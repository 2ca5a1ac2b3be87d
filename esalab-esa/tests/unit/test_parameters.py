"""Tests for the parameter table."""

from __future__ import annotations

import pytest

from esalab_core.errors import InvalidArgumentError
from esalab_esa.parameters import (
    BANDWIDTH,
    CENTER_FREQUENCY,
    MARKER_X,
    MARKER_Y,
    PARAMETERS,
    SPAN,
)


class TestParameterTable:
    """Tests for parameter descriptors."""

    @pytest.mark.parametrize(
        ("param", "command", "query"),
        [
            (CENTER_FREQUENCY, ":freq:cent %.9e", ":freq:cent?"),
            (SPAN, ":freq:span %.9e", ":freq:span?"),
            (BANDWIDTH, ":band:res %.0f", ":band:res?"),
            (MARKER_X, ":calc:mark1:x %.9e", ":calc:mark1:x?"),
        ],
    )
    def test_templates(self, param: object, command: str, query: str) -> None:
        assert param.command_template == command  # type: ignore[attr-defined]
        assert param.query_template == query  # type: ignore[attr-defined]

    def test_marker_y_read_only(self) -> None:
        assert not MARKER_Y.writable
        assert MARKER_Y.query_template == ":calc:mark1:y?"
        with pytest.raises(InvalidArgumentError, match="read-only"):
            _ = MARKER_Y.command_template

    def test_table_keys_match_names(self) -> None:
        assert set(PARAMETERS) == {"center_frequency", "span", "bandwidth", "marker_x", "marker_y"}
        for name, param in PARAMETERS.items():
            assert param.name == name

    def test_default_decoder(self) -> None:
        assert SPAN.decode("+1.5E+06\n") == 1.5e6
