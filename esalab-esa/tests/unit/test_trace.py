"""Tests for trace construction and the frequency axis."""

from __future__ import annotations

import numpy as np
import pytest

from esalab_core.errors import ParseError
from esalab_esa.trace import Trace, build_trace, frequency_axis


class TestFrequencyAxis:
    """Tests for frequency_axis."""

    def test_endpoints_inclusive(self) -> None:
        axis = frequency_axis(1.0e9, 4.0e3, 4)
        assert axis[0] == 999998000.0
        assert axis[-1] == 1000002000.0

    def test_even_spacing(self) -> None:
        axis = frequency_axis(1.0e9, 4.0e3, 4)
        np.testing.assert_allclose(np.diff(axis), 4.0e3 / 3)

    def test_single_point_is_center(self) -> None:
        np.testing.assert_array_equal(frequency_axis(2.0e9, 1.0e6, 1), [2.0e9])

    def test_zero_span(self) -> None:
        axis = frequency_axis(1.0e9, 0.0, 5)
        np.testing.assert_array_equal(axis, [1.0e9] * 5)

    @pytest.mark.parametrize("num_points", [2, 101, 401, 8192])
    def test_monotonic(self, num_points: int) -> None:
        axis = frequency_axis(3.0e9, 1.5e9, num_points)
        assert axis.size == num_points
        assert np.all(np.diff(axis) >= 0)

    def test_invalid_point_count(self) -> None:
        with pytest.raises(ValueError, match="num_points"):
            frequency_axis(1.0e9, 1.0e6, 0)


class TestBuildTrace:
    """Tests for build_trace and Trace."""

    def test_unpacks_as_pair(self) -> None:
        frequencies, powers = build_trace(1.0e9, 4.0e3, [1.0, 2.0, 3.0, 4.0])
        assert frequencies.size == powers.size == 4
        assert powers.dtype == np.float64

    def test_num_points(self) -> None:
        assert build_trace(1.0e9, 1.0e6, [0.0] * 7).num_points == 7

    def test_empty_raises(self) -> None:
        with pytest.raises(ParseError):
            build_trace(1.0e9, 1.0e6, [])

    def test_peak(self) -> None:
        trace = Trace(np.array([1.0, 2.0, 3.0]), np.array([-80.0, -10.0, -75.0]))
        assert trace.peak() == (2.0, -10.0)
