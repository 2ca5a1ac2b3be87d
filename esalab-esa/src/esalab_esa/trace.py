"""Spectrum trace container and frequency axis derivation."""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from esalab_core.errors import ParseError


class Trace(NamedTuple):
    """One sweep of the analyzer.

    Unpacks as ``frequencies, powers = trace``.

    Attributes:
        frequencies: Swept frequency axis in Hz, ascending.
        powers: Raw trace samples, index-aligned with *frequencies*.
    """

    frequencies: np.ndarray
    powers: np.ndarray

    @property
    def num_points(self) -> int:
        """Number of points in the sweep."""
        return int(self.powers.size)

    def peak(self) -> tuple[float, float]:
        """Return ``(frequency, power)`` of the largest sample."""
        index = int(np.argmax(self.powers))
        return float(self.frequencies[index]), float(self.powers[index])


def frequency_axis(center_frequency: float, span: float, num_points: int) -> np.ndarray:
    """Build the swept frequency axis.

    Args:
        center_frequency: Center frequency in Hz.
        span: Frequency span in Hz.
        num_points: Number of points N (>= 1).

    Returns:
        N evenly spaced points from ``center - span/2`` to ``center + span/2``
        inclusive. For N == 1 the single point is the center frequency.
    """
    if num_points < 1:
        raise ValueError(f"num_points must be >= 1, got {num_points}")
    if num_points == 1:
        return np.array([center_frequency], dtype=np.float64)
    half = span / 2.0
    return np.linspace(center_frequency - half, center_frequency + half, num_points)


def build_trace(center_frequency: float, span: float, powers: Sequence[float]) -> Trace:
    """Pair raw trace samples with their frequency axis.

    Raises:
        ParseError: If *powers* is empty.
    """
    samples = np.asarray(powers, dtype=np.float64)
    if samples.size == 0:
        raise ParseError("Trace response contained no samples")
    return Trace(frequency_axis(center_frequency, span, samples.size), samples)
