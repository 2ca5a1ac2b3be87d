"""ESA series spectrum analyzer driver for esalab.

Controls HP/Agilent/Keysight ESA analyzers over GPIB: center frequency,
span, resolution bandwidth, marker 1, and trace retrieval. Includes an
in-process emulator backend for use without hardware.

Typical usage::

    from esalab_esa import EsaSpectrumAnalyzer

    with EsaSpectrumAnalyzer(0, 18) as sa:
        sa.open()
        sa.set_center_frequency(1.0e9)
        sa.set_span(10.0e6)
        frequencies, powers = sa.get_trace()
"""

from esalab_esa.analyzer import EsaSpectrumAnalyzer
from esalab_esa.config import (
    AnalyzerConfig,
    create_analyzer,
    create_instrument,
    load_config,
    parse_config,
)
from esalab_esa.emulator import (
    EsaEmulator,
    EsaEmulatorBackend,
    EsaEmulatorConfig,
    make_emulated_analyzer_backend,
)
from esalab_esa.parameters import (
    BANDWIDTH,
    CENTER_FREQUENCY,
    MARKER_X,
    MARKER_Y,
    PARAMETERS,
    SPAN,
    TRACE_QUERY,
    Parameter,
)
from esalab_esa.trace import Trace, build_trace, frequency_axis

__all__ = [
    # Driver
    "EsaSpectrumAnalyzer",
    # Configuration
    "AnalyzerConfig",
    "create_analyzer",
    "create_instrument",
    "load_config",
    "parse_config",
    # Emulator
    "EsaEmulator",
    "EsaEmulatorBackend",
    "EsaEmulatorConfig",
    "make_emulated_analyzer_backend",
    # Parameters
    "BANDWIDTH",
    "CENTER_FREQUENCY",
    "MARKER_X",
    "MARKER_Y",
    "PARAMETERS",
    "SPAN",
    "TRACE_QUERY",
    "Parameter",
    # Trace
    "Trace",
    "build_trace",
    "frequency_axis",
]
