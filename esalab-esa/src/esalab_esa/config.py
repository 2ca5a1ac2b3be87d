"""YAML configuration loading for ESA analyzers.

Example YAML configuration:
    analyzer:
      driver: "ni"
      board: 0
      primary_address: 18
      timeout_ms: 10000

``driver`` and ``timeout_ms`` are optional.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from esalab_core.errors import EsalabError
from esalab_core.types import BusAddress
from esalab_scpi import DEFAULT_DRIVER, default_backend

from esalab_esa.analyzer import EsaSpectrumAnalyzer

if TYPE_CHECKING:
    from esalab_scpi import GpibBackend

DEFAULT_TIMEOUT_MS = 10000


@dataclass(frozen=True)
class AnalyzerConfig:
    """Connection settings for one analyzer.

    Attributes:
        address: Bus address of the instrument.
        timeout_ms: VISA I/O timeout in milliseconds.
    """

    address: BusAddress
    timeout_ms: int = DEFAULT_TIMEOUT_MS


def _require_int(data: dict[str, Any], key: str) -> int:
    if key not in data:
        raise ValueError(f"Analyzer configuration missing '{key}'")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Analyzer '{key}' must be an integer, got {value!r}")
    return value


def parse_config(data: dict[str, Any]) -> AnalyzerConfig:
    """Parse an analyzer configuration from a dictionary.

    Args:
        data: Parsed YAML document with a top-level ``analyzer`` section.

    Returns:
        Parsed AnalyzerConfig.

    Raises:
        ValueError: If required fields are missing or invalid.
    """
    if not isinstance(data, dict) or "analyzer" not in data:
        raise ValueError("Configuration missing 'analyzer' section")
    section = data["analyzer"]
    if not isinstance(section, dict):
        raise ValueError("'analyzer' section must be a mapping")

    timeout_ms = section.get("timeout_ms", DEFAULT_TIMEOUT_MS)
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
        raise ValueError(f"Analyzer 'timeout_ms' must be a positive integer, got {timeout_ms!r}")

    try:
        address = BusAddress(
            driver=str(section.get("driver", DEFAULT_DRIVER)),
            board=_require_int(section, "board"),
            primary_address=_require_int(section, "primary_address"),
        )
    except EsalabError as exc:
        raise ValueError(f"Invalid analyzer address: {exc}") from exc

    return AnalyzerConfig(address=address, timeout_ms=timeout_ms)


def load_config(path: str | Path) -> AnalyzerConfig:
    """Load an analyzer configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed AnalyzerConfig.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the configuration is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    return parse_config(data)


def create_analyzer(
    config: AnalyzerConfig, backend: GpibBackend | None = None
) -> EsaSpectrumAnalyzer:
    """Create an (unopened) analyzer driver from a configuration.

    Args:
        config: Analyzer configuration.
        backend: GPIB backend to use. Defaults to the shared
            :func:`esalab_scpi.default_backend`, with the configured timeout
            set for this address.

    Returns:
        Analyzer driver bound to the configured address.
    """
    if backend is None:
        shared = default_backend()
        shared.set_timeout(config.address, config.timeout_ms)
        backend = shared
    address = config.address
    return EsaSpectrumAnalyzer(
        address.driver, address.board, address.primary_address, backend=backend
    )


def create_instrument(
    board: int, primary_address: int, driver: str = DEFAULT_DRIVER
) -> EsaSpectrumAnalyzer:
    """Create and open an ESA driver at a GPIB address.

    Standard factory entry point for programmatic use.

    Args:
        board: GPIB board index.
        primary_address: GPIB primary address.
        driver: Vendor driver identifier.

    Returns:
        Connected analyzer driver.
    """
    analyzer = EsaSpectrumAnalyzer(driver, board, primary_address)
    analyzer.open()
    return analyzer
