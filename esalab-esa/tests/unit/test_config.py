"""Tests for analyzer YAML configuration loading."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from esalab_core.types import BusAddress
from esalab_esa.config import (
    DEFAULT_TIMEOUT_MS,
    AnalyzerConfig,
    create_analyzer,
    create_instrument,
    load_config,
    parse_config,
)
from esalab_esa.emulator import make_emulated_analyzer_backend
from esalab_scpi import visa
from esalab_scpi.visa import default_backend


class TestParseConfig:
    """Tests for parse_config."""

    def test_minimal(self) -> None:
        config = parse_config({"analyzer": {"board": 0, "primary_address": 18}})
        assert config.address == BusAddress("ni", 0, 18)
        assert config.timeout_ms == DEFAULT_TIMEOUT_MS

    def test_full(self) -> None:
        config = parse_config(
            {
                "analyzer": {
                    "driver": "keysight",
                    "board": 1,
                    "primary_address": 7,
                    "timeout_ms": 30000,
                }
            }
        )
        assert config == AnalyzerConfig(BusAddress("keysight", 1, 7), 30000)

    def test_missing_section(self) -> None:
        with pytest.raises(ValueError, match="'analyzer' section"):
            parse_config({"rack": {}})

    def test_section_not_mapping(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            parse_config({"analyzer": [1, 2]})

    def test_missing_board(self) -> None:
        with pytest.raises(ValueError, match="missing 'board'"):
            parse_config({"analyzer": {"primary_address": 18}})

    def test_string_address_rejected(self) -> None:
        with pytest.raises(ValueError, match="must be an integer"):
            parse_config({"analyzer": {"board": 0, "primary_address": "18"}})

    def test_out_of_range_address(self) -> None:
        with pytest.raises(ValueError, match="Invalid analyzer address"):
            parse_config({"analyzer": {"board": 0, "primary_address": 31}})

    def test_bad_timeout(self) -> None:
        with pytest.raises(ValueError, match="timeout_ms"):
            parse_config({"analyzer": {"board": 0, "primary_address": 18, "timeout_ms": 0}})


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "esa.yaml"
        path.write_text(
            "analyzer:\n  driver: ni\n  board: 7\n  primary_address: 18\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.address == BusAddress("ni", 7, 18)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="empty"):
            load_config(path)


class TestFactories:
    """Tests for create_analyzer and create_instrument."""

    @pytest.fixture(autouse=True)
    def fresh_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(visa, "_default_backend", None)

    def test_create_analyzer_with_backend(self) -> None:
        config = AnalyzerConfig(BusAddress("ni", 0, 18))
        analyzer = create_analyzer(config, backend=make_emulated_analyzer_backend())
        assert not analyzer.is_open()
        analyzer.open()
        assert analyzer.get_identity().model == "E4407B"

    def test_create_analyzer_default_backend(self) -> None:
        config = AnalyzerConfig(BusAddress("ni", 0, 18), timeout_ms=25000)
        mock_pyvisa = MagicMock()
        mock_pyvisa.ResourceManager.return_value.list_opened_resources.return_value = []
        with patch.dict(sys.modules, {"pyvisa": mock_pyvisa}):
            analyzer = create_analyzer(config)
            assert analyzer.session.backend is default_backend()
            analyzer.open()
        resource = mock_pyvisa.ResourceManager.return_value.open_resource.return_value
        assert resource.timeout == 25000

    def test_create_instrument_opens(self) -> None:
        mock_pyvisa = MagicMock()
        mock_pyvisa.ResourceManager.return_value.list_opened_resources.return_value = []
        with patch.dict(sys.modules, {"pyvisa": mock_pyvisa}):
            analyzer = create_instrument(0, 18)
            assert analyzer.is_open()
            analyzer.close()
        mock_pyvisa.ResourceManager.return_value.open_resource.assert_called_once()

    def test_create_instrument_reuses_open_connection(self) -> None:
        mock_pyvisa = MagicMock()
        mock_pyvisa.ResourceManager.return_value.list_opened_resources.return_value = []
        with patch.dict(sys.modules, {"pyvisa": mock_pyvisa}):
            first = create_instrument(0, 18)
            second = create_instrument(0, 18)
            assert second.is_open()
            first.close()
        mock_pyvisa.ResourceManager.return_value.open_resource.assert_called_once()
