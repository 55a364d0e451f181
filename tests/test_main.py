"""Tests for the command line helpers."""

import pytest

from langlines.main import load_config, parse_trace


class TestParseTrace:
    """Test cases for turning trace commands into pointer events."""

    def test_gesture(self):
        """Cells become down, moves, then up."""
        events = parse_trace(["7,0", "7,1", "7,2"])
        assert [e.kind for e in events] == ["down", "move", "move", "up"]
        assert events[0].position == (7, 0)
        assert events[2].position == (7, 2)

    def test_single_cell(self):
        events = parse_trace(["0,0"])
        assert [e.kind for e in events] == ["down", "up"]

    @pytest.mark.parametrize("tokens", [[], ["a,b"], ["1"], ["1,2,3"]])
    def test_invalid(self, tokens):
        with pytest.raises(ValueError):
            parse_trace(tokens)


class TestLoadConfig:
    """Test cases for YAML configuration."""

    def test_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("rows: 6\ncols: 5\nlearning_lang: fr\nround_seconds: 90\n")
        config = load_config(str(path))
        assert (config.rows, config.cols) == (6, 5)
        assert config.languages == ["en", "fr"]
        assert config.round_seconds == 90

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)).rows == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))
