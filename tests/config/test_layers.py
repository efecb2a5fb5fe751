"""Tests for LayeredConfig: layer order, line parsing and required keys."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from modctl.config.layers import LayeredConfig, parse_line
from modctl.domain.errors import ConfigError


def _layer(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestParseLine:
    @pytest.mark.parametrize(
        "line",
        ["", "   ", "# comment", "   # indented comment", "no equals sign", "=value", "  = x"],
    )
    def test_skipped_lines(self, line: str) -> None:
        assert parse_line(line) is None

    def test_splits_on_first_equals(self) -> None:
        assert parse_line("CONNECTION=Host=db;Port=5432") == ("CONNECTION", "Host=db;Port=5432")

    def test_trims_whitespace_and_quotes(self) -> None:
        assert parse_line('  OUTPUT_DIRECTORY = "out dir"  ') == ("OUTPUT_DIRECTORY", "out dir")
        assert parse_line("'KEY'='value'") == ("KEY", "value")

    def test_unbalanced_quote_kept(self) -> None:
        assert parse_line('KEY="value') == ("KEY", '"value')

    def test_empty_value_allowed(self) -> None:
        assert parse_line("KEY=") == ("KEY", "")


class TestLoad:
    def test_override_wins_per_key(self, tmp_path: Path) -> None:
        base = _layer(tmp_path / "base.env", "A=base\nB=base\n")
        override = _layer(tmp_path / "override.env", "B=override\nC=override\n")
        config = LayeredConfig().load([base, override])
        assert config.get("A") == "base"
        assert config.get("B") == "override"
        assert config.get("C") == "override"
        assert config.sources == [base, override]

    def test_keys_are_case_sensitive(self, tmp_path: Path) -> None:
        layer = _layer(tmp_path / "settings.env", "key=lower\nKEY=upper\n")
        config = LayeredConfig().load([layer])
        assert config.values == {"key": "lower", "KEY": "upper"}

    def test_malformed_lines_ignored(self, tmp_path: Path) -> None:
        layer = _layer(tmp_path / "settings.env", "garbage\n=nokey\n# X=1\nGOOD=1\n")
        config = LayeredConfig().load([layer])
        assert dict(config.values) == {"GOOD": "1"}

    def test_missing_optional_layer_skipped(self, tmp_path: Path) -> None:
        last = _layer(tmp_path / "settings.env", "A=1\n")
        config = LayeredConfig().load([tmp_path / "missing.env", last])
        assert config.get("A") == "1"
        assert config.sources == [last]

    def test_missing_last_layer_fatal(self, tmp_path: Path) -> None:
        first = _layer(tmp_path / "repo.env", "A=1\n")
        with pytest.raises(ConfigError, match="configuration file not found"):
            LayeredConfig().load([first, tmp_path / "settings.env"])

    def test_no_layers_fatal(self) -> None:
        with pytest.raises(ConfigError):
            LayeredConfig().load([])

    def test_second_load_is_noop(self, tmp_path: Path) -> None:
        first = _layer(tmp_path / "one.env", "A=1\n")
        second = _layer(tmp_path / "two.env", "A=2\n")
        config = LayeredConfig().load([first])
        assert config.loaded
        config.load([second])
        assert config.get("A") == "1"

    def test_separate_instances_do_not_share_state(self, tmp_path: Path) -> None:
        first = _layer(tmp_path / "one.env", "A=1\n")
        second = _layer(tmp_path / "two.env", "A=2\n")
        assert LayeredConfig().load([first]).get("A") == "1"
        assert LayeredConfig().load([second]).get("A") == "2"

    def test_utf8_bom_tolerated(self, tmp_path: Path) -> None:
        layer = tmp_path / "settings.env"
        layer.write_bytes(b"\xef\xbb\xbfA=1\n")
        assert LayeredConfig().load([layer]).get("A") == "1"


class TestGet:
    def test_missing_with_default_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = LayeredConfig().load([_layer(tmp_path / "s.env", "")])
        with caplog.at_level(logging.WARNING, logger="modctl"):
            assert config.get("PORT", "8080") == "8080"
        assert "PORT" in caplog.text

    def test_missing_without_default_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = LayeredConfig().load([_layer(tmp_path / "s.env", "")])
        with caplog.at_level(logging.WARNING, logger="modctl"):
            assert config.get("PORT") is None
        assert "PORT" in caplog.text


class TestGetRequired:
    def test_only_mandatory_layer(self, tmp_path: Path) -> None:
        layer = _layer(tmp_path / ".modctl" / "settings.env", "OUTPUT_DIRECTORY=out\n")
        config = LayeredConfig().load([tmp_path / "modctl.env", layer])
        assert config.get_required("OUTPUT_DIRECTORY") == "out"
        with pytest.raises(ConfigError, match="ARTIFACTS_DIRECTORY") as exc_info:
            config.get_required("ARTIFACTS_DIRECTORY")
        assert str(layer) in exc_info.value.message

    def test_empty_value_is_missing(self, tmp_path: Path) -> None:
        config = LayeredConfig().load([_layer(tmp_path / "s.env", "OUTPUT_DIRECTORY=\n")])
        with pytest.raises(ConfigError):
            config.get_required("OUTPUT_DIRECTORY")
