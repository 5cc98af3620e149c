"""
tests/test_config.py — YAML Config Loader Tests
================================================
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

import pytest

from ecoreward.config import load_config


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        cfg = load_config(_write(tmp_path, (
            'community_name: "Bank Sampah"\n'
            'timezone: "Asia/Jakarta"\n'
            "default_daily_scan_limit: 5\n"
            "leaderboard_size: 25\n"
            "api_port: 9000\n"
        )))
        assert cfg.community_name == "Bank Sampah"
        assert cfg.tz == ZoneInfo("Asia/Jakarta")
        assert cfg.default_daily_scan_limit == 5
        assert cfg.leaderboard_size == 25
        assert cfg.api_port == 9000

    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, 'community_name: "X"\n'))
        assert cfg.timezone == "UTC"
        assert cfg.default_daily_scan_limit == 2
        assert cfg.leaderboard_size == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_community_name(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "api_port: 1\n"))

    def test_unknown_timezone(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown timezone"):
            load_config(_write(tmp_path, 'community_name: "X"\ntimezone: "Mars/Olympus"\n'))

    def test_negative_scan_limit(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, 'community_name: "X"\ndefault_daily_scan_limit: -1\n'))
