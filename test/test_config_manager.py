#!/usr/bin/env python3
"""
Test script for configuration loading and the timezone-aware clock.
"""

import json
import os
import shutil
import sys
import tempfile
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from gametime.clock import Clock
from gametime.config_manager import DEFAULT_CONFIG, ConfigManager


def test_defaults_without_file():
    temp_dir = tempfile.mkdtemp()
    try:
        manager = ConfigManager(os.path.join(temp_dir, "config.json"))
        config = manager.load_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG
        assert manager.get_capacity("small") == 1
        assert manager.get_capacity("medium") == 4
        assert manager.get_capacity("huge") is None
        assert manager.get_timezone() == "UTC"
    finally:
        shutil.rmtree(temp_dir)


def test_user_config_merges_over_defaults():
    print("Testing config merge...")
    temp_dir = tempfile.mkdtemp()
    try:
        path = os.path.join(temp_dir, "config.json")
        with open(path, 'w') as f:
            json.dump({
                "timezone": "America/Chicago",
                "espn": {"read_timeout": 5},
                "selection": {"capacities": {"medium": 3}},
            }, f)

        manager = ConfigManager(path)
        manager.load_config()

        assert manager.get_timezone() == "America/Chicago"
        assert manager.get_espn_config()["read_timeout"] == 5
        assert manager.get_espn_config()["connect_timeout"] == 10
        assert manager.get_capacity("medium") == 3
        assert manager.get_capacity("small") == 1
        # Defaults are never mutated by a merge
        assert DEFAULT_CONFIG["selection"]["capacities"]["medium"] == 4
        print("✓ User config layered over defaults")
    finally:
        shutil.rmtree(temp_dir)


def test_invalid_config_raises():
    temp_dir = tempfile.mkdtemp()
    try:
        path = os.path.join(temp_dir, "config.json")
        with open(path, 'w') as f:
            f.write("{oops")
        with pytest.raises(json.JSONDecodeError):
            ConfigManager(path).load_config()

        with open(path, 'w') as f:
            f.write("[]")
        with pytest.raises(ValueError):
            ConfigManager(path).load_config()
    finally:
        shutil.rmtree(temp_dir)


def test_template_is_valid():
    template = os.path.join(os.path.dirname(__file__), '..', 'config', 'config.template.json')
    with open(template) as f:
        data = json.load(f)
    assert set(data) == set(DEFAULT_CONFIG)


def test_clock_day_boundaries():
    print("Testing clock...")
    # 03:00 UTC on Feb 1 is still Jan 31 in Chicago
    clock = Clock("America/Chicago", now_func=lambda: datetime(2026, 2, 1, 3, 0, tzinfo=timezone.utc))

    assert clock.start_of_today() == datetime(2026, 1, 31, 6, 0, tzinfo=timezone.utc)
    assert clock.start_of_tomorrow() == datetime(2026, 2, 1, 6, 0, tzinfo=timezone.utc)
    assert clock.today_string() == "20260131"
    assert clock.date_strings(3) == ["20260131", "20260201", "20260202"]
    assert clock.is_today(datetime(2026, 2, 1, 5, 59, tzinfo=timezone.utc))
    assert not clock.is_today(datetime(2026, 2, 1, 6, 0, tzinfo=timezone.utc))
    print("✓ Day boundaries follow the configured timezone")


def test_clock_falls_back_to_utc():
    clock = Clock("Mars/Olympus_Mons")
    assert clock.timezone.zone == "UTC"

    naive = Clock(now_func=lambda: datetime(2026, 1, 31, 15, 0))
    assert naive.now().tzinfo is not None


if __name__ == "__main__":
    test_defaults_without_file()
    test_user_config_merges_over_defaults()
    test_invalid_config_raises()
    test_template_is_valid()
    test_clock_day_boundaries()
    test_clock_falls_back_to_utc()
    print("\nAll config tests passed!")
