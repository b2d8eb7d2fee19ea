#!/usr/bin/env python3
"""
Test script for the game cache.

Exercises the memory, file and settings tiers, pruning of past games,
staleness, and what happens when the cache file can't be written.
"""

import json
import os
import shutil
import sys
import tempfile
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import NOW, MutableClock, make_game
from gametime.cache_manager import CacheManager
from gametime.models import GameStatus
from gametime.settings_store import SettingsKeys, SettingsStore


def make_cache(temp_dir, clock=None):
    settings = SettingsStore(os.path.join(temp_dir, "settings.json"))
    cache_dir = os.path.join(temp_dir, "cache")
    cache = CacheManager(settings, cache_dir=cache_dir, clock=clock or MutableClock())
    return cache, settings


def test_round_trip_through_file():
    print("Testing file tier...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, _ = make_cache(temp_dir, clock)
        games = [
            make_game("1", start=NOW + timedelta(hours=3)),
            make_game("2", user_team_abbr="BOS", start=NOW + timedelta(days=2),
                      status=GameStatus.IN_PROGRESS, home_score=50, away_score=48, period_number=3),
        ]
        cache.save_games(games)
        assert os.path.exists(os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME))

        # A fresh manager has nothing in memory and must read the file
        reader, _ = make_cache(temp_dir, clock)
        loaded = reader.load_games()
        assert loaded == games
        print("✓ File tier round-trips games")
    finally:
        shutil.rmtree(temp_dir)


def test_memory_tier_expires():
    print("Testing memory TTL...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, _ = make_cache(temp_dir, clock)
        cache.save_games([make_game("1")])

        with patch.object(cache, "_load_from_file", wraps=cache._load_from_file) as file_loader:
            assert [g.id for g in cache.load_games()] == ["1"]
            file_loader.assert_not_called()

            clock.advance(seconds=61)
            assert [g.id for g in cache.load_games()] == ["1"]
            file_loader.assert_called_once()
        print("✓ Memory served within TTL, disk after")
    finally:
        shutil.rmtree(temp_dir)


def test_prunes_games_before_today():
    print("Testing prune of past games...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, _ = make_cache(temp_dir, clock)
        cache.save_games([
            make_game("yesterday", start=NOW - timedelta(days=1)),
            make_game("this-morning", start=NOW.replace(hour=1), status=GameStatus.COMPLETED),
            make_game("tonight", start=NOW + timedelta(hours=5)),
        ])

        # Finished games from earlier today stay visible
        assert [g.id for g in cache.load_games()] == ["this-morning", "tonight"]

        # Once the day rolls over they go too
        clock.advance(days=1)
        assert cache.load_games() == []
        print("✓ Past games pruned by calendar day")
    finally:
        shutil.rmtree(temp_dir)


def test_staleness():
    print("Testing staleness...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, settings = make_cache(temp_dir, clock)
        assert cache.is_stale()

        settings.set_datetime(SettingsKeys.LAST_FETCH_DATE, NOW - timedelta(hours=23))
        assert not cache.is_stale()

        settings.set_datetime(SettingsKeys.LAST_FETCH_DATE, NOW - timedelta(hours=25))
        assert cache.is_stale()

        cache.save_games([make_game("1")])
        assert cache.last_fetch_date == NOW
        assert not cache.is_stale()
        print("✓ Stale after 24 hours")
    finally:
        shutil.rmtree(temp_dir)


def test_falls_back_to_settings_when_file_write_fails():
    print("Testing settings fallback...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, settings = make_cache(temp_dir, clock)

        with patch.object(cache, "_atomic_write", side_effect=OSError("disk full")):
            cache.save_games([make_game("1")])

        assert not os.path.exists(os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME))
        assert len(settings.get(SettingsKeys.CACHED_GAMES)) == 1
        assert cache.last_fetch_date == NOW

        cache.invalidate_memory()
        assert [g.id for g in cache.load_games()] == ["1"]
        print("✓ Settings store used as last resort")
    finally:
        shutil.rmtree(temp_dir)


def test_corrupt_file_is_discarded():
    print("Testing corrupt cache file...")
    temp_dir = tempfile.mkdtemp()
    try:
        cache, settings = make_cache(temp_dir)
        cache_path = os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME)
        with open(cache_path, 'w') as f:
            f.write("{not json")
        settings.set(SettingsKeys.CACHED_GAMES, [make_game("from-settings").to_dict()])

        assert [g.id for g in cache.load_games()] == ["from-settings"]
        assert not os.path.exists(cache_path)
        print("✓ Corrupt file removed, next tier used")
    finally:
        shutil.rmtree(temp_dir)


def test_file_is_valid_json_after_save():
    temp_dir = tempfile.mkdtemp()
    try:
        cache, _ = make_cache(temp_dir)
        cache.save_games([make_game("1"), make_game("2")])
        with open(os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME)) as f:
            records = json.load(f)
        assert [r["id"] for r in records] == ["1", "2"]
        assert records[0]["status"] == "scheduled"
        # No temp files left behind
        assert os.listdir(os.path.join(temp_dir, "cache")) == [CacheManager.CACHE_FILE_NAME]
    finally:
        shutil.rmtree(temp_dir)


def test_clear_and_invalidate():
    print("Testing clear...")
    temp_dir = tempfile.mkdtemp()
    try:
        cache, settings = make_cache(temp_dir)
        cache.save_games([make_game("1")])
        settings.set(SettingsKeys.CACHED_GAMES, [make_game("2").to_dict()])

        cache.clear()

        assert cache.load_games() == []
        assert cache.last_fetch_date is None
        assert cache.is_stale()
        assert settings.get(SettingsKeys.CACHED_GAMES) is None
        print("✓ Clear empties every tier")
    finally:
        shutil.rmtree(temp_dir)


def test_from_config():
    temp_dir = tempfile.mkdtemp()
    try:
        settings = SettingsStore(os.path.join(temp_dir, "settings.json"))
        cache = CacheManager.from_config(
            {"cache_dir": os.path.join(temp_dir, "games"), "memory_ttl": 5, "stale_threshold_hours": 2},
            settings,
            MutableClock(),
        )
        assert cache.cache_dir == os.path.join(temp_dir, "games")
        assert cache.memory_ttl == timedelta(seconds=5)
        assert cache.stale_threshold == timedelta(hours=2)
    finally:
        shutil.rmtree(temp_dir)

def test_file_write_drops_fallback_copy():
    print("Testing fallback copy cleanup...")
    temp_dir = tempfile.mkdtemp()
    try:
        clock = MutableClock()
        cache, settings = make_cache(temp_dir, clock)
        cache_path = os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME)

        with patch.object(cache, "_atomic_write", side_effect=OSError("disk full")):
            cache.save_games([make_game("fallback")])
        assert settings.get(SettingsKeys.CACHED_GAMES) is not None

        clock.advance(minutes=5)
        cache.save_games([make_game("fresh")])

        assert settings.get(SettingsKeys.CACHED_GAMES) is None
        assert cache.last_fetch_date == NOW + timedelta(minutes=5)

        # Losing the file must not resurrect the older fallback list
        os.remove(cache_path)
        cache.invalidate_memory()
        assert cache.load_games() == []
        print("✓ File write clears the settings copy")
    finally:
        shutil.rmtree(temp_dir)


def test_save_during_disk_read_wins():
    print("Testing save racing a disk read...")
    temp_dir = tempfile.mkdtemp()
    try:
        cache, _ = make_cache(temp_dir)
        cache.save_games([make_game("old")])
        cache.invalidate_memory()

        real_load = cache._load_from_file

        def load_then_save():
            games = real_load()
            cache.save_games([make_game("new")])
            return games

        with patch.object(cache, "_load_from_file", side_effect=load_then_save):
            assert [g.id for g in cache.load_games()] == ["new"]

        # Memory still holds the newer list, and so does the file
        assert [g.id for g in cache.load_games()] == ["new"]
        cache.invalidate_memory()
        assert [g.id for g in cache.load_games()] == ["new"]
        print("✓ Newer save is not overwritten by an older read")
    finally:
        shutil.rmtree(temp_dir)


def test_concurrent_saves_and_loads():
    print("Testing concurrent saves and loads...")
    temp_dir = tempfile.mkdtemp()
    try:
        cache, _ = make_cache(temp_dir)
        cache_path = os.path.join(temp_dir, "cache", CacheManager.CACHE_FILE_NAME)
        saved_ids = {f"g{i}" for i in range(20)}

        def save(i):
            cache.save_games([make_game(f"g{i}")])
            return None

        def load(_):
            cache.invalidate_memory()
            return [g.id for g in cache.load_games()]

        with ThreadPoolExecutor(max_workers=8, thread_name_prefix="CacheTest") as executor:
            futures = []
            for i in range(20):
                futures.append(executor.submit(save, i))
                futures.append(executor.submit(load, i))
            results = [future.result() for future in futures]

        # Every read saw exactly one complete save, or nothing yet
        for ids in results:
            if ids is not None:
                assert len(ids) <= 1
                assert set(ids) <= saved_ids

        cache.save_games([make_game("last")])
        with open(cache_path) as f:
            records = json.load(f)
        assert [r["id"] for r in records] == ["last"]
        assert [g.id for g in cache.load_games()] == ["last"]
        cache.invalidate_memory()
        assert [g.id for g in cache.load_games()] == ["last"]
        assert os.listdir(os.path.join(temp_dir, "cache")) == [CacheManager.CACHE_FILE_NAME]
        print("✓ Cache stays consistent under concurrent use")
    finally:
        shutil.rmtree(temp_dir)



if __name__ == "__main__":
    test_round_trip_through_file()
    test_memory_tier_expires()
    test_prunes_games_before_today()
    test_staleness()
    test_falls_back_to_settings_when_file_write_fails()
    test_corrupt_file_is_discarded()
    test_file_is_valid_json_after_save()
    test_clear_and_invalidate()
    test_from_config()
    test_file_write_drops_fallback_copy()
    test_save_during_disk_read_wins()
    test_concurrent_saves_and_loads()
    print("\nAll cache tests passed!")
