#!/usr/bin/env python3
"""
Cache clearing utility for Gametime
This script shows what the game cache holds and clears it on request.
"""

import argparse
import logging
import os
import sys

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s.%(msecs)03d - %(levelname)s:%(name)s:%(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    stream=sys.stdout
)

from gametime.cache_manager import CacheManager
from gametime.clock import Clock
from gametime.config_manager import ConfigManager
from gametime.settings_store import SettingsStore


def build_cache_manager(config_path=None):
    config_manager = ConfigManager(config_path)
    config_manager.load_config()
    clock = Clock(config_manager.get_timezone())
    settings_store = SettingsStore(config_manager.get_settings_path())
    return CacheManager.from_config(config_manager.get_cache_config(), settings_store, clock)


def clear_all_cache(cache_manager):
    """Clear all cached games."""
    try:
        cache_manager.clear()
        print("✓ Cleared all cached games")
        return True
    except OSError as e:
        print(f"✗ Error clearing cache: {e}")
        return False


def show_cache_info(cache_manager):
    """Show where the cache lives and what it holds."""
    cache_path = cache_manager._get_cache_path()
    print(f"Cache directory: {cache_manager.cache_dir or 'none (settings store only)'}")
    if cache_path and os.path.exists(cache_path):
        print(f"Cache file: {cache_path} ({os.path.getsize(cache_path)} bytes)")
    else:
        print("Cache file: not present")

    last_fetch = cache_manager.last_fetch_date
    if last_fetch is None:
        print("Last fetch: never")
    else:
        age_hours = (cache_manager.clock.now() - last_fetch).total_seconds() / 3600
        print(f"Last fetch: {last_fetch.isoformat()} ({age_hours:.1f}h ago)")
    print(f"Stale: {'yes' if cache_manager.is_stale() else 'no'}")

    games = cache_manager.load_games()
    print(f"Cached games from today on: {len(games)}")
    for game in games:
        team = game.user_team_abbr or "league"
        print(f"  - [{team}] {game.away_abbr} @ {game.home_abbr} {game.start_time.isoformat()} {game.status.value}")


def main():
    parser = argparse.ArgumentParser(description='Clear Gametime cache data')
    parser.add_argument('--config', '-c', type=str, default=None,
                        help='Path to config.json (default: config/config.json)')
    parser.add_argument('--clear-all', '-a', action='store_true',
                        help='Clear cached games from every tier')
    parser.add_argument('--invalidate-memory', '-m', action='store_true',
                        help='Drop the in-memory copy so the next read goes to disk')
    parser.add_argument('--info', '-i', action='store_true',
                        help='Show cache location, age and contents')

    args = parser.parse_args()

    # Initialize cache manager
    cache_manager = build_cache_manager(args.config)

    if args.clear_all:
        print("Clearing all cache data...")
        clear_all_cache(cache_manager)
    elif args.invalidate_memory:
        cache_manager.invalidate_memory()
        print("✓ Dropped in-memory game cache")
    elif args.info:
        show_cache_info(cache_manager)
    else:
        # Default: show available options
        print("Gametime Cache Utility")
        print("=" * 30)
        print()
        print("Available commands:")
        print("  --clear-all, -a          Clear cached games from every tier")
        print("  --invalidate-memory, -m  Drop the in-memory copy")
        print("  --info, -i               Show cache location, age and contents")
        print()

        # Show current cache status
        show_cache_info(cache_manager)


if __name__ == "__main__":
    main()
