import json
import os
import tempfile
import threading
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from gametime.clock import Clock
from gametime.models import Game
from gametime.settings_store import SettingsKeys, SettingsStore


class DateTimeEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class CacheManager:
    """
    Durable cache of the last good game list.

    Reads go memory -> cache file -> settings store, and the first tier with
    games from today onwards wins. A tier that can't be read is skipped, so
    the only failure a caller ever sees is an empty list.
    """

    CACHE_FILE_NAME = "games_cache.json"

    def __init__(self,
                 settings_store: SettingsStore,
                 cache_dir: Optional[str] = None,
                 memory_ttl: float = 60,
                 stale_threshold: timedelta = timedelta(hours=24),
                 clock: Optional[Clock] = None,
                 resolve_cache_dir: bool = True):
        # Initialize logger first
        self.logger = logging.getLogger(__name__)
        self.settings_store = settings_store
        self.clock = clock or Clock()
        self.memory_ttl = timedelta(seconds=memory_ttl)
        self.stale_threshold = stale_threshold

        # Determine the most reliable writable directory
        self.cache_dir = self._get_writable_cache_dir(cache_dir) if resolve_cache_dir else cache_dir
        if self.cache_dir:
            self.logger.info(f"Using cache directory: {self.cache_dir}")
        else:
            self.logger.warning("No writable cache directory, games will be kept in the settings store only.")

        self._memory_cache: Optional[List[Game]] = None
        self._memory_cache_timestamp: Optional[datetime] = None
        # Bumped on every write to memory so a slow disk read can tell it lost a race
        self._generation = 0
        self._cache_lock = threading.Lock()

    @classmethod
    def from_config(cls, cache_config: Dict[str, Any], settings_store: SettingsStore,
                    clock: Optional[Clock] = None) -> "CacheManager":
        return cls(
            settings_store,
            cache_dir=cache_config.get("cache_dir"),
            memory_ttl=cache_config.get("memory_ttl", 60),
            stale_threshold=timedelta(hours=cache_config.get("stale_threshold_hours", 24)),
            clock=clock,
        )

    def _get_writable_cache_dir(self, preferred: Optional[str]) -> Optional[str]:
        """Tries to find or create a writable cache directory, preferring the configured one."""
        candidates = []
        if preferred:
            candidates.append(preferred)
        candidates.append(os.path.join(os.path.expanduser('~'), '.gametime_cache'))

        for candidate in candidates:
            try:
                os.makedirs(candidate, exist_ok=True)
                test_file = os.path.join(candidate, '.writetest')
                with open(test_file, 'w') as f:
                    f.write('test')
                os.remove(test_file)
                return candidate
            except OSError as e:
                self.logger.warning(f"Could not use cache directory {candidate}: {e}")

        # System-wide temporary directory (fallback, not persistent)
        try:
            temp_cache_dir = os.path.join(tempfile.gettempdir(), 'gametime_cache')
            os.makedirs(temp_cache_dir, exist_ok=True)
            if os.access(temp_cache_dir, os.W_OK):
                self.logger.warning("Using temporary cache directory - cache will NOT persist across restarts")
                return temp_cache_dir
        except OSError as e:
            self.logger.warning(f"Could not use system-wide temporary cache directory: {e}")

        return None

    def _get_cache_path(self) -> Optional[str]:
        if not self.cache_dir:
            return None
        return os.path.join(self.cache_dir, self.CACHE_FILE_NAME)

    # Writes

    def save_games(self, games: List[Game]) -> None:
        """
        Save games to every tier that will take them.

        Memory is always updated. The cache file is written atomically; if
        that fails the list goes to the settings store instead. Either durable
        write also records the last fetch time, and a good file write drops
        any list left in the settings store by an earlier fallback.
        """
        records = [game.to_dict() for game in games]
        with self._cache_lock:
            now = self.clock.now()
            self._memory_cache = list(games)
            self._memory_cache_timestamp = now
            self._generation += 1

            cache_path = self._get_cache_path()
            if cache_path:
                try:
                    self._atomic_write(cache_path, records)
                    self._drop_settings_copy(now)
                    self.logger.debug(f"Saved {len(games)} games to {cache_path}")
                    return
                except (OSError, TypeError, ValueError) as e:
                    self.logger.error(f"Atomic write failed for '{cache_path}': {e}")

            try:
                self.settings_store.set_many({
                    SettingsKeys.CACHED_GAMES: records,
                    SettingsKeys.LAST_FETCH_DATE: now.isoformat(),
                })
                self.logger.warning(f"Cache wrote {len(games)} games to the settings store fallback")
            except (OSError, TypeError, ValueError) as e:
                self.logger.error(f"Fallback cache write also failed: {e}")

    def _atomic_write(self, cache_path: str, records: List[Dict[str, Any]]) -> None:
        # Atomic write to avoid partial/corrupt files
        tmp_dir = os.path.dirname(cache_path)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(cache_path)}.", dir=tmp_dir)
        try:
            with os.fdopen(fd, 'w') as tmp_file:
                json.dump(records, tmp_file, indent=4, cls=DateTimeEncoder)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, cache_path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    # Reads

    def load_games(self) -> List[Game]:
        """Games starting today or later, from the first tier that has any."""
        start_of_today = self.clock.start_of_today()
        now = self.clock.now()

        # 1) Memory cache
        with self._cache_lock:
            cached = self._memory_cache
            timestamp = self._memory_cache_timestamp
            generation = self._generation
        if cached is not None and timestamp is not None and now - timestamp < self.memory_ttl:
            filtered = [g for g in cached if g.start_time >= start_of_today]
            if filtered:
                return filtered

        # 2) Cache file, then 3) settings store
        for source, loader in (("file", self._load_from_file), ("settings", self._load_from_settings)):
            games = loader()
            filtered = [g for g in games if g.start_time >= start_of_today]
            if filtered:
                self.logger.debug(f"Loaded {len(filtered)} games from {source} cache")
                with self._cache_lock:
                    if self._generation != generation:
                        # A save landed while we were reading; its list is newer
                        self.logger.debug("Discarding disk read superseded by a newer save")
                        newer = self._memory_cache or []
                        return [g for g in newer if g.start_time >= start_of_today]
                    self._memory_cache = filtered
                    self._memory_cache_timestamp = now
                return filtered

        return []

    def _load_from_file(self) -> List[Game]:
        cache_path = self._get_cache_path()
        if not cache_path or not os.path.exists(cache_path):
            return []
        try:
            with self._cache_lock:
                with open(cache_path, 'r') as f:
                    records = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Error parsing cache file {cache_path}: {e}")
            # If the file is corrupted, remove it
            try:
                os.remove(cache_path)
            except OSError:
                pass
            return []
        except OSError as e:
            self.logger.error(f"Error loading cache file {cache_path}: {e}")
            return []
        return self._decode_games(records, "file")

    def _load_from_settings(self) -> List[Game]:
        return self._decode_games(self.settings_store.get(SettingsKeys.CACHED_GAMES), "settings")

    def _decode_games(self, records: Any, source: str) -> List[Game]:
        if not isinstance(records, list):
            return []
        try:
            return [Game.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Discarding unreadable {source} cache: {e}")
            return []

    # Freshness

    @property
    def last_fetch_date(self) -> Optional[datetime]:
        """When games were last written to durable storage."""
        return self.settings_store.get_datetime(SettingsKeys.LAST_FETCH_DATE)

    def is_stale(self) -> bool:
        last_fetch = self.last_fetch_date
        if last_fetch is None:
            return True
        return self.clock.now() - last_fetch > self.stale_threshold

    # Invalidation

    def clear(self) -> None:
        """Clear memory, the cache file and the settings store copies."""
        with self._cache_lock:
            self._memory_cache = None
            self._memory_cache_timestamp = None
            self._generation += 1
            cache_path = self._get_cache_path()
            if cache_path and os.path.exists(cache_path):
                try:
                    os.remove(cache_path)
                except OSError as e:
                    self.logger.error(f"Could not remove cache file {cache_path}: {e}")
        try:
            self.settings_store.remove(SettingsKeys.CACHED_GAMES, SettingsKeys.LAST_FETCH_DATE)
        except OSError as e:
            self.logger.error(f"Could not clear cached games from settings: {e}")
        self.logger.info("Cleared game cache")

    def invalidate_memory(self) -> None:
        """Drop the in-memory copy so the next read goes to disk."""
        with self._cache_lock:
            self._memory_cache = None
            self._memory_cache_timestamp = None
            self._generation += 1

    def _drop_settings_copy(self, now: datetime) -> None:
        """Record the fetch time and forget any fallback list, the file now holds the newest games."""
        try:
            self.settings_store.set_datetime(SettingsKeys.LAST_FETCH_DATE, now)
            self.settings_store.remove(SettingsKeys.CACHED_GAMES)
        except (OSError, TypeError, ValueError) as e:
            self.logger.error(f"Could not update settings after cache write: {e}")
