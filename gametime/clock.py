import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz

# Get logger without configuring
logger = logging.getLogger(__name__)


class Clock:
    """
    Calendar helper for the configured timezone.

    "Today" for pruning and partitioning games is the calendar day in this
    timezone. Tests pass now_func to pin the current instant.
    """

    def __init__(self, timezone_name: str = "UTC", now_func: Optional[Callable[[], datetime]] = None):
        self.timezone = self._get_timezone(timezone_name)
        self._now_func = now_func

    def _get_timezone(self, timezone_name: str):
        try:
            return pytz.timezone(timezone_name)
        except pytz.exceptions.UnknownTimeZoneError:
            logger.warning(
                f"Invalid timezone '{timezone_name}' in config. "
                "Falling back to UTC. Please check your config.json file."
            )
            return pytz.utc

    def now(self) -> datetime:
        """Current instant, always timezone-aware (UTC)."""
        if self._now_func is not None:
            current = self._now_func()
            if current.tzinfo is None:
                current = pytz.utc.localize(current)
            return current.astimezone(pytz.utc)
        return datetime.now(pytz.utc)

    def local_now(self) -> datetime:
        return self.now().astimezone(self.timezone)

    def start_of_day(self, moment: datetime) -> datetime:
        local = moment.astimezone(self.timezone)
        midnight = self.timezone.localize(datetime(local.year, local.month, local.day))
        return midnight.astimezone(pytz.utc)

    def start_of_today(self) -> datetime:
        return self.start_of_day(self.now())

    def start_of_tomorrow(self) -> datetime:
        local_today = self.local_now().date() + timedelta(days=1)
        midnight = self.timezone.localize(datetime(local_today.year, local_today.month, local_today.day))
        return midnight.astimezone(pytz.utc)

    def is_today(self, moment: datetime) -> bool:
        return self.start_of_today() <= moment < self.start_of_tomorrow()

    def date_strings(self, count: int) -> List[str]:
        """Today plus the following count-1 days as YYYYMMDD."""
        today = self.local_now().date()
        return [(today + timedelta(days=offset)).strftime("%Y%m%d") for offset in range(count)]

    def today_string(self) -> str:
        return self.local_now().strftime("%Y%m%d")
