"""Base telemetry feed abstract class"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import time
from microgrid_notifier.utils.logger import get_logger


class FeedError(Exception):
    """Raised when the feed cannot be fetched or parsed"""


@dataclass
class TelemetrySample:
    """Metric values read from one feed entry"""
    values: Dict[str, float] = field(default_factory=dict)
    observed_at: Optional[datetime] = None
    entry_id: Optional[int] = None


class BaseFeed(ABC):
    """Abstract base class for telemetry feeds"""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize feed

        Args:
            config: Feed configuration
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self.error_count = 0
        self.last_success = None
        self.last_fetch_duration = 0
        self.results = config.get('results', 1)
        self.recent: List[TelemetrySample] = []

    @abstractmethod
    def fetch_recent(self, results: int) -> List[TelemetrySample]:
        """
        Fetch the most recent samples, oldest first

        Raises:
            FeedError: If the feed cannot be fetched or parsed
        """
        pass

    def is_configured(self) -> bool:
        """
        Check if the feed has everything it needs to fetch

        Returns:
            True if configured
        """
        return True

    def fetch_latest(self) -> Optional[TelemetrySample]:
        """
        Fetch the newest sample

        Returns:
            Latest sample, or None if the feed has no entries
        """
        samples = self.fetch_recent(1)
        return samples[-1] if samples else None

    def run_fetch(self) -> Optional[TelemetrySample]:
        """
        Fetch the configured number of recent samples with timing and error
        bookkeeping, keeping them in ``recent``

        Returns:
            Latest sample, or None if the feed has no entries

        Raises:
            FeedError: If the fetch failed
        """
        start_time = time.time()

        try:
            samples = self.fetch_recent(self.results)
        except FeedError as e:
            self.error_count += 1
            self.last_fetch_duration = time.time() - start_time
            self.logger.error(f"Fetch failed (error #{self.error_count}): {e}")
            raise

        self.last_success = time.time()
        self.last_fetch_duration = time.time() - start_time
        self.error_count = 0
        self.recent = samples

        self.logger.debug(f"Fetched {len(samples)} samples in {self.last_fetch_duration:.3f}s")
        return samples[-1] if samples else None

    def is_healthy(self) -> bool:
        """
        Check if feed is healthy

        Returns:
            True if healthy, False otherwise
        """
        # Feed is unhealthy if it has failed 3 consecutive times
        return self.error_count < 3

    def get_name(self) -> str:
        """
        Get feed name

        Returns:
            Feed name
        """
        return self.__class__.__name__.replace('Feed', '').lower()
