"""ThingSpeak channel feed"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from microgrid_notifier.feeds.base import BaseFeed, FeedError, TelemetrySample

DEFAULT_BASE_URL = 'https://api.thingspeak.com'

DEFAULT_FIELDS = {
    'field1': 'voltage',
    'field2': 'current',
    'field3': 'battery',
    'field4': 'load_power',
    'field5': 'temperature',
}


def parse_number(raw: Any) -> float:
    """Parse a ThingSpeak field value, defaulting to 0 when it isn't numeric"""
    if raw is None:
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    # NaN and infinities count as unparseable
    if value != value or value in (float('inf'), float('-inf')):
        return 0.0
    return value


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse a ThingSpeak created_at value such as 2024-05-01T10:15:00Z"""
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return None


class ThingSpeakFeed(BaseFeed):
    """Reads channel entries from the ThingSpeak REST API"""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.channel_id = config.get('channel_id')
        self.api_key = config.get('api_key')
        self.base_url = config.get('base_url', DEFAULT_BASE_URL).rstrip('/')
        self.timeout = config.get('timeout', 10)
        self.fields = config.get('fields') or dict(DEFAULT_FIELDS)

    def is_configured(self) -> bool:
        return bool(self.channel_id and self.api_key)

    @property
    def url(self) -> str:
        return f"{self.base_url}/channels/{self.channel_id}/feeds.json"

    def fetch_recent(self, results: int) -> List[TelemetrySample]:
        """
        Fetch the last ``results`` channel entries, oldest first

        Raises:
            FeedError: On network, HTTP or parse failures
        """
        try:
            response = requests.get(
                self.url,
                params={'api_key': self.api_key, 'results': results},
                timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise FeedError(f"Error fetching ThingSpeak data: {e}") from e
        except ValueError as e:
            raise FeedError(f"Invalid JSON from ThingSpeak: {e}") from e

        if not isinstance(body, dict):
            raise FeedError("Unexpected ThingSpeak response body")

        feeds = body.get('feeds') or []
        if not isinstance(feeds, list):
            raise FeedError("ThingSpeak response 'feeds' is not a list")

        return [self.parse_entry(entry) for entry in feeds if isinstance(entry, dict)]

    def parse_entry(self, entry: Dict[str, Any]) -> TelemetrySample:
        """Map the configured fields of one entry to metric values"""
        values = {
            metric_name: parse_number(entry.get(field_name))
            for field_name, metric_name in self.fields.items()
        }
        entry_id = entry.get('entry_id')
        return TelemetrySample(
            values=values,
            observed_at=parse_timestamp(entry.get('created_at')),
            entry_id=entry_id if isinstance(entry_id, int) else None,
        )
