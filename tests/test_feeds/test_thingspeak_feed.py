"""Tests for the ThingSpeak feed"""

import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from microgrid_notifier.feeds.base import FeedError
from microgrid_notifier.feeds.thingspeak_feed import ThingSpeakFeed, parse_number, parse_timestamp

GET = 'microgrid_notifier.feeds.thingspeak_feed.requests.get'


def make_response(body):
    response = MagicMock()
    response.json.return_value = body
    return response


@pytest.fixture
def feed():
    return ThingSpeakFeed({'channel_id': '42', 'api_key': 'KEY', 'timeout': 5})


class TestParsing:
    """Test field parsing helpers"""

    def test_parse_number(self):
        assert parse_number("254.1") == 254.1
        assert parse_number("12") == 12.0
        assert parse_number(None) == 0.0
        assert parse_number("") == 0.0
        assert parse_number("abc") == 0.0
        assert parse_number("nan") == 0.0

    def test_parse_timestamp(self):
        assert parse_timestamp("2026-01-01T10:15:00Z") == datetime(2026, 1, 1, 10, 15, tzinfo=timezone.utc)
        assert parse_timestamp(None) is None
        assert parse_timestamp("yesterday") is None


class TestThingSpeakFeed:
    """Test ThingSpeakFeed"""

    def test_is_configured(self, feed):
        assert feed.is_configured()
        assert not ThingSpeakFeed({'channel_id': '42'}).is_configured()

    def test_fetch_latest(self, feed):
        body = {'feeds': [{
            'created_at': '2026-01-01T10:15:00Z',
            'entry_id': 7,
            'field1': '254', 'field2': '3.5', 'field3': '80', 'field4': '120', 'field5': 'bad',
        }]}

        with patch(GET, return_value=make_response(body)) as get:
            sample = feed.fetch_latest()

        args, kwargs = get.call_args
        assert args[0] == 'https://api.thingspeak.com/channels/42/feeds.json'
        assert kwargs['params'] == {'api_key': 'KEY', 'results': 1}
        assert kwargs['timeout'] == 5

        assert sample.values == {
            'voltage': 254.0, 'current': 3.5, 'battery': 80.0,
            'load_power': 120.0, 'temperature': 0.0,
        }
        assert sample.entry_id == 7
        assert sample.observed_at.year == 2026

    def test_missing_field_defaults_to_zero(self, feed):
        with patch(GET, return_value=make_response({'feeds': [{'field1': '230'}]})):
            sample = feed.fetch_latest()
        assert sample.values['voltage'] == 230.0
        assert sample.values['battery'] == 0.0

    def test_custom_field_mapping(self):
        feed = ThingSpeakFeed({'channel_id': '1', 'api_key': 'K',
                               'fields': {'field6': 'humidity', 'field7': 'light'}})
        with patch(GET, return_value=make_response({'feeds': [{'field6': '45', 'field7': '300'}]})):
            sample = feed.fetch_latest()
        assert sample.values == {'humidity': 45.0, 'light': 300.0}

    def test_empty_feed(self, feed):
        with patch(GET, return_value=make_response({'feeds': []})):
            assert feed.fetch_latest() is None

    def test_fetch_recent_order(self, feed):
        body = {'feeds': [{'field1': '1'}, {'field1': '2'}, {'field1': '3'}]}
        with patch(GET, return_value=make_response(body)):
            samples = feed.fetch_recent(3)
        assert [s.values['voltage'] for s in samples] == [1.0, 2.0, 3.0]

    def test_network_error(self, feed):
        with patch(GET, side_effect=requests.exceptions.ConnectionError("unreachable")):
            with pytest.raises(FeedError, match="Error fetching ThingSpeak data"):
                feed.fetch_latest()

    def test_http_error(self, feed):
        response = make_response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("400")
        with patch(GET, return_value=response):
            with pytest.raises(FeedError):
                feed.fetch_latest()

    def test_invalid_json(self, feed):
        response = MagicMock()
        response.json.side_effect = ValueError("no json")
        with patch(GET, return_value=response):
            with pytest.raises(FeedError, match="Invalid JSON"):
                feed.fetch_latest()

    def test_malformed_body(self, feed):
        with patch(GET, return_value=make_response("-1")):
            with pytest.raises(FeedError):
                feed.fetch_latest()


class TestRunFetch:
    """Test fetch bookkeeping"""

    def test_error_count_and_health(self, feed):
        with patch(GET, side_effect=requests.exceptions.Timeout("slow")):
            for _ in range(3):
                with pytest.raises(FeedError):
                    feed.run_fetch()

        assert feed.error_count == 3
        assert not feed.is_healthy()

        with patch(GET, return_value=make_response({'feeds': [{'field1': '240'}]})):
            sample = feed.run_fetch()

        assert sample.values['voltage'] == 240.0
        assert feed.error_count == 0
        assert feed.is_healthy()
        assert feed.last_success is not None

    def test_history_kept(self):
        feed = ThingSpeakFeed({'channel_id': '1', 'api_key': 'K', 'results': 15})
        body = {'feeds': [{'field1': str(v)} for v in range(15)]}

        with patch(GET, return_value=make_response(body)) as get:
            latest = feed.run_fetch()

        assert get.call_args[1]['params']['results'] == 15
        assert len(feed.recent) == 15
        assert latest.values['voltage'] == 14.0

    def test_get_name(self, feed):
        assert feed.get_name() == 'thingspeak'
