"""Tests for the fetch orchestrator and the aggregation pipeline."""
import logging
import threading
from datetime import datetime, timezone
from typing import List

import pytest
import responses

from processor.fetch_orchestrator import error_message, fetch_all
from processor.models import Event, PipelineResult
from processor.pipeline import default_sources, run_pipeline
from scraper.base import ScheduleSource
from scraper.errors import FetchError
from scraper.onesoccer import OneSoccerSource
from scraper.sportsnet import SportsnetSource
from scraper.tsn import TsnSource

TSN_URL = "https://www.tsn.ca/pf/api/v3/content/fetch/sports-schedule-custom"
SPORTSNET_URL = "https://schedule-admin.sportsnet.ca/v1/events"
ONESOCCER_URL = "https://api.onesoccer.ca/api/page"

NOW = datetime(2024, 1, 15, 20, 0, tzinfo=timezone.utc)


class StaticSource(ScheduleSource):
    """Source returning fixed events."""

    def __init__(self, name: str, events: List[Event]):
        super().__init__()
        self.source_name = name
        self.events = events
        self.calls = []

    def fetch(self, now: datetime) -> List[Event]:
        self.calls.append(now)
        return list(self.events)


class FailingSource(ScheduleSource):
    """Source raising the given error."""

    def __init__(self, name: str, error: Exception):
        super().__init__()
        self.source_name = name
        self.error = error

    def fetch(self, now: datetime) -> List[Event]:
        raise self.error


def live_event(name, channel):
    return Event(
        name=name,
        duration=120,
        start_time='2024-01-15T19:00:00.000Z',
        end_time='2024-01-15T21:00:00.000Z',
        channel=channel
    )


@pytest.fixture
def tsn_payload():
    """TSN schedule with one live, one finished and one shared event."""
    return [
        {
            'headlines': {'basic': 'Maple Leafs at Canadiens'},
            'channelName': 'TSN2',
            'startTime': '2024-01-15T19:00:00.000Z',
            'endTime': '2024-01-15T22:00:00.000Z',
            'duration': 180
        },
        {
            'headlines': {'basic': 'Curling'},
            'channelName': 'TSN+',
            'startTime': '2024-01-15T19:30:00.000Z',
            'endTime': '2024-01-15T21:30:00.000Z',
            'duration': 120
        },
        {
            'headlines': {'basic': 'Morning Highlights'},
            'channelName': 'TSN1',
            'startTime': '2024-01-15T12:00:00.000Z',
            'endTime': '2024-01-15T13:00:00.000Z',
            'duration': 60
        }
    ]


@pytest.fixture
def sportsnet_payload():
    """Sportsnet schedule sharing the Leafs game with TSN."""
    return {
        'data': [
            {
                'event_name': 'Maple Leafs at Canadiens',
                'event_duration': 180,
                'start_time_utc': 1705345200,
                'end_time_utc': 1705356000,
                'primary_broadcaster': 'SN1'
            },
            {
                'event_name': 'Late Game',
                'event_duration': 180,
                'start_time_utc': 1705366800,
                'end_time_utc': 1705377600,
                'primary_broadcaster': 'SN West'
            },
            {
                'event_name': 'Blue Jays Classics',
                'event_duration': 120,
                'start_time_utc': 1705347000,
                'end_time_utc': 1705354200,
                'primary_broadcaster': 'SN NOW+'
            }
        ]
    }


@pytest.fixture
def onesoccer_payload():
    """OneSoccer page content with one live match."""
    return {
        'entries': [
            {'type': 'hero'},
            {'list': {'items': [
                {
                    'title': 'Forge FC vs Cavalry FC',
                    'duration': 120,
                    'eventStartDate': '2024-01-15T19:30:00Z',
                    'eventEndDate': '2024-01-15T21:30:00Z'
                }
            ]}}
        ]
    }


class TestFetchAll:
    """Test cases for fetch_all."""

    def test_collects_events_in_source_order(self):
        """Test that successful sources contribute all their events."""
        first = StaticSource('A', [live_event('One', 'A1')])
        second = StaticSource('B', [live_event('Two', 'B1'), live_event('Three', 'B2')])

        events, errors = fetch_all([first, second], NOW)

        assert [event.name for event in events] == ['One', 'Two', 'Three']
        assert errors == []
        assert first.calls == [NOW]
        assert second.calls == [NOW]

    def test_failure_is_isolated(self, caplog):
        """Test that a failing source is logged and recorded."""
        ok = StaticSource('TSN', [live_event('Game', 'TSN1')])
        bad = FailingSource('OneSoccer', FetchError('OneSoccer', 502, 'Bad Gateway'))

        with caplog.at_level(logging.ERROR, logger='processor.fetch_orchestrator'):
            events, errors = fetch_all([bad, ok], NOW)

        assert [event.name for event in events] == ['Game']
        assert len(errors) == 1
        assert errors[0].source == 'OneSoccer'
        assert errors[0].message == 'OneSoccer request failed with status 502: Bad Gateway'
        assert any('Failed to fetch OneSoccer schedule' in r.message for r in caplog.records)

    def test_all_sources_fail(self):
        """Test that every failure is recorded without raising."""
        sources = [
            FailingSource('TSN', RuntimeError('connection reset')),
            FailingSource('Sportsnet', KeyError('data'))
        ]

        events, errors = fetch_all(sources, NOW)

        assert events == []
        assert [(e.source, e.message) for e in errors] == [
            ('TSN', 'connection reset'),
            ('Sportsnet', "'data'")
        ]

    def test_sources_run_concurrently(self):
        """Test that sources are invoked in parallel."""
        barrier = threading.Barrier(3, timeout=5)

        class BarrierSource(ScheduleSource):
            source_name = 'barrier'

            def fetch(self, now):
                barrier.wait()
                return [live_event('Game', 'X')]

        events, errors = fetch_all([BarrierSource() for _ in range(3)], NOW)

        assert len(events) == 3
        assert errors == []

    def test_no_sources(self):
        """Test fetching with an empty source list."""
        assert fetch_all([], NOW) == ([], [])

    def test_error_message_falls_back_to_type(self):
        """Test display string for exceptions without a message."""
        assert error_message(TimeoutError()) == 'TimeoutError'


class TestRunPipeline:
    """Test cases for run_pipeline."""

    @responses.activate
    def test_full_scenario(self, tsn_payload, sportsnet_payload, onesoccer_payload):
        """Test a sorted, deduplicated, live-only listing from all sources."""
        responses.add(responses.GET, TSN_URL, json=tsn_payload, status=200)
        responses.add(responses.GET, SPORTSNET_URL, json=sportsnet_payload, status=200)
        responses.add(responses.GET, ONESOCCER_URL, json=onesoccer_payload, status=200)

        result = run_pipeline(NOW)

        assert isinstance(result, PipelineResult)
        assert result.errors == []
        assert [(event.name, event.channel) for event in result.events] == [
            ('Forge FC vs Cavalry FC', 'OneSoccer'),
            ('Maple Leafs at Canadiens', 'SN1, TSN2'),
            ('Blue Jays Classics', 'SN NOW+'),
            ('Curling', 'TSN+')
        ]
        merged = result.events[1]
        assert merged.start_time == '2024-01-15T19:00:00.000Z'
        assert merged.end_time == '2024-01-15T22:00:00.000Z'
        assert len(responses.calls) == 3

    @responses.activate
    def test_partial_failure(self, tsn_payload, sportsnet_payload):
        """Test that a broken OneSoccer page does not hide other sources."""
        responses.add(responses.GET, TSN_URL, json=tsn_payload, status=200)
        responses.add(responses.GET, SPORTSNET_URL, json=sportsnet_payload, status=200)
        responses.add(responses.GET, ONESOCCER_URL, json={'entries': []}, status=200)

        result = run_pipeline(NOW)

        assert len(result.errors) == 1
        assert result.errors[0].source == 'OneSoccer'
        assert 'entries[1]' in result.errors[0].message
        names = [event.name for event in result.events]
        assert 'Maple Leafs at Canadiens' in names
        assert 'Curling' in names
        assert 'Forge FC vs Cavalry FC' not in names

    @responses.activate
    def test_upstream_error_status(self, sportsnet_payload, onesoccer_payload):
        """Test that a TSN outage is reported with status and body."""
        responses.add(responses.GET, TSN_URL, body="Gateway Timeout", status=504)
        responses.add(responses.GET, SPORTSNET_URL, json=sportsnet_payload, status=200)
        responses.add(responses.GET, ONESOCCER_URL, json=onesoccer_payload, status=200)

        result = run_pipeline(NOW)

        assert [error.source for error in result.errors] == ['TSN']
        assert 'status 504' in result.errors[0].message
        leafs = [e for e in result.events if e.name == 'Maple Leafs at Canadiens']
        assert leafs[0].channel == 'SN1'

    @responses.activate
    def test_empty_sources(self):
        """Test that empty schedules produce an empty result."""
        responses.add(responses.GET, TSN_URL, json=[], status=200)
        responses.add(responses.GET, SPORTSNET_URL, json={'data': []}, status=200)
        responses.add(
            responses.GET,
            ONESOCCER_URL,
            json={'entries': [{}, {'list': {'items': []}}]},
            status=200
        )

        result = run_pipeline(NOW)

        assert result.to_dict() == {'events': [], 'errors': []}

    def test_custom_sources(self):
        """Test that injected sources replace the defaults."""
        source = StaticSource('Test', [live_event('Game', 'CBC')])

        result = run_pipeline(NOW, sources=[source])

        assert [event.channel for event in result.events] == ['CBC']
        assert source.calls == [NOW]

    def test_each_run_is_fresh(self):
        """Test that repeated runs fetch again."""
        source = StaticSource('Test', [live_event('Game', 'CBC')])

        run_pipeline(NOW, sources=[source])
        run_pipeline(NOW, sources=[source])

        assert len(source.calls) == 2

    def test_naive_now_is_passed_down_as_utc(self):
        """Test that sources and the liveness check see the same UTC instant."""
        source = StaticSource('Test', [live_event('Game', 'CBC')])

        result = run_pipeline(datetime(2024, 1, 15, 20, 0), sources=[source])

        assert source.calls == [NOW]
        assert source.calls[0].tzinfo is timezone.utc
        assert [event.name for event in result.events] == ['Game']


class TestDefaultSources:
    """Test cases for default_sources."""

    def test_default_sources_order_and_config(self):
        """Test source order, timeout and URL overrides."""
        sources = default_sources(timeout=10, sportsnet_url='http://localhost/sn')

        assert [type(source) for source in sources] == [TsnSource, SportsnetSource, OneSoccerSource]
        assert all(source.timeout == 10 for source in sources)
        assert sources[0].url == TSN_URL
        assert sources[1].url == 'http://localhost/sn'
        assert sources[2].url == ONESOCCER_URL

    def test_default_sources_without_timeout(self):
        """Test that no timeout is imposed by default."""
        assert all(source.timeout is None for source in default_sources())
