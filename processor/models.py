"""Data models for live broadcast aggregation."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from scraper.errors import ParseError

Duration = Optional[Union[int, float]]


def as_utc(value: datetime) -> datetime:
    """Convert to UTC, reading a naive datetime as UTC rather than host-local time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_instant(value: datetime) -> str:
    """
    Format a datetime as a UTC ISO 8601 string.

    Milliseconds are always written; microseconds are kept when they are not
    a whole number of milliseconds, so sub-millisecond differences survive.

    Args:
        value: Timezone-aware datetime (naive values are assumed UTC)

    Returns:
        String such as 2024-01-15T19:00:00.000Z or 2024-01-15T19:00:00.000250Z
    """
    value = as_utc(value)
    if value.microsecond % 1000:
        fraction = f"{value.microsecond:06d}"
    else:
        fraction = f"{value.microsecond // 1000:03d}"
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + fraction + 'Z'


def parse_instant(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into a timezone-aware UTC datetime.

    Args:
        value: ISO 8601 string, with offset, 'Z' suffix or naive (UTC)

    Returns:
        UTC datetime

    Raises:
        ValueError: If the string is not a valid ISO 8601 timestamp
    """
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    return as_utc(datetime.fromisoformat(text))


def normalize_instant(value: Any, source: str, field_name: str) -> str:
    """Normalize an upstream ISO timestamp, raising ParseError when invalid."""
    if not isinstance(value, str):
        raise ParseError(source, f"field '{field_name}' must be a timestamp string, got {value!r}")
    try:
        return format_instant(parse_instant(value))
    except ValueError:
        raise ParseError(source, f"field '{field_name}' is not an ISO 8601 timestamp: {value!r}")


def normalize_epoch(value: Any, source: str, field_name: str) -> str:
    """Normalize upstream Unix epoch seconds, raising ParseError when invalid."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(source, f"field '{field_name}' must be epoch seconds, got {value!r}")
    try:
        return format_instant(datetime.fromtimestamp(value, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        raise ParseError(source, f"field '{field_name}' is out of range: {value!r}")


def _require(item: Dict[str, Any], key: str, source: str) -> Any:
    if key not in item or item[key] is None:
        raise ParseError(source, f"item is missing required field '{key}'")
    return item[key]


def _require_str(item: Dict[str, Any], key: str, source: str) -> str:
    value = _require(item, key, source)
    if not isinstance(value, str):
        raise ParseError(source, f"field '{key}' must be a string, got {value!r}")
    return value


def _duration(item: Dict[str, Any], key: str, source: str) -> Duration:
    value = item.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(source, f"field '{key}' must be numeric, got {value!r}")
    return value


def _ensure_object(item: Any, source: str) -> Dict[str, Any]:
    if not isinstance(item, dict):
        raise ParseError(source, f"expected a JSON object per item, got {type(item).__name__}")
    return item


@dataclass
class Event:
    """Canonical live broadcast listing."""
    name: str
    duration: Duration
    start_time: str
    end_time: str
    channel: str

    @property
    def identity(self) -> tuple:
        """Key shared by records describing the same broadcast."""
        return (self.name, self.start_time, self.end_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'duration': self.duration,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'channel': self.channel
        }


@dataclass
class ErrorRecord:
    """Per-source failure shown to the user as a warning."""
    source: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {'source': self.source, 'message': self.message}


@dataclass
class PipelineResult:
    """Result of one aggregation run."""
    events: List[Event] = field(default_factory=list)
    errors: List[ErrorRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events': [event.to_dict() for event in self.events],
            'errors': [error.to_dict() for error in self.errors]
        }


@dataclass
class TsnItem:
    """Schedule item from the TSN sports schedule feed."""
    headline: str
    channel_name: str
    start_time: str
    end_time: str
    duration: Duration

    SOURCE = 'TSN'

    @classmethod
    def from_dict(cls, raw: Any) -> 'TsnItem':
        item = _ensure_object(raw, cls.SOURCE)
        headlines = _require(item, 'headlines', cls.SOURCE)
        if not isinstance(headlines, dict):
            raise ParseError(cls.SOURCE, "field 'headlines' must be an object")
        return cls(
            headline=_require_str(headlines, 'basic', cls.SOURCE),
            channel_name=_require_str(item, 'channelName', cls.SOURCE),
            start_time=normalize_instant(_require(item, 'startTime', cls.SOURCE), cls.SOURCE, 'startTime'),
            end_time=normalize_instant(_require(item, 'endTime', cls.SOURCE), cls.SOURCE, 'endTime'),
            duration=_duration(item, 'duration', cls.SOURCE)
        )

    def to_event(self) -> Event:
        return Event(
            name=self.headline,
            duration=self.duration,
            start_time=self.start_time,
            end_time=self.end_time,
            channel=self.channel_name
        )


@dataclass
class SportsnetItem:
    """Event from the Sportsnet schedule admin API."""
    event_name: str
    event_duration: Duration
    start_time: str
    end_time: str
    broadcasters: List[str]

    SOURCE = 'Sportsnet'
    BROADCASTER_FIELDS = (
        'primary_broadcaster',
        'secondary_broadcaster',
        'tertiary_broadcaster'
    )

    @classmethod
    def from_dict(cls, raw: Any) -> 'SportsnetItem':
        item = _ensure_object(raw, cls.SOURCE)
        broadcasters = []
        for key in cls.BROADCASTER_FIELDS:
            value = item.get(key)
            if value is None or value == '':
                continue
            if not isinstance(value, str):
                raise ParseError(cls.SOURCE, f"field '{key}' must be a string, got {value!r}")
            broadcasters.append(value)
        return cls(
            event_name=_require_str(item, 'event_name', cls.SOURCE),
            event_duration=_duration(item, 'event_duration', cls.SOURCE),
            start_time=normalize_epoch(_require(item, 'start_time_utc', cls.SOURCE), cls.SOURCE, 'start_time_utc'),
            end_time=normalize_epoch(_require(item, 'end_time_utc', cls.SOURCE), cls.SOURCE, 'end_time_utc'),
            broadcasters=broadcasters
        )

    def to_event(self) -> Event:
        return Event(
            name=self.event_name,
            duration=self.event_duration,
            start_time=self.start_time,
            end_time=self.end_time,
            channel=', '.join(self.broadcasters)
        )


@dataclass
class OneSoccerItem:
    """Listing from the OneSoccer page content API."""
    title: str
    duration: Duration
    event_start_date: str
    event_end_date: str

    SOURCE = 'OneSoccer'
    CHANNEL = 'OneSoccer'

    @classmethod
    def from_dict(cls, raw: Any) -> 'OneSoccerItem':
        item = _ensure_object(raw, cls.SOURCE)
        return cls(
            title=_require_str(item, 'title', cls.SOURCE),
            duration=_duration(item, 'duration', cls.SOURCE),
            event_start_date=normalize_instant(
                _require(item, 'eventStartDate', cls.SOURCE), cls.SOURCE, 'eventStartDate'
            ),
            event_end_date=normalize_instant(
                _require(item, 'eventEndDate', cls.SOURCE), cls.SOURCE, 'eventEndDate'
            )
        )

    def to_event(self) -> Event:
        return Event(
            name=self.title,
            duration=self.duration,
            start_time=self.event_start_date,
            end_time=self.event_end_date,
            channel=self.CHANNEL
        )
