"""Event processor for liveness filtering, deduplication and ordering."""
import logging
from datetime import datetime
from typing import Dict, List, Tuple

from processor.models import Event, as_utc, parse_instant

logger = logging.getLogger(__name__)

LOW_PRIORITY_PREFIXES = ('SN NOW+', 'TSN+')
CHANNEL_SEPARATOR = ', '


def is_low_priority_channel(channel: str) -> bool:
    """Streaming-only channels are listed after broadcast channels."""
    return channel.startswith(LOW_PRIORITY_PREFIXES)


def channel_sort_key(channel: str) -> Tuple[bool, str]:
    """
    Ordering shared by channel joining and event sorting.

    Low-priority channels sort after all others; within a tier channels
    compare by code point (case-sensitive), not locale collation.

    Args:
        channel: Channel display name

    Returns:
        Sort key tuple
    """
    return (is_low_priority_channel(channel), channel)


class EventProcessor:
    """Processor for turning fetched schedules into a live listing."""

    def process_events(self, events: List[Event], now: datetime) -> List[Event]:
        """
        Filter, merge and sort fetched events.

        Args:
            events: Events from all sources
            now: Current instant (timezone-aware UTC)

        Returns:
            Ordered list of live, deduplicated events
        """
        live_events = self.filter_live(events, now)
        merged_events = self.merge_duplicates(live_events)
        sorted_events = self.sort_events(merged_events)

        logger.info(
            f"Processed {len(events)} events: {len(live_events)} live, "
            f"{len(sorted_events)} after merging duplicates"
        )
        return sorted_events

    def is_live(self, event: Event, now: datetime) -> bool:
        """
        Check whether an event is on air at the given instant.

        Both bounds are inclusive. A naive now is taken as UTC.
        """
        now = as_utc(now)
        start = parse_instant(event.start_time)
        end = parse_instant(event.end_time)
        return start <= now <= end

    def filter_live(self, events: List[Event], now: datetime) -> List[Event]:
        return [event for event in events if self.is_live(event, now)]

    def merge_duplicates(self, events: List[Event]) -> List[Event]:
        """
        Combine records of the same broadcast on several channels.

        Events with equal name, start and end time collapse into one event
        whose channel lists every contributing channel. Channel strings that
        are already joined lists are kept whole.

        Args:
            events: Events to deduplicate

        Returns:
            One event per broadcast, in order of first appearance
        """
        groups: Dict[tuple, List[Event]] = {}
        for event in events:
            groups.setdefault(event.identity, []).append(event)

        merged = []
        for group in groups.values():
            first = group[0]
            channels = sorted((e.channel for e in group), key=channel_sort_key)
            merged.append(
                Event(
                    name=first.name,
                    duration=first.duration,
                    start_time=first.start_time,
                    end_time=first.end_time,
                    channel=CHANNEL_SEPARATOR.join(channels)
                )
            )
            if len(group) > 1:
                logger.debug(f"Merged {len(group)} listings of '{first.name}'")

        return merged

    def sort_events(self, events: List[Event]) -> List[Event]:
        """Stable sort by channel, low-priority channels last."""
        return sorted(events, key=lambda event: channel_sort_key(event.channel))
