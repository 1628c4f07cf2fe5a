"""Concurrent fetching across schedule sources with per-source isolation."""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Sequence, Tuple

from processor.models import ErrorRecord, Event
from scraper.base import ScheduleSource

logger = logging.getLogger(__name__)


def error_message(error: Exception) -> str:
    """Display string for a failed source."""
    return str(error) or type(error).__name__


def fetch_all(
    sources: Sequence[ScheduleSource],
    now: datetime
) -> Tuple[List[Event], List[ErrorRecord]]:
    """
    Fetch events from every source concurrently.
    
    Waits for all sources to settle. A failing source is logged, recorded
    as an ErrorRecord and contributes no events; the others are unaffected.
    
    Args:
        sources: Schedule sources to query
        now: Current instant passed to each source
        
    Returns:
        Tuple of (events in source order, errors)
    """
    events: List[Event] = []
    errors: List[ErrorRecord] = []
    
    if not sources:
        return events, errors
    
    with ThreadPoolExecutor(max_workers=len(sources)) as executor:
        futures = [executor.submit(source.fetch, now) for source in sources]
        
        for source, future in zip(sources, futures):
            try:
                source_events = future.result()
            except Exception as e:
                logger.error(
                    f"Failed to fetch {source.source_name} schedule: {e}",
                    extra={'source': source.source_name, 'error_type': type(e).__name__},
                    exc_info=True
                )
                errors.append(ErrorRecord(source=source.source_name, message=error_message(e)))
                continue
            
            logger.info(f"Source {source.source_name}: fetched {len(source_events)} events")
            events.extend(source_events)
    
    return events, errors
