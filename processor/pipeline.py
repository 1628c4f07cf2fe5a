"""Aggregation pipeline entry point."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from processor.event_processor import EventProcessor
from processor.fetch_orchestrator import fetch_all
from processor.models import PipelineResult, as_utc
from scraper.base import ScheduleSource
from scraper.onesoccer import OneSoccerSource
from scraper.sportsnet import SportsnetSource
from scraper.tsn import TsnSource

logger = logging.getLogger(__name__)


def default_sources(
    timeout: Optional[float] = None,
    tsn_url: Optional[str] = None,
    sportsnet_url: Optional[str] = None,
    onesoccer_url: Optional[str] = None
) -> List[ScheduleSource]:
    """
    Build the TSN, Sportsnet and OneSoccer sources.
    
    Args:
        timeout: HTTP request timeout in seconds applied to every source
        tsn_url: Optional TSN endpoint override
        sportsnet_url: Optional Sportsnet endpoint override
        onesoccer_url: Optional OneSoccer endpoint override
        
    Returns:
        List of sources in invocation order
    """
    return [
        TsnSource(timeout=timeout, url=tsn_url),
        SportsnetSource(timeout=timeout, url=sportsnet_url),
        OneSoccerSource(timeout=timeout, url=onesoccer_url)
    ]


def run_pipeline(
    now: datetime,
    sources: Optional[Sequence[ScheduleSource]] = None
) -> PipelineResult:
    """
    Build the live listing for the given instant.
    
    Fetches every source, then keeps live events, merges broadcasts shown
    on several channels and sorts for display. Source failures are
    reported in the result's errors instead of being raised.
    
    Args:
        now: Current instant (a naive value is read as UTC)
        sources: Sources to query, defaults to default_sources()
        
    Returns:
        PipelineResult with ordered events and per-source errors
    """
    now = as_utc(now)
    if sources is None:
        sources = default_sources()
    
    logger.info(f"Running pipeline for {len(sources)} sources at {now.isoformat()}")
    events, errors = fetch_all(sources, now)
    
    processed_events = EventProcessor().process_events(events, now)
    
    if errors:
        logger.warning(
            f"Pipeline completed with {len(errors)} failed sources: "
            f"{', '.join(error.source for error in errors)}"
        )
    
    return PipelineResult(events=processed_events, errors=errors)
