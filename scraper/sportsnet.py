"""Sportsnet schedule source."""
import logging
import math
from datetime import datetime, timedelta
from typing import Dict, List

from processor.models import Event, SportsnetItem, as_utc
from scraper.base import ScheduleSource
from scraper.errors import ParseError

logger = logging.getLogger(__name__)


class SportsnetSource(ScheduleSource):
    """Source for the Sportsnet schedule admin events API."""
    
    source_name = 'Sportsnet'
    url = 'https://schedule-admin.sportsnet.ca/v1/events'
    
    # Straddles now so events of any length that are live right now are included
    WINDOW_BEFORE = timedelta(hours=8)
    WINDOW_LENGTH = timedelta(hours=16)
    
    def fetch(self, now: datetime) -> List[Event]:
        """
        Fetch Sportsnet events scheduled around the given instant.
        
        Args:
            now: Current instant (timezone-aware UTC)
            
        Returns:
            List of Event objects
        """
        params = self.window_params(now)
        logger.debug(f"Sportsnet window: {params}")
        
        payload = self._get_json(params=params)
        if not isinstance(payload, dict) or 'data' not in payload:
            raise ParseError(self.source_name, "response is missing the 'data' list")
        
        return self._map_items(payload['data'], SportsnetItem)
    
    def window_params(self, now: datetime) -> Dict[str, str]:
        """
        Build the day_start/day_end query parameters in Unix epoch seconds.
        
        Args:
            now: Current instant (a naive value is read as UTC)
            
        Returns:
            Query parameter dict
        """
        now = as_utc(now)
        day_start = math.floor((now - self.WINDOW_BEFORE).timestamp())
        day_end = day_start + int(self.WINDOW_LENGTH.total_seconds())
        return {
            'day_start': str(day_start),
            'day_end': str(day_end)
        }
