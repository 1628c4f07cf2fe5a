"""TSN sports schedule source."""
from datetime import datetime
from typing import List

from processor.models import Event, TsnItem
from scraper.base import ScheduleSource


class TsnSource(ScheduleSource):
    """Source for the TSN custom sports schedule feed."""
    
    source_name = 'TSN'
    url = 'https://www.tsn.ca/pf/api/v3/content/fetch/sports-schedule-custom'
    
    def fetch(self, now: datetime) -> List[Event]:
        """
        Fetch the TSN schedule.
        
        The feed returns a JSON array of items with ISO timestamps, mapped 1:1.
        """
        return self._map_items(self._get_json(), TsnItem)
