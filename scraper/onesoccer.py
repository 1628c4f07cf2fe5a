"""OneSoccer schedule source."""
from datetime import datetime
from typing import Any, List

from processor.models import Event, OneSoccerItem
from scraper.base import ScheduleSource
from scraper.errors import ParseError


class OneSoccerSource(ScheduleSource):
    """
    Source for the OneSoccer page content API.
    
    The schedule is not exposed directly: it is the second entry of the home
    page content, at entries[1].list.items. This depends on how the upstream
    orders its page sections, so any change to that layout surfaces as a
    ParseError naming the part of the path that is missing.
    """
    
    source_name = 'OneSoccer'
    url = 'https://api.onesoccer.ca/api/page'
    PAGE_PATH = '/'
    SCHEDULE_ENTRY_INDEX = 1
    
    def fetch(self, now: datetime) -> List[Event]:
        payload = self._get_json(params={'path': self.PAGE_PATH})
        return self._map_items(self._schedule_items(payload), OneSoccerItem)
    
    def _schedule_items(self, payload: Any) -> Any:
        """Walk entries[1].list.items, failing with a descriptive ParseError."""
        if not isinstance(payload, dict):
            raise ParseError(self.source_name, "page content is not a JSON object")
        
        entries = payload.get('entries')
        if not isinstance(entries, list):
            raise ParseError(self.source_name, "page content has no 'entries' list")
        if len(entries) <= self.SCHEDULE_ENTRY_INDEX:
            raise ParseError(
                self.source_name,
                f"expected schedule at entries[{self.SCHEDULE_ENTRY_INDEX}], "
                f"page has {len(entries)} entries"
            )
        
        entry = entries[self.SCHEDULE_ENTRY_INDEX]
        schedule = entry.get('list') if isinstance(entry, dict) else None
        if not isinstance(schedule, dict):
            raise ParseError(
                self.source_name,
                f"entries[{self.SCHEDULE_ENTRY_INDEX}] has no 'list' object"
            )
        if 'items' not in schedule:
            raise ParseError(
                self.source_name,
                f"entries[{self.SCHEDULE_ENTRY_INDEX}].list has no 'items'"
            )
        return schedule['items']
