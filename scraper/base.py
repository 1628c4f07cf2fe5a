"""Base class for upstream schedule sources."""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from processor.models import Event
from scraper.errors import FetchError, ParseError

logger = logging.getLogger(__name__)


class ScheduleSource(ABC):
    """A public schedule API that produces zero or more Events."""

    source_name: str = ''
    url: str = ''

    def __init__(
        self,
        timeout: Optional[float] = None,
        url: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the schedule source.

        Args:
            timeout: HTTP request timeout in seconds (None: client default)
            url: Endpoint override, defaults to the class URL
            session: Optional requests session to issue calls through
        """
        self.timeout = timeout
        if url:
            self.url = url
        self.session = session

    @abstractmethod
    def fetch(self, now: datetime) -> List[Event]:
        """
        Fetch the current schedule and map it to Events.

        Args:
            now: Current instant (timezone-aware UTC)

        Returns:
            List of Event objects, not filtered for liveness
        """

    def _get_json(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue a GET request and decode the JSON body.

        Raises:
            FetchError: If the response status is not successful
            ParseError: If the body is not valid JSON
        """
        logger.info(f"Fetching {self.source_name} schedule from {self.url}")
        http = self.session or requests
        response = http.get(self.url, params=params, timeout=self.timeout)

        if not response.ok:
            raise FetchError(self.source_name, response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(self.source_name, f"response is not valid JSON: {e}")

    def _map_items(self, raw_items: Any, item_type) -> List[Event]:
        """Validate a list of raw items and convert each one to an Event."""
        if not isinstance(raw_items, list):
            raise ParseError(
                self.source_name,
                f"expected a list of items, got {type(raw_items).__name__}"
            )

        events = [item_type.from_dict(raw).to_event() for raw in raw_items]
        logger.info(f"Mapped {len(events)} {self.source_name} events")
        return events
