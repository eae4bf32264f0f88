"""
ICS feed fetching for icsmirror.

Just fetches raw VCALENDAR bytes over HTTP(S); decoding happens in the
sync engine.
"""

import logging
from typing import Optional

import requests

from .config import DEFAULT_USER_AGENT
from .models import FetchError, Source


logger = logging.getLogger(__name__)


class ICSSubscription:
    """Handler for one read-only ICS feed."""

    def __init__(
        self,
        source: Source,
        timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize an ICS subscription.

        Args:
            source: The configured source to fetch
            timeout: Request timeout in seconds (None: no timeout)
            user_agent: Value of the User-Agent header
            session: Optional requests session to reuse connections
        """
        self.source = source
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def url(self) -> str:
        return self.source.url

    def fetch(self) -> bytes:
        """
        Fetch the ICS document from the URL.

        Returns:
            The response body.

        Raises:
            FetchError: transport failure or a non-2xx status
        """
        http = self._session or requests
        try:
            response = http.get(
                self.url,
                timeout=self.timeout,
                headers={
                    'User-Agent': self.user_agent,
                    'Accept': 'text/calendar'
                }
            )
        except requests.RequestException as e:
            raise FetchError(f"fetching calendar {self.name!r}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(f"fetching calendar {self.name!r}: HTTP {response.status_code}")

        logger.debug("Fetched %d bytes from %s", len(response.content), self.url)
        return response.content
