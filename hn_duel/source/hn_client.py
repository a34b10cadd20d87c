"""Hacker News API client wrapper for listing and fetching stories."""

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, Dict, List, Optional

import aiohttp

from hn_duel.config import SourceConfig
from hn_duel.errors import SourceUnavailable
from hn_duel.models.mapping import story_from_payload
from hn_duel.models.story import Story

logger = logging.getLogger(__name__)


class HackerNewsClient:
    """
    Thin async wrapper around the Hacker News Firebase API.

    Every call is a single round-trip: no retries, no caching and no
    filtering of content. All failures surface as ``SourceUnavailable``.
    """

    def __init__(
        self,
        config: SourceConfig,
        session: Optional[aiohttp.ClientSession] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the client with configuration.

        Args:
            config: Upstream API configuration
            session: Optional externally managed HTTP session (not closed by this client)
            prometheus_exporter: Optional Prometheus exporter for request metrics
        """
        self.config = config
        self.prometheus_exporter = prometheus_exporter
        self._session = session
        self._owns_session = session is None

    async def initialize(self) -> aiohttp.ClientSession:
        """
        Create the HTTP session if one was not supplied.

        Returns:
            The session used for API requests
        """
        if self._session is None or self._session.closed:
            logger.info(f"Initializing Hacker News client for {self.config.base_url}")
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout_sec),
                headers={"User-Agent": self.config.user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            logger.info("Closing Hacker News client")
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HackerNewsClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_json(
        self,
        path: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        GET a JSON document from the API.

        Args:
            path: Path relative to the configured base URL
            operation: Metric label for the request ('list' or 'item')
            params: Optional query parameters

        Returns:
            The decoded JSON body

        Raises:
            SourceUnavailable: On network errors, timeouts, non-200 status or invalid JSON
        """
        session = await self.initialize()
        url = f"{self.config.base_url.rstrip('/')}/{path}"
        timer = self.prometheus_exporter.time_request() if self.prometheus_exporter else None

        try:
            with timer if timer else nullcontext():
                async with session.get(url, params=params) as response:
                    if response.status != 200:
                        raise SourceUnavailable(
                            f"HTTP {response.status} from {url}", status=response.status
                        )
                    return await response.json(content_type=None)
        except SourceUnavailable:
            if self.prometheus_exporter:
                self.prometheus_exporter.record_source_error(operation)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            if self.prometheus_exporter:
                self.prometheus_exporter.record_source_error(operation)
            raise SourceUnavailable(f"Request to {url} failed: {e}") from e

    async def list_candidate_ids(self, limit: int) -> List[int]:
        """
        Fetch the first ``limit`` story identifiers of the configured feed.

        Args:
            limit: Maximum number of identifiers to return

        Returns:
            Story identifiers in upstream ranking order

        Raises:
            SourceUnavailable: If the request fails or the body is not a list of integers
        """
        params = {"orderBy": '"$priority"', "limitToFirst": str(limit)}
        data = await self._get_json(f"{self.config.feed}.json", "list", params=params)

        if not isinstance(data, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in data
        ):
            if self.prometheus_exporter:
                self.prometheus_exporter.record_source_error("list")
            raise SourceUnavailable(f"Malformed {self.config.feed} listing: expected a list of ids")

        logger.debug(f"Listed {len(data)} candidate ids from {self.config.feed}")
        return data[:limit]

    async def fetch_details(self, story_id: int) -> Story:
        """
        Fetch full details for a single story.

        Args:
            story_id: Hacker News item identifier

        Returns:
            The mapped Story

        Raises:
            SourceUnavailable: If the request fails or the item cannot be mapped to a Story
        """
        data = await self._get_json(f"item/{story_id}.json", "item")
        try:
            return story_from_payload(data)
        except (TypeError, ValueError) as e:
            if self.prometheus_exporter:
                self.prometheus_exporter.record_source_error("item")
            raise SourceUnavailable(f"Item {story_id} unusable: {e}") from e
