"""
Last.fm library client for paging through a user's artists.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from ...core.config import Config
from ...core.exceptions import FetchError

logger = logging.getLogger(__name__)

LASTFM_API_URL = "http://ws.audioscrobbler.com/2.0/"


class LastFmClient:
    """Reads the library.getartists listing one page at a time."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _base_params(self) -> Dict[str, Any]:
        return {
            "method": "library.getartists",
            "api_key": self.config.lastfm_api_key,
            "user": self.config.lastfm_username,
            "limit": self.config.page_limit,
            "format": "json",
        }

    def _get_artists_envelope(self, page: Optional[int] = None) -> Dict[str, Any]:
        params = self._base_params()
        if page is not None:
            params["page"] = page
        label = f"page {page}" if page is not None else "probe"

        try:
            response = self.session.get(
                LASTFM_API_URL, params=params, timeout=self.config.request_timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Last.fm request ({label}) failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"Last.fm response ({label}) is not valid JSON") from e

        if not isinstance(payload, dict):
            raise FetchError(f"Unexpected Last.fm response ({label})")

        if "error" in payload:
            raise FetchError(
                f"Last.fm error {payload.get('error')} ({label}): "
                f"{payload.get('message', 'unknown error')}"
            )

        artists = payload.get("artists")
        return artists if isinstance(artists, dict) else {}

    def get_total_pages(self) -> int:
        """
        Ask Last.fm how many pages the library spans.

        Raises:
            FetchError: If the request fails or totalPages is absent or
                not a number
        """
        envelope = self._get_artists_envelope()
        attributes = envelope.get("@attr")
        if not isinstance(attributes, dict) or "totalPages" not in attributes:
            raise FetchError("Last.fm response has no totalPages")

        try:
            total_pages = int(attributes["totalPages"])
        except (TypeError, ValueError) as e:
            raise FetchError(
                f"Last.fm totalPages is not numeric: {attributes['totalPages']!r}"
            ) from e

        if total_pages < 0:
            raise FetchError(f"Last.fm totalPages is negative: {total_pages}")

        logger.info(f"Last.fm library spans {total_pages} pages")
        return total_pages

    def fetch_page(self, page: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw artist records.

        Returns an empty list when the page carries no artist list.
        """
        envelope = self._get_artists_envelope(page)
        artists = envelope.get("artist")

        if artists is None:
            logger.debug(f"Page {page} has no artists")
            return []
        # single results come back as an object instead of a list
        if isinstance(artists, dict):
            return [artists]
        if not isinstance(artists, list):
            logger.warning(f"Page {page} has an unexpected artist field, ignoring it")
            return []
        return artists
