"""
Spotify catalog search used to resolve artist seeds.
"""
import logging
from typing import Any, Callable, Optional

import requests

from ...core.exceptions import ArtistSyncError, EnrichmentError

logger = logging.getLogger(__name__)

SPOTIFY_SEARCH_URL = "https://api.spotify.com/v1/search"


def extract_seed(payload: Any) -> str:
    """
    Pull the artist id out of a search response.

    The id is the third colon-separated segment of the first match's
    uri (spotify:artist:<id>). Anything missing or malformed yields "".
    """
    if not isinstance(payload, dict):
        return ""

    artists = payload.get("artists")
    if not isinstance(artists, dict):
        return ""

    items = artists.get("items")
    if not isinstance(items, list) or not items:
        return ""

    first = items[0]
    if not isinstance(first, dict):
        return ""

    uri = first.get("uri")
    if not isinstance(uri, str):
        return ""

    parts = uri.split(":")
    if len(parts) < 3:
        return ""
    return parts[2]


class SpotifySearchClient:
    """Looks up the best-matching Spotify artist id for a name."""

    def __init__(
        self,
        token_provider: Callable[[], str],
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.timeout = timeout

    def lookup_seed(self, artist_name: str, access_token: Optional[str] = None) -> str:
        """
        Find the catalog id for an artist.

        Args:
            artist_name: Name to search for
            access_token: Bearer token; taken from the provider when omitted

        Returns:
            The artist id, or "" when nothing usable matched

        Raises:
            EnrichmentError: If no access token can be obtained, or the
                request fails or is rejected
        """
        try:
            token = access_token or self.token_provider()
        except ArtistSyncError as e:
            raise EnrichmentError(
                f"No access token for searching {artist_name!r}: {e}"
            ) from e

        try:
            response = self.session.get(
                SPOTIFY_SEARCH_URL,
                params={"q": artist_name, "type": "artist", "limit": 1},
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise EnrichmentError(f"Search for {artist_name!r} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Search for {artist_name!r} returned a non-JSON body")
            return ""

        seed = extract_seed(payload)
        if not seed:
            logger.debug(f"No catalog match for {artist_name!r}")
        return seed
