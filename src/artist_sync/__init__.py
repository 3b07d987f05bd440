"""
Artist Sync - keep a local artist catalog in step with Last.fm.

This package provides functionality to:
- Obtain and keep fresh a Spotify access token for unattended runs
- Page through a Last.fm user's artist library concurrently
- Resolve a Spotify artist id ("seed") for every newly seen artist
- Write only the artists whose playcount changed

Example:
    Basic usage from command line:

    $ artist-sync sync

    Programmatic usage:

    >>> from artist_sync import Config, ArtistStore, TokenStore
    >>> from artist_sync import CredentialManager, LastFmClient
    >>> from artist_sync import ReconciliationEngine, SpotifySearchClient
    >>> config = Config.from_env()
    >>> credentials = CredentialManager(config, TokenStore.from_url(config.redis_url))
    >>> credentials.ensure_tokens()
    >>> engine = ReconciliationEngine(
    ...     ArtistStore(config.database_path),
    ...     LastFmClient(config),
    ...     SpotifySearchClient(credentials.access_token),
    ... )
    >>> result = engine.run()
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .cli import cli
from .core.config import Config
from .core.exceptions import (
    ArtistSyncError,
    AuthFlowError,
    ConfigurationError,
    EnrichmentError,
    FetchError,
    PageError,
    RecordParseError,
    StoreError,
    TokenExchangeError,
    TokenNotFoundError,
)
from .core.models import Artist, PageReport, ReconcileResult, TokenResponse
from .core.reconcile import ArtistSnapshot, ReconciliationEngine
from .integrations import CredentialManager, LastFmClient, SpotifySearchClient
from .storage import ArtistStore, TokenStore

__all__ = [
    "__version__",
    "Config",
    "Artist",
    "TokenResponse",
    "PageReport",
    "ReconcileResult",
    "ArtistSnapshot",
    "ReconciliationEngine",
    "ArtistStore",
    "TokenStore",
    "CredentialManager",
    "LastFmClient",
    "SpotifySearchClient",
    "ArtistSyncError",
    "ConfigurationError",
    "AuthFlowError",
    "TokenExchangeError",
    "FetchError",
    "EnrichmentError",
    "RecordParseError",
    "PageError",
    "StoreError",
    "TokenNotFoundError",
    "cli",
]
