"""
Custom exceptions for the artist_sync package.
"""
from typing import Optional


class ArtistSyncError(Exception):
    """Base exception for all artist_sync errors."""
    pass


class ConfigurationError(ArtistSyncError):
    """Raised when configuration is invalid."""
    pass


class AuthFlowError(ArtistSyncError):
    """Raised when the authorization code cannot be captured."""
    pass


class TokenExchangeError(ArtistSyncError):
    """Raised when a grant exchange with the token endpoint fails."""
    pass


class FetchError(ArtistSyncError):
    """Raised when the listening-history service cannot be read."""
    pass


class EnrichmentError(ArtistSyncError):
    """Raised when the catalog search request itself fails."""
    pass


class RecordParseError(ArtistSyncError):
    """Raised when an artist record is missing fields or malformed."""
    pass


class PageError(ArtistSyncError):
    """Raised when processing one page of artists fails."""

    def __init__(self, page: int, cause: Optional[BaseException] = None):
        self.page = page
        self.cause = cause
        super().__init__(f"Page {page} failed: {cause}")


class StoreError(ArtistSyncError):
    """Raised when storage operations fail."""
    pass


class TokenNotFoundError(StoreError):
    """Raised when a token key is absent from the token store."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Token key not found: {key}")
