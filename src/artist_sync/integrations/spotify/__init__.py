"""
Spotify integration package.
"""
from .auth import CredentialManager, capture_authorization_code
from .search import SpotifySearchClient

__all__ = ["CredentialManager", "SpotifySearchClient", "capture_authorization_code"]
