"""
Integration packages for external services.
"""
from .lastfm import LastFmClient
from .spotify import CredentialManager, SpotifySearchClient

__all__ = ["LastFmClient", "CredentialManager", "SpotifySearchClient"]
