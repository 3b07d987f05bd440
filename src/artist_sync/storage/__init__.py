"""
Persistent stores for artists and OAuth tokens.
"""
from .artists import ArtistStore
from .tokens import TokenKey, TokenStore

__all__ = ["ArtistStore", "TokenStore", "TokenKey"]
