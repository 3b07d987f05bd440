"""
Last.fm integration package.
"""
from .client import LastFmClient

__all__ = ["LastFmClient"]
