"""
Utilities package.
"""
from .parsing import parse_unsigned

__all__ = ["parse_unsigned"]
