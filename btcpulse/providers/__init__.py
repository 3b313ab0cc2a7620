"""
Upstream data providers.

Each provider wraps one public HTTP API, validates its responses at the
boundary, and returns package models.
"""

from .base import BaseDataProvider
from .coinbase import CoinbaseProvider
from .coinlore import CoinLoreProvider
from .ecb import EcbProvider

__all__ = [
    "BaseDataProvider",
    "CoinbaseProvider",
    "CoinLoreProvider",
    "EcbProvider",
]
