"""
Asset contracts held in escrow custody
"""

from .fungible import FungibleToken, TokenMetadata
from .non_fungible import NonFungibleToken

__all__ = [
    "FungibleToken",
    "TokenMetadata",
    "NonFungibleToken",
]
