"""Stream access module for the anime catalog service.

This module handles:
- Episode reference encoding/decoding
- Stream token issuance and verification
- Episode resolution for verified references
"""

from .reference import decode_reference, encode_reference
from .resolver import EpisodeResolver
from .tokens import MIN_SECRET_LENGTH, StreamTokenService

__all__ = [
    "encode_reference",
    "decode_reference",
    "StreamTokenService",
    "MIN_SECRET_LENGTH",
    "EpisodeResolver",
]
