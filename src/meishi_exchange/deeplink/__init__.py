"""Deep link encoding, decoding and handling."""

from .codec import DecodedCard, DeepLinkCodec
from .manager import DeepLinkManager
from .schemes import create_scheme_url, is_valid_universal_link

__all__ = [
    "DecodedCard",
    "DeepLinkCodec",
    "DeepLinkManager",
    "create_scheme_url",
    "is_valid_universal_link",
]
