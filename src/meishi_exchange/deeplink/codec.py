"""Encoding business cards into share URLs and decoding them back.

Three URL shapes are produced, all carrying the card as base64 JSON in the
``card`` query parameter:

- share:      ``{base}/share?card=..&level=..&v=1``
- app clip:   ``{clip}?card=..&level=..&source=qr``
- temporary:  ``{base}/temp?card=..&level=..&expires=<unix seconds>``
"""

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import SplitResult, parse_qs, urlencode, urlsplit

from pydantic import ValidationError  # type: ignore

from ..core.enums import ContactSource, LinkKind, LinkRoute, SharingLevel
from ..core.errors import ExpiredLinkError, InvalidFormatError
from ..core.result import Result
from ..domain.models import BusinessCard
from ..utils.logging_config import get_module_logger

logger = get_module_logger(__name__)

Clock = Callable[[], datetime]

LINK_FORMAT_VERSION = "1"
PAYLOAD_PARAMS = ("card", "data")

# Contact source recorded for each recognized route
ROUTE_SOURCES = {
    LinkRoute.BUSINESS_CARD: ContactSource.QR_CODE,
    LinkRoute.SHARE_LINK: ContactSource.SHARE_LINK,
    LinkRoute.APP_CLIP: ContactSource.QR_CODE,
}


@dataclass(frozen=True)
class DecodedCard:
    """A card recovered from a link or a raw QR payload."""

    card: BusinessCard
    source: ContactSource
    level: Optional[SharingLevel] = None
    route: Optional[LinkRoute] = None


class DeepLinkCodec:
    """Stateless encoder/decoder for business card links."""

    def __init__(
        self,
        base_url: str = "https://airmeishi.app",
        app_clip_url: str = "https://airmeishi.app/clip",
        clock: Optional[Clock] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.app_clip_url = app_clip_url.rstrip("/")
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Encoding

    def encode(
        self,
        card: BusinessCard,
        sharing_level: SharingLevel,
        kind: LinkKind = LinkKind.SHARE,
        expiration_hours: int = 24,
    ) -> Result[str]:
        """
        Build a link carrying ``card`` filtered for ``sharing_level``.

        Args:
            card: The card to share
            sharing_level: Which fields to include
            kind: URL shape to produce
            expiration_hours: Lifetime of temporary links

        Returns:
            Result with the URL, or InvalidFormatError if the card could not
            be serialized
        """
        sharing_level = SharingLevel(sharing_level)
        kind = LinkKind(kind)

        try:
            payload = self.encode_payload(card.filtered_card(sharing_level))
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to serialize card {card.id}: {e}")
            return Result.failure(InvalidFormatError(f"Failed to encode card: {e}"))

        params: List[Tuple[str, str]] = [
            ("card", payload),
            ("level", sharing_level.value),
        ]

        if kind == LinkKind.SHARE:
            params.append(("v", LINK_FORMAT_VERSION))
            url = f"{self.base_url}/share?{urlencode(params)}"
        elif kind == LinkKind.APP_CLIP:
            params.append(("source", "qr"))
            url = f"{self.app_clip_url}?{urlencode(params)}"
        else:
            expires_at = self._clock() + timedelta(hours=expiration_hours)
            params.append(("expires", str(int(expires_at.timestamp()))))
            url = f"{self.base_url}/temp?{urlencode(params)}"

        logger.debug(f"Encoded card {card.id} as {kind.value} link ({sharing_level.value})")
        return Result.success(url)

    def create_share_url(self, card: BusinessCard, sharing_level: SharingLevel) -> Result[str]:
        return self.encode(card, sharing_level, LinkKind.SHARE)

    def create_app_clip_url(
        self, card: BusinessCard, sharing_level: SharingLevel
    ) -> Result[str]:
        return self.encode(card, sharing_level, LinkKind.APP_CLIP)

    def create_temporary_share_link(
        self, card: BusinessCard, sharing_level: SharingLevel, expiration_hours: int = 24
    ) -> Result[str]:
        return self.encode(card, sharing_level, LinkKind.TEMPORARY, expiration_hours)

    @staticmethod
    def encode_payload(card: BusinessCard) -> str:
        """Serialize a card to the base64 JSON used in links."""
        return base64.b64encode(card.model_dump_json().encode("utf-8")).decode("ascii")

    # Decoding

    @staticmethod
    def is_url(text: str) -> bool:
        """True when ``text`` is a well-formed absolute URL."""
        text = text.strip()
        if not text or any(ch.isspace() for ch in text):
            return False
        try:
            parts = urlsplit(text)
        except ValueError:
            return False
        return bool(parts.scheme) and bool(parts.netloc)

    def classify(self, url: str) -> Optional[LinkRoute]:
        """
        Recognize the URL shape.

        The predicates overlap; they are checked in order business card,
        share link, app clip and the first match wins.
        """
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            return None
        return self._classify_parts(parts)

    @staticmethod
    def _classify_parts(parts: SplitResult) -> Optional[LinkRoute]:
        path = parts.path
        host = parts.hostname or ""
        if "/card" in path or "/share" in path:
            return LinkRoute.BUSINESS_CARD
        if "/share" in path or "/temp" in path:
            return LinkRoute.SHARE_LINK
        if "/clip" in path or "clip" in host:
            return LinkRoute.APP_CLIP
        return None

    def decode(self, url: str) -> Result[DecodedCard]:
        """
        Recover the card carried by a link.

        Expiration is checked before the payload is looked at, so an expired
        link fails with ExpiredLinkError whatever it contains.
        """
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            return Result.failure(InvalidFormatError("Invalid link"))

        route = self._classify_parts(parts)
        if route is None:
            return Result.failure(InvalidFormatError("Unsupported link"))

        params = parse_qs(parts.query, keep_blank_values=True)

        expires = self._parse_expiration(params)
        if expires is not None and self._clock() >= expires:
            logger.info(f"Rejected expired link (expired {expires.isoformat()})")
            return Result.failure(ExpiredLinkError())

        raw_payload = self._first_param(params, PAYLOAD_PARAMS)
        if raw_payload is None:
            return Result.failure(InvalidFormatError("Invalid card data"))

        try:
            data = self._b64decode(raw_payload)
        except (binascii.Error, ValueError):
            return Result.failure(InvalidFormatError("Invalid card data"))

        parsed = self._parse_card(data)
        if parsed.is_failure:
            return Result.failure(parsed.error)

        return Result.success(
            DecodedCard(
                card=parsed.value,
                source=self._source_for(route),
                level=self._parse_level(params),
                route=route,
            )
        )

    def decode_direct(self, raw_text: str) -> Result[DecodedCard]:
        """Parse scanned text that is a serialized card rather than a URL."""
        try:
            data = raw_text.encode("utf-8")
        except UnicodeEncodeError:
            return Result.failure(InvalidFormatError())
        parsed = self._parse_card(data)
        if parsed.is_failure:
            return Result.failure(parsed.error)
        return Result.success(DecodedCard(card=parsed.value, source=ContactSource.QR_CODE))

    # Helpers

    @staticmethod
    def _first_param(params: Dict[str, List[str]], names) -> Optional[str]:
        for name in names:
            values = params.get(name)
            if values:
                return values[0]
        return None

    @staticmethod
    def _b64decode(value: str) -> bytes:
        # Unescaped '+' arrives as a space after query parsing
        value = value.replace(" ", "+")
        value += "=" * (-len(value) % 4)
        return base64.b64decode(value, validate=True)

    def _parse_expiration(self, params: Dict[str, List[str]]) -> Optional[datetime]:
        value = self._first_param(params, ("expires",))
        if value is None:
            return None
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Ignoring unparseable expiration '{value}'")
            return None

    def _parse_level(self, params: Dict[str, List[str]]) -> Optional[SharingLevel]:
        value = self._first_param(params, ("level",))
        try:
            return SharingLevel(value) if value else None
        except ValueError:
            return None

    @staticmethod
    def _parse_card(data: bytes) -> Result[BusinessCard]:
        try:
            return Result.success(BusinessCard.model_validate_json(data))
        except ValidationError as e:
            logger.warning(f"Failed to decode business card: {e.error_count()} errors")
            return Result.failure(InvalidFormatError())

    @staticmethod
    def _source_for(route: LinkRoute) -> ContactSource:
        return ROUTE_SOURCES[route]
