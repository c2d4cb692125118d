"""Handles incoming links and scanned QR codes.

The manager decodes what was scanned, hands the card to the contact
repository on a single coordinating worker and records the outcome as a
pending action for the UI layer. ``handle_*`` methods return as soon as the
payload passes the structural and expiration checks; the contact is saved
slightly later, so callers must not assume it is already persisted.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

from ..config import LinkConfig
from ..core.enums import DeepLinkActionKind, VerificationStatus
from ..core.result import Result
from ..domain.models import BusinessCard, Contact, DeepLinkAction
from ..repositories.contacts import ContactRepository
from ..utils.logging_config import get_module_logger, log_exception
from .codec import DecodedCard, DeepLinkCodec
from .schemes import create_scheme_url, is_valid_universal_link

logger = get_module_logger(__name__)

Dispatcher = Callable[[Callable[[], None]], Any]

NAVIGATION_ACTIONS = {
    DeepLinkActionKind.NAVIGATE_TO_SHARING: DeepLinkAction.navigate_to_sharing,
    DeepLinkActionKind.NAVIGATE_TO_CONTACTS: DeepLinkAction.navigate_to_contacts,
}


class DeepLinkManager:
    """Session state for deep link handling.

    Args:
        codec: Link encoder/decoder
        repository: Where received cards are stored
        dispatcher: Runs a callable on the coordinating context. Defaults to
            a single-worker thread pool, which serializes all saves.
        links: Scheme and universal link settings
    """

    def __init__(
        self,
        codec: DeepLinkCodec,
        repository: ContactRepository,
        dispatcher: Optional[Dispatcher] = None,
        links: Optional[LinkConfig] = None,
    ):
        self.codec = codec
        self.repository = repository
        self.links = links or LinkConfig()
        self._executor: Optional[ThreadPoolExecutor] = None
        if dispatcher is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="meishi-deeplink"
            )
            dispatcher = self._executor.submit
        self._dispatch = dispatcher

        self._state_lock = threading.Lock()
        self._futures: List[Future] = []
        self._last_received_card: Optional[BusinessCard] = None
        self._pending_action: Optional[DeepLinkAction] = None

    # Session state

    @property
    def last_received_card(self) -> Optional[BusinessCard]:
        with self._state_lock:
            return self._last_received_card

    @property
    def pending_action(self) -> Optional[DeepLinkAction]:
        with self._state_lock:
            return self._pending_action

    def clear_pending_action(self) -> None:
        with self._state_lock:
            self._pending_action = None

    def consume_pending_action(self) -> Optional[DeepLinkAction]:
        """Return the pending action and clear it."""
        with self._state_lock:
            action, self._pending_action = self._pending_action, None
            return action

    def request_navigation(self, kind: DeepLinkActionKind) -> DeepLinkAction:
        """Queue a navigation signal for the UI layer."""
        factory = NAVIGATION_ACTIONS.get(DeepLinkActionKind(kind))
        if factory is None:
            raise ValueError(f"{kind} is not a navigation action")
        action = factory()
        self._set_action(action)
        return action

    # Incoming links

    def handle_incoming_url(self, url: str) -> bool:
        """
        Handle a link opened by the user or scanned from a QR code.

        Returns True when the card was accepted for saving. Unrecognized links
        return False without signalling anything.
        """
        logger.info(f"Handling incoming URL ({len(url)} chars)")

        if self.codec.classify(url) is None:
            logger.info("Ignoring URL that is not a card link")
            return False

        decoded = self.codec.decode(url)
        if decoded.is_failure:
            logger.info(f"Rejected link: {decoded.error.message}")
            self._set_action(DeepLinkAction.show_error(decoded.error.message))
            return False

        return self._accept(decoded.value)

    def handle_qr_code_scan(self, content: str) -> bool:
        """Handle scanned QR text, which is either a link or a raw card payload."""
        if self.codec.is_url(content):
            return self.handle_incoming_url(content.strip())

        decoded = self.codec.decode_direct(content)
        if decoded.is_failure:
            self._set_action(DeepLinkAction.show_error(decoded.error.message))
            return False

        return self._accept(decoded.value)

    # Outgoing links

    def create_share_url(self, card: BusinessCard, sharing_level) -> Optional[str]:
        return self._url_or_none(self.codec.create_share_url(card, sharing_level))

    def create_app_clip_url(self, card: BusinessCard, sharing_level) -> Optional[str]:
        return self._url_or_none(self.codec.create_app_clip_url(card, sharing_level))

    def create_temporary_share_link(
        self, card: BusinessCard, sharing_level, expiration_hours: int = 24
    ) -> Optional[str]:
        return self._url_or_none(
            self.codec.create_temporary_share_link(card, sharing_level, expiration_hours)
        )

    def scheme_url(self, path: str, parameters: Optional[Dict[str, str]] = None) -> str:
        """Build an in-app URL with the configured scheme and host."""
        return create_scheme_url(
            path, parameters, scheme=self.links.scheme, host=self.links.scheme_host
        )

    def is_universal_link(self, url: str) -> bool:
        """True when ``url`` is a universal link for the configured domain."""
        return is_valid_universal_link(
            url, self.links.domain, self.links.universal_base_path
        )

    # Coordination

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until dispatched saves finish. Returns False on timeout."""
        with self._state_lock:
            futures = list(self._futures)
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        with self._state_lock:
            self._futures = [f for f in self._futures if not f.done()]
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        """Stop the coordinating worker, if this manager owns one."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait_for_pending)

    # Internals

    def _accept(self, decoded: DecodedCard) -> bool:
        contact = Contact(
            business_card=decoded.card,
            source=decoded.source,
            verification_status=VerificationStatus.UNVERIFIED,
        )
        submitted = self._dispatch(lambda: self._save_received(contact))
        if isinstance(submitted, Future):
            with self._state_lock:
                self._futures = [f for f in self._futures if not f.done()]
                self._futures.append(submitted)
        return True

    def _save_received(self, contact: Contact) -> None:
        card = contact.business_card
        try:
            result = self.repository.add(contact)
        except Exception as e:
            log_exception("deeplink", e, {"operation": "save_received_card"})
            self._set_action(DeepLinkAction.show_error("Failed to save card"))
            return

        if result.is_success:
            with self._state_lock:
                self._last_received_card = card
                self._pending_action = DeepLinkAction.show_received_card(card)
            logger.info(f"Received card {card.id} via {contact.source.value}")
        else:
            self._set_action(
                DeepLinkAction.show_error(f"Failed to save card: {result.error.message}")
            )
            logger.info(f"Could not save received card {card.id}: {result.error.message}")

    def _set_action(self, action: DeepLinkAction) -> None:
        with self._state_lock:
            self._pending_action = action

    @staticmethod
    def _url_or_none(result: Result[str]) -> Optional[str]:
        if result.is_failure:
            logger.error(f"Failed to create link: {result.error.message}")
            return None
        return result.value
