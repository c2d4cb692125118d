"""Explicit wiring of the store, repository and deep link services."""

from dataclasses import dataclass
from typing import Optional

from .config import MeishiConfig, get_config
from .deeplink.codec import DeepLinkCodec
from .deeplink.manager import DeepLinkManager
from .repositories.contacts import ContactRepository
from .storage.encryption import CardCipher
from .storage.interfaces import ContactStore
from .storage.sqlalchemy_impl import SQLAlchemyContactStore
from .utils.logging_config import get_module_logger

logger = get_module_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the API layer needs, constructed once per application."""

    config: MeishiConfig
    store: ContactStore
    repository: ContactRepository
    codec: DeepLinkCodec
    deep_links: DeepLinkManager

    def close(self) -> None:
        self.deep_links.shutdown()


def build_store(config: MeishiConfig) -> ContactStore:
    """Create the encrypted SQLAlchemy store described by ``config``."""
    cipher = CardCipher.from_settings(
        config.storage.encryption_key,
        config.resolve_path(config.storage.key_file),
    )
    return SQLAlchemyContactStore.from_url(
        config.storage.url, cipher, echo=config.storage.echo
    )


def build_container(
    config: Optional[MeishiConfig] = None,
    store: Optional[ContactStore] = None,
    dispatcher=None,
) -> ServiceContainer:
    """
    Construct the service graph.

    Args:
        config: Configuration; defaults to the global configuration
        store: Contact store; defaults to the SQLAlchemy store from config
        dispatcher: Coordinating context for deep link saves
    """
    config = config or get_config()
    store = store or build_store(config)

    repository = ContactRepository(
        store, sort_empty_search=config.app.sort_empty_search
    )
    codec = DeepLinkCodec(
        base_url=config.links.base_url,
        app_clip_url=config.links.app_clip_url,
    )
    deep_links = DeepLinkManager(
        codec, repository, dispatcher=dispatcher, links=config.links
    )

    logger.info(f"Services ready ({len(repository.contacts)} contacts loaded)")
    return ServiceContainer(
        config=config,
        store=store,
        repository=repository,
        codec=codec,
        deep_links=deep_links,
    )
