"""Pytest configuration and shared fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Generator

# Configure the environment before the package is imported; loggers are
# created at import time from the global configuration.
_test_data_dir = tempfile.mkdtemp(prefix="meishi-tests-")
os.environ["MEISHI_DATA_DIR"] = _test_data_dir
os.environ["MEISHI_LOG_TO_FILE"] = "0"
os.environ["MEISHI_DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from meishi_exchange.config import ConfigManager, MeishiConfig  # noqa: E402
from meishi_exchange.core.enums import ContactSource  # noqa: E402
from meishi_exchange.deeplink.codec import DeepLinkCodec  # noqa: E402
from meishi_exchange.deeplink.manager import DeepLinkManager  # noqa: E402
from meishi_exchange.domain.models import BusinessCard, Contact  # noqa: E402
from meishi_exchange.main import create_app  # noqa: E402
from meishi_exchange.repositories.contacts import ContactRepository  # noqa: E402
from meishi_exchange.services import ServiceContainer, build_container  # noqa: E402
from meishi_exchange.storage.memory_impl import MemoryContactStore  # noqa: E402

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock for expiration and recency tests."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def inline_dispatcher(fn):
    """Run dispatched work immediately on the calling thread."""
    fn()


@pytest.fixture
def now() -> datetime:
    """The fixed time the test clock starts at."""
    return FIXED_NOW


@pytest.fixture
def clock(now) -> FakeClock:
    return FakeClock(now)


@pytest.fixture
def make_card():
    """Factory for business cards with sensible defaults."""

    def _maker(name: str = "Aiko Tanaka", **fields) -> BusinessCard:
        data = {
            "name": name,
            "title": "Engineer",
            "company": "Acme",
            "email": "aiko@example.com",
            "phone": "+81-3-0000-0000",
            "website": "https://aiko.example.com",
            "skills": ["Swift", "Python"],
            "categories": ["tech"],
        }
        data.update(fields)
        return BusinessCard(**data)

    return _maker


@pytest.fixture
def make_contact(make_card):
    """Factory for contacts; ``received_at`` defaults to the fixed test time."""

    def _maker(
        name: str = "Aiko Tanaka",
        received_at: datetime = FIXED_NOW,
        source: ContactSource = ContactSource.MANUAL,
        card: BusinessCard = None,
        **fields,
    ) -> Contact:
        return Contact(
            business_card=card or make_card(name),
            received_at=received_at,
            source=source,
            **fields,
        )

    return _maker


@pytest.fixture
def memory_store() -> MemoryContactStore:
    return MemoryContactStore()


@pytest.fixture
def repository(memory_store, clock) -> ContactRepository:
    return ContactRepository(memory_store, clock=clock)


@pytest.fixture
def codec(clock) -> DeepLinkCodec:
    return DeepLinkCodec(clock=clock)


@pytest.fixture
def deep_links(codec, repository) -> DeepLinkManager:
    return DeepLinkManager(codec, repository, dispatcher=inline_dispatcher)


@pytest.fixture
def test_config() -> MeishiConfig:
    """Default configuration with environment overrides applied."""
    return ConfigManager().create_default_config()


@pytest.fixture
def container(test_config, memory_store) -> ServiceContainer:
    """Service graph over an in-memory store that saves inline."""
    return build_container(test_config, store=memory_store, dispatcher=inline_dispatcher)


@pytest.fixture
def client(container) -> Generator[TestClient, None, None]:
    """Create a test client bound to the in-memory service container."""
    with TestClient(create_app(container)) as test_client:
        yield test_client
