"""End-to-end deep link handling on the default worker thread."""

import threading

import pytest
from fastapi.testclient import TestClient

from meishi_exchange.config import ConfigManager
from meishi_exchange.core.enums import DeepLinkActionKind, SharingLevel
from meishi_exchange.deeplink.codec import DeepLinkCodec
from meishi_exchange.deeplink.manager import DeepLinkManager
from meishi_exchange.main import create_app
from meishi_exchange.repositories.contacts import ContactRepository
from meishi_exchange.services import build_container

pytestmark = pytest.mark.integration


@pytest.fixture
def threaded_manager(memory_store):
    repository = ContactRepository(memory_store)
    manager = DeepLinkManager(DeepLinkCodec(), repository)
    yield manager
    manager.shutdown()


class TestThreadedManager:
    def test_saves_on_worker_thread(self, threaded_manager, make_card):
        saving_threads = []
        repository = threaded_manager.repository
        original_add = repository.add

        def recording_add(contact):
            saving_threads.append(threading.current_thread().name)
            return original_add(contact)

        repository.add = recording_add
        url = threaded_manager.create_share_url(make_card(), SharingLevel.PUBLIC)

        assert threaded_manager.handle_incoming_url(url) is True
        assert threaded_manager.wait_idle(timeout=5)

        assert len(repository.contacts) == 1
        assert saving_threads[0].startswith("meishi-deeplink")
        assert threaded_manager.pending_action.kind == DeepLinkActionKind.SHOW_RECEIVED_CARD

    def test_concurrent_links_are_serialized(self, threaded_manager, make_card):
        """Many links for the same card still produce exactly one contact."""
        card = make_card()
        url = threaded_manager.create_share_url(card, SharingLevel.PUBLIC)

        workers = [
            threading.Thread(target=threaded_manager.handle_incoming_url, args=(url,))
            for _ in range(8)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        assert threaded_manager.wait_idle(timeout=5)

        assert len(threaded_manager.repository.contacts) == 1

    def test_distinct_cards_all_saved(self, threaded_manager, make_card):
        for i in range(10):
            url = threaded_manager.create_share_url(make_card(f"Person {i}"), SharingLevel.PUBLIC)
            assert threaded_manager.handle_incoming_url(url)

        assert threaded_manager.wait_idle(timeout=5)
        assert len(threaded_manager.repository.contacts) == 10

    def test_unexpected_exception_is_reported(self, threaded_manager, make_card):
        def exploding_add(contact):
            raise RuntimeError("boom")

        threaded_manager.repository.add = exploding_add
        url = threaded_manager.create_share_url(make_card(), SharingLevel.PUBLIC)

        threaded_manager.handle_incoming_url(url)
        threaded_manager.wait_idle(timeout=5)

        action = threaded_manager.pending_action
        assert action.kind == DeepLinkActionKind.SHOW_ERROR
        assert action.message == "Failed to save card"


class TestConfiguredApplication:
    def test_full_stack_over_sqlite(self, tmp_path, monkeypatch):
        """Container built from configuration: SQLite file, key file and worker thread."""
        monkeypatch.setenv("MEISHI_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("MEISHI_DATABASE_URL", f"sqlite:///{tmp_path / 'contacts.db'}")
        config = ConfigManager().create_default_config()
        container = build_container(config)

        with TestClient(create_app(container)) as client:
            link = client.post(
                "/v1/links", json={"card": {"name": "Aiko Tanaka"}, "kind": "app_clip"}
            ).json()
            resolved = client.post(
                "/v1/links/resolve", params={"wait": "true"}, json={"url": link["url"]}
            ).json()
            contacts = client.get("/v1/contacts").json()

        assert resolved["accepted"] is True
        assert resolved["action"]["kind"] == "show_received_card"
        assert contacts["count"] == 1
        assert contacts["contacts"][0]["source"] == "qr_code"
        assert (tmp_path / "meishi.key").exists()

        reopened = build_container(config)
        try:
            assert len(reopened.repository.contacts) == 1
        finally:
            reopened.close()
