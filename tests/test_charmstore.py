"""
Tests for the charm store repository.

Runs CharmStore against the in-memory FakeStoreTransport to check cache
behaviour (hits, self-healing, integrity failures), error mapping and the
bulk latest() / resolve() operations.
"""
from __future__ import annotations

import pytest

from charmrepo.charmstore import CharmStore
from charmrepo.errors import (
    AccessDeniedError,
    CacheError,
    CharmDownloadError,
    CharmNotFoundError,
    CharmRepoError,
    HashMismatchError,
    InvalidReferenceError,
    SizeMismatchError,
)
from charmrepo.runtime_types import Repository
from charmrepo.storage.base import ArchiveDownload
from charmrepo.storage.params import MetaAnyResponse
from charmrepo.storage.store_errors import StoreAPIError, StoreNotFound, StoreUnauthorized
from charmrepo.url import parse_reference, parse_url
from tests.helpers.charms import charm_archive_bytes, sha256_hex, sha384_hex
from tests.storage.fakes import FakeStoreTransport

WORDPRESS = charm_archive_bytes("wordpress", revision=23)
MYSQL_3 = charm_archive_bytes("mysql", revision=3)
MYSQL_5 = charm_archive_bytes("mysql", revision=5)


@pytest.fixture
def populated(fake_transport):
    fake_transport.add_charm("cs:trusty/wordpress-23", WORDPRESS)
    fake_transport.add_charm("cs:trusty/mysql-3", MYSQL_3)
    fake_transport.add_charm("cs:trusty/mysql-5", MYSQL_5)
    return fake_transport


class TestCharmStoreConstruction:

    def test_empty_cache_dir_rejected(self, fake_transport):
        with pytest.raises(ValueError, match="empty"):
            CharmStore(fake_transport, "")

    def test_is_a_repository(self, store):
        assert isinstance(store, Repository)

    def test_url_from_transport(self, store, fake_transport):
        assert store.url == fake_transport.url

    def test_from_settings(self, settings):
        store = CharmStore.from_settings(settings)
        assert store.url == settings.store_url
        assert str(store.cache.root) == settings.cache_dir


class TestCharmStoreGet:

    def test_download_and_read(self, store, populated, cache_dir):
        ch = store.get(parse_url("cs:trusty/wordpress-23"))
        assert ch.name == "wordpress"
        assert ch.revision == 23
        assert ch.is_archive
        assert ch.path.parent == cache_dir
        assert ch.path.read_bytes() == WORDPRESS

    def test_creates_cache_dir(self, store, populated, cache_dir):
        assert not cache_dir.exists()
        store.get(parse_url("cs:trusty/wordpress-23"))
        assert cache_dir.is_dir()

    def test_unrevisioned_url_cached_under_canonical_id(self, store, populated):
        ch = store.get(parse_url("cs:trusty/mysql"))
        assert ch.revision == 5
        assert ch.path == store.cache.path_for("cs:trusty/mysql-5")

    def test_second_get_served_from_cache(self, store, populated):
        url = parse_url("cs:trusty/wordpress-23")
        first = store.get(url)
        mtime = first.path.stat().st_mtime_ns
        served = populated.log.bytes_served

        second = store.get(url)
        assert second.path == first.path
        assert second.path.stat().st_mtime_ns == mtime
        # The body of the second download was never read
        assert populated.log.bytes_served == served
        assert len(populated.log.archive_requests) == 2

    def test_corrupted_cache_entry_is_replaced(self, store, populated):
        url = parse_url("cs:trusty/wordpress-23")
        path = store.get(url).path
        path.write_bytes(b"garbage")

        ch = store.get(url)
        assert ch.path == path
        assert path.read_bytes() == WORDPRESS

    def test_hash_mismatch(self, store, populated):
        populated.hash_overrides["cs:trusty/wordpress-23"] = "0" * 96
        url = parse_url("cs:trusty/wordpress-23")
        with pytest.raises(HashMismatchError):
            store.get(url)

        path = store.cache.path_for("cs:trusty/wordpress-23")
        assert not path.exists()
        assert store.cache.lookup(path, sha384_hex(WORDPRESS), len(WORDPRESS)) is False
        assert [p.name for p in store.cache.root.iterdir()] == []

    def test_size_mismatch(self, store, populated):
        populated.size_overrides["cs:trusty/wordpress-23"] = len(WORDPRESS) + 10
        with pytest.raises(SizeMismatchError):
            store.get(parse_url("cs:trusty/wordpress-23"))
        assert not store.cache.path_for("cs:trusty/wordpress-23").exists()

    def test_truncated_body(self, store, populated):
        populated.body_overrides["cs:trusty/wordpress-23"] = WORDPRESS[:-1]
        with pytest.raises(SizeMismatchError):
            store.get(parse_url("cs:trusty/wordpress-23"))

    def test_bundle_rejected_before_network(self, store, populated):
        with pytest.raises(InvalidReferenceError, match="bundle URL"):
            store.get(parse_url("cs:bundle/wordpress-simple-1"))
        assert populated.log.archive_requests == []

    def test_not_found(self, store, populated):
        with pytest.raises(CharmNotFoundError, match="charm not found") as exc_info:
            store.get(parse_url("cs:trusty/nope"))
        assert isinstance(exc_info.value.__cause__, StoreNotFound)

    def test_access_denied(self, store, populated):
        populated.unauthorized.add("cs:trusty/wordpress-23")
        with pytest.raises(AccessDeniedError, match="access denied") as exc_info:
            store.get(parse_url("cs:trusty/wordpress-23"))
        assert isinstance(exc_info.value, CharmDownloadError)
        assert isinstance(exc_info.value.__cause__, StoreUnauthorized)

    def test_transport_failure_wrapped(self, store, populated):
        populated.fail_with = StoreAPIError("connection refused")
        with pytest.raises(CharmDownloadError, match="connection refused") as exc_info:
            store.get(parse_url("cs:trusty/wordpress-23"))
        assert isinstance(exc_info.value.__cause__, StoreAPIError)

    def test_body_read_failure_wrapped(self, cache_dir):
        class BrokenBody(FakeStoreTransport):
            def get_archive(self, id):
                def body():
                    yield b"partial"
                    raise StoreAPIError("connection reset")
                return ArchiveDownload(id="cs:trusty/wordpress-23", hash="0" * 96, size=100, body=body())

        store = CharmStore(BrokenBody(), cache_dir)
        with pytest.raises(CharmDownloadError, match="cannot read charm archive"):
            store.get(parse_url("cs:trusty/wordpress-23"))
        assert list(cache_dir.iterdir()) == []

    def test_unusable_cache_dir(self, populated, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        store = CharmStore(populated, blocker / "cache")
        with pytest.raises(CacheError):
            store.get(parse_url("cs:trusty/wordpress-23"))
        assert populated.log.archive_requests == []


class TestCharmStoreTestMode:

    def test_downloads_counted_normally(self, store, populated):
        store.get(parse_url("cs:trusty/wordpress-23"))
        assert populated.log.downloads["cs:trusty/wordpress-23"] == 1

    def test_test_mode_does_not_count(self, store, populated):
        quiet = store.with_test_mode()
        ch = quiet.get(parse_url("cs:trusty/wordpress-23"))
        assert ch.revision == 23
        assert populated.log.downloads["cs:trusty/wordpress-23"] == 0

    def test_test_mode_shares_cache(self, store, populated):
        assert store.with_test_mode().cache.root == store.cache.root
        assert populated.stats is True


class TestCharmStoreLatest:

    def test_batch_with_missing_entry(self, store, populated):
        urls = [
            parse_url("cs:trusty/wordpress-1"),
            parse_url("cs:trusty/missing"),
            parse_url("cs:trusty/mysql"),
        ]
        revs = store.latest(*urls)

        assert len(revs) == 3
        assert revs[0].name == "wordpress"
        assert revs[0].revision == 23
        assert revs[0].sha256 == sha256_hex(WORDPRESS)
        assert revs[0].err is None

        assert isinstance(revs[1].err, CharmNotFoundError)
        assert str(revs[1].err) == "charm not found: cs:trusty/missing"

        assert revs[2].revision == 5
        assert revs[2].sha256 == sha256_hex(MYSQL_5)

        # One round trip, with revisions stripped from the ids
        assert populated.log.bulk_requests == [
            ["cs:trusty/wordpress", "cs:trusty/missing", "cs:trusty/mysql"],
        ]

    def test_empty_input_makes_no_request(self, store, populated):
        assert store.latest() == []
        assert populated.log.bulk_requests == []

    def test_malformed_entry_isolated(self, store, populated):
        populated.malformed.add("cs:trusty/mysql")
        revs = store.latest(parse_url("cs:trusty/mysql"), parse_url("cs:trusty/wordpress"))
        assert isinstance(revs[0].err, CharmRepoError)
        assert "invalid metadata" in str(revs[0].err)
        assert revs[1].revision == 23

    def test_batch_failure(self, store, populated):
        populated.fail_with = StoreAPIError("service unavailable", status=503)
        with pytest.raises(CharmDownloadError, match="cannot get metadata"):
            store.latest(parse_url("cs:trusty/wordpress"))


class TestCharmStoreResolve:

    def test_resolve_partial_reference(self, store, populated):
        url = store.resolve(parse_reference("cs:wordpress"))
        assert str(url) == "cs:trusty/wordpress-23"
        assert populated.log.meta_requests == ["cs:wordpress"]

    def test_resolve_picks_latest(self, store, populated):
        assert store.resolve(parse_reference("cs:trusty/mysql")).revision == 5

    def test_resolve_not_found(self, store, populated):
        with pytest.raises(CharmNotFoundError, match="cannot resolve"):
            store.resolve(parse_reference("cs:nope"))

    def test_resolve_invalid_store_id(self, cache_dir):
        class BadIds(FakeStoreTransport):
            def meta(self, id, include):
                return MetaAnyResponse(id="wordpress")

        store = CharmStore(BadIds(), cache_dir)
        with pytest.raises(CharmDownloadError, match="fully resolved"):
            store.resolve(parse_reference("cs:wordpress"))


class TestCharmStoreClose:

    def test_context_manager_closes_transport(self, cache_dir):
        closed = []

        class ClosingTransport(FakeStoreTransport):
            def close(self):
                closed.append(True)

        with CharmStore(ClosingTransport(), cache_dir) as store:
            assert isinstance(store, CharmStore)
        assert closed == [True]

    def test_transport_without_close(self, store):
        assert not hasattr(store.transport, "close")
        store.close()

    def test_from_settings_closes_http_client(self, settings):
        with CharmStore.from_settings(settings) as store:
            client = store.transport.client
            assert not client.is_closed
        assert client.is_closed
