import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from keyring_fakes import FakeKeyring, make_token

from identity.cache import DEFAULT_CLIENT_ID
from identity.cache.bridge import CacheNotificationBridge
from identity.cache.codec import CurrentFormatCodec
from identity.cache.config import CacheConfig
from identity.cache.errors import ClearFailure, PersistenceUnavailable
from identity.cache.factory import SharedTokenCacheClientFactory, TokenCacheRegistrar
from identity.cache.memory import InMemoryTokenCache
from identity.cache.migration import MigrationCoordinator
from identity.cache.settings import NO_MIGRATION, CacheFormat, CacheMigrationSettings

LEGACY_KEY = "https://auth.example.com:client-1"


class _FactoryTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.cache_path = Path(self._tmp.name) / ".IdentityService" / "msal.cache"
        self.kr = FakeKeyring()
        patcher = mock.patch.dict("sys.modules", {"keyring": self.kr})
        patcher.start()
        self.addCleanup(patcher.stop)

    def make_factory(self, migration=NO_MIGRATION, **kwargs):
        kwargs.setdefault("location", self.cache_path)
        return SharedTokenCacheClientFactory(migration, **kwargs)


class ConstructionTest(_FactoryTest):
    def test_is_a_registrar(self):
        self.assertIsInstance(self.make_factory(), TokenCacheRegistrar)

    def test_defaults(self):
        factory = self.make_factory()
        self.assertEqual(factory.client_id, DEFAULT_CLIENT_ID)
        self.assertEqual(factory.location.path, self.cache_path)
        self.assertEqual(factory.store_kind, "keyring")

    def test_fails_fast_without_usable_backend(self):
        class FailKeyring:
            pass

        self.kr.backend = FailKeyring()
        cache = InMemoryTokenCache()
        with self.assertRaises(PersistenceUnavailable):
            factory = self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, b"{}"))
            factory.register_cache(cache)
        self.assertIsNone(cache.before_access)
        self.assertIsNone(cache.before_write)

    def test_fails_fast_when_keyring_is_locked(self):
        self.kr.set_password = mock.MagicMock(side_effect=Exception("locked"))
        with self.assertRaises(PersistenceUnavailable):
            self.make_factory()

    def test_rejects_unknown_policy(self):
        with self.assertRaises(TypeError):
            self.make_factory({"format": "legacy"})

    def test_rejects_unknown_store_kind(self):
        with self.assertRaises(ValueError):
            self.make_factory(store_kind="plaintext")

    def test_from_config(self):
        config = CacheConfig(cache_path=self.cache_path, client_id="client-9", store_kind="file")
        with self.assertLogs("identity.cache.factory", level="WARNING"):
            factory = SharedTokenCacheClientFactory.from_config(config)
        self.assertEqual(factory.client_id, "client-9")
        self.assertEqual(factory.store_kind, "file")
        self.assertEqual(factory.location.path, self.cache_path)


class RegisterCacheTest(_FactoryTest):
    def test_without_migration_installs_bridge(self):
        cache = InMemoryTokenCache()
        self.make_factory().register_cache(cache)
        self.assertIsInstance(cache.before_access.__self__, CacheNotificationBridge)
        self.assertIsInstance(cache.before_write.__self__, CacheNotificationBridge)

    def test_with_migration_installs_coordinator(self):
        cache = InMemoryTokenCache()
        self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, b"{}")).register_cache(cache)
        self.assertIsInstance(cache.before_access.__self__, MigrationCoordinator)
        self.assertIsNone(cache.before_write)

    def test_migration_consumed_by_first_cache_only(self):
        factory = self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, b"{}"))
        first, second = InMemoryTokenCache(), InMemoryTokenCache()
        factory.register_cache(first)
        factory.register_cache(second)
        self.assertIsInstance(first.before_access.__self__, MigrationCoordinator)
        self.assertIsInstance(second.before_access.__self__, CacheNotificationBridge)

    def test_round_trip_across_factories(self):
        original = InMemoryTokenCache()
        self.make_factory().register_cache(original)
        original.add("k1", make_token())
        original.add("k2", make_token(extra={"refresh_token": "refresh-abc"}))

        restored = InMemoryTokenCache()
        self.make_factory().register_cache(restored)
        self.assertEqual(restored.entries(), original.entries())
        self.assertEqual(restored.find("k2")["refresh_token"], "refresh-abc")

    def test_migrated_legacy_cache_persisted_as_current(self):
        legacy = json.dumps({LEGACY_KEY: make_token()}).encode()
        cache = InMemoryTokenCache()
        self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, legacy)).register_cache(cache)
        self.assertIsNotNone(cache.find(LEGACY_KEY))
        cache.add("new", make_token())

        blob = self.make_factory().open_store().read_all()
        self.assertEqual(set(CurrentFormatCodec.decode(blob)), {LEGACY_KEY, "new"})

    def test_migration_keeps_entries_persisted_by_other_process(self):
        other = InMemoryTokenCache()
        self.make_factory().register_cache(other)
        other.add("existing", make_token())

        legacy = json.dumps({LEGACY_KEY: make_token()}).encode()
        cache = InMemoryTokenCache()
        self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, legacy)).register_cache(cache)
        cache.add("new", make_token())

        blob = self.make_factory().open_store().read_all()
        self.assertEqual(set(CurrentFormatCodec.decode(blob)), {"existing", LEGACY_KEY, "new"})

    def test_migration_coordinator_exposed(self):
        factory = self.make_factory(CacheMigrationSettings(CacheFormat.LEGACY, b"garbage"))
        self.assertIsNone(factory.migration_coordinator)
        cache = InMemoryTokenCache()
        factory.register_cache(cache)
        cache.entries()
        self.assertEqual(factory.migration_coordinator.failure.reason, "malformed data")

    def test_corrupt_migration_does_not_block_cache(self):
        cache = InMemoryTokenCache()
        self.make_factory(CacheMigrationSettings(CacheFormat.CURRENT, b"garbage")).register_cache(cache)
        self.assertIsNone(cache.find("k"))
        cache.add("k", make_token())
        self.assertIsNotNone(cache.find("k"))

    def test_on_cache_written(self):
        written = []
        cache = InMemoryTokenCache()
        self.make_factory(on_cache_written=written.append).register_cache(cache)
        cache.add("k", make_token())
        self.assertEqual(len(written), 1)
        self.assertIn("k", CurrentFormatCodec.decode(written[0]))

    def test_corrupt_persisted_cache_starts_empty(self):
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_bytes(b"not encrypted")
        cache = InMemoryTokenCache()
        self.make_factory().register_cache(cache)
        self.assertEqual(cache.entries(), {})
        cache.add("k", make_token())
        self.assertIsNotNone(self.make_factory().open_store().read_all())


class ClearCacheTest(_FactoryTest):
    def test_clears_store_and_attached_cache(self):
        factory = self.make_factory()
        cache = InMemoryTokenCache()
        factory.register_cache(cache)
        cache.add("k", make_token())

        factory.clear_cache()
        self.assertEqual(len(cache), 0)
        self.assertFalse(self.cache_path.exists())
        self.assertEqual(self.kr.passwords, {})
        self.assertIsNone(factory.open_store().read_all())

    def test_idempotent(self):
        factory = self.make_factory()
        factory.clear_cache()
        factory.clear_cache()
        self.assertIsNone(factory.open_store().read_all())

    def test_store_failure_raised_after_in_memory_clear(self):
        factory = self.make_factory()
        cache = InMemoryTokenCache()
        factory.register_cache(cache)
        cache.add("k", make_token())
        self.kr.delete_password = mock.MagicMock(side_effect=Exception("delete failed"))

        with self.assertRaises(ClearFailure) as ctx:
            factory.clear_cache()
        self.assertIn("delete failed", str(ctx.exception))
        self.assertEqual(len(cache), 0)
        self.assertFalse(self.cache_path.exists())

    def test_in_memory_failure_does_not_stop_other_caches(self):
        factory = self.make_factory()
        broken, healthy = InMemoryTokenCache(), InMemoryTokenCache({"k": make_token()})
        factory.register_cache(broken)
        factory.register_cache(healthy)
        broken.clear = mock.MagicMock(side_effect=RuntimeError("nope"))
        factory.clear_cache()
        self.assertEqual(len(healthy), 0)


if __name__ == "__main__":
    unittest.main()
