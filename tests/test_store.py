"""Tests for the in-memory user store."""

import threading

from axion.store import User, UserStore


class TestSeed:
    def test_seeds_demo_users(self, clock):
        store = UserStore(clock=clock)
        assert store.count() == 2
        alice, bob = store.get("1"), store.get("2")
        assert alice.name == "Alice"
        assert bob.name == "Bob"
        assert alice.created_at == 1_000_000 - 86_400_000
        assert bob.created_at == 1_000_000 - 43_200_000

    def test_explicit_users_skip_seed(self):
        store = UserStore(users=[User(id="x", name="X", email="x@e.com", created_at=0)])
        assert [u.id for u in store.all()] == ["x"]

    def test_empty_store(self):
        assert UserStore(users=[]).count() == 0


class TestCreate:
    def test_create_with_values(self, clock):
        store = UserStore(clock=clock)
        user = store.create(name="Carol", email="carol@example.com")
        assert user.name == "Carol"
        assert user.created_at == 1_000_000
        assert len(user.id) == 12
        assert store.get(user.id) == user
        assert store.count() == 3

    def test_create_defaults(self, clock):
        user = UserStore(clock=clock).create()
        assert user.name == "Anonymous"
        assert user.email == "user1000000@example.com"

    def test_ids_are_unique(self):
        store = UserStore(users=[])
        ids = {store.create().id for _ in range(50)}
        assert len(ids) == 50

    def test_concurrent_creates(self):
        store = UserStore(users=[])
        threads = [
            threading.Thread(target=lambda: [store.create() for _ in range(25)])
            for _ in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.count() == 100


class TestLookup:
    def test_unknown_id(self):
        assert UserStore().get("nope") is None

    def test_all_is_a_copy(self):
        store = UserStore()
        store.all().clear()
        assert store.count() == 2
