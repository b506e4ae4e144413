"""Unit tests for SessionStore and its storage backends."""

from __future__ import annotations

import asyncio
import unittest

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from profile_bot.db.base import Base
from profile_bot.db.session import build_session_factory
from profile_bot.providers.storage.memory_storage import MemoryStorage
from profile_bot.providers.storage.sql_storage import SqlStorage
from profile_bot.schemas.dialog_state import DialogState
from profile_bot.schemas.profile import Transport, UserProfile
from profile_bot.schemas.turn import InboundTurn
from profile_bot.services.session_store import SessionStore, session_key_for


def build_sql_storage() -> SqlStorage:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    return SqlStorage(build_session_factory(engine))


class SessionKeyTestCase(unittest.TestCase):
    """Session Key derivation."""

    def test_key_depends_on_conversation_not_sender(self) -> None:
        first = InboundTurn(conversation_id="alfred-conv", sender_id="alfred", text="hi")
        same_conversation = InboundTurn(conversation_id="alfred-conv", sender_id="someone-else", text="hi")
        other_conversation = InboundTurn(conversation_id="batman-conv", sender_id="alfred", text="hi")

        self.assertEqual(session_key_for(first), session_key_for(same_conversation))
        self.assertNotEqual(session_key_for(first), session_key_for(other_conversation))
        self.assertEqual(session_key_for(first), "test/conversations/alfred-conv")

    def test_key_is_scoped_by_channel(self) -> None:
        web = InboundTurn(conversation_id="c1", sender_id="u1", channel_id="webchat")
        teams = InboundTurn(conversation_id="c1", sender_id="u1", channel_id="msteams")

        self.assertNotEqual(session_key_for(web), session_key_for(teams))


class SessionStoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Covers get/set/clear semantics, per-key isolation and locking."""

    def build_store(self) -> SessionStore:
        return SessionStore(MemoryStorage())

    async def test_get_returns_fresh_profile_without_writing(self) -> None:
        storage = MemoryStorage()
        store = SessionStore(storage)

        profile = await store.get("k1")

        self.assertEqual(profile, UserProfile())
        self.assertIsNone(await storage.load("k1"))

    async def test_set_is_visible_to_later_get(self) -> None:
        store = self.build_store()

        await store.set("k1", UserProfile(transport=Transport.CAR, name="Alfred", age=42))

        profile = await store.get("k1")
        self.assertEqual(profile.transport, Transport.CAR)
        self.assertEqual(profile.name, "Alfred")
        self.assertEqual(profile.age, 42)

    async def test_clear_resets_profile(self) -> None:
        store = self.build_store()
        await store.set("k1", UserProfile(name="Alfred"))

        await store.clear("k1")

        self.assertEqual(await store.get("k1"), UserProfile())

    async def test_keys_do_not_observe_each_other(self) -> None:
        store = self.build_store()

        await store.set("alfred", UserProfile(transport=Transport.CAR, name="Alfred"))
        await store.set("batman", UserProfile(transport=Transport.BUS, name="Batman"))
        await store.clear("batman")

        alfred = await store.get("alfred")
        self.assertEqual(alfred.name, "Alfred")
        self.assertEqual(alfred.transport, Transport.CAR)
        self.assertEqual(await store.get("batman"), UserProfile())

    async def test_returned_profile_is_not_aliased(self) -> None:
        store = self.build_store()
        await store.set("k1", UserProfile(name="Alfred"))

        profile = await store.get("k1")
        profile.name = "Mutated"

        self.assertEqual((await store.get("k1")).name, "Alfred")

    async def test_profile_and_dialog_state_are_kept_together(self) -> None:
        store = self.build_store()
        await store.set("k1", UserProfile(name="Alfred"))

        await store.set_dialog_state("k1", DialogState(dialog_id="d", step_index=3))

        self.assertEqual((await store.get("k1")).name, "Alfred")
        self.assertEqual((await store.get_dialog_state("k1")).step_index, 3)
        self.assertFalse((await store.get_dialog_state("k2")).is_active)

    async def test_lock_serializes_same_key(self) -> None:
        store = self.build_store()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with store.lock("k1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        self.assertEqual(order, ["a-start", "a-end", "b-start", "b-end"])

    async def test_lock_does_not_block_other_keys(self) -> None:
        store = self.build_store()
        entered: list[str] = []

        async def enter(key: str) -> None:
            async with store.lock(key):
                entered.append(key)

        async with store.lock("k1"):
            await asyncio.wait_for(enter("k2"), timeout=1)

        self.assertEqual(entered, ["k2"])

    async def test_lock_is_released_after_use(self) -> None:
        store = self.build_store()
        held: list[int] = []

        async def worker(key: str) -> None:
            async with store.lock(key):
                held.append(len(store._locks))
                await asyncio.sleep(0.01)

        await asyncio.gather(worker("k1"), worker("k1"), worker("k2"))

        self.assertEqual(max(held), 2)
        self.assertEqual(store._locks, {})
        self.assertEqual(store._lock_users, {})

    async def test_lock_is_released_when_body_raises(self) -> None:
        store = self.build_store()

        with self.assertRaises(RuntimeError):
            async with store.lock("k1"):
                raise RuntimeError("boom")

        self.assertEqual(store._locks, {})

        async with store.lock("k1"):
            self.assertIn("k1", store._locks)


class SqlStorageTestCase(unittest.IsolatedAsyncioTestCase):
    """Session store over the SQLAlchemy backend."""

    async def test_round_trip_and_isolation(self) -> None:
        store = SessionStore(build_sql_storage())

        await store.set("alfred", UserProfile(transport=Transport.CAR, name="Alfred", age=42))
        await store.set("batman", UserProfile(transport=Transport.BUS, name="Batman", age_declined=True))

        alfred = await store.get("alfred")
        batman = await store.get("batman")
        self.assertEqual(alfred.age, 42)
        self.assertEqual(batman.transport, Transport.BUS)
        self.assertTrue(batman.age_declined)
        self.assertIsNone(batman.age)

    async def test_save_overwrites_previous_document(self) -> None:
        storage = build_sql_storage()

        await storage.save("k1", {"value": 1})
        await storage.save("k1", {"value": 2})
        self.assertEqual(await storage.load("k1"), {"value": 2})

        self.assertIsNone(await storage.load("k2"))


if __name__ == "__main__":
    unittest.main()
