"""Tests for the per-session history store."""

import asyncio
from unittest.mock import patch

import pytest

from historian.common.schemas import ConversationTurn, Role
from historian.server.session_store import SessionStore


def _turn(content, role=Role.USER):
    return ConversationTurn(role=role, content=content)


class TestSessionStore:
    @pytest.mark.asyncio
    async def test_created_on_first_use(self):
        store = SessionStore()
        assert "s1" not in store

        async with store.session("s1") as session:
            assert session.history == []

        assert "s1" in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_append_only_history(self):
        store = SessionStore()

        async with store.session("s1") as session:
            session.append(_turn("q1"), _turn("a1", Role.ASSISTANT))
        async with store.session("s1") as session:
            session.append(_turn("q2"), _turn("a2", Role.ASSISTANT))

        assert [t.content for t in store.get("s1")] == ["q1", "a1", "q2", "a2"]

    @pytest.mark.asyncio
    async def test_history_is_a_copy(self):
        store = SessionStore()

        async with store.session("s1") as session:
            snapshot = session.history
            snapshot.append(_turn("stray"))

        assert store.get("s1") == []
        assert store.get("unknown") == []

    @pytest.mark.asyncio
    async def test_same_session_requests_are_serialized(self):
        store = SessionStore()
        events = []

        async def request(name):
            async with store.session("shared") as session:
                events.append(f"{name}:start")
                seen = len(session.history)
                await asyncio.sleep(0.01)
                session.append(_turn(name))
                events.append(f"{name}:end:{seen}")

        await asyncio.gather(request("a"), request("b"))

        assert events == ["a:start", "a:end:0", "b:start", "b:end:1"]

    @pytest.mark.asyncio
    async def test_one_lock_per_session(self):
        store = SessionStore()

        with patch("historian.server.session_store.asyncio.Lock", wraps=asyncio.Lock) as lock_cls:
            for _ in range(3):
                async with store.session("s1"):
                    pass
            async with store.session("s2"):
                pass

        assert lock_cls.call_count == 2

    @pytest.mark.asyncio
    async def test_different_sessions_do_not_block(self):
        store = SessionStore()

        async with store.session("s1"):
            async def other():
                async with store.session("s2") as session:
                    session.append(_turn("x"))

            await asyncio.wait_for(other(), timeout=1.0)

        assert len(store.get("s2")) == 1
