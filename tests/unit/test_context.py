"""Unit tests for request context propagation."""

import asyncio

import pytest

from auditvault.core.context import (
    SYSTEM_ACTOR,
    ActorType,
    create_context,
    get_current_actor,
    get_current_context,
    get_current_context_or_none,
    request_context,
)
from auditvault.core.exceptions import ContextNotSetError


class TestCreateContext:
    def test_named_actor_is_human(self):
        ctx = create_context(actor="  Maria ")

        assert ctx.actor == "Maria"
        assert ctx.actor_type == ActorType.HUMAN

    @pytest.mark.parametrize("actor", [None, "", "   "])
    def test_missing_actor_is_system(self, actor):
        ctx = create_context(actor=actor)

        assert ctx.actor == SYSTEM_ACTOR
        assert ctx.actor_type == ActorType.SYSTEM

    def test_to_audit_dict(self):
        ctx = create_context(actor="Maria")

        data = ctx.to_audit_dict()

        assert data["actor"] == "Maria"
        assert data["actor_type"] == "human"
        assert data["request_id"] == str(ctx.request_id)


class TestContextVar:
    def test_not_set_raises(self):
        with pytest.raises(ContextNotSetError):
            get_current_context()

        assert get_current_context_or_none() is None
        assert get_current_actor() == SYSTEM_ACTOR

    def test_scoped_to_block(self):
        ctx = create_context(actor="Maria")

        with request_context(ctx):
            assert get_current_context() is ctx
            assert get_current_actor() == "Maria"

        assert get_current_context_or_none() is None

    def test_nested_contexts_restore(self):
        outer = create_context(actor="Maria")
        inner = create_context(actor="Joao")

        with request_context(outer):
            with request_context(inner):
                assert get_current_actor() == "Joao"
            assert get_current_actor() == "Maria"

    @pytest.mark.asyncio
    async def test_propagates_to_tasks(self):
        async def actor_in_task() -> str:
            return get_current_actor()

        with request_context(create_context(actor="Maria")):
            actor = await asyncio.create_task(actor_in_task())

        assert actor == "Maria"
