"""Unit tests for teamtrack.engine.context — Actor and the bound request actor."""

import asyncio

import pytest

from teamtrack.engine.context import (
    Actor,
    actor_scope,
    clear_current_actor,
    get_current_actor,
    set_current_actor,
)
from teamtrack.models import Role


class TestActor:

    def test_frozen(self):
        actor = Actor(id="u1", role=Role.MEMBER)
        with pytest.raises(AttributeError):
            actor.role = Role.ADMIN

    def test_to_dict(self):
        assert Actor(id="u1", role=Role.MEMBER).to_dict() == {"id": "u1", "role": "Member"}


class TestCurrentActor:

    def test_default_none(self):
        assert get_current_actor() is None

    def test_set_and_clear(self):
        actor = Actor(id="u1", role=Role.MEMBER)
        set_current_actor(actor)
        assert get_current_actor() is actor
        clear_current_actor()
        assert get_current_actor() is None

    def test_scope_restores_previous(self):
        outer = Actor(id="admin", role=Role.ADMIN)
        inner = Actor(id="u1", role=Role.MEMBER)
        with actor_scope(outer):
            with actor_scope(inner):
                assert get_current_actor() is inner
            assert get_current_actor() is outer
        assert get_current_actor() is None

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        async def bind(actor):
            with actor_scope(actor):
                await asyncio.sleep(0)
                return get_current_actor()

        a = Actor(id="a", role=Role.ADMIN)
        b = Actor(id="b", role=Role.MEMBER)
        assert await asyncio.gather(bind(a), bind(b)) == [a, b]
