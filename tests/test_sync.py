"""
Tests for live session views
"""
import asyncio

import pytest

from arena.core.exceptions import TransportError
from arena.models import RoundStatus, Screen
from arena.services.sync import ParticipantSession


def _session(services, pid="p1"):
    return ParticipantSession(services.config, services.event_states, services.participants, pid)


def test_current_view(services):
    async def scenario():
        await services.seed("p1", active_form=2)
        return await _session(services).current()

    view = asyncio.run(scenario())
    assert view.view.status == RoundStatus.OPEN
    assert view.view.link == "https://forms.test/2"
    assert view.participant.id == "p1"


def test_views_follow_admin_and_own_changes(services):
    """Each committed change to either document yields a recomputed view"""
    async def scenario():
        await services.seed("p1")
        stream = _session(services).views()
        seen = [await anext(stream)]

        await services.admin.set_stage(2)
        seen.append(await anext(stream))
        await services.admin.set_round_enabled(2, True)
        seen.append(await anext(stream))
        await services.actions.lock_shape("p1", "umbrella")
        seen.append(await anext(stream))

        await stream.aclose()
        return seen

    seen = asyncio.run(scenario())
    assert [v.view.status for v in seen] == [
        RoundStatus.CLOSED,
        RoundStatus.DISABLED,
        RoundStatus.CHOOSING,
        RoundStatus.LOCKED_CHOICE,
    ]
    assert seen[-1].view.link == "https://shapes.test/umbrella"


def test_views_reach_bridge_after_verification(services):
    async def scenario():
        await services.seed("p1", stage=3, bridge_enabled=True)
        stream = _session(services).views()
        before = await anext(stream)
        await services.admin.toggle_round2_completed("p1")
        after = await anext(stream)
        await stream.aclose()
        return before, after

    before, after = asyncio.run(scenario())
    assert before.view.screen == after.view.screen == Screen.BRIDGE
    assert before.view.status == RoundStatus.INELIGIBLE
    assert after.view.status == RoundStatus.AWAITING_CHOICE


def test_other_participants_do_not_disturb_view(services):
    async def scenario():
        await services.seed("p1", "p2", stage=2, round2_enabled=True)
        stream = _session(services, "p1").views()
        await anext(stream)
        await services.actions.lock_shape("p2", "circle")
        await services.admin.set_active_form(1)
        following = await anext(stream)
        await stream.aclose()
        return following

    following = asyncio.run(scenario())
    assert following.event_state.active_form == 1
    assert following.participant.shape_locked is False


def test_closing_stream_unsubscribes(services):
    async def scenario():
        await services.seed("p1")
        stream = _session(services).views()
        await anext(stream)
        await stream.aclose()
        return [q for subs in services.store._doc_subscribers.values() for q in subs]

    assert asyncio.run(scenario()) == []


def test_store_failure_reaches_consumer(services):
    async def scenario():
        await services.seed("p1")
        stream = _session(services).views()
        await anext(stream)
        services.store.close()
        try:
            await anext(stream)
        finally:
            await stream.aclose()

    with pytest.raises(TransportError):
        asyncio.run(scenario())
