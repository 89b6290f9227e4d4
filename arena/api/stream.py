"""
WebSocket push streams

- /ws/session?token=...      one SessionView per change of EventState or the caller's record
- /ws/leaderboard?token=...  full ranking per participant change (admin only)

Each stream runs until the client disconnects or the store fails; a store
failure closes the socket with 1011 so the client can reconnect.
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Optional

from fastapi import APIRouter, Query, WebSocket

from arena import state
from arena.api.deps import participant_session, participants
from arena.core.exceptions import ParticipantNotFound, TransportError
from arena.services.leaderboard import leaderboard_feed


logger = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])

POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _push(websocket: WebSocket, source: AsyncIterator[Any], encode: Callable[[Any], Any]) -> None:
    async def send_all():
        try:
            async for item in source:
                await websocket.send_json(encode(item))
        finally:
            await source.aclose()

    sender = asyncio.create_task(send_all())
    watcher = asyncio.create_task(_wait_for_disconnect(websocket))
    done, pending = await asyncio.wait({sender, watcher}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    if sender in done and sender.exception() is not None:
        error = sender.exception()
        if isinstance(error, TransportError):
            logger.warning(f"Stream ended by store failure: {error}")
            await websocket.close(code=INTERNAL_ERROR)
            return
        raise error


def _caller_id(token: Optional[str]) -> Optional[str]:
    return state.SESSIONS.get(token or "")


@router.websocket("/ws/session")
async def session_stream(websocket: WebSocket, token: Optional[str] = Query(default=None)):
    participant_id = _caller_id(token)
    if not participant_id:
        await websocket.close(code=POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info(f"📡 Session socket opened for {participant_id}")
    source = participant_session(participant_id).views()
    await _push(
        websocket,
        source,
        lambda view: {**view.model_dump(mode="json"), "actionable": view.view.actionable},
    )
    logger.info(f"📡 Session socket closed for {participant_id}")


@router.websocket("/ws/leaderboard")
async def leaderboard_stream(websocket: WebSocket, token: Optional[str] = Query(default=None)):
    participant_id = _caller_id(token)
    if not participant_id:
        await websocket.close(code=POLICY_VIOLATION)
        return

    try:
        caller = await participants().get(participant_id)
    except (ParticipantNotFound, TransportError):
        await websocket.close(code=POLICY_VIOLATION)
        return
    if not caller.is_admin:
        await websocket.close(code=POLICY_VIOLATION)
        return

    await websocket.accept()
    source = leaderboard_feed(participants())
    await _push(websocket, source, lambda rows: {"teams": [r.model_dump(mode="json") for r in rows]})
