"""
Shared router dependencies

Services are thin wrappers over the process-wide store, so they are
rebuilt per request from the globals in arena.state.
"""
from typing import Optional

from fastapi import Header, HTTPException

from arena import state
from arena.core.exceptions import ParticipantNotFound, TransportError
from arena.models import ParticipantRecord
from arena.services.access_gate import AccessGate
from arena.services.actions import ParticipantActions
from arena.services.admin import AdminCommands
from arena.services.event_state import EventStateStore
from arena.services.participants import ParticipantStore
from arena.services.sync import ParticipantSession


def event_states() -> EventStateStore:
    return EventStateStore(state.STORE)


def participants() -> ParticipantStore:
    return ParticipantStore(state.STORE)


def access_gate() -> AccessGate:
    return AccessGate(state.CONFIG, state.IDENTITY, participants())


def participant_actions() -> ParticipantActions:
    return ParticipantActions(state.CONFIG, event_states(), participants())


def admin_commands() -> AdminCommands:
    return AdminCommands(state.CONFIG, event_states(), participants())


def participant_session(participant_id: str) -> ParticipantSession:
    return ParticipantSession(state.CONFIG, event_states(), participants(), participant_id)


def resolve_token(token: Optional[str]) -> str:
    """Participant id for a session token, or 401"""
    participant_id = state.SESSIONS.get(token or "")
    if not participant_id:
        raise HTTPException(status_code=401, detail="Invalid or missing session token")
    return participant_id


async def load_caller(token: Optional[str]) -> ParticipantRecord:
    participant_id = resolve_token(token)
    try:
        return await participants().get(participant_id)
    except ParticipantNotFound:
        raise HTTPException(status_code=401, detail="Session no longer valid")
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))


async def current_participant(x_session_token: Optional[str] = Header(default=None)) -> ParticipantRecord:
    return await load_caller(x_session_token)


async def current_admin(x_session_token: Optional[str] = Header(default=None)) -> ParticipantRecord:
    caller = await load_caller(x_session_token)
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Not admin.")
    return caller
