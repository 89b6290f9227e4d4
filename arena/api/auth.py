"""
Login endpoint
"""
from fastapi import APIRouter, Depends, Header, HTTPException
import logging
import uuid
from typing import Optional

from arena import state
from arena.api.deps import access_gate, current_participant
from arena.core.exceptions import AuthorizationDenied, TransportError, ValidationError
from arena.models import ParticipantRecord, Role


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(request: dict):
    """
    Enter the event with an email and the event password

    Request:
        {"email": "name@email.com", "password": "<given at venue>"}

    Response:
        {
            "authorized": true,
            "role": "admin|participant",
            "participant_id": "...",
            "session_token": "<send as X-Session-Token>",
            "redirect": "/admin|/dashboard"
        }
    """
    try:
        grant = await access_gate().admit(request.get("email"), request.get("password"))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthorizationDenied as e:
        raise HTTPException(status_code=401, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))

    # One live session per participant: a new login replaces the old token
    for old_token in [t for t, pid in state.SESSIONS.items() if pid == grant.participant_id]:
        del state.SESSIONS[old_token]

    token = uuid.uuid4().hex
    state.SESSIONS[token] = grant.participant_id

    return {
        "authorized": grant.authorized,
        "role": grant.role.value,
        "participant_id": grant.participant_id,
        "email": grant.email,
        "session_token": token,
        "redirect": "/admin" if grant.role == Role.ADMIN else "/dashboard",
    }


@router.post("/logout")
async def logout(
    me: ParticipantRecord = Depends(current_participant),
    x_session_token: Optional[str] = Header(default=None),
):
    """End the caller's session (token from X-Session-Token)"""
    state.SESSIONS.pop(x_session_token, None)
    logger.info(f"Session closed for {me.id}")
    return {"success": True}
