"""
Admin endpoints for event control
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from arena.api.deps import admin_commands, current_admin, event_states, participants
from arena.core.exceptions import (
    ParticipantNotFound,
    StaleWriteConflict,
    TransportError,
    ValidationError,
)
from arena.models import ParticipantRecord
from arena.services.leaderboard import get_leaderboard


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ParticipantNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, StaleWriteConflict):
        return HTTPException(status_code=409, detail={"error": "stale_write", "retry": True, "message": str(e)})
    if isinstance(e, TransportError):
        return HTTPException(status_code=503, detail=str(e))
    logger.error(f"Admin command failed: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Internal error")


@router.get("/state")
async def get_admin_state(admin: ParticipantRecord = Depends(current_admin)):
    """Event state plus the leaderboard rows shown in the control room"""
    try:
        event_state = await event_states().get()
        rows = await get_leaderboard(participants())
    except Exception as e:
        raise _to_http(e)

    return {
        "event_state": event_state.model_dump(mode="json"),
        "participants": [row.model_dump(mode="json") for row in rows],
    }


@router.post("/active-form")
async def set_active_form(request: dict, admin: ParticipantRecord = Depends(current_admin)):
    """
    Admin: Red light / green light

    Request:
        {"form": 0}     # 0 = red light (hide), 1-4 = show that form
    """
    if "form" not in request:
        raise HTTPException(status_code=400, detail="form required")

    try:
        event_state = await admin_commands().set_active_form(request["form"])
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "event_state": event_state.model_dump(mode="json")}


@router.post("/stage")
async def set_stage(request: dict, admin: ParticipantRecord = Depends(current_admin)):
    """
    Admin: Switch the visible round

    Request:
        {"stage": 2}
    """
    if "stage" not in request:
        raise HTTPException(status_code=400, detail="stage required")

    try:
        event_state = await admin_commands().set_stage(request["stage"])
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "event_state": event_state.model_dump(mode="json")}


@router.post("/rounds/{round_id}")
async def set_round_enabled(round_id: int, request: dict, admin: ParticipantRecord = Depends(current_admin)):
    """
    Admin: Pause or resume a round

    Request:
        {"enabled": true}
    """
    if "enabled" not in request:
        raise HTTPException(status_code=400, detail="enabled required")

    try:
        event_state = await admin_commands().set_round_enabled(round_id, request["enabled"])
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "event_state": event_state.model_dump(mode="json")}


@router.post("/participants/{participant_id}/score")
async def set_score(participant_id: str, request: dict, admin: ParticipantRecord = Depends(current_admin)):
    """
    Admin: Save a participant's total score

    Request:
        {"score": 42}
    """
    try:
        record = await admin_commands().set_participant_score(participant_id, request.get("score"))
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "participant_id": record.id, "total_score": record.total_score}


@router.post("/participants/{participant_id}/round2-completed")
async def toggle_round2_completed(participant_id: str, admin: ParticipantRecord = Depends(current_admin)):
    """Admin: Flip round 2 verification for one participant"""
    try:
        record = await admin_commands().toggle_round2_completed(participant_id)
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "participant_id": record.id, "round2_completed": record.round2_completed}


@router.post("/participants/{participant_id}/promote")
async def promote_admin(participant_id: str, admin: ParticipantRecord = Depends(current_admin)):
    """Admin: Grant admin to a participant now on the admin list"""
    try:
        record = await admin_commands().promote_admin(participant_id)
    except Exception as e:
        raise _to_http(e)

    return {"success": True, "participant_id": record.id, "is_admin": record.is_admin}
