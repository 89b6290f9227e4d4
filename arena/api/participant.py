"""
Participant endpoints - current view and one-time choices
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from arena.api.deps import current_participant, participant_actions, participant_session
from arena.core.exceptions import (
    GatingViolation,
    ParticipantNotFound,
    StaleWriteConflict,
    TransportError,
    ValidationError,
)
from arena.models import ParticipantRecord


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["participant"])


@router.get("")
async def get_my_state(me: ParticipantRecord = Depends(current_participant)):
    """Event state, own record and the projected round view"""
    try:
        session_view = await participant_session(me.id).current()
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        **session_view.model_dump(mode="json"),
        "actionable": session_view.view.actionable,
    }


@router.post("/shape")
async def lock_shape(request: dict, me: ParticipantRecord = Depends(current_participant)):
    """
    Lock a round 2 shape (one time, irreversible)

    Request:
        {"shape": "circle|triangle|star|umbrella"}
    """
    shape = request.get("shape")
    if not shape:
        raise HTTPException(status_code=400, detail="shape required")

    try:
        record, link = await participant_actions().lock_shape(me.id, shape)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GatingViolation as e:
        raise HTTPException(status_code=409, detail={"error": "gating", "message": str(e)})
    except StaleWriteConflict as e:
        raise HTTPException(status_code=409, detail={"error": "stale_write", "retry": True, "message": str(e)})
    except ParticipantNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "success": True,
        "participant": record.model_dump(mode="json"),
        "selected_shape": record.selected_shape.value,
        "shape_locked": record.shape_locked,
        "link": link,
    }


@router.post("/bridge")
async def advance_bridge(request: dict, me: ParticipantRecord = Depends(current_participant)):
    """
    Take the next bridge step

    Request:
        {
            "choice": "safe|risky",
            "expected_step": 2   # glass_step shown when the button was pressed
        }
    """
    choice = request.get("choice")
    if not choice:
        raise HTTPException(status_code=400, detail="choice required")

    expected_step = request.get("expected_step")
    if expected_step is None:
        raise HTTPException(status_code=400, detail="expected_step required")
    if isinstance(expected_step, bool) or not isinstance(expected_step, int):
        raise HTTPException(status_code=400, detail="expected_step must be an integer")

    try:
        record, link = await participant_actions().advance_bridge(me.id, choice, expected_step)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GatingViolation as e:
        raise HTTPException(status_code=409, detail={"error": "gating", "message": str(e)})
    except StaleWriteConflict as e:
        raise HTTPException(status_code=409, detail={"error": "stale_write", "retry": True, "message": str(e)})
    except ParticipantNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "success": True,
        "participant": record.model_dump(mode="json"),
        "glass_step": record.glass_step,
        "glass_choices": [c.model_dump(mode="json") for c in record.glass_choices],
        "link": link,
    }
