"""
Configuration endpoints
"""
from fastapi import APIRouter, HTTPException

from arena import state
from arena.models import BRIDGE_STEPS, SHAPE_STAGE, Shape


router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config():
    """Public view of the static event layout (no password, no allow-lists)"""
    if state.CONFIG is None:
        raise HTTPException(status_code=500, detail="Event configuration is not loaded")

    config = state.CONFIG
    return {
        "event_name": config.event_name,
        "stages": {
            "1": "round1",
            str(SHAPE_STAGE): "round2",
            str(config.bridge_stage): "bridge",
        },
        "form_count": len(config.round1_forms),
        "shapes": [s.value for s in Shape],
        "bridge_steps": BRIDGE_STEPS,
    }
