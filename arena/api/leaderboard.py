"""
Leaderboard endpoints
"""
from fastapi import APIRouter, Depends, HTTPException

from arena.api.deps import current_admin, participants
from arena.core.exceptions import TransportError
from arena.models import ParticipantRecord
from arena.services.leaderboard import get_leaderboard


router = APIRouter(tags=["leaderboard"])


@router.get("/leaderboard")
async def get_leaderboard_data(admin: ParticipantRecord = Depends(current_admin)):
    """
    Ranking of every participant by total score (descending)

    Each row also carries shape lock, bridge progress and round 2 verification.
    """
    try:
        rows = await get_leaderboard(participants())
    except TransportError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "teams": [row.model_dump(mode="json") for row in rows],
        "total": len(rows),
    }
