"""
Health check and system status endpoints
"""
from fastapi import APIRouter

from arena import state


router = APIRouter(tags=["health"])


@router.get("/")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "message": f"{state.CONFIG.event_name if state.CONFIG else 'Event'} - Progression Server",
        "version": "1.0.0",
        "active_sessions": len(state.SESSIONS),
    }
