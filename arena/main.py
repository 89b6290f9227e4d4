"""
FastAPI main application
Event progression server for a live, multi-stage elimination event

Modular architecture with separated API routers in arena/api/:
- health.py: Health check
- auth.py: Login (event password + allow-lists)
- participant.py: Current view, shape lock, bridge steps
- admin.py: Stage, forms, pause switches, scores, round 2 verification
- leaderboard.py: Live ranking
- config.py: Public event layout
- stream.py: WebSocket push of views and leaderboard

All routers access shared resources via the arena.state module.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from arena import state
from arena.config import load_config
from arena.core.identity import IdentityProvider
from arena.core.store import DocumentStore
from arena.services.event_state import EventStateStore

# Import all API routers
from arena.api import health, auth, participant, admin, leaderboard, stream
from arena.api import config as config_router


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup: load static config, build store + identity provider, seed event state
    try:
        state.CONFIG = load_config()
    except Exception as e:
        logger.error(f"❌ Failed to load event config: {e}")
        raise

    state.STORE = DocumentStore()
    state.IDENTITY = IdentityProvider()
    state.SESSIONS.clear()
    await EventStateStore(state.STORE).ensure_initialized()
    logger.info(f"✅ Server started for '{state.CONFIG.event_name}'")

    yield

    # Shutdown
    state.STORE.close()
    logger.info("🛑 Server shutting down")


# Create FastAPI app
app = FastAPI(
    title="Event Progression Server",
    description="Stage control, one-time participant choices and live state propagation",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== INCLUDE ROUTERS ====================

# Health check (GET /)
app.include_router(health.router)

# Login (POST /auth/login, /auth/logout)
app.include_router(auth.router)

# Participant endpoints (GET /me, POST /me/shape, /me/bridge)
app.include_router(participant.router)

# Admin endpoints (POST /admin/stage, /admin/active-form, etc.)
app.include_router(admin.router)

# Leaderboard (GET /leaderboard)
app.include_router(leaderboard.router)

# Config endpoint (GET /config)
app.include_router(config_router.router)

# WebSocket streams (/ws/session, /ws/leaderboard)
app.include_router(stream.router)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
