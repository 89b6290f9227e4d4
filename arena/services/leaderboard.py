"""
Leaderboard service - read-only projection over participant records
"""
from typing import AsyncIterator, Dict, Iterable, List

from arena.models import BRIDGE_STEPS, LeaderboardEntry, ParticipantRecord
from arena.services.participants import ParticipantStore


def build_leaderboard(records: Iterable[ParticipantRecord]) -> List[LeaderboardEntry]:
    """
    Rank participants by total score

    Returns:
        Entries sorted by score (desc), then email (asc), with 1-based rank
    """
    ordered = sorted(records, key=lambda r: (-r.total_score, r.email))

    return [
        LeaderboardEntry(
            rank=idx + 1,
            participant_id=r.id,
            email=r.email,
            total_score=r.total_score,
            is_admin=r.is_admin,
            round2_completed=r.round2_completed,
            selected_shape=r.selected_shape if r.shape_locked else None,
            bridge_progress=f"{r.glass_step}/{BRIDGE_STEPS}",
        )
        for idx, r in enumerate(ordered)
    ]


async def get_leaderboard(participants: ParticipantStore) -> List[LeaderboardEntry]:
    return build_leaderboard(await participants.list_all())


async def leaderboard_feed(participants: ParticipantStore) -> AsyncIterator[List[LeaderboardEntry]]:
    """
    Live leaderboard: one full ranking after the initial load, then one per change

    The ranking is recomputed from the latest record of every participant;
    nothing cumulative is kept besides that latest-per-document map.
    """
    latest: Dict[str, ParticipantRecord] = {}

    async for batch in participants.subscribe_all():
        for record in batch:
            latest[record.id] = record
        yield build_leaderboard(latest.values())
