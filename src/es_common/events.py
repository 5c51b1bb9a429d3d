"""After-commit realtime signals published to Redis Pub/Sub.

Consumers (the realtime mirror worker) are outside this service. Redis Pub/Sub
is non-durable: an event published while no subscriber is listening is lost.
Callers publish only after their transaction has committed, and a failed
publish never fails the request.

Event format:
    {"id": "...", "version": 1, "type": "MATCH_COMPLETED",
     "timestamp": 1700000000000, "source": "backend", "payload": {...}}
"""

import json
import logging
import time
import uuid
from enum import Enum
from typing import Any

from config.settings import settings
from src.es_common.redis_client import get_redis

logger = logging.getLogger("es.events")

EVENT_VERSION = 1
EVENT_SOURCE = "backend"


class EventType(str, Enum):
    MATCH_COMPLETED = "MATCH_COMPLETED"
    TOURNAMENT_UPDATED = "TOURNAMENT_UPDATED"
    BRACKET_CHANGED = "BRACKET_CHANGED"


EVENT_CHANNELS: dict[EventType, str] = {
    EventType.MATCH_COMPLETED: "events:matches",
    EventType.TOURNAMENT_UPDATED: "events:tournaments",
    EventType.BRACKET_CHANGED: "events:brackets",
}


def build_event(event_type: EventType, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "version": EVENT_VERSION,
        "type": event_type.value,
        "timestamp": int(time.time() * 1000),
        "source": EVENT_SOURCE,
        "payload": payload,
    }


async def publish_event(event_type: EventType, payload: dict[str, Any]) -> str | None:
    """Publish one event. Returns the event id, or None if disabled or failed."""
    if not settings.EVENTS_ENABLED:
        return None
    event = build_event(event_type, payload)
    channel = EVENT_CHANNELS[event_type]
    try:
        client = await get_redis()
        subscribers = await client.publish(channel, json.dumps(event, default=str))
    except Exception:
        logger.exception("Failed to publish %s to %s", event_type.value, channel)
        return None
    logger.info(
        "Published event %s to %s (%d subscribers)", event["id"], channel, subscribers
    )
    return str(event["id"])


async def publish_match_completed(
    tournament_id: str,
    match_id: str,
    winner_id: str,
    score_a: int,
    score_b: int,
) -> str | None:
    return await publish_event(
        EventType.MATCH_COMPLETED,
        {
            "tournamentId": tournament_id,
            "matchId": match_id,
            "winnerId": winner_id,
            "scoreA": score_a,
            "scoreB": score_b,
            "completedAt": int(time.time() * 1000),
        },
    )


async def publish_tournament_updated(
    tournament_id: str, status: str, updated_fields: list[str]
) -> str | None:
    return await publish_event(
        EventType.TOURNAMENT_UPDATED,
        {"tournamentId": tournament_id, "status": status, "updatedFields": updated_fields},
    )


async def publish_bracket_changed(tournament_id: str, round_number: int) -> str | None:
    return await publish_event(
        EventType.BRACKET_CHANGED,
        {
            "tournamentId": tournament_id,
            "round": round_number,
            "updatedAt": int(time.time() * 1000),
        },
    )
