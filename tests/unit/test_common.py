"""Tests for es_common: errors, response envelope, platform UIDs and events."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.es_common.errors import (
    AppError,
    DrawNotAllowedError,
    InsufficientBalanceError,
    MatchLockedError,
    TournamentNotFoundError,
)
from src.es_common.events import (
    EVENT_CHANNELS,
    EventType,
    build_event,
    publish_event,
    publish_match_completed,
)
from src.es_common.response import error_response, respond, success_response
from src.es_common.uid_counter import format_platform_uid, region_for_country


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert (err.code, err.message, err.http_status) == (9002, "Internal error", 500)
        assert isinstance(err, Exception)

    def test_specific_errors(self) -> None:
        err = InsufficientBalanceError(required=6500, available=3000)
        assert (err.code, err.http_status) == (2001, 422)
        assert "6500" in err.message and "3000" in err.message
        assert TournamentNotFoundError("t-1").http_status == 404
        assert DrawNotAllowedError().code == 4002
        assert MatchLockedError("m-1").http_status == 423


class TestApiResponse:
    def test_success_and_error(self) -> None:
        assert success_response({"id": "abc"}).data == {"id": "abc"}
        resp = error_response(2001, "Insufficient balance")
        assert (resp.code, resp.data) == (2001, None)

    def test_respond_uses_request_id(self) -> None:
        request = MagicMock()
        request.state.request_id = "req_abc123"
        resp = respond(request, {"x": 1}, message="ok")
        assert resp.request_id == "req_abc123"
        assert resp.message == "ok"
        assert set(resp.model_dump()) == {"code", "message", "data", "timestamp", "request_id"}


class TestPlatformUid:
    def test_known_country(self) -> None:
        assert format_platform_uid("India", region_for_country("India"), 2026, 42) == "91-01-26-0042"

    def test_unknown_country(self) -> None:
        assert region_for_country("Atlantis") == "01"
        assert format_platform_uid(None, "01", 2026, 1) == "00-01-26-0001"

    def test_regions(self) -> None:
        assert region_for_country("USA") == "04"
        assert region_for_country("Germany") == "03"


class TestEvents:
    def test_envelope(self) -> None:
        event = build_event(EventType.BRACKET_CHANGED, {"round": 2})
        assert event["type"] == "BRACKET_CHANGED"
        assert event["version"] == 1
        assert event["source"] == "backend"
        assert event["payload"] == {"round": 2}

    async def test_disabled_publishes_nothing(self) -> None:
        with (
            patch("src.es_common.events.settings.EVENTS_ENABLED", False),
            patch("src.es_common.events.get_redis") as get_redis,
        ):
            assert await publish_event(EventType.TOURNAMENT_UPDATED, {}) is None
        get_redis.assert_not_called()

    async def test_publishes_to_channel(self) -> None:
        client = AsyncMock()
        client.publish.return_value = 1
        with (
            patch("src.es_common.events.settings.EVENTS_ENABLED", True),
            patch("src.es_common.events.get_redis", AsyncMock(return_value=client)),
        ):
            event_id = await publish_match_completed("t-1", "m-1", "p1", 2, 1)

        channel, body = client.publish.call_args.args
        assert channel == EVENT_CHANNELS[EventType.MATCH_COMPLETED]
        data = json.loads(body)
        assert data["id"] == event_id
        assert data["payload"]["winnerId"] == "p1"
        assert data["payload"]["scoreA"] == 2

    async def test_redis_failure_is_swallowed(self) -> None:
        with (
            patch("src.es_common.events.settings.EVENTS_ENABLED", True),
            patch("src.es_common.events.get_redis", AsyncMock(side_effect=ConnectionError)),
        ):
            assert await publish_event(EventType.TOURNAMENT_UPDATED, {}) is None


@pytest.mark.parametrize("event_type", list(EventType))
def test_every_event_has_channel(event_type: EventType) -> None:
    assert EVENT_CHANNELS[event_type].startswith("events:")
