"""Pydantic schemas for es_match API."""

from pydantic import BaseModel, Field

from src.es_match.domain.models import Match


class ScoreRequest(BaseModel):
    score_a: int = Field(..., ge=0)
    score_b: int = Field(..., ge=0)


class DisputeRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=500)


class ResolveRequest(BaseModel):
    winner_id: str
    score_a: int = Field(..., ge=0)
    score_b: int = Field(..., ge=0)


class MatchResponse(BaseModel):
    id: str
    tournament_id: str
    round: int
    match_number: int
    participant_a_id: str | None
    participant_b_id: str | None
    winner_id: str | None
    score_a: int | None
    score_b: int | None
    status: str
    is_bye: bool
    locked: bool
    next_match_id: str | None
    position_in_next_match: int | None
    dispute_reason: str | None
    completed_at: str | None

    @classmethod
    def from_domain(cls, m: Match) -> "MatchResponse":
        return cls(
            id=m.id,
            tournament_id=m.tournament_id,
            round=m.round,
            match_number=m.match_number,
            participant_a_id=m.participant_a_id,
            participant_b_id=m.participant_b_id,
            winner_id=m.winner_id,
            score_a=m.score_a,
            score_b=m.score_b,
            status=m.status,
            is_bye=m.is_bye,
            locked=m.locked,
            next_match_id=m.next_match_id,
            position_in_next_match=m.position_in_next_match,
            dispute_reason=m.dispute_reason,
            completed_at=m.completed_at.isoformat() if m.completed_at else None,
        )


class MatchResultResponse(BaseModel):
    match: MatchResponse
    tournament_completed: bool
    next_match_id: str | None
    current_round: int | None
