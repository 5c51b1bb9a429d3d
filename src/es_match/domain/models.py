"""Domain models for es_match — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.es_common.enums import MatchStatus


@dataclass
class Match:
    id: str
    tournament_id: str
    round: int
    match_number: int                        # 1-indexed within round
    participant_a_id: str | None
    participant_b_id: str | None
    winner_id: str | None
    score_a: int | None
    score_b: int | None
    status: str                              # MatchStatus value
    is_bye: bool
    locked: bool
    next_match_id: str | None                # None only for the final
    position_in_next_match: int | None       # 1 = slot A, 2 = slot B
    dispute_reason: str | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_final(self) -> bool:
        return self.next_match_id is None

    @property
    def is_ready(self) -> bool:
        return self.participant_a_id is not None and self.participant_b_id is not None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def loser_id(self) -> str | None:
        if self.winner_id is None or self.is_bye:
            return None
        if self.winner_id == self.participant_a_id:
            return self.participant_b_id
        return self.participant_a_id

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in (self.participant_a_id, self.participant_b_id)
