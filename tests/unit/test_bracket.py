"""Unit tests for single-elimination bracket planning."""

import itertools

import pytest

from src.es_common.errors import InsufficientParticipantsError
from src.es_match.domain.bracket import bracket_dimensions, next_slot, plan_bracket


def _ids(n: int) -> list[str]:
    return [f"p{i}" for i in range(1, n + 1)]


def _counter_ids():  # type: ignore[no-untyped-def]
    counter = itertools.count(1)
    return lambda: f"m{next(counter)}"


class TestDimensions:
    @pytest.mark.parametrize(
        "n,expected",
        [(2, (1, 2, 0)), (3, (2, 4, 1)), (5, (3, 8, 3)), (8, (3, 8, 0)), (9, (4, 16, 7))],
    )
    def test_rounds_size_byes(self, n: int, expected: tuple[int, int, int]) -> None:
        assert bracket_dimensions(n) == expected

    @pytest.mark.parametrize("n", [0, 1])
    def test_too_few_participants(self, n: int) -> None:
        with pytest.raises(InsufficientParticipantsError):
            bracket_dimensions(n)

    @pytest.mark.parametrize("m,expected", [(1, (1, 1)), (2, (1, 2)), (3, (2, 1)), (4, (2, 2))])
    def test_next_slot(self, m: int, expected: tuple[int, int]) -> None:
        assert next_slot(m) == expected


class TestPlanBracket:
    def test_five_participants(self) -> None:
        plan = plan_bracket(_ids(5), id_factory=_counter_ids())

        assert (plan.rounds, plan.bracket_size, plan.byes) == (3, 8, 3)
        assert len(plan.matches) == 7
        first = plan.round_matches(1)
        assert len(first) == 4
        full = [m for m in first if not m.is_bye]
        byes = [m for m in first if m.is_bye]
        assert len(full) == 1
        assert (full[0].participant_a_id, full[0].participant_b_id) == ("p1", "p2")
        assert [m.participant_a_id for m in byes] == ["p3", "p4", "p5"]
        for bye in byes:
            assert bye.status == "COMPLETED"
            assert bye.winner_id == bye.participant_a_id
            assert bye.participant_b_id is None

    def test_bye_winners_placed_in_next_round(self) -> None:
        plan = plan_bracket(_ids(5), id_factory=_counter_ids())

        second = plan.round_matches(2)
        # match 2 (bye p3) feeds (2,1) slot B; byes p4/p5 fill (2,2) A and B
        assert second[0].participant_a_id is None
        assert second[0].participant_b_id == "p3"
        assert (second[1].participant_a_id, second[1].participant_b_id) == ("p4", "p5")

    @pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 13, 16, 17])
    def test_tree_shape(self, n: int) -> None:
        plan = plan_bracket(_ids(n))
        by_id = {m.id: m for m in plan.matches}

        assert len(plan.matches) == plan.bracket_size - 1
        roots = [m for m in plan.matches if m.next_match_id is None]
        assert roots == [plan.final]
        assert plan.final.round == plan.rounds
        for match in plan.matches:
            if match.next_match_id is None:
                continue
            parent = by_id[match.next_match_id]
            assert parent.round == match.round + 1
            assert parent.match_number == (match.match_number + 1) // 2
            assert match.position_in_next_match == (1 if match.match_number % 2 else 2)

    @pytest.mark.parametrize("n", [2, 3, 5, 8, 11])
    def test_every_participant_placed_once(self, n: int) -> None:
        plan = plan_bracket(_ids(n))
        first = plan.round_matches(1)
        placed = [m.participant_a_id for m in first] + [
            m.participant_b_id for m in first if m.participant_b_id
        ]
        assert sorted(placed) == sorted(_ids(n))
        assert all(m.participant_a_id is not None for m in first)

    def test_two_participants_is_just_a_final(self) -> None:
        plan = plan_bracket(["a", "b"])
        assert len(plan.matches) == 1
        assert plan.final.participant_a_id == "a"
        assert plan.final.participant_b_id == "b"
        assert plan.final.is_bye is False

    def test_match_at(self) -> None:
        plan = plan_bracket(_ids(8))
        assert plan.match_at(1, 4).round == 1
        assert plan.match_at(1, 4).match_number == 4
        assert plan.match_at(2, 2).match_number == 2
        assert plan.match_at(3, 1) is plan.final
