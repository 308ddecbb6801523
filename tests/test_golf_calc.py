"""Hándicap: reparto de golpes, Stableford y recorrido por defecto."""

import pytest

from tourscore.errors import InvalidHandicap
from tourscore.golf_calc import (
    allocate_round_strokes, allocate_strokes_for_hole, default_holes,
    normalize_handicap, points_for_hole, round_stableford, stroke_ranks, strokes_received_per_hole,
    tournament_stableford,
)
from tourscore.schemas import HoleSpec, Round, RoundStatus, ScoreLine


class TestAllocation:
    @pytest.mark.parametrize("handicap", range(0, 37))
    def test_round_total_equals_handicap(self, standard_holes, handicap):
        assert allocate_round_strokes(handicap, standard_holes) == handicap

    def test_handicap_12_on_18_holes(self):
        for si in range(1, 19):
            expected = 1 if si <= 12 else 0
            assert allocate_strokes_for_hole(12, si, 18) == expected

    def test_handicap_20_gives_two_on_hardest(self):
        assert allocate_strokes_for_hole(20, 1, 18) == 2
        assert allocate_strokes_for_hole(20, 2, 18) == 2
        assert allocate_strokes_for_hole(20, 3, 18) == 1
        assert allocate_strokes_for_hole(20, 18, 18) == 1

    def test_nine_holes(self):
        holes = default_holes(9)
        assert allocate_round_strokes(12, holes) == 12
        assert allocate_strokes_for_hole(12, 3, 9) == 2
        assert allocate_strokes_for_hole(12, 4, 9) == 1

    def test_no_holes(self):
        assert allocate_strokes_for_hole(10, 1, 0) == 0
        assert allocate_round_strokes(10, []) == 0

    def test_received_per_hole_keyed_by_number(self, standard_holes):
        received = strokes_received_per_hole(1, standard_holes)
        # el hoyo 13 es el stroke index 1
        assert received[13] == 1
        assert sum(received.values()) == 1

    def test_nine_holes_with_eighteen_hole_indexes(self):
        # vuelta de 9 con los índices impares de la tarjeta de 18
        holes = [HoleSpec(number=i, par=4, stroke_index=2 * i - 1) for i in range(1, 10)]
        assert stroke_ranks(holes) == {i: i for i in range(1, 10)}
        assert allocate_round_strokes(5, holes) == 5
        received = strokes_received_per_hole(5, holes)
        assert [received[i] for i in range(1, 10)] == [1, 1, 1, 1, 1, 0, 0, 0, 0]

    def test_ranks_follow_difficulty(self, standard_holes):
        ranks = stroke_ranks(standard_holes)
        assert all(ranks[h.number] == h.stroke_index for h in standard_holes)

        holes = [HoleSpec(number=1, par=4, stroke_index=8),
                 HoleSpec(number=2, par=4, stroke_index=2),
                 HoleSpec(number=3, par=4, stroke_index=14)]
        assert stroke_ranks(holes) == {2: 1, 1: 2, 3: 3}
        assert strokes_received_per_hole(1, holes) == {1: 0, 2: 1, 3: 0}


class TestNormalizeHandicap:
    def test_none_is_zero(self):
        assert normalize_handicap(None) == 0

    def test_negative_clamped(self):
        assert normalize_handicap(-3) == 0

    def test_fraction_rounded(self):
        assert normalize_handicap(12.6) == 13
        assert normalize_handicap(7.0) == 7

    def test_strict_rejects(self):
        with pytest.raises(InvalidHandicap):
            normalize_handicap(-1, clamp=False)
        with pytest.raises(InvalidHandicap):
            normalize_handicap(4.5, clamp=False)

    def test_not_a_number(self):
        with pytest.raises(InvalidHandicap):
            normalize_handicap("12")
        with pytest.raises(InvalidHandicap):
            normalize_handicap(True)

    def test_invalid_handicap_is_value_error(self):
        with pytest.raises(ValueError):
            normalize_handicap(-2, clamp=False)


class TestStableford:
    @pytest.mark.parametrize("strokes,points", [(7, 0), (6, 0), (5, 1), (4, 2), (3, 3), (2, 4), (1, 5)])
    def test_table_par_4(self, strokes, points):
        assert points_for_hole(strokes, 4) == points

    def test_monotonic(self):
        for par in (3, 4, 5, 6):
            pts = [points_for_hole(s, par) for s in range(1, 12)]
            assert pts == sorted(pts, reverse=True)

    def test_round_without_handicap(self, par4_holes):
        line = ScoreLine(subject_id="p1", per_hole_strokes=[4] * 18)
        assert round_stableford(line, par4_holes) == 36

    def test_round_with_handicap_18(self, standard_holes):
        strokes = [h.par for h in standard_holes]
        line = ScoreLine(subject_id="p1", per_hole_strokes=strokes, handicap_strokes=18)
        # un golpe por hoyo: par neto = birdie en todos
        assert round_stableford(line, standard_holes) == 54

    def test_unplayed_holes_score_nothing(self, par4_holes):
        line = ScoreLine(subject_id="p1", per_hole_strokes=[4, None, 0] + [None] * 15)
        assert round_stableford(line, par4_holes) == 2

    def test_manual_override(self, par4_holes):
        line = ScoreLine(subject_id="p1", per_hole_strokes=[4] * 18, stableford_manual=40)
        assert round_stableford(line, par4_holes) == 40

    def test_missing_line(self, par4_holes):
        assert round_stableford(None, par4_holes) == 0

    def test_tournament_sum(self, par4_holes):
        r1 = Round(id="r1", holes=par4_holes, status=RoundStatus.COMPLETED,
                   scores={"p1": ScoreLine(subject_id="p1", per_hole_strokes=[4] * 18)})
        r2 = Round(id="r2", holes=par4_holes, status=RoundStatus.COMPLETED,
                   scores={"p1": ScoreLine(subject_id="p1", per_hole_strokes=[5] * 18)})
        assert tournament_stableford("p1", [r1, r2]) == 36 + 18
        assert tournament_stableford("nobody", [r1, r2]) == 0

    def test_tournament_skips_unfinished_rounds(self, par4_holes):
        done = Round(id="r1", holes=par4_holes, status=RoundStatus.COMPLETED,
                     scores={"a": ScoreLine(subject_id="a", per_hole_strokes=[4] * 18)})
        live = Round(id="r2", holes=par4_holes, status=RoundStatus.IN_PROGRESS,
                     scores={"a": ScoreLine(subject_id="a", per_hole_strokes=[4, 4] + [None] * 16)})
        created = Round(id="r3", holes=par4_holes,
                        scores={"a": ScoreLine(subject_id="a", per_hole_strokes=[4] * 18)})
        assert tournament_stableford("a", [done, live, created]) == 36


class TestHoles:
    def test_default_18(self):
        holes = default_holes(18)
        assert [h.number for h in holes] == list(range(1, 19))
        assert sum(h.par for h in holes) == 71
        assert sorted(h.stroke_index for h in holes) == list(range(1, 19))

    def test_default_9(self):
        holes = default_holes(9)
        assert [h.par for h in holes] == [4, 4, 4, 4, 5, 3, 4, 4, 4]
        assert [h.stroke_index for h in holes] == list(range(1, 10))

    def test_malformed_hole_falls_back(self):
        h = HoleSpec(number=7, par=0, stroke_index=None)
        assert h.par == 4
        assert h.stroke_index == 7
