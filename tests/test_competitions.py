from tourscore.competitions import competition_tally, set_competition_winner
from tourscore.schemas import CompetitionKind, CompetitionWinners, Round


class TestSetWinner:
    def test_add_and_replace(self):
        cw = set_competition_winner(CompetitionWinners(), CompetitionKind.CLOSEST_TO_PIN, 3, "a", distance=2.5)
        assert [w.player_id for w in cw.for_hole(CompetitionKind.CLOSEST_TO_PIN, 3)] == ["a"]
        assert cw.closest_to_pin[3][0].distance == 2.5

        cw = set_competition_winner(cw, CompetitionKind.CLOSEST_TO_PIN, 3, "b", distance=1.2)
        winners = cw.for_hole(CompetitionKind.CLOSEST_TO_PIN, 3)
        assert [w.player_id for w in winners] == ["b"]
        assert cw.longest_drive == {}

    def test_one_per_match(self):
        cw = CompetitionWinners()
        cw = set_competition_winner(cw, CompetitionKind.LONGEST_DRIVE, 5, "a", match_id="m1")
        cw = set_competition_winner(cw, CompetitionKind.LONGEST_DRIVE, 5, "c", match_id="m2")
        cw = set_competition_winner(cw, CompetitionKind.LONGEST_DRIVE, 5, "b", match_id="m1")
        winners = cw.for_hole(CompetitionKind.LONGEST_DRIVE, 5)
        assert [(w.player_id, w.match_id) for w in winners] == [("c", "m2"), ("b", "m1")]

    def test_remove(self):
        cw = set_competition_winner(CompetitionWinners(), "closest_to_pin", 3, "a", match_id="m1")
        cw = set_competition_winner(cw, "closest_to_pin", 3, "b")
        cw = set_competition_winner(cw, "closest_to_pin", 3, None)
        assert [w.player_id for w in cw.for_hole("closest_to_pin", 3)] == ["a"]

        cw = set_competition_winner(cw, "closest_to_pin", 3, None, match_id="m1")
        assert 3 not in cw.closest_to_pin

    def test_input_is_not_modified(self):
        before = CompetitionWinners()
        set_competition_winner(before, CompetitionKind.CLOSEST_TO_PIN, 3, "a")
        assert before.closest_to_pin == {}


class TestTally:
    def test_counts_across_rounds(self):
        r1 = Round(id="r1")
        r1.competition_winners = set_competition_winner(r1.competition_winners, "closest_to_pin", 3, "a")
        r1.competition_winners = set_competition_winner(r1.competition_winners, "longest_drive", 5, "b")
        r2 = Round(id="r2")
        r2.competition_winners = set_competition_winner(r2.competition_winners, "closest_to_pin", 7, "a")

        rows = competition_tally([r1, r2])
        assert [r.player_id for r in rows] == ["a", "b"]
        assert rows[0].closest_to_pin == 2
        assert rows[0].longest_drive == 0
        assert rows[1].longest_drive == 1

    def test_empty(self):
        assert competition_tally([Round(id="r1")]) == []
