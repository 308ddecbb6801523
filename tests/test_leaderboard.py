from datetime import datetime

import pytest

from tourscore.errors import NotFound
from tourscore.golf_calc import default_holes
from tourscore.leaderboard import (
    assign_positions, build_leaderboard, build_team_leaderboard, choose_sort_rule,
    format_flags_for, most_recent_round, previous_rounds, select_rounds,
    tour_leaderboard, tour_team_leaderboard,
)
from tourscore.schemas import (
    FormatFlags, Match, MatchHoleInput, MatchSide, PlayFormat, Player, Round,
    RoundSettings, RoundStatus, ScoreLine, SortRule, Team, Tour, TourFormat,
)


class TestPositions:
    def test_standard_competition_ranking(self):
        assert assign_positions([70, 72, 72, 72, 75]) == [1, 2, 2, 2, 5]

    def test_all_tied(self):
        assert assign_positions([36, 36, 36]) == [1, 1, 1]

    def test_empty(self):
        assert assign_positions([]) == []


class TestSortRule:
    def test_precedence(self):
        assert choose_sort_rule(FormatFlags(stableford_enabled=True, match_play_enabled=True,
                                            handicaps_enabled=True, is_cup_format=True)) == SortRule.STABLEFORD
        assert choose_sort_rule(FormatFlags(match_play_enabled=True, handicaps_enabled=True)) == SortRule.MATCHES_WON
        assert choose_sort_rule(FormatFlags(match_play_enabled=True, is_cup_format=True)) == SortRule.CUP_GROSS
        assert choose_sort_rule(FormatFlags(is_cup_format=True, handicaps_enabled=True)) == SortRule.CUP_GROSS
        assert choose_sort_rule(FormatFlags(handicaps_enabled=True)) == SortRule.NET
        assert choose_sort_rule(FormatFlags()) == SortRule.GROSS


@pytest.fixture
def five_players():
    return [
        Player(id="p1", name="Eva"),
        Player(id="p2", name="Carla"),
        Player(id="p3", name="Ana"),
        Player(id="p4", name="Bea"),
        Player(id="p5", name="Dora"),
        Player(id="p6", name="Fran"),
    ]


class TestBuildLeaderboard:
    def test_gross_ties(self, five_players, par4_holes, make_line):
        totals = {"p1": 70, "p2": 72, "p3": 72, "p4": 72, "p5": 75}
        rnd = Round(id="r1", holes=par4_holes,
                    scores={pid: make_line(pid, t, par4_holes) for pid, t in totals.items()})

        board = build_leaderboard(five_players, [rnd], FormatFlags())

        assert board.sort_rule == SortRule.GROSS
        assert [e.position for e in board.entries] == [1, 2, 2, 2, 5]
        # empatados: por nombre
        assert [e.subject.name for e in board.entries] == ["Eva", "Ana", "Bea", "Carla", "Dora"]
        assert [p.id for p in board.not_started] == ["p6"]
        assert board.entries[0].to_par == -2
        assert board.entries[0].display_score == 70

    def test_net_sort(self, par4_holes, make_line):
        players = [Player(id="a", name="Ana"), Player(id="b", name="Bea")]
        rnd = Round(id="r1", holes=par4_holes, settings=RoundSettings(strokes_given=True), scores={
            "a": make_line("a", 74, par4_holes),
            "b": make_line("b", 80, par4_holes, 10),
        })
        board = build_leaderboard(players, [rnd], FormatFlags(handicaps_enabled=True))
        assert board.sort_rule == SortRule.NET
        assert [e.subject.id for e in board.entries] == ["b", "a"]
        assert board.entries[0].net_total == 70
        assert board.entries[0].to_par == -2
        assert board.entries[1].net_total is None
        assert board.entries[1].display_score == 74

    def test_stableford_sorts_descending(self, par4_holes):
        players = [Player(id="a", name="Ana"), Player(id="b", name="Bea")]
        rnd = Round(id="r1", holes=par4_holes, status=RoundStatus.COMPLETED,
                    settings=RoundSettings(stableford_scoring=True), scores={
            "a": ScoreLine(subject_id="a", per_hole_strokes=[5] * 18, gross_total=90, gross_to_par=18),
            "b": ScoreLine(subject_id="b", per_hole_strokes=[4] * 18, gross_total=72, gross_to_par=0),
        })
        board = build_leaderboard(players, [rnd], FormatFlags(stableford_enabled=True))
        assert [e.subject.id for e in board.entries] == ["b", "a"]
        assert [e.stableford_points for e in board.entries] == [36, 18]
        assert [e.position for e in board.entries] == [1, 2]

    def test_stableford_ignores_round_in_play(self, par4_holes):
        players = [Player(id="a", name="Ana"), Player(id="b", name="Bea")]
        done = Round(id="r1", holes=par4_holes, status=RoundStatus.COMPLETED, scores={
            "a": ScoreLine(subject_id="a", per_hole_strokes=[4] * 18, gross_total=72),
            "b": ScoreLine(subject_id="b", per_hole_strokes=[5] * 18, gross_total=90),
        })
        live = Round(id="r2", holes=par4_holes, status=RoundStatus.IN_PROGRESS, scores={
            "b": ScoreLine(subject_id="b", per_hole_strokes=[2] * 9 + [None] * 9, gross_total=18),
        })
        board = build_leaderboard(players, [done, live], FormatFlags(stableford_enabled=True))
        assert [e.subject.id for e in board.entries] == ["a", "b"]
        assert [e.stableford_points for e in board.entries] == [36, 18]

    def test_stableford_tie_breaks_on_gross(self, par4_holes):
        players = [Player(id="a", name="Ana"), Player(id="b", name="Bea")]
        rnd = Round(id="r1", holes=par4_holes, status=RoundStatus.COMPLETED, scores={
            "a": ScoreLine(subject_id="a", per_hole_strokes=[4] * 18, gross_total=72, stableford_manual=30),
            "b": ScoreLine(subject_id="b", per_hole_strokes=[4] * 17 + [3], gross_total=71, stableford_manual=30),
        })
        board = build_leaderboard(players, [rnd], FormatFlags(stableford_enabled=True))
        assert [e.subject.id for e in board.entries] == ["b", "a"]
        assert [e.position for e in board.entries] == [1, 1]

    def test_empty(self, five_players):
        board = build_leaderboard(five_players, [], FormatFlags())
        assert board.entries == []
        assert len(board.not_started) == 6


def _tour(holes, make_line, r1_scores, r2_scores, fmt=TourFormat.INDIVIDUAL):
    players = [Player(id="a", name="Ana"), Player(id="b", name="Bea")]
    r1 = Round(id="r1", holes=holes, status=RoundStatus.COMPLETED, completed_at=datetime(2024, 5, 1),
               scores={pid: make_line(pid, t, holes) for pid, t in r1_scores.items()})
    r2 = Round(id="r2", holes=holes, status=RoundStatus.IN_PROGRESS,
               scores={pid: make_line(pid, t, holes) for pid, t in r2_scores.items()})
    return Tour(id="t", name="Tour", format=fmt, players=players, rounds=[r1, r2])


class TestTourViews:
    def test_position_change_overall(self, par4_holes, make_line):
        tour = _tour(par4_holes, make_line, {"a": 70, "b": 72}, {"a": 80, "b": 70})
        board = tour_leaderboard(tour, "overall")
        by_id = {e.subject.id: e for e in board.entries}
        assert by_id["b"].position == 1
        assert by_id["b"].position_change == 1
        assert by_id["a"].position_change == -1

    def test_no_change_with_single_round(self, par4_holes, make_line):
        tour = _tour(par4_holes, make_line, {"a": 70, "b": 72}, {})
        board = tour_leaderboard(tour, "overall")
        assert all(e.position_change is None for e in board.entries)

    def test_round_view(self, par4_holes, make_line):
        tour = _tour(par4_holes, make_line, {"a": 70, "b": 72}, {"a": 80, "b": 70})
        board = tour_leaderboard(tour, "round", "r1")
        assert [e.subject.id for e in board.entries] == ["a", "b"]
        assert [e.gross_total for e in board.entries] == [70, 72]
        assert all(e.position_change is None for e in board.entries)

    def test_active_view_is_in_progress_round(self, par4_holes, make_line):
        tour = _tour(par4_holes, make_line, {"a": 70, "b": 72}, {"a": 80, "b": 70})
        board = tour_leaderboard(tour, "active")
        assert [e.gross_total for e in board.entries] == [70, 80]
        by_id = {e.subject.id: e for e in board.entries}
        assert by_id["b"].position_change == 1

    def test_unknown_round(self, par4_holes, make_line):
        tour = _tour(par4_holes, make_line, {"a": 70}, {})
        with pytest.raises(NotFound):
            tour_leaderboard(tour, "round", "nope")

    def test_unknown_view(self):
        with pytest.raises(ValueError):
            select_rounds([], "weekly")


class TestRoundSelection:
    def test_most_recent_prefers_in_progress(self):
        rounds = [
            Round(id="r1", status=RoundStatus.COMPLETED, completed_at=datetime(2024, 5, 2)),
            Round(id="r2", status=RoundStatus.IN_PROGRESS),
        ]
        assert most_recent_round(rounds).id == "r2"

    def test_most_recent_latest_completed(self):
        rounds = [
            Round(id="r1", status=RoundStatus.COMPLETED, completed_at=datetime(2024, 5, 3)),
            Round(id="r2", status=RoundStatus.COMPLETED, completed_at=datetime(2024, 5, 2)),
            Round(id="r3"),
        ]
        assert most_recent_round(rounds).id == "r1"

    def test_most_recent_none(self):
        assert most_recent_round([Round(id="r1")]) is None
        assert select_rounds([Round(id="r1")], "active") == []

    def test_previous_overall_skips_empty_rounds(self, par4_holes):
        played = ScoreLine(subject_id="a", gross_total=72)
        rounds = [
            Round(id="r1", holes=par4_holes, scores={"a": played}),
            Round(id="r2", holes=par4_holes),
            Round(id="r3", holes=par4_holes, scores={"a": played}),
        ]
        assert [r.id for r in previous_rounds(rounds, "overall")] == ["r1"]
        assert previous_rounds(rounds[:1], "overall") is None
        assert previous_rounds(rounds, "round", "r1") is None

    def test_previous_overall_drops_round_in_play(self, par4_holes):
        # la vuelta en juego no es la última de la lista
        played = ScoreLine(subject_id="a", gross_total=72)
        rounds = [
            Round(id="r1", holes=par4_holes, status=RoundStatus.IN_PROGRESS, scores={"a": played}),
            Round(id="r2", holes=par4_holes, status=RoundStatus.COMPLETED,
                  completed_at=datetime(2024, 5, 1), scores={"a": played}),
        ]
        assert [r.id for r in previous_rounds(rounds, "overall")] == ["r2"]

    def test_format_flags(self):
        tour = Tour(id="t", name="T", format=TourFormat.CUP, rounds=[
            Round(id="r1", format=PlayFormat.FOURSOMES_MATCH_PLAY),
            Round(id="r2", settings=RoundSettings(strokes_given=True)),
        ])
        flags = format_flags_for(tour)
        assert flags.match_play_enabled
        assert flags.handicaps_enabled
        assert flags.is_cup_format
        assert not flags.stableford_enabled


class TestTeamLeaderboard:
    def test_best_ball_round(self, par4_holes, make_line):
        players = [Player(id=pid, name=pid.upper()) for pid in ("p1", "p2", "p3", "p4")]
        teams = [Team(id="t1", name="Reds", member_ids=["p1", "p2"]),
                 Team(id="t2", name="Blues", member_ids=["p3", "p4"]),
                 Team(id="t3", name="Greens", member_ids=[])]
        rnd = Round(id="r1", format=PlayFormat.BEST_BALL, holes=par4_holes, scores={
            "p1": make_line("p1", 72, par4_holes),
            "p2": ScoreLine(subject_id="p2", per_hole_strokes=[3] + [5] * 17, gross_total=88, gross_to_par=16),
            "p3": make_line("p3", 72, par4_holes),
        })
        board = build_team_leaderboard(teams, players, [rnd])
        assert board.sort_rule == SortRule.GROSS
        assert [e.team.id for e in board.entries] == ["t1", "t2"]
        assert board.entries[0].gross_total == 71
        assert board.entries[1].players_with_scores == 1
        assert board.entries[1].total_players == 2
        assert [t.id for t in board.not_started] == ["t3"]

    def test_cup_points_rank(self, par4_holes):
        teams = [Team(id="eu", name="Europe"), Team(id="us", name="USA")]
        board = build_team_leaderboard(teams, [], [], cup_points={"eu": 2.5, "us": 3.5})
        assert board.sort_rule == SortRule.CUP_POINTS
        assert [e.team.id for e in board.entries] == ["us", "eu"]
        assert board.entries[0].display_score == 3.5

    def test_tour_team_leaderboard_for_cup(self):
        teams = [Team(id="eu", name="Europe", member_ids=["p1"]), Team(id="us", name="USA", member_ids=["p2"])]
        players = [Player(id="p1", name="Ana", team_id="eu"), Player(id="p2", name="Bea", team_id="us")]
        match = Match(
            id="m1",
            side_a=MatchSide(team_id="eu", player_ids=["p1"]),
            side_b=MatchSide(team_id="us", player_ids=["p2"]),
            holes=[MatchHoleInput(hole_number=i, score_a=4, score_b=5) for i in range(1, 11)],
        )
        rnd = Round(id="r1", format=PlayFormat.SINGLES_MATCH_PLAY, holes=default_holes(18), matches=[match])
        tour = Tour(id="t", name="Cup", format=TourFormat.CUP, players=players, teams=teams, rounds=[rnd])

        board = tour_team_leaderboard(tour)
        assert board.sort_rule == SortRule.CUP_POINTS
        assert board.entries[0].team.id == "eu"
        assert board.entries[0].cup_points == 1.0
        assert board.entries[1].cup_points == 0.0
