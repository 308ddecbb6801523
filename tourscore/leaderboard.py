"""
Clasificaciones individuales y por equipos.

Una sola regla de ordenación y de empates para todas las vistas:
- posiciones "1,2,2,2,5" sobre la clave principal,
- desempate por golpes gross y después por nombre (solo para el orden),
- variación de puesto = puesto anterior - puesto actual.
"""

import logging

from .errors import NotFound
from .golf_calc import tournament_stableford
from .matchplay import cup_standings, matches_won
from .schemas import (
    FormatFlags, Leaderboard, LeaderboardEntry, RoundStatus, SortRule,
    TeamLeaderboard, TeamLeaderboardEntry, TourFormat,
)
from .scoring import (
    aggregate_player_tournament, aggregate_team_tournament, round_team_score,
)

logger = logging.getLogger(__name__)


def choose_sort_rule(flags: FormatFlags) -> SortRule:
    if flags.stableford_enabled:
        return SortRule.STABLEFORD
    if flags.match_play_enabled and not flags.is_cup_format:
        return SortRule.MATCHES_WON
    if flags.is_cup_format:
        return SortRule.CUP_GROSS
    if flags.handicaps_enabled:
        return SortRule.NET
    return SortRule.GROSS


def assign_positions(values) -> list[int]:
    """Valores ya ordenados -> posiciones con empates (1,2,2,2,5)."""
    positions = []
    for i, v in enumerate(values):
        if i > 0 and v == values[i - 1]:
            positions.append(positions[-1])
        else:
            positions.append(i + 1)
    return positions


def _primary(rule: SortRule, entry):
    if rule == SortRule.STABLEFORD:
        return entry.stableford_points or 0
    if rule == SortRule.MATCHES_WON:
        return entry.matches_won or 0
    if rule == SortRule.CUP_POINTS:
        return entry.cup_points or 0
    if rule == SortRule.NET:
        return entry.net_total if entry.net_total is not None else entry.gross_total
    return entry.gross_total


def _sort_key(rule: SortRule, entry, name: str):
    value = _primary(rule, entry)
    if rule in (SortRule.STABLEFORD, SortRule.MATCHES_WON, SortRule.CUP_POINTS):
        return (-value, entry.gross_total, name)
    return (value, entry.gross_total, name)


def _rank(rule: SortRule, rows, name_of):
    rows.sort(key=lambda e: _sort_key(rule, e, name_of(e)))
    for e, pos in zip(rows, assign_positions([_primary(rule, e) for e in rows])):
        e.position = pos
        e.display_score = _primary(rule, e)
    return rows


def _apply_position_changes(rows, previous_rows, id_of):
    before = {id_of(e): e.position for e in previous_rows}
    for e in rows:
        prev = before.get(id_of(e))
        if prev is not None:
            e.position_change = prev - e.position


# --------------------------------------------------------------------------------
# -------------------------------- Individual ------------------------------------
# --------------------------------------------------------------------------------

def build_leaderboard(players, rounds, flags: FormatFlags, previous_rounds=None) -> Leaderboard:
    rule = choose_sort_rule(flags)
    rounds = list(rounds)

    rows = []
    not_started = []

    for p in players:
        t = aggregate_player_tournament(p.id, rounds)
        if t.gross_total <= 0:
            not_started.append(p)
            continue

        entry = LeaderboardEntry(
            subject=p,
            display_score=0,
            gross_total=t.gross_total,
            gross_to_par=t.gross_to_par,
            net_total=t.net_total if t.handicap_applied else None,
            net_to_par=t.net_to_par if t.handicap_applied else None,
            handicap_strokes=t.handicap_strokes if t.handicap_applied else None,
            rounds_played=t.rounds_played,
        )
        if rule == SortRule.NET and entry.net_to_par is not None:
            entry.to_par = entry.net_to_par
        else:
            entry.to_par = entry.gross_to_par

        if flags.stableford_enabled:
            entry.stableford_points = tournament_stableford(p.id, rounds)
        if flags.match_play_enabled:
            entry.matches_won = matches_won(p.id, rounds)

        rows.append(entry)

    _rank(rule, rows, lambda e: e.subject.name)

    if previous_rounds:
        previous = build_leaderboard(players, previous_rounds, flags)
        _apply_position_changes(rows, previous.entries, lambda e: e.subject.id)

    logger.debug("leaderboard: %s ranked, %s not started, rule %s", len(rows), len(not_started), rule.value)
    return Leaderboard(sort_rule=rule, entries=rows, not_started=not_started)


# --------------------------------------------------------------------------------
# --------------------------------- Equipos --------------------------------------
# --------------------------------------------------------------------------------

def _team_line(team, players, rounds):
    if len(rounds) == 1:
        # vuelta única: la estrategia de esa vuelta decide
        line = round_team_score(rounds[0], team, players)
        return {
            "gross_total": line.gross_total,
            "gross_to_par": line.gross_to_par,
            "net_total": line.net_total,
            "net_to_par": line.net_to_par,
            "handicap_strokes": line.handicap_strokes,
            "players_with_scores": line.players_with_scores,
            "total_players": line.total_players,
        }

    t = aggregate_team_tournament(team, players, rounds)
    return {
        "gross_total": t.gross_total,
        "gross_to_par": t.gross_to_par,
        "net_total": t.net_total if t.handicap_applied else None,
        "net_to_par": t.net_to_par if t.handicap_applied else None,
        "handicap_strokes": t.handicap_strokes if t.handicap_applied else None,
        "players_with_scores": t.players_with_scores,
        "total_players": t.total_players,
    }


def build_team_leaderboard(teams, players, rounds, previous_rounds=None, cup_points=None,
                           previous_cup_points=None) -> TeamLeaderboard:
    """
    cup_points: {team_id: puntos} en formato copa; si se pasa, manda sobre los golpes.
    previous_cup_points: lo mismo para las vueltas anteriores.
    """
    rounds = list(rounds)

    rows = []
    not_started = []

    for team in teams:
        data = _team_line(team, players, rounds)
        if data["gross_total"] <= 0 and not (cup_points and cup_points.get(team.id)):
            not_started.append(team)
            continue
        entry = TeamLeaderboardEntry(team=team, display_score=0, **data)
        if cup_points is not None:
            entry.cup_points = cup_points.get(team.id, 0.0)
        rows.append(entry)

    if cup_points is not None:
        rule = SortRule.CUP_POINTS
    elif any(e.net_total is not None for e in rows):
        rule = SortRule.NET
    else:
        rule = SortRule.GROSS

    _rank(rule, rows, lambda e: e.team.name)

    if previous_rounds:
        previous = build_team_leaderboard(teams, players, previous_rounds, cup_points=previous_cup_points)
        _apply_position_changes(rows, previous.entries, lambda e: e.team.id)

    return TeamLeaderboard(sort_rule=rule, entries=rows, not_started=not_started)


# --------------------------------------------------------------------------------
# ----------------------------- Selección de rondas ------------------------------
# --------------------------------------------------------------------------------

def _has_scores(rnd) -> bool:
    if any(l.gross_total > 0 for l in rnd.scores.values()):
        return True
    if any(l.gross_total > 0 for l in rnd.team_scores.values()):
        return True
    return any(h.score_a and h.score_b for m in rnd.matches for h in m.holes)


def most_recent_round(rounds):
    """La vuelta en juego; si no hay, la última completada."""
    rounds = list(rounds)
    active = [r for r in rounds if r.status == RoundStatus.IN_PROGRESS]
    if active:
        return active[0]

    completed = [r for r in rounds if r.is_completed]
    if not completed:
        return None
    # sin fecha de cierre cuenta el orden del torneo
    _, rnd = max(
        enumerate(completed),
        key=lambda x: (x[1].completed_at.timestamp() if x[1].completed_at else 0.0, x[0]),
    )
    return rnd


def _find_round(rounds, round_id):
    for r in rounds:
        if r.id == round_id:
            return r
    raise NotFound("Round", round_id)


def select_rounds(rounds, view: str = "overall", round_id: str | None = None) -> list:
    rounds = list(rounds)
    if view == "round":
        return [_find_round(rounds, round_id)]
    if view == "active":
        rnd = most_recent_round(rounds)
        return [rnd] if rnd is not None else []
    if view == "overall":
        return rounds
    raise ValueError(f"Unknown leaderboard view: {view}")


def previous_rounds(rounds, view: str = "overall", round_id: str | None = None):
    """
    Base para la variación de puesto:
    - overall: las vueltas con resultados menos la más reciente
      (most_recent_round; si ninguna está en juego ni cerrada, la última),
    - round/active: las vueltas con resultados estrictamente anteriores.
    None si no hay base.
    """
    rounds = list(rounds)

    if view == "overall":
        played = [r for r in rounds if _has_scores(r)]
        if len(played) < 2:
            return None
        latest = most_recent_round(played) or played[-1]
        return [r for r in played if r.id != latest.id]

    if view == "round":
        target = _find_round(rounds, round_id)
    else:
        target = most_recent_round(rounds)
        if target is None:
            return None

    idx = next(i for i, r in enumerate(rounds) if r.id == target.id)
    before = [r for r in rounds[:idx] if _has_scores(r)]
    return before or None


def format_flags_for(tour, rounds=None) -> FormatFlags:
    rounds = tour.rounds if rounds is None else rounds
    return FormatFlags(
        stableford_enabled=any(r.settings.stableford_scoring for r in rounds),
        match_play_enabled=any(r.is_match_play for r in rounds),
        handicaps_enabled=any(r.settings.strokes_given for r in rounds),
        is_cup_format=tour.format == TourFormat.CUP,
    )


# --------------------------------------------------------------------------------
# ------------------------------- Entradas de tour -------------------------------
# --------------------------------------------------------------------------------

def tour_leaderboard(tour, view: str = "overall", round_id: str | None = None) -> Leaderboard:
    selected = select_rounds(tour.rounds, view, round_id)
    flags = format_flags_for(tour, selected)
    prev = previous_rounds(tour.rounds, view, round_id)
    return build_leaderboard(tour.players, selected, flags, prev)


def _cup_points(tour, rounds) -> dict:
    standings = cup_standings(tour, rounds)
    return {
        standings.team_a_id: standings.team_a_points,
        standings.team_b_id: standings.team_b_points,
    }


def tour_team_leaderboard(tour, view: str = "overall", round_id: str | None = None) -> TeamLeaderboard:
    selected = select_rounds(tour.rounds, view, round_id)
    prev = previous_rounds(tour.rounds, view, round_id)

    cup_points = prev_cup_points = None
    if tour.format == TourFormat.CUP and len(tour.teams) >= 2:
        cup_points = _cup_points(tour, selected)
        prev_cup_points = _cup_points(tour, prev or [])

    return build_team_leaderboard(tour.teams, tour.players, selected, prev, cup_points, prev_cup_points)

