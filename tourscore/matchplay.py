"""
Match play: estado de un partido hoyo a hoyo, puntos de copa y partidos ganados.

El estado se recalcula siempre desde la lista completa de hoyos; no se guarda
nada entre llamadas.
"""

import logging

from .config import CUP_TARGET_POINTS, DEFAULT_HOLES
from .schemas import (
    CupSession, CupStandings, Halved, HoleResult, InProgress, MatchHoleInput, MatchPoints,
    MatchState, SessionStandings, Side, Win,
)

logger = logging.getLogger(__name__)


def _valid(score) -> bool:
    return score is not None and score > 0


def hole_result(score_a, score_b) -> HoleResult:
    if not (_valid(score_a) and _valid(score_b)):
        return HoleResult.UNPLAYED
    if score_a < score_b:
        return HoleResult.A
    if score_b < score_a:
        return HoleResult.B
    return HoleResult.TIE


def _as_input(number: int, hole) -> MatchHoleInput:
    # admite MatchHoleInput, dict o una pareja (a, b) en orden de hoyo
    if isinstance(hole, MatchHoleInput):
        return hole
    if isinstance(hole, dict):
        return MatchHoleInput(**hole)
    score_a, score_b = hole
    return MatchHoleInput(hole_number=number, score_a=score_a, score_b=score_b)


def _margin(lead: int, remaining: int) -> str | None:
    if lead <= 1:
        return None
    if remaining == 0:
        return f"{lead} up"
    return f"{lead}&{remaining}"


def evaluate_match(hole_inputs, total_holes: int, side_a_name: str = "A", side_b_name: str = "B") -> MatchState:
    names = {Side.A: side_a_name, Side.B: side_b_name}

    by_number = {}
    for i, h in enumerate(hole_inputs, start=1):
        h = _as_input(i, h)
        by_number[h.hole_number] = h

    results = []
    wins = {Side.A: 0, Side.B: 0}
    played = 0
    outcome = None
    remaining = total_holes

    for number in range(1, total_holes + 1):
        h = by_number.get(number)
        res = hole_result(h.score_a, h.score_b) if h else HoleResult.UNPLAYED
        results.append(res)

        # hoyos jugados tras decidirse el partido no cuentan
        if outcome is not None or res == HoleResult.UNPLAYED:
            continue

        played += 1
        if res == HoleResult.A:
            wins[Side.A] += 1
        elif res == HoleResult.B:
            wins[Side.B] += 1

        remaining = total_holes - played
        lead = abs(wins[Side.A] - wins[Side.B])

        if lead > remaining or remaining == 0:
            if lead == 0:
                outcome = Halved()
            else:
                side = Side.A if wins[Side.A] > wins[Side.B] else Side.B
                outcome = Win(side=side, margin=_margin(lead, remaining))
            logger.debug("match decided at hole %s: %s", number, outcome)

    lead = abs(wins[Side.A] - wins[Side.B])
    leading = None
    if wins[Side.A] != wins[Side.B]:
        leading = Side.A if wins[Side.A] > wins[Side.B] else Side.B

    if outcome is None:
        outcome = InProgress(leading_side=leading, lead=lead, dormie=lead > 0 and lead == remaining)

    if isinstance(outcome, Win):
        status = f"{names[outcome.side]} Wins"
        if outcome.margin:
            status += f" {outcome.margin}"
        points = MatchPoints(a=1.0, b=0.0) if outcome.side == Side.A else MatchPoints(a=0.0, b=1.0)
    elif isinstance(outcome, Halved):
        status = "Halved"
        points = MatchPoints(a=0.5, b=0.5)
    else:
        if lead == 0:
            status = "All Square"
        elif outcome.dormie:
            status = "Dormie"
        else:
            status = f"{names[leading]} {lead}-up"
        points = MatchPoints()

    return MatchState(
        hole_results=results,
        wins_a=wins[Side.A],
        wins_b=wins[Side.B],
        holes_played=played,
        holes_remaining=remaining,
        lead=lead,
        leading_side=leading,
        status=status,
        outcome=outcome,
        points=points,
    )


# --------------------------------------------------------------------------------
# ------------------------------ Partidos de ronda -------------------------------
# --------------------------------------------------------------------------------

def _total_holes(rnd) -> int:
    return rnd.holes_count or DEFAULT_HOLES


def _side_names(match, tour):
    name_a, name_b = "A", "B"
    if tour is not None:
        team_a = tour.get_team(match.side_a.team_id) if match.side_a.team_id else None
        team_b = tour.get_team(match.side_b.team_id) if match.side_b.team_id else None
        if team_a:
            name_a = team_a.name
        if team_b:
            name_b = team_b.name
    return name_a, name_b


def evaluate_stored_match(rnd, match, tour=None) -> MatchState:
    name_a, name_b = _side_names(match, tour)
    return evaluate_match(match.holes, _total_holes(rnd), name_a, name_b)


def evaluate_round_matches(rnd, tour=None) -> dict:
    return {m.id: evaluate_stored_match(rnd, m, tour) for m in rnd.matches}


def player_hole_strokes_from_matches(rnd, player_id: str) -> list:
    """Golpes del lado del jugador en los hoyos jugados por ambos lados."""
    strokes = [None] * _total_holes(rnd)

    for match in rnd.matches:
        side = match.side_of(player_id)
        if side is None:
            continue
        for h in match.holes:
            if not (_valid(h.score_a) and _valid(h.score_b)):
                continue
            idx = h.hole_number - 1
            if 0 <= idx < len(strokes) and strokes[idx] is None:
                strokes[idx] = h.score_a if side == Side.A else h.score_b

    return strokes


def matches_won(player_id: str, rounds) -> float:
    """Partidos ganados por el jugador en vueltas cerradas; medio punto por empate."""
    won = 0.0
    for rnd in rounds:
        if not rnd.is_completed:
            continue
        for match in rnd.matches:
            side = match.side_of(player_id)
            if side is None:
                continue
            state = evaluate_stored_match(rnd, match)
            if isinstance(state.outcome, Win) and state.outcome.side == side:
                won += 1
            elif isinstance(state.outcome, Halved):
                won += 0.5
    return won


# --------------------------------------------------------------------------------
# ----------------------------------- Copa ---------------------------------------
# --------------------------------------------------------------------------------

def _cup_team_ids(tour):
    team_a_id = tour.teams[0].id if len(tour.teams) > 0 else None
    team_b_id = tour.teams[1].id if len(tour.teams) > 1 else None
    return team_a_id, team_b_id


def _team_points(match, state, team_a_id, team_b_id):
    # el lado A del partido puede ser cualquiera de los dos equipos
    if match.side_a.team_id == team_b_id or match.side_b.team_id == team_a_id:
        return state.points.b, state.points.a
    return state.points.a, state.points.b


def cup_standings(tour, rounds=None, target_points: float = CUP_TARGET_POINTS) -> CupStandings:
    rounds = tour.rounds if rounds is None else rounds
    team_a_id, team_b_id = _cup_team_ids(tour)

    standings = CupStandings(team_a_id=team_a_id, team_b_id=team_b_id, target_points=target_points)

    for rnd in rounds:
        for match in rnd.matches:
            state = evaluate_stored_match(rnd, match, tour)
            if state.completed:
                standings.matches_completed += 1
            elif state.holes_played > 0:
                standings.matches_in_progress += 1

            a, b = _team_points(match, state, team_a_id, team_b_id)
            standings.team_a_points += a
            standings.team_b_points += b

    if standings.team_a_points > standings.team_b_points:
        standings.leader = Side.A
    elif standings.team_b_points > standings.team_a_points:
        standings.leader = Side.B

    standings.clinched = max(standings.team_a_points, standings.team_b_points) >= target_points
    return standings


def session_standings(tour, rnd) -> list[SessionStandings]:
    """Puntos de copa de cada sesión de la vuelta, en orden de calendario."""
    team_a_id, team_b_id = _cup_team_ids(tour)
    by_session = {}

    for match in rnd.matches:
        if match.session is None:
            continue
        row = by_session.setdefault(match.session, SessionStandings(session=match.session))
        state = evaluate_stored_match(rnd, match, tour)

        row.match_ids.append(match.id)
        a, b = _team_points(match, state, team_a_id, team_b_id)
        row.team_a_points += a
        row.team_b_points += b
        if state.completed:
            row.matches_completed += 1

    return [by_session[s] for s in CupSession if s in by_session]
