"""
Agregación de resultados: totales gross/net por vuelta, reparto de un total
entrado a mano, estrategias de equipo y totales de torneo.

Todas las funciones reciben snapshots y devuelven registros nuevos.
"""

import logging
import math

from .config import DEFAULT_PAR, MAX_STROKES_PER_HOLE
from .matchplay import player_hole_strokes_from_matches
from .schemas import (
    ScoreError, ScoreLine, TeamScoreLine, TeamStrategy, TotalScoreResult,
    TournamentLine, ValidationResult,
)

logger = logging.getLogger(__name__)


def _is_played(strokes) -> bool:
    return strokes is not None and strokes > 0


def _par_at(holes, i: int) -> int:
    return holes[i].par if i < len(holes) else DEFAULT_PAR


def round_par(holes) -> int:
    return sum(h.par for h in holes)


def aggregate_from_holes(subject_id: str, per_hole_strokes, holes, handicap_strokes=0) -> ScoreLine:
    strokes = [s if _is_played(s) else None for s in per_hole_strokes]

    gross_total = sum(s for s in strokes if s is not None)
    played_par = sum(_par_at(holes, i) for i, s in enumerate(strokes) if s is not None)
    holes_played = sum(1 for s in strokes if s is not None)

    line = ScoreLine(
        subject_id=subject_id,
        per_hole_strokes=strokes,
        gross_total=gross_total,
        gross_to_par=gross_total - played_par,
        holes_played=holes_played,
    )

    if handicap_strokes and handicap_strokes > 0:
        net_total = gross_total - handicap_strokes
        line.handicap_strokes = handicap_strokes
        line.net_total = net_total
        line.net_to_par = net_total - played_par

    return line


# --------------------------------------------------------------------------------
# ------------------------------ Total entrado -----------------------------------
# --------------------------------------------------------------------------------

def synthesize_distribution(total: int, holes_count: int) -> list[int]:
    """
    Reparte `total` golpes entre `holes_count` hoyos lo más uniforme posible.
    Suma exacta y cada hoyo >= 1.

    Requiere total >= holes_count (ValueError si no). Para un total tecleado
    por el usuario se usa score_line_from_total, que valida antes con
    validate_total_score y devuelve el fallo como resultado.
    """
    if holes_count <= 0:
        return []
    if total < holes_count:
        raise ValueError(f"total {total} cannot cover {holes_count} holes")

    seed = math.floor(total / holes_count + 0.5)
    dist = [seed] * holes_count
    diff = total - sum(dist)

    i = 0
    while diff != 0:
        if diff > 0:
            dist[i] += 1
            diff -= 1
        elif dist[i] > 1:
            dist[i] -= 1
            diff += 1
        i = (i + 1) % holes_count

    return dist


def validate_total_score(total: int, holes_count: int) -> ValidationResult:
    max_total = holes_count * MAX_STROKES_PER_HOLE
    if total <= holes_count or total > max_total:
        return ValidationResult(
            ok=False,
            error=ScoreError.TOTAL_OUT_OF_RANGE,
            message=f"Total must be between {holes_count + 1} and {max_total}",
        )
    return ValidationResult(ok=True)


def score_line_from_total(subject_id: str, total: int, holes, handicap_strokes=0) -> TotalScoreResult:
    check = validate_total_score(total, len(holes))
    if not check.ok:
        logger.debug("rejected total %s for %s: %s", total, subject_id, check.message)
        return TotalScoreResult(**check.model_dump())

    strokes = synthesize_distribution(total, len(holes))
    line = aggregate_from_holes(subject_id, strokes, holes, handicap_strokes)
    return TotalScoreResult(ok=True, score_line=line)


# --------------------------------------------------------------------------------
# --------------------------------- Equipos --------------------------------------
# --------------------------------------------------------------------------------

def _best_ball(team, lines, holes, total_players) -> TeamScoreLine:
    n = max([len(holes)] + [len(l.per_hole_strokes) for l in lines])

    per_hole = []
    for i in range(n):
        vals = [
            l.per_hole_strokes[i] for l in lines
            if i < len(l.per_hole_strokes) and _is_played(l.per_hole_strokes[i])
        ]
        per_hole.append(min(vals) if vals else None)

    base = aggregate_from_holes(team.id, per_hole, holes)
    with_scores = sum(1 for l in lines if any(_is_played(s) for s in l.per_hole_strokes))

    return TeamScoreLine(
        **base.model_dump(),
        players_with_scores=with_scores,
        total_players=total_players,
    )


def _scramble(team, recorded, total_players) -> TeamScoreLine:
    if recorded is None:
        return TeamScoreLine(subject_id=team.id, is_team_score=True, total_players=total_players)

    data = recorded.model_dump(exclude={
        "subject_id", "is_team_score", "players_with_scores", "total_players", "handicap_applied",
    })
    return TeamScoreLine(
        **data,
        subject_id=team.id,
        is_team_score=True,
        players_with_scores=total_players if recorded.gross_total > 0 else 0,
        total_players=total_players,
    )


def _sum_of_individuals(team, lines, total_players) -> TeamScoreLine:
    gross = to_par = net = net_to_par = hcp = 0
    with_scores = 0
    holes_played = 0
    applied = False

    for l in lines:
        if l.gross_total <= 0:
            continue
        gross += l.gross_total
        to_par += l.gross_to_par
        net += l.net_total if l.net_total is not None else l.gross_total
        net_to_par += l.net_to_par if l.net_to_par is not None else l.gross_to_par
        hcp += l.handicap_strokes or 0
        if l.handicap_strokes:
            applied = True
        with_scores += 1
        holes_played = max(holes_played, l.holes_played)

    return TeamScoreLine(
        subject_id=team.id,
        gross_total=gross,
        gross_to_par=to_par,
        handicap_strokes=hcp if applied else None,
        net_total=net if applied else None,
        net_to_par=net_to_par if applied else None,
        holes_played=holes_played,
        players_with_scores=with_scores,
        total_players=total_players,
        handicap_applied=applied,
    )


def aggregate_team_score(strategy, team, member_lines, holes, recorded_team_score=None,
                         total_players=None) -> TeamScoreLine:
    strategy = TeamStrategy(strategy)
    lines = [l for l in member_lines if l is not None]
    if total_players is None:
        total_players = len(team.member_ids)

    if strategy == TeamStrategy.BEST_BALL:
        return _best_ball(team, lines, holes, total_players)
    if strategy == TeamStrategy.SCRAMBLE:
        return _scramble(team, recorded_team_score, total_players)
    if strategy == TeamStrategy.SUM_OF_INDIVIDUALS:
        return _sum_of_individuals(team, lines, total_players)
    raise ValueError(f"Unknown team strategy: {strategy}")


# --------------------------------------------------------------------------------
# ------------------------------ Por vuelta / torneo ------------------------------
# --------------------------------------------------------------------------------

def player_round_line(rnd, player_id: str) -> ScoreLine | None:
    """Tarjeta del jugador en la vuelta; en match play se deriva de los partidos."""
    line = rnd.scores.get(player_id)
    if line is not None:
        return line

    if rnd.matches:
        strokes = player_hole_strokes_from_matches(rnd, player_id)
        if any(s is not None for s in strokes):
            return aggregate_from_holes(player_id, strokes, rnd.holes)

    return None


def team_members(team, players) -> list:
    # Miembros por lista del equipo o por team_id del jugador
    ids = set(team.member_ids)
    return [p for p in players if p.id in ids or p.team_id == team.id]


def round_team_score(rnd, team, players) -> TeamScoreLine:
    members = team_members(team, players)
    lines = [player_round_line(rnd, p.id) for p in members]
    strategy = rnd.team_strategy
    logger.debug("round %s team %s using %s", rnd.id, team.id, strategy.value)
    return aggregate_team_score(
        strategy, team, lines, rnd.holes,
        recorded_team_score=rnd.team_scores.get(team.id),
        total_players=len(members),
    )


def aggregate_player_tournament(player_id: str, rounds) -> TournamentLine:
    total = TournamentLine(subject_id=player_id)

    for rnd in rounds:
        line = player_round_line(rnd, player_id)
        if line is None or line.gross_total <= 0:
            continue
        total.gross_total += line.gross_total
        total.gross_to_par += line.gross_to_par
        total.net_total += line.net_total if line.net_total is not None else line.gross_total
        total.net_to_par += line.net_to_par if line.net_to_par is not None else line.gross_to_par
        total.handicap_strokes += line.handicap_strokes or 0
        if line.handicap_strokes:
            total.handicap_applied = True
        total.rounds_played += 1

    return total


def _has_scores(player_id: str, rounds) -> bool:
    for rnd in rounds:
        line = player_round_line(rnd, player_id)
        if line is not None and line.gross_total > 0:
            return True
    return False


def aggregate_team_tournament(team, players, rounds) -> TournamentLine:
    """Cada vuelta se agrega con su propia estrategia y luego se suman."""
    members = team_members(team, players)
    total = TournamentLine(subject_id=team.id, total_players=len(members))

    for rnd in rounds:
        line = round_team_score(rnd, team, players)
        if line.gross_total <= 0:
            continue
        total.gross_total += line.gross_total
        total.gross_to_par += line.gross_to_par
        total.net_total += line.net_total if line.net_total is not None else line.gross_total
        total.net_to_par += line.net_to_par if line.net_to_par is not None else line.gross_to_par
        total.handicap_strokes += line.handicap_strokes or 0
        if line.handicap_applied:
            total.handicap_applied = True
        total.rounds_played += 1

    total.players_with_scores = sum(1 for p in members if _has_scores(p.id, rounds))
    return total
