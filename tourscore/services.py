"""
Operaciones de escritura sobre un TourRepository.

Cada escritura de golpes recalcula los campos derivados (totales, neto,
estado del partido) antes de guardar.
"""

import logging
from datetime import datetime, timezone
from uuid import uuid4

from . import schemas
from .competitions import set_competition_winner
from .errors import InvalidEntry, InvalidMatch, NotFound
from .golf_calc import allocate_round_strokes, default_holes, normalize_handicap
from .matchplay import evaluate_stored_match
from .repository import TourRepository
from .scoring import aggregate_from_holes, score_line_from_total

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


def _round_of(tour: schemas.Tour, round_id: str) -> schemas.Round:
    rnd = tour.get_round(round_id)
    if rnd is None:
        raise NotFound("Round", round_id)
    return rnd


def _player_of(tour: schemas.Tour, player_id: str) -> schemas.Player:
    p = tour.get_player(player_id)
    if p is None:
        raise NotFound("Player", player_id)
    return p


#---------------------------------------------------------------------------------
# ------------------------------- Tour / altas -----------------------------------
# --------------------------------------------------------------------------------

def create_tour(repo: TourRepository, data: schemas.TourCreate) -> schemas.Tour:
    tour = schemas.Tour(id=_new_id(), name=data.name, format=data.format)
    return repo.save_tour(tour)


def add_player(repo: TourRepository, tour_id: str, data: schemas.PlayerCreate) -> schemas.Player:
    tour = repo.get_tour(tour_id)
    if data.team_id and tour.get_team(data.team_id) is None:
        raise NotFound("Team", data.team_id)

    player = schemas.Player(
        id=_new_id(),
        name=data.name.strip(),
        course_handicap=normalize_handicap(data.course_handicap) if data.course_handicap is not None else None,
        team_id=data.team_id,
    )
    repo.add_player(tour_id, player)
    logger.info("added player %s to tour %s", player.id, tour_id)
    return player


def add_team(repo: TourRepository, tour_id: str, data: schemas.TeamCreate) -> schemas.Team:
    tour = repo.get_tour(tour_id)
    for pid in data.member_ids:
        _player_of(tour, pid)

    team = schemas.Team(
        id=_new_id(),
        name=data.name.strip(),
        member_ids=list(data.member_ids),
        captain_id=data.captain_id,
        color=data.color,
    )
    repo.add_team(tour_id, team)
    logger.info("added team %s to tour %s", team.id, tour_id)
    return team


def add_round(repo: TourRepository, tour_id: str, data: schemas.RoundCreate) -> schemas.Round:
    holes = data.holes if data.holes else default_holes(data.holes_count)
    rnd = schemas.Round(
        id=_new_id(),
        name=data.name,
        format=data.format,
        holes=holes,
        settings=data.settings,
    )
    return repo.add_round(tour_id, rnd)


def set_round_status(repo: TourRepository, tour_id: str, round_id: str,
                     status: schemas.RoundStatus) -> schemas.Round:
    now = datetime.now(timezone.utc)
    started_at = now if status == schemas.RoundStatus.IN_PROGRESS else None
    completed_at = now if status == schemas.RoundStatus.COMPLETED else None
    logger.info("round %s of tour %s -> %s", round_id, tour_id, status.value)
    return repo.set_round_status(tour_id, round_id, status, started_at, completed_at)


#---------------------------------------------------------------------------------
# --------------------------------- Golpes ---------------------------------------
# --------------------------------------------------------------------------------

def handicap_strokes_for(rnd: schemas.Round, player: schemas.Player) -> int:
    if not rnd.settings.strokes_given:
        return 0
    return allocate_round_strokes(normalize_handicap(player.course_handicap), rnd.holes)


def _fit(strokes, holes_count: int) -> list:
    strokes = list(strokes)[:holes_count]
    return strokes + [None] * (holes_count - len(strokes))


def enter_hole_scores(repo: TourRepository, tour_id: str, round_id: str, player_id: str,
                      strokes, stableford_manual=None) -> schemas.ScoreLine:
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)
    player = _player_of(tour, player_id)

    line = aggregate_from_holes(
        player.id, _fit(strokes, rnd.holes_count), rnd.holes, handicap_strokes_for(rnd, player),
    )
    line.stableford_manual = stableford_manual

    logger.info("scores for %s in round %s: %s (%s holes)", player.id, rnd.id, line.gross_total, line.holes_played)
    return repo.save_score_line(tour_id, round_id, line)


def enter_total_score(repo: TourRepository, tour_id: str, round_id: str, player_id: str,
                      total: int) -> schemas.TotalScoreResult:
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)
    player = _player_of(tour, player_id)

    result = score_line_from_total(player.id, total, rnd.holes, handicap_strokes_for(rnd, player))
    if not result.ok:
        return result

    repo.save_score_line(tour_id, round_id, result.score_line)
    logger.info("total %s for %s in round %s", total, player.id, rnd.id)
    return result


def enter_team_score(repo: TourRepository, tour_id: str, round_id: str, team_id: str,
                     strokes) -> schemas.ScoreLine:
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)
    if tour.get_team(team_id) is None:
        raise NotFound("Team", team_id)

    line = aggregate_from_holes(team_id, _fit(strokes, rnd.holes_count), rnd.holes)
    line.is_team_score = True

    logger.info("team score for %s in round %s: %s", team_id, rnd.id, line.gross_total)
    return repo.save_team_score(tour_id, round_id, line)


#---------------------------------------------------------------------------------
# -------------------------------- Partidos --------------------------------------
# --------------------------------------------------------------------------------

def _check_sides(tour: schemas.Tour, side_a: schemas.MatchSide, side_b: schemas.MatchSide):
    for side in (side_a, side_b):
        if side.team_id and tour.get_team(side.team_id) is None:
            raise NotFound("Team", side.team_id)
        for pid in side.player_ids:
            _player_of(tour, pid)

    overlap = set(side_a.player_ids) & set(side_b.player_ids)
    if overlap:
        raise InvalidMatch(f"Players on both sides: {sorted(overlap)}")


def create_match(repo: TourRepository, tour_id: str, round_id: str,
                 data: schemas.MatchCreate) -> schemas.Match:
    tour = repo.get_tour(tour_id)
    _round_of(tour, round_id)
    _check_sides(tour, data.side_a, data.side_b)

    match = schemas.Match(id=_new_id(), format=data.format, side_a=data.side_a, side_b=data.side_b)
    repo.save_match(tour_id, round_id, match)
    logger.info("created match %s in round %s", match.id, round_id)
    return match


def record_match_hole(repo: TourRepository, tour_id: str, round_id: str, match_id: str,
                      hole_number: int, score_a=None, score_b=None) -> schemas.MatchState:
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)

    match = next((m for m in rnd.matches if m.id == match_id), None)
    if match is None:
        raise NotFound("Match", match_id)

    if not 1 <= hole_number <= rnd.holes_count:
        raise InvalidMatch(f"Hole {hole_number} is outside a {rnd.holes_count}-hole round")

    holes = [h for h in match.holes if h.hole_number != hole_number]
    holes.append(schemas.MatchHoleInput(hole_number=hole_number, score_a=score_a, score_b=score_b))
    holes.sort(key=lambda h: h.hole_number)
    match = match.model_copy(update={"holes": holes})

    repo.save_match(tour_id, round_id, match)
    state = evaluate_stored_match(rnd, match, tour)
    logger.info("match %s hole %s: %s", match.id, hole_number, state.status)
    return state


def create_cup_session(repo: TourRepository, tour_id: str, round_id: str,
                       data: schemas.CupSessionCreate) -> schemas.CupSessionOut:
    """
    Crea los partidos de una sesión de copa a partir de los emparejamientos.
    Lado A = primer equipo del torneo, lado B = segundo. Se valida todo
    antes de guardar nada.
    """
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)

    session = data.session or rnd.settings.cup_session
    if session is None:
        raise InvalidMatch(f"Round {round_id} has no cup session")
    if len(tour.teams) < 2:
        raise InvalidMatch("A cup session needs two teams")
    if not data.pairings:
        raise InvalidMatch("A cup session needs at least one pairing")

    team_a, team_b = tour.teams[0], tour.teams[1]
    paired = set()
    matches = []

    for pairing in data.pairings:
        side_a = schemas.MatchSide(team_id=team_a.id, player_ids=list(pairing.team_a_player_ids))
        side_b = schemas.MatchSide(team_id=team_b.id, player_ids=list(pairing.team_b_player_ids))
        if not side_a.player_ids or not side_b.player_ids:
            raise InvalidMatch("Every pairing needs players on both sides")
        _check_sides(tour, side_a, side_b)

        players = set(side_a.player_ids) | set(side_b.player_ids)
        twice = paired & players
        if twice:
            raise InvalidMatch(f"Players paired twice in the session: {sorted(twice)}")
        paired |= players

        matches.append(schemas.Match(
            id=_new_id(),
            format=session.match_format,
            side_a=side_a,
            side_b=side_b,
            session=session,
        ))

    for match in matches:
        repo.save_match(tour_id, round_id, match)
    logger.info("cup session %s in round %s: %s matches", session.value, round_id, len(matches))
    return schemas.CupSessionOut(session=session, matches=matches)


#---------------------------------------------------------------------------------
# ------------------------- Bola más cercana / drive -----------------------------
# --------------------------------------------------------------------------------

def record_competition_winner(repo: TourRepository, tour_id: str, round_id: str,
                              data: schemas.CompetitionWinnerIn) -> schemas.CompetitionWinnersOut:
    tour = repo.get_tour(tour_id)
    rnd = _round_of(tour, round_id)

    if not 1 <= data.hole_number <= rnd.holes_count:
        raise InvalidEntry(f"Hole {data.hole_number} is outside a {rnd.holes_count}-hole round")
    if data.winner_id is not None:
        _player_of(tour, data.winner_id)
    if data.match_id is not None and all(m.id != data.match_id for m in rnd.matches):
        raise NotFound("Match", data.match_id)

    winners = set_competition_winner(
        rnd.competition_winners, data.kind, data.hole_number,
        data.winner_id, data.distance, data.match_id,
    )
    repo.save_competition_winners(tour_id, round_id, winners)

    logger.info("%s hole %s in round %s -> %s", data.kind.value, data.hole_number, round_id, data.winner_id)
    return schemas.CompetitionWinnersOut(
        hole_number=data.hole_number,
        kind=data.kind,
        winners=winners.for_hole(data.kind, data.hole_number),
    )
