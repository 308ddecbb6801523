import logging
from uuid import uuid4

from sqlalchemy.orm import Session

from . import models, schemas
from .errors import NotFound

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


#---------------------------------------------------------------------------------
# ----------------------------------- Tours --------------------------------------
# --------------------------------------------------------------------------------

def get_tour(db: Session, tour_id: str):
    t = db.query(models.Tour).filter(models.Tour.id == tour_id).first()
    if not t:
        raise NotFound("Tour", tour_id)
    return t

def get_tours(db: Session):
    return db.query(models.Tour).order_by(models.Tour.created_at.desc()).all()

def create_tour(db: Session, data: schemas.TourCreate, tour_id: str | None = None):
    t = models.Tour(id=tour_id or _new_id(), name=data.name, format=data.format.value)
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("created tour %s (%s)", t.id, t.name)
    return t

def delete_tour(db: Session, tour_id: str):
    t = get_tour(db, tour_id)
    db.delete(t)
    db.commit()
    return True


#---------------------------------------------------------------------------------
# ---------------------------------- Players -------------------------------------
# --------------------------------------------------------------------------------

def add_player(db: Session, tour_id: str, player: schemas.Player):
    t = get_tour(db, tour_id)
    p = models.Player(
        id=player.id,
        tour_id=t.id,
        position=len(t.players),
        name=player.name,
        course_handicap=player.course_handicap,
        team_id=player.team_id,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


#---------------------------------------------------------------------------------
# ----------------------------------- Teams --------------------------------------
# --------------------------------------------------------------------------------

def add_team(db: Session, tour_id: str, team: schemas.Team):
    t = get_tour(db, tour_id)
    row = models.Team(
        id=team.id,
        tour_id=t.id,
        position=len(t.teams),
        name=team.name,
        member_ids=list(team.member_ids),
        captain_id=team.captain_id,
        color=team.color,
    )
    db.add(row)

    # los miembros quedan marcados con su equipo
    for p in t.players:
        if p.id in team.member_ids:
            p.team_id = team.id

    db.commit()
    db.refresh(row)
    return row


#---------------------------------------------------------------------------------
# ---------------------------------- Rounds --------------------------------------
# --------------------------------------------------------------------------------

def get_round(db: Session, tour_id: str, round_id: str):
    r = (
        db.query(models.Round)
        .filter(models.Round.id == round_id, models.Round.tour_id == tour_id)
        .first()
    )
    if not r:
        raise NotFound("Round", round_id)
    return r

def add_round(db: Session, tour_id: str, rnd: schemas.Round):
    t = get_tour(db, tour_id)
    r = models.Round(
        id=rnd.id,
        tour_id=t.id,
        position=len(t.rounds),
        name=rnd.name,
        format=rnd.format.value,
        holes=[h.model_dump() for h in rnd.holes],
        settings=rnd.settings.model_dump(mode="json"),
        competition_winners=rnd.competition_winners.model_dump(mode="json"),
        status=rnd.status.value,
        started_at=rnd.started_at,
        completed_at=rnd.completed_at,
    )
    db.add(r)
    db.commit()
    db.refresh(r)
    logger.info("created round %s in tour %s (%s)", r.id, t.id, r.format)
    return r

def set_round_status(db: Session, tour_id: str, round_id: str, status: schemas.RoundStatus,
                     started_at=None, completed_at=None):
    r = get_round(db, tour_id, round_id)
    r.status = status.value
    if started_at is not None:
        r.started_at = started_at
    if completed_at is not None:
        r.completed_at = completed_at
    db.commit()
    db.refresh(r)
    return r

def save_competition_winners(db: Session, tour_id: str, round_id: str, winners: schemas.CompetitionWinners):
    r = get_round(db, tour_id, round_id)
    r.competition_winners = winners.model_dump(mode="json")
    db.commit()
    db.refresh(r)
    return r


#---------------------------------------------------------------------------------
# ---------------------------------- Scores --------------------------------------
# --------------------------------------------------------------------------------

def upsert_score(db: Session, tour_id: str, round_id: str, line: schemas.ScoreLine):
    r = get_round(db, tour_id, round_id)

    s = (
        db.query(models.Score)
        .filter(
            models.Score.round_id == r.id,
            models.Score.subject_id == line.subject_id,
            models.Score.is_team_score == line.is_team_score,
        )
        .first()
    )
    if s is None:
        s = models.Score(round_id=r.id, subject_id=line.subject_id, is_team_score=line.is_team_score)
        db.add(s)

    s.per_hole_strokes = list(line.per_hole_strokes)
    s.gross_total = line.gross_total
    s.gross_to_par = line.gross_to_par
    s.handicap_strokes = line.handicap_strokes
    s.net_total = line.net_total
    s.net_to_par = line.net_to_par
    s.holes_played = line.holes_played
    s.stableford_manual = line.stableford_manual

    db.commit()
    db.refresh(s)
    return s


#---------------------------------------------------------------------------------
# ---------------------------------- Matches -------------------------------------
# --------------------------------------------------------------------------------

def save_match(db: Session, tour_id: str, round_id: str, match: schemas.Match):
    r = get_round(db, tour_id, round_id)

    m = db.query(models.Match).filter(models.Match.id == match.id).first()
    if m is None:
        m = models.Match(id=match.id, round_id=r.id, position=len(r.matches))
        db.add(m)

    m.format = match.format
    m.side_a = match.side_a.model_dump()
    m.side_b = match.side_b.model_dump()
    m.holes = [h.model_dump() for h in match.holes]
    m.session = match.session.value if match.session else None

    db.commit()
    db.refresh(m)
    return m


#---------------------------------------------------------------------------------
# --------------------------------- Snapshot -------------------------------------
# --------------------------------------------------------------------------------

def _score_to_schema(s: models.Score) -> schemas.ScoreLine:
    return schemas.ScoreLine(
        subject_id=s.subject_id,
        per_hole_strokes=s.per_hole_strokes or [],
        gross_total=s.gross_total,
        gross_to_par=s.gross_to_par,
        handicap_strokes=s.handicap_strokes,
        net_total=s.net_total,
        net_to_par=s.net_to_par,
        holes_played=s.holes_played,
        is_team_score=s.is_team_score,
        stableford_manual=s.stableford_manual,
    )

def _round_to_schema(r: models.Round) -> schemas.Round:
    return schemas.Round(
        id=r.id,
        name=r.name,
        format=r.format,
        holes=r.holes or [],
        settings=r.settings or {},
        competition_winners=r.competition_winners or {},
        status=r.status,
        started_at=r.started_at,
        completed_at=r.completed_at,
        scores={s.subject_id: _score_to_schema(s) for s in r.scores if not s.is_team_score},
        team_scores={s.subject_id: _score_to_schema(s) for s in r.scores if s.is_team_score},
        matches=[
            schemas.Match(id=m.id, format=m.format, side_a=m.side_a, side_b=m.side_b, holes=m.holes or [],
                          session=m.session)
            for m in r.matches
        ],
    )

def tour_snapshot(db: Session, tour_id: str) -> schemas.Tour:
    t = get_tour(db, tour_id)
    return schemas.Tour(
        id=t.id,
        name=t.name,
        format=t.format,
        players=[
            schemas.Player(id=p.id, name=p.name, course_handicap=p.course_handicap, team_id=p.team_id)
            for p in t.players
        ],
        teams=[
            schemas.Team(id=tm.id, name=tm.name, member_ids=tm.member_ids or [],
                         captain_id=tm.captain_id, color=tm.color)
            for tm in t.teams
        ],
        rounds=[_round_to_schema(r) for r in t.rounds],
    )
