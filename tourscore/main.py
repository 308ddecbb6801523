import logging
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import schemas, services
from .competitions import competition_tally
from .config import ADMIN_KEY, LOG_LEVEL
from .db import Base, engine, get_db
from .errors import InvalidEntry, InvalidMatch, NotFound
from .leaderboard import tour_leaderboard, tour_team_leaderboard
from .matchplay import cup_standings, evaluate_round_matches, session_standings
from .repository import SqlTourRepository, TourRepository
from .scoring import player_round_line
from .stats import hole_winners, round_stats

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Tour Score")


def get_repo(db: Session = Depends(get_db)) -> TourRepository:
    return SqlTourRepository(db)


def require_admin(request: Request):
    # 1) Si no hay ADMIN_KEY configurada, NO protegemos (modo dev)
    if not ADMIN_KEY:
        return

    # 2) Cookie o cabecera
    key = request.cookies.get("admin_key") or request.headers.get("X-Admin-Key")
    if key == ADMIN_KEY:
        return

    # 3) Si no coincide -> fuera
    raise HTTPException(status_code=401, detail="Admin auth required")


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidMatch)
@app.exception_handler(InvalidEntry)
async def invalid_input_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ================================================================================
# =============================== PASSWORD ADMIN =================================
# ================================================================================

class AdminLogin(BaseModel):
    key: str


@app.post("/admin/login")
def admin_login(data: AdminLogin):
    if not ADMIN_KEY:
        return {"ok": True}

    if data.key != ADMIN_KEY:
        raise HTTPException(status_code=401, detail="Clave incorrecta")

    resp = JSONResponse({"ok": True})
    resp.set_cookie(
        "admin_key",
        data.key,
        httponly=True,
        samesite="lax",
        max_age=60 * 60 * 12,  # 12 horas
    )
    return resp


@app.post("/admin/logout")
def admin_logout():
    resp = JSONResponse({"ok": True})
    resp.delete_cookie("admin_key")
    return resp


#--------------------------------------------------------------------------------
#----------------------------------- TOURS ---------------------------------------
#--------------------------------------------------------------------------------

@app.get("/tours", response_model=list[schemas.Tour])
def tours_list(repo: TourRepository = Depends(get_repo)):
    return repo.list_tours()


@app.post("/tours", response_model=schemas.Tour, status_code=201, dependencies=[Depends(require_admin)])
def tour_create(data: schemas.TourCreate, repo: TourRepository = Depends(get_repo)):
    return services.create_tour(repo, data)


@app.get("/tours/{tour_id}", response_model=schemas.Tour)
def tour_detail(tour_id: str, repo: TourRepository = Depends(get_repo)):
    return repo.get_tour(tour_id)


@app.post("/tours/{tour_id}/players", response_model=schemas.Player, status_code=201,
          dependencies=[Depends(require_admin)])
def player_create(tour_id: str, data: schemas.PlayerCreate, repo: TourRepository = Depends(get_repo)):
    return services.add_player(repo, tour_id, data)


@app.post("/tours/{tour_id}/teams", response_model=schemas.Team, status_code=201,
          dependencies=[Depends(require_admin)])
def team_create(tour_id: str, data: schemas.TeamCreate, repo: TourRepository = Depends(get_repo)):
    return services.add_team(repo, tour_id, data)


#--------------------------------------------------------------------------------
#---------------------------------- ROUNDS ---------------------------------------
#--------------------------------------------------------------------------------

@app.post("/tours/{tour_id}/rounds", response_model=schemas.Round, status_code=201,
          dependencies=[Depends(require_admin)])
def round_create(tour_id: str, data: schemas.RoundCreate, repo: TourRepository = Depends(get_repo)):
    return services.add_round(repo, tour_id, data)


@app.post("/tours/{tour_id}/rounds/{round_id}/status", response_model=schemas.Round,
          dependencies=[Depends(require_admin)])
def round_status(tour_id: str, round_id: str, data: schemas.RoundStatusUpdate,
                 repo: TourRepository = Depends(get_repo)):
    return services.set_round_status(repo, tour_id, round_id, data.status)


@app.put("/tours/{tour_id}/rounds/{round_id}/scores/{player_id}", response_model=schemas.ScoreLine,
         dependencies=[Depends(require_admin)])
def round_scores_save(tour_id: str, round_id: str, player_id: str, data: schemas.HoleScoresIn,
                      repo: TourRepository = Depends(get_repo)):
    return services.enter_hole_scores(repo, tour_id, round_id, player_id, data.strokes, data.stableford_manual)


@app.put("/tours/{tour_id}/rounds/{round_id}/scores/{player_id}/total", response_model=schemas.ScoreLine,
         dependencies=[Depends(require_admin)])
def round_total_save(tour_id: str, round_id: str, player_id: str, data: schemas.TotalScoreIn,
                     repo: TourRepository = Depends(get_repo)):
    result = services.enter_total_score(repo, tour_id, round_id, player_id, data.total)
    if not result.ok:
        raise HTTPException(status_code=422, detail={"error": result.error.value, "message": result.message})
    return result.score_line


@app.put("/tours/{tour_id}/rounds/{round_id}/team-scores/{team_id}", response_model=schemas.ScoreLine,
         dependencies=[Depends(require_admin)])
def round_team_score_save(tour_id: str, round_id: str, team_id: str, data: schemas.HoleScoresIn,
                          repo: TourRepository = Depends(get_repo)):
    return services.enter_team_score(repo, tour_id, round_id, team_id, data.strokes)


@app.get("/tours/{tour_id}/rounds/{round_id}/stats/{player_id}", response_model=schemas.RoundStats)
def round_player_stats(tour_id: str, round_id: str, player_id: str, repo: TourRepository = Depends(get_repo)):
    tour = repo.get_tour(tour_id)
    rnd = tour.get_round(round_id)
    if rnd is None:
        raise NotFound("Round", round_id)
    line = player_round_line(rnd, player_id)
    if line is None:
        raise NotFound("Score", player_id)
    return round_stats(line, rnd.holes)


@app.get("/tours/{tour_id}/rounds/{round_id}/hole-winners", response_model=list[schemas.HoleWinner])
def round_hole_winners(tour_id: str, round_id: str, repo: TourRepository = Depends(get_repo)):
    rnd = repo.get_tour(tour_id).get_round(round_id)
    if rnd is None:
        raise NotFound("Round", round_id)
    return hole_winners(rnd)


#--------------------------------------------------------------------------------
#--------------------------------- MATCHES ---------------------------------------
#--------------------------------------------------------------------------------

@app.post("/tours/{tour_id}/rounds/{round_id}/matches", response_model=schemas.Match, status_code=201,
          dependencies=[Depends(require_admin)])
def match_create(tour_id: str, round_id: str, data: schemas.MatchCreate,
                 repo: TourRepository = Depends(get_repo)):
    return services.create_match(repo, tour_id, round_id, data)


@app.get("/tours/{tour_id}/rounds/{round_id}/matches")
def round_matches(tour_id: str, round_id: str, repo: TourRepository = Depends(get_repo)):
    tour = repo.get_tour(tour_id)
    rnd = tour.get_round(round_id)
    if rnd is None:
        raise NotFound("Round", round_id)
    states = evaluate_round_matches(rnd, tour)
    return [
        {"match": m.model_dump(), "state": states[m.id].model_dump()}
        for m in rnd.matches
    ]


@app.put("/tours/{tour_id}/rounds/{round_id}/matches/{match_id}/holes/{hole_number}",
         response_model=schemas.MatchState, dependencies=[Depends(require_admin)])
def match_hole_save(tour_id: str, round_id: str, match_id: str, hole_number: int, data: schemas.MatchHoleIn,
                    repo: TourRepository = Depends(get_repo)):
    return services.record_match_hole(repo, tour_id, round_id, match_id, hole_number, data.score_a, data.score_b)


@app.post("/tours/{tour_id}/rounds/{round_id}/cup-sessions", response_model=schemas.CupSessionOut,
          status_code=201, dependencies=[Depends(require_admin)])
def cup_session_create(tour_id: str, round_id: str, data: schemas.CupSessionCreate,
                       repo: TourRepository = Depends(get_repo)):
    return services.create_cup_session(repo, tour_id, round_id, data)


@app.get("/tours/{tour_id}/rounds/{round_id}/cup-sessions", response_model=list[schemas.SessionStandings])
def cup_sessions(tour_id: str, round_id: str, repo: TourRepository = Depends(get_repo)):
    tour = repo.get_tour(tour_id)
    rnd = tour.get_round(round_id)
    if rnd is None:
        raise NotFound("Round", round_id)
    return session_standings(tour, rnd)


#--------------------------------------------------------------------------------
#------------------------------- COMPETITIONS ------------------------------------
#--------------------------------------------------------------------------------

@app.post("/tours/{tour_id}/rounds/{round_id}/competition-winners",
          response_model=schemas.CompetitionWinnersOut, status_code=201,
          dependencies=[Depends(require_admin)])
def competition_winner_save(tour_id: str, round_id: str, data: schemas.CompetitionWinnerIn,
                            repo: TourRepository = Depends(get_repo)):
    return services.record_competition_winner(repo, tour_id, round_id, data)


@app.get("/tours/{tour_id}/competitions", response_model=list[schemas.CompetitionTally])
def competitions(tour_id: str, repo: TourRepository = Depends(get_repo)):
    return competition_tally(repo.get_tour(tour_id).rounds)


#--------------------------------------------------------------------------------
#------------------------------- LEADERBOARDS ------------------------------------
#--------------------------------------------------------------------------------

@app.get("/tours/{tour_id}/leaderboard", response_model=schemas.Leaderboard)
def leaderboard(tour_id: str, view: Literal["overall", "active", "round"] = "overall",
                round_id: str | None = None, repo: TourRepository = Depends(get_repo)):
    return tour_leaderboard(repo.get_tour(tour_id), view, round_id)


@app.get("/tours/{tour_id}/leaderboard/teams", response_model=schemas.TeamLeaderboard)
def leaderboard_teams(tour_id: str, view: Literal["overall", "active", "round"] = "overall",
                      round_id: str | None = None, repo: TourRepository = Depends(get_repo)):
    return tour_team_leaderboard(repo.get_tour(tour_id), view, round_id)


@app.get("/tours/{tour_id}/cup", response_model=schemas.CupStandings)
def cup(tour_id: str, repo: TourRepository = Depends(get_repo)):
    return cup_standings(repo.get_tour(tour_id))


# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    return {"status": "ok"}
