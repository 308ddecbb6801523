"""Acceso a los torneos guardados, detrás de una interfaz común."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from sqlalchemy.orm import Session

from . import crud, schemas
from .errors import NotFound

logger = logging.getLogger(__name__)


class TourRepository(ABC):
    """Almacén de torneos.

    Devuelve siempre snapshots `schemas.Tour`; modificar el snapshot no
    cambia nada guardado. Los campos derivados de cada ScoreLine llegan ya
    calculados por quien llama.
    """

    @abstractmethod
    def list_tours(self) -> list[schemas.Tour]:
        pass

    @abstractmethod
    def get_tour(self, tour_id: str) -> schemas.Tour:
        """Snapshot completo del torneo. NotFound si no existe."""
        pass

    @abstractmethod
    def save_tour(self, tour: schemas.Tour) -> schemas.Tour:
        """Crea o reemplaza el torneo entero."""
        pass

    @abstractmethod
    def add_player(self, tour_id: str, player: schemas.Player) -> schemas.Player:
        pass

    @abstractmethod
    def add_team(self, tour_id: str, team: schemas.Team) -> schemas.Team:
        pass

    @abstractmethod
    def add_round(self, tour_id: str, rnd: schemas.Round) -> schemas.Round:
        pass

    @abstractmethod
    def save_score_line(self, tour_id: str, round_id: str, line: schemas.ScoreLine) -> schemas.ScoreLine:
        pass

    @abstractmethod
    def save_team_score(self, tour_id: str, round_id: str, line: schemas.ScoreLine) -> schemas.ScoreLine:
        pass

    @abstractmethod
    def save_match(self, tour_id: str, round_id: str, match: schemas.Match) -> schemas.Match:
        pass

    @abstractmethod
    def set_round_status(self, tour_id: str, round_id: str, status: schemas.RoundStatus,
                         started_at: datetime | None = None,
                         completed_at: datetime | None = None) -> schemas.Round:
        pass

    @abstractmethod
    def save_competition_winners(self, tour_id: str, round_id: str,
                                 winners: schemas.CompetitionWinners) -> schemas.CompetitionWinners:
        """Reemplaza los ganadores de bola más cercana / drive más largo de la vuelta."""
        pass


# --------------------------------------------------------------------------------
# -------------------------------- SQLAlchemy ------------------------------------
# --------------------------------------------------------------------------------

class SqlTourRepository(TourRepository):
    def __init__(self, db: Session):
        self.db = db

    def list_tours(self):
        return [crud.tour_snapshot(self.db, t.id) for t in crud.get_tours(self.db)]

    def get_tour(self, tour_id):
        return crud.tour_snapshot(self.db, tour_id)

    def save_tour(self, tour):
        try:
            crud.delete_tour(self.db, tour.id)
        except NotFound:
            pass

        crud.create_tour(self.db, schemas.TourCreate(name=tour.name, format=tour.format), tour_id=tour.id)
        for p in tour.players:
            crud.add_player(self.db, tour.id, p)
        for team in tour.teams:
            crud.add_team(self.db, tour.id, team)
        for rnd in tour.rounds:
            crud.add_round(self.db, tour.id, rnd)
            for line in list(rnd.scores.values()) + list(rnd.team_scores.values()):
                crud.upsert_score(self.db, tour.id, rnd.id, line)
            for m in rnd.matches:
                crud.save_match(self.db, tour.id, rnd.id, m)

        return self.get_tour(tour.id)

    def add_player(self, tour_id, player):
        crud.add_player(self.db, tour_id, player)
        return player

    def add_team(self, tour_id, team):
        crud.add_team(self.db, tour_id, team)
        return team

    def add_round(self, tour_id, rnd):
        crud.add_round(self.db, tour_id, rnd)
        return rnd

    def save_score_line(self, tour_id, round_id, line):
        crud.upsert_score(self.db, tour_id, round_id, line.model_copy(update={"is_team_score": False}))
        return line

    def save_team_score(self, tour_id, round_id, line):
        line = line.model_copy(update={"is_team_score": True})
        crud.upsert_score(self.db, tour_id, round_id, line)
        return line

    def save_match(self, tour_id, round_id, match):
        crud.save_match(self.db, tour_id, round_id, match)
        return match

    def set_round_status(self, tour_id, round_id, status, started_at=None, completed_at=None):
        crud.set_round_status(self.db, tour_id, round_id, status, started_at, completed_at)
        return self.get_tour(tour_id).get_round(round_id)

    def save_competition_winners(self, tour_id, round_id, winners):
        crud.save_competition_winners(self.db, tour_id, round_id, winners)
        return winners


# --------------------------------------------------------------------------------
# --------------------------------- Memoria --------------------------------------
# --------------------------------------------------------------------------------

class InMemoryTourRepository(TourRepository):
    """Torneos en un dict; útil en tests y scripts."""

    def __init__(self):
        self._tours: dict[str, schemas.Tour] = {}

    def _tour(self, tour_id) -> schemas.Tour:
        tour = self._tours.get(tour_id)
        if tour is None:
            raise NotFound("Tour", tour_id)
        return tour

    def _round(self, tour_id, round_id) -> schemas.Round:
        rnd = self._tour(tour_id).get_round(round_id)
        if rnd is None:
            raise NotFound("Round", round_id)
        return rnd

    def list_tours(self):
        return [t.model_copy(deep=True) for t in self._tours.values()]

    def get_tour(self, tour_id):
        return self._tour(tour_id).model_copy(deep=True)

    def save_tour(self, tour):
        self._tours[tour.id] = tour.model_copy(deep=True)
        return self.get_tour(tour.id)

    def add_player(self, tour_id, player):
        self._tour(tour_id).players.append(player.model_copy())
        return player

    def add_team(self, tour_id, team):
        tour = self._tour(tour_id)
        tour.teams.append(team.model_copy(deep=True))
        for p in tour.players:
            if p.id in team.member_ids:
                p.team_id = team.id
        return team

    def add_round(self, tour_id, rnd):
        self._tour(tour_id).rounds.append(rnd.model_copy(deep=True))
        return rnd

    def save_score_line(self, tour_id, round_id, line):
        line = line.model_copy(update={"is_team_score": False})
        self._round(tour_id, round_id).scores[line.subject_id] = line
        return line

    def save_team_score(self, tour_id, round_id, line):
        line = line.model_copy(update={"is_team_score": True})
        self._round(tour_id, round_id).team_scores[line.subject_id] = line
        return line

    def save_match(self, tour_id, round_id, match):
        rnd = self._round(tour_id, round_id)
        stored = match.model_copy(deep=True)
        for i, m in enumerate(rnd.matches):
            if m.id == match.id:
                rnd.matches[i] = stored
                break
        else:
            rnd.matches.append(stored)
        return match

    def set_round_status(self, tour_id, round_id, status, started_at=None, completed_at=None):
        rnd = self._round(tour_id, round_id)
        rnd.status = status
        if started_at is not None:
            rnd.started_at = started_at
        if completed_at is not None:
            rnd.completed_at = completed_at
        return rnd.model_copy(deep=True)

    def save_competition_winners(self, tour_id, round_id, winners):
        self._round(tour_id, round_id).competition_winners = winners.model_copy(deep=True)
        return winners
