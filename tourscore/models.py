from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from .db import Base


class Tour(Base):
    __tablename__ = "tours"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    format = Column(String, nullable=False, default="individual")  # individual/team/cup

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    players = relationship("Player", back_populates="tour", cascade="all, delete-orphan",
                           order_by="Player.position")
    teams = relationship("Team", back_populates="tour", cascade="all, delete-orphan",
                         order_by="Team.position")
    rounds = relationship("Round", back_populates="tour", cascade="all, delete-orphan",
                          order_by="Round.position")


class Player(Base):
    __tablename__ = "players"

    id = Column(String, primary_key=True, index=True)
    tour_id = Column(String, ForeignKey("tours.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String, nullable=False, index=True)
    course_handicap = Column(Integer, nullable=True)
    team_id = Column(String, nullable=True)

    tour = relationship("Tour", back_populates="players")


class Team(Base):
    __tablename__ = "teams"

    id = Column(String, primary_key=True, index=True)
    tour_id = Column(String, ForeignKey("tours.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String, nullable=False)
    member_ids = Column(JSON, nullable=False, default=list)
    captain_id = Column(String, nullable=True)
    color = Column(String, nullable=True)

    tour = relationship("Tour", back_populates="teams")


class Round(Base):
    __tablename__ = "rounds"

    id = Column(String, primary_key=True, index=True)
    tour_id = Column(String, ForeignKey("tours.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String, nullable=False, default="")
    format = Column(String, nullable=False, default="stroke-play")
    holes = Column(JSON, nullable=False, default=list)        # [{number, par, stroke_index, yardage}]
    settings = Column(JSON, nullable=False, default=dict)     # strokes_given, stableford_scoring...
    competition_winners = Column(JSON, nullable=False, default=dict)  # {closest_to_pin: {hoyo: [...]}, longest_drive: ...}

    status = Column(String, nullable=False, default="created")
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    tour = relationship("Tour", back_populates="rounds")

    scores = relationship("Score", back_populates="round", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="round", cascade="all, delete-orphan",
                           order_by="Match.position")


class Score(Base):
    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, index=True)
    round_id = Column(String, ForeignKey("rounds.id"), nullable=False)

    subject_id = Column(String, nullable=False, index=True)   # jugador o equipo
    is_team_score = Column(Boolean, nullable=False, default=False)

    per_hole_strokes = Column(JSON, nullable=False, default=list)
    gross_total = Column(Integer, nullable=False, default=0)
    gross_to_par = Column(Integer, nullable=False, default=0)
    handicap_strokes = Column(Integer, nullable=True)
    net_total = Column(Integer, nullable=True)       # calculado
    net_to_par = Column(Integer, nullable=True)      # calculado
    holes_played = Column(Integer, nullable=False, default=0)
    stableford_manual = Column(Integer, nullable=True)

    round = relationship("Round", back_populates="scores")


class Match(Base):
    __tablename__ = "matches"

    id = Column(String, primary_key=True, index=True)
    round_id = Column(String, ForeignKey("rounds.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    format = Column(String, nullable=False, default="singles")
    side_a = Column(JSON, nullable=False, default=dict)   # {team_id, player_ids}
    side_b = Column(JSON, nullable=False, default=dict)
    holes = Column(JSON, nullable=False, default=list)    # [{hole_number, score_a, score_b}]
    session = Column(String, nullable=True)               # sesión de copa (day1-foursomes...)

    round = relationship("Round", back_populates="matches")
