import logging
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .config import DEFAULT_PAR

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------------
# ----------------------------------- Enums --------------------------------------
# --------------------------------------------------------------------------------

class PlayFormat(str, Enum):
    STROKE_PLAY = "stroke-play"
    MATCH_PLAY = "match-play"
    SCRAMBLE = "scramble"
    BEST_BALL = "best-ball"
    ALTERNATE_SHOT = "alternate-shot"
    SKINS = "skins"
    FOURSOMES_MATCH_PLAY = "foursomes-match-play"
    FOUR_BALL_MATCH_PLAY = "four-ball-match-play"
    SINGLES_MATCH_PLAY = "singles-match-play"

    @property
    def is_match_play(self) -> bool:
        return self in MATCH_PLAY_FORMATS


MATCH_PLAY_FORMATS = frozenset({
    PlayFormat.MATCH_PLAY,
    PlayFormat.FOURSOMES_MATCH_PLAY,
    PlayFormat.FOUR_BALL_MATCH_PLAY,
    PlayFormat.SINGLES_MATCH_PLAY,
})


class TeamStrategy(str, Enum):
    SUM_OF_INDIVIDUALS = "sum_of_individuals"
    BEST_BALL = "best_ball"
    SCRAMBLE = "scramble"


# Cada formato tiene exactamente una estrategia de equipo
_STRATEGY_BY_FORMAT = {
    PlayFormat.STROKE_PLAY: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.MATCH_PLAY: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.SCRAMBLE: TeamStrategy.SCRAMBLE,
    PlayFormat.BEST_BALL: TeamStrategy.BEST_BALL,
    PlayFormat.ALTERNATE_SHOT: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.SKINS: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.FOURSOMES_MATCH_PLAY: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.FOUR_BALL_MATCH_PLAY: TeamStrategy.SUM_OF_INDIVIDUALS,
    PlayFormat.SINGLES_MATCH_PLAY: TeamStrategy.SUM_OF_INDIVIDUALS,
}


def strategy_for_format(fmt: PlayFormat) -> TeamStrategy:
    return _STRATEGY_BY_FORMAT[PlayFormat(fmt)]


class RoundStatus(str, Enum):
    CREATED = "created"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TourFormat(str, Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"
    CUP = "cup"


class Side(str, Enum):
    A = "A"
    B = "B"


class HoleResult(str, Enum):
    A = "A"
    B = "B"
    TIE = "tie"
    UNPLAYED = "unplayed"


class CupSession(str, Enum):
    DAY1_FOURSOMES = "day1-foursomes"
    DAY1_FOUR_BALL = "day1-four-ball"
    DAY2_FOURSOMES = "day2-foursomes"
    DAY2_FOUR_BALL = "day2-four-ball"
    DAY3_SINGLES = "day3-singles"

    @property
    def match_format(self) -> str:
        if self == CupSession.DAY3_SINGLES:
            return "singles"
        if self in (CupSession.DAY1_FOURSOMES, CupSession.DAY2_FOURSOMES):
            return "foursomes"
        return "four-ball"


class CompetitionKind(str, Enum):
    CLOSEST_TO_PIN = "closest_to_pin"
    LONGEST_DRIVE = "longest_drive"


# --------------------------------------------------------------------------------
# ---------------------------------- Campo ---------------------------------------
# --------------------------------------------------------------------------------

class HoleSpec(BaseModel):
    number: int
    par: Optional[int] = None
    stroke_index: Optional[int] = None
    yardage: Optional[int] = None
    closest_to_pin: bool = False
    longest_drive: bool = False

    @model_validator(mode="after")
    def _fill_defaults(self):
        # Hoyo mal definido: par 4 y stroke index = número de hoyo
        if self.par is None or self.par <= 0:
            logger.debug("hole %s without par, using %s", self.number, DEFAULT_PAR)
            self.par = DEFAULT_PAR
        if self.stroke_index is None or self.stroke_index <= 0:
            logger.debug("hole %s without stroke index, using hole number", self.number)
            self.stroke_index = self.number
        return self


# --------------------------------------------------------------------------------
# --------------------------------- Sujetos --------------------------------------
# --------------------------------------------------------------------------------

class Player(BaseModel):
    id: str
    name: str
    course_handicap: Optional[int] = None
    team_id: str | None = None


class Team(BaseModel):
    id: str
    name: str
    member_ids: list[str] = Field(default_factory=list)
    captain_id: str | None = None
    color: str | None = None


# --------------------------------------------------------------------------------
# ------------------------------- Resultados -------------------------------------
# --------------------------------------------------------------------------------

class ScoreLine(BaseModel):
    subject_id: str
    per_hole_strokes: list[Optional[int]] = Field(default_factory=list)
    gross_total: int = 0
    gross_to_par: int = 0
    handicap_strokes: Optional[int] = None
    net_total: Optional[int] = None
    net_to_par: Optional[int] = None
    holes_played: int = 0
    is_team_score: bool = False
    stableford_manual: Optional[int] = None


class TeamScoreLine(ScoreLine):
    players_with_scores: int = 0
    total_players: int = 0
    handicap_applied: bool = False


class TournamentLine(BaseModel):
    """Totales acumulados de un jugador o equipo sobre varias vueltas."""
    subject_id: str
    gross_total: int = 0
    gross_to_par: int = 0
    net_total: int = 0
    net_to_par: int = 0
    handicap_strokes: int = 0
    handicap_applied: bool = False
    rounds_played: int = 0
    players_with_scores: int = 0
    total_players: int = 0


class ScoreError(str, Enum):
    TOTAL_OUT_OF_RANGE = "total_out_of_range"


class ValidationResult(BaseModel):
    ok: bool
    error: Optional[ScoreError] = None
    message: str | None = None


class TotalScoreResult(ValidationResult):
    score_line: Optional[ScoreLine] = None


# --------------------------------------------------------------------------------
# -------------------------------- Match play ------------------------------------
# --------------------------------------------------------------------------------

class MatchSide(BaseModel):
    team_id: str | None = None
    player_ids: list[str] = Field(default_factory=list)


class MatchHoleInput(BaseModel):
    hole_number: int
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class Match(BaseModel):
    id: str
    format: Literal["singles", "foursomes", "four-ball"] = "singles"
    side_a: MatchSide = Field(default_factory=MatchSide)
    side_b: MatchSide = Field(default_factory=MatchSide)
    holes: list[MatchHoleInput] = Field(default_factory=list)
    session: Optional[CupSession] = None

    def side_of(self, player_id: str) -> Optional[Side]:
        if player_id in self.side_a.player_ids:
            return Side.A
        if player_id in self.side_b.player_ids:
            return Side.B
        return None


class InProgress(BaseModel):
    kind: Literal["in_progress"] = "in_progress"
    leading_side: Optional[Side] = None
    lead: int = 0
    dormie: bool = False


class Win(BaseModel):
    kind: Literal["win"] = "win"
    side: Side
    margin: str | None = None


class Halved(BaseModel):
    kind: Literal["tie"] = "tie"


MatchOutcome = Annotated[Union[InProgress, Win, Halved], Field(discriminator="kind")]


class MatchPoints(BaseModel):
    a: float = 0.0
    b: float = 0.0


class MatchState(BaseModel):
    hole_results: list[HoleResult] = Field(default_factory=list)
    wins_a: int = 0
    wins_b: int = 0
    holes_played: int = 0
    holes_remaining: int = 0
    lead: int = 0
    leading_side: Optional[Side] = None
    status: str = "All Square"
    outcome: MatchOutcome = Field(default_factory=InProgress)
    points: MatchPoints = Field(default_factory=MatchPoints)

    @property
    def completed(self) -> bool:
        return not isinstance(self.outcome, InProgress)

    @property
    def winner(self) -> Optional[Side]:
        return self.outcome.side if isinstance(self.outcome, Win) else None

    @property
    def margin(self) -> str | None:
        return self.outcome.margin if isinstance(self.outcome, Win) else None


class CupStandings(BaseModel):
    team_a_id: str | None = None
    team_b_id: str | None = None
    team_a_points: float = 0.0
    team_b_points: float = 0.0
    target_points: float = 14.5
    matches_completed: int = 0
    matches_in_progress: int = 0
    leader: Optional[Side] = None
    clinched: bool = False


class SessionStandings(BaseModel):
    session: CupSession
    match_ids: list[str] = Field(default_factory=list)
    team_a_points: float = 0.0
    team_b_points: float = 0.0
    matches_completed: int = 0


# --------------------------------------------------------------------------------
# ------------------------------ Bola más cercana --------------------------------
# --------------------------------------------------------------------------------

class CompetitionWinner(BaseModel):
    player_id: str
    distance: Optional[float] = None
    match_id: str | None = None


class CompetitionWinners(BaseModel):
    # {hole_number: ganadores}; en match play puede haber uno por partido
    closest_to_pin: dict[int, list[CompetitionWinner]] = Field(default_factory=dict)
    longest_drive: dict[int, list[CompetitionWinner]] = Field(default_factory=dict)

    def for_hole(self, kind: CompetitionKind, hole_number: int) -> list[CompetitionWinner]:
        return list(getattr(self, CompetitionKind(kind).value).get(hole_number, []))


class CompetitionTally(BaseModel):
    player_id: str
    closest_to_pin: int = 0
    longest_drive: int = 0


# --------------------------------------------------------------------------------
# ------------------------------- Ronda / Tour -----------------------------------
# --------------------------------------------------------------------------------

class RoundSettings(BaseModel):
    strokes_given: bool = False
    stableford_scoring: bool = False
    cup_session: Optional[CupSession] = None


class Round(BaseModel):
    id: str
    name: str = ""
    format: PlayFormat = PlayFormat.STROKE_PLAY
    holes: list[HoleSpec] = Field(default_factory=list)
    scores: dict[str, ScoreLine] = Field(default_factory=dict)
    team_scores: dict[str, ScoreLine] = Field(default_factory=dict)
    matches: list[Match] = Field(default_factory=list)
    competition_winners: CompetitionWinners = Field(default_factory=CompetitionWinners)
    settings: RoundSettings = Field(default_factory=RoundSettings)
    status: RoundStatus = RoundStatus.CREATED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def holes_count(self) -> int:
        return len(self.holes)

    @property
    def team_strategy(self) -> TeamStrategy:
        return strategy_for_format(self.format)

    @property
    def is_match_play(self) -> bool:
        return self.format.is_match_play or bool(self.matches)

    @property
    def is_completed(self) -> bool:
        return self.status == RoundStatus.COMPLETED or self.completed_at is not None


class Tour(BaseModel):
    id: str
    name: str
    format: TourFormat = TourFormat.INDIVIDUAL
    players: list[Player] = Field(default_factory=list)
    teams: list[Team] = Field(default_factory=list)
    rounds: list[Round] = Field(default_factory=list)

    def get_round(self, round_id: str) -> Optional[Round]:
        return next((r for r in self.rounds if r.id == round_id), None)

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def get_team(self, team_id: str) -> Optional[Team]:
        return next((t for t in self.teams if t.id == team_id), None)


# --------------------------------------------------------------------------------
# ------------------------------- Clasificación ----------------------------------
# --------------------------------------------------------------------------------

class FormatFlags(BaseModel):
    stableford_enabled: bool = False
    match_play_enabled: bool = False
    handicaps_enabled: bool = False
    is_cup_format: bool = False


class SortRule(str, Enum):
    STABLEFORD = "stableford"
    CUP_POINTS = "cup_points"
    MATCHES_WON = "matches_won"
    CUP_GROSS = "cup_gross"
    NET = "net"
    GROSS = "gross"


class LeaderboardEntry(BaseModel):
    subject: Player
    display_score: float
    gross_total: int = 0
    gross_to_par: int = 0
    net_total: Optional[int] = None
    net_to_par: Optional[int] = None
    handicap_strokes: Optional[int] = None
    to_par: Optional[int] = None
    stableford_points: Optional[int] = None
    matches_won: Optional[float] = None
    rounds_played: int = 0
    position: int = 0
    position_change: Optional[int] = None


class TeamLeaderboardEntry(BaseModel):
    team: Team
    display_score: float
    gross_total: int = 0
    gross_to_par: int = 0
    net_total: Optional[int] = None
    net_to_par: Optional[int] = None
    handicap_strokes: Optional[int] = None
    players_with_scores: int = 0
    total_players: int = 0
    cup_points: Optional[float] = None
    position: int = 0
    position_change: Optional[int] = None


class Leaderboard(BaseModel):
    sort_rule: SortRule
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    not_started: list[Player] = Field(default_factory=list)


class TeamLeaderboard(BaseModel):
    sort_rule: SortRule
    entries: list[TeamLeaderboardEntry] = Field(default_factory=list)
    not_started: list[Team] = Field(default_factory=list)


# --------------------------------------------------------------------------------
# ------------------------------- Estadísticas -----------------------------------
# --------------------------------------------------------------------------------

class HoleHighlight(BaseModel):
    hole_number: int
    score: int
    to_par: int


class NineSummary(BaseModel):
    score: int = 0
    to_par: int = 0
    birdies: int = 0
    pars: int = 0
    bogeys: int = 0
    holes_played: int = 0


class Streak(BaseModel):
    type: Literal["birdie", "par", "bogey", "under-par", "over-par", "none"] = "none"
    length: int = 0


class RoundStats(BaseModel):
    subject_id: str
    hio: int = 0
    albatros: int = 0
    eagles: int = 0
    birdies: int = 0
    pars: int = 0
    bogeys: int = 0
    dbl: int = 0
    overdbl: int = 0
    best_hole: Optional[HoleHighlight] = None
    worst_hole: Optional[HoleHighlight] = None
    front9: NineSummary = Field(default_factory=NineSummary)
    back9: NineSummary = Field(default_factory=NineSummary)
    streak: Streak = Field(default_factory=Streak)


class HoleWinner(BaseModel):
    hole_number: int
    winner_ids: list[str]
    score: int
    to_par: int
    is_tied: bool


# --------------------------------------------------------------------------------
# ------------------------------ Entradas de API ---------------------------------
# --------------------------------------------------------------------------------

class TourCreate(BaseModel):
    name: str
    format: TourFormat = TourFormat.INDIVIDUAL


class PlayerCreate(BaseModel):
    name: str
    course_handicap: Optional[float] = None
    team_id: str | None = None


class TeamCreate(BaseModel):
    name: str
    member_ids: list[str] = Field(default_factory=list)
    captain_id: str | None = None
    color: str | None = None


class RoundCreate(BaseModel):
    name: str
    format: PlayFormat = PlayFormat.STROKE_PLAY
    holes_count: int = 18
    holes: list[HoleSpec] | None = None
    settings: RoundSettings = Field(default_factory=RoundSettings)


class RoundStatusUpdate(BaseModel):
    status: RoundStatus


class HoleScoresIn(BaseModel):
    strokes: list[Optional[int]]
    stableford_manual: Optional[int] = None


class TotalScoreIn(BaseModel):
    total: int


class MatchCreate(BaseModel):
    format: Literal["singles", "foursomes", "four-ball"] = "singles"
    side_a: MatchSide
    side_b: MatchSide


class MatchHoleIn(BaseModel):
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class Pairing(BaseModel):
    team_a_player_ids: list[str]
    team_b_player_ids: list[str]


class CupSessionCreate(BaseModel):
    session: Optional[CupSession] = None  # None = la de los ajustes de la vuelta
    pairings: list[Pairing]


class CupSessionOut(BaseModel):
    session: CupSession
    matches: list[Match]


class CompetitionWinnerIn(BaseModel):
    hole_number: int
    kind: CompetitionKind
    winner_id: str | None = None  # None = quitar el ganador
    distance: Optional[float] = None
    match_id: str | None = None


class CompetitionWinnersOut(BaseModel):
    hole_number: int
    kind: CompetitionKind
    winners: list[CompetitionWinner]
