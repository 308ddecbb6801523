import logging
from numbers import Real

from .config import DEFAULT_PAR, STANDARD_PARS, STANDARD_STROKE_INDEX
from .errors import InvalidHandicap
from .schemas import HoleSpec

logger = logging.getLogger(__name__)


def default_holes(holes_count: int = 18) -> list[HoleSpec]:
    """Recorrido por defecto: 18 hoyos estándar; en 9 hoyos pares 4/5/3 y SI en orden."""
    holes = []
    for i in range(1, holes_count + 1):
        if holes_count == 9:
            par = 3 if i % 6 == 0 else 5 if i % 5 == 0 else 4
            si = i
        else:
            par = STANDARD_PARS[i - 1] if i <= len(STANDARD_PARS) else DEFAULT_PAR
            si = STANDARD_STROKE_INDEX[i - 1] if i <= len(STANDARD_STROKE_INDEX) else i
        holes.append(HoleSpec(number=i, par=par, stroke_index=si))
    return holes


def normalize_handicap(value, clamp: bool = True) -> int:
    """
    Devuelve un hándicap entero >= 0.
    Con clamp=True los valores negativos o no enteros se ajustan (0 / redondeo);
    con clamp=False se rechazan con InvalidHandicap. Decide quien llama.
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidHandicap(value)

    if value < 0:
        if not clamp:
            raise InvalidHandicap(value)
        logger.debug("negative handicap %s clamped to 0", value)
        return 0

    if int(value) != value:
        if not clamp:
            raise InvalidHandicap(value)
        return int(round(value))

    return int(value)


def allocate_strokes_for_hole(handicap: int, stroke_index: int, holes_count: int) -> int:
    if holes_count <= 0:
        return 0
    base = handicap // holes_count
    remainder = handicap % holes_count
    return base + (1 if stroke_index <= remainder else 0)


def stroke_ranks(holes) -> dict:
    """
    {hole_number: dificultad 1..N} ordenando los hoyos por stroke_index.
    Con una permutación 1..N coincide con el stroke_index; una vuelta de 9
    con los índices de la tarjeta de 18 (1, 3, 5...) queda en 1..9.
    """
    ordered = sorted(holes, key=lambda h: (h.stroke_index, h.number))
    return {h.number: rank for rank, h in enumerate(ordered, start=1)}


def allocate_round_strokes(handicap: int, holes) -> int:
    return sum(strokes_received_per_hole(handicap, holes).values())


def strokes_received_per_hole(ch: int, holes):
    """
    holes: lista HoleSpec con stroke_index
    devuelve dict {hole_number: golpes_recibidos}
    """
    n = len(holes)
    ranks = stroke_ranks(holes)
    return {h.number: allocate_strokes_for_hole(ch, ranks[h.number], n) for h in holes}


def points_for_hole(strokes: int, effective_par: int) -> int:
    diff = strokes - effective_par
    if diff >= 2: return 0
    if diff == 1: return 1
    if diff == 0: return 2
    if diff == -1: return 3
    if diff == -2: return 4
    return 5


def round_stableford(score_line, holes) -> int:
    """Puntos Stableford HCP de una vuelta (respeta el valor manual si existe)."""
    if score_line is None:
        return 0
    if score_line.stableford_manual is not None:
        return score_line.stableford_manual

    received = strokes_received_per_hole(score_line.handicap_strokes or 0, holes)

    total = 0
    for h, g in zip(holes, score_line.per_hole_strokes):
        if not g or g <= 0:
            continue  # hoyo sin jugar -> 0 puntos
        total += points_for_hole(g, h.par + received[h.number])
    return total


def tournament_stableford(subject_id: str, rounds) -> int:
    # solo suman las vueltas cerradas
    return sum(
        round_stableford(r.scores.get(subject_id), r.holes)
        for r in rounds
        if r.is_completed
    )
