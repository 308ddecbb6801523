"""
Bola más cercana (closest to pin) y drive más largo por hoyo.

Cada hoyo guarda una lista de ganadores: uno por partido en match play y,
fuera de partidos, uno solo. Volver a apuntar el mismo hueco lo reemplaza.
"""

import logging

from .schemas import CompetitionKind, CompetitionTally, CompetitionWinner

logger = logging.getLogger(__name__)


def set_competition_winner(winners, kind, hole_number: int, player_id: str | None,
                           distance=None, match_id: str | None = None):
    """Devuelve una copia con el ganador puesto (o quitado si player_id es None)."""
    kind = CompetitionKind(kind)
    winners = winners.model_copy(deep=True)
    by_hole = getattr(winners, kind.value)

    kept = [w for w in by_hole.get(hole_number, []) if w.match_id != match_id]
    if player_id is not None:
        kept.append(CompetitionWinner(player_id=player_id, distance=distance, match_id=match_id))

    if kept:
        by_hole[hole_number] = kept
    else:
        by_hole.pop(hole_number, None)

    logger.debug("%s hole %s: %s", kind.value, hole_number, [w.player_id for w in kept])
    return winners


def competition_tally(rounds) -> list[CompetitionTally]:
    """Premios ganados por jugador en las vueltas dadas, de más a menos."""
    tally: dict[str, CompetitionTally] = {}

    for rnd in rounds:
        cw = rnd.competition_winners
        for kind in CompetitionKind:
            for entries in getattr(cw, kind.value).values():
                for w in entries:
                    row = tally.setdefault(w.player_id, CompetitionTally(player_id=w.player_id))
                    setattr(row, kind.value, getattr(row, kind.value) + 1)

    rows = list(tally.values())
    rows.sort(key=lambda r: (-(r.closest_to_pin + r.longest_drive), r.player_id))
    return rows
