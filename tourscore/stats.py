from .schemas import HoleHighlight, HoleWinner, NineSummary, RoundStats, Streak


def _streak_type(d: int) -> str:
    if d == -1: return "birdie"
    if d == 0: return "par"
    if d == 1: return "bogey"
    if d < 0: return "under-par"
    return "over-par"


def _continues(streak_type: str, d: int) -> bool:
    if streak_type == "under-par":
        return d < 0
    if streak_type == "over-par":
        return d > 0
    return streak_type == _streak_type(d)


def round_stats(score_line, holes) -> RoundStats:
    stats = RoundStats(subject_id=score_line.subject_id)
    streak = Streak()

    for i, g in enumerate(score_line.per_hole_strokes):
        if not g or g <= 0 or i >= len(holes):
            continue  # hoyo sin jugar: no cuenta ni corta la racha

        h = holes[i]
        d = g - h.par

        # resultados por gross vs par
        if g == 1:
            stats.hio += 1
        elif d <= -3: stats.albatros += 1
        elif d == -2: stats.eagles += 1
        elif d == -1: stats.birdies += 1
        elif d == 0: stats.pars += 1
        elif d == 1: stats.bogeys += 1
        elif d == 2: stats.dbl += 1
        else: stats.overdbl += 1

        if stats.best_hole is None or d < stats.best_hole.to_par:
            stats.best_hole = HoleHighlight(hole_number=h.number, score=g, to_par=d)
        if stats.worst_hole is None or d > stats.worst_hole.to_par:
            stats.worst_hole = HoleHighlight(hole_number=h.number, score=g, to_par=d)

        nine: NineSummary = stats.front9 if i < 9 else stats.back9
        nine.score += g
        nine.to_par += d
        nine.holes_played += 1
        if d == -1: nine.birdies += 1
        elif d == 0: nine.pars += 1
        elif d == 1: nine.bogeys += 1

        if streak.length and _continues(streak.type, d):
            streak.length += 1
        else:
            streak = Streak(type=_streak_type(d), length=1)

    stats.streak = streak
    return stats


def hole_winners(rnd, player_ids=None) -> list[HoleWinner]:
    """Mejor resultado de cada hoyo (skins y similares)."""
    ids = list(player_ids) if player_ids is not None else list(rnd.scores.keys())
    winners = []

    for i, h in enumerate(rnd.holes):
        scores = []
        for pid in ids:
            line = rnd.scores.get(pid)
            if line is None or i >= len(line.per_hole_strokes):
                continue
            g = line.per_hole_strokes[i]
            if g and g > 0:
                scores.append((pid, g))

        if not scores:
            continue

        best = min(g for _, g in scores)
        best_ids = [pid for pid, g in scores if g == best]
        winners.append(HoleWinner(
            hole_number=h.number,
            winner_ids=best_ids,
            score=best,
            to_par=best - h.par,
            is_tied=len(best_ids) > 1,
        ))

    return winners
