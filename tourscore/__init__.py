"""Golf tour scoring: handicaps, totals, match play and leaderboards."""

__version__ = "0.1.0"
