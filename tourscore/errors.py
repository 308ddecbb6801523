class TourScoreError(Exception):
    """Base class for every error raised by tourscore."""


class InvalidHandicap(TourScoreError, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid handicap: {value!r}")


class InvalidMatch(TourScoreError, ValueError):
    pass


class NotFound(TourScoreError, LookupError):
    def __init__(self, kind: str, ident: str | None = None):
        self.kind = kind
        self.ident = ident
        msg = f"{kind} not found" if ident is None else f"{kind} {ident} not found"
        super().__init__(msg)


class InvalidEntry(TourScoreError, ValueError):
    """Dato que no encaja con la vuelta (hoyo fuera de rango, jugador ajeno...)."""
