import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tourscore.db")

ADMIN_KEY = os.getenv("ADMIN_KEY", "")  # vacío = sin protección (modo dev)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CUP_TARGET_POINTS = float(os.getenv("CUP_TARGET_POINTS", "14.5"))

# Valores por defecto de campo
DEFAULT_PAR = 4
DEFAULT_HOLES = 18
MAX_STROKES_PER_HOLE = 8

# Recorrido estándar de 18 hoyos (par y stroke index)
STANDARD_PARS = [4, 4, 3, 4, 5, 4, 3, 4, 4, 4, 4, 3, 5, 4, 3, 4, 4, 5]
STANDARD_STROKE_INDEX = [10, 8, 16, 2, 14, 4, 18, 12, 6, 11, 5, 17, 1, 9, 15, 3, 13, 7]
