import os

# Base de datos en memoria antes de importar nada del paquete
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ADMIN_KEY", "")

import pytest

from tourscore.golf_calc import default_holes
from tourscore.schemas import HoleSpec
from tourscore.scoring import aggregate_from_holes, synthesize_distribution


@pytest.fixture
def par4_holes():
    """18 hoyos par 4 con stroke index = número de hoyo."""
    return [HoleSpec(number=i, par=4, stroke_index=i) for i in range(1, 19)]


@pytest.fixture
def standard_holes():
    return default_holes(18)


def line_for_total(subject_id, total, holes, handicap_strokes=0):
    return aggregate_from_holes(
        subject_id, synthesize_distribution(total, len(holes)), holes, handicap_strokes,
    )


@pytest.fixture
def make_line():
    return line_for_total
