import random

import matplotlib
import pytest

matplotlib.use("Agg")

from trois_board import Board


@pytest.fixture
def board():
    return Board(rng=random.Random(1234))
