import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from worldgen import Tile, World


def build_world(width, height, elevation=10, walkable=True, color=(100, 210, 100, 255)):
    """Hand-made world; ``elevation``/``walkable`` may be callables of (x, y)."""
    rows = []
    for y in range(height):
        row = []
        for x in range(width):
            e = elevation(x, y) if callable(elevation) else elevation
            w = walkable(x, y) if callable(walkable) else walkable
            row.append(Tile(x=x, y=y, elevation=e, color=color, walkable=w))
        rows.append(row)
    return World(width, height, rows)


@pytest.fixture
def make_world():
    return build_world
