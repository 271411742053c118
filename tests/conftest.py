"""
Shared fixtures: small synthetic maps built from unit squares.

Scenario map (one row of squares, left to right):

    C(Z, 5) | A(X, 10) | B(Y, 20) | D(GOAL, 30)

A borders C and B, B borders D. Starting on A is forced through the
start policy.
"""
import random

import matplotlib
import pytest

matplotlib.use('Agg')

from popquiz.adjacency import AdjacencyIndex
from popquiz.game import GameStateMachine, start_codes_policy
from popquiz.registry import RegionRegistry


def square(x, y, size=1.0):
    """Closed counter-clockwise ring of a square with lower-left corner (x, y)."""
    return [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]


def make_feature(name, code, rings=None, polygons=None, geometry_type=None):
    if polygons is not None:
        geometry = {'type': geometry_type or 'MultiPolygon', 'coordinates': polygons}
    elif rings is not None:
        geometry = {'type': geometry_type or 'Polygon', 'coordinates': rings}
    else:
        geometry = None
    return {
        'type': 'Feature',
        'geometry': geometry,
        'properties': {'name': name, 'postal': code},
    }


# Region indices in the scenario registry (features are added in this order)
A, B, C, D = 0, 1, 2, 3


@pytest.fixture
def scenario_features():
    return [
        make_feature('Alpha', 'X', rings=[square(1, 0)]),
        make_feature('Beta', 'Y', rings=[square(2, 0)]),
        make_feature('Gamma', 'Z', rings=[square(0, 0)]),
        make_feature('Delta', 'GOAL', rings=[square(3, 0)]),
    ]


@pytest.fixture
def scenario_attributes():
    return {'X': 10, 'Y': 20, 'Z': 5, 'GOAL': 30}


@pytest.fixture
def scenario_registry(scenario_features):
    return RegionRegistry.from_features(scenario_features)


@pytest.fixture
def scenario_game(scenario_registry, scenario_attributes):
    registry = scenario_registry
    return GameStateMachine(
        registry,
        AdjacencyIndex(registry),
        scenario_attributes,
        is_preferred_start=start_codes_policy(['X']),
        goal_codes=['GOAL'],
        rng=random.Random(0),
    )


@pytest.fixture
def grid_features():
    """3 x 3 grid of squares named R0..R8, row by row from the bottom."""
    features = []
    for row in range(3):
        for col in range(3):
            n = row * 3 + col
            features.append(make_feature(f'R{n}', f'R{n}', rings=[square(col, row)]))
    return features
