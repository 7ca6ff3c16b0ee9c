"""Shared fixtures for the geometry and settings tests."""
import pytest

from allowances import AllowanceTable, resolve
from geometry_2d import BoxSpec, GlueConfig, layout_panels


@pytest.fixture
def table():
    return AllowanceTable.defaults()


@pytest.fixture
def outside_b(table):
    """Outside glue, B flute: P = 5/3/3/0, H1 = 6, flap 0."""
    return resolve(table, "outside", "B", 3.0)


@pytest.fixture
def scenario_a(outside_b):
    box = BoxSpec(L=267, W=120, H=80, thickness=3.0)
    glue = GlueConfig(side="outside", off="small", lap_width=28)
    return layout_panels(box, glue, outside_b)
