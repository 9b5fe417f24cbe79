import numpy as np
import pytest

from builders import build_geometry
from rotor_bem.core.polar import FlatPlatePolar


@pytest.fixture
def straight_blade():
    """Three sections at 1, 2 and 3 m on an upright, untilted rotor."""
    return build_geometry([1.0, 2.0, 3.0], [0.3, 0.2, 0.1])


@pytest.fixture
def single_section():
    """One flat-plate section at the tip of a 1 m rotor."""
    return build_geometry([1.0], [0.1], polar=FlatPlatePolar(cd=0.01))


@pytest.fixture
def small_rotor():
    """Tapered ten-section rotor of 20 m radius."""
    radii = np.linspace(2.0, 18.5, 10)
    chords = np.linspace(1.6, 0.5, 10)
    twists = np.radians(np.linspace(12.0, 0.0, 10))
    return build_geometry(radii, chords, twists, hub_radius=1.5, hub_height=40.0)
