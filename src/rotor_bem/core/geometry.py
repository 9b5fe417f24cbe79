"""
Rotor geometry: blade sections and the turbine rotation-matrix chain.

Frames
------
- **world**: x downwind, z up, origin at the tower base.
- **tower top / shaft**: world rotated by yaw (about z) and tilt (about y).
- **hub**: shaft frame rotated by the azimuth ψ about the shaft (x) axis.
- **blade local**: hub frame rotated by the cone angle (about y); the blade
  pitch axis is local z, the axial inflow is local x and the tangential
  (in-plane) direction is local y.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .polar import AirfoilPolar
from .transforms import frame_rotation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BladeSection:
    """
    One blade element.

    Attributes
    ----------
    radius : float
        Distance from the blade root [m]. The hub radius is added by
        :class:`TurbineGeometry`.
    chord : float
        Chord length [m].
    twist : float
        Structural twist [rad].
    polar : AirfoilPolar
        Coefficient lookup for this section.
    aero_centre_x, aero_centre_y : float
        Aerodynamic-centre offsets in the section plane [m].
    airfoil : str
        Airfoil name.
    """

    radius: float
    chord: float
    twist: float
    polar: AirfoilPolar
    aero_centre_x: float = 0.0
    aero_centre_y: float = 0.0
    airfoil: str = ""


class TurbineGeometry:
    """
    Blade sections plus the macro geometry of the turbine.

    Parameters
    ----------
    sections : Sequence[BladeSection]
        Blade sections ordered root to tip; the last one defines the tip.

    Example
    -------
    ::

        geometry = TurbineGeometry(sections)
        geometry.configure(hub_radius=1.5, cone=2.5, yaw=0.0, tilt=5.0,
                           tower_distance=5.0, hub_height=90.0, num_blades=3)
        geometry.precompute_rotation_matrices()
        xyz = geometry.global_positions_at_azimuth(np.pi / 3)
    """

    def __init__(self, sections: Sequence[BladeSection]):
        self.sections: Tuple[BladeSection, ...] = tuple(sections)
        self._validate_sections()

        self._hub_radius = 0.0
        self._cone = 0.0
        self._yaw = 0.0
        self._tilt = 0.0
        self._tower_distance = 0.0
        self._hub_height = 0.0
        self._num_blades = 0

        self._a12: Optional[np.ndarray] = None
        self._a21: Optional[np.ndarray] = None
        self._a34: Optional[np.ndarray] = None
        self._a43: Optional[np.ndarray] = None

    def _validate_sections(self) -> None:
        if not self.sections:
            raise ValueError("Blade needs at least one section")
        for i, section in enumerate(self.sections):
            if section.chord <= 0:
                raise ValueError(f"Section {i}: chord must be positive, got {section.chord}")
            if section.radius < 0:
                raise ValueError(f"Section {i}: radius must be non-negative, got {section.radius}")
        radii = np.array([s.radius for s in self.sections])
        if np.any(np.diff(radii) <= 0):
            raise ValueError("Section radii must be strictly increasing from root to tip")

    # =========================================================================
    # Configuration
    # =========================================================================

    def configure(
        self,
        hub_radius: float,
        cone: float,
        yaw: float,
        tilt: float,
        tower_distance: float,
        hub_height: float,
        num_blades: int,
    ) -> None:
        """
        Set the macro geometry. Angles are given in degrees.

        Invalidates previously computed rotation matrices.
        """
        if hub_radius < 0:
            raise ValueError(f"hub_radius must be non-negative: {hub_radius}")
        if num_blades < 1:
            raise ValueError(f"num_blades must be at least 1: {num_blades}")

        self._hub_radius = float(hub_radius)
        self._cone = np.radians(cone)
        self._yaw = np.radians(yaw)
        self._tilt = np.radians(tilt)
        self._tower_distance = float(tower_distance)
        self._hub_height = float(hub_height)
        self._num_blades = int(num_blades)
        self._a12 = None

    def precompute_rotation_matrices(self) -> None:
        """Build the azimuth-independent matrices (yaw, tilt, cone)."""
        a1 = frame_rotation("z", self._yaw)
        a2 = frame_rotation("y", self._tilt)
        self._a12 = a2 @ a1
        self._a21 = self._a12.T
        self._a34 = frame_rotation("y", self._cone)
        self._a43 = self._a34.T
        logger.debug(
            "Rotation matrices: yaw=%.3f deg, tilt=%.3f deg, cone=%.3f deg",
            np.degrees(self._yaw),
            np.degrees(self._tilt),
            np.degrees(self._cone),
        )

    def _require_matrices(self) -> None:
        if self._a12 is None:
            raise RuntimeError(
                "TurbineGeometry.precompute_rotation_matrices() must be called "
                "after configure() and before position or matrix queries"
            )

    # =========================================================================
    # Rotation chain
    # =========================================================================

    def azimuth_matrix(self, psi: float) -> np.ndarray:
        """Shaft → hub frame rotation for azimuth ``psi`` [rad] (a23)."""
        return frame_rotation("x", psi)

    def world_to_blade_local_matrix(self, psi: float) -> np.ndarray:
        """World → blade-local matrix ``a34 @ a23(ψ) @ a12`` (a14)."""
        self._require_matrices()
        return self._a34 @ self.azimuth_matrix(psi) @ self._a12

    def blade_local_to_world_matrix(self, psi: float) -> np.ndarray:
        """Blade-local → world matrix ``a21 @ a23(ψ).T @ a43``."""
        self._require_matrices()
        return self._a21 @ self.azimuth_matrix(psi).T @ self._a43

    def _blade_to_shaft(self, psi: float) -> np.ndarray:
        # a42 = a23.T @ a43
        return self.azimuth_matrix(psi).T @ self._a43

    def _blade_axis_points(self) -> np.ndarray:
        points = np.zeros((self.num_sections, 3))
        points[:, 2] = self.radii
        return points

    def hub_relative_positions_at_azimuth(self, psi: float) -> np.ndarray:
        """
        Section positions relative to the hub centre in the shaft frame.

        Parameters
        ----------
        psi : float
            Azimuth angle [rad].

        Returns
        -------
        positions : np.ndarray
            Shape (n_sections, 3) [m].
        """
        self._require_matrices()
        return self._blade_axis_points() @ self._blade_to_shaft(psi).T

    def global_positions_at_azimuth(self, psi: float) -> np.ndarray:
        """
        Section positions in the world frame.

        ``(0, 0, hub_height) + a21 @ (-tower_distance, 0, 0) + a21 @ a42(ψ) @ (0, 0, r)``

        Parameters
        ----------
        psi : float
            Azimuth angle [rad].

        Returns
        -------
        positions : np.ndarray
            Shape (n_sections, 3) [m].
        """
        self._require_matrices()
        tower_top = np.array([0.0, 0.0, self._hub_height])
        overhang = self._a21 @ np.array([-self._tower_distance, 0.0, 0.0])
        blade = self._blade_axis_points() @ (self._a21 @ self._blade_to_shaft(psi)).T
        return tower_top + overhang + blade

    # =========================================================================
    # Section accessors
    # =========================================================================

    @property
    def num_sections(self) -> int:
        return len(self.sections)

    @property
    def num_blades(self) -> int:
        return self._num_blades

    @property
    def hub_radius(self) -> float:
        return self._hub_radius

    @property
    def hub_height(self) -> float:
        return self._hub_height

    @property
    def cone(self) -> float:
        return self._cone

    @property
    def tilt(self) -> float:
        return self._tilt

    @property
    def yaw(self) -> float:
        return self._yaw

    @property
    def radii(self) -> np.ndarray:
        """Section radii measured from the rotor axis [m]."""
        return np.array([s.radius for s in self.sections]) + self._hub_radius

    @property
    def rotor_radius(self) -> float:
        """Tip radius measured from the rotor axis [m]."""
        return self.sections[-1].radius + self._hub_radius

    def radius(self, i: int) -> float:
        return self.sections[i].radius + self._hub_radius

    def chord(self, i: int) -> float:
        return self.sections[i].chord

    def twist(self, i: int) -> float:
        return self.sections[i].twist

    def aero_centre(self, i: int) -> Tuple[float, float]:
        section = self.sections[i]
        return section.aero_centre_x, section.aero_centre_y

    def interpolate_coefficients(
        self, i: int, reynolds: float, mach: float, alpha: float
    ) -> Tuple[float, float, float]:
        """Return ``(cl, cd, cm)`` of section ``i`` at ``alpha`` [rad]."""
        return self.sections[i].polar.coefficients(reynolds, mach, alpha)

    def airfoil_names(self) -> List[str]:
        return [s.airfoil or s.polar.name for s in self.sections]

    def __repr__(self) -> str:
        return (
            f"TurbineGeometry(sections={self.num_sections}, blades={self._num_blades}, "
            f"R={self.rotor_radius:.3f} m, hub_radius={self._hub_radius:.3f} m, "
            f"hub_height={self._hub_height:.2f} m)"
        )
