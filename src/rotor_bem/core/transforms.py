"""
Elementary frame rotations for the turbine coordinate chain.

The turbine chain (yaw → tilt → azimuth → cone) uses *frame* rotations:
the matrices map vector components expressed in a parent frame onto the
axes of a child frame rotated by ``angle`` about one principal axis. They
are the transposes of the right-hand (active) rotations.
"""

from typing import Dict

import numpy as np

#: Mapping from axis name to array index
AXIS_MAP: Dict[str, int] = {"x": 0, "y": 1, "z": 2}


def rotation_matrix(axis: str, angle: float) -> np.ndarray:
    """
    Get 3x3 active rotation matrix around a principal axis.

    Parameters
    ----------
    axis : str
        Rotation axis: 'x', 'y', or 'z'.
    angle : float
        Rotation angle [rad]. Positive follows right-hand rule.

    Returns
    -------
    R : np.ndarray
        3x3 rotation matrix.

    Notes
    -----
    Rotation matrices for principal axes:

    Rx(θ) = [[1,    0,       0    ],
             [0,  cos(θ), -sin(θ)],
             [0,  sin(θ),  cos(θ)]]

    Ry(θ) = [[ cos(θ), 0, sin(θ)],
             [   0,    1,   0    ],
             [-sin(θ), 0, cos(θ)]]

    Rz(θ) = [[cos(θ), -sin(θ), 0],
             [sin(θ),  cos(θ), 0],
             [  0,       0,    1]]
    """
    c = np.cos(angle)
    s = np.sin(angle)

    axis = axis.lower()
    if axis == "x":
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    elif axis == "y":
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    elif axis == "z":
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    raise ValueError(f"Invalid rotation axis: {axis!r}. Valid: {list(AXIS_MAP)}")


def frame_rotation(axis: str, angle: float) -> np.ndarray:
    """
    Get the frame (passive) rotation for a child frame turned by ``angle``.

    Parameters
    ----------
    axis : str
        Rotation axis: 'x', 'y', or 'z'.
    angle : float
        Rotation of the child frame [rad].

    Returns
    -------
    A : np.ndarray
        3x3 matrix with ``v_child = A @ v_parent``.

    Notes
    -----
    For the yaw axis this gives ``[[c, s, 0], [-s, c, 0], [0, 0, 1]]``, for
    tilt/cone ``[[c, 0, -s], [0, 1, 0], [s, 0, c]]`` and for the azimuth
    ``[[1, 0, 0], [0, c, s], [0, -s, c]]``.
    """
    return rotation_matrix(axis, angle).T


def rotate_vectors(matrix: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """
    Apply a rotation matrix to a vector or an array of row vectors.

    Parameters
    ----------
    matrix : np.ndarray
        3x3 rotation matrix.
    vectors : np.ndarray
        Vector(s) to rotate, shape (3,) or (N, 3).

    Returns
    -------
    rotated : np.ndarray
        Rotated vector(s), shape (3,) or (N, 3).
    """
    # For (N, 3) vectors V: V @ R.T rotates each row vector
    return np.asarray(vectors, dtype=np.float64) @ matrix.T
