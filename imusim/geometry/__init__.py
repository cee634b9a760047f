"""Rotation and rigid-body geometry for 3D navigation.

Main components:
    - skew, rot3_expmap, rot3_logmap, rot3_right_jacobian: SO(3) helpers
    - Pose3: SE(3) pose with compose/inverse/between, expmap, and the
      retract/local_coordinates chart used for pose deviations

Example usage:
    >>> import numpy as np
    >>> from imusim.geometry import Pose3, rot3_expmap
    >>>
    >>> p1 = Pose3(rotation=rot3_expmap(np.array([0.0, 0.0, np.pi / 2])),
    ...            translation=np.array([1.0, 0.0, 0.0]))
    >>> xi = p1.local_coordinates(p1.retract(np.full(6, 0.01)))
"""

from .so3 import (
    is_rotation_matrix,
    rot3_expmap,
    rot3_logmap,
    rot3_right_jacobian,
    skew,
)
from .pose3 import Pose3

__all__ = [
    "Pose3",
    "is_rotation_matrix",
    "rot3_expmap",
    "rot3_logmap",
    "rot3_right_jacobian",
    "skew",
]
