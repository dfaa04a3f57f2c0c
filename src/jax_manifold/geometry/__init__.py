"""
Planar geometry types for optimization.

This module provides JIT-compatible, immutable implementations of:
- 2D points (point2 module), a vector space
- 2D rotations as unit (cos, sin) pairs (rot2 module), a Lie group
- 2D poses, SE(2) (pose2 module), a Lie group, with the Jacobian-producing
  functions transform_to, transform_from, compose, inverse, between, bearing
  and range

All functions are pure and stateless.
"""

from . import point2, pose2, rot2
from .errors import RangeSingularityError
from .point2 import Point2, Point2Chart
from .pose2 import Pose2, Pose2Chart
from .rot2 import Rot2, Rot2Chart, relative_bearing

__all__ = [
    "point2",
    "pose2",
    "rot2",
    "RangeSingularityError",
    "Point2",
    "Point2Chart",
    "Pose2",
    "Pose2Chart",
    "Rot2",
    "Rot2Chart",
    "relative_bearing",
]
