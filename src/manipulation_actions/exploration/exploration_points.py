"""Define the table of exploratory poses used to observe a held tool from different viewpoints.

The table is written for the left arm. The right arm's table is its mirror image across the
    sagittal plane: lateral coordinates and rotation angles change sign.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from manipulation_actions.actions.pose_styles import HAND_BASE_ROTATION
from manipulation_actions.arms import Arm
from manipulation_actions.kinematics import Pose3D
from manipulation_actions.math.frames import compose, from_axis_angle, make_transform

ROLL_AXIS = (-1.0, 0.0, 0.0)  # Axis about which most exploratory poses tilt the hand

AxisRotation = Tuple[Tuple[float, float, float], float]  # (axis, angle in degrees)


@dataclass(frozen=True)
class ExplorationPoint:
    """One exploratory pose, plus how to observe and excite the tool while holding it."""

    index: int  # Position of the point in the exploration sequence (0-based)
    position: tuple[float, float, float]  # Hand position (meters) in the root frame
    rotations: tuple[AxisRotation, ...]  # Applied to the base hand orientation, outermost first
    gaze_offset: tuple[float, float, float]  # Added to the position to obtain the fixation point
    shake_joint: int  # Hand joint oscillated while the tool is observed
    batch_size: int  # Number of new solver samples to collect at this point

    def pose(self) -> Pose3D:
        """Compute the hand pose of the point, rotating the base hand orientation in sequence."""
        rotations = [from_axis_angle(axis, np.deg2rad(angle)) for axis, angle in self.rotations]
        tilt = compose(*rotations)[:3, :3] if rotations else np.eye(3)
        return Pose3D.from_homogeneous_matrix(
            make_transform(tilt @ HAND_BASE_ROTATION, self.position),
        )

    def fixation_point(self) -> np.ndarray:
        """Compute the 3D point (meters, root frame) at which the gaze is directed."""
        return np.asarray(self.position, dtype=float) + np.asarray(self.gaze_offset, dtype=float)

    def mirrored(self) -> ExplorationPoint:
        """Mirror the point across the sagittal plane, for use by the opposite arm."""
        x, y, z = self.position
        gx, gy, gz = self.gaze_offset
        return replace(
            self,
            position=(x, -y, z),
            rotations=tuple((axis, -angle) for axis, angle in self.rotations),
            gaze_offset=(gx, -gy, gz),
        )


LEFT_ARM_POINTS = (
    ExplorationPoint(0, (-0.35, 0.0, 0.0), ((ROLL_AXIS, 0.0),), (0.0, 0.0, 0.1), 4, 25),
    ExplorationPoint(1, (-0.35, -0.15, 0.0), ((ROLL_AXIS, 30.0),), (0.0, 0.1, 0.1), 4, 25),
    ExplorationPoint(2, (-0.35, -0.15, 0.15), ((ROLL_AXIS, 20.0),), (0.0, 0.2, 0.1), 4, 25),
    ExplorationPoint(3, (-0.3, -0.05, -0.05), ((ROLL_AXIS, 10.0),), (0.0, 0.2, 0.1), 4, 25),
    ExplorationPoint(4, (-0.35, -0.05, 0.1), ((ROLL_AXIS, 45.0),), (0.0, 0.1, 0.1), 4, 25),
    ExplorationPoint(
        5,
        (-0.35, -0.1, 0.0),
        (((1.0, 0.0, 0.0), 45.0), ((0.0, 0.0, -1.0), 45.0)),
        (0.0, -0.05, 0.1),
        6,
        50,
    ),
)


def exploration_points(arm: Arm) -> tuple[ExplorationPoint, ...]:
    """Retrieve the sequence of exploratory poses for the given arm."""
    if arm is Arm.LEFT:
        return LEFT_ARM_POINTS
    return tuple(point.mirrored() for point in LEFT_ARM_POINTS)
