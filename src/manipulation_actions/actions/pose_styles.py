"""Define the pose styles distinguishing the neutral-frame and hand-pose action variants.

Both variants share the same geometry; a style only supplies the hand orientation table, the
    timing of the stroke, and a few flags that differ between them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np

from manipulation_actions.arms import Arm, HandPose
from manipulation_actions.math.frames import from_axis_angle

# Palm facing the object: hand x-axis opposite to the reference x, hand y/z swapped and flipped
HAND_BASE_ROTATION = np.array(
    [
        [-1.0, 0.0, 0.0],
        [0.0, 0.0, -1.0],
        [0.0, -1.0, 0.0],
    ],
)


def hand_rotation(roll_deg: float, yaw_deg: float) -> np.ndarray:
    """Construct a hand orientation by rolling and then yawing the base hand rotation.

    :param roll_deg: Rotation (degrees) applied about the hand's x-axis, in the clockwise sense
    :param yaw_deg: Rotation (degrees) applied about the hand's z-axis, in the clockwise sense
    :return: 3x3 rotation matrix of the hand relative to the target frame
    """
    roll = from_axis_angle([1.0, 0.0, 0.0], -np.deg2rad(roll_deg))[:3, :3]
    yaw = from_axis_angle([0.0, 0.0, 1.0], -np.deg2rad(yaw_deg))[:3, :3]
    return HAND_BASE_ROTATION @ roll @ yaw


@dataclass(frozen=True)
class PoseStyle:
    """Parameters distinguishing one family of push/draw variants from another."""

    name: str
    hand_angles_deg: Mapping[tuple[Arm, HandPose], tuple[float, float]]  # (roll, yaw) per hand
    draw_theta_shift_deg: float  # Added to the task angle before locating the draw approach
    lateral_yaw: bool  # Yaw the hand toward an off-sagittal centroid when drawing
    arm_from_centroid: bool  # Choose the arm by the centroid's side, not the approach point's
    penalize_approach_nearness: bool  # Also penalize a draw approach that is too close
    bias_elbow: bool  # Apply the configured elbow task during the action
    fixed_draw_time_s: float | None  # Draw stroke duration (None: use the configured move time)

    def hand_rotation(self, arm: Arm, hand_pose: HandPose) -> np.ndarray:
        """Look up the hand orientation used by the given arm in the given hand pose."""
        roll_deg, yaw_deg = self.hand_angles_deg[(arm, hand_pose)]
        return hand_rotation(roll_deg, yaw_deg)

    def draw_time_s(self, move_time_s: float) -> float:
        """Retrieve the draw stroke duration given the configured move time (seconds)."""
        return move_time_s if self.fixed_draw_time_s is None else self.fixed_draw_time_s


NEUTRAL_STYLE = PoseStyle(
    name="neutral",
    hand_angles_deg={(arm, pose): (0.0, 0.0) for arm in Arm for pose in HandPose},
    draw_theta_shift_deg=0.0,
    lateral_yaw=True,
    arm_from_centroid=False,
    penalize_approach_nearness=True,
    bias_elbow=True,
    fixed_draw_time_s=3.5,
)

HAND_POSE_STYLE = PoseStyle(
    name="hand-pose",
    hand_angles_deg={
        (Arm.RIGHT, HandPose.NEUTRAL): (0.0, -50.0),
        (Arm.RIGHT, HandPose.PRONATED): (120.0, -30.0),
        (Arm.LEFT, HandPose.NEUTRAL): (0.0, -50.0),
        (Arm.LEFT, HandPose.PRONATED): (-120.0, -30.0),
    },
    draw_theta_shift_deg=-90.0,
    lateral_yaw=False,
    arm_from_centroid=True,
    penalize_approach_nearness=False,
    bias_elbow=False,
    fixed_draw_time_s=None,
)
