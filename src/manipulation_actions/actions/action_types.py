"""Define dataclasses describing action tasks and the waypoint plans computed for them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from manipulation_actions.arms import Arm, ArmPreference, HandPose

if TYPE_CHECKING:
    import numpy as np

    from manipulation_actions.kinematics import Point3D, Pose3D
    from manipulation_actions.robot.interfaces import FeasibilityResult

# Asks a Cartesian controller which pose it can achieve: (pose, seed joints) -> achieved result
FeasibilityQuery = Callable[["Pose3D", "np.ndarray | None"], "FeasibilityResult"]


@dataclass(frozen=True)
class ActionTask:
    """Parameters of a push or draw action on an object."""

    centroid: Point3D  # Object centroid (meters) in the robot root frame
    theta_deg: float  # Angle (degrees) locating the contact point on the circle around the object
    radius_m: float  # Radius (meters) of the circle around the centroid
    draw_dist_m: float = 0.0  # Length (meters) of a draw action
    hand_pose: HandPose = HandPose.NEUTRAL  # Hand rotation used by the hand-pose variants
    arm: ArmPreference = ArmPreference.AUTO  # Arm requested for the action


@dataclass
class Waypoint:
    """A target end-effector pose plus the timing of the motion leg reaching it."""

    pose: Pose3D
    duration_s: float  # Trajectory duration requested from the controller
    timeout_s: float  # Advisory bound on the wait for motion completion


@dataclass
class ActionPlan:
    """An ordered sequence of waypoints to be executed by the selected arm."""

    arm: Arm
    waypoints: list[Waypoint] = field(default_factory=list)
