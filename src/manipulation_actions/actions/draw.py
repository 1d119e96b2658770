"""Plan draw actions: place the hand beyond an object and pull it back toward the robot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from manipulation_actions.actions.action_types import ActionPlan, Waypoint
from manipulation_actions.actions.push import ROOT_FROM_TABLE_ROTATION
from manipulation_actions.kinematics import Pose3D
from manipulation_actions.logging import log_debug, log_info
from manipulation_actions.math.angles import normalize_angle_deg
from manipulation_actions.math.frames import (
    Transform,
    compose,
    from_axis_angle,
    invert_rigid,
    make_transform,
    translation,
    translation_of,
)

if TYPE_CHECKING:
    from manipulation_actions.actions.action_types import ActionTask, FeasibilityQuery
    from manipulation_actions.actions.pose_styles import PoseStyle
    from manipulation_actions.arms import Arm

DRAW_STRAIGHTNESS = 30.0  # Weight of the straight-path requirement while drawing
APPROACH_HEIGHT_M = 0.05  # Height above the approach point from which the hand descends
NEARNESS_THRESHOLD_M = 0.15  # Achieved positions closer than this to the root are unsafe
NEARNESS_PENALTY = 10.0

APPROACH_ABOVE_LEG = (2.0, 5.0)  # (duration, timeout) in seconds
APPROACH_LEG = (1.5, 5.0)
DRAW_LEG_TIMEOUT_S = 5.0


@dataclass
class DrawFrames:
    """Hand frames (root frame, tool applied) at which a draw starts and ends."""

    arm: Arm
    approach: Transform  # Contact point beyond the object
    target: Transform  # Point reached after drawing back by the draw distance


def correct_lateral_offset(frame: Transform, lateral_m: float, yaw_rad: float) -> Transform:
    """Move a frame computed on the sagittal plane back to the object's lateral position.

    :param frame: Frame computed for the centroid's projection onto the sagittal plane
    :param lateral_m: Lateral (y) offset (meters) of the true centroid
    :param yaw_rad: Rotation (radians) about the downward vertical axis applied to the frame
    :return: Frame with its orientation yawed and its position shifted laterally
    """
    yaw = from_axis_angle([0.0, 0.0, -1.0], yaw_rad)[:3, :3]
    position = translation_of(frame) + np.array([0.0, lateral_m, 0.0])
    return make_transform(yaw @ frame[:3, :3], position)


def draw_frames(task: ActionTask, tool_frame: Transform, style: PoseStyle) -> DrawFrames:
    """Compute the approach and target frames of a draw and choose the arm performing it.

    :param task: Draw task (centroid, approach angle, radius, draw distance, arm preference)
    :param tool_frame: Tool-tip frame relative to the hand (identity without a tool)
    :param style: Pose style supplying the hand orientation, angle shift, and arm rule
    :return: Approach and target frames in the root frame, with the tool applied
    """
    centroid = task.centroid.to_array()
    sagittal = centroid.copy()
    sagittal[1] = 0.0

    theta_rad = np.deg2rad(normalize_angle_deg(task.theta_deg + style.draw_theta_shift_deg))

    transform_r_o = make_transform(ROOT_FROM_TABLE_ROTATION, sagittal)
    approach = compose(
        transform_r_o,
        translation(task.radius_m * np.cos(theta_rad), task.radius_m * np.sin(theta_rad), 0.0),
    )
    target = compose(approach, translation(0.0, -task.draw_dist_m, 0.0))

    lateral_ref = centroid[1] if style.arm_from_centroid else approach[1, 3]
    arm = task.arm.resolve(lateral_ref)
    log_info(f"[draw] Using the {arm.value} arm ({style.name} style).")

    rotation = style.hand_rotation(arm, task.hand_pose)
    approach[:3, :3] = rotation
    target[:3, :3] = rotation

    if centroid[1] != 0.0:
        yaw_rad = float(np.arctan2(centroid[1], abs(centroid[0]))) if style.lateral_yaw else 0.0
        approach = correct_lateral_offset(approach, centroid[1], yaw_rad)
        target = correct_lateral_offset(target, centroid[1], yaw_rad)

    transform_h_t = invert_rigid(tool_frame)
    approach = compose(approach, transform_h_t)
    target = compose(target, transform_h_t)

    log_info(f"[draw] Approach: {Pose3D.from_homogeneous_matrix(approach)}")
    log_info(f"[draw] Target: {Pose3D.from_homogeneous_matrix(target)}")
    return DrawFrames(arm, approach, target)


def draw_quality(frames: DrawFrames, feasibility: FeasibilityQuery, style: PoseStyle) -> float:
    """Score a draw by how closely the arm's controller can reach its two frames.

    The target is queried starting from the joints that reach the approach, and a penalty is
        added if an achieved position lies too close to the robot. Lower is better.

    :param frames: Frames computed by draw_frames()
    :param feasibility: Query returning the pose the arm's controller can achieve
    :param style: Pose style deciding which achieved positions are checked for nearness
    :return: Sum of the position and orientation errors, plus any nearness penalty
    """
    requested = [
        Pose3D.from_homogeneous_matrix(frames.approach),
        Pose3D.from_homogeneous_matrix(frames.target),
    ]

    first = feasibility(requested[0], None)
    second = feasibility(requested[1], first.joints)
    achieved = [first.pose, second.pose]

    quality = 0.0
    for request, result in zip(requested, achieved):
        e_x = float(np.linalg.norm(request.position.to_array() - result.position.to_array()))
        e_o = float(np.linalg.norm(request.orientation.to_array() - result.orientation.to_array()))
        log_debug(f"[draw] Testing {request} => {result}; |e_x|={e_x:.4f}; |e_o|={e_o:.4f}")
        quality += e_x + e_o

    checked = achieved if style.penalize_approach_nearness else achieved[1:]
    if any(pose.position.norm() < NEARNESS_THRESHOLD_M for pose in checked):
        log_info(f"[draw] Nearness penalty of {NEARNESS_PENALTY} applied.")
        quality += NEARNESS_PENALTY

    log_info(f"[draw] Final quality: {quality:.4f}")
    return quality


def plan_draw(frames: DrawFrames, style: PoseStyle, move_time_s: float) -> ActionPlan:
    """Plan the three legs of a draw: approach from above, descend, and draw back.

    :param frames: Frames computed by draw_frames()
    :param style: Pose style deciding the duration of the draw leg
    :param move_time_s: Configured stroke duration (seconds), used by styles without a fixed one
    :return: Three-waypoint plan for the selected arm
    """
    approach = Pose3D.from_homogeneous_matrix(frames.approach)
    target = Pose3D.from_homogeneous_matrix(frames.target)

    waypoints = [
        Waypoint(approach.translated([0.0, 0.0, APPROACH_HEIGHT_M]), *APPROACH_ABOVE_LEG),
        Waypoint(approach, *APPROACH_LEG),
        Waypoint(target, style.draw_time_s(move_time_s), DRAW_LEG_TIMEOUT_S),
    ]
    return ActionPlan(frames.arm, waypoints)
