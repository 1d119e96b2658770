"""Plan push actions: approach an object from a point on a circle around it and push through.

Frame notation used below: robot root frame (r), object-centered table frame (o), contact
    frame on the circle around the object (c), hand frame (h), and tool-tip frame (t).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from manipulation_actions.actions.action_types import ActionPlan, Waypoint
from manipulation_actions.actions.pose_styles import HAND_POSE_STYLE
from manipulation_actions.arms import Arm
from manipulation_actions.kinematics import Point3D, Pose3D
from manipulation_actions.logging import log_info
from manipulation_actions.math.angles import normalize_angle_deg
from manipulation_actions.math.frames import (
    Transform,
    compose,
    frobenius_norm,
    invert_rigid,
    make_transform,
    translation,
    translation_of,
)

if TYPE_CHECKING:
    from manipulation_actions.actions.action_types import ActionTask, FeasibilityQuery
    from manipulation_actions.actions.pose_styles import PoseStyle

PUSH_STRAIGHTNESS = 10.0  # Weight of the straight-path requirement while pushing
APPROACH_HEIGHT_M = 0.1  # Height above the contact point from which the hand descends
BACK_OF_HAND_MARGIN_M = 0.05  # Extra radius when pushing with the back of the hand
SINGULARITY_HALF_WIDTH_DEG = 45.0  # Half-width of the windows around +/-90 degrees

SETUP_LEG_S = 1.0  # Duration of the approach, descent, and retreat legs
PUSH_LEG_TIMEOUTS_S = (4.0, 4.0, 3.0, 2.0)  # Advisory waits for the four push legs

STROKE_RADIUS_RANGE_M = (0.04, 0.18)
AXIAL_STROKE_RANGE_S = (0.40, 0.60)  # Stroke durations for pushes along the x-axis of the table
LATERAL_STROKE_RANGE_S = (0.50, 0.80)
AXIAL_WINDOW_DEG = 10.0
TOOL_STROKE_FACTOR = 1.3  # Slow-down applied when a tool is in use

# Table frame centered at the object: x-axis rightward, y-axis forward, z-axis upward
ROOT_FROM_TABLE_ROTATION = np.array(
    [
        [0.0, -1.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0],
    ],
)


class PushContact(Enum):
    """The two tangential hand frames able to push from a given point on the circle."""

    INWARD = 1  # Hand z-axis pointing toward the object
    OUTWARD = 2  # Hand z-axis pointing away from the object


# Contact chosen by each arm inside the singularity windows around +90 and -90 degrees
SINGULARITY_CHOICES: dict[Arm, tuple[PushContact, PushContact]] = {
    Arm.RIGHT: (PushContact.INWARD, PushContact.OUTWARD),
    Arm.LEFT: (PushContact.OUTWARD, PushContact.INWARD),
}

# Contact with which each arm pushes with the back of its hand when theta is negative
BACK_OF_HAND_CONTACT: dict[Arm, PushContact] = {
    arm: near_minus_90 for arm, (_, near_minus_90) in SINGULARITY_CHOICES.items()
}


@dataclass
class PushCandidates:
    """Candidate hand frames (root frame, tool applied) for pushing from one contact point."""

    arm: Arm
    theta_deg: float  # Contact angle folded into (-180, 180]
    radius_m: float
    arm_pinned: bool  # Whether the arm was requested explicitly (i.e., a tool is in use)
    centroid: np.ndarray
    tool_frame: Transform
    frames: dict[PushContact, Transform]  # Hand frames at the requested radius
    enlarged_frames: dict[PushContact, Transform]  # Hand frames pushed out by the margin


@dataclass
class PushContactChoice:
    """The contact selected to push from, and the hand frame that will be commanded."""

    contact: PushContact
    enlarged: bool  # Whether the back-of-hand margin was added
    frame: Transform


def contact_frame(theta_deg: float, radius_m: float, contact: PushContact) -> Transform:
    """Construct a tangential contact frame on the circle around the object.

    :param theta_deg: Angle (degrees) of the contact point in the table frame
    :param radius_m: Radius (meters) of the circle
    :param contact: Whether the hand's z-axis points toward or away from the object
    :return: Contact frame relative to the table frame (transform_o_c)
    """
    c = np.cos(np.deg2rad(theta_deg))
    s = np.sin(np.deg2rad(theta_deg))
    sign = -1.0 if contact is PushContact.INWARD else 1.0

    rotation = np.column_stack(
        (
            [sign * s, -sign * c, 0.0],  # Tangential x-axis
            [0.0, 0.0, -1.0],  # y-axis pointing downward
            [sign * c, sign * s, 0.0],  # Radial z-axis
        ),
    )
    return make_transform(rotation, [radius_m * c, radius_m * s, 0.0])


def push_candidates(task: ActionTask, tool_frame: Transform) -> PushCandidates:
    """Compute the candidate hand frames for a push and choose the arm performing it.

    :param task: Push task (centroid, contact angle, radius, arm preference)
    :param tool_frame: Tool-tip frame relative to the hand (identity without a tool)
    :return: Candidate frames in the root frame, with the tool applied
    """
    centroid = task.centroid.to_array()
    theta_deg = normalize_angle_deg(task.theta_deg)

    transform_r_o = make_transform(ROOT_FROM_TABLE_ROTATION, centroid)
    transform_t_h = invert_rigid(tool_frame)
    radial = np.array([np.cos(np.deg2rad(theta_deg)), np.sin(np.deg2rad(theta_deg)), 0.0])

    frames: dict[PushContact, Transform] = {}
    enlarged_frames: dict[PushContact, Transform] = {}
    for contact in PushContact:
        transform_o_c = contact_frame(theta_deg, task.radius_m, contact)
        enlarged_o_c = transform_o_c.copy()
        enlarged_o_c[:3, 3] += BACK_OF_HAND_MARGIN_M * radial

        frames[contact] = compose(transform_r_o, transform_o_c, transform_t_h)
        enlarged_frames[contact] = compose(transform_r_o, enlarged_o_c, transform_t_h)

    inward_y = translation_of(frames[PushContact.INWARD])[1]
    arm = task.arm.resolve(inward_y)

    for contact, frame in frames.items():
        log_info(f"[push] Candidate {contact.name}: {Pose3D.from_homogeneous_matrix(frame)}")
    log_info(f"[push] Using the {arm.value} arm.")

    return PushCandidates(
        arm=arm,
        theta_deg=theta_deg,
        radius_m=task.radius_m,
        arm_pinned=task.arm.pinned,
        centroid=centroid,
        tool_frame=tool_frame,
        frames=frames,
        enlarged_frames=enlarged_frames,
    )


def singularity_contact(arm: Arm, theta_deg: float) -> PushContact | None:
    """Choose a contact deterministically if the angle lies near an orientation singularity.

    Near +/-90 degrees both contacts reach numerically indistinguishable solutions, so
        comparing them through the controller is meaningless.

    :param arm: Arm performing the push
    :param theta_deg: Contact angle (degrees) folded into (-180, 180]
    :return: Contact to use, or None if the angle is outside both singularity windows
    """
    near_plus_90, near_minus_90 = SINGULARITY_CHOICES[arm]
    if abs(theta_deg - 90.0) < SINGULARITY_HALF_WIDTH_DEG:
        return near_plus_90
    if abs(theta_deg + 90.0) < SINGULARITY_HALF_WIDTH_DEG:
        return near_minus_90
    return None


def select_push_contact(
    candidates: PushCandidates,
    feasibility: FeasibilityQuery,
) -> PushContactChoice:
    """Select the contact frame to push from.

    Outside the singularity windows, both candidates are submitted to the controller and the
        one whose achievable pose lies closer to the request wins.

    :param candidates: Candidate frames computed by push_candidates()
    :param feasibility: Query returning the pose the arm's controller can achieve
    :return: Selected contact and the hand frame to command
    """
    contact = singularity_contact(candidates.arm, candidates.theta_deg)
    if contact is not None:
        log_info(f"[push] Detected singularity; selecting {contact.name}.")
    else:
        errors: dict[PushContact, float] = {}
        for option, frame in candidates.frames.items():
            achieved = feasibility(Pose3D.from_homogeneous_matrix(frame), None)
            errors[option] = frobenius_norm(frame - achieved.pose.to_homogeneous_matrix())
            log_info(f"[push] Solution {option.name}: {achieved.pose}; e={errors[option]:.3f}")

        inward_error = errors[PushContact.INWARD]
        outward_error = errors[PushContact.OUTWARD]
        contact = PushContact.INWARD if inward_error < outward_error else PushContact.OUTWARD
        log_info(f"[push] Selecting {contact.name}.")

    if candidates.theta_deg < 0.0 and contact is BACK_OF_HAND_CONTACT[candidates.arm]:
        log_info("[push] Increasing the radius to push with the back of the hand.")
        return PushContactChoice(contact, True, candidates.enlarged_frames[contact])

    return PushContactChoice(contact, False, candidates.frames[contact])


def push_stroke_time_s(theta_deg: float, radius_m: float, arm_pinned: bool) -> float:
    """Compute the duration of the pushing stroke, scaled by the push radius.

    :param theta_deg: Contact angle (degrees) folded into (-180, 180]
    :param radius_m: Radius (meters) of the circle around the object
    :param arm_pinned: Whether the arm was requested explicitly (a tool is in use)
    :return: Stroke duration (seconds)
    """
    axial = abs(theta_deg) < AXIAL_WINDOW_DEG or abs(abs(theta_deg) - 180.0) < AXIAL_WINDOW_DEG
    t_min, t_max = AXIAL_STROKE_RANGE_S if axial else LATERAL_STROKE_RANGE_S
    r_min, r_max = STROKE_RADIUS_RANGE_M

    if arm_pinned:
        t_min *= TOOL_STROKE_FACTOR
        t_max *= TOOL_STROKE_FACTOR

    stroke_s = t_min + (t_max - t_min) / (r_max - r_min) * (radius_m - r_min)
    return float(np.clip(stroke_s, t_min, t_max))


def _push_waypoints(
    above: Pose3D,
    contact: Pose3D,
    stroke: Pose3D,
    retreat: Pose3D,
    stroke_time_s: float,
) -> list[Waypoint]:
    """Assemble the four legs of a push: approach, descend, push, and retreat."""
    durations_s = (SETUP_LEG_S, SETUP_LEG_S, stroke_time_s, SETUP_LEG_S)
    poses = (above, contact, stroke, retreat)
    return [
        Waypoint(pose, duration_s, timeout_s)
        for pose, duration_s, timeout_s in zip(poses, durations_s, PUSH_LEG_TIMEOUTS_S)
    ]


def plan_push(candidates: PushCandidates, feasibility: FeasibilityQuery) -> ActionPlan:
    """Plan a push in the neutral frame, pushing the tool tip through the object's centroid.

    :param candidates: Candidate frames computed by push_candidates()
    :param feasibility: Query returning the pose the arm's controller can achieve
    :return: Four-waypoint plan for the selected arm
    """
    choice = select_push_contact(candidates, feasibility)
    contact = Pose3D.from_homogeneous_matrix(choice.frame)

    # Keep the contact orientation and place the tool tip onto the centroid
    rotation_r_h = choice.frame[:3, :3]
    stroke_position = candidates.centroid - rotation_r_h @ translation_of(candidates.tool_frame)
    stroke = Pose3D(Point3D.from_array(stroke_position), contact.orientation)

    stroke_time_s = push_stroke_time_s(
        candidates.theta_deg,
        candidates.radius_m,
        candidates.arm_pinned,
    )

    waypoints = _push_waypoints(
        above=contact.translated([0.0, 0.0, APPROACH_HEIGHT_M]),
        contact=contact,
        stroke=stroke,
        retreat=contact,
        stroke_time_s=stroke_time_s,
    )
    return ActionPlan(candidates.arm, waypoints)


def cylindrical_offset(radius_m: float, angle_deg: float, height_m: float) -> Transform:
    """Construct a translation to a point given in cylindrical coordinates about the object."""
    angle_rad = np.deg2rad(angle_deg)
    return translation(radius_m * np.cos(angle_rad), radius_m * np.sin(angle_rad), height_m)


def plan_hand_pose_push(
    task: ActionTask,
    tool_frame: Transform,
    move_time_s: float,
    style: PoseStyle = HAND_POSE_STYLE,
) -> ActionPlan:
    """Plan a push holding the hand in a fixed pose, sweeping across the object.

    The hand starts above the contact point at angle theta, descends, pushes to the opposite
        point of the circle (theta + 180), and lifts away.

    :param task: Push task (centroid, contact angle, radius, hand pose, arm preference)
    :param tool_frame: Tool-tip frame relative to the hand (identity without a tool)
    :param move_time_s: Duration (seconds) of the pushing stroke
    :param style: Pose style supplying the hand orientation table
    :return: Four-waypoint plan for the selected arm
    """
    theta_deg = normalize_angle_deg(task.theta_deg)
    arm = task.arm.resolve(task.centroid.y)

    transform_r_o = translation(task.centroid.x, task.centroid.y, task.centroid.z)
    transform_c_h = make_transform(style.hand_rotation(arm, task.hand_pose))
    transform_h_t = invert_rigid(tool_frame)

    def hand_pose_at(angle_deg: float, height_m: float) -> Pose3D:
        transform_o_c = cylindrical_offset(task.radius_m, angle_deg, height_m)
        return Pose3D.from_homogeneous_matrix(
            compose(transform_r_o, transform_o_c, transform_c_h, transform_h_t),
        )

    log_info(f"[push] Hand-pose push with the {arm.value} arm, pose {task.hand_pose.name}.")

    waypoints = _push_waypoints(
        above=hand_pose_at(theta_deg, APPROACH_HEIGHT_M),
        contact=hand_pose_at(theta_deg, 0.0),
        stroke=hand_pose_at(theta_deg + 180.0, 0.0),
        retreat=hand_pose_at(theta_deg + 180.0, APPROACH_HEIGHT_M),
        stroke_time_s=move_time_s,
    )
    return ActionPlan(arm, waypoints)
