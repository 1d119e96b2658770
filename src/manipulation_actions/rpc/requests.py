"""Define functions parsing the payloads of the motor module's text commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from manipulation_actions.actions.action_types import ActionTask
from manipulation_actions.arms import ArmPreference, HandPose
from manipulation_actions.kinematics import Point3D
from manipulation_actions.logging import log_error


@dataclass(frozen=True)
class ToolAttachment:
    """Parameters of a tool attach command: the holding arm and the tool tip in the hand frame."""

    arm: ArmPreference
    x: float
    y: float
    z: float


def parse_numbers(tokens: Sequence[str], count: int) -> list[float] | None:
    """Parse the first `count` tokens as real numbers (any further tokens are ignored).

    :param tokens: Tokens of a command payload
    :param count: Number of values required
    :return: Parsed values, or None if there are too few tokens or a token is not numeric
    """
    if len(tokens) < count:
        log_error(f"Expected {count} numeric arguments; received {len(tokens)}.")
        return None

    try:
        return [float(token) for token in tokens[:count]]
    except ValueError as exc:
        log_error(f"Unable to parse numeric arguments {list(tokens[:count])}: {exc}")
        return None


def parse_action_task(
    payload: Sequence[str],
    arm: ArmPreference,
    with_hand_pose: bool,
    with_draw_dist: bool,
) -> ActionTask | None:
    """Parse the payload of a push or draw command into an action task.

    Payload layout: `[pose] cx cy cz theta radius [dist]`, where the bracketed values are
        present only for hand-pose variants and draws, respectively.

    :param payload: Tokens following the command name
    :param arm: Arm preference recorded alongside the current tool
    :param with_hand_pose: Whether the payload begins with a hand-pose flag
    :param with_draw_dist: Whether the payload ends with a draw distance
    :return: Parsed ActionTask, or None if the payload is malformed
    """
    count = 5 + int(with_hand_pose) + int(with_draw_dist)
    values = parse_numbers(payload, count)
    if values is None:
        return None

    hand_pose = HandPose.NEUTRAL
    if with_hand_pose:
        hand_pose = HandPose.from_flag(values.pop(0))

    cx, cy, cz, theta_deg, radius_m = values[:5]
    return ActionTask(
        centroid=Point3D(cx, cy, cz),
        theta_deg=theta_deg,
        radius_m=radius_m,
        draw_dist_m=values[5] if with_draw_dist else 0.0,
        hand_pose=hand_pose,
        arm=arm,
    )


def parse_tool_attachment(payload: Sequence[str]) -> ToolAttachment | None:
    """Parse the payload `arm x y z` of a tool attach command.

    :param payload: Tokens following the `attach` keyword
    :return: Parsed ToolAttachment, or None if the payload is malformed
    """
    if not payload:
        log_error("Tool attach requires an arm and a tool-tip position.")
        return None

    arm = ArmPreference.from_name(payload[0])
    if arm is None:
        log_error(f"Unrecognized arm for tool attach: '{payload[0]}'.")
        return None

    values = parse_numbers(payload[1:], 3)
    if values is None:
        return None

    return ToolAttachment(arm, *values)
