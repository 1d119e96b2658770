"""Define the session state describing the tool currently held by the robot."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from manipulation_actions.arms import ArmPreference
from manipulation_actions.math.frames import Transform, from_axis_angle, make_transform


@dataclass
class ToolState:
    """The tool-tip frame relative to the hand, and the arm the tool is attached to.

    Without a tool, the frame is the identity and the planner chooses the arm itself.
    """

    arm: ArmPreference = ArmPreference.AUTO
    frame: Transform = field(default_factory=lambda: np.eye(4))

    def attach_oriented(self, arm: ArmPreference, x: float, y: float, z: float) -> None:
        """Attach a tool whose frame is rotated to point along the tool's planar extent.

        The tool frame is rotated about the hand's -z axis by atan2(-y, x) and translated to the
            tool tip, so that the frame's x-axis points from the hand toward the tip.

        :param arm: Arm holding the tool
        :param x: Tool-tip x-coordinate (meters) in the hand frame
        :param y: Tool-tip y-coordinate (meters) in the hand frame
        :param z: Tool-tip z-coordinate (meters) in the hand frame
        """
        frame = from_axis_angle([0.0, 0.0, -1.0], float(np.arctan2(-y, x)))
        frame[:3, 3] = [x, y, z]

        self.arm = arm
        self.frame = frame

    def attach_translated(self, arm: ArmPreference, x: float, y: float, z: float) -> None:
        """Attach a tool whose frame is the hand frame translated to the tool tip.

        :param arm: Arm holding the tool
        :param x: Tool-tip x-coordinate (meters) in the hand frame
        :param y: Tool-tip y-coordinate (meters) in the hand frame
        :param z: Tool-tip z-coordinate (meters) in the hand frame
        """
        self.arm = arm
        self.frame = make_transform(translation=[x, y, z])

    def remove(self) -> None:
        """Detach the tool, resetting the frame to the identity and the arm to AUTO."""
        self.arm = ArmPreference.AUTO
        self.frame = np.eye(4)

    @property
    def tip(self) -> np.ndarray:
        """Retrieve the tool-tip position (meters) in the hand frame."""
        return np.array(self.frame[:3, 3], dtype=float)
