"""Define abstract interfaces to the robot's motion, gaze, hand, vision, and solver collaborators.

Implementations wrap whatever middleware connects to the real robot (or a simulator). The
    planning and exploration code depends only on these narrow contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

if TYPE_CHECKING:
    from manipulation_actions.arms import Arm
    from manipulation_actions.config import MotorConfig
    from manipulation_actions.kinematics import Pose3D


class DeviceOpenError(RuntimeError):
    """Raised by a DeviceFactory when a device cannot be opened."""


@dataclass
class FeasibilityResult:
    """The pose a Cartesian controller reports it can actually achieve for a requested pose."""

    pose: Pose3D  # Achieved end-effector pose
    joints: np.ndarray = field(default_factory=lambda: np.zeros(0))  # Joints reaching the pose


class MotionInterface(ABC):
    """A Cartesian controller for one arm, reaching end-effector poses on request."""

    @abstractmethod
    def store_context(self) -> int:
        """Save the controller's current settings (DOF mask, task weights, etc.).

        :return: Identifier of the stored context
        """

    @abstractmethod
    def restore_context(self, context_id: int) -> None:
        """Restore the settings saved under the given context identifier."""

    @abstractmethod
    def delete_context(self, context_id: int) -> None:
        """Release the stored context with the given identifier."""

    @abstractmethod
    def get_dof(self) -> np.ndarray:
        """Retrieve the current degrees-of-freedom mask (1 = enabled, 0 = frozen)."""

    @abstractmethod
    def set_dof(self, dof: np.ndarray) -> np.ndarray:
        """Set the degrees-of-freedom mask.

        :param dof: Requested mask (1 = enabled, 0 = frozen)
        :return: Mask actually applied by the controller
        """

    @abstractmethod
    def tweak_set(self, options: dict[str, Any]) -> None:
        """Adjust solver options such as path straightness or secondary task weights."""

    @abstractmethod
    def ask_for_pose(self, pose: Pose3D, seed: np.ndarray | None = None) -> FeasibilityResult:
        """Ask which pose is achievable for the requested pose, without moving.

        :param pose: Requested end-effector pose
        :param seed: Optional joint configuration from which the solver starts
        :return: Achieved pose and the joint configuration reaching it
        """

    @abstractmethod
    def go_to_pose_sync(self, pose: Pose3D, duration_s: float) -> None:
        """Command a motion to the given pose, returning once the request has been accepted."""

    @abstractmethod
    def wait_motion_done(self, period_s: float, timeout_s: float) -> bool:
        """Block until the current motion completes or the timeout elapses.

        :param period_s: Polling period (seconds)
        :param timeout_s: Maximum duration (seconds) to wait
        :return: True if the motion completed, False if the wait timed out
        """

    @abstractmethod
    def stop_control(self) -> None:
        """Stop any ongoing motion immediately."""

    def close(self) -> None:
        """Release the underlying device."""


class GazeInterface(ABC):
    """A gaze controller steering the robot's neck and eyes."""

    @abstractmethod
    def store_context(self) -> int:
        """Save the controller's current settings and return the context identifier."""

    @abstractmethod
    def restore_context(self, context_id: int) -> None:
        """Restore the settings saved under the given context identifier."""

    @abstractmethod
    def delete_context(self, context_id: int) -> None:
        """Release the stored context with the given identifier."""

    @abstractmethod
    def set_tracking_mode(self, enabled: bool) -> None:
        """Enable or disable tracking mode (holding the fixation point after reaching it)."""

    @abstractmethod
    def look_at_fixation_point(self, point: np.ndarray) -> None:
        """Fixate the given 3D point (meters, root frame)."""

    @abstractmethod
    def look_at_mono_pixel(self, camera: int, pixel: np.ndarray) -> None:
        """Fixate the given pixel as seen from one camera (0 = left eye, 1 = right eye)."""

    @abstractmethod
    def set_saccades_status(self, enabled: bool) -> None:
        """Enable or disable saccadic eye movements."""

    @abstractmethod
    def set_neck_traj_time(self, duration_s: float) -> None:
        """Set the neck trajectory execution time (seconds)."""

    @abstractmethod
    def set_eyes_traj_time(self, duration_s: float) -> None:
        """Set the eyes trajectory execution time (seconds)."""

    @abstractmethod
    def stop_control(self) -> None:
        """Stop any ongoing gaze motion immediately."""

    def close(self) -> None:
        """Release the underlying device."""


class HandInterface(ABC):
    """Joint-level access to the motors of one arm's hand."""

    @abstractmethod
    def get_encoder(self, joint: int) -> float:
        """Read the position (degrees) of the given joint."""

    @abstractmethod
    def velocity_move(self, joint: int, speed_deg_s: float) -> None:
        """Command the given joint to move at the given velocity (degrees/second)."""

    @abstractmethod
    def set_velocity_mode(self, joint: int) -> None:
        """Switch the given joint into velocity-control mode."""

    @abstractmethod
    def stop(self, joint: int) -> None:
        """Stop the given joint."""

    def close(self) -> None:
        """Release the underlying device."""


class VisionSource(ABC):
    """A stream of pixel coordinates locating the tool tip in a camera image."""

    @abstractmethod
    def read_pixel(self) -> Sequence[float] | None:
        """Poll for the latest pixel without blocking.

        :return: Pixel coordinates (u, v, ...) if a new reading arrived, else None
        """

    def close(self) -> None:
        """Release the underlying stream."""


class ToolSolver(ABC):
    """An external solver estimating the tool-tip position from accumulated observations."""

    @abstractmethod
    def clear(self) -> None:
        """Discard all accumulated samples."""

    @abstractmethod
    def select(self, arm: str, eye: str) -> None:
        """Select the arm holding the tool and the eye observing it."""

    @abstractmethod
    def enable(self) -> None:
        """Start accumulating samples."""

    @abstractmethod
    def disable(self) -> None:
        """Stop accumulating samples."""

    @abstractmethod
    def num_samples(self) -> int:
        """Retrieve the number of samples accumulated so far."""

    @abstractmethod
    def find(self) -> list[float]:
        """Solve for the tool tip, returning its (x, y, z) position in the hand frame."""

    def close(self) -> None:
        """Release the connection to the solver."""


class DeviceFactory(ABC):
    """Opens connections to every collaborator the motor module needs.

    Each method raises DeviceOpenError if the requested device cannot be opened.
    """

    @abstractmethod
    def open_gaze(self, config: MotorConfig) -> GazeInterface:
        """Open the gaze controller."""

    @abstractmethod
    def open_cartesian(self, arm: Arm, config: MotorConfig) -> MotionInterface:
        """Open the Cartesian controller of the given arm."""

    @abstractmethod
    def open_hand(self, arm: Arm, config: MotorConfig) -> HandInterface:
        """Open the joint-level interface of the given arm's hand."""

    @abstractmethod
    def open_vision(self, config: MotorConfig) -> VisionSource:
        """Open the stream of tool-tip pixels."""

    @abstractmethod
    def open_solver(self, config: MotorConfig) -> ToolSolver:
        """Open the connection to the tool-dimension solver."""
