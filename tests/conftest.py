"""Define fake robot collaborators and Pytest fixtures shared by the unit tests."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np
import pytest

from manipulation_actions.arms import Arm
from manipulation_actions.config import ExplorationSettings, MotorConfig
from manipulation_actions.interrupts import InterruptFlag
from manipulation_actions.kinematics import Pose3D
from manipulation_actions.motor_module import MotorModule
from manipulation_actions.robot.devices import RobotDevices
from manipulation_actions.robot.interfaces import (
    DeviceFactory,
    DeviceOpenError,
    FeasibilityResult,
    GazeInterface,
    HandInterface,
    MotionInterface,
    ToolSolver,
    VisionSource,
)


def expected_hand_rotation(fi_deg: float, psi_deg: float) -> np.ndarray:
    """Build the hand orientation HR * Ax(fi) * Az(psi) of a hand-pose action, written out in full.

    :param fi_deg: Roll angle (degrees) of the Ax factor
    :param psi_deg: Yaw angle (degrees) of the Az factor
    :return: 3x3 rotation matrix of the hand
    """
    fi = np.deg2rad(fi_deg)
    psi = np.deg2rad(psi_deg)
    hand_base = np.array([[-1.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, -1.0, 0.0]])
    ax = np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, np.cos(fi), np.sin(fi)],
            [0.0, -np.sin(fi), np.cos(fi)],
        ],
    )
    az = np.array(
        [
            [np.cos(psi), np.sin(psi), 0.0],
            [-np.sin(psi), np.cos(psi), 0.0],
            [0.0, 0.0, 1.0],
        ],
    )
    return hand_base @ ax @ az


class FakeClock:
    """A manually advanced clock whose sleep() advances time instantly."""

    def __init__(self) -> None:
        self.now_s = 0.0

    def __call__(self) -> float:
        return self.now_s

    def sleep(self, duration_s: float) -> None:
        self.now_s += duration_s


class FakeMotion(MotionInterface):
    """A Cartesian controller that records every request it receives."""

    def __init__(
        self,
        feasibility: Callable[[Pose3D], Pose3D] | None = None,
        completes: bool = True,
        closed: list[str] | None = None,
        name: str = "arm",
    ) -> None:
        self.feasibility = feasibility  # Maps requested to achieved poses (None: identity)
        self.completes = completes
        self.closed = closed
        self.name = name

        self.next_context = 1
        self.stored: list[int] = []
        self.restored: list[int] = []
        self.deleted: list[int] = []
        self.tweaks: list[dict[str, Any]] = []
        self.dof = np.ones(10)
        self.asked: list[tuple[Pose3D, np.ndarray | None]] = []
        self.moves: list[tuple[Pose3D, float]] = []
        self.waits: list[tuple[float, float]] = []
        self.stop_count = 0
        self.on_move: Callable[[int], None] | None = None  # Called with the number of moves so far

    def store_context(self) -> int:
        context_id = self.next_context
        self.next_context += 1
        self.stored.append(context_id)
        return context_id

    def restore_context(self, context_id: int) -> None:
        self.restored.append(context_id)

    def delete_context(self, context_id: int) -> None:
        self.deleted.append(context_id)

    def get_dof(self) -> np.ndarray:
        return self.dof.copy()

    def set_dof(self, dof: np.ndarray) -> np.ndarray:
        self.dof = np.array(dof, dtype=float)
        return self.dof.copy()

    def tweak_set(self, options: dict[str, Any]) -> None:
        self.tweaks.append(options)

    def ask_for_pose(self, pose: Pose3D, seed: np.ndarray | None = None) -> FeasibilityResult:
        self.asked.append((pose, seed))
        achieved = pose if self.feasibility is None else self.feasibility(pose)
        return FeasibilityResult(achieved, np.full(7, float(len(self.asked))))

    def go_to_pose_sync(self, pose: Pose3D, duration_s: float) -> None:
        self.moves.append((pose, duration_s))
        if self.on_move is not None:
            self.on_move(len(self.moves))

    def wait_motion_done(self, period_s: float, timeout_s: float) -> bool:
        self.waits.append((period_s, timeout_s))
        return self.completes

    def stop_control(self) -> None:
        self.stop_count += 1

    def close(self) -> None:
        if self.closed is not None:
            self.closed.append(self.name)


class FakeGaze(GazeInterface):
    """A gaze controller that records every request it receives."""

    def __init__(self, closed: list[str] | None = None) -> None:
        self.closed = closed
        self.next_context = 1
        self.stored: list[int] = []
        self.restored: list[int] = []
        self.deleted: list[int] = []
        self.fixations: list[np.ndarray] = []
        self.pixels: list[tuple[int, np.ndarray]] = []
        self.settings: list[tuple[str, Any]] = []
        self.stop_count = 0

    def store_context(self) -> int:
        context_id = self.next_context
        self.next_context += 1
        self.stored.append(context_id)
        return context_id

    def restore_context(self, context_id: int) -> None:
        self.restored.append(context_id)

    def delete_context(self, context_id: int) -> None:
        self.deleted.append(context_id)

    def set_tracking_mode(self, enabled: bool) -> None:
        self.settings.append(("tracking", enabled))

    def look_at_fixation_point(self, point: np.ndarray) -> None:
        self.fixations.append(np.asarray(point))

    def look_at_mono_pixel(self, camera: int, pixel: np.ndarray) -> None:
        self.pixels.append((camera, np.asarray(pixel)))

    def set_saccades_status(self, enabled: bool) -> None:
        self.settings.append(("saccades", enabled))

    def set_neck_traj_time(self, duration_s: float) -> None:
        self.settings.append(("neck", duration_s))

    def set_eyes_traj_time(self, duration_s: float) -> None:
        self.settings.append(("eyes", duration_s))

    def stop_control(self) -> None:
        self.stop_count += 1

    def close(self) -> None:
        if self.closed is not None:
            self.closed.append("gaze")


class FakeHand(HandInterface):
    """A hand whose encoder reading is set by the test."""

    def __init__(self, closed: list[str] | None = None, name: str = "hand") -> None:
        self.closed = closed
        self.name = name
        self.position_deg = 0.0
        self.velocity_mode: list[int] = []
        self.velocities: list[tuple[int, float]] = []
        self.stopped: list[int] = []

    def get_encoder(self, joint: int) -> float:
        return self.position_deg

    def velocity_move(self, joint: int, speed_deg_s: float) -> None:
        self.velocities.append((joint, speed_deg_s))

    def set_velocity_mode(self, joint: int) -> None:
        self.velocity_mode.append(joint)

    def stop(self, joint: int) -> None:
        self.stopped.append(joint)

    def close(self) -> None:
        if self.closed is not None:
            self.closed.append(self.name)


class FakeVision(VisionSource):
    """A pixel stream producing the same pixel on every poll (or None once exhausted)."""

    def __init__(
        self,
        pixel: Sequence[float] | None = (160.0, 70.0),
        on_read: Callable[[int], None] | None = None,
        closed: list[str] | None = None,
    ) -> None:
        self.pixel = pixel
        self.on_read = on_read  # Called with the number of polls so far
        self.closed = closed
        self.reads = 0

    def read_pixel(self) -> Sequence[float] | None:
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        return self.pixel

    def close(self) -> None:
        if self.closed is not None:
            self.closed.append("vision")


class FakeSolver(ToolSolver):
    """A solver accumulating a fixed number of samples per query while enabled."""

    def __init__(
        self,
        samples_per_query: int = 5,
        dims: Sequence[float] = (0.1, -0.05, 0.02),
        closed: list[str] | None = None,
    ) -> None:
        self.samples_per_query = samples_per_query
        self.dims = list(dims)
        self.closed = closed
        self.enabled = False
        self.count = 0
        self.calls: list[Any] = []

    def clear(self) -> None:
        self.calls.append("clear")
        self.count = 0

    def select(self, arm: str, eye: str) -> None:
        self.calls.append(("select", arm, eye))

    def enable(self) -> None:
        self.calls.append("enable")
        self.enabled = True

    def disable(self) -> None:
        self.calls.append("disable")
        self.enabled = False

    def num_samples(self) -> int:
        if self.enabled:
            self.count += self.samples_per_query
        return self.count

    def find(self) -> list[float]:
        self.calls.append("find")
        return list(self.dims)

    def close(self) -> None:
        if self.closed is not None:
            self.closed.append("solver")


class FakeFactory(DeviceFactory):
    """A device factory building fakes, optionally failing to open one named device."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.closed: list[str] = []
        self.opened: list[str] = []

    def _open(self, name: str) -> None:
        if name == self.fail_on:
            raise DeviceOpenError(f"Device '{name}' is unavailable.")
        self.opened.append(name)

    def open_gaze(self, config: MotorConfig) -> GazeInterface:
        self._open("gaze")
        return FakeGaze(closed=self.closed)

    def open_cartesian(self, arm: Arm, config: MotorConfig) -> MotionInterface:
        name = f"{arm.value}_arm"
        self._open(name)
        return FakeMotion(closed=self.closed, name=name)

    def open_hand(self, arm: Arm, config: MotorConfig) -> HandInterface:
        name = f"{arm.value}_hand"
        self._open(name)
        return FakeHand(closed=self.closed, name=name)

    def open_vision(self, config: MotorConfig) -> VisionSource:
        self._open("vision")
        return FakeVision(closed=self.closed)

    def open_solver(self, config: MotorConfig) -> ToolSolver:
        self._open("solver")
        return FakeSolver(closed=self.closed)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a clock starting at zero that advances only when slept on."""
    return FakeClock()


@pytest.fixture
def interrupt() -> InterruptFlag:
    """Return a lowered interrupt flag."""
    return InterruptFlag()


@pytest.fixture
def exploration_settings() -> ExplorationSettings:
    """Return the default exploration settings."""
    return ExplorationSettings()


@pytest.fixture
def devices() -> RobotDevices:
    """Return a set of fake devices that are already open."""
    return RobotDevices(
        gaze=FakeGaze(),
        arms={Arm.LEFT: FakeMotion(name="left_arm"), Arm.RIGHT: FakeMotion(name="right_arm")},
        hands={Arm.LEFT: FakeHand(name="left_hand"), Arm.RIGHT: FakeHand(name="right_hand")},
        vision=FakeVision(),
        solver=FakeSolver(),
    )


@pytest.fixture
def motor_module(devices: RobotDevices, fake_clock: FakeClock) -> MotorModule:
    """Return a motor module driving fake devices, with the default configuration."""
    return MotorModule(MotorConfig(), devices, clock=fake_clock, sleep=fake_clock.sleep)
