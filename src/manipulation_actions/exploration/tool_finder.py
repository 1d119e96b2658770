"""Define the routine that estimates a held tool's tip by observing it from several poses.

At each exploratory pose, the hand holding the tool is shaken while the gaze tracks the tool tip
    reported by the vision stream. Once the gaze has settled on the tip, samples are accumulated
    by an external solver, which finally estimates the tip position in the hand frame.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

import numpy as np

from manipulation_actions.actions.action_types import Waypoint
from manipulation_actions.actions.executor import ActionTweaks
from manipulation_actions.arms import Arm
from manipulation_actions.exploration.exploration_points import exploration_points
from manipulation_actions.logging import log_error, log_info, log_warning

if TYPE_CHECKING:
    from manipulation_actions.actions.executor import ActionExecutor
    from manipulation_actions.config import ExplorationSettings
    from manipulation_actions.exploration.exploration_points import ExplorationPoint
    from manipulation_actions.exploration.hand_shaker import HandShaker
    from manipulation_actions.interrupts import InterruptFlag
    from manipulation_actions.robot.interfaces import (
        GazeInterface,
        MotionInterface,
        ToolSolver,
        VisionSource,
    )

STARTUP_GAZE_CONTEXT = 0  # Gaze context holding the settings present when the controller opened

# Freeze the torso's pitch and roll so the tool is presented by the arm alone
EXPLORATION_TWEAKS = ActionTweaks(straightness=None, frozen_dofs=(0, 1))


class ExplorationState(Enum):
    """Stage of the tool-tip exploration routine."""

    IDLE = "idle"
    EXPLORING_POINT = "exploring_point"  # Moving the tool to an exploratory pose
    CONVERGING = "converging"  # Waiting for the gaze to settle on the tool tip
    SAMPLING = "sampling"  # Accumulating samples in the solver
    SOLVING = "solving"


@dataclass
class PointOutcome:
    """Summary of the observation performed at one exploratory pose."""

    index: int
    converged: bool
    windows: int  # Convergence windows evaluated before the gaze settled (or gave up)
    samples: int


@dataclass
class ExplorationSession:
    """State of one tool-tip exploration, created for each request.

    Once the exploration returns, the session is no longer updated and serves only as a record
        of the finished run (see ToolFinder.session).
    """

    arm: Arm
    eye: str
    point_index: int = 0
    samples_collected: int = 0  # Solver samples gathered at the current point
    windows: int = 0  # Convergence windows evaluated at the current point
    converged: bool = False  # Whether the gaze settled at the current point
    state: ExplorationState = ExplorationState.IDLE
    outcomes: list[PointOutcome] = field(default_factory=list)  # One entry per explored point

    @property
    def camera(self) -> int:
        """Retrieve the index of the camera observing the tool (0 = left eye, 1 = right eye)."""
        return 0 if self.eye == "left" else 1


class ToolFinder:
    """Runs the six-pose exploration that lets an external solver locate a tool tip."""

    def __init__(
        self,
        executor: ActionExecutor,
        gaze: GazeInterface,
        vision: VisionSource,
        solver: ToolSolver,
        shaker: HandShaker,
        interrupt: InterruptFlag,
        settings: ExplorationSettings,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the tool finder with its collaborators.

        :param executor: Executor moving the arms through exploratory poses
        :param gaze: Gaze controller fixating the tool
        :param vision: Stream of tool-tip pixels
        :param solver: External solver estimating the tool tip from accumulated samples
        :param shaker: Shaker oscillating the hand holding the tool
        :param interrupt: Process-wide flag ending the exploration early
        :param settings: Timing and thresholds of the exploration
        :param clock: Monotonic clock (seconds)
        :param sleep: Function pausing the calling thread (seconds)
        """
        self.executor = executor
        self.gaze = gaze
        self.vision = vision
        self.solver = solver
        self.shaker = shaker
        self.interrupt = interrupt
        self.settings = settings
        self.clock = clock
        self.sleep = sleep

        # Record of the most recent exploration, left IDLE once find_tool_tip() returns. Each call
        #     builds a fresh session, so no state carries over between explorations.
        self.session: ExplorationSession | None = None

    def find_tool_tip(self, arm_name: str, eye: str) -> list[float] | None:
        """Explore the tool held by the given arm and solve for its tip.

        :param arm_name: Arm holding the tool ("left" or "right")
        :param eye: Eye observing the tool ("left" or "right")
        :return: Tool-tip dimensions reported by the solver, [] if interrupted, or None if the
            arm is not recognized
        """
        arm = Arm.from_name(arm_name)
        if arm is None:
            log_error(f"[ToolFinder] Cannot explore a tool held by unknown arm '{arm_name}'.")
            return None

        session = ExplorationSession(arm, eye)
        self.session = session

        dims: list[float] = []
        with self.executor.arm_context(arm, EXPLORATION_TWEAKS) as controller, self._gaze_context():
            self.solver.clear()
            self.solver.select(arm.value, eye)

            for point in exploration_points(arm):
                if self.interrupt.is_set():
                    break
                session.point_index = point.index
                self._explore_point(session, controller, point)

            if self.interrupt.is_set():
                log_info(f"[ToolFinder] Interrupted at point {session.point_index + 1}.")
            else:
                session.state = ExplorationState.SOLVING
                dims = list(self.solver.find())
                log_info(f"[ToolFinder] Solver found tool dimensions: {dims}")

        session.state = ExplorationState.IDLE
        return dims

    @contextmanager
    def _gaze_context(self) -> Iterator[None]:
        """Save the gaze controller's settings, restoring and releasing them on exit."""
        context_id = self.gaze.store_context()
        try:
            yield
        finally:
            self.gaze.restore_context(context_id)
            self.gaze.delete_context(context_id)

    def _explore_point(
        self,
        session: ExplorationSession,
        controller: MotionInterface,
        point: ExplorationPoint,
    ) -> None:
        """Move the tool to one exploratory pose, then observe it until enough samples exist.

        :param session: State of the ongoing exploration
        :param controller: Cartesian controller of the arm holding the tool
        :param point: Exploratory pose and its observation parameters
        """
        session.state = ExplorationState.EXPLORING_POINT
        session.samples_collected = 0
        session.windows = 0
        session.converged = False

        self.gaze.restore_context(STARTUP_GAZE_CONTEXT)
        if not self.interrupt.is_set():
            self.gaze.set_tracking_mode(True)
            self.gaze.look_at_fixation_point(point.fixation_point())
            s = self.settings
            self.executor.move(controller, Waypoint(point.pose(), s.move_time_s, s.move_timeout_s))

        self.gaze.set_saccades_status(False)
        self.gaze.set_neck_traj_time(self.settings.neck_traj_time_s)
        self.gaze.set_eyes_traj_time(self.settings.eyes_traj_time_s)

        self.shaker.start(session.arm, point.shake_joint)
        try:
            session.state = ExplorationState.CONVERGING
            session.converged = self._converge_gaze(session)

            session.state = ExplorationState.SAMPLING
            session.samples_collected = self._accumulate_samples(session, point.batch_size)
        finally:
            self.shaker.stop()

        session.outcomes.append(
            PointOutcome(
                point.index,
                session.converged,
                session.windows,
                session.samples_collected,
            ),
        )

    def _forward_pixel(self, session: ExplorationSession) -> np.ndarray | None:
        """Poll the vision stream and, given a new pixel, direct the gaze at it.

        :return: Biased pixel sent to the gaze controller, or None if no pixel was available
        """
        reading = self.vision.read_pixel()
        if reading is None or len(reading) < 2:
            return None

        pixel = np.array([float(reading[0]), float(reading[1]) + self.settings.row_bias_px])
        self.gaze.look_at_mono_pixel(session.camera, pixel)
        return pixel

    def _timed_out(self, t_start: float, now: float, timeout_s: float | None, stage: str) -> bool:
        """Check whether an advisory timeout has elapsed, warning if so."""
        if timeout_s is None or now - t_start < timeout_s:
            return False
        log_warning(f"[ToolFinder] {stage} did not finish within {timeout_s:.1f} s; proceeding.")
        return True

    def _converge_gaze(self, session: ExplorationSession) -> bool:
        """Track the tool tip until its mean image row settles near the target row.

        Pixels are evaluated in consecutive windows; a window holding enough pixels whose mean
            row lies within tolerance of the target declares convergence.

        :param session: State of the ongoing exploration
        :return: True if the gaze converged, False if interrupted or timed out
        """
        s = self.settings
        t_start = self.clock()
        t_window = t_start
        row_sum = 0.0
        count = 0

        while not self.interrupt.is_set():
            now = self.clock()

            pixel = self._forward_pixel(session)
            if pixel is not None:
                row_sum += pixel[1]
                count += 1

            if now - t_window >= s.window_s:
                session.windows += 1
                if count > s.min_window_samples:
                    mean_row = row_sum / count
                    if abs(mean_row - s.target_row_px) < s.row_tolerance_px:
                        log_info(
                            f"[ToolFinder] Gaze converged in window {session.windows} "
                            f"(mean row {mean_row:.1f} px).",
                        )
                        return True

                row_sum = 0.0
                count = 0
                t_window = now

            if self._timed_out(t_start, now, s.convergence_timeout_s, "Gaze convergence"):
                return False

            self.sleep(s.vision_period_s)

        return False

    def _accumulate_samples(self, session: ExplorationSession, batch_size: int) -> int:
        """Let the solver accumulate samples until the batch is complete, still tracking the tip.

        :param session: State of the ongoing exploration
        :param batch_size: Number of new samples to wait for
        :return: Number of new samples the solver accumulated
        """
        s = self.settings
        self.solver.enable()
        try:
            initial = self.solver.num_samples()
            collected = 0
            t_start = self.clock()

            while not self.interrupt.is_set():
                collected = self.solver.num_samples() - initial
                if collected >= batch_size:
                    break

                self._forward_pixel(session)

                if self._timed_out(t_start, self.clock(), s.sampling_timeout_s, "Sampling"):
                    break

                self.sleep(s.sampling_period_s)

            log_info(
                f"[ToolFinder] Collected {collected} samples at point {session.point_index + 1}.",
            )
            return collected
        finally:
            self.solver.disable()
