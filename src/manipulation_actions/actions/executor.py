"""Define the executor driving waypoint sequences through the arms' Cartesian controllers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Mapping, Sequence

import numpy as np

from manipulation_actions.logging import log_info, log_warning

if TYPE_CHECKING:
    from manipulation_actions.actions.action_types import Waypoint
    from manipulation_actions.arms import Arm
    from manipulation_actions.config import ElbowTask
    from manipulation_actions.interrupts import InterruptFlag
    from manipulation_actions.robot.interfaces import MotionInterface

ELBOW_TASK_NAME = "task_2"  # Secondary task slot of the Cartesian solver used for the elbow
ELBOW_TASK_DOF = 6  # Index of the arm link whose position the elbow task constrains


@dataclass(frozen=True)
class ActionTweaks:
    """Controller adjustments applied for the whole duration of an action."""

    straightness: float | None = None  # Weight of the straight-path requirement (None: unchanged)
    frozen_dofs: tuple[int, ...] = (1,)  # Joints excluded from the solution (all others enabled)
    elbow_task: ElbowTask | None = None  # Optional task keeping the elbow raised


class ActionExecutor:
    """Executes waypoint sequences on the arms' Cartesian controllers, honoring interruptions."""

    def __init__(
        self,
        controllers: Mapping[Arm, MotionInterface],
        interrupt: InterruptFlag,
        poll_period_s: float = 0.1,
    ) -> None:
        """Initialize the executor with one Cartesian controller per arm.

        :param controllers: Map from each arm to its Cartesian controller
        :param interrupt: Process-wide flag checked before every motion leg
        :param poll_period_s: Period (seconds) used while waiting for motions to complete
        """
        self.controllers = dict(controllers)
        self.interrupt = interrupt
        self.poll_period_s = poll_period_s

    @contextmanager
    def arm_context(self, arm: Arm, tweaks: ActionTweaks) -> Iterator[MotionInterface]:
        """Apply the given tweaks to an arm's controller, restoring its settings on exit.

        The controller context is saved before anything is changed, and it is restored and
            released exactly once when the block exits, whether it completes, is interrupted,
            or raises.

        :param arm: Arm whose controller is used
        :param tweaks: Adjustments to apply for the duration of the block
        :yield: The arm's Cartesian controller
        """
        controller = self.controllers[arm]
        context_id = controller.store_context()
        try:
            self._apply_tweaks(controller, tweaks)
            yield controller
        finally:
            controller.restore_context(context_id)
            controller.delete_context(context_id)

    def _apply_tweaks(self, controller: MotionInterface, tweaks: ActionTweaks) -> None:
        """Send the given tweaks to a controller."""
        if tweaks.straightness is not None:
            controller.tweak_set({"straightness": tweaks.straightness})

        if tweaks.elbow_task is not None:
            controller.tweak_set(
                {
                    ELBOW_TASK_NAME: {
                        "dof": ELBOW_TASK_DOF,
                        "position": [0.0, 0.0, tweaks.elbow_task.height_m],
                        "weights": [0.0, 0.0, tweaks.elbow_task.weight],
                    },
                },
            )

        dof = np.ones_like(np.asarray(controller.get_dof(), dtype=float))
        dof[list(tweaks.frozen_dofs)] = 0.0
        controller.set_dof(dof)

    def move(self, controller: MotionInterface, waypoint: Waypoint) -> bool:
        """Move to a single waypoint and wait (advisorily) for the motion to complete.

        :param controller: Cartesian controller executing the motion
        :param waypoint: Target pose and timing of the motion leg
        :return: True if the motion completed in time, False if the wait timed out
        """
        log_info(f"[ActionExecutor] Moving to: {waypoint.pose} in {waypoint.duration_s:.2f} s")
        controller.go_to_pose_sync(waypoint.pose, waypoint.duration_s)
        done = controller.wait_motion_done(self.poll_period_s, waypoint.timeout_s)
        if not done:
            log_warning(
                f"[ActionExecutor] Motion not done after {waypoint.timeout_s:.1f} s; proceeding.",
            )
        return done

    def follow(self, controller: MotionInterface, waypoints: Sequence[Waypoint]) -> int:
        """Move through the given waypoints in order, stopping early if interrupted.

        :param controller: Cartesian controller executing the motions
        :param waypoints: Ordered waypoints to be reached
        :return: Number of waypoints that were commanded
        """
        for idx, waypoint in enumerate(waypoints):
            if self.interrupt.is_set():
                skipped = len(waypoints) - idx
                log_info(f"[ActionExecutor] Interrupted; skipping {skipped} waypoints.")
                return idx
            self.move(controller, waypoint)
        return len(waypoints)
