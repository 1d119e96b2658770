"""Define a container that opens, holds, and closes every device used by the motor module."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from manipulation_actions.arms import Arm
from manipulation_actions.logging import log_error, log_info
from manipulation_actions.robot.interfaces import DeviceOpenError

if TYPE_CHECKING:
    from manipulation_actions.config import MotorConfig
    from manipulation_actions.robot.interfaces import (
        DeviceFactory,
        GazeInterface,
        HandInterface,
        MotionInterface,
        ToolSolver,
        VisionSource,
    )


@dataclass
class RobotDevices:
    """The collaborators reached by the motor module, opened together and closed together."""

    gaze: GazeInterface
    arms: dict[Arm, MotionInterface]
    hands: dict[Arm, HandInterface]
    vision: VisionSource
    solver: ToolSolver
    _closer: ExitStack = field(default_factory=ExitStack, repr=False)

    @classmethod
    def open(cls, factory: DeviceFactory, config: MotorConfig) -> RobotDevices | None:
        """Open every device in order, unwinding the opened ones if any device fails.

        Devices are closed in the reverse order of opening, so the streams and the solver
            connection are released before the motor interfaces.

        :param factory: Factory connecting to each device
        :param config: Configuration of the motor module
        :return: Opened devices, or None if any device could not be opened
        """
        with ExitStack() as stack:
            try:
                gaze = factory.open_gaze(config)
                stack.callback(gaze.close)

                arms: dict[Arm, MotionInterface] = {}
                for arm in (Arm.LEFT, Arm.RIGHT):
                    arms[arm] = factory.open_cartesian(arm, config)
                    stack.callback(arms[arm].close)

                hands: dict[Arm, HandInterface] = {}
                for arm in (Arm.LEFT, Arm.RIGHT):
                    hands[arm] = factory.open_hand(arm, config)
                    stack.callback(hands[arm].close)

                vision = factory.open_vision(config)
                stack.callback(vision.close)

                solver = factory.open_solver(config)
                stack.callback(solver.close)

            except DeviceOpenError as exc:
                log_error(f"[RobotDevices] Unable to open devices for '{config.name}': {exc}")
                return None

            log_info(f"[RobotDevices] Opened all devices of robot '{config.robot}'.")
            return cls(gaze, arms, hands, vision, solver, _closer=stack.pop_all())

    def close(self) -> None:
        """Close every device, in the reverse order of opening."""
        self._closer.close()
