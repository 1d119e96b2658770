"""Define the motor module, which answers text commands by planning and executing actions.

Commands arrive as token lists (e.g., ["push", "-0.3", "0.1", "0.0", "45", "0.1"]) and each
    returns a reply token list once its motion or exploration is over:

    push cx cy cz theta radius               -> ack
    pusp pose cx cy cz theta radius          -> ack
    draw cx cy cz theta radius dist          -> ack
    vdra cx cy cz theta radius dist          -> ack quality
    drap pose cx cy cz theta radius dist     -> ack
    vdrp pose cx cy cz theta radius dist     -> ack quality
    tool|toop attach arm x y z               -> ack
    tool|toop get                            -> ack arm x y z
    tool|toop remove                         -> ack
    find arm eye                             -> ack x y z ... | nack

Unknown commands and malformed payloads yield an empty reply.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, List, Sequence, Union

from manipulation_actions.actions.draw import (
    DRAW_STRAIGHTNESS,
    draw_frames,
    draw_quality,
    plan_draw,
)
from manipulation_actions.actions.executor import ActionExecutor, ActionTweaks
from manipulation_actions.actions.pose_styles import HAND_POSE_STYLE, NEUTRAL_STYLE
from manipulation_actions.actions.push import (
    PUSH_STRAIGHTNESS,
    plan_hand_pose_push,
    plan_push,
    push_candidates,
)
from manipulation_actions.exploration.hand_shaker import HandShaker
from manipulation_actions.exploration.tool_finder import ToolFinder
from manipulation_actions.interrupts import InterruptFlag
from manipulation_actions.logging import log_info, log_warning
from manipulation_actions.robot.devices import RobotDevices
from manipulation_actions.rpc.requests import parse_action_task, parse_tool_attachment
from manipulation_actions.tool_frame import ToolState

if TYPE_CHECKING:
    from manipulation_actions.actions.action_types import ActionTask
    from manipulation_actions.actions.pose_styles import PoseStyle
    from manipulation_actions.config import ElbowTask, MotorConfig
    from manipulation_actions.robot.interfaces import DeviceFactory

Reply = List[Union[str, float]]

ACK = "ack"
NACK = "nack"


class MotorModule:
    """Answers push, draw, tool, and find commands using the robot's devices."""

    def __init__(
        self,
        config: MotorConfig,
        devices: RobotDevices,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the module around a set of opened devices.

        :param config: Configuration of the motor module
        :param devices: Opened devices (released by close())
        :param clock: Monotonic clock (seconds) used by the tool exploration
        :param sleep: Function pausing the calling thread (seconds) used by the tool exploration
        """
        self.config = config
        self.devices = devices

        self.interrupt = InterruptFlag()
        self.tool = ToolState()

        self.executor = ActionExecutor(devices.arms, self.interrupt)
        self.shaker = HandShaker(devices.hands, self.interrupt, config.exploration)
        self.tool_finder = ToolFinder(
            self.executor,
            devices.gaze,
            devices.vision,
            devices.solver,
            self.shaker,
            self.interrupt,
            config.exploration,
            clock=clock,
            sleep=sleep,
        )

        self._handlers: dict[str, Callable[[Sequence[str]], Reply]] = {
            "push": self._handle_push,
            "pusp": self._handle_hand_pose_push,
            "draw": lambda payload: self._handle_draw(payload, NEUTRAL_STYLE, simulate=False),
            "vdra": lambda payload: self._handle_draw(payload, NEUTRAL_STYLE, simulate=True),
            "drap": lambda payload: self._handle_draw(payload, HAND_POSE_STYLE, simulate=False),
            "vdrp": lambda payload: self._handle_draw(payload, HAND_POSE_STYLE, simulate=True),
            "tool": lambda payload: self._handle_tool(payload, oriented=True),
            "toop": lambda payload: self._handle_tool(payload, oriented=False),
            "find": self._handle_find,
        }

    @classmethod
    def from_config(
        cls,
        config: MotorConfig,
        factory: DeviceFactory,
        start_thread: bool = True,
    ) -> MotorModule | None:
        """Open the robot's devices and construct a motor module using them.

        :param config: Configuration of the motor module
        :param factory: Factory connecting to each device
        :param start_thread: Whether to start the periodic hand-shaking thread
        :return: Constructed MotorModule, or None if the devices could not be opened
        """
        devices = RobotDevices.open(factory, config)
        if devices is None:
            return None

        module = cls(config, devices)
        if start_thread:
            module.shaker.start_thread()
        log_info(f"[MotorModule] Module '{config.name}' is ready.")
        return module

    def respond(self, tokens: Sequence[str]) -> Reply:
        """Answer a command given as a list of tokens.

        The interrupt flag is lowered once the command has been answered, so that a stop
            request only affects the command it interrupted.

        :param tokens: Command name followed by its payload
        :return: Reply tokens (empty for unknown commands or malformed payloads)
        """
        try:
            if not tokens:
                return []

            handler = self._handlers.get(str(tokens[0]))
            if handler is None:
                log_warning(f"[MotorModule] Unknown command: '{tokens[0]}'.")
                return []
            return handler([str(token) for token in tokens[1:]])
        finally:
            self.interrupt.clear()

    def respond_line(self, text: str) -> Reply:
        """Answer a command given as a whitespace-separated line of text."""
        return self.respond(text.split())

    def stop(self) -> None:
        """Interrupt the ongoing command, halting the gaze, both arms, and any shaking hand."""
        log_info("[MotorModule] Stop requested.")
        self.interrupt.set()

        self.devices.gaze.stop_control()
        for controller in self.devices.arms.values():
            controller.stop_control()

        self.shaker.halt_all()

    def update(self) -> None:
        """Perform one periodic tick of the module (shaking the hand in use, if any)."""
        self.shaker.step()

    def close(self) -> None:
        """Stop the periodic thread and release every device."""
        self.shaker.shutdown()
        self.devices.close()
        log_info(f"[MotorModule] Module '{self.config.name}' closed.")

    def _elbow_task(self, style: PoseStyle) -> ElbowTask | None:
        """Retrieve the elbow task applied during actions of the given style, if any."""
        return self.config.elbow_task if style.bias_elbow else None

    def _parse_task(
        self,
        payload: Sequence[str],
        with_hand_pose: bool,
        with_draw_dist: bool,
    ) -> ActionTask | None:
        """Parse an action payload, using the arm recorded with the current tool."""
        return parse_action_task(payload, self.tool.arm, with_hand_pose, with_draw_dist)

    def _handle_push(self, payload: Sequence[str]) -> Reply:
        """Push from a contact chosen among two tangential hand frames."""
        task = self._parse_task(payload, with_hand_pose=False, with_draw_dist=False)
        if task is None:
            return []

        candidates = push_candidates(task, self.tool.frame)
        tweaks = ActionTweaks(
            straightness=PUSH_STRAIGHTNESS,
            elbow_task=self._elbow_task(NEUTRAL_STYLE),
        )
        with self.executor.arm_context(candidates.arm, tweaks) as controller:
            plan = plan_push(candidates, controller.ask_for_pose)
            self.executor.follow(controller, plan.waypoints)

        return [ACK]

    def _handle_hand_pose_push(self, payload: Sequence[str]) -> Reply:
        """Push holding the hand in one of the fixed hand poses."""
        task = self._parse_task(payload, with_hand_pose=True, with_draw_dist=False)
        if task is None:
            return []

        plan = plan_hand_pose_push(task, self.tool.frame, self.config.move_time_s)
        tweaks = ActionTweaks(
            straightness=PUSH_STRAIGHTNESS,
            elbow_task=self._elbow_task(HAND_POSE_STYLE),
        )
        with self.executor.arm_context(plan.arm, tweaks) as controller:
            self.executor.follow(controller, plan.waypoints)

        return [ACK]

    def _handle_draw(self, payload: Sequence[str], style: PoseStyle, simulate: bool) -> Reply:
        """Draw an object toward the robot, or only score how well the draw could be performed.

        :param payload: Tokens following the command name
        :param style: Pose style of the draw
        :param simulate: Whether to score the draw instead of executing it
        :return: ["ack"], followed by the quality score when simulating
        """
        task = self._parse_task(
            payload,
            with_hand_pose=style is HAND_POSE_STYLE,
            with_draw_dist=True,
        )
        if task is None:
            return []

        frames = draw_frames(task, self.tool.frame, style)
        tweaks = ActionTweaks(straightness=DRAW_STRAIGHTNESS, elbow_task=self._elbow_task(style))
        with self.executor.arm_context(frames.arm, tweaks) as controller:
            if simulate:
                quality = draw_quality(frames, controller.ask_for_pose, style)
                return [ACK, quality]

            plan = plan_draw(frames, style, self.config.move_time_s)
            self.executor.follow(controller, plan.waypoints)

        return [ACK]

    def _handle_tool(self, payload: Sequence[str], oriented: bool) -> Reply:
        """Attach, report, or remove the tool held by the robot.

        :param payload: Subcommand ("attach", "get", or "remove") and its arguments
        :param oriented: Whether an attached tool frame is rotated toward the tool tip
        :return: Reply tokens for the subcommand
        """
        if not payload:
            return []

        subcommand = payload[0]
        if subcommand == "attach":
            attachment = parse_tool_attachment(payload[1:])
            if attachment is None:
                return []

            attach = self.tool.attach_oriented if oriented else self.tool.attach_translated
            attach(attachment.arm, attachment.x, attachment.y, attachment.z)
            log_info(f"[MotorModule] Attached tool at {self.tool.tip} ({attachment.arm.value}).")
            return [ACK]

        if subcommand == "get":
            x, y, z = (float(value) for value in self.tool.tip)
            return [ACK, self.tool.arm.value, x, y, z]

        if subcommand == "remove":
            self.tool.remove()
            log_info("[MotorModule] Removed the tool.")
            return [ACK]

        log_warning(f"[MotorModule] Unknown tool subcommand: '{subcommand}'.")
        return []

    def _handle_find(self, payload: Sequence[str]) -> Reply:
        """Explore the tool held by an arm and report the tool-tip dimensions found."""
        if len(payload) < 2:
            return []

        dims = self.tool_finder.find_tool_tip(payload[0], payload[1])
        if dims is None:
            return [NACK]
        return [ACK, *dims]
