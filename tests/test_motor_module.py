"""Define unit tests for the command handling of the MotorModule class."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import FakeClock, FakeFactory, FakeGaze, FakeHand, FakeMotion
from manipulation_actions.arms import Arm, ArmPreference
from manipulation_actions.config import ElbowTask, MotorConfig
from manipulation_actions.math.frames import from_axis_angle
from manipulation_actions.motor_module import MotorModule
from manipulation_actions.robot.devices import RobotDevices


def test_tool_attach_get_remove(motor_module: MotorModule) -> None:
    """Verify that an attached tool is reported by `get` and cleared by `remove`."""
    # Arrange/Act: Attach a tool to the left hand and query it
    attach_reply = motor_module.respond(["tool", "attach", "left", "0.02", "0", "0.05"])
    get_reply = motor_module.respond(["tool", "get"])

    # Assert: The tool tip and arm are reported back
    assert attach_reply == ["ack"]
    assert get_reply[:2] == ["ack", "left"]
    assert get_reply[2:] == pytest.approx([0.02, 0.0, 0.05])
    assert motor_module.tool.arm is ArmPreference.LEFT

    # Act: Remove the tool and query it again
    remove_reply = motor_module.respond(["tool", "remove"])
    get_reply = motor_module.respond(["tool", "get"])

    # Assert: The frame is back to the identity and the arm is selectable again
    assert remove_reply == ["ack"]
    assert get_reply == ["ack", "selectable", 0.0, 0.0, 0.0]
    assert np.allclose(motor_module.tool.frame, np.eye(4))


def test_tool_attach_orients_frame(motor_module: MotorModule) -> None:
    """Verify that `tool attach` rotates the frame toward the tip while `toop attach` does not."""
    # Act: Attach a tool whose tip lies at 45 degrees in the hand's xy-plane
    motor_module.respond(["tool", "attach", "right", "0.1", "-0.1", "0.0"])
    oriented = motor_module.tool.frame.copy()

    motor_module.respond(["toop", "attach", "right", "0.1", "-0.1", "0.0"])
    translated = motor_module.tool.frame.copy()

    # Assert: The oriented frame is rotated about -z by atan2(0.1, 0.1)
    expected = from_axis_angle([0.0, 0.0, -1.0], np.pi / 4)[:3, :3]
    assert np.allclose(oriented[:3, :3], expected)
    assert np.allclose(oriented[:3, 3], [0.1, -0.1, 0.0])

    assert np.allclose(translated[:3, :3], np.eye(3))
    assert np.allclose(translated[:3, 3], [0.1, -0.1, 0.0])


@pytest.mark.parametrize(
    "tokens",
    [
        [],
        ["jump"],
        ["push", "-0.3", "0.1", "0.0"],
        ["push", "a", "b", "c", "d", "e"],
        ["draw", "-0.3", "0.1", "0.0", "0", "0.1"],
        ["pusp", "-0.3", "0.1", "0.0", "0", "0.1"],
        ["tool"],
        ["tool", "attach", "left", "0.1"],
        ["tool", "attach", "middle", "0.1", "0", "0"],
        ["tool", "spin"],
        ["find", "left"],
    ],
)
def test_malformed_commands_yield_empty_reply(motor_module: MotorModule, tokens: list[str]) -> None:
    """Verify that unknown commands and malformed payloads are answered with an empty reply."""
    assert motor_module.respond(tokens) == []


def test_push_command(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that `push` executes four legs on the arm on the side of the contact point."""
    # Act: Push from theta = 0 (the contact lies to the right of the object)
    reply = motor_module.respond(["push", "-0.35", "0.0", "-0.05", "0", "0.1"])

    # Assert: The right arm moved through four legs with the push tweaks applied
    right = devices.arms[Arm.RIGHT]
    assert isinstance(right, FakeMotion)
    assert reply == ["ack"]
    assert len(right.moves) == 4
    assert {"straightness": 10.0} in right.tweaks
    assert right.restored == right.deleted == [1]
    assert devices.arms[Arm.LEFT].moves == []  # type: ignore[attr-defined]


def test_push_uses_tool_arm(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that the arm recorded with an attached tool is used for pushing."""
    motor_module.respond(["toop", "attach", "left", "0.1", "0.0", "0.0"])

    motor_module.respond(["push", "-0.35", "0.0", "-0.05", "0", "0.1"])

    assert len(devices.arms[Arm.LEFT].moves) == 4  # type: ignore[attr-defined]
    assert devices.arms[Arm.RIGHT].moves == []  # type: ignore[attr-defined]


def test_hand_pose_push_command(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that `pusp` moves the arm on the centroid's side using the configured move time."""
    reply = motor_module.respond(["pusp", "1", "-0.3", "-0.1", "0.0", "0", "0.1"])

    left = devices.arms[Arm.LEFT]
    assert isinstance(left, FakeMotion)
    assert reply == ["ack"]
    assert [duration for _, duration in left.moves] == pytest.approx([1.0, 1.0, 1.0, 1.0])


def test_simulated_draw_reports_quality(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that `vdra` scores the draw without moving, and `draw` executes it."""
    # Act: Simulate, then execute, a draw of an object ahead of the robot
    simulated = motor_module.respond(["vdra", "-0.4", "0.0", "0.0", "0", "0.1", "0.1"])
    executed = motor_module.respond(["draw", "-0.4", "0.0", "0.0", "0", "0.1", "0.1"])

    # Assert: The simulation reports zero error; only the execution moves the arm
    right = devices.arms[Arm.RIGHT]
    assert isinstance(right, FakeMotion)
    assert simulated[0] == "ack"
    assert simulated[1] == pytest.approx(0.0, abs=1e-9)
    assert executed == ["ack"]
    assert len(right.asked) == 2
    assert [duration for _, duration in right.moves] == pytest.approx([2.0, 1.5, 3.5])
    assert {"straightness": 30.0} in right.tweaks


def test_simulated_hand_pose_draw(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that `vdrp` replies with a quality score and `drap` uses the configured move time."""
    simulated = motor_module.respond(["vdrp", "0", "-0.4", "0.0", "0.0", "90", "0.1", "0.1"])
    executed = motor_module.respond(["drap", "0", "-0.4", "0.0", "0.0", "90", "0.1", "0.1"])

    right = devices.arms[Arm.RIGHT]
    assert isinstance(right, FakeMotion)
    assert len(simulated) == 2
    assert simulated[1] == pytest.approx(0.0, abs=1e-9)
    assert executed == ["ack"]
    assert [duration for _, duration in right.moves] == pytest.approx([2.0, 1.5, 1.0])


def test_elbow_task_only_for_neutral_actions(devices: RobotDevices, fake_clock: FakeClock) -> None:
    """Verify that a configured elbow task is applied to push but not to the hand-pose push."""
    # Arrange: Configure the elbow task
    config = MotorConfig(elbow_task=ElbowTask(0.4, 30.0))
    module = MotorModule(config, devices, clock=fake_clock, sleep=fake_clock.sleep)
    right = devices.arms[Arm.RIGHT]
    assert isinstance(right, FakeMotion)

    # Act/Assert: The neutral push sends the elbow task
    module.respond(["push", "-0.35", "0.0", "-0.05", "0", "0.1"])
    assert any("task_2" in options for options in right.tweaks)

    # Act/Assert: The hand-pose push does not
    right.tweaks.clear()
    module.respond(["pusp", "0", "-0.3", "0.1", "0.0", "0", "0.1"])
    assert not any("task_2" in options for options in right.tweaks)


def test_find_command(motor_module: MotorModule) -> None:
    """Verify that `find` replies with the solver's dimensions, or `nack` for an unknown arm."""
    assert motor_module.respond(["find", "torso", "left"]) == ["nack"]

    reply = motor_module.respond(["find", "right", "left"])

    assert reply[0] == "ack"
    assert reply[1:] == pytest.approx([0.1, -0.05, 0.02])


def test_respond_clears_interrupt(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that an interrupted push still acknowledges and lowers the interrupt afterward."""
    # Arrange: Raise the interrupt before the command arrives
    motor_module.interrupt.set()

    # Act: Request a push
    reply = motor_module.respond_line("push -0.35 0.0 -0.05 0 0.1")

    # Assert: No leg was executed, the context was restored, and the flag is lowered again
    right = devices.arms[Arm.RIGHT]
    assert isinstance(right, FakeMotion)
    assert reply == ["ack"]
    assert right.moves == []
    assert right.restored == right.deleted == [1]
    assert not motor_module.interrupt.is_set()


def test_stop_halts_devices(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that stop() raises the interrupt and halts the gaze, the arms, and a shaking hand."""
    # Arrange: Pretend that joint 4 of the left hand is shaking
    motor_module.shaker.start(Arm.LEFT, 4)

    # Act: Request a stop
    motor_module.stop()

    # Assert: Every device received a stop request
    gaze = devices.gaze
    assert isinstance(gaze, FakeGaze)
    assert motor_module.interrupt.is_set()
    assert gaze.stop_count == 1
    for arm in Arm:
        assert devices.arms[arm].stop_count == 1  # type: ignore[attr-defined]
        hand = devices.hands[arm]
        assert isinstance(hand, FakeHand)
        assert hand.stopped == [4]


def test_update_shakes_active_hand(motor_module: MotorModule, devices: RobotDevices) -> None:
    """Verify that the periodic update drives the shaking joint."""
    motor_module.update()
    motor_module.shaker.start(Arm.RIGHT, 6)
    motor_module.update()

    hand = devices.hands[Arm.RIGHT]
    assert isinstance(hand, FakeHand)
    assert hand.velocities == [(6, 120.0)]


def test_from_config_and_close() -> None:
    """Verify that the module opens every device and closes them in reverse order."""
    # Arrange: Prepare a factory able to open every device
    factory = FakeFactory()

    # Act: Construct the module, then close it
    module = MotorModule.from_config(MotorConfig(), factory, start_thread=False)
    assert module is not None
    module.close()

    # Assert: Devices were closed in the reverse order of opening
    assert factory.opened == [
        "gaze",
        "left_arm",
        "right_arm",
        "left_hand",
        "right_hand",
        "vision",
        "solver",
    ]
    assert factory.closed == list(reversed(factory.opened))


def test_from_config_failure_unwinds() -> None:
    """Verify that a device failing to open closes the devices opened before it."""
    factory = FakeFactory(fail_on="vision")

    module = MotorModule.from_config(MotorConfig(), factory)

    assert module is None
    assert factory.closed == ["right_hand", "left_hand", "right_arm", "left_arm", "gaze"]
