"""Define enumerations identifying the robot's arms, arm preferences, and hand poses."""

from __future__ import annotations

from enum import Enum, IntEnum


class Arm(Enum):
    """One of the robot's two arms."""

    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def from_name(cls, name: str) -> Arm | None:
        """Look up the arm with the given name.

        :param name: Either "left" or "right"
        :return: Corresponding Arm, or None if the name is unrecognized
        """
        for arm in cls:
            if arm.value == name:
                return arm
        return None

    @classmethod
    def from_lateral(cls, y: float) -> Arm:
        """Choose the arm lying on the same side of the sagittal plane as the given y-coordinate.

        :param y: Lateral coordinate (meters) in the robot root frame
        :return: RIGHT for a non-negative coordinate, else LEFT
        """
        return cls.RIGHT if y >= 0.0 else cls.LEFT


class ArmPreference(Enum):
    """Which arm an action should use; AUTO lets the planner decide."""

    LEFT = "left"
    RIGHT = "right"
    AUTO = "selectable"

    @classmethod
    def from_name(cls, name: str) -> ArmPreference | None:
        """Look up the preference with the given name ("left", "right", "selectable", or "auto")."""
        if name == "auto":
            return cls.AUTO
        for preference in cls:
            if preference.value == name:
                return preference
        return None

    @property
    def pinned(self) -> bool:
        """Check whether the preference pins a specific arm."""
        return self is not ArmPreference.AUTO

    def resolve(self, lateral_y: float) -> Arm:
        """Resolve the preference into an arm, deciding by lateral side when unpinned.

        :param lateral_y: Lateral coordinate (meters) used when the preference is AUTO
        :return: Arm that should execute the action
        """
        if self is ArmPreference.LEFT:
            return Arm.LEFT
        if self is ArmPreference.RIGHT:
            return Arm.RIGHT
        return Arm.from_lateral(lateral_y)


class HandPose(IntEnum):
    """Hand rotation used by the hand-pose action variants."""

    NEUTRAL = 0
    PRONATED = 1

    @classmethod
    def from_flag(cls, flag: float) -> HandPose:
        """Interpret a numeric pose flag; zero means neutral and anything else means pronated."""
        return cls.NEUTRAL if int(flag) == 0 else cls.PRONATED
