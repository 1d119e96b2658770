"""Define dataclasses holding the motor module's configuration, importable from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

from manipulation_actions.filesystem.load_from_yaml import load_yaml_into_dict
from manipulation_actions.logging import log_error

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_ELBOW_HEIGHT_M = 0.4
DEFAULT_ELBOW_WEIGHT = 30.0


@dataclass(frozen=True)
class ElbowTask:
    """A secondary Cartesian task keeping the elbow raised during actions."""

    height_m: float = DEFAULT_ELBOW_HEIGHT_M  # Desired elbow height (meters)
    weight: float = DEFAULT_ELBOW_WEIGHT  # Weight of the task relative to the primary one

    @classmethod
    def from_yaml(cls, data: Any) -> ElbowTask | None:
        """Interpret the `elbow_set` YAML entry.

        Accepted forms: `true` (use default height and weight), `[height, weight]`, or a
            mapping with keys `height` and `weight`. Anything falsy disables the task.

        :param data: Value stored under the `elbow_set` key
        :return: Constructed ElbowTask, or None if the elbow task is disabled
        """
        if not data:
            return None
        if data is True:
            return cls()
        if isinstance(data, (list, tuple)) and len(data) >= 2:
            return cls(height_m=float(data[0]), weight=float(data[1]))
        if isinstance(data, dict):
            return cls(
                height_m=float(data.get("height", DEFAULT_ELBOW_HEIGHT_M)),
                weight=float(data.get("weight", DEFAULT_ELBOW_WEIGHT)),
            )

        log_error(f"Unrecognized 'elbow_set' value {data!r}; using the default elbow task.")
        return cls()


@dataclass(frozen=True)
class ExplorationSettings:
    """Timing and thresholds used while exploring the tool tip."""

    move_time_s: float = 1.0  # Duration of each motion to an exploration point
    move_timeout_s: float = 5.0  # Advisory timeout while waiting for that motion
    neck_traj_time_s: float = 2.5
    eyes_traj_time_s: float = 1.5

    vision_period_s: float = 0.02  # Period (seconds) between polls of the vision stream
    row_bias_px: float = 50.0  # Added to every received vertical pixel coordinate
    window_s: float = 3.0  # Length (seconds) of each convergence window
    min_window_samples: int = 20  # Windows with at most this many pixels are inconclusive
    target_row_px: float = 120.0  # Vertical pixel coordinate the tool tip should settle at
    row_tolerance_px: float = 30.0
    convergence_timeout_s: float | None = 30.0  # Advisory; None waits until interrupted

    sampling_period_s: float = 0.1  # Period (seconds) between queries of the solver
    sampling_timeout_s: float | None = 60.0  # Advisory; None waits until interrupted

    shake_amplitude_deg: float = 6.0  # Oscillation amplitude of the shaking joint
    shake_speed_deg_s: float = 120.0
    shake_period_s: float = 0.02

    @classmethod
    def from_dict(cls, data: Any) -> ExplorationSettings:
        """Construct exploration settings from a dictionary, ignoring unknown keys.

        :param data: Map from setting names to values
        :return: Constructed ExplorationSettings instance (defaults if the data is not a mapping)
        """
        if not isinstance(data, dict):
            log_error(f"Expected a mapping of exploration settings; received {data!r}.")
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            log_error(f"Ignoring unknown exploration settings: {sorted(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class MotorConfig:
    """Configuration of the motor module."""

    name: str = "manipulation_actions"  # Stem name used for the module's connections
    robot: str = "icub"  # Name of the robot to connect to
    move_time_s: float = 1.0  # Stroke duration of the hand-pose push and draw actions
    elbow_task: ElbowTask | None = None
    exploration: ExplorationSettings = field(default_factory=ExplorationSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MotorConfig:
        """Construct a MotorConfig from a dictionary of configuration data.

        :param data: Map from configuration keys to values (e.g., imported from YAML)
        :return: Constructed MotorConfig instance (defaults for any missing keys)
        """
        return cls(
            name=str(data.get("name", cls.name)),
            robot=str(data.get("robot", cls.robot)),
            move_time_s=float(data.get("move_time_s", data.get("movTime", cls.move_time_s))),
            elbow_task=ElbowTask.from_yaml(data.get("elbow_set")),
            exploration=ExplorationSettings.from_dict(data.get("exploration") or {}),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> MotorConfig:
        """Construct a MotorConfig using data from the given YAML file.

        :param yaml_path: Path to a YAML file containing configuration data
        :return: Constructed MotorConfig instance (defaults if the file could not be loaded)
        """
        return cls.from_dict(load_yaml_into_dict(yaml_path))
