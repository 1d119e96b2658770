"""Define unit tests for importing the motor module's configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from manipulation_actions.config import ElbowTask, ExplorationSettings, MotorConfig


@pytest.fixture
def config_yaml_path() -> Path:
    """Return the path to a known-good configuration file stored under `tests/data`."""
    yaml_path = Path(__file__).parent / "data" / "motor_config.yaml"
    assert yaml_path.exists()
    return yaml_path


def test_motor_config_from_yaml(config_yaml_path: Path) -> None:
    """Verify that every configured value is imported, and unknown settings are ignored."""
    # Arrange: The YAML file path is provided via Pytest fixture

    # Act: Import the configuration
    config = MotorConfig.from_yaml(config_yaml_path)

    # Assert: Top-level values and exploration overrides were read
    assert config.name == "karma_motor"
    assert config.robot == "icubSim"
    assert config.move_time_s == pytest.approx(1.5)
    assert config.elbow_task == ElbowTask(height_m=0.35, weight=25.0)

    exploration = config.exploration
    assert exploration.convergence_timeout_s == pytest.approx(20.0)
    assert exploration.sampling_timeout_s is None
    assert exploration.target_row_px == pytest.approx(110.0)
    assert exploration.shake_speed_deg_s == pytest.approx(90.0)
    assert exploration.window_s == ExplorationSettings().window_s


def test_motor_config_missing_file() -> None:
    """Verify that a missing configuration file yields the default configuration."""
    config = MotorConfig.from_yaml(Path("/nonexistent/motor_config.yaml"))

    assert config == MotorConfig()
    assert config.elbow_task is None
    assert config.exploration == ExplorationSettings()


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (None, None),
        (False, None),
        (True, ElbowTask()),
        ([0.5, 10], ElbowTask(0.5, 10.0)),
        ({"height": 0.3}, ElbowTask(0.3, 30.0)),
        ("raised", ElbowTask()),
    ],
)
def test_elbow_task_forms(data: object, expected: ElbowTask | None) -> None:
    """Verify each accepted form of the `elbow_set` entry.

    :param data: Value stored under the `elbow_set` key
    :param expected: Elbow task expected from that value
    """
    assert ElbowTask.from_yaml(data) == expected


def test_move_time_key_precedence() -> None:
    """Verify that `move_time_s` takes precedence over the legacy `movTime` key."""
    assert MotorConfig.from_dict({"movTime": 2.0}).move_time_s == pytest.approx(2.0)
    assert MotorConfig.from_dict({"movTime": 2.0, "move_time_s": 0.5}).move_time_s == 0.5
    assert MotorConfig.from_dict({}).move_time_s == pytest.approx(1.0)


@pytest.mark.parametrize("exploration", [[1, 2, 3], "fast", 5.0])
def test_non_mapping_exploration_uses_defaults(exploration: object) -> None:
    """Verify that a non-mapping `exploration` entry falls back to the default settings.

    :param exploration: Value stored under the `exploration` key
    """
    # Arrange: Configuration data whose other entries are valid
    data = {"movTime": 2.0, "exploration": exploration}

    # Act: Construct the configuration
    config = MotorConfig.from_dict(data)

    # Assert: Only the exploration settings were replaced by their defaults
    assert config.exploration == ExplorationSettings()
    assert config.move_time_s == pytest.approx(2.0)
