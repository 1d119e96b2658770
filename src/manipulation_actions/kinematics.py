"""Define dataclasses to represent 3D positions, axis-angle orientations, and poses."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from manipulation_actions.math.frames import (
    Transform,
    from_axis_angle,
    make_transform,
    to_axis_angle,
    translation_of,
)


@dataclass
class Point3D:
    """An (x,y,z) position in 3D space (meters)."""

    x: float
    y: float
    z: float

    @classmethod
    def identity(cls) -> Point3D:
        """Construct a Point3D corresponding to the identity translation."""
        return Point3D(0, 0, 0)

    def to_array(self) -> np.ndarray:
        """Convert the point to a NumPy array."""
        return np.array([self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Point3D:
        """Construct a Point3D from the given NumPy array."""
        arr = np.asarray(arr, dtype=float)
        assert arr.shape == (3,), "3D position must be a three-element vector."
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def norm(self) -> float:
        """Compute the distance (meters) of the point from the origin."""
        return float(np.linalg.norm(self.to_array()))

    def approx_equal(self, other: Point3D) -> bool:
        """Check whether another point is approximately equal to this point."""
        return np.allclose(self.to_array(), other.to_array())


@dataclass
class AxisAngle:
    """A 3D orientation represented as a rotation about a unit axis."""

    axis_x: float
    axis_y: float
    axis_z: float
    angle_rad: float

    def __post_init__(self) -> None:
        """Normalize the axis after it is initialized."""
        self.normalize()

    def normalize(self) -> None:
        """Normalize the axis to unit length (a zero axis encodes the identity and is kept)."""
        norm = float(np.linalg.norm(self.axis))
        if norm == 0.0:
            return

        self.axis_x /= norm
        self.axis_y /= norm
        self.axis_z /= norm

    @property
    def axis(self) -> np.ndarray:
        """Retrieve the rotation axis as a NumPy array."""
        return np.array([self.axis_x, self.axis_y, self.axis_z], dtype=float)

    @classmethod
    def identity(cls) -> AxisAngle:
        """Construct an orientation corresponding to the identity rotation."""
        return AxisAngle(0.0, 0.0, 0.0, 0.0)

    def to_array(self) -> np.ndarray:
        """Convert the orientation to a NumPy array of the form [ax, ay, az, angle]."""
        return np.array([self.axis_x, self.axis_y, self.axis_z, self.angle_rad], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> AxisAngle:
        """Construct an orientation from a NumPy array of the form [ax, ay, az, angle]."""
        arr = np.asarray(arr, dtype=float)
        assert arr.shape == (4,), "Axis-angle orientation must be a four-element vector."
        return cls(float(arr[0]), float(arr[1]), float(arr[2]), float(arr[3]))

    def to_rotation_matrix(self) -> np.ndarray:
        """Convert the orientation to a 3x3 rotation matrix."""
        return from_axis_angle(self.axis, self.angle_rad)[:3, :3]

    @classmethod
    def from_rotation_matrix(cls, r_matrix: np.ndarray) -> AxisAngle:
        """Construct an orientation from a 3x3 rotation matrix (or a 4x4 transform)."""
        assert r_matrix.shape in {(3, 3), (4, 4)}, f"Unexpected matrix shape {r_matrix.shape}."
        axis, angle_rad = to_axis_angle(r_matrix)
        return cls(float(axis[0]), float(axis[1]), float(axis[2]), angle_rad)

    def approx_equal(self, other: AxisAngle) -> bool:
        """Check whether another orientation expresses approximately the same rotation."""
        return np.allclose(self.to_rotation_matrix(), other.to_rotation_matrix())


@dataclass
class Pose3D:
    """A position and axis-angle orientation in 3D space, relative to the robot root frame."""

    position: Point3D
    orientation: AxisAngle

    @classmethod
    def identity(cls) -> Pose3D:
        """Construct a Pose3D corresponding to the identity transformation."""
        return Pose3D(Point3D.identity(), AxisAngle.identity())

    def translated(self, offset: np.ndarray) -> Pose3D:
        """Construct a copy of this pose whose position is shifted by the given root-frame offset.

        :param offset: Three-element offset (meters) added to the position
        :return: Pose with the same orientation and a shifted position
        """
        new_position = Point3D.from_array(self.position.to_array() + np.asarray(offset))
        return Pose3D(new_position, AxisAngle.from_array(self.orientation.to_array()))

    def to_homogeneous_matrix(self) -> Transform:
        """Convert the Pose3D to a 4x4 homogeneous transformation matrix."""
        return make_transform(self.orientation.to_rotation_matrix(), self.position.to_array())

    @classmethod
    def from_homogeneous_matrix(cls, matrix: Transform) -> Pose3D:
        """Construct a Pose3D from a 4x4 homogeneous transformation matrix."""
        assert matrix.shape == (4, 4), f"Expected a 4x4 matrix; received {matrix.shape}."
        position = Point3D.from_array(translation_of(matrix))
        orientation = AxisAngle.from_rotation_matrix(matrix)
        return cls(position, orientation)

    def approx_equal(self, other: Pose3D) -> bool:
        """Check whether another Pose3D is approximately equal to this one."""
        positions_approx_equal = self.position.approx_equal(other.position)
        orientations_approx_equal = self.orientation.approx_equal(other.orientation)
        return positions_approx_equal and orientations_approx_equal

    def __str__(self) -> str:
        """Format the pose compactly for log messages."""
        x = np.array2string(self.position.to_array(), precision=3, suppress_small=True)
        o = np.array2string(self.orientation.to_array(), precision=3, suppress_small=True)
        return f"x={x} o={o}"
