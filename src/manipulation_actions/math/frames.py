"""Define functions to construct, compose, and invert 4x4 homogeneous transforms.

Every transform handled here is rigid: the upper-left 3x3 block is a rotation matrix and the
    bottom row is exactly [0, 0, 0, 1]. Callers guarantee this by construction; the functions
    below never re-orthonormalize their inputs.
"""

from __future__ import annotations

from functools import reduce
from typing import Sequence

import numpy as np
from transforms3d.axangles import axangle2mat, mat2axangle

Transform = np.ndarray  # 4x4 homogeneous transformation matrix

IDENTITY_ANGLE_TOL_RAD = 1e-12  # Rotations smaller than this are treated as the identity


def make_transform(
    rotation: np.ndarray | None = None,
    translation: Sequence[float] | np.ndarray | None = None,
) -> Transform:
    """Construct a homogeneous transform from a rotation block and a translation vector.

    :param rotation: 3x3 rotation matrix (defaults to the identity rotation)
    :param translation: Three-element translation vector (defaults to zero)
    :return: Constructed 4x4 homogeneous transform
    """
    transform = np.eye(4)
    if rotation is not None:
        rotation = np.asarray(rotation, dtype=float)
        assert rotation.shape == (3, 3), f"Expected a 3x3 rotation; received {rotation.shape}."
        transform[:3, :3] = rotation
    if translation is not None:
        transform[:3, 3] = np.asarray(translation, dtype=float)
    return transform


def translation(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Transform:
    """Construct a pure-translation homogeneous transform."""
    return make_transform(translation=[x, y, z])


def compose(*transforms: Transform) -> Transform:
    """Compose the given transforms from left to right by matrix multiplication.

    :param transforms: One or more 4x4 homogeneous transforms
    :return: Product of the transforms, i.e., transforms[0] @ transforms[1] @ ...
    """
    if not transforms:
        raise ValueError("Cannot compose an empty sequence of transforms.")
    for transform in transforms:
        assert transform.shape == (4, 4), f"Expected a 4x4 transform; received {transform.shape}."
    return reduce(np.matmul, transforms)


def invert_rigid(transform: Transform) -> Transform:
    """Invert a rigid transform using its structure rather than a general matrix inverse.

    :param transform: 4x4 rigid homogeneous transform
    :return: Inverse transform [R^T, -R^T t; 0, 1]
    """
    assert transform.shape == (4, 4), f"Expected a 4x4 transform; received {transform.shape}."
    rotation_t = transform[:3, :3].T
    return make_transform(rotation_t, -rotation_t @ transform[:3, 3])


def from_axis_angle(axis: Sequence[float] | np.ndarray, angle_rad: float) -> Transform:
    """Construct a pure-rotation transform from an axis and an angle.

    :param axis: Rotation axis (need not be normalized; a zero axis yields the identity)
    :param angle_rad: Rotation angle (radians) about the axis
    :return: 4x4 homogeneous transform with a zero translation column
    """
    axis = np.asarray(axis, dtype=float)
    if np.linalg.norm(axis) == 0.0 or abs(angle_rad) < IDENTITY_ANGLE_TOL_RAD:
        return np.eye(4)
    return make_transform(rotation=axangle2mat(axis, angle_rad))


def to_axis_angle(transform: Transform) -> tuple[np.ndarray, float]:
    """Extract the rotation of a transform as a unit axis and an angle in [0, pi].

    The identity rotation is returned as a zero axis with a zero angle.

    :param transform: 4x4 homogeneous transform (or 3x3 rotation matrix)
    :return: Tuple of (unit axis, angle in radians)
    """
    rotation = transform[:3, :3]
    axis, angle_rad = mat2axangle(rotation)
    axis = np.asarray(axis, dtype=float)

    if abs(angle_rad) < IDENTITY_ANGLE_TOL_RAD:
        return np.zeros(3), 0.0

    # Keep a single representative of (axis, angle) ~ (-axis, -angle)
    if angle_rad < 0.0:
        axis = -axis
        angle_rad = -angle_rad

    return axis / np.linalg.norm(axis), float(angle_rad)


def translation_of(transform: Transform) -> np.ndarray:
    """Retrieve the translation column of a homogeneous transform as a 3-vector."""
    return np.array(transform[:3, 3], dtype=float)


def frobenius_norm(matrix: np.ndarray) -> float:
    """Compute the Frobenius norm (root of the summed squared entries) of a matrix."""
    return float(np.sqrt(np.sum(np.square(matrix))))
