"""Define utility functions for computations related to angles."""

import numpy as np


def normalize_angle_deg(angle_deg: float) -> float:
    """Fold the given angle (in degrees) into the half-open interval (-180, 180].

    The folded angle points in the same direction as the input, i.e., its cosine and sine match.

    :param angle_deg: Angle in degrees
    :return: Equivalent angle in (-180, 180] degrees
    """
    angle_rad = np.deg2rad(angle_deg)
    folded_deg = float(np.rad2deg(np.arctan2(np.sin(angle_rad), np.cos(angle_rad))))

    # atan2 may land exactly on -180 when the sine rounds to a negative zero-ish value
    if folded_deg <= -180.0:
        folded_deg += 360.0
    return folded_deg
