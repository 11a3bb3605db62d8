"""
Placement transform helpers.
Decomposes the 4x3 object matrices stored in world files into
position, Euler rotation (degrees) and uniform scale.
"""
import math
from typing import Sequence

from .models import Pose, Rotation

SCALE_EPSILON = 1e-6
GIMBAL_EPSILON = 1e-6


def _clamp(value: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def decompose_transform(matrix: Sequence[float]) -> Pose:
    """
    Decompose a row-major 4x3 transform into a pose

    The 3x3 linear part occupies elements 0-8 and the translation
    elements 9-11. Non-finite elements are treated as zero, so this
    never raises on corrupt input.

    Args:
        matrix: 12 floats

    Returns:
        Pose with position, rotation in degrees and mean column scale
    """
    if not any(math.isfinite(v) for v in matrix):
        return Pose()
    m = [float(v) if math.isfinite(v) else 0.0 for v in matrix]

    position = (m[9], m[10], m[11])

    # Column norms of the 3x3 part
    scales = [math.sqrt(m[c] * m[c] + m[c + 3] * m[c + 3] + m[c + 6] * m[c + 6]) for c in range(3)]
    scale = sum(scales) / 3.0

    r = [0.0] * 9
    for c, s in enumerate(scales):
        if s > SCALE_EPSILON:
            r[c] = m[c] / s
            r[c + 3] = m[c + 3] / s
            r[c + 6] = m[c + 6] / s

    pitch = math.acos(_clamp(r[8]))
    sin_pitch = math.sin(pitch)

    if abs(sin_pitch) > GIMBAL_EPSILON:
        yaw = math.asin(_clamp(r[6] / sin_pitch))
        roll = math.asin(_clamp(r[5] / sin_pitch))
    else:
        # Gimbal lock: yaw and roll share an axis
        yaw = math.atan2(-r[1], r[0])
        roll = 0.0

    rotation = Rotation(
        yaw=math.degrees(yaw),
        pitch=math.degrees(pitch),
        roll=math.degrees(roll),
    )
    return Pose(position=position, rotation=rotation, scale=scale)
