# SPDX-FileCopyrightText: Copyright (c) 2025 The Newton Developers
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
RGBDGEOM: Odometry: Converters to homogeneous 4x4 rigid transformations.

The matrices are assembled on the host and uploaded to the device of the input,
keeping its scalar type.
"""

from __future__ import annotations

import numpy as np
import warp as wp

from ..core.types import POINT_DTYPES
from ..core.validate import check_array, check_same_device, dtype_name

###
# Module interface
###

__all__ = ["pose_to_transformation", "rt_to_transformation"]


###
# Helpers
###


def _rotation_xyz(alpha: float, beta: float, gamma: float) -> np.ndarray:
    """Returns ``Rz(gamma) @ Ry(beta) @ Rx(alpha)``."""
    ca, sa = np.cos(alpha), np.sin(alpha)
    cb, sb = np.cos(beta), np.sin(beta)
    cg, sg = np.cos(gamma), np.sin(gamma)
    rx = np.array([[1.0, 0.0, 0.0], [0.0, ca, -sa], [0.0, sa, ca]])
    ry = np.array([[cb, 0.0, sb], [0.0, 1.0, 0.0], [-sb, 0.0, cb]])
    rz = np.array([[cg, -sg, 0.0], [sg, cg, 0.0], [0.0, 0.0, 1.0]])
    return rz @ ry @ rx


###
# Operations
###


def rt_to_transformation(rotation: wp.array, translation: wp.array) -> wp.array:
    """
    Assembles a rotation matrix and a translation vector into a 4x4 transformation.

    Args:
        rotation: ``(3, 3)`` rotation of type float32 or float64.
        translation: ``(3,)`` translation with the dtype and device of ``rotation``.

    Returns:
        wp.array: The ``(4, 4)`` transformation ``[[R, t], [0, 1]]``.
    """
    op = "rt_to_transformation"
    check_array(op, "rotation", rotation, (3, 3), POINT_DTYPES)
    check_array(op, "translation", translation, (3,), POINT_DTYPES)
    if translation.dtype != rotation.dtype:
        raise TypeError(
            f"{op}: translation dtype ({dtype_name(translation.dtype)}) does not match rotation dtype "
            f"({dtype_name(rotation.dtype)})"
        )
    check_same_device(op, "rotation", rotation, translation=translation)

    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = rotation.numpy()
    T[:3, 3] = translation.numpy()
    return wp.array(T, dtype=rotation.dtype, device=rotation.device)


def pose_to_transformation(pose: wp.array) -> wp.array:
    """
    Converts a 6-DoF pose vector into a 4x4 transformation.

    Args:
        pose: ``(6,)`` vector ``[alpha, beta, gamma, tx, ty, tz]`` of type float32 or
            float64, holding rotations in radians about the x, y and z axes followed
            by the translation.

    Returns:
        wp.array: The ``(4, 4)`` transformation with rotation ``Rz(gamma) Ry(beta) Rx(alpha)``,
        on the device and with the dtype of ``pose``.
    """
    check_array("pose_to_transformation", "pose", pose, (6,), POINT_DTYPES)
    values = pose.numpy().astype(np.float64)

    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = _rotation_xyz(*values[:3])
    T[:3, 3] = values[3:]
    return wp.array(T, dtype=pose.dtype, device=pose.device)
