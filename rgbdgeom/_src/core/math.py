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
RGBDGEOM: Camera and rigid-body math shared by all kernels.

Conventions:
    - Pixels are addressed as ``(u, v) = (column, row)``.
    - Extrinsics map world coordinates to camera coordinates.
    - Metric depth ``d`` is valid iff ``0 < d <= depth_max``.
    - Invalid vertices and normals are the zero vector.
"""

from __future__ import annotations

import numpy as np
import warp as wp

from .types import float32, int32

###
# Module interface
###

__all__ = [
    "FLOAT32_MAX",
    "INT32_MAX",
    "VEC3_ZERO",
    "depth_is_valid",
    "estimate_normal",
    "is_valid_rigid_transformation",
    "pixel_coordinate",
    "project_point",
    "unproject_pixel",
    "vertex_is_valid",
]


###
# Module configs
###

wp.set_module_options({"enable_backward": False})


###
# Constants
###

FLOAT32_MAX = wp.constant(float32(np.finfo(np.float32).max))
"""The highest 32-bit floating-point value, used as the empty z-buffer entry."""

INT32_MAX = wp.constant(int32(np.iinfo(np.int32).max))
"""The highest 32-bit integer value, used as the empty point-index entry."""

VEC3_ZERO = wp.constant(wp.vec3f(0.0, 0.0, 0.0))
"""Sentinel for invalid vertices and normals."""


###
# Functions
###


@wp.func
def depth_is_valid(d: float32, depth_max: float32) -> bool:
    return d > float32(0.0) and d <= depth_max


@wp.func
def vertex_is_valid(vertex: wp.vec3f, depth_max: float32) -> bool:
    return depth_is_valid(vertex[2], depth_max)


@wp.func
def unproject_pixel(u: float32, v: float32, d: float32, fx: float32, fy: float32, cx: float32, cy: float32):
    """Back-projects pixel ``(u, v)`` at metric depth ``d`` to camera coordinates."""
    return wp.vec3f((u - cx) * d / fx, (v - cy) * d / fy, d)


@wp.func
def project_point(p: wp.vec3f, fx: float32, fy: float32, cx: float32, cy: float32):
    """Projects a camera-space point with ``p.z > 0`` to continuous pixel coordinates."""
    return wp.vec2f(fx * p[0] / p[2] + cx, fy * p[1] / p[2] + cy)


@wp.func
def pixel_coordinate(x: float32) -> int32:
    """Rounds a continuous pixel coordinate to the nearest pixel center, ties toward +inf."""
    return int32(wp.floor(x + float32(0.5)))


@wp.func
def estimate_normal(v00: wp.vec3f, v_right: wp.vec3f, v_bottom: wp.vec3f):
    """
    Estimates the surface normal at ``v00`` from its right and bottom raster neighbors.

    The normal faces the camera for a fronto-parallel surface. A degenerate
    neighborhood yields the zero vector.
    """
    n = wp.cross(v_bottom - v00, v_right - v00)
    length = wp.length(n)
    if length > float32(0.0):
        return n / length
    return VEC3_ZERO


###
# Host-side checks
###


def is_valid_rigid_transformation(transformation: np.ndarray) -> bool:
    """
    Coarse rigidity check of a row-major ``4x4`` homogeneous transformation.

    Every entry of the upper-left ``3x3`` block must not exceed ``1`` and the first
    three entries of the bottom row must be exactly ``0``. Translation is unconstrained.

    Note:
        Orthogonality and the sign of the determinant are not checked, so
        non-orthogonal matrices with small entries pass.
    """
    T = np.asarray(transformation, dtype=np.float64).reshape(4, 4)
    if np.any(T[:3, :3] > 1.0):
        return False
    if np.any(T[3, :3] != 0.0):
        return False
    return True
