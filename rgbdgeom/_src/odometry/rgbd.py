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
RGBDGEOM: Odometry: Per-pixel vertex and normal maps of depth images.

Both maps keep the layout of the depth image they derive from: entry ``[v, u]``
holds the camera-space vertex (resp. unit normal) of pixel ``(u, v)``. Pixels
without a valid vertex or normal hold the zero vector.
"""

from __future__ import annotations

import warp as wp

from ..backends import get_backend
from ..core.config import DepthConfig
from ..core.types import DEPTH_DTYPES, MatrixLike, float32
from ..core.validate import as_contiguous, check_array, check_same_device, to_host_matrix
from ..utils import logger as msg

###
# Module interface
###

__all__ = ["create_normal_map", "create_vertex_map"]


###
# Defaults
###

_DEFAULTS = DepthConfig()


###
# Operations
###


def create_vertex_map(
    depth: wp.array,
    intrinsics: MatrixLike,
    *,
    depth_scale: float = _DEFAULTS.depth_scale,
    depth_max: float = _DEFAULTS.depth_max,
    backend: str | None = None,
) -> wp.array:
    """
    Unprojects every pixel of a depth image into camera space.

    Args:
        depth: Depth image of shape ``(H, W)`` and type float32, float64 or uint16.
        intrinsics: ``(3, 3)`` pinhole intrinsic matrix. If given as a Warp array it
            must live on the device of ``depth``.
        depth_scale: Factor converting raw depth values to metric depth.
        depth_max: Largest valid metric depth.
        backend: Name of the backend to use, or ``None`` to select it by device.

    Returns:
        wp.array: The ``(H, W, 3)`` float32 vertex map, on the device of ``depth``.
    """
    op = "create_vertex_map"
    config = DepthConfig(depth_scale=depth_scale, depth_max=depth_max)

    check_array(op, "depth", depth, (None, None), DEPTH_DTYPES)
    if isinstance(intrinsics, wp.array):
        check_same_device(op, "depth", depth, intrinsics=intrinsics)
    intrinsics_h = to_host_matrix(op, "intrinsics", intrinsics, (3, 3))

    impl = get_backend(depth.device, backend)
    return impl.create_vertex_map(
        as_contiguous(op, "depth", depth),
        intrinsics_h,
        config.depth_scale,
        config.depth_max,
    )


def create_normal_map(
    vertex_map: wp.array,
    *,
    depth_scale: float = _DEFAULTS.depth_scale,
    depth_max: float = _DEFAULTS.depth_max,
    depth_diff: float = _DEFAULTS.depth_diff,
    backend: str | None = None,
) -> wp.array:
    """
    Estimates surface normals from a vertex map.

    The normal of pixel ``(u, v)`` is the normalized cross product of the edges towards
    its bottom and right neighbors, which faces the camera. It is the zero vector on the
    last row and column, where a vertex of the stencil is invalid, or where the depth of
    a neighbor differs by more than ``depth_diff``.

    Args:
        vertex_map: Vertex map of shape ``(H, W, 3)`` and type float32.
        depth_scale: Accepted for symmetry with :func:`create_vertex_map`. Vertex maps are
            already metric, so it does not affect the result.
        depth_max: Largest valid metric depth.
        depth_diff: Largest depth difference between neighboring vertices, in meters.
        backend: Name of the backend to use, or ``None`` to select it by device.

    Returns:
        wp.array: The ``(H, W, 3)`` float32 normal map, on the device of ``vertex_map``.
    """
    op = "create_normal_map"
    config = DepthConfig(depth_scale=depth_scale, depth_max=depth_max, depth_diff=depth_diff)

    check_array(op, "vertex_map", vertex_map, (None, None, 3), (float32,))

    impl = get_backend(vertex_map.device, backend)
    msg.debug("%s: estimating normals of a %s vertex map", op, vertex_map.shape[:2])
    return impl.create_normal_map(as_contiguous(op, "vertex_map", vertex_map), config.depth_max, config.depth_diff)
