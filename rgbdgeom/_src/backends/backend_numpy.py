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
RGBDGEOM: Backends: Vectorized NumPy implementation for CPU arrays.

Warp arrays on the CPU expose their memory to NumPy without copies, so outputs
passed in by the caller are written through ``array.numpy()`` views.
"""

from __future__ import annotations

import numpy as np
import warp as wp

from ..core.types import float32
from .backend import GeometryBackend

###
# Module interface
###

__all__ = ["NumpyBackend"]


###
# Constants
###

_FLOAT32_MAX = np.finfo(np.float32).max
_INT64_MAX = np.iinfo(np.int64).max


###
# Helpers
###


def _to_array(values: np.ndarray, dtype, device) -> wp.array:
    if values.size == 0:
        return wp.zeros(values.shape, dtype=dtype, device=device)
    return wp.array(np.ascontiguousarray(values), dtype=dtype, device=device)


def _intrinsic_params(intrinsics: np.ndarray) -> tuple[np.float32, np.float32, np.float32, np.float32]:
    fx, fy, cx, cy = intrinsics[0, 0], intrinsics[1, 1], intrinsics[0, 2], intrinsics[1, 2]
    return np.float32(fx), np.float32(fy), np.float32(cx), np.float32(cy)


def _metric_depth(depth: np.ndarray, depth_scale: float) -> np.ndarray:
    # Depth conversion and validity are evaluated in float32, as on the device
    return depth.astype(np.float32) / np.float32(depth_scale)


def _depth_is_valid(d: np.ndarray, depth_max: float) -> np.ndarray:
    return (d > 0.0) & (d <= np.float32(depth_max))


def _apply_rigid(matrix: np.ndarray, xyz: np.ndarray, translate: bool = True) -> np.ndarray:
    """
    Applies the upper rows of a ``(4, 4)`` matrix to ``(N, 3)`` coordinates, in the dtype of the coordinates.

    Terms are summed in the order used by the Warp kernels.
    ``translate=False`` drops the translation, as for normals.
    """
    T = matrix.astype(xyz.dtype)
    x, y, z = xyz[:, 0:1], xyz[:, 1:2], xyz[:, 2:3]
    out = x * T[:3, 0] + y * T[:3, 1] + z * T[:3, 2]
    if translate:
        out = out + T[:3, 3]
    return out


def _unproject_pixels(u: np.ndarray, v: np.ndarray, d: np.ndarray, intrinsics: np.ndarray) -> np.ndarray:
    fx, fy, cx, cy = _intrinsic_params(intrinsics)
    u = u.astype(np.float32)
    v = v.astype(np.float32)
    return np.stack(((u - cx) * d / fx, (v - cy) * d / fy, d), axis=-1)


###
# Backend
###


class NumpyBackend(GeometryBackend):
    """
    Sequential CPU backend built on vectorized NumPy operations.
    """

    name = "numpy"
    device_types = ("cpu",)

    def unproject(self, depth, image_colors, intrinsics, extrinsics, depth_scale, depth_max, stride):
        d = _metric_depth(depth.numpy()[::stride, ::stride], depth_scale)
        rows, cols = np.nonzero(_depth_is_valid(d, depth_max))

        camera = _unproject_pixels(cols * stride, rows * stride, d[rows, cols], intrinsics).reshape(-1, 3)
        world = _apply_rigid(np.linalg.inv(extrinsics), camera)
        points = _to_array(world, float32, self.device)

        colors = None
        if image_colors is not None:
            sampled = image_colors.numpy()[::stride, ::stride]
            colors = _to_array(sampled[rows, cols].reshape(-1, 3), image_colors.dtype, self.device)
        return points, colors

    def project(self, depth, colors, points, intrinsics, extrinsics, depth_scale, depth_max):
        depth_np = depth.numpy()
        height, width = depth_np.shape

        camera = _apply_rigid(extrinsics, points.numpy().astype(np.float32))
        z = camera[:, 2]
        in_range = _depth_is_valid(z, depth_max)

        fx, fy, cx, cy = _intrinsic_params(intrinsics)
        half = np.float32(0.5)
        safe_z = np.where(in_range, z, np.float32(1.0))
        u = np.floor(fx * camera[:, 0] / safe_z + cx + half)
        v = np.floor(fy * camera[:, 1] / safe_z + cy + half)
        keep = in_range & (u >= 0) & (u < width) & (v >= 0) & (v < height)

        index = np.nonzero(keep)[0]
        ui = u[index].astype(np.int64)
        vi = v[index].astype(np.int64)
        d = z[index] * np.float32(depth_scale)

        # Z-buffer pass: unbuffered element-wise minimum resolves pixels hit by several points
        zbuffer = np.full((height, width), _FLOAT32_MAX, dtype=np.float32)
        np.minimum.at(zbuffer, (vi, ui), d)
        hit = zbuffer < _FLOAT32_MAX
        update = hit & ((depth_np <= 0.0) | (zbuffer < depth_np))
        depth_np[update] = zbuffer[update]

        if colors is None:
            return

        # Color pass: the lowest-index point at the stored depth provides the color
        winners = d == depth_np[vi, ui]
        index_map = np.full((height, width), _INT64_MAX, dtype=np.int64)
        np.minimum.at(index_map, (vi[winners], ui[winners]), index[winners])
        painted = index_map < _INT64_MAX
        image_np = colors.image.numpy()
        image_np[painted] = colors.points.numpy()[index_map[painted]]

    def transform(self, points, normals, transformation):
        T = transformation.numpy()
        points_np = points.numpy()
        points_np[:] = _apply_rigid(T, points_np)
        if normals is not None:
            normals_np = normals.numpy()
            normals_np[:] = _apply_rigid(T, normals_np, translate=False)

    def create_vertex_map(self, depth, intrinsics, depth_scale, depth_max):
        d = _metric_depth(depth.numpy(), depth_scale)
        height, width = d.shape
        valid = _depth_is_valid(d, depth_max)

        v, u = np.mgrid[0:height, 0:width]
        vertices = _unproject_pixels(u, v, d, intrinsics)

        vertex_map = np.zeros((height, width, 3), dtype=np.float32)
        vertex_map[valid] = vertices[valid]
        return _to_array(vertex_map, float32, self.device)

    def create_normal_map(self, vertex_map, depth_max, depth_diff):
        vertices = vertex_map.numpy()
        height, width = vertices.shape[:2]
        normal_map = np.zeros((height, width, 3), dtype=np.float32)

        if height > 1 and width > 1:
            v00 = vertices[:-1, :-1]
            v_right = vertices[:-1, 1:]
            v_bottom = vertices[1:, :-1]
            z00, z_right, z_bottom = v00[..., 2], v_right[..., 2], v_bottom[..., 2]
            diff = np.float32(depth_diff)

            valid = (
                _depth_is_valid(z00, depth_max)
                & _depth_is_valid(z_right, depth_max)
                & _depth_is_valid(z_bottom, depth_max)
                & (np.abs(z_right - z00) <= diff)
                & (np.abs(z_bottom - z00) <= diff)
            )
            normals = np.cross(v_bottom - v00, v_right - v00)
            length = np.sqrt(np.sum(normals * normals, axis=-1))
            valid &= length > 0.0

            interior = normal_map[:-1, :-1]
            interior[valid] = normals[valid] / length[valid][:, None]

        return _to_array(normal_map, float32, self.device)
