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
RGBDGEOM: Backends: Massively parallel Warp kernels.

Every kernel runs one thread per pixel or per point. The kernels are compiled for
whichever device the backend is bound to, so this backend also runs on the CPU.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import warp as wp

from ..core.math import (
    FLOAT32_MAX,
    INT32_MAX,
    depth_is_valid,
    estimate_normal,
    pixel_coordinate,
    project_point,
    unproject_pixel,
    vertex_is_valid,
)
from ..core.types import float32, int32
from ..utils import logger as msg
from .backend import GeometryBackend

###
# Module interface
###

__all__ = ["WarpBackend"]


###
# Module configs
###

wp.set_module_options({"enable_backward": False})


###
# Functions
###


@wp.func
def _project_sample(
    point: wp.vec3f,
    extrinsics: wp.mat44f,
    fx: float32,
    fy: float32,
    cx: float32,
    cy: float32,
    depth_scale: float32,
    depth_max: float32,
    width: int32,
    height: int32,
):
    """
    Returns ``(u, v, d)`` of the pixel hit by a world-space point, ``d`` in raw depth units.

    Discarded points yield a negative ``d``.
    """
    p = wp.transform_point(extrinsics, point)
    if not depth_is_valid(p[2], depth_max):
        return wp.vec3f(0.0, 0.0, -1.0)
    uv = project_point(p, fx, fy, cx, cy)
    u = pixel_coordinate(uv[0])
    v = pixel_coordinate(uv[1])
    if u < 0 or u >= width or v < 0 or v >= height:
        return wp.vec3f(0.0, 0.0, -1.0)
    return wp.vec3f(float32(u), float32(v), p[2] * depth_scale)


@wp.func
def _load_point(points: wp.array2d(dtype=Any), i: int32):
    return wp.vec3f(float32(points[i, 0]), float32(points[i, 1]), float32(points[i, 2]))


@wp.func
def _load_vertex(vertex_map: wp.array3d(dtype=float32), v: int32, u: int32):
    return wp.vec3f(vertex_map[v, u, 0], vertex_map[v, u, 1], vertex_map[v, u, 2])


@wp.func
def _store_vec3(buffer: wp.array3d(dtype=float32), v: int32, u: int32, value: wp.vec3f):
    buffer[v, u, 0] = value[0]
    buffer[v, u, 1] = value[1]
    buffer[v, u, 2] = value[2]


###
# Kernels
###


@wp.kernel
def _unproject_valid_mask(
    depth: wp.array2d(dtype=Any),
    depth_scale: float32,
    depth_max: float32,
    stride: int32,
    num_cols: int32,
    # Outputs:
    mask: wp.array(dtype=int32),
):
    r, c = wp.tid()
    d = float32(depth[r * stride, c * stride]) / depth_scale
    mask[r * num_cols + c] = wp.where(depth_is_valid(d, depth_max), 1, 0)


@wp.kernel
def _unproject_points(
    depth: wp.array2d(dtype=Any),
    mask: wp.array(dtype=int32),
    offsets: wp.array(dtype=int32),
    pose: wp.mat44f,
    fx: float32,
    fy: float32,
    cx: float32,
    cy: float32,
    depth_scale: float32,
    stride: int32,
    num_cols: int32,
    # Outputs:
    points: wp.array2d(dtype=float32),
):
    r, c = wp.tid()
    idx = r * num_cols + c
    if mask[idx] == 0:
        return

    u = c * stride
    v = r * stride
    d = float32(depth[v, u]) / depth_scale
    p = wp.transform_point(pose, unproject_pixel(float32(u), float32(v), d, fx, fy, cx, cy))

    # The inclusive scan yields the 1-based output row of each valid sample
    row = offsets[idx] - 1
    points[row, 0] = p[0]
    points[row, 1] = p[1]
    points[row, 2] = p[2]


@wp.kernel
def _unproject_colors(
    image_colors: wp.array3d(dtype=Any),
    mask: wp.array(dtype=int32),
    offsets: wp.array(dtype=int32),
    stride: int32,
    num_cols: int32,
    # Outputs:
    colors: wp.array2d(dtype=Any),
):
    r, c = wp.tid()
    idx = r * num_cols + c
    if mask[idx] == 0:
        return

    row = offsets[idx] - 1
    for k in range(3):
        colors[row, k] = image_colors[r * stride, c * stride, k]


@wp.kernel
def _project_depth(
    points: wp.array2d(dtype=Any),
    extrinsics: wp.mat44f,
    fx: float32,
    fy: float32,
    cx: float32,
    cy: float32,
    depth_scale: float32,
    depth_max: float32,
    # Outputs:
    zbuffer: wp.array2d(dtype=float32),
):
    i = wp.tid()
    sample = _project_sample(
        _load_point(points, i),
        extrinsics,
        fx,
        fy,
        cx,
        cy,
        depth_scale,
        depth_max,
        zbuffer.shape[1],
        zbuffer.shape[0],
    )
    if sample[2] > float32(0.0):
        wp.atomic_min(zbuffer, int32(sample[1]), int32(sample[0]), sample[2])


@wp.kernel
def _merge_depth(
    zbuffer: wp.array2d(dtype=float32),
    # Outputs:
    depth: wp.array2d(dtype=float32),
):
    v, u = wp.tid()
    z = zbuffer[v, u]
    if z < FLOAT32_MAX:
        current = depth[v, u]
        # A stored zero marks an empty pixel
        if current <= float32(0.0) or z < current:
            depth[v, u] = z


@wp.kernel
def _project_select_points(
    points: wp.array2d(dtype=Any),
    extrinsics: wp.mat44f,
    fx: float32,
    fy: float32,
    cx: float32,
    cy: float32,
    depth_scale: float32,
    depth_max: float32,
    depth: wp.array2d(dtype=float32),
    # Outputs:
    index_map: wp.array2d(dtype=int32),
):
    i = wp.tid()
    sample = _project_sample(
        _load_point(points, i),
        extrinsics,
        fx,
        fy,
        cx,
        cy,
        depth_scale,
        depth_max,
        depth.shape[1],
        depth.shape[0],
    )
    if sample[2] > float32(0.0):
        u = int32(sample[0])
        v = int32(sample[1])
        if sample[2] == depth[v, u]:
            wp.atomic_min(index_map, v, u, i)


@wp.kernel
def _project_colors(
    index_map: wp.array2d(dtype=int32),
    colors: wp.array2d(dtype=Any),
    # Outputs:
    image_colors: wp.array3d(dtype=Any),
):
    v, u = wp.tid()
    i = index_map[v, u]
    if i < INT32_MAX:
        for k in range(3):
            image_colors[v, u, k] = colors[i, k]


@wp.kernel
def _transform_points(
    T: wp.array2d(dtype=Any),
    # Outputs:
    points: wp.array2d(dtype=Any),
):
    i = wp.tid()
    x = points[i, 0]
    y = points[i, 1]
    z = points[i, 2]
    points[i, 0] = T[0, 0] * x + T[0, 1] * y + T[0, 2] * z + T[0, 3]
    points[i, 1] = T[1, 0] * x + T[1, 1] * y + T[1, 2] * z + T[1, 3]
    points[i, 2] = T[2, 0] * x + T[2, 1] * y + T[2, 2] * z + T[2, 3]


@wp.kernel
def _transform_normals(
    T: wp.array2d(dtype=Any),
    # Outputs:
    normals: wp.array2d(dtype=Any),
):
    i = wp.tid()
    x = normals[i, 0]
    y = normals[i, 1]
    z = normals[i, 2]
    normals[i, 0] = T[0, 0] * x + T[0, 1] * y + T[0, 2] * z
    normals[i, 1] = T[1, 0] * x + T[1, 1] * y + T[1, 2] * z
    normals[i, 2] = T[2, 0] * x + T[2, 1] * y + T[2, 2] * z


@wp.kernel
def _create_vertex_map(
    depth: wp.array2d(dtype=Any),
    fx: float32,
    fy: float32,
    cx: float32,
    cy: float32,
    depth_scale: float32,
    depth_max: float32,
    # Outputs:
    vertex_map: wp.array3d(dtype=float32),
):
    v, u = wp.tid()
    d = float32(depth[v, u]) / depth_scale
    vertex = wp.vec3f(0.0, 0.0, 0.0)
    if depth_is_valid(d, depth_max):
        vertex = unproject_pixel(float32(u), float32(v), d, fx, fy, cx, cy)
    _store_vec3(vertex_map, v, u, vertex)


@wp.kernel
def _create_normal_map(
    vertex_map: wp.array3d(dtype=float32),
    depth_max: float32,
    depth_diff: float32,
    # Outputs:
    normal_map: wp.array3d(dtype=float32),
):
    v, u = wp.tid()
    normal = wp.vec3f(0.0, 0.0, 0.0)

    # The last row and column have no bottom or right neighbor
    if v < vertex_map.shape[0] - 1 and u < vertex_map.shape[1] - 1:
        v00 = _load_vertex(vertex_map, v, u)
        v_right = _load_vertex(vertex_map, v, u + 1)
        v_bottom = _load_vertex(vertex_map, v + 1, u)
        valid = vertex_is_valid(v00, depth_max) and vertex_is_valid(v_right, depth_max)
        valid = valid and vertex_is_valid(v_bottom, depth_max)
        valid = valid and wp.abs(v_right[2] - v00[2]) <= depth_diff
        valid = valid and wp.abs(v_bottom[2] - v00[2]) <= depth_diff
        if valid:
            normal = estimate_normal(v00, v_right, v_bottom)

    _store_vec3(normal_map, v, u, normal)


###
# Backend
###


def _intrinsic_params(intrinsics: np.ndarray) -> list[float]:
    return [float(intrinsics[0, 0]), float(intrinsics[1, 1]), float(intrinsics[0, 2]), float(intrinsics[1, 2])]


def _to_mat44f(matrix: np.ndarray) -> wp.mat44f:
    return wp.mat44f(*(float(x) for x in matrix.reshape(-1)))


class WarpBackend(GeometryBackend):
    """
    Parallel backend launching one Warp kernel thread per pixel or per point.
    """

    name = "warp"
    device_types = ("cpu", "cuda")

    def unproject(self, depth, image_colors, intrinsics, extrinsics, depth_scale, depth_max, stride):
        height, width = depth.shape
        num_rows = (height + stride - 1) // stride
        num_cols = (width + stride - 1) // stride
        num_samples = num_rows * num_cols

        count = 0
        if num_samples > 0:
            mask = wp.zeros(num_samples, dtype=int32, device=self.device)
            wp.launch(
                _unproject_valid_mask,
                dim=(num_rows, num_cols),
                inputs=[depth, depth_scale, depth_max, stride, num_cols],
                outputs=[mask],
                device=self.device,
            )
            offsets = wp.empty(num_samples, dtype=int32, device=self.device)
            wp.utils.array_scan(mask, offsets, inclusive=True)
            count = int(offsets[num_samples - 1 : num_samples].numpy()[0])
        msg.debug("unproject: %d of %d samples are valid", count, num_samples)

        points = wp.zeros((count, 3), dtype=float32, device=self.device)
        colors = None
        if image_colors is not None:
            colors = wp.zeros((count, 3), dtype=image_colors.dtype, device=self.device)
        if count == 0:
            return points, colors

        wp.launch(
            _unproject_points,
            dim=(num_rows, num_cols),
            inputs=[
                depth,
                mask,
                offsets,
                _to_mat44f(np.linalg.inv(extrinsics)),
                *_intrinsic_params(intrinsics),
                depth_scale,
                stride,
                num_cols,
            ],
            outputs=[points],
            device=self.device,
        )
        if image_colors is not None:
            wp.launch(
                _unproject_colors,
                dim=(num_rows, num_cols),
                inputs=[image_colors, mask, offsets, stride, num_cols],
                outputs=[colors],
                device=self.device,
            )
        return points, colors

    def project(self, depth, colors, points, intrinsics, extrinsics, depth_scale, depth_max):
        height, width = depth.shape
        num_points = points.shape[0]
        if num_points == 0 or height == 0 or width == 0:
            return

        params = [_to_mat44f(extrinsics), *_intrinsic_params(intrinsics), depth_scale, depth_max]

        zbuffer = wp.full((height, width), value=float(np.finfo(np.float32).max), dtype=float32, device=self.device)
        wp.launch(_project_depth, dim=num_points, inputs=[points, *params], outputs=[zbuffer], device=self.device)
        wp.launch(_merge_depth, dim=(height, width), inputs=[zbuffer], outputs=[depth], device=self.device)

        if colors is None:
            return

        index_map = wp.full((height, width), value=int(np.iinfo(np.int32).max), dtype=int32, device=self.device)
        wp.launch(
            _project_select_points,
            dim=num_points,
            inputs=[points, *params, depth],
            outputs=[index_map],
            device=self.device,
        )
        wp.launch(
            _project_colors,
            dim=(height, width),
            inputs=[index_map, colors.points],
            outputs=[colors.image],
            device=self.device,
        )

    def transform(self, points, normals, transformation):
        if points.shape[0] > 0:
            wp.launch(
                _transform_points,
                dim=points.shape[0],
                inputs=[transformation],
                outputs=[points],
                device=self.device,
            )
        if normals is not None and normals.shape[0] > 0:
            wp.launch(
                _transform_normals,
                dim=normals.shape[0],
                inputs=[transformation],
                outputs=[normals],
                device=self.device,
            )

    def create_vertex_map(self, depth, intrinsics, depth_scale, depth_max):
        height, width = depth.shape
        vertex_map = wp.zeros((height, width, 3), dtype=float32, device=self.device)
        if height > 0 and width > 0:
            wp.launch(
                _create_vertex_map,
                dim=(height, width),
                inputs=[depth, *_intrinsic_params(intrinsics), depth_scale, depth_max],
                outputs=[vertex_map],
                device=self.device,
            )
        return vertex_map

    def create_normal_map(self, vertex_map, depth_max, depth_diff):
        height, width = vertex_map.shape[:2]
        normal_map = wp.zeros((height, width, 3), dtype=float32, device=self.device)
        if height > 0 and width > 0:
            wp.launch(
                _create_normal_map,
                dim=(height, width),
                inputs=[vertex_map, depth_max, depth_diff],
                outputs=[normal_map],
                device=self.device,
            )
        return normal_map
