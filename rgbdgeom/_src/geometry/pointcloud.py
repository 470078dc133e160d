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
RGBDGEOM: Geometry: Conversions between depth images and point clouds, and rigid transforms of point clouds.

The functions in this module validate their inputs, normalize them (contiguous
layout, host-side ``float64`` camera matrices) and route the computation to the
backend matching the device of the primary input.
"""

from __future__ import annotations

from contextlib import ExitStack

import numpy as np
import warp as wp

from ..backends import get_backend
from ..core.config import DepthConfig
from ..core.math import is_valid_rigid_transformation
from ..core.types import COLOR_DTYPES, DEPTH_DTYPES, POINT_DTYPES, ColorPair, MatrixLike, float32
from ..core.validate import (
    as_contiguous,
    check_array,
    check_same_device,
    contiguous_working_copy,
    dtype_name,
    to_host_matrix,
)
from ..utils import logger as msg

###
# Module interface
###

__all__ = ["project", "transform", "unproject"]


###
# Defaults
###

_DEFAULTS = DepthConfig()


###
# Helpers
###


def _host_extrinsics(op: str, extrinsics: MatrixLike | None) -> np.ndarray:
    if extrinsics is None:
        return np.eye(4, dtype=np.float64)
    return to_host_matrix(op, "extrinsics", extrinsics, (4, 4))


###
# Operations
###


def unproject(
    depth: wp.array,
    intrinsics: MatrixLike,
    extrinsics: MatrixLike | None = None,
    image_colors: wp.array | None = None,
    *,
    depth_scale: float = _DEFAULTS.depth_scale,
    depth_max: float = _DEFAULTS.depth_max,
    stride: int = _DEFAULTS.stride,
    backend: str | None = None,
) -> tuple[wp.array, wp.array | None]:
    """
    Unprojects a depth image (and optionally a color image) into a world-space point cloud.

    Pixels are sampled at multiples of ``stride`` along both image axes. A sampled
    pixel contributes a point iff its metric depth ``depth / depth_scale`` lies in
    ``(0, depth_max]``. Points are emitted in raster order of the sampled pixels.

    Args:
        depth: Depth image of shape ``(H, W)`` and type float32, float64 or uint16.
        intrinsics: ``(3, 3)`` pinhole intrinsic matrix.
        extrinsics: ``(4, 4)`` world-to-camera transformation. Defaults to identity.
        image_colors: Optional color image of shape ``(H, W, 3)`` and type uint8 or float32,
            on the device of ``depth``.
        depth_scale: Factor converting raw depth values to metric depth.
        depth_max: Largest valid metric depth.
        stride: Pixel sampling stride.
        backend: Name of the backend to use, or ``None`` to select it by device.

    Returns:
        A ``(points, colors)`` tuple: the ``(N, 3)`` float32 points, and the ``(N, 3)`` point
        colors with the dtype of ``image_colors``, or ``None`` if no color image was given.

    Raises:
        TypeError: If an argument is not a Warp array or has an unsupported dtype.
        ValueError: On shape or device mismatches and invalid parameters.
        RuntimeError: If no backend can run on the device of ``depth``.
    """
    op = "unproject"
    config = DepthConfig(depth_scale=depth_scale, depth_max=depth_max, stride=stride)

    check_array(op, "depth", depth, (None, None), DEPTH_DTYPES)
    if image_colors is not None:
        check_array(op, "image_colors", image_colors, (*depth.shape, 3), COLOR_DTYPES)
        check_same_device(op, "depth", depth, image_colors=image_colors)

    intrinsics_h = to_host_matrix(op, "intrinsics", intrinsics, (3, 3))
    extrinsics_h = _host_extrinsics(op, extrinsics)

    impl = get_backend(depth.device, backend)
    points, colors = impl.unproject(
        as_contiguous(op, "depth", depth),
        None if image_colors is None else as_contiguous(op, "image_colors", image_colors),
        intrinsics_h,
        extrinsics_h,
        config.depth_scale,
        config.depth_max,
        config.stride,
    )
    msg.debug("%s: produced %d points from a %s depth image", op, points.shape[0], depth.shape)
    return points, colors


def project(
    depth: wp.array,
    points: wp.array,
    intrinsics: MatrixLike,
    extrinsics: MatrixLike | None = None,
    colors: ColorPair | None = None,
    *,
    depth_scale: float = _DEFAULTS.depth_scale,
    depth_max: float = _DEFAULTS.depth_max,
    backend: str | None = None,
) -> None:
    """
    Projects a world-space point cloud into a pre-allocated depth image (and optionally a color image).

    Points whose camera-space depth is outside ``(0, depth_max]`` or whose pixel falls
    outside the image are discarded. When several points hit the same pixel the nearest
    one wins, independently of the order of the points. Pixels already holding a nonzero
    depth keep it unless a nearer point hits them. Depth is stored scaled by ``depth_scale``.

    Args:
        depth: Output depth image of shape ``(H, W)`` and type float32, modified in place.
        points: Points of shape ``(N, 3)`` and type float32 or float64.
        intrinsics: ``(3, 3)`` pinhole intrinsic matrix.
        extrinsics: ``(4, 4)`` world-to-camera transformation. Defaults to identity.
        colors: Optional pair of the output color image and the input point colors.
        depth_scale: Factor converting metric depth to raw depth values.
        depth_max: Largest valid metric depth.
        backend: Name of the backend to use, or ``None`` to select it by device.

    Raises:
        TypeError: If an argument is not a Warp array or has an unsupported dtype.
        ValueError: On shape or device mismatches and invalid parameters.
        RuntimeError: If no backend can run on the device of ``depth``.
    """
    op = "project"
    config = DepthConfig(depth_scale=depth_scale, depth_max=depth_max)

    check_array(op, "depth", depth, (None, None), (float32,))
    check_array(op, "points", points, (None, 3), POINT_DTYPES)
    if colors is not None:
        if not isinstance(colors, ColorPair):
            raise TypeError(f"{op}: colors must be a ColorPair (got {type(colors).__name__})")
        check_array(op, "image_colors", colors.image, (*depth.shape, 3), COLOR_DTYPES)
        check_array(op, "colors", colors.points, (points.shape[0], 3), (colors.image.dtype,))
        check_same_device(op, "depth", depth, image_colors=colors.image, colors=colors.points)
    check_same_device(op, "depth", depth, points=points)

    intrinsics_h = to_host_matrix(op, "intrinsics", intrinsics, (3, 3))
    extrinsics_h = _host_extrinsics(op, extrinsics)

    impl = get_backend(depth.device, backend)
    with ExitStack() as stack:
        depth_work = stack.enter_context(contiguous_working_copy(op, "depth", depth))
        colors_work = None
        if colors is not None:
            colors_work = ColorPair(
                image=stack.enter_context(contiguous_working_copy(op, "image_colors", colors.image)),
                points=as_contiguous(op, "colors", colors.points),
            )
        impl.project(
            depth_work,
            colors_work,
            as_contiguous(op, "points", points),
            intrinsics_h,
            extrinsics_h,
            config.depth_scale,
            config.depth_max,
        )


def transform(
    points: wp.array,
    transformation: wp.array,
    normals: wp.array | None = None,
    *,
    backend: str | None = None,
) -> None:
    """
    Applies a rigid transformation to a point cloud, and to its normals if given, in place.

    Points are mapped as ``p' = R p + t`` and normals as ``n' = R n``. The caller's arrays
    keep their memory layout: non-contiguous arrays are transformed in a contiguous working
    copy that is written back on return.

    The transformation is validated before anything is modified: every entry of its
    rotation block must not exceed ``1`` and its bottom row must start with three zeros.

    Args:
        points: Points of shape ``(N, 3)`` and type float32 or float64.
        transformation: ``(4, 4)`` transformation with the dtype and device of ``points``.
        normals: Optional normals with the shape, dtype and device of ``points``.
        backend: Name of the backend to use, or ``None`` to select it by device.

    Raises:
        TypeError: If an argument is not a Warp array or on dtype mismatches.
        ValueError: On shape or device mismatches, or if the transformation is not rigid.
        RuntimeError: If no backend can run on the device of ``points``.
    """
    op = "transform"

    check_array(op, "points", points, (None, 3), POINT_DTYPES)
    check_array(op, "transformation", transformation, (4, 4))
    if normals is not None:
        check_array(op, "normals", normals, points.shape)
    for name, other in (("transformation", transformation), ("normals", normals)):
        if other is not None and other.dtype != points.dtype:
            raise TypeError(
                f"{op}: {name} dtype ({dtype_name(other.dtype)}) does not match points dtype ({dtype_name(points.dtype)})"
            )
    check_same_device(op, "points", points, transformation=transformation, normals=normals)

    if not is_valid_rigid_transformation(to_host_matrix(op, "transformation", transformation, (4, 4))):
        raise ValueError(f"{op}: Invalid transformation matrix. Only rigid transformations are supported.")

    impl = get_backend(points.device, backend)
    with ExitStack() as stack:
        points_work = stack.enter_context(contiguous_working_copy(op, "points", points))
        normals_work = None
        if normals is not None:
            normals_work = stack.enter_context(contiguous_working_copy(op, "normals", normals))
        impl.transform(points_work, normals_work, as_contiguous(op, "transformation", transformation))
