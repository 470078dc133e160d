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

"""The core data types used by the geometric kernels."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import warp as wp

###
# Module interface
###

__all__ = [
    "COLOR_DTYPES",
    "DEPTH_DTYPES",
    "POINT_DTYPES",
    "ColorPair",
    "MatrixLike",
    "intrinsic_matrix",
]


###
# Scalars
###

uint8 = wp.uint8
uint16 = wp.uint16
int32 = wp.int32
float32 = wp.float32
float64 = wp.float64


DEPTH_DTYPES = (float32, float64, uint16)
"""Scalar types accepted for depth images."""

COLOR_DTYPES = (uint8, float32)
"""Scalar types accepted for color images and point colors."""

POINT_DTYPES = (float32, float64)
"""Scalar types accepted for points and normals by the rigid transform."""


###
# Generics
###

MatrixLike = np.ndarray | wp.array | list[list[float]]
"""Small matrices (intrinsics, extrinsics) may be given as NumPy arrays, Warp arrays or nested lists."""


###
# Containers
###


@dataclass
class ColorPair:
    """
    The color image and the point colors of a projection, which only exist together.

    Projection reads :attr:`points` and writes into :attr:`image`. Both members are
    required: a projection either handles colors on both sides or on neither.
    """

    image: wp.array
    """
    The color image, row-aligned with the depth image.\n
    Shape of ``(H, W, 3)`` and type :class:`uint8` or :class:`float32`.
    """

    points: wp.array
    """
    The per-point colors, row-aligned with the point cloud.\n
    Shape of ``(N, 3)`` and the same type as :attr:`image`.
    """

    def __post_init__(self):
        if self.image is None or self.points is None:
            raise ValueError("ColorPair: Both or none of image_colors and colors must have values.")


###
# Functions
###


def intrinsic_matrix(fx: float, fy: float, cx: float, cy: float) -> np.ndarray:
    """
    Assembles a pinhole camera intrinsic matrix.

    Args:
        fx: Focal length along the image columns, in pixels.
        fy: Focal length along the image rows, in pixels.
        cx: Principal point column, in pixels.
        cy: Principal point row, in pixels.

    Returns:
        np.ndarray: A ``(3, 3)`` float64 matrix.
    """
    return np.array([[fx, 0.0, cx], [0.0, fy, cy], [0.0, 0.0, 1.0]], dtype=np.float64)
