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

"""Tests for the unprojection of depth images into point clouds."""

import unittest

import numpy as np
import warp as wp

from rgbdgeom import ColorPair, intrinsic_matrix, unproject
from rgbdgeom.tests.unittest_utils import add_backend_test, add_function_test, assert_np_equal

# =============================================================================
# Helpers
# =============================================================================

INTRINSICS = intrinsic_matrix(fx=2.0, fy=4.0, cx=2.0, cy=1.5)


def make_depth() -> np.ndarray:
    """A 4x5 metric depth image with empty and out-of-range pixels."""
    depth = np.array(
        [
            [1.0, 1.5, 0.0, 2.0, 2.5],
            [0.5, 0.0, 1.0, 4.0, 1.0],
            [2.0, 2.0, 2.0, 2.0, 2.0],
            [3.0, 3.5, 0.0, 1.0, 0.25],
        ],
        dtype=np.float32,
    )
    return depth


def reference_points(depth: np.ndarray, intrinsics, pose=None, depth_max=3.0, stride=1) -> np.ndarray:
    fx, fy, cx, cy = intrinsics[0, 0], intrinsics[1, 1], intrinsics[0, 2], intrinsics[1, 2]
    points = []
    for v in range(0, depth.shape[0], stride):
        for u in range(0, depth.shape[1], stride):
            d = float(depth[v, u])
            if 0.0 < d <= depth_max:
                points.append([(u - cx) * d / fx, (v - cy) * d / fy, d])
    points = np.array(points, dtype=np.float64).reshape(-1, 3)
    if pose is not None:
        points = points @ pose[:3, :3].T + pose[:3, 3]
    return points


# =============================================================================
# Test class
# =============================================================================


class TestUnproject(unittest.TestCase):
    """Test cases for depth image unprojection."""

    pass


# =============================================================================
# Test functions
# =============================================================================


def test_unproject_valid_pixels_in_raster_order(test, device, backend):
    depth = make_depth()
    points, colors = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        depth_scale=1.0,
        depth_max=3.0,
        backend=backend,
    )
    test.assertIsNone(colors)
    test.assertEqual(points.dtype, wp.float32)
    test.assertEqual(points.device, wp.get_device(device))

    expected = reference_points(depth, INTRINSICS)
    test.assertEqual(points.shape, (15, 3))
    assert_np_equal(points.numpy(), expected, tol=1e-6)


def test_unproject_extrinsics(test, device, backend):
    depth = make_depth()
    angle = 0.3
    extrinsics = np.eye(4)
    extrinsics[:3, :3] = [[np.cos(angle), -np.sin(angle), 0.0], [np.sin(angle), np.cos(angle), 0.0], [0.0, 0.0, 1.0]]
    extrinsics[:3, 3] = [0.1, -0.2, 0.5]

    points, _ = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        extrinsics,
        depth_scale=1.0,
        backend=backend,
    )
    expected = reference_points(depth, INTRINSICS, pose=np.linalg.inv(extrinsics))
    assert_np_equal(points.numpy(), expected, tol=1e-5)

    # The extrinsics map world to camera, so the unprojected points map back onto the camera rays
    camera = points.numpy().astype(np.float64) @ extrinsics[:3, :3].T + extrinsics[:3, 3]
    assert_np_equal(camera, reference_points(depth, INTRINSICS), tol=1e-5)


def test_unproject_stride(test, device, backend):
    depth = make_depth()
    points, _ = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        depth_scale=1.0,
        stride=2,
        backend=backend,
    )
    # Samples at rows {0, 2} and columns {0, 2, 4}
    expected = reference_points(depth, INTRINSICS, stride=2)
    test.assertEqual(points.shape, (5, 3))
    assert_np_equal(points.numpy(), expected, tol=1e-6)

    # A stride of 1 yields a superset of the points of any larger stride
    all_points, _ = unproject(
        wp.array(depth, dtype=wp.float32, device=device), INTRINSICS, depth_scale=1.0, backend=backend
    )
    test.assertLessEqual(points.shape[0], all_points.shape[0])


def test_unproject_uint16_depth(test, device, backend):
    depth_mm = np.array([[1000, 0, 2500], [3001, 3000, 500]], dtype=np.uint16)
    points, _ = unproject(
        wp.array(depth_mm, dtype=wp.uint16, device=device),
        INTRINSICS,
        depth_scale=1000.0,
        depth_max=3.0,
        backend=backend,
    )
    expected = reference_points(depth_mm.astype(np.float32) / np.float32(1000.0), INTRINSICS)
    test.assertEqual(points.shape, (4, 3))
    assert_np_equal(points.numpy(), expected, tol=1e-6)


def test_unproject_float64_depth(test, device, backend):
    depth = make_depth().astype(np.float64) * 1000.0
    points, _ = unproject(wp.array(depth, dtype=wp.float64, device=device), INTRINSICS, backend=backend)
    expected = reference_points(make_depth(), INTRINSICS)
    assert_np_equal(points.numpy(), expected, tol=1e-5)


def test_unproject_colors(test, device, backend):
    depth = make_depth()
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(*depth.shape, 3), dtype=np.uint8)

    points, colors = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        image_colors=wp.array(image, dtype=wp.uint8, device=device),
        depth_scale=1.0,
        backend=backend,
    )
    test.assertIsNotNone(colors)
    test.assertEqual(colors.dtype, wp.uint8)
    test.assertEqual(colors.shape, points.shape)

    valid = (depth > 0.0) & (depth <= 3.0)
    assert_np_equal(colors.numpy(), image[valid])

    # Float colors keep their dtype
    image_f = image.astype(np.float32) / 255.0
    _, colors_f = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        image_colors=wp.array(image_f, dtype=wp.float32, device=device),
        depth_scale=1.0,
        stride=2,
        backend=backend,
    )
    test.assertEqual(colors_f.dtype, wp.float32)
    sampled = depth[::2, ::2]
    assert_np_equal(colors_f.numpy(), image_f[::2, ::2][(sampled > 0.0) & (sampled <= 3.0)])


def test_unproject_empty_result(test, device, backend):
    depth = np.zeros((3, 4), dtype=np.float32)
    image = np.zeros((3, 4, 3), dtype=np.uint8)
    points, colors = unproject(
        wp.array(depth, dtype=wp.float32, device=device),
        INTRINSICS,
        image_colors=wp.array(image, dtype=wp.uint8, device=device),
        backend=backend,
    )
    test.assertEqual(points.shape, (0, 3))
    test.assertEqual(colors.shape, (0, 3))


def test_unproject_non_contiguous_depth(test, device, backend):
    depth = make_depth()
    # Transposed view of a (W, H) buffer
    depth_view = wp.array(np.ascontiguousarray(depth.T), dtype=wp.float32, device=device).transpose()
    test.assertFalse(depth_view.is_contiguous)

    points, _ = unproject(depth_view, INTRINSICS, depth_scale=1.0, backend=backend)
    assert_np_equal(points.numpy(), reference_points(depth, INTRINSICS), tol=1e-6)


def test_unproject_invalid_arguments(test, device, backend):
    depth = wp.array(make_depth(), dtype=wp.float32, device=device)

    with test.assertRaises(TypeError):
        unproject(make_depth(), INTRINSICS, backend=backend)
    with test.assertRaises(TypeError):
        unproject(wp.zeros((4, 5), dtype=wp.int32, device=device), INTRINSICS, backend=backend)
    with test.assertRaises(ValueError):
        unproject(wp.zeros(20, dtype=wp.float32, device=device), INTRINSICS, backend=backend)
    with test.assertRaises(ValueError):
        unproject(depth, np.eye(4), backend=backend)
    with test.assertRaises(ValueError):
        unproject(depth, INTRINSICS, np.eye(3), backend=backend)
    with test.assertRaises(ValueError):
        unproject(depth, INTRINSICS, stride=0, backend=backend)
    with test.assertRaises(ValueError):
        unproject(depth, INTRINSICS, depth_scale=0.0, backend=backend)
    with test.assertRaises(ValueError):
        unproject(depth, INTRINSICS, image_colors=wp.zeros((4, 4, 3), dtype=wp.uint8, device=device), backend=backend)
    with test.assertRaises(TypeError):
        unproject(depth, INTRINSICS, image_colors=wp.zeros((4, 5, 3), dtype=wp.int32, device=device), backend=backend)


def test_color_pair_requires_both_members(test):
    image = wp.zeros((2, 2, 3), dtype=wp.uint8, device="cpu")
    with test.assertRaisesRegex(ValueError, "Both or none"):
        ColorPair(image=image, points=None)
    with test.assertRaisesRegex(ValueError, "Both or none"):
        ColorPair(image=None, points=wp.zeros((1, 3), dtype=wp.uint8, device="cpu"))


# =============================================================================
# Test registration
# =============================================================================

add_backend_test(TestUnproject, "test_unproject_valid_pixels_in_raster_order", test_unproject_valid_pixels_in_raster_order)
add_backend_test(TestUnproject, "test_unproject_extrinsics", test_unproject_extrinsics)
add_backend_test(TestUnproject, "test_unproject_stride", test_unproject_stride)
add_backend_test(TestUnproject, "test_unproject_uint16_depth", test_unproject_uint16_depth)
add_backend_test(TestUnproject, "test_unproject_float64_depth", test_unproject_float64_depth)
add_backend_test(TestUnproject, "test_unproject_colors", test_unproject_colors)
add_backend_test(TestUnproject, "test_unproject_empty_result", test_unproject_empty_result)
add_backend_test(TestUnproject, "test_unproject_non_contiguous_depth", test_unproject_non_contiguous_depth)
add_backend_test(TestUnproject, "test_unproject_invalid_arguments", test_unproject_invalid_arguments)
add_function_test(TestUnproject, "test_color_pair_requires_both_members", test_color_pair_requires_both_members)


if __name__ == "__main__":
    wp.init()
    unittest.main(verbosity=2)
