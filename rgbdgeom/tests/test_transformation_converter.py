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

"""Tests for the conversions to 4x4 rigid transformations."""

import unittest

import numpy as np
import warp as wp

from rgbdgeom.geometry import is_valid_rigid_transformation
from rgbdgeom.odometry import pose_to_transformation, rt_to_transformation
from rgbdgeom.tests.unittest_utils import add_function_test, assert_np_equal, get_test_devices

# =============================================================================
# Helpers
# =============================================================================


def rotation_x(a):
    return np.array([[1.0, 0.0, 0.0], [0.0, np.cos(a), -np.sin(a)], [0.0, np.sin(a), np.cos(a)]])


def rotation_y(b):
    return np.array([[np.cos(b), 0.0, np.sin(b)], [0.0, 1.0, 0.0], [-np.sin(b), 0.0, np.cos(b)]])


def rotation_z(g):
    return np.array([[np.cos(g), -np.sin(g), 0.0], [np.sin(g), np.cos(g), 0.0], [0.0, 0.0, 1.0]])


# =============================================================================
# Test class
# =============================================================================


class TestTransformationConverter(unittest.TestCase):
    """Test cases for the rotation/translation and pose converters."""

    pass


# =============================================================================
# Test functions
# =============================================================================


def test_rt_to_transformation(test, device):
    rotation_np = rotation_z(np.pi / 2.0)
    translation_np = np.array([1.0, 2.0, 3.0])

    for dtype, tol in ((wp.float32, 1e-6), (wp.float64, 0.0)):
        T = rt_to_transformation(
            wp.array(rotation_np, dtype=dtype, device=device),
            wp.array(translation_np, dtype=dtype, device=device),
        )
        test.assertEqual(T.shape, (4, 4))
        test.assertEqual(T.dtype, dtype)
        test.assertEqual(T.device, wp.get_device(device))

        expected = np.eye(4)
        expected[:3, :3] = rotation_np
        expected[:3, 3] = translation_np
        assert_np_equal(T.numpy(), expected, tol=tol)


def test_rt_to_transformation_invalid_arguments(test, device):
    rotation = wp.array(np.eye(3), dtype=wp.float32, device=device)
    with test.assertRaises(TypeError):
        rt_to_transformation(rotation, wp.zeros(3, dtype=wp.float64, device=device))
    with test.assertRaises(ValueError):
        rt_to_transformation(rotation, wp.zeros(4, dtype=wp.float32, device=device))
    with test.assertRaises(ValueError):
        rt_to_transformation(wp.array(np.eye(4), dtype=wp.float32, device=device), wp.zeros(3, dtype=wp.float32))
    with test.assertRaises(TypeError):
        rt_to_transformation(np.eye(3), wp.zeros(3, dtype=wp.float32, device=device))


def test_pose_to_transformation_zero_pose(test, device):
    for dtype in (wp.float32, wp.float64):
        T = pose_to_transformation(wp.zeros(6, dtype=dtype, device=device))
        test.assertEqual(T.dtype, dtype)
        test.assertEqual(T.device, wp.get_device(device))
        assert_np_equal(T.numpy(), np.eye(4))


def test_pose_to_transformation_rotation_order(test, device):
    alpha, beta, gamma = 0.3, -0.5, 1.2
    pose = np.array([alpha, beta, gamma, 0.5, -1.0, 2.0])
    T = pose_to_transformation(wp.array(pose, dtype=wp.float64, device=device)).numpy()

    expected = np.eye(4)
    expected[:3, :3] = rotation_z(gamma) @ rotation_y(beta) @ rotation_x(alpha)
    expected[:3, 3] = pose[3:]
    assert_np_equal(T, expected, tol=1e-12)

    # The result is a proper rotation
    assert_np_equal(T[:3, :3] @ T[:3, :3].T, np.eye(3), tol=1e-12)
    test.assertAlmostEqual(np.linalg.det(T[:3, :3]), 1.0, places=12)
    test.assertTrue(is_valid_rigid_transformation(T))


def test_pose_to_transformation_single_axis(test, device):
    for axis, rotation in enumerate((rotation_x, rotation_y, rotation_z)):
        pose = np.zeros(6)
        pose[axis] = 0.7
        T = pose_to_transformation(wp.array(pose, dtype=wp.float32, device=device)).numpy()
        assert_np_equal(T[:3, :3], rotation(0.7), tol=1e-6)


def test_pose_to_transformation_invalid_arguments(test, device):
    with test.assertRaises(ValueError):
        pose_to_transformation(wp.zeros(3, dtype=wp.float32, device=device))
    with test.assertRaises(TypeError):
        pose_to_transformation(wp.zeros(6, dtype=wp.int32, device=device))


# =============================================================================
# Test registration
# =============================================================================

devices = get_test_devices()

add_function_test(TestTransformationConverter, "test_rt_to_transformation", test_rt_to_transformation, devices=devices)
add_function_test(
    TestTransformationConverter,
    "test_rt_to_transformation_invalid_arguments",
    test_rt_to_transformation_invalid_arguments,
    devices=devices,
)
add_function_test(
    TestTransformationConverter,
    "test_pose_to_transformation_zero_pose",
    test_pose_to_transformation_zero_pose,
    devices=devices,
)
add_function_test(
    TestTransformationConverter,
    "test_pose_to_transformation_rotation_order",
    test_pose_to_transformation_rotation_order,
    devices=devices,
)
add_function_test(
    TestTransformationConverter,
    "test_pose_to_transformation_single_axis",
    test_pose_to_transformation_single_axis,
    devices=devices,
)
add_function_test(
    TestTransformationConverter,
    "test_pose_to_transformation_invalid_arguments",
    test_pose_to_transformation_invalid_arguments,
    devices=devices,
)


if __name__ == "__main__":
    wp.init()
    unittest.main(verbosity=2)
