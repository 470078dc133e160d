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

"""Unit tests for the depth conversion configuration"""

import unittest

import numpy as np

from rgbdgeom.config import DepthConfig

###
# Tests
###


class TestDepthConfig(unittest.TestCase):
    def test_defaults(self):
        config = DepthConfig()
        self.assertEqual(config.depth_scale, 1000.0)
        self.assertEqual(config.depth_max, 3.0)
        self.assertEqual(config.depth_diff, 0.07)
        self.assertEqual(config.stride, 1)

    def test_valid_values(self):
        config = DepthConfig(depth_scale=1.0, depth_max=10.0, depth_diff=0.0, stride=np.int64(4))
        self.assertEqual(config.stride, 4)

    def test_invalid_depth_scale(self):
        for value in (0.0, -1.0, float("nan")):
            with self.assertRaisesRegex(ValueError, "depth_scale"):
                DepthConfig(depth_scale=value)

    def test_invalid_depth_max(self):
        for value in (0.0, -3.0):
            with self.assertRaisesRegex(ValueError, "depth_max"):
                DepthConfig(depth_max=value)

    def test_invalid_depth_diff(self):
        with self.assertRaisesRegex(ValueError, "depth_diff"):
            DepthConfig(depth_diff=-0.01)

    def test_invalid_stride(self):
        for value in (0, -2, 1.5, True):
            with self.assertRaisesRegex(ValueError, "stride"):
                DepthConfig(stride=value)

    def test_check_values_after_update(self):
        config = DepthConfig()
        config.depth_max = -1.0
        with self.assertRaises(ValueError):
            config.check_values()


###
# Test execution
###

if __name__ == "__main__":
    unittest.main(verbosity=2)
