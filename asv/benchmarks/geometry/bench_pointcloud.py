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

"""ASV benchmarks for the depth image and point cloud conversions.

Measures on a synthetic VGA depth image:
1. Unprojection with and without colors
2. Projection with nearest-point resolution
3. Rigid transformation of the unprojected point cloud
4. Vertex and normal map generation
"""

import numpy as np
import warp as wp
from asv_runner.benchmarks.mark import skip_benchmark_if

wp.config.quiet = True

import rgbdgeom

HEIGHT, WIDTH = 480, 640
INTRINSICS = rgbdgeom.intrinsic_matrix(fx=525.0, fy=525.0, cx=319.5, cy=239.5)


def make_depth_mm() -> np.ndarray:
    v, u = np.mgrid[0:HEIGHT, 0:WIDTH]
    depth = 1000.0 + 1.5 * u + 0.5 * v + 20.0 * np.sin(u / 15.0) * np.cos(v / 20.0)
    depth[::7, ::5] = 0.0
    return depth.astype(np.uint16)


class _DepthBenchmark:
    repeat = 3
    number = 5

    def _setup(self, backend: str, device: str):
        self.backend = backend
        self.device = device
        self.depth = wp.array(make_depth_mm(), dtype=wp.uint16, device=device)
        image = np.random.default_rng(0).integers(0, 256, size=(HEIGHT, WIDTH, 3), dtype=np.uint8)
        self.image = wp.array(image, dtype=wp.uint8, device=device)
        self.points, self.colors = rgbdgeom.unproject(
            self.depth, INTRINSICS, image_colors=self.image, backend=backend
        )
        wp.synchronize()


class PointCloudCPU(_DepthBenchmark):
    """Benchmark the point cloud conversions of both backends on the CPU."""

    params = [["numpy", "warp"]]
    param_names = ["backend"]

    def setup(self, backend):
        self._setup(backend, "cpu")

    def time_unproject(self, backend):
        rgbdgeom.unproject(self.depth, INTRINSICS, backend=backend)

    def time_unproject_colors(self, backend):
        rgbdgeom.unproject(self.depth, INTRINSICS, image_colors=self.image, backend=backend)

    def time_project(self, backend):
        depth = wp.zeros((HEIGHT, WIDTH), dtype=wp.float32, device="cpu")
        rgbdgeom.project(depth, self.points, INTRINSICS, backend=backend)

    def time_transform(self, backend):
        pose = wp.array([0.01, 0.02, 0.03, 0.1, 0.0, 0.0], dtype=wp.float32, device="cpu")
        T = rgbdgeom.pose_to_transformation(pose)
        rgbdgeom.transform(self.points, T, backend=backend)

    def time_vertex_normal_maps(self, backend):
        vertex_map = rgbdgeom.create_vertex_map(self.depth, INTRINSICS, backend=backend)
        rgbdgeom.create_normal_map(vertex_map, backend=backend)


class PointCloudCUDA(_DepthBenchmark):
    """Benchmark the point cloud conversions of the Warp backend on the GPU."""

    def setup(self):
        if wp.get_cuda_device_count() > 0:
            self._setup("warp", "cuda:0")

    @skip_benchmark_if(wp.get_cuda_device_count() == 0)
    def time_unproject_colors(self):
        rgbdgeom.unproject(self.depth, INTRINSICS, image_colors=self.image)
        wp.synchronize()

    @skip_benchmark_if(wp.get_cuda_device_count() == 0)
    def time_project_colors(self):
        depth = wp.zeros((HEIGHT, WIDTH), dtype=wp.float32, device="cuda:0")
        image = wp.zeros((HEIGHT, WIDTH, 3), dtype=wp.uint8, device="cuda:0")
        rgbdgeom.project(depth, self.points, INTRINSICS, colors=rgbdgeom.ColorPair(image=image, points=self.colors))
        wp.synchronize()

    @skip_benchmark_if(wp.get_cuda_device_count() == 0)
    def time_vertex_normal_maps(self):
        vertex_map = rgbdgeom.create_vertex_map(self.depth, INTRINSICS)
        rgbdgeom.create_normal_map(vertex_map)
        wp.synchronize()
