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

# ==================================================================================
# core
# ==================================================================================
from ._src.core import (
    ColorPair,
    DepthConfig,
    intrinsic_matrix,
)
from ._version import __version__

__all__ = [
    "ColorPair",
    "DepthConfig",
    "__version__",
    "intrinsic_matrix",
]

# ==================================================================================
# geometry
# ==================================================================================
from ._src.geometry import (
    project,
    transform,
    unproject,
)

__all__ += [
    "project",
    "transform",
    "unproject",
]

# ==================================================================================
# odometry
# ==================================================================================
from ._src.odometry import (  # noqa: E402
    create_normal_map,
    create_vertex_map,
    pose_to_transformation,
    rt_to_transformation,
)

__all__ += [
    "create_normal_map",
    "create_vertex_map",
    "pose_to_transformation",
    "rt_to_transformation",
]

# ==================================================================================
# submodule APIs
# ==================================================================================
from . import backends, config, geometry, odometry, utils  # noqa: E402

__all__ += [
    "backends",
    "config",
    "geometry",
    "odometry",
    "utils",
]
