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
RGBDGEOM: Odometry

Provides the per-pixel geometric maps consumed by RGB-D odometry and the
converters from rotation/translation and pose vectors to 4x4 transformations.
"""

from .rgbd import create_normal_map, create_vertex_map
from .transformation import pose_to_transformation, rt_to_transformation

###
# Module interface
###

__all__ = [
    "create_normal_map",
    "create_vertex_map",
    "pose_to_transformation",
    "rt_to_transformation",
]
