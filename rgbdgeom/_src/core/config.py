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
Provides a container for the depth-conversion parameters shared by all kernels.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass

###
# Module interface
###

__all__ = ["DepthConfig"]


###
# Types
###


@dataclass
class DepthConfig:
    """
    A data container to hold host-side depth conversion parameters.
    """

    depth_scale: float = 1000.0
    """
    Factor dividing raw sensor depth values to obtain metric depth.\n
    Must be strictly positive.\n
    Defaults to `1000.0` (millimeter depth images).
    """

    depth_max: float = 3.0
    """
    Largest metric depth considered valid. Pixels or points beyond it are discarded.\n
    Must be strictly positive.\n
    Defaults to `3.0`.
    """

    depth_diff: float = 0.07
    """
    Largest metric depth difference between raster neighbors for which a normal is estimated.\n
    Must be non-negative.\n
    Defaults to `0.07`.
    """

    stride: int = 1
    """
    Pixel sampling stride used when unprojecting depth images.\n
    Must be a positive integer.\n
    Defaults to `1`.
    """

    def __post_init__(self) -> None:
        """
        Performs validation checks on the configuration values after initialization.
        """
        self.check_values()

    def check_values(self) -> None:
        """
        Validates configuration values.
        """
        if not self.depth_scale > 0.0:
            raise ValueError(f"Invalid depth_scale: {self.depth_scale}. Must be positive.")
        if not self.depth_max > 0.0:
            raise ValueError(f"Invalid depth_max: {self.depth_max}. Must be positive.")
        if not self.depth_diff >= 0.0:
            raise ValueError(f"Invalid depth_diff: {self.depth_diff}. Must be non-negative.")
        if isinstance(self.stride, bool) or not isinstance(self.stride, numbers.Integral) or self.stride < 1:
            raise ValueError(f"Invalid stride: {self.stride}. Must be a positive integer.")
