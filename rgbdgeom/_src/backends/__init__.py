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
RGBDGEOM: Backends

Provides the CPU (NumPy) and GPU (Warp) implementations of the geometric
primitives, selected per call by the device of the primary input.
"""

from .backend import DEFAULT_BACKENDS, GeometryBackend, get_backend, is_backend_available, register_backend
from .backend_numpy import NumpyBackend
from .backend_warp import WarpBackend

###
# Registration
###

register_backend(NumpyBackend)
register_backend(WarpBackend)


###
# Module interface
###

__all__ = [
    "DEFAULT_BACKENDS",
    "GeometryBackend",
    "NumpyBackend",
    "WarpBackend",
    "get_backend",
    "is_backend_available",
    "register_backend",
]
