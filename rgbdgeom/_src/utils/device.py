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

"""RGBDGEOM: Utilities: CPU/GPU Warp Device Info"""

import warp as wp

###
# Module interface
###

__all__ = ["get_device_info", "get_device_type", "is_cuda_supported"]


###
# Functions
###


def get_device_type(device: wp.DeviceLike) -> str:
    """
    Returns the type of a Warp device as a string, i.e. ``"cpu"`` or ``"cuda"``.

    Raises:
        RuntimeError: If the device is neither a CPU nor a CUDA device.
    """
    device = wp.get_device(device)
    if device.is_cpu:
        return "cpu"
    if device.is_cuda:
        return "cuda"
    raise RuntimeError(f"Unimplemented device: {device}")


def is_cuda_supported() -> bool:
    """Whether the installed Warp runtime was built with CUDA and a CUDA device is present."""
    return wp.is_cuda_available()


def get_device_info(device: wp.DeviceLike) -> str:
    device = wp.get_device(device)
    dinfo = "[device]:\n"
    dinfo += f"                name: {device.name}\n"
    dinfo += f"               alias: {device.alias}\n"
    dinfo += f"                arch: {device.arch}\n"
    dinfo += f"             ordinal: {device.ordinal}\n"
    dinfo += f"              is_cpu: {device.is_cpu}\n"
    dinfo += f"             is_cuda: {device.is_cuda}\n"
    dinfo += f"          is_primary: {device.is_primary}\n"
    dinfo += f"          has_stream: {device.has_stream}\n"
    if device.is_cuda:
        dinfo += f"            sm_count: {device.sm_count}\n"
        dinfo += f"total_memory (bytes): {device.total_memory}\n"
        dinfo += f" free_memory (bytes): {device.free_memory}\n"
    return dinfo
