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
RGBDGEOM: Backends: Capability interface and device-keyed backend selection.

A backend implements every geometric primitive for a set of device types. The
dispatch layer validates and normalizes inputs, then hands them to the backend
returned by :func:`get_backend`, so backend methods may assume:

    - all arrays are contiguous and live on the backend's device,
    - intrinsics and extrinsics are host-side ``float64`` NumPy arrays,
    - scalar parameters have been validated by :class:`DepthConfig`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

import numpy as np
import warp as wp

from ..core.types import ColorPair
from ..utils import logger as msg
from ..utils.device import get_device_type, is_cuda_supported

###
# Module interface
###

__all__ = [
    "DEFAULT_BACKENDS",
    "GeometryBackend",
    "get_backend",
    "is_backend_available",
    "register_backend",
]


###
# Interfaces
###


class GeometryBackend(ABC):
    """
    Base class of the per-device implementations of the geometric primitives.
    """

    name: ClassVar[str] = ""
    """Registry name of the backend."""

    device_types: ClassVar[tuple[str, ...]] = ()
    """Device types (``"cpu"``, ``"cuda"``) on which the backend can run."""

    def __init__(self, device: wp.DeviceLike = None):
        self._device = wp.get_device(device)

    @property
    def device(self) -> wp.Device:
        """The device on which the backend operates."""
        return self._device

    @abstractmethod
    def unproject(
        self,
        depth: wp.array,
        image_colors: wp.array | None,
        intrinsics: np.ndarray,
        extrinsics: np.ndarray,
        depth_scale: float,
        depth_max: float,
        stride: int,
    ) -> tuple[wp.array, wp.array | None]:
        """
        Unprojects the valid pixels of a depth image sampled every ``stride`` pixels.

        Returns:
            The ``(N, 3)`` float32 world-space points in raster order, and the
            ``(N, 3)`` point colors if ``image_colors`` is given, else ``None``.
        """

    @abstractmethod
    def project(
        self,
        depth: wp.array,
        colors: ColorPair | None,
        points: wp.array,
        intrinsics: np.ndarray,
        extrinsics: np.ndarray,
        depth_scale: float,
        depth_max: float,
    ) -> None:
        """Projects world-space points into ``depth`` (and ``colors.image``), nearest point wins."""

    @abstractmethod
    def transform(self, points: wp.array, normals: wp.array | None, transformation: wp.array) -> None:
        """Applies a rigid transformation to points (and the rotation only to normals) in place."""

    @abstractmethod
    def create_vertex_map(
        self,
        depth: wp.array,
        intrinsics: np.ndarray,
        depth_scale: float,
        depth_max: float,
    ) -> wp.array:
        """Unprojects every pixel of a depth image into an ``(H, W, 3)`` float32 vertex map."""

    @abstractmethod
    def create_normal_map(self, vertex_map: wp.array, depth_max: float, depth_diff: float) -> wp.array:
        """Estimates an ``(H, W, 3)`` float32 normal map from a vertex map."""


###
# Registry
###


_BACKENDS: dict[str, type[GeometryBackend]] = {}
"""Registered backend classes, keyed by name."""

DEFAULT_BACKENDS: dict[str, str] = {"cpu": "numpy", "cuda": "warp"}
"""Backend selected for each device type when none is requested explicitly."""


def register_backend(backend: type[GeometryBackend]) -> type[GeometryBackend]:
    """
    Registers a backend class under its :attr:`GeometryBackend.name`.

    Can be used as a class decorator.
    """
    if not issubclass(backend, GeometryBackend):
        raise TypeError(f"register_backend: {backend!r} is not a GeometryBackend subclass")
    if not backend.name:
        raise ValueError(f"register_backend: {backend.__name__} does not define a name")
    _BACKENDS[backend.name] = backend
    return backend


def _resolve_device(device: wp.DeviceLike) -> wp.Device:
    if isinstance(device, str) and device.startswith("cuda") and not is_cuda_supported():
        raise RuntimeError(f"get_backend: CUDA device '{device}' requested but Warp was not built with CUDA support.")
    return wp.get_device(device)


def is_backend_available(name: str, device: wp.DeviceLike = None) -> bool:
    """Whether the named backend is registered and can run on ``device``."""
    backend = _BACKENDS.get(name)
    if backend is None:
        return False
    try:
        device_type = get_device_type(_resolve_device(device))
    except RuntimeError:
        return False
    return device_type in backend.device_types


def get_backend(device: wp.DeviceLike = None, name: str | None = None) -> GeometryBackend:
    """
    Returns a backend instance operating on ``device``.

    Args:
        device: The device of the primary input of the operation.
        name: Name of the backend to use. If ``None``, the default backend of the
            device type is used (see :data:`DEFAULT_BACKENDS`).

    Raises:
        ValueError: If no backend with the given name is registered.
        RuntimeError: If the device type is unsupported, if a CUDA device is used
            without CUDA support, or if the backend cannot run on the device.
    """
    device = _resolve_device(device)
    device_type = get_device_type(device)
    if device.is_cuda and not is_cuda_supported():
        raise RuntimeError("get_backend: Not compiled with CUDA, but CUDA device is used.")

    if name is None:
        name = DEFAULT_BACKENDS.get(device_type)
        if name is None:
            raise RuntimeError(f"get_backend: No default backend for device type '{device_type}'.")
    backend = _BACKENDS.get(name)
    if backend is None:
        available = ", ".join(sorted(_BACKENDS))
        raise ValueError(f"get_backend: Unknown backend '{name}'. Available backends: {available}.")
    if device_type not in backend.device_types:
        raise RuntimeError(f"get_backend: Backend '{name}' does not support device '{device}'.")

    msg.debug("get_backend: using '%s' backend on device '%s'", name, device)
    return backend(device)
