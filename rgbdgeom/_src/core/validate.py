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
RGBDGEOM: Precondition checks and input normalization used by the dispatch layer.

All checks raise before any kernel is launched.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import numpy as np
import warp as wp

from ..utils import logger as msg
from .types import MatrixLike

###
# Module interface
###

__all__ = [
    "as_contiguous",
    "check_array",
    "check_same_device",
    "contiguous_working_copy",
    "dtype_name",
    "to_host_matrix",
]


###
# Functions
###


def dtype_name(dtype) -> str:
    return getattr(dtype, "__name__", str(dtype))


def check_array(
    op: str,
    name: str,
    array,
    shape: Sequence[int | None],
    dtypes: Sequence | None = None,
) -> wp.array:
    """
    Checks that ``array`` is a Warp array of the given shape and one of the given scalar types.

    Args:
        op: Name of the calling operation, used as error message prefix.
        name: Name of the checked argument.
        array: The argument to check.
        shape: Expected shape, ``None`` entries match any size.
        dtypes: Accepted scalar types, or ``None`` to accept any.

    Raises:
        TypeError: If ``array`` is not a Warp array or has an unsupported dtype.
        ValueError: If ``array`` does not have the expected shape.
    """
    if not isinstance(array, wp.array):
        raise TypeError(f"{op}: {name} must be a warp array (got {type(array).__name__})")
    expected = tuple(shape)
    if array.ndim != len(expected) or any(e is not None and e != s for e, s in zip(expected, array.shape)):
        pretty = tuple("N" if e is None else e for e in expected)
        raise ValueError(f"{op}: {name} must have shape {pretty} (got {array.shape})")
    if dtypes is not None and array.dtype not in dtypes:
        accepted = ", ".join(dtype_name(d) for d in dtypes)
        raise TypeError(f"{op}: {name} must have dtype in ({accepted}) (got {dtype_name(array.dtype)})")
    return array


def check_same_device(op: str, reference_name: str, reference: wp.array, **others: wp.array | None) -> None:
    """
    Checks that every array in ``others`` lives on the device of ``reference``.

    Raises:
        ValueError: On the first array found on a different device.
    """
    for name, other in others.items():
        if other is not None and other.device != reference.device:
            raise ValueError(
                f"{op}: Inconsistent device between {reference_name} ({reference.device}) vs {name} ({other.device})."
            )


def to_host_matrix(op: str, name: str, matrix: MatrixLike, shape: tuple[int, int]) -> np.ndarray:
    """
    Copies a small matrix to host memory as a C-contiguous float64 NumPy array.

    Raises:
        ValueError: If the matrix does not have the expected shape.
    """
    if isinstance(matrix, wp.array):
        matrix = matrix.numpy()
    host = np.ascontiguousarray(matrix, dtype=np.float64)
    if host.shape != tuple(shape):
        raise ValueError(f"{op}: {name} must have shape {tuple(shape)} (got {host.shape})")
    return host


def as_contiguous(op: str, name: str, array: wp.array) -> wp.array:
    """Returns ``array`` itself if it is contiguous, otherwise a contiguous copy of it."""
    if array.is_contiguous:
        return array
    msg.debug("%s: copying non-contiguous %s of shape %s", op, name, array.shape)
    return array.contiguous()


@contextmanager
def contiguous_working_copy(op: str, name: str, array: wp.array) -> Iterator[wp.array]:
    """
    Yields a contiguous buffer to compute into, and writes it back into ``array`` on exit.

    Contiguous arrays are yielded as-is and mutated in place. Non-contiguous arrays are
    copied in, and the result is copied back so the caller keeps its original layout.
    Nothing is written back if the body raises.
    """
    if array.is_contiguous:
        yield array
        return
    msg.debug("%s: computing %s of shape %s in a contiguous working copy", op, name, array.shape)
    work = array.contiguous()
    yield work
    array.assign(work)
