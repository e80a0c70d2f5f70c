"""Arena storage and TensorRef handles for the working image.

The Arena owns one contiguous byte buffer holding the working copy of the
source image for the current decomposition run. A TensorRef records where a
pixel block lives in that buffer (offset, shape, strides); a quad's pixels are
a window of the image ref, so sampling a quad never copies the full image.

Key Features:
- Zero-copy: windows are NumPy views over the arena buffer
- Generation counter: refs left over from a previous run fail loudly
- Windows clip to the parent ref, matching how canvas reads clip

Example:
    >>> arena = Arena(size_bytes=64 * 64 * 3)
    >>> ref = arena.copy_tensor(np.zeros((64, 64, 3), dtype=np.uint8))
    >>> arena.view(ref.window(0, 32, 0, 32)).shape
    (32, 32, 3)
    >>> arena.reset()  # Next run
    >>> # arena.view(ref)  # Would raise ValueError: stale ref
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

import numpy as np


@dataclass(frozen=True)
class TensorRef:
    """Handle to a block of pixels stored in an Arena.

    Attributes:
        offset: Byte offset of the first element
        shape: (H, W, C) for images, any shape for raw blocks
        dtype: Element type
        strides: Byte strides per dimension; windows keep the parent's strides
        generation: Arena generation the ref was created in
    """

    offset: int
    shape: tuple[int, ...]
    dtype: np.dtype[Any]
    strides: tuple[int, ...]
    generation: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")
        if len(self.shape) != len(self.strides):
            raise ValueError(
                f"shape and strides must have same length: "
                f"shape={self.shape}, strides={self.strides}"
            )
        if self.generation < 0:
            raise ValueError(f"generation must be non-negative, got {self.generation}")

    @property
    def size(self) -> int:
        """Number of elements."""
        return int(np.prod(self.shape))

    @property
    def nbytes(self) -> int:
        """Bytes spanned from the first to the last element, stride gaps included."""
        if self.size == 0:
            return 0
        last = sum((n - 1) * st for n, st in zip(self.shape, self.strides))
        return last + self.dtype.itemsize

    def window(self, y0: int, y1: int, x0: int, x1: int) -> TensorRef:
        """Rows [y0, y1) and columns [x0, x1) of a ref with at least two dimensions.

        Bounds are clipped to the ref; trailing dimensions (channels) are
        kept whole.

        Raises:
            ValueError: If the ref has fewer than two dimensions or the
                clipped window is empty
        """
        if len(self.shape) < 2:
            raise ValueError(f"window() needs a 2D or 3D ref, got shape {self.shape}")

        height, width = self.shape[:2]
        y0, y1 = max(0, y0), min(height, y1)
        x0, x1 = max(0, x0), min(width, x1)
        if y1 <= y0 or x1 <= x0:
            raise ValueError(
                f"Empty window rows [{y0}, {y1}) cols [{x0}, {x1}) "
                f"of a {width}x{height} ref"
            )

        row_stride, col_stride = self.strides[:2]
        return replace(
            self,
            offset=self.offset + y0 * row_stride + x0 * col_stride,
            shape=(y1 - y0, x1 - x0) + self.shape[2:],
        )


class Arena:
    """Contiguous buffer with bump allocation, reset once per decomposition run.

    Attributes:
        size: Total arena size in bytes
        offset: Bytes handed out since the last reset
        generation: Incremented on reset() to invalidate old TensorRefs
    """

    def __init__(self, size_bytes: int):
        if size_bytes <= 0:
            raise ValueError(f"size_bytes must be positive, got {size_bytes}")

        self._buffer = bytearray(size_bytes)
        self._size = size_bytes
        self._offset = 0
        self._generation = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def available(self) -> int:
        """Bytes still free in this generation."""
        return self._size - self._offset

    def reset(self) -> None:
        """Start a new generation. Every existing TensorRef becomes stale."""
        self._offset = 0
        self._generation += 1

    def alloc_tensor(
        self,
        shape: tuple[int, ...],
        dtype: np.dtype[Any] | type | str = np.uint8,
    ) -> TensorRef:
        """Reserve a C-contiguous block for shape and dtype.

        Raises:
            ValueError: If the block does not fit in the remaining space
        """
        dt = np.dtype(dtype)
        start = -(-self._offset // dt.alignment) * dt.alignment
        end = start + int(np.prod(shape)) * dt.itemsize
        if end > self._size:
            raise ValueError(
                f"Arena out of memory: {shape} {dt} needs {end - start} bytes, "
                f"{self._size - start} left of {self._size}"
            )

        # Row-major: each stride is the byte size of everything after it
        strides = [dt.itemsize * int(np.prod(shape[i + 1:])) for i in range(len(shape))]
        self._offset = end
        return TensorRef(
            offset=start,
            shape=tuple(shape),
            dtype=dt,
            strides=tuple(strides),
            generation=self._generation,
        )

    def view(self, ref: TensorRef) -> np.ndarray:
        """Zero-copy NumPy view of ref.

        Raises:
            ValueError: If ref is from an earlier generation or runs past
                the buffer
        """
        if ref.generation != self._generation:
            raise ValueError(
                f"Stale TensorRef: generation {ref.generation}, "
                f"arena is at generation {self._generation}"
            )
        if ref.offset + ref.nbytes > self._size:
            raise ValueError(
                f"TensorRef out of bounds: offset={ref.offset}, nbytes={ref.nbytes}, "
                f"arena size={self._size}"
            )

        return np.ndarray(
            shape=ref.shape,
            dtype=ref.dtype,
            buffer=self._buffer,
            offset=ref.offset,
            strides=ref.strides,
        )

    def copy_tensor(self, arr: np.ndarray) -> TensorRef:
        """Allocate a block shaped like arr and copy arr into it."""
        ref = self.alloc_tensor(arr.shape, arr.dtype)
        self.view(ref)[...] = arr
        return ref

    def __repr__(self) -> str:
        return (
            f"Arena(size={self._size}, offset={self._offset}, "
            f"generation={self._generation}, available={self.available})"
        )
