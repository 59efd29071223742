"""
Reusable RGBA frame buffer for the analysis worker.

The buffer is allocated once, on the first analyzed frame, and every later
frame of the same size is copied into it. It is only touched by the single
analysis worker thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

SIZE_CHANGE_POLICIES = ("reallocate", "reject")


class FrameSizeMismatchError(ValueError):
    """A frame's dimensions differ from the allocated buffer (reject policy)."""

    def __init__(self, expected: Tuple[int, int], actual: Tuple[int, int]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Frame size {actual[0]}x{actual[1]} does not match buffer "
            f"{expected[0]}x{expected[1]}"
        )


@dataclass
class AnalyzerState:
    """
    Buffer state carried from one analyzed frame to the next.

    Attributes:
        buffer: H x W x 4 uint8 array reused for every frame.
        allocations: How many times a buffer has been allocated.
        frames_copied: Frames copied into the current buffer.
    """
    buffer: np.ndarray
    allocations: int = 1
    frames_copied: int = 0

    @classmethod
    def for_frame(cls, frame: np.ndarray) -> "AnalyzerState":
        """Allocate a buffer sized to `frame`."""
        h, w = frame.shape[:2]
        return cls(buffer=np.empty((h, w, 4), dtype=np.uint8))

    @property
    def size(self) -> Tuple[int, int]:
        """Buffer size as (width, height)."""
        return (self.buffer.shape[1], self.buffer.shape[0])

    def accept(self, frame: np.ndarray, on_size_change: str = "reallocate") -> "AnalyzerState":
        """
        Copy `frame` into the buffer and return the state to use next.

        Same size: copied in place, `self` is returned.
        Different size: `reallocate` returns a new state with a fresh buffer;
        `reject` raises FrameSizeMismatchError and leaves the buffer untouched.
        """
        h, w = frame.shape[:2]
        state = self
        if (w, h) != self.size:
            if on_size_change == "reject":
                raise FrameSizeMismatchError(self.size, (w, h))
            logging.warning(
                f"Frame size changed from {self.size[0]}x{self.size[1]} to {w}x{h}, "
                f"reallocating analysis buffer"
            )
            state = AnalyzerState(
                buffer=np.empty((h, w, 4), dtype=np.uint8),
                allocations=self.allocations + 1,
            )

        np.copyto(state.buffer, frame.reshape(h, w, 4))
        state.frames_copied += 1
        return state
