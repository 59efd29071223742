"""
Device rotation to image orientation mapping.

The camera delivers buffers in sensor layout. The classifier needs to know
how that layout relates to "upright", which is expressed with the eight
EXIF orientation values. The mapping from the four device rotations is
fixed and tuned for the front-facing sensor.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional, Union

import numpy as np


class DeviceRotation(IntEnum):
    """Display rotation, in quarter turns counter-clockwise from natural."""
    ROTATION_0 = 0
    ROTATION_90 = 1
    ROTATION_180 = 2
    ROTATION_270 = 3

    @classmethod
    def from_degrees(cls, degrees: Optional[int]) -> Optional["DeviceRotation"]:
        """Map 0/90/180/270 to a rotation; None (unknown) stays None."""
        if degrees is None:
            return None
        if degrees not in (0, 90, 180, 270):
            raise ValueError(f"rotation must be one of 0, 90, 180, 270 (got {degrees})")
        return cls(degrees // 90)

    @property
    def degrees(self) -> int:
        return int(self) * 90


class ImageOrientation(IntEnum):
    """
    EXIF orientation of a buffer: which visual edge the 0th row and 0th
    column hold.
    """
    TOP_LEFT = 1
    TOP_RIGHT = 2
    BOTTOM_RIGHT = 3
    BOTTOM_LEFT = 4
    LEFT_TOP = 5
    RIGHT_TOP = 6
    RIGHT_BOTTOM = 7
    LEFT_BOTTOM = 8


def orientation_from_rotation(rotation: Union[DeviceRotation, int]) -> ImageOrientation:
    """Return the buffer orientation for a device rotation."""
    if rotation == DeviceRotation.ROTATION_270:
        return ImageOrientation.BOTTOM_RIGHT
    if rotation == DeviceRotation.ROTATION_180:
        return ImageOrientation.RIGHT_BOTTOM
    if rotation == DeviceRotation.ROTATION_90:
        return ImageOrientation.TOP_LEFT
    return ImageOrientation.RIGHT_TOP


def apply_orientation(image: np.ndarray, orientation: ImageOrientation) -> np.ndarray:
    """
    Return `image` turned upright, given the orientation it is stored in.

    Works on H x W or H x W x C arrays. The result may be a view.
    """
    if orientation == ImageOrientation.TOP_LEFT:
        return image
    if orientation == ImageOrientation.TOP_RIGHT:
        return image[:, ::-1]
    if orientation == ImageOrientation.BOTTOM_RIGHT:
        return np.rot90(image, 2)
    if orientation == ImageOrientation.BOTTOM_LEFT:
        return image[::-1, :]
    if orientation == ImageOrientation.LEFT_TOP:
        return np.swapaxes(image, 0, 1)
    if orientation == ImageOrientation.RIGHT_TOP:
        return np.rot90(image, -1)
    if orientation == ImageOrientation.RIGHT_BOTTOM:
        return np.swapaxes(image, 0, 1)[::-1, ::-1]
    if orientation == ImageOrientation.LEFT_BOTTOM:
        return np.rot90(image, 1)
    raise ValueError(f"Unknown orientation: {orientation}")
