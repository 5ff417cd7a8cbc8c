"""Destinations for rendered pixel colors."""

from __future__ import annotations

from typing import Optional, Protocol

import numpy as np
import PIL.Image


class PixelSink(Protocol):
    def set_pixel(self, x: int, y: int, color: tuple[int, int, int]) -> None:
        ...


class ArraySink:
    """Collect pixels in a ``(height, width, 3)`` ``uint8`` array."""

    def __init__(self, width: int, height: int, array: Optional[np.ndarray] = None):
        if array is None:
            array = np.zeros((height, width, 3), dtype=np.uint8)
        elif array.shape != (height, width, 3):
            raise ValueError(f"Expected an array of shape {(height, width, 3)}, got {array.shape}.")
        self.array = array

    def set_pixel(self, x: int, y: int, color: tuple[int, int, int]) -> None:
        self.array[y, x] = color


class ImageSink:
    """Write pixels straight into a Pillow RGB image."""

    def __init__(self, width: int, height: int, image: Optional[PIL.Image.Image] = None):
        if image is None:
            image = PIL.Image.new("RGB", (width, height))
        elif image.size != (width, height):
            raise ValueError(f"Expected an image of size {(width, height)}, got {image.size}.")
        self.image = image

    def set_pixel(self, x: int, y: int, color: tuple[int, int, int]) -> None:
        self.image.putpixel((x, y), tuple(color))
