"""Overlay of matched LiDAR points on the camera image.

The fusion itself only reports which pixels were matched to a box;
this module turns the frame image into BGR8 and draws those pixels as
filled circles.  Conversion failures raise `ImageDecodeFailure`, which
the pipeline treats as fatal for the overlay only.
"""

from typing import Tuple

import cv2
import numpy as np

from ..errors import ImageDecodeFailure

# encoding -> (channels, cv2 conversion code or None)
_CONVERSIONS = {
    "bgr8": (3, None),
    "rgb8": (3, cv2.COLOR_RGB2BGR),
    "bgra8": (4, cv2.COLOR_BGRA2BGR),
    "rgba8": (4, cv2.COLOR_RGBA2BGR),
    "mono8": (1, cv2.COLOR_GRAY2BGR),
}


def to_bgr8(image: np.ndarray, encoding: str = "bgr8") -> np.ndarray:
    """Convert an image array to a BGR8 copy.

    Parameters
    ----------
    image : numpy.ndarray
        `(H, W)` or `(H, W, C)` uint8 array.
    encoding : str
        One of `bgr8`, `rgb8`, `bgra8`, `rgba8`, `mono8`.

    Returns
    -------
    numpy.ndarray
        `(H, W, 3)` uint8 array in BGR order.
    """
    key = encoding.lower()
    if key not in _CONVERSIONS:
        raise ImageDecodeFailure(f"unsupported image encoding {encoding!r}")
    channels, code = _CONVERSIONS[key]
    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise ImageDecodeFailure(f"{encoding} image must be uint8, got {arr.dtype}")
    if channels == 1 and arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    expected_ndim = 2 if channels == 1 else 3
    if arr.ndim != expected_ndim or (channels > 1 and arr.shape[2] != channels):
        raise ImageDecodeFailure(f"image of shape {arr.shape} does not match encoding {encoding}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ImageDecodeFailure("image is empty")
    if code is None:
        return arr.copy()
    return cv2.cvtColor(np.ascontiguousarray(arr), code)


def draw_points(
    image: np.ndarray,
    pixels: np.ndarray,
    radius: int = 5,
    color: Tuple[int, int, int] = (0, 0, 255),
) -> np.ndarray:
    """Draw each (u, v) pixel as a filled circle on a copy of `image`."""
    canvas = np.ascontiguousarray(image).copy()
    for u, v in np.asarray(pixels, dtype=np.int64).reshape(-1, 2):
        cv2.circle(canvas, (int(u), int(v)), int(radius), tuple(int(c) for c in color), -1)
    return canvas


def render_overlay(
    image: np.ndarray,
    pixels: np.ndarray,
    encoding: str = "bgr8",
    radius: int = 5,
    color: Tuple[int, int, int] = (0, 0, 255),
) -> np.ndarray:
    """Decode `image` and draw the matched pixels on it."""
    return draw_points(to_bgr8(image, encoding), pixels, radius, color)
