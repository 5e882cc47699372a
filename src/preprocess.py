"""
Image preprocessing shared by all hash algorithms.

- Accepts Pillow images or uint8 numpy arrays (decoding files is the caller's job).
- Converts to grayscale with Pillow's ITU-R 601-2 luma transform.
- Resizes to the exact target size through a pluggable resizer.

A resizer is any callable `(image, width, height) -> image`. The default is
Pillow's Lanczos (3-lobe) filter; OpenCV interpolations are available too.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

import cv2  # type: ignore[import-untyped]
import numpy as np
from PIL import Image

from errors import (
    ConfigError,
    DegenerateImageError,
    InvalidImageError,
    ResizerError,
)
from grayscale import GrayImage
from logs import get_logger

Resizer = Callable[[Image.Image, int, int], Image.Image]

log = get_logger("imghash.preprocess")


# ------------ Resizers ------------


def pil_resizer(resample: Image.Resampling) -> Resizer:
    """Build a resizer backed by `Image.resize` with the given filter."""

    def _resize(image: Image.Image, width: int, height: int) -> Image.Image:
        return image.resize((width, height), resample)

    _resize.__name__ = f"pil_{resample.name.lower()}"
    return _resize


def opencv_resizer(interpolation: int) -> Resizer:
    """Build a resizer backed by `cv2.resize` (e.g. cv2.INTER_AREA)."""

    def _resize(image: Image.Image, width: int, height: int) -> Image.Image:
        arr = np.asarray(image, dtype=np.uint8)
        out = cv2.resize(arr, (width, height), interpolation=interpolation)  # type: ignore[no-untyped-call]
        return Image.fromarray(np.asarray(out, dtype=np.uint8))

    _resize.__name__ = f"opencv_{interpolation}"
    return _resize


lanczos3 = pil_resizer(Image.Resampling.LANCZOS)
nearest = pil_resizer(Image.Resampling.NEAREST)
bilinear = pil_resizer(Image.Resampling.BILINEAR)
bicubic = pil_resizer(Image.Resampling.BICUBIC)
box = pil_resizer(Image.Resampling.BOX)
hamming = pil_resizer(Image.Resampling.HAMMING)
area = opencv_resizer(cv2.INTER_AREA)
cubic = opencv_resizer(cv2.INTER_CUBIC)

RESIZERS: Dict[str, Resizer] = {
    "lanczos3": lanczos3,
    "nearest": nearest,
    "bilinear": bilinear,
    "bicubic": bicubic,
    "box": box,
    "hamming": hamming,
    "area": area,
    "cubic": cubic,
}


def resizer_by_name(name: str) -> Resizer:
    """
    Look up a registered resizer.

    Raises:
        ConfigError: if no resizer is registered under `name`.
    """
    key = name.strip().lower()
    try:
        return RESIZERS[key]
    except KeyError:
        known = ", ".join(sorted(RESIZERS))
        raise ConfigError(f"Unknown resizer {name!r} (known: {known})") from None


# ------------ Input normalization ------------


def as_pil_image(image: Any) -> Image.Image:
    """
    Return `image` as a Pillow image.

    numpy arrays must be uint8 with shape (h, w), (h, w, 3) or (h, w, 4).

    Raises:
        InvalidImageError: for unsupported objects or array layouts.
        DegenerateImageError: for empty arrays.
    """
    if isinstance(image, Image.Image):
        return image
    if isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            raise InvalidImageError(f"Expected a uint8 array, got {image.dtype}")
        if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (3, 4)):
            raise InvalidImageError(f"Unsupported array shape {image.shape}")
        if image.size == 0:
            raise DegenerateImageError(f"Empty image array {image.shape}")
        return Image.fromarray(np.ascontiguousarray(image))
    raise InvalidImageError(
        f"Cannot hash object of type {type(image).__name__}; "
        "pass a PIL.Image.Image or a numpy uint8 array"
    )


def _scale_to_8bit(image: Image.Image) -> Image.Image:
    """
    Map high-depth single-band modes onto 0..255 instead of clipping:
      - I;16* and I: 16-bit range, keep the high byte
      - F: normalized [0, 1] floats
    """
    if image.mode == "F":
        arr = np.asarray(image, dtype=np.float64)
        out = np.rint(np.clip(arr, 0.0, 1.0) * 255.0)
    else:
        arr = np.asarray(image).astype(np.int64)
        out = np.clip(arr, 0, 0xFFFF) >> 8
    return Image.fromarray(out.astype(np.uint8))


def to_grayscale(image: Image.Image) -> Image.Image:
    """
    Convert to an 8-bit "L" image (alpha is ignored).

    Raises:
        InvalidImageError: if Pillow has no grayscale route for the mode.
    """
    if image.mode == "L":
        return image
    if image.mode.startswith("I;16") or image.mode in ("I", "F"):
        return _scale_to_8bit(image)
    if image.mode == "LAB":
        # lightness is already the luminance channel
        return image.getchannel("L")
    try:
        return image.convert("L")
    except ValueError:
        pass
    try:
        return image.convert("RGB").convert("L")
    except ValueError as exc:
        raise InvalidImageError(f"Cannot convert {image.mode!r} image to grayscale") from exc


# ------------ Pipeline ------------


def preprocess(
    image: Any, width: int, height: int, resizer: Resizer = lanczos3
) -> GrayImage:
    """
    Grayscale + exact resize to (width, height).

    Raises:
        DegenerateImageError: if the source has zero width or height.
        ResizerError: if the resizer doesn't honor the requested size.
    """
    im = as_pil_image(image)
    src_w, src_h = im.size
    if src_w == 0 or src_h == 0:
        raise DegenerateImageError(f"Source image has zero area ({src_w}x{src_h})")

    gray = to_grayscale(im)
    resized = resizer(gray, width, height)
    if resized.size != (width, height):
        raise ResizerError(
            f"Resizer {getattr(resizer, '__name__', resizer)!r} returned "
            f"{resized.size[0]}x{resized.size[1]}, expected {width}x{height}"
        )
    if resized.mode != "L":
        resized = resized.convert("L")

    log.debug(f"preprocessed {src_w}x{src_h} {im.mode} -> {width}x{height} L")
    return GrayImage.from_pil(resized)
