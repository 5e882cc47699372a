from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image, ImageDraw

from algorithms import average_hash
from errors import ConfigError, DegenerateImageError, InvalidImageError, ResizerError
from preprocess import (
    RESIZERS,
    area,
    as_pil_image,
    lanczos3,
    nearest,
    preprocess,
    resizer_by_name,
    to_grayscale,
)


def _mk_gradient(p: Path, size: tuple[int, int] = (64, 48)) -> None:
    w, h = size
    arr = np.tile(np.linspace(0, 255, w, dtype=np.uint8), (h, 1))
    Image.fromarray(np.stack([arr, arr // 2, 255 - arr], axis=-1)).save(p)


def test_preprocess_exact_size(tmp_path: Path) -> None:
    p = tmp_path / "g.png"
    _mk_gradient(p)
    with Image.open(p) as im:
        for w, h in [(8, 8), (9, 8), (32, 32), (100, 3)]:
            g = preprocess(im, w, h)
            assert (g.width, g.height) == (w, h)
            assert len(g.pixels) == w * h


def test_grayscale_weighting_is_monotonic() -> None:
    dark = Image.new("RGB", (1, 1), (10, 10, 10))
    light = Image.new("RGB", (1, 1), (200, 200, 200))
    green = Image.new("RGB", (1, 1), (0, 255, 0))
    blue = Image.new("RGB", (1, 1), (0, 0, 255))
    lum = [to_grayscale(im).getpixel((0, 0)) for im in (dark, light, green, blue)]
    assert lum[0] < lum[1]
    # green is perceived brighter than blue
    assert lum[2] > lum[3]


def test_lab_uses_lightness_channel() -> None:
    bands = [Image.new("L", (4, 4), color=c) for c in (100, 128, 128)]
    lab = Image.merge("LAB", bands)
    gray = to_grayscale(lab)
    assert gray.mode == "L"
    assert gray.tobytes() == bytes([100] * 16)


def test_16bit_gradient_is_scaled_not_clipped() -> None:
    cols = np.linspace(0, 65535, 8).astype(np.uint16)
    im = Image.fromarray(np.tile(cols, (8, 1)))
    assert im.mode.startswith("I;16")
    gray = to_grayscale(im)
    assert gray.mode == "L"
    assert np.asarray(gray)[0].tolist() == [0, 36, 73, 109, 146, 182, 219, 255]
    assert average_hash(im).hex() == "0f0f0f0f0f0f0f0f"


def test_int32_and_float_modes_are_scaled() -> None:
    i32 = Image.fromarray(np.array([[0, 32768, 65535, 70000]], dtype=np.int32))
    assert i32.mode == "I"
    assert np.asarray(to_grayscale(i32)).tolist() == [[0, 128, 255, 255]]
    f32 = Image.fromarray(np.array([[0.0, 0.5, 1.0, 2.0]], dtype=np.float32))
    assert f32.mode == "F"
    assert np.asarray(to_grayscale(f32)).tolist() == [[0, 128, 255, 255]]


def test_same_size_lanczos_keeps_pixels() -> None:
    arr = np.arange(64, dtype=np.uint8).reshape(8, 8) * 3
    g = preprocess(Image.fromarray(arr), 8, 8, lanczos3)
    assert g.pixels == arr.tobytes()


def test_numpy_inputs() -> None:
    gray = np.full((10, 12), 90, dtype=np.uint8)
    rgb = np.zeros((10, 12, 3), dtype=np.uint8)
    rgba = np.zeros((10, 12, 4), dtype=np.uint8)
    assert preprocess(gray, 4, 4, nearest).pixels == bytes([90] * 16)
    assert preprocess(rgb, 4, 4).width == 4
    assert preprocess(rgba, 4, 4).height == 4


def test_invalid_inputs() -> None:
    with pytest.raises(InvalidImageError):
        as_pil_image("not an image")
    with pytest.raises(InvalidImageError):
        as_pil_image(np.zeros((4, 4), dtype=np.float32))
    with pytest.raises(InvalidImageError):
        as_pil_image(np.zeros((4, 4, 2), dtype=np.uint8))


def test_zero_area_rejected() -> None:
    with pytest.raises(DegenerateImageError):
        preprocess(Image.new("RGB", (0, 10)), 8, 8)
    with pytest.raises(DegenerateImageError):
        preprocess(np.zeros((0, 5), dtype=np.uint8), 8, 8)


def test_custom_resizer_is_used() -> None:
    calls: list[tuple[int, int, str]] = []

    def spy(image: Image.Image, width: int, height: int) -> Image.Image:
        calls.append((width, height, image.mode))
        return image.resize((width, height), Image.Resampling.NEAREST)

    preprocess(Image.new("RGB", (20, 20), (1, 2, 3)), 5, 4, spy)
    assert calls == [(5, 4, "L")]


def test_wrong_size_from_resizer() -> None:
    def broken(image: Image.Image, width: int, height: int) -> Image.Image:
        return image.resize((width + 1, height))

    with pytest.raises(ResizerError):
        preprocess(Image.new("L", (16, 16)), 8, 8, broken)


def test_opencv_area_resizer() -> None:
    im = Image.new("L", (32, 32), color=0)
    ImageDraw.Draw(im).rectangle([16, 0, 31, 31], fill=200)
    g = preprocess(im, 2, 1, area)
    assert g.pixels == bytes([0, 200])


def test_resizer_registry() -> None:
    assert resizer_by_name("lanczos3") is lanczos3
    assert resizer_by_name(" AREA ") is area
    assert set(RESIZERS) >= {"lanczos3", "nearest", "bilinear", "bicubic", "area"}
    with pytest.raises(ConfigError):
        resizer_by_name("sinc42")
