"""The fixed battery of 22 perturbed variants used by the stress matrix.

Each variant is described by a recipe ``(name, transform)`` so a worker can
build its own copy of the image; :func:`generate` materialises all of them.
Every transform is pure and deterministic.
"""

import functools
import math
from collections.abc import Callable

import numpy as np
from PIL import Image, ImageFilter

from qrscore.logging import get_logger, trace
from qrscore.types import DEFAULT_NATIVE_SIZE, ScoringParameters

log = get_logger("variants")

Transform = Callable[[Image.Image], Image.Image]


def _rgb_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image.convert("RGB"))


def _from_float(values: np.ndarray) -> Image.Image:
    # clamp, then truncate toward zero like an 8-bit cast
    return Image.fromarray(np.clip(values, 0, 255).astype(np.uint8))


def resize_to(image: Image.Image, size: int) -> Image.Image:
    """Shrink so the longest side equals ``size``; smaller images are returned as copies."""
    w, h = image.size
    if max(w, h) <= size:
        return image.copy()
    ratio = min(size / w, size / h)
    new_size = (max(1, round(w * ratio)), max(1, round(h * ratio)))
    return image.resize(new_size, Image.Resampling.BILINEAR)


def apply_blur(image: Image.Image, sigma: float) -> Image.Image:
    """Gaussian blur with standard deviation ``sigma``."""
    return image.filter(ImageFilter.GaussianBlur(radius=sigma))


def adjust_contrast(image: Image.Image, amount: float) -> Image.Image:
    """Stretch (positive) or flatten (negative) channels around mid-gray."""
    percent = ((100.0 + amount) / 100.0) ** 2
    c = _rgb_array(image).astype(np.float32) / 255.0
    return _from_float(((c - 0.5) * percent + 0.5) * 255.0)


def adjust_luminance(image: Image.Image, amount: int) -> Image.Image:
    """Add a signed integer offset to every channel."""
    return _from_float(_rgb_array(image).astype(np.int32) + int(amount))


def _hue_matrix(degrees: int) -> np.ndarray:
    angle = math.radians(degrees)
    cosv = math.cos(angle)
    sinv = math.sin(angle)
    return np.array([
        [0.213 + cosv * 0.787 - sinv * 0.213,
         0.715 - cosv * 0.715 - sinv * 0.715,
         0.072 - cosv * 0.072 + sinv * 0.928],
        [0.213 - cosv * 0.213 + sinv * 0.143,
         0.715 + cosv * 0.285 + sinv * 0.140,
         0.072 - cosv * 0.072 - sinv * 0.283],
        [0.213 - cosv * 0.213 - sinv * 0.787,
         0.715 - cosv * 0.715 + sinv * 0.715,
         0.072 + cosv * 0.928 + sinv * 0.072],
    ])


def shift_hue(image: Image.Image, degrees: float) -> Image.Image:
    """Rotate hue by whole degrees, keeping luminance roughly constant."""
    rgb = _rgb_array(image).astype(np.float64)
    return _from_float(rgb @ _hue_matrix(int(degrees)).T)


def adjust_saturation(image: Image.Image, amount: float) -> Image.Image:
    """Scale each pixel's distance from its gray value by ``1 + amount / 100``."""
    rgb = _rgb_array(image).astype(np.float32)
    factor = np.float32(1.0 + amount / 100.0)
    gray = (np.float32(0.299) * rgb[..., 0]
            + np.float32(0.587) * rgb[..., 1]
            + np.float32(0.114) * rgb[..., 2])[..., np.newaxis]
    return _from_float(gray + (rgb - gray) * factor)


def variant_recipes(params: ScoringParameters) -> list[tuple[str, Transform]]:
    """Named transforms in VARIANT_NAMES order."""
    native = params.native_size or DEFAULT_NATIVE_SIZE
    p = functools.partial
    return [
        ("downscale_1x", p(resize_to, size=native)),
        ("downscale_2x", p(resize_to, size=native * 2)),
        ("downscale_3x", p(resize_to, size=native * 3)),
        ("downscale_4x", p(resize_to, size=native * 4)),
        ("blur_light", p(apply_blur, sigma=params.blur_light_sigma)),
        ("blur_heavy", p(apply_blur, sigma=params.blur_heavy_sigma)),
        ("contrast_up", p(adjust_contrast, amount=params.contrast)),
        ("contrast_down", p(adjust_contrast, amount=-params.contrast)),
        ("contrast_strict_up", p(adjust_contrast, amount=params.contrast_strict)),
        ("contrast_strict_down", p(adjust_contrast, amount=-params.contrast_strict)),
        ("luminance_up", p(adjust_luminance, amount=params.luminance)),
        ("luminance_down", p(adjust_luminance, amount=-params.luminance)),
        ("luminance_strict_up", p(adjust_luminance, amount=params.luminance_strict)),
        ("luminance_strict_down", p(adjust_luminance, amount=-params.luminance_strict)),
        ("hue_up", p(shift_hue, degrees=params.hue)),
        ("hue_down", p(shift_hue, degrees=-params.hue)),
        ("hue_strict_up", p(shift_hue, degrees=params.hue_strict)),
        ("hue_strict_down", p(shift_hue, degrees=-params.hue_strict)),
        ("saturation_up", p(adjust_saturation, amount=params.saturation)),
        ("saturation_down", p(adjust_saturation, amount=-params.saturation)),
        ("saturation_strict_up", p(adjust_saturation, amount=params.saturation_strict)),
        ("saturation_strict_down", p(adjust_saturation, amount=-params.saturation_strict)),
    ]


@trace
def generate(image: Image.Image, params: ScoringParameters) -> list[tuple[str, Image.Image]]:
    """Build every variant of ``image``, in VARIANT_NAMES order."""
    source = image.convert("RGB")
    return [(name, transform(source)) for name, transform in variant_recipes(params)]
