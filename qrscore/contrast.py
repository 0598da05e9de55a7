"""Contrast proxy: spread between the 5th and 95th percentile relative luminance."""

import numpy as np
from PIL import Image

from qrscore.logging import get_logger, trace

log = get_logger("contrast")

HISTOGRAM_BINS = 1001


def srgb_linearize(values: np.ndarray) -> np.ndarray:
    """Inverse sRGB transfer function for 8-bit channel values."""
    s = np.asarray(values, dtype=np.float64) / 255.0
    return np.where(s <= 0.03928, s / 12.92, ((s + 0.055) / 1.055) ** 2.4)


# Linear value for every possible 8-bit channel value
_LINEAR_LUT = srgb_linearize(np.arange(256))


def relative_luminance(rgb: np.ndarray) -> np.ndarray:
    """BT.709 relative luminance in [0, 1] for an (..., 3) uint8 array."""
    linear = _LINEAR_LUT[rgb]
    return 0.2126 * linear[..., 0] + 0.7152 * linear[..., 1] + 0.0722 * linear[..., 2]


def luminance_histogram(rgb: np.ndarray) -> np.ndarray:
    lum = relative_luminance(rgb).ravel()
    bins = np.minimum(np.floor(lum * 1000.0 + 0.5), 1000).astype(np.intp)
    return np.bincount(bins, minlength=HISTOGRAM_BINS)


def percentile_spread(histogram: np.ndarray) -> float:
    """Walk the cumulative histogram once for both percentile targets.

    p5 is recorded when the running count first reaches ``total // 20`` and
    the walk stops at the bin where it first reaches ``total - total // 20``.
    A zero p5 target is never crossed, which leaves p5 at 0.0.
    """
    total = int(histogram.sum())
    if total == 0:
        return 0.0

    p5_target = total // 20
    p95_target = total - p5_target

    cumulative = 0
    p5 = 0.0
    p95 = 1.0
    for i, count in enumerate(histogram.tolist()):
        prev = cumulative
        cumulative += count
        if prev < p5_target <= cumulative:
            p5 = i / 1000.0
        if prev < p95_target <= cumulative:
            p95 = i / 1000.0
            break

    return p95 - p5


@trace
def measure_contrast(image: Image.Image) -> float:
    """Contrast proxy in [0, 1]: p95 - p5 of per-pixel relative luminance.

    A uniform image gives ~0.0, a pure black/white render ~1.0 and an empty
    image exactly 0.0.
    """
    rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
    if rgb.size == 0:
        return 0.0
    return percentile_spread(luminance_histogram(rgb))
