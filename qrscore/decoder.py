"""Decode ensemble: several independent QR decoding strategies, tried in priority order.

Order: zxing-cpp (local-average binarizer) -> zxing-cpp (global histogram)
-> ZBar -> ZBar on the inverted image. The first success wins. Every attempt
runs behind its own fault barrier, so a decoder blowing up only costs that
attempt.
"""

import io
import time
from collections.abc import Callable

import cv2
import numpy as np
import zxingcpp
from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import ZBarSymbol, decode as pyzbar_decode

from qrscore.errors import DecodeFailed, ImageLoadError
from qrscore.logging import audit, get_logger, trace
from qrscore.types import DecodeOutcome, ErrorCorrectionLevel

log = get_logger("decoder")

Attempt = Callable[[np.ndarray], DecodeOutcome | None]


def to_luma(image: Image.Image) -> np.ndarray:
    """8-bit luminance array of ``image``."""
    arr = np.asarray(image.convert("RGB"))
    return cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)


def _read_zxing(luma: np.ndarray, binarizer) -> DecodeOutcome | None:
    result = zxingcpp.read_barcode(
        luma,
        formats=zxingcpp.BarcodeFormat.QRCode,
        try_rotate=True,
        try_downscale=True,
        try_invert=True,
        binarizer=binarizer,
    )
    if result is None or not result.valid or not result.text:
        return None
    return DecodeOutcome(
        content=result.text,
        error_correction=ErrorCorrectionLevel.parse(getattr(result, "ec_level", None)),
    )


def scan_zxing_local(luma: np.ndarray) -> DecodeOutcome | None:
    """zxing-cpp with adaptive local-threshold binarization."""
    return _read_zxing(luma, zxingcpp.Binarizer.LocalAverage)


def scan_zxing_global(luma: np.ndarray) -> DecodeOutcome | None:
    """zxing-cpp with global-histogram binarization."""
    return _read_zxing(luma, zxingcpp.Binarizer.GlobalHistogram)


def scan_zbar(luma: np.ndarray) -> DecodeOutcome | None:
    """ZBar via pyzbar. ZBar does not report the error-correction level."""
    results = pyzbar_decode(luma, symbols=[ZBarSymbol.QRCODE])
    if not results:
        return None
    return DecodeOutcome(content=results[0].data.decode("utf-8", errors="replace"))


def scan_zbar_inverted(luma: np.ndarray) -> DecodeOutcome | None:
    """ZBar on a pixel-inverted copy, for light-on-dark symbols."""
    return scan_zbar(cv2.bitwise_not(luma))


STRATEGIES: tuple[tuple[str, Attempt], ...] = (
    ("zxing/local-average", scan_zxing_local),
    ("zxing/global-histogram", scan_zxing_global),
    ("zbar", scan_zbar),
    ("zbar/inverted", scan_zbar_inverted),
)


def run_isolated(name: str, attempt: Attempt, luma: np.ndarray) -> DecodeOutcome | None:
    """Run one strategy; any exception becomes a failed attempt."""
    start = time.perf_counter()
    try:
        outcome = attempt(luma)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=name, error=str(e), time_ms=round(elapsed, 1))
        return None
    log.debug("%s: %s in %.1fms", name, "hit" if outcome else "miss",
              (time.perf_counter() - start) * 1000)
    return outcome


def try_decode(image: Image.Image, strategies=STRATEGIES) -> DecodeOutcome:
    """Decode ``image`` with the first strategy that succeeds.

    Raises:
        DecodeFailed: every strategy failed.
    """
    luma = to_luma(image)
    for name, attempt in strategies:
        outcome = run_isolated(name, attempt, luma)
        if outcome is not None:
            audit("decode.succeeded", logger=log, decoder=name,
                  ecc=str(outcome.error_correction or "-"), data=outcome.content[:80])
            return outcome
    audit("decode.failed", logger=log, tried=len(strategies), size=f"{image.size[0]}x{image.size[1]}")
    raise DecodeFailed()


def load_image(image_bytes: bytes) -> Image.Image:
    """Open raster bytes (PNG, JPEG, ...) without reading the pixel data yet.

    Raises:
        ImageLoadError: the bytes are not a raster image Pillow can read.
    """
    try:
        return Image.open(io.BytesIO(image_bytes))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError,
            SyntaxError, EOFError) as e:
        raise ImageLoadError(str(e)) from e


def read_pixels(image: Image.Image) -> Image.Image:
    """Force the lazy pixel load, reporting truncated or corrupt data as ImageLoadError.

    Pillow signals some malformed chunks with SyntaxError rather than OSError.
    """
    try:
        image.load()
    except (Image.DecompressionBombError, OSError, ValueError, SyntaxError, EOFError) as e:
        raise ImageLoadError(str(e)) from e
    return image


@trace
def multi_decode(image_bytes: bytes) -> DecodeOutcome:
    """Decode raster bytes with the full ensemble."""
    return try_decode(read_pixels(load_image(image_bytes)))
