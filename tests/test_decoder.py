"""Tests for the decode ensemble."""

import numpy as np
import pytest
import qrcode.constants
from PIL import Image, ImageOps

from conftest import QR_TEXT, encode_png, make_qr_image
from qrscore.decoder import (
    STRATEGIES,
    multi_decode,
    run_isolated,
    scan_zbar,
    scan_zbar_inverted,
    to_luma,
    try_decode,
)
from qrscore.errors import DecodeFailed, ImageLoadError
from qrscore.types import DecodeOutcome, ErrorCorrectionLevel


def _boom(luma):
    raise RuntimeError("decoder crashed")


def _miss(luma):
    return None


def test_decode_simple_qr(qr_png):
    result = multi_decode(qr_png)
    assert result.content == QR_TEXT


def test_decode_provides_metadata(qr_png):
    result = multi_decode(qr_png)
    assert result.metadata().error_correction in set(ErrorCorrectionLevel)


def test_zxing_reports_error_correction_level():
    img = make_qr_image(ecc=qrcode.constants.ERROR_CORRECT_H)
    assert try_decode(img).error_correction is ErrorCorrectionLevel.H


@pytest.mark.parametrize("name, attempt", STRATEGIES[:3], ids=[n for n, _ in STRATEGIES[:3]])
def test_each_strategy_recovers_the_same_content(qr_image, name, attempt):
    outcome = attempt(to_luma(qr_image))
    assert outcome is not None, name
    assert outcome.content == QR_TEXT


def test_zbar_has_no_error_correction_metadata(qr_image):
    outcome = scan_zbar(to_luma(qr_image))
    assert outcome.error_correction is None
    assert outcome.metadata().error_correction is ErrorCorrectionLevel.M


def test_zbar_inverted_reads_light_on_dark(qr_image):
    inverted = ImageOps.invert(qr_image)
    outcome = scan_zbar_inverted(to_luma(inverted))
    assert outcome is not None
    assert outcome.content == QR_TEXT


def test_inverted_qr_decodes_through_ensemble(qr_image):
    assert try_decode(ImageOps.invert(qr_image)).content == QR_TEXT


def test_decode_invalid_image_returns_error():
    with pytest.raises(ImageLoadError, match="Failed to load image"):
        multi_decode(b"not an image at all")


def test_decode_blank_image_returns_error():
    with pytest.raises(DecodeFailed):
        multi_decode(encode_png(Image.new("L", (100, 100))))


def test_crashing_strategy_is_isolated(qr_image):
    strategies = (("crash", _boom), ("zbar", scan_zbar))
    assert try_decode(qr_image, strategies=strategies).content == QR_TEXT


def test_all_strategies_crashing_is_decode_failed(qr_image):
    with pytest.raises(DecodeFailed):
        try_decode(qr_image, strategies=(("a", _boom), ("b", _boom), ("c", _miss)))


def test_first_successful_strategy_wins(qr_image):
    strategies = (
        ("miss", _miss),
        ("first", lambda luma: DecodeOutcome("first")),
        ("second", lambda luma: DecodeOutcome("second")),
    )
    assert try_decode(qr_image, strategies=strategies).content == "first"


def test_run_isolated_converts_exception_to_none():
    assert run_isolated("crash", _boom, np.zeros((4, 4), dtype=np.uint8)) is None


def test_to_luma_is_2d_uint8(qr_image):
    luma = to_luma(qr_image)
    assert luma.dtype == np.uint8
    assert luma.shape == (qr_image.size[1], qr_image.size[0])
