"""Tests for error messages."""

from qrscore.errors import (
    DecodeFailed,
    DimensionOverflow,
    DimensionsTooLarge,
    ImageLoadError,
    InvalidSvgError,
    QrScoreError,
    RenderFailed,
)


def test_error_display_image_load():
    msg = str(ImageLoadError("invalid format"))
    assert "Failed to load image" in msg
    assert "invalid format" in msg


def test_error_display_decode_failed():
    assert "No QR code" in str(DecodeFailed())


def test_error_display_invalid_svg():
    msg = str(InvalidSvgError("bad xml"))
    assert "Invalid SVG" in msg
    assert "bad xml" in msg


def test_error_display_render_failed():
    assert "render SVG" in str(RenderFailed())


def test_error_display_dimensions_too_large():
    err = DimensionsTooLarge(20000, 20000, 10000)
    assert str(err) == "Image too large: 20000x20000 exceeds maximum 10000x10000"
    assert (err.width, err.height, err.max_dimension) == (20000, 20000, 10000)


def test_error_display_dimension_overflow():
    assert "overflow" in str(DimensionOverflow(2**32 - 1, 2**32 - 1))


def test_all_errors_share_a_base():
    for err in (ImageLoadError("x"), DecodeFailed(), InvalidSvgError("x"), RenderFailed(),
                DimensionsTooLarge(1, 1, 1), DimensionOverflow(1, 1)):
        assert isinstance(err, QrScoreError)
