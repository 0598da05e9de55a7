"""Shared fixtures: QR images, encoded rasters and SVG documents."""

import io
import logging
import struct
import zlib

import pytest
import qrcode
import qrcode.constants
from PIL import Image

QR_TEXT = "https://example.com"


def make_qr_image(data: str = QR_TEXT, ecc=qrcode.constants.ERROR_CORRECT_M,
                  box_size: int = 10, border: int = 4) -> Image.Image:
    qr = qrcode.QRCode(error_correction=ecc, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white").convert("RGB")


def qr_matrix(data: str = QR_TEXT) -> list[list[bool]]:
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    return qr.get_matrix()


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def matrix_to_svg(matrix: list[list[bool]], unit: str = "") -> bytes:
    n = len(matrix)
    rects = "".join(
        f'<rect x="{x}" y="{y}" width="1" height="1"/>'
        for y, row in enumerate(matrix)
        for x, dark in enumerate(row)
        if dark
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{n}{unit}" height="{n}{unit}" '
        f'viewBox="0 0 {n} {n}">'
        f'<rect width="{n}" height="{n}" fill="#fff"/><g fill="#000">{rects}</g></svg>'
    ).encode()


class MatrixRasterizer:
    """Stands in for an SVG renderer: paints a known module matrix at the requested size."""

    def __init__(self, matrix: list[list[bool]]):
        self.matrix = matrix
        self.sizes: list[int] = []

    def __call__(self, svg_data: bytes, size: int) -> bytes | None:
        self.sizes.append(size)
        n = len(self.matrix)
        small = Image.new("L", (n, n), 255)
        small.putdata([0 if dark else 255 for row in self.matrix for dark in row])
        return encode_png(small.resize((size, size), Image.Resampling.NEAREST).convert("RGB"))


def _png_chunk(cid: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + cid + data + struct.pack(">I", zlib.crc32(cid + data))


def corrupt_chunk_png(png: bytes) -> bytes:
    """Keep everything before the first IDAT, cut that IDAT in half, then append a chunk with a non-ASCII type."""
    pos = 8
    while png[pos + 4:pos + 8] != b"IDAT":
        pos += 12 + struct.unpack(">I", png[pos:pos + 4])[0]
    length = struct.unpack(">I", png[pos:pos + 4])[0]
    idat = png[pos + 8:pos + 8 + length]
    return png[:pos] + _png_chunk(b"IDAT", idat[: len(idat) // 2]) + _png_chunk(b"\x01\x02\x03\x04", b"")


@pytest.fixture
def qr_image() -> Image.Image:
    return make_qr_image()


@pytest.fixture
def qr_png(qr_image) -> bytes:
    return encode_png(qr_image)


@pytest.fixture
def qr_svg() -> bytes:
    return matrix_to_svg(qr_matrix())


@pytest.fixture
def matrix_rasterizer() -> MatrixRasterizer:
    return MatrixRasterizer(qr_matrix())


@pytest.fixture
def blank_png() -> bytes:
    return encode_png(Image.new("RGB", (1, 1), (255, 255, 255)))


@pytest.fixture(autouse=True)
def _reset_qrscore_logging():
    yield
    root = logging.getLogger("qrscore")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def corrupt_png(qr_png) -> bytes:
    return corrupt_chunk_png(qr_png)
