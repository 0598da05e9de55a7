"""SVG input: native size, rasterization and the SVG scoring pipeline.

Rasterization itself is delegated. A rasterizer is any callable
``(svg_bytes, square_size) -> png_bytes | None``; the default uses CairoSVG,
imported on first use so the rest of the package works without Cairo.
"""

import dataclasses
import re
from collections.abc import Callable

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from qrscore.errors import InvalidSvgError, RenderFailed
from qrscore.logging import audit, get_logger, trace
from qrscore.pipeline import validate
from qrscore.types import ScoringParameters, ValidationResult

log = get_logger("render")

Rasterizer = Callable[[bytes, int], bytes | None]

# CSS pixels per unit at 96 DPI
_UNIT_PX = {
    "": 1.0,
    "px": 1.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
    "in": 96.0,
}
_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([a-z]*)\s*$")


def _length_px(value: str | None) -> float | None:
    if value is None:
        return None
    m = _LENGTH.match(value)
    if not m or m.group(2) not in _UNIT_PX:
        return None  # percentages and unknown units defer to the viewBox
    return float(m.group(1)) * _UNIT_PX[m.group(2)]


def _viewbox_size(value: str | None) -> tuple[float, float] | None:
    if value is None:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        _, _, w, h = (float(p) for p in parts)
    except ValueError:
        return None
    return w, h


def svg_size(svg_data: bytes) -> tuple[float, float]:
    """Width and height of an SVG document in pixels.

    Raises:
        InvalidSvgError: not XML, declares entities, has a root other than
            ``<svg>`` or has no positive size.
    """
    try:
        root = ET.fromstring(svg_data)
    except (ET.ParseError, DefusedXmlException) as e:
        raise InvalidSvgError(str(e)) from e
    if root.tag.rsplit("}", 1)[-1] != "svg":
        raise InvalidSvgError(f"root element is <{root.tag}>, expected <svg>")

    viewbox = _viewbox_size(root.get("viewBox"))
    width = _length_px(root.get("width"))
    height = _length_px(root.get("height"))
    if width is None:
        width = viewbox[0] if viewbox else None
    if height is None:
        height = viewbox[1] if viewbox else None

    if not width or not height or width <= 0 or height <= 0:
        raise InvalidSvgError("document has no usable width/height or viewBox")
    return width, height


def svg_native_size(svg_data: bytes) -> int:
    """Natural square size: the longer side, truncated to whole pixels."""
    return int(max(svg_size(svg_data)))


def cairosvg_rasterizer(svg_data: bytes, size: int) -> bytes | None:
    """Render into a ``size`` x ``size`` PNG with CairoSVG."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        log.warning("CairoSVG unavailable: %s", e)
        return None
    try:
        return cairosvg.svg2png(bytestring=svg_data, output_width=size, output_height=size)
    except Exception as e:
        audit("svg.render_error", logger=log, size=size, error=str(e))
        return None


def svg_to_png_hq(svg_data: bytes, dpi: float = 96.0, zoom: float = 1.0) -> bytes | None:
    """Render at the document's own size times ``zoom``, with a custom DPI."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        log.warning("CairoSVG unavailable: %s", e)
        return None
    try:
        return cairosvg.svg2png(bytestring=svg_data, dpi=dpi, scale=zoom)
    except Exception as e:
        audit("svg.render_error", logger=log, dpi=dpi, zoom=zoom, error=str(e))
        return None


def prepare_parameters(svg_data: bytes, params: ScoringParameters | None = None) -> ScoringParameters:
    """Copy of ``params`` with ``native_size`` taken from the document."""
    return dataclasses.replace(params or ScoringParameters(), native_size=svg_native_size(svg_data))


def render_svg(svg_data: bytes, params: ScoringParameters, rasterizer: Rasterizer | None = None) -> bytes:
    """Rasterize at ``max(render_size, native_size)``.

    Raises:
        RenderFailed: the rasterizer produced nothing.
    """
    native = params.native_size if params.native_size is not None else svg_native_size(svg_data)
    size = max(params.render_size, native)
    png = (rasterizer or cairosvg_rasterizer)(svg_data, size)
    if not png:
        raise RenderFailed()
    audit("svg.rendered", logger=log, native=native, size=size, png_bytes=len(png))
    return png


@trace
def score_svg_bytes(
    svg_data: bytes,
    params: ScoringParameters | None = None,
    rasterizer: Rasterizer | None = None,
) -> ValidationResult:
    """SVG bytes -> parse -> rasterize -> validate.

    Raises:
        InvalidSvgError, RenderFailed, plus everything :func:`qrscore.pipeline.validate` raises.
    """
    params = prepare_parameters(svg_data, params)
    return validate(render_svg(svg_data, params, rasterizer), params)
