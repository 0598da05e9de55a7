"""qrscore: QR code scannability scoring under visual stress.

Entry points live in :mod:`qrscore.pipeline` (raster images) and
:mod:`qrscore.render` (SVG documents).
"""

__version__ = "0.1.0"
