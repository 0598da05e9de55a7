"""Error types raised by the qrscore pipeline."""


class QrScoreError(Exception):
    """Base class for every error the scoring pipeline reports to callers."""


class ImageLoadError(QrScoreError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to load image: {reason}")


class DecodeFailed(QrScoreError):
    """No decode strategy recognised a QR code. Carries no detail."""

    def __init__(self):
        super().__init__("No QR code found in image")


class InvalidSvgError(QrScoreError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid SVG: {reason}")


class RenderFailed(QrScoreError):
    def __init__(self):
        super().__init__("Failed to render SVG to PNG")


class DimensionsTooLarge(QrScoreError):
    def __init__(self, width: int, height: int, max_dimension: int):
        self.width = width
        self.height = height
        self.max_dimension = max_dimension
        super().__init__(
            f"Image too large: {width}x{height} exceeds maximum {max_dimension}x{max_dimension}"
        )


class DimensionOverflow(QrScoreError):
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Dimension overflow: {width} x {height} overflows")


class ConfigError(QrScoreError):
    """A configuration table has the wrong shape, a value of the wrong type, or a negative weight."""
