"""Top-level validation: raster bytes -> dimension guard -> baseline decode -> stress score."""

from PIL import Image

from qrscore import scorer
from qrscore.decoder import load_image, multi_decode, read_pixels, try_decode
from qrscore.errors import DimensionOverflow, DimensionsTooLarge
from qrscore.logging import audit, get_logger, trace
from qrscore.types import DecodeOutcome, ScoringParameters, ValidationResult

log = get_logger("pipeline")

MAX_DIMENSION = 10_000
_U32_MAX = 2**32 - 1


def validate_dimensions(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> None:
    """Reject rasters too large to score.

    Raises:
        DimensionsTooLarge: either side exceeds ``max_dimension``.
        DimensionOverflow: the pixel count does not fit in 32 bits.
    """
    if width > max_dimension or height > max_dimension:
        raise DimensionsTooLarge(width, height, max_dimension)
    if width * height > _U32_MAX:
        raise DimensionOverflow(width, height)


def validate_image(image: Image.Image, params: ScoringParameters) -> ValidationResult:
    """Score an already-loaded image.

    The unperturbed image must decode; otherwise DecodeFailed propagates and
    no stress run happens.
    """
    validate_dimensions(*image.size)
    decoded = try_decode(image)
    stress, score = scorer.validate(image, params)
    return ValidationResult(
        score=score,
        decodable=True,
        content=decoded.content,
        metadata=decoded.metadata(),
        stress_results=stress,
    )


@trace
def validate(image_bytes: bytes, params: ScoringParameters | None = None) -> ValidationResult:
    """Full scoring run for encoded raster bytes.

    The dimension guard reads the size from the image header, so oversized
    inputs are rejected before their pixels are decoded.

    Raises:
        ImageLoadError, DimensionsTooLarge, DimensionOverflow, DecodeFailed
    """
    params = params or ScoringParameters()
    image = load_image(image_bytes)
    validate_dimensions(*image.size)
    result = validate_image(read_pixels(image), params)
    audit("validate.completed", logger=log, score=result.score, grade=result.grade,
          ecc=str(result.metadata.error_correction))
    return result


def decode_only(image_bytes: bytes) -> DecodeOutcome:
    """Decode without scoring."""
    return multi_decode(image_bytes)
