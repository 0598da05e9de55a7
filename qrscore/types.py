"""Data model shared by the decoder, the stress matrix and the scorer."""

from dataclasses import dataclass, field
from enum import Enum

from qrscore.errors import ConfigError

# Every consumer that keys by variant name (weights, results) uses this vocabulary.
VARIANT_NAMES = (
    "downscale_1x",
    "downscale_2x",
    "downscale_3x",
    "downscale_4x",
    "blur_light",
    "blur_heavy",
    "contrast_up",
    "contrast_down",
    "contrast_strict_up",
    "contrast_strict_down",
    "luminance_up",
    "luminance_down",
    "luminance_strict_up",
    "luminance_strict_down",
    "hue_up",
    "hue_down",
    "hue_strict_up",
    "hue_strict_down",
    "saturation_up",
    "saturation_down",
    "saturation_strict_up",
    "saturation_strict_down",
)

DEFAULT_NATIVE_SIZE = 100

# Contrast ratio at which the contrast component of the score saturates.
CONTRAST_SATURATION = 0.7

# (lower bound, grade), highest band first
GRADE_BANDS = ((80, "A"), (60, "B"), (40, "C"), (20, "D"))


def grade_from_score(score: int) -> str:
    for lower, grade in GRADE_BANDS:
        if score >= lower:
            return grade
    return "F"


class ErrorCorrectionLevel(Enum):
    L = "L"  # 7%
    M = "M"  # 15%
    Q = "Q"  # 25%
    H = "H"  # 30%

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: object) -> "ErrorCorrectionLevel | None":
        """Map a decoder-reported level to the enum; anything else is None."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class QrMetadata:
    error_correction: ErrorCorrectionLevel = ErrorCorrectionLevel.M


@dataclass(frozen=True)
class DecodeOutcome:
    """Payload recovered by one successful decode attempt."""
    content: str
    error_correction: ErrorCorrectionLevel | None = None

    def metadata(self) -> QrMetadata:
        return QrMetadata(self.error_correction or ErrorCorrectionLevel.M)


def _default_test_weights() -> dict[str, int]:
    return {
        "downscale_1x": 1,
        "downscale_2x": 2,
        "downscale_3x": 2,
        "downscale_4x": 2,
        "blur_light": 2,
        "blur_heavy": 1,
        "contrast_up": 2,
        "contrast_down": 2,
        "contrast_strict_up": 1,
        "contrast_strict_down": 1,
        "luminance_up": 2,
        "luminance_down": 2,
        "luminance_strict_up": 1,
        "luminance_strict_down": 1,
        "hue_up": 1,
        "hue_down": 1,
        "hue_strict_up": 1,
        "hue_strict_down": 1,
        "saturation_up": 1,
        "saturation_down": 1,
        "saturation_strict_up": 1,
        "saturation_strict_down": 1,
    }


@dataclass
class WeightTable:
    """Relative contribution of each stress test and of contrast to the score.

    Keys outside VARIANT_NAMES are carried but never match a result; variants
    missing from ``tests`` weigh nothing.
    """
    tests: dict[str, int] = field(default_factory=_default_test_weights)
    contrast_weight: int = 70

    def __post_init__(self):
        negative = sorted(name for name, weight in self.tests.items() if weight < 0)
        if self.contrast_weight < 0:
            negative.append("contrast_ratio")
        if negative:
            raise ConfigError(f"Negative weights: {', '.join(negative)}")

    @property
    def total(self) -> int:
        return sum(self.tests.values()) + self.contrast_weight

    def unknown_keys(self) -> list[str]:
        return sorted(set(self.tests) - set(VARIANT_NAMES))


@dataclass
class ScoringParameters:
    """Every scoring option with its default, in one place.

    ``native_size`` is the document's natural square size before it was
    enlarged for rendering; raster inputs leave it unset and the variant
    generator falls back to DEFAULT_NATIVE_SIZE.
    """
    render_size: int = 400
    native_size: int | None = None
    blur_light_sigma: float = 1.0
    blur_heavy_sigma: float = 2.0
    contrast: float = 30.0
    contrast_strict: float = 50.0
    luminance: int = 20
    luminance_strict: int = 40
    hue: float = 45.0
    hue_strict: float = 90.0
    saturation: float = 30.0
    saturation_strict: float = 50.0
    weights: WeightTable = field(default_factory=WeightTable)


@dataclass(frozen=True)
class StressOutcome:
    """Pass/fail per variant plus the contrast measured on the source image."""
    tests: dict[str, bool] = field(default_factory=dict)
    contrast_ratio: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "contrast_ratio", min(max(float(self.contrast_ratio), 0.0), 1.0))

    @property
    def passed(self) -> int:
        return sum(1 for ok in self.tests.values() if ok)

    @property
    def contrast_percent(self) -> int:
        return int(self.contrast_ratio * 100 + 0.5)

    def summary(self) -> str:
        lines = [
            f"Stress tests: {self.passed}/{len(self.tests)} passed, "
            f"contrast {self.contrast_percent}%",
        ]
        for name in VARIANT_NAMES:
            if name in self.tests:
                lines.append(f"  {name:24s}: {'PASS' if self.tests[name] else 'FAIL'}")
        return "\n".join(lines)


@dataclass
class ValidationResult:
    score: int
    decodable: bool
    content: str | None
    metadata: QrMetadata | None
    stress_results: StressOutcome

    @property
    def grade(self) -> str:
        return grade_from_score(self.score)

    def to_dict(self) -> dict:
        """JSON-ready payload: the 22 results, contrast as a percentage."""
        return {
            "score": self.score,
            "grade": self.grade,
            "decodable": self.decodable,
            "content": self.content,
            "results": dict(self.stress_results.tests),
            "contrast_ratio": self.stress_results.contrast_percent,
            "error_correction": str(self.metadata.error_correction) if self.metadata else None,
        }
