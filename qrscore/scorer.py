"""Score aggregation: stress outcome + weight table -> 0..100 score and letter grade."""

import math

from PIL import Image

from qrscore.logging import audit, get_logger, trace
from qrscore.stress import run_stress_tests
from qrscore.types import CONTRAST_SATURATION, ScoringParameters, StressOutcome, WeightTable, grade_from_score

log = get_logger("scorer")


def calculate_score(stress: StressOutcome, weights: WeightTable) -> int:
    """Weighted share of passed tests plus normalized contrast, as 0..100.

    Only variants present in both the outcome and the weight table count.
    A table whose weights sum to zero always scores 0.
    """
    total_weight = weights.total
    if total_weight == 0:
        return 0

    test_score = sum(
        weights.tests[name]
        for name, passed in stress.tests.items()
        if passed and name in weights.tests
    )
    normalized = min(max(stress.contrast_ratio / CONTRAST_SATURATION, 0.0), 1.0)
    raw = test_score + normalized * weights.contrast_weight

    # round half up
    return min(max(int(math.floor(raw / total_weight * 100.0 + 0.5)), 0), 100)


@trace
def validate(image: Image.Image, params: ScoringParameters) -> tuple[StressOutcome, int]:
    """Run the stress matrix on an already-decoded image and score it."""
    stress = run_stress_tests(image, params)
    score = calculate_score(stress, params.weights)
    audit("score.computed", logger=log, score=score, grade=grade_from_score(score),
          passed=f"{stress.passed}/{len(stress.tests)}")
    return stress, score
