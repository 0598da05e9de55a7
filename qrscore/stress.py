"""Stress matrix: decode every perturbed variant concurrently and collect pass/fail."""

import os
from concurrent.futures import ThreadPoolExecutor

from PIL import Image

from qrscore.contrast import measure_contrast
from qrscore.decoder import try_decode
from qrscore.errors import DecodeFailed
from qrscore.logging import audit, get_logger, trace
from qrscore.types import ScoringParameters, StressOutcome
from qrscore.variants import Transform, variant_recipes

log = get_logger("stress")


def evaluate_variant(name: str, transform: Transform, source: Image.Image) -> tuple[str, bool]:
    """Build one variant and try to decode it. Never raises."""
    try:
        try_decode(transform(source))
    except DecodeFailed:
        return name, False
    except Exception as e:
        audit("stress.variant_error", logger=log, variant=name, error=str(e))
        return name, False
    return name, True


@trace
def run_stress_tests(
    image: Image.Image,
    params: ScoringParameters,
    max_workers: int | None = None,
) -> StressOutcome:
    """Measure contrast once, then decode all 22 variants in parallel.

    Each worker owns its variant buffer and returns one ``(name, passed)``
    pair; the mapping is assembled only after every future has completed.
    """
    source = image.convert("RGB")
    contrast_ratio = measure_contrast(source)

    recipes = variant_recipes(params)
    workers = max_workers or min(len(recipes), os.cpu_count() or 1)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="qrscore-stress") as pool:
        futures = [pool.submit(evaluate_variant, name, transform, source)
                   for name, transform in recipes]
        tests = dict(future.result() for future in futures)

    outcome = StressOutcome(tests=tests, contrast_ratio=contrast_ratio)
    audit("stress.completed", logger=log,
          passed=outcome.passed,
          total=len(tests),
          contrast=f"{outcome.contrast_percent}%")
    return outcome
