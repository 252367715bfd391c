"""Era (release-year) scoring helpers."""

from typing import Iterable, Optional, Sequence

from Soundcircle.recommendation.models import EraRange

NEUTRAL_ERA_SCORE = 0.5


def era_range_score(year: int, era: EraRange) -> float:
    """Closeness of *year* to the midpoint of *era*, 0 outside the range."""
    if year < era.start or year > era.end:
        return 0.0
    half_range = (era.end - era.start) / 2
    if half_range == 0:
        return 1.0 if year == era.start else 0.0
    score = 1.0 - abs(year - era.midpoint) / half_range
    return max(0.0, min(1.0, score))


def era_proximity(year: Optional[int], eras: Sequence[EraRange]) -> float:
    """Best fit of *year* across all preferred eras.

    Users without era preferences get the neutral 0.5. A song with no known
    release year fits no era.
    """
    if not eras:
        return NEUTRAL_ERA_SCORE
    if year is None:
        return 0.0
    return max(era_range_score(int(year), era) for era in eras)


def year_in_eras(year: Optional[int], eras: Iterable[EraRange]) -> bool:
    if year is None:
        return False
    return any(era.start <= year <= era.end for era in eras)


def mean_era_midpoint(eras: Sequence[EraRange]) -> Optional[float]:
    if not eras:
        return None
    return sum(era.midpoint for era in eras) / len(eras)


def era_similarity(eras_a: Sequence[EraRange], eras_b: Sequence[EraRange], gap_years: float = 100.0) -> float:
    """1 - |mean midpoint A - mean midpoint B| / gap_years, floored at 0; 0 when either side is empty."""
    midpoint_a = mean_era_midpoint(eras_a)
    midpoint_b = mean_era_midpoint(eras_b)
    if midpoint_a is None or midpoint_b is None:
        return 0.0
    return max(0.0, 1.0 - abs(midpoint_a - midpoint_b) / gap_years)
