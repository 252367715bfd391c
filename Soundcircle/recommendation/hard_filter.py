"""Language/era admission gate applied to candidates before any scoring."""

from typing import AbstractSet, Optional, Sequence
import logging

import pandas as pd

from Soundcircle.recommendation.models import EraRange, PreferenceProfile
from Soundcircle.recommendation.utils.era import year_in_eras

logger = logging.getLogger(__name__)


def passes_hard_filter(
    language: Optional[str],
    release_year: Optional[int],
    languages: AbstractSet[str],
    eras: Sequence[EraRange]
) -> bool:
    """True if the song is admitted: its language is preferred (or no language
    preference exists) and its year lies in a preferred era (or none exist)."""
    if languages and language not in languages:
        return False
    if eras and not year_in_eras(release_year, eras):
        return False
    return True


def apply_hard_filter(candidates: pd.DataFrame, profile: PreferenceProfile, use_eras: bool = True) -> pd.DataFrame:
    """Drop every candidate the profile does not admit.

    Args:
        candidates: Song rows with 'language' and 'release_year' columns
        profile: The requesting user's preference profile
        use_eras: Whether the era condition applies (cold start uses language only)

    Returns:
        The admitted rows in their original order
    """
    if candidates.empty:
        return candidates.copy()
    eras = profile.preferred_eras if use_eras else ()
    languages = profile.preferred_languages
    if not languages and not eras:
        return candidates.reset_index(drop=True)

    years = pd.to_numeric(candidates['release_year'], errors='coerce')
    admitted = [
        passes_hard_filter(language, None if pd.isna(year) else int(year), languages, eras)
        for language, year in zip(candidates['language'], years)
    ]
    filtered = candidates[admitted].reset_index(drop=True)
    rejected = len(candidates) - len(filtered)
    if rejected:
        logger.debug("Hard filter rejected %d of %d candidates", rejected, len(candidates))
    return filtered
