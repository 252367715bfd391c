"""Exception hierarchy for the recommendation engine."""


class SoundcircleError(Exception):
    """Base class for all recommendation engine errors."""


class StoreUnavailableError(SoundcircleError):
    """The external store (or a lookup behind it) could not be reached."""


class RecommendationUnavailableError(SoundcircleError):
    """A public operation failed upstream and produced no result.

    Distinct from an empty result, which is a valid outcome.
    """

    def __init__(self, message: str = "recommendations unavailable, retry"):
        super().__init__(message)
