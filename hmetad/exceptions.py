class MetaDError(Exception):
    """Base class for errors raised by hmetad."""

    def __init__(self, message):
        super().__init__(message)


class InputShapeError(MetaDError):
    """
    Throw this exception when a subject's response-count vectors
    differ in length, have odd length, or are otherwise malformed.
    """


class InconsistentRatingCountError(MetaDError):
    """
    Throw this exception when subjects in a group fit do not share
    the same number of confidence ratings.
    """


class InvalidParameterError(MetaDError):
    """Throw this exception for out-of-range model parameters (e.g. s <= 0)."""


class SamplerFailure(MetaDError):
    """
    Throw this exception when the posterior sampler cannot produce
    a posterior. No partial fit is returned.
    """
