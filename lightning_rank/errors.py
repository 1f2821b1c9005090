"""Exception types raised by the rating and standings engine."""


class RankingError(Exception):
    """Base class for every error raised by lightning_rank."""


class InvalidInput(RankingError, ValueError):
    """Malformed input, rejected before any state is touched.

    Examples: a completed match without a winner, a winner who did not play
    the match, a result that is neither "win" nor "loss".
    """


class ConsistencyConflict(RankingError):
    """Stored state disagrees with an incoming update.

    Raised when a playoff slot is already filled with a different competitor,
    or when a completed match is re-submitted with a different winner.
    """
