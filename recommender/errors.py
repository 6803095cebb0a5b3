"""
Error taxonomy for the recommendation engine.

Callers (the FastAPI routes, the batch generator) catch these by type:
- InvalidArgument: bad count / algorithm / timeframe / interaction type.
- NotFound: unknown player, game, or recommendation id.
- StrategyTimeout: one strategy exceeded its budget (excluded from fusion).
- UpstreamUnavailable: every strategy for a request timed out or failed.
- PersistenceFailure: recommendation records could not be written.
- BatchInProgress: a second batch run was started while one is active.

"No data" (a strategy legitimately produced zero candidates) is not an error;
it is reported through RecommendationResult.status.
"""

from typing import Optional


class RecommendationError(Exception):
    """Base class for engine errors."""


class InvalidArgument(RecommendationError, ValueError):
    """Caller error; never retried."""


class NotFound(RecommendationError, LookupError):
    """Unknown player, game, or recommendation id."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class StrategyTimeout(RecommendationError):
    """A single strategy did not finish within strategy_timeout_seconds."""

    def __init__(self, strategy: str, timeout_seconds: float):
        self.strategy = strategy
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Strategy '{strategy}' timed out after {timeout_seconds}s")


class UpstreamUnavailable(RecommendationError):
    """All strategies for a request timed out or failed."""


class PersistenceFailure(RecommendationError):
    """A store write failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class BatchInProgress(RecommendationError):
    """A whole-population batch run is already active."""
